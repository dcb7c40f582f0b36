"""Turn one free-text ingredient line into name, quantity, unit and notes."""

import re

from household_recipes.app.schemas.shopping import ParsedIngredient
from household_recipes.app.services.quantity_parser import split_leading_quantity

UNIT_ALIASES = {
    "g": "g",
    "gram": "g",
    "grams": "g",
    "gr": "g",
    "kg": "kg",
    "kgs": "kg",
    "kilogram": "kg",
    "kilograms": "kg",
    "ml": "ml",
    "milliliter": "ml",
    "milliliters": "ml",
    "millilitre": "ml",
    "millilitres": "ml",
    "l": "l",
    "liter": "l",
    "liters": "l",
    "litre": "l",
    "litres": "l",
    "tbsp": "tbsp",
    "tbs": "tbsp",
    "tablespoon": "tbsp",
    "tablespoons": "tbsp",
    "tsp": "tsp",
    "teaspoon": "tsp",
    "teaspoons": "tsp",
    "cup": "cup",
    "cups": "cup",
    "oz": "oz",
    "ounce": "oz",
    "ounces": "oz",
    "lb": "lb",
    "lbs": "lb",
    "pound": "lb",
    "pounds": "lb",
}

COUNTABLE_RE = re.compile(r"\b(?:eggs?|lemons?|limes?|tomato(?:es)?|onions?|garlic cloves?)\b")

PAREN_NOTE_RE = re.compile(r"\(([^()]*)\)")
TO_TASTE_RE = re.compile(r"\bto taste\b", re.IGNORECASE)
OPTIONAL_RE = re.compile(r"\boptional\b", re.IGNORECASE)
UNIT_TOKEN_RE = re.compile(r"^([A-Za-z]+)\.?(?=\s|$)")
LEADING_OF_RE = re.compile(r"^of\s+", re.IGNORECASE)
PUNCTUATION_RE = re.compile(r"[,.;:]")


def _collapse(text: str) -> str:
    return " ".join(text.split())


def singularize(word: str) -> str:
    if word.endswith("ies") and len(word) > 3:
        return word[:-3] + "y"
    if word.endswith("oes") and len(word) > 3:
        return word[:-2]
    if word.endswith("s") and not word.endswith("ss") and len(word) > 1:
        return word[:-1]
    return word


def normalize_name(text: str) -> str:
    name = _collapse(PUNCTUATION_RE.sub(" ", text.lower()))
    if not name:
        return ""
    words = name.split(" ")
    words[-1] = singularize(words[-1])
    return " ".join(words)


def is_countable(name: str) -> bool:
    return bool(COUNTABLE_RE.search(name))


def _extract_notes(text: str):
    notes = [group.strip() for group in PAREN_NOTE_RE.findall(text) if group.strip()]
    text = PAREN_NOTE_RE.sub(" ", text)
    if TO_TASTE_RE.search(text):
        notes.append("to taste")
        text = TO_TASTE_RE.sub(" ", text)
    if OPTIONAL_RE.search(text):
        notes.append("optional")
        text = OPTIONAL_RE.sub(" ", text)
    return _collapse(text), notes


def _extract_unit(text: str):
    match = UNIT_TOKEN_RE.match(text)
    if not match:
        return None, text
    unit = UNIT_ALIASES.get(match.group(1).lower())
    if unit is None:
        return None, text
    return unit, text[match.end():].strip()


def parse_ingredient_line(raw: str) -> ParsedIngredient:
    raw = (raw or "").strip()
    text, notes = _extract_notes(raw)
    quantity, text = split_leading_quantity(text)
    unit, text = _extract_unit(text)
    text = LEADING_OF_RE.sub("", text)
    name = normalize_name(text) or normalize_name(raw)

    if unit is None and quantity is not None and is_countable(name):
        unit = "pcs"

    return ParsedIngredient(
        raw=raw,
        name=name,
        quantity=quantity,
        unit=unit,
        notes=", ".join(notes) or None,
    )
