"""Line-level helpers shared by the caption parsers."""

import html
import re
from typing import List, Optional

TITLE_MAX_CHARS = 80

FRACTION_CHARS = "¼½¾⅓⅔⅛⅜⅝⅞"

INGREDIENT_HEADING_RE = re.compile(
    r"^(?:ingredients?\b|what you need\b|you(?:'|’)ll need\b|you will need\b)\s*(?:[:\-–]\s*(?P<rest>.*))?$",
    re.I,
)
DIRECTION_HEADING_RE = re.compile(r"^(?:method|directions|instructions|steps|how to)\b", re.I)
NUMBERED_STEP_RE = re.compile(r"^(?:\d+\s*[.)](?!\d)|step\s*\d+\b)", re.I)
STEP_NUMBER_PREFIX_RE = re.compile(r"^(?:\d+\s*[.)](?!\d)|step\s*\d+\s*[:.)\-]?)\s*", re.I)
BULLET_RE = re.compile(r"^[-•–*]+\s*")
QUANTITY_START_RE = re.compile(rf"^[\d{FRACTION_CHARS}]")
QUANTITY_PREFIX_RE = re.compile(rf"^[\d\s/.,{FRACTION_CHARS}-]+")
HASHTAG_RE = re.compile(r"#[^\s#]+")
CTA_RE = re.compile(
    r"\b(?:link in (?:my )?bio|follow|comments?|recipe in (?:the )?caption|recipe in (?:the )?comments"
    r"|subscribe|dm|bio|discount|code|shop|giveaway)\b",
    re.I,
)
DIRECTION_VERB_RE = re.compile(
    r"^(mix|stir|bake|heat|add|cook|combine|whisk|saute|sauté|fry|roast|boil|simmer|serve|pour|blend"
    r"|chop|slice|marinate|grill|preheat|toss|season|fold|whip|assemble)\b",
    re.I,
)
UNIT_WORD_RE = re.compile(
    r"^(?:cups?|tbsp|tsp|tablespoons?|teaspoons?|g|grams?|kg|ml|l|oz|ounces?|lbs?|pounds?|cloves?|cans?|pinch)\b\.?\s*(?:of\s+)?",
    re.I,
)

PICTOGRAPHIC_RANGES = (
    (0x1F000, 0x1FAFF),
    (0x2600, 0x27BF),
    (0x2300, 0x23FF),
    (0x2B00, 0x2BFF),
)


def is_pictographic(char: str) -> bool:
    code = ord(char)
    return any(low <= code <= high for low, high in PICTOGRAPHIC_RANGES)


def normalize_caption(text: str) -> str:
    """Decode entities and tidy whitespace while keeping line structure."""
    value = html.unescape(text or "")
    value = value.replace("\r\n", "\n").replace("\r", "\n")
    value = value.replace("\\n", "\n")
    value = value.replace("\t", " ")
    value = re.sub(r"[ \u00a0]{2,}", " ", value)
    value = re.sub(r"\n{3,}", "\n\n", value)
    return value.strip()


def strip_trailing_hashtags(text: str) -> str:
    """Cut a hashtag-heavy tail: if the last 30% is mostly hashtags, drop from the first '#' there."""
    if len(text) < 40:
        return text
    start = int(len(text) * 0.7)
    tail = text[start:]
    non_space = re.sub(r"\s", "", tail)
    if not non_space:
        return text
    hashtag_chars = sum(len(tag) for tag in HASHTAG_RE.findall(tail))
    if hashtag_chars / len(non_space) <= 0.6:
        return text
    cut = text.find("#", start)
    if cut == -1:
        return text
    return text[:cut].rstrip()


def split_lines(text: str) -> List[str]:
    return [line.strip() for line in text.split("\n")]


def ingredient_heading_rest(line: str) -> Optional[str]:
    """Return the text following an ingredient heading, or None when the line is not one."""
    match = INGREDIENT_HEADING_RE.match(line.strip())
    if not match:
        return None
    return (match.group("rest") or "").strip()


def is_ingredient_heading(line: str) -> bool:
    return ingredient_heading_rest(line) is not None


def is_direction_heading(line: str) -> bool:
    return bool(DIRECTION_HEADING_RE.match(line.strip()))


def direction_heading_rest(line: str) -> Optional[str]:
    """Return the text after "Method:" style headings, or None when the line is not one."""
    if not is_direction_heading(line):
        return None
    _, sep, rest = line.partition(":")
    return rest.strip() if sep else ""


def is_heading(line: str) -> bool:
    return is_ingredient_heading(line) or is_direction_heading(line)


def is_numbered_step(line: str) -> bool:
    return bool(NUMBERED_STEP_RE.match(line.strip()))


def is_bullet(line: str) -> bool:
    stripped = line.strip()
    if not stripped:
        return False
    return bool(BULLET_RE.match(stripped)) or is_pictographic(stripped[0])


def strip_bullet(line: str) -> str:
    stripped = line.strip()
    stripped = BULLET_RE.sub("", stripped)
    while stripped and (is_pictographic(stripped[0]) or stripped[0] in "\ufe0f\u200d"):
        stripped = stripped[1:]
    return stripped.strip()


def starts_with_quantity(line: str) -> bool:
    return bool(QUANTITY_START_RE.match(line.strip()))


def is_ingredient_like(line: str) -> bool:
    if not line or is_numbered_step(line):
        return False
    return is_bullet(line) or starts_with_quantity(line)


def strip_step_number(line: str) -> str:
    return STEP_NUMBER_PREFIX_RE.sub("", line.strip())


def is_step_like(line: str) -> bool:
    if not line:
        return False
    return is_numbered_step(line) or bool(DIRECTION_VERB_RE.match(strip_step_number(line)))


def is_cta(line: str) -> bool:
    return bool(CTA_RE.search(line))


def strip_quantity(ingredient: str) -> str:
    """Drop a leading amount and unit: '2 cloves garlic, minced' -> 'garlic'."""
    value = strip_bullet(ingredient)
    value = QUANTITY_PREFIX_RE.sub("", value)
    value = UNIT_WORD_RE.sub("", value)
    value = value.split(",", 1)[0]
    value = re.sub(r"\([^)]*\)", "", value)
    return re.sub(r"\s+", " ", value).strip()


def title_case(text: str) -> str:
    return " ".join(word[:1].upper() + word[1:].lower() for word in text.split())


def truncate_title(text: str, limit: int = TITLE_MAX_CHARS) -> str:
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[:limit].rstrip()


def clean_title(line: str) -> str:
    return truncate_title(line.strip().strip("\"'“”‘’").strip())


def non_empty(lines: List[str]) -> List[str]:
    return [line for line in lines if line]


def confidence_for(ingredients: List[str], directions: Optional[str]) -> str:
    return "medium" if ingredients and directions else "low"
