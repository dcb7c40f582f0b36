"""General parsing utilities for recipe extraction."""

import html
import re
from typing import Any, List, Optional

from bs4 import BeautifulSoup

DURATION_RE = re.compile(r"P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?", re.I)


def clean_text(text: str) -> str:
    """Normalize whitespace in text."""
    return re.sub(r"\s+", " ", text or "").strip()


def decode_entities(text: str) -> str:
    return html.unescape(text or "")


def parse_iso8601_duration(duration: Optional[str]) -> Optional[int]:
    """Parse an ISO-8601 duration such as PT1H30M or P1DT2H into whole minutes."""
    if not duration or not isinstance(duration, str):
        return None
    match = next((m for m in DURATION_RE.finditer(duration.strip()) if any(m.groups())), None)
    if match is None:
        return None
    days = int(match.group(1) or 0)
    hours = int(match.group(2) or 0)
    minutes = int(match.group(3) or 0)
    seconds = int(match.group(4) or 0)
    return days * 1440 + hours * 60 + minutes + (1 if seconds >= 30 else 0)


def extract_image(value: Any) -> Optional[str]:
    """Resolve schema.org image values: string, list (first resolvable) or object with url/@id."""
    if not value:
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, list):
        for item in value:
            resolved = extract_image(item)
            if resolved:
                return resolved
        return None
    if isinstance(value, dict):
        for key in ("url", "@id", "contentUrl"):
            candidate = value.get(key)
            if isinstance(candidate, str) and candidate.strip():
                return candidate.strip()
    return None


def normalize_yield(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, list):
        parts = [str(item).strip() for item in value if isinstance(item, (str, int, float)) and str(item).strip()]
        return ", ".join(parts) or None
    if isinstance(value, str):
        return value.strip() or None
    return str(value)


def normalize_ingredient_list(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [clean_text(decode_entities(line)) for line in value.splitlines() if line.strip()]
    if isinstance(value, list):
        return [clean_text(decode_entities(item)) for item in value if isinstance(item, str) and item.strip()]
    return []


def extract_instruction_text(instructions: Any) -> List[str]:
    """Flatten recipeInstructions (strings, HowToStep, HowToSection) into steps in document order."""
    steps: List[str] = []

    def _walk(node: Any) -> None:
        if not node:
            return
        if isinstance(node, str):
            cleaned = clean_text(decode_entities(node))
            if cleaned:
                steps.append(cleaned)
            return
        if isinstance(node, list):
            for entry in node:
                _walk(entry)
            return
        if isinstance(node, dict):
            if isinstance(node.get("text"), str):
                _walk(node["text"])
            elif node.get("itemListElement"):
                _walk(node["itemListElement"])
            elif node.get("steps"):
                _walk(node["steps"])
            elif isinstance(node.get("name"), str):
                _walk(node["name"])

    _walk(instructions)
    return steps


def html_to_text(markup: str) -> str:
    """Strip markup to newline-separated visible text."""
    soup = BeautifulSoup(markup or "", "lxml")
    for tag in soup(["script", "style", "noscript", "template"]):
        tag.decompose()
    text = soup.get_text("\n")
    lines = [clean_text(line) for line in text.splitlines()]
    return "\n".join(line for line in lines if line)
