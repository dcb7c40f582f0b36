"""Caption parser for TikTok video descriptions."""

from typing import List, Optional, Tuple

from household_recipes.app.services.url_parsing.captions import primitives as p
from household_recipes.app.services.url_parsing.captions.base import CaptionParser
from household_recipes.app.services.url_parsing.models import ParsedCaption


def _next_non_empty(lines: List[str], index: int) -> Optional[str]:
    for line in lines[index:]:
        if line:
            return line
    return None


def extract_ingredients_block(lines: List[str]) -> Tuple[List[str], Optional[int], Optional[int]]:
    """Return (items, block_start, block_end). The block starts at a heading or the first ingredient-like line."""
    start = None
    block_start = None
    has_heading = False
    items: List[str] = []
    for idx, line in enumerate(lines):
        if not line:
            continue
        rest = p.ingredient_heading_rest(line)
        if rest is not None:
            has_heading = True
            block_start = idx
            start = idx + 1
            if rest:
                items.append(p.strip_bullet(rest))
            break
        if p.is_ingredient_like(line):
            block_start = start = idx
            break
    if start is None:
        return [], None, None

    idx = start
    while idx < len(lines):
        line = lines[idx]
        if not line:
            upcoming = _next_non_empty(lines, idx + 1)
            if upcoming is None or p.is_direction_heading(upcoming) or p.is_numbered_step(upcoming):
                break
            idx += 1
            continue
        if p.is_direction_heading(line) or p.is_numbered_step(line):
            break
        if has_heading or p.is_ingredient_like(line):
            cleaned = p.strip_bullet(line)
            if cleaned:
                items.append(cleaned)
        idx += 1
    return items, block_start, idx


def extract_directions_block(lines: List[str], search_from: int = 0) -> Tuple[Optional[str], Optional[int]]:
    begin = None
    block_start = None
    for idx in range(search_from, len(lines)):
        line = lines[idx]
        if not line:
            continue
        if p.is_direction_heading(line):
            block_start, begin = idx, idx + 1
            break
        if p.is_numbered_step(line):
            block_start = begin = idx
            break
    if begin is None:
        return None, None
    steps = [line for line in lines[begin:] if line]
    inline = p.direction_heading_rest(lines[block_start])
    if inline:
        steps.insert(0, inline)
    return ("\n".join(steps) or None), block_start


def _is_title_candidate(line: str) -> bool:
    if len(line) > p.TITLE_MAX_CHARS or line.startswith("#"):
        return False
    if p.is_cta(line) or p.is_heading(line) or p.is_numbered_step(line) or p.is_ingredient_like(line):
        return False
    return line.count("#") <= 2 and line.count("@") <= 2


def derive_title(ingredients: List[str], directions: Optional[str]) -> Optional[str]:
    """Build '<Verb> <Ingredient>' from the first step and the first ingredient."""
    name = p.strip_quantity(ingredients[0]) if ingredients else ""
    verb = ""
    if directions:
        first_step = p.strip_step_number(directions.split("\n", 1)[0])
        match = p.DIRECTION_VERB_RE.match(first_step)
        if match:
            verb = match.group(1)
    candidate = f"{verb} {name}".strip()
    if not candidate or not name:
        return None
    return p.truncate_title(p.title_case(candidate))


class TikTokCaptionParser(CaptionParser):
    platform = "tiktok"

    def parse(self, text: str, fallback_title: Optional[str] = None) -> ParsedCaption:
        normalized = p.strip_trailing_hashtags(p.normalize_caption(text))
        lines = p.split_lines(normalized)

        ingredients, ingredient_start, ingredient_end = extract_ingredients_block(lines)
        directions, directions_start = extract_directions_block(lines, ingredient_end or 0)

        if not ingredients and not directions:
            ingredient_like = [p.strip_bullet(line) for line in lines if p.is_ingredient_like(line)]
            step_like = [line for line in lines if p.is_step_like(line)]
            if len(ingredient_like) >= 3 and len(step_like) >= 2:
                ingredients = ingredient_like
                directions = "\n".join(step_like)

        title = None
        for line in p.non_empty(lines)[:3]:
            if _is_title_candidate(line):
                title = p.clean_title(line)
                break
        if not title:
            title = derive_title(ingredients, directions)
        if not title and fallback_title:
            title = p.truncate_title(fallback_title)

        stops = [idx for idx in (ingredient_start, directions_start) if idx is not None]
        stop = min(stops) if stops else len(lines)
        description_lines = [
            line
            for line in lines[:stop]
            if line and not p.is_cta(line) and p.clean_title(line) != title and not p.is_heading(line)
        ]

        return ParsedCaption(
            title=title,
            description="\n".join(description_lines) or None,
            ingredients=ingredients,
            directions=directions,
            confidence=p.confidence_for(ingredients, directions),
        )
