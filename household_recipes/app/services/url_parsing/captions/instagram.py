"""Caption parser for Instagram posts and reels."""

import re
from typing import List, Optional

from household_recipes.app.services.url_parsing.captions import primitives as p
from household_recipes.app.services.url_parsing.captions.base import CaptionParser
from household_recipes.app.services.url_parsing.models import ParsedCaption

INLINE_HYPHEN_RE = re.compile(r"(?:^|\s+)-\s*(?=\S)")
SENTENCE_END_RE = re.compile(r"(?<=[.!?])\s+")


def split_inline_hyphen_list(line: str) -> List[str]:
    """'- 1 onion - 2 cloves garlic' -> ['1 onion', '2 cloves garlic'] once two or more separators appear."""
    if len(INLINE_HYPHEN_RE.findall(line)) < 2:
        cleaned = p.strip_bullet(line)
        return [cleaned] if cleaned else []
    return [part.strip() for part in INLINE_HYPHEN_RE.split(line) if part.strip()]


def _is_list_line(line: str) -> bool:
    return p.is_heading(line) or p.is_numbered_step(line) or p.is_bullet(line)


class InstagramCaptionParser(CaptionParser):
    platform = "instagram"

    def parse(self, text: str, fallback_title: Optional[str] = None) -> ParsedCaption:
        normalized = p.strip_trailing_hashtags(p.normalize_caption(text))
        lines = p.split_lines(normalized)

        heading_idx = next((idx for idx, line in enumerate(lines) if p.is_ingredient_heading(line)), None)

        ingredients: List[str] = []
        search_from = 0
        if heading_idx is not None:
            block = [p.ingredient_heading_rest(lines[heading_idx]) or ""]
            idx = heading_idx + 1
            while idx < len(lines):
                line = lines[idx]
                if line and (p.is_direction_heading(line) or p.is_numbered_step(line)):
                    break
                block.append(line)
                idx += 1
            search_from = idx
            for line in block:
                if line:
                    ingredients.extend(split_inline_hyphen_list(line))

        directions = None
        for idx in range(search_from, len(lines)):
            line = lines[idx]
            if p.is_direction_heading(line) or p.is_numbered_step(line):
                begin = idx + 1 if p.is_direction_heading(line) else idx
                steps = [step for step in lines[begin:] if step]
                inline = p.direction_heading_rest(line)
                if inline:
                    steps.insert(0, inline)
                directions = "\n".join(steps) or None
                break

        first_structured = next((idx for idx, line in enumerate(lines) if line and _is_list_line(line)), len(lines))
        intro = [line for line in lines[:first_structured] if line]

        title = None
        for line in intro:
            if len(line) <= p.TITLE_MAX_CHARS and not p.is_heading(line):
                title = p.clean_title(line)
                break
        if title is None and intro:
            first_sentence = SENTENCE_END_RE.split(" ".join(intro), 1)[0].strip()
            if first_sentence and len(first_sentence) <= p.TITLE_MAX_CHARS:
                title = p.clean_title(first_sentence)
        if title is None and fallback_title:
            title = p.truncate_title(fallback_title)

        paragraph = [line for line in intro if p.clean_title(line) != title and not p.is_cta(line)]
        description = " ".join(paragraph) or None

        return ParsedCaption(
            title=title,
            description=description,
            ingredients=ingredients,
            directions=directions,
            confidence=p.confidence_for(ingredients, directions),
        )
