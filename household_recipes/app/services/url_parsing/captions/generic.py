"""Heading-driven parser for arbitrary recipe text."""

from typing import List, Optional

from household_recipes.app.services.url_parsing.captions import primitives as p
from household_recipes.app.services.url_parsing.captions.base import CaptionParser
from household_recipes.app.services.url_parsing.models import ParsedCaption


class GenericCaptionParser(CaptionParser):
    """Single pass over the lines, switching between ingredients and directions at headings."""

    platform = "generic"

    def parse(self, text: str, fallback_title: Optional[str] = None) -> ParsedCaption:
        state = "unknown"
        ingredients: List[str] = []
        steps: List[str] = []
        for line in p.split_lines(p.normalize_caption(text)):
            if not line:
                continue
            rest = p.ingredient_heading_rest(line)
            if rest is not None:
                state = "ingredients"
                if rest:
                    ingredients.append(p.strip_bullet(rest))
                continue
            rest = p.direction_heading_rest(line)
            if rest is not None:
                state = "directions"
                if rest:
                    steps.append(rest)
                continue
            cleaned = p.strip_bullet(line)
            if not cleaned:
                continue
            if state == "ingredients":
                ingredients.append(cleaned)
            elif state == "directions":
                steps.append(cleaned)

        directions = "\n".join(steps) or None
        return ParsedCaption(
            title=p.truncate_title(fallback_title) if fallback_title else None,
            ingredients=ingredients,
            directions=directions,
            confidence=p.confidence_for(ingredients, directions),
        )
