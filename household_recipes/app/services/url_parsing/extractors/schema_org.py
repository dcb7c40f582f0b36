"""Schema.org JSON-LD recipe extraction."""

import json
import logging
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from household_recipes.app.services.url_parsing.models import ExtractedRecipe
from household_recipes.app.services.url_parsing.parsing_utils import (
    clean_text,
    decode_entities,
    extract_image,
    extract_instruction_text,
    normalize_ingredient_list,
    normalize_yield,
    parse_iso8601_duration,
)

logger = logging.getLogger(__name__)


def _flatten(node: Any) -> List[Dict[str, Any]]:
    if not node:
        return []
    if isinstance(node, list):
        flat: List[Dict[str, Any]] = []
        for item in node:
            flat.extend(_flatten(item))
        return flat
    if isinstance(node, dict):
        if "@graph" in node:
            return _flatten(node["@graph"])
        flat = [node]
        # typed children, e.g. a Recipe under a WebPage mainEntity
        for key, value in node.items():
            if key.startswith("@"):
                continue
            if isinstance(value, dict) and ("@type" in value or "@graph" in value):
                flat.extend(_flatten(value))
            elif isinstance(value, list):
                flat.extend(_flatten([item for item in value if isinstance(item, dict) and "@type" in item]))
        return flat
    return []


def _is_recipe_type(value: Any) -> bool:
    if isinstance(value, list):
        return any(str(item).lower() == "recipe" for item in value)
    return bool(value) and str(value).lower() == "recipe"


def load_json_ld_blocks(html: str) -> List[Any]:
    """Parse every ld+json script; malformed blocks are skipped."""
    soup = BeautifulSoup(html or "", "lxml")
    blocks: List[Any] = []
    for idx, script in enumerate(soup.find_all("script", attrs={"type": "application/ld+json"})):
        raw_json = script.string or script.get_text()
        if not raw_json or not raw_json.strip():
            continue
        try:
            blocks.append(json.loads(raw_json))
        except json.JSONDecodeError as exc:
            logger.warning("JSON-LD block %d failed to parse: %s (first 200 chars: %s)", idx, exc, raw_json[:200])
    return blocks


def find_recipe_node(blocks: List[Any]) -> Optional[Dict[str, Any]]:
    for node in _flatten(blocks):
        if _is_recipe_type(node.get("@type")):
            return node
    return None


def extract_recipe_from_schema_org(html: str, url: str) -> Optional[ExtractedRecipe]:
    """Extract a recipe from schema.org JSON-LD embedded in HTML, or None when absent."""
    node = find_recipe_node(load_json_ld_blocks(html))
    if node is None:
        return None

    steps = extract_instruction_text(node.get("recipeInstructions"))
    recipe_yield = normalize_yield(node.get("recipeYield"))
    title = node.get("name")
    description = node.get("description")
    recipe = ExtractedRecipe(
        title=clean_text(decode_entities(title)) or None if isinstance(title, str) else None,
        description=clean_text(decode_entities(description)) or None if isinstance(description, str) else None,
        source_url=url,
        image_url=extract_image(node.get("image")),
        prep_time_minutes=parse_iso8601_duration(node.get("prepTime")),
        cook_time_minutes=parse_iso8601_duration(node.get("cookTime")),
        total_time_minutes=parse_iso8601_duration(node.get("totalTime")),
        servings=recipe_yield,
        yields=recipe_yield,
        ingredients=normalize_ingredient_list(node.get("recipeIngredient")),
        directions="\n".join(steps) or None,
        confidence="high",
        raw={"strategy": "schema_org", "json_ld": node},
    )
    logger.info(
        "Schema.org recipe found: title=%s, ingredients=%d, steps=%d",
        (recipe.title or "None")[:50],
        len(recipe.ingredients),
        len(steps),
    )
    return recipe
