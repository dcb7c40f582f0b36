"""Recipe extractors for different parsing strategies."""

from household_recipes.app.services.url_parsing.extractors.heuristic import (
    build_baseline,
    extract_recipe_from_text,
    read_page_meta,
)
from household_recipes.app.services.url_parsing.extractors.llm import CaptionAssist
from household_recipes.app.services.url_parsing.extractors.schema_org import (
    extract_recipe_from_schema_org,
)
from household_recipes.app.services.url_parsing.extractors.social import detect_platform

__all__ = [
    "CaptionAssist",
    "build_baseline",
    "detect_platform",
    "extract_recipe_from_schema_org",
    "extract_recipe_from_text",
    "read_page_meta",
]
