"""URL recipe scraping package.

Pages are fetched through SSRF guards and mined with several strategies:
schema.org JSON-LD, page metadata, platform caption heuristics with an
optional LLM assist, and a plain-text fallback.
"""

from household_recipes.app.services.url_parsing.html_fetcher import (
    FetchError,
    FetchLimitError,
    FetchStatusError,
    UnsafeUrlError,
    assert_safe_url,
    fetch_html,
    is_private_host,
    validate_url,
)
from household_recipes.app.services.url_parsing.models import (
    AssistedRecipe,
    CaptionExtraction,
    ExtractedRecipe,
    PageMeta,
    ParsedCaption,
)
from household_recipes.app.services.url_parsing.parsing_utils import (
    clean_text,
    extract_image,
    extract_instruction_text,
    html_to_text,
    normalize_yield,
    parse_iso8601_duration,
)

__all__ = [
    # Models
    "AssistedRecipe",
    "CaptionExtraction",
    "ExtractedRecipe",
    "PageMeta",
    "ParsedCaption",
    # HTML fetching
    "FetchError",
    "FetchLimitError",
    "FetchStatusError",
    "UnsafeUrlError",
    "assert_safe_url",
    "fetch_html",
    "is_private_host",
    "validate_url",
    # Parsing utilities
    "clean_text",
    "extract_image",
    "extract_instruction_text",
    "html_to_text",
    "normalize_yield",
    "parse_iso8601_duration",
]
