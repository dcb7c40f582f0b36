"""Heuristic extraction: page metadata baseline and plain-text recipe fallback."""

import logging
from typing import Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from household_recipes.app.services.url_parsing.captions import get_caption_parser
from household_recipes.app.services.url_parsing.models import ExtractedRecipe, PageMeta
from household_recipes.app.services.url_parsing.parsing_utils import clean_text, decode_entities, html_to_text

logger = logging.getLogger(__name__)


def _meta_content(soup: BeautifulSoup, key: str) -> Optional[str]:
    tag = soup.find("meta", attrs={"property": key}) or soup.find("meta", attrs={"name": key})
    if tag is None:
        return None
    content = tag.get("content")
    if not content:
        return None
    return decode_entities(content).strip() or None


def read_page_meta(soup: BeautifulSoup) -> PageMeta:
    title = _meta_content(soup, "og:title") or _meta_content(soup, "twitter:title")
    if not title and soup.title and soup.title.string:
        title = clean_text(soup.title.string) or None
    return PageMeta(
        title=title,
        description=_meta_content(soup, "og:description") or _meta_content(soup, "description"),
        image=_meta_content(soup, "og:image") or _meta_content(soup, "twitter:image"),
        site_name=_meta_content(soup, "og:site_name"),
    )


def build_baseline(meta: PageMeta, url: str) -> ExtractedRecipe:
    """Medium-confidence result built only from the document head."""
    hostname = urlparse(url).hostname or ""
    return ExtractedRecipe(
        title=meta.title,
        description=meta.description,
        image_url=meta.image,
        source_url=url,
        source_name=meta.site_name or hostname.removeprefix("www.") or None,
        confidence="medium",
        raw={"strategy": "meta", "meta": meta.model_dump()},
    )


def extract_recipe_from_text(html: str, baseline: ExtractedRecipe) -> Optional[ExtractedRecipe]:
    """Strip markup and run the generic parser; only accepted when it finds ingredients or directions."""
    text = html_to_text(html)
    parsed = get_caption_parser("generic").parse(text)
    if not parsed.ingredients and not parsed.directions:
        return None
    logger.info(
        "Text fallback recovered %d ingredients, directions=%s", len(parsed.ingredients), bool(parsed.directions)
    )
    return baseline.model_copy(
        update={
            "ingredients": parsed.ingredients,
            "directions": parsed.directions,
            "confidence": "low",
            "raw": {**baseline.raw, "strategy": "text", "parsed": parsed.model_dump()},
        }
    )
