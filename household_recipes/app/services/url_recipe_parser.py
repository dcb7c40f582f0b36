"""Scrape a recipe from a URL, trying the strongest strategy first."""

import logging
from typing import Optional
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup

from household_recipes.app.services.url_parsing.captions import get_caption_parser
from household_recipes.app.services.url_parsing.extractors.heuristic import (
    build_baseline,
    extract_recipe_from_text,
    read_page_meta,
)
from household_recipes.app.services.url_parsing.extractors.llm import CaptionAssist
from household_recipes.app.services.url_parsing.extractors.schema_org import extract_recipe_from_schema_org
from household_recipes.app.services.url_parsing.extractors.social import SocialPlatform, detect_platform
from household_recipes.app.services.url_parsing.html_fetcher import fetch_html
from household_recipes.app.services.url_parsing.models import ExtractedRecipe, PageMeta, ParsedCaption

logger = logging.getLogger(__name__)


def _first(*values):
    for value in values:
        if value:
            return value
    return None


async def _scrape_social(
    platform: SocialPlatform,
    soup: BeautifulSoup,
    html: str,
    url: str,
    meta: PageMeta,
    baseline: ExtractedRecipe,
    assist: CaptionAssist,
) -> ExtractedRecipe:
    caption = platform.extract_caption(soup, html, url, meta)
    image_url, image_source = platform.extract_image(soup, html, url, meta)

    parsed = ParsedCaption()
    assisted = None
    if caption.text:
        parsed = get_caption_parser(platform.name).parse(caption.text, fallback_title=meta.title)
        assisted = await assist.assist(caption.text, platform.name)

    ingredients = (assisted.ingredients if assisted else []) or parsed.ingredients
    directions = ("\n".join(assisted.directions) if assisted else "") or parsed.directions
    confidence = "medium" if ingredients or directions else "low"
    logger.info(
        "Scraped %s caption (source=%s, assisted=%s): ingredients=%d, directions=%s",
        platform.name,
        caption.source,
        assisted is not None,
        len(ingredients),
        bool(directions),
    )

    return baseline.model_copy(
        update={
            "title": _first(assisted and assisted.title, parsed.title, baseline.title),
            "description": _first(assisted and assisted.description, parsed.description, baseline.description),
            "image_url": _first(image_url, baseline.image_url),
            "source_name": platform.host_suffixes[0],
            "prep_time_minutes": assisted.prep_time_minutes if assisted else None,
            "cook_time_minutes": assisted.cook_time_minutes if assisted else None,
            "total_time_minutes": assisted.total_time_minutes if assisted else None,
            "servings": assisted.servings if assisted else None,
            "yields": assisted.yields if assisted else None,
            "ingredients": ingredients,
            "directions": directions,
            "confidence": confidence,
            "raw": {
                **baseline.raw,
                "strategy": f"caption.{platform.name}",
                "caption": caption.text,
                "caption_source": caption.source,
                "image_source": image_source,
                "parsed": parsed.model_dump(),
                "assisted": assisted.model_dump() if assisted else None,
            },
        }
    )


async def scrape_url(
    url: str,
    assist: Optional[CaptionAssist] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ExtractedRecipe:
    """Fetch a page and return the best recipe data found.

    Structured data wins outright at high confidence. Otherwise a metadata baseline
    is built and, for known short-video hosts, overlaid with caption parsing; other
    pages fall back to parsing their visible text.
    Platform detection and the source fields use the URL reached after redirects.
    Fetch failures propagate as ``FetchError``.
    """
    html, final_url = await fetch_html(url, transport=transport)
    if final_url != url:
        logger.info("Resolved %s to %s", url, final_url)
    url = final_url
    soup = BeautifulSoup(html, "lxml")
    meta = read_page_meta(soup)
    baseline = build_baseline(meta, url)

    structured = extract_recipe_from_schema_org(html, url)
    if structured is not None:
        return structured.model_copy(
            update={
                "description": structured.description or baseline.description,
                "image_url": structured.image_url or baseline.image_url,
                "source_name": baseline.source_name,
                "raw": {**structured.raw, "meta": baseline.raw.get("meta")},
            }
        )

    platform = detect_platform(urlparse(url).hostname or "")
    if platform is not None:
        return await _scrape_social(platform, soup, html, url, meta, baseline, assist or CaptionAssist())

    from_text = extract_recipe_from_text(html, baseline)
    if from_text is not None:
        return from_text
    logger.info("No recipe content found for %s; returning page metadata only", url)
    return baseline
