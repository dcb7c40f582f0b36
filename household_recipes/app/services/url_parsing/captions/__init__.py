"""Caption heuristic parsers, one strategy per source platform."""

from typing import Dict

from household_recipes.app.services.url_parsing.captions.base import CaptionParser
from household_recipes.app.services.url_parsing.captions.generic import GenericCaptionParser
from household_recipes.app.services.url_parsing.captions.instagram import InstagramCaptionParser
from household_recipes.app.services.url_parsing.captions.tiktok import TikTokCaptionParser

CAPTION_PARSERS: Dict[str, CaptionParser] = {
    parser.platform: parser
    for parser in (TikTokCaptionParser(), InstagramCaptionParser(), GenericCaptionParser())
}


def get_caption_parser(platform: str) -> CaptionParser:
    """Parser registered for a platform; unknown platforms get the generic parser."""
    return CAPTION_PARSERS.get(platform) or CAPTION_PARSERS["generic"]


__all__ = [
    "CAPTION_PARSERS",
    "CaptionParser",
    "GenericCaptionParser",
    "InstagramCaptionParser",
    "TikTokCaptionParser",
    "get_caption_parser",
]
