"""Caption and cover-image extraction for short-video platform pages."""

import json
import logging
import re
from typing import Any, Iterable, List, Optional, Tuple

from bs4 import BeautifulSoup

from household_recipes.app.services.url_parsing.models import CaptionExtraction, PageMeta

logger = logging.getLogger(__name__)

TIKTOK_VIDEO_ID_RE = re.compile(r"/video/(\d+)")
TIKTOK_DESC_RE = re.compile(r'"desc"\s*:\s*"((?:[^"\\]|\\.)*)"')
INSTAGRAM_CAPTION_RE = re.compile(r'"caption"\s*:\s*\{[^{}]*?"text"\s*:\s*"((?:[^"\\]|\\.)*)"')
SHARED_DATA_RE = re.compile(r"window\._sharedData\s*=\s*(\{.*?\});", re.S)
CAPTION_KEY_RE = re.compile(r"desc|caption|text", re.I)


def normalize_image_url(value: Any) -> Optional[str]:
    """Accept only absolute https or protocol-relative image URLs."""
    if not isinstance(value, str):
        return None
    candidate = value.strip()
    if candidate.startswith("//"):
        return f"https:{candidate}"
    if candidate.startswith("https://"):
        return candidate
    return None


def _decode_json_string(value: str) -> str:
    try:
        return json.loads(f'"{value}"')
    except json.JSONDecodeError:
        return value


def _script_json_by_id(soup: BeautifulSoup, script_id: str) -> Optional[Any]:
    script = soup.find("script", id=script_id)
    if script is None:
        return None
    raw = script.string or script.get_text()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.debug("Embedded state %s is not valid JSON", script_id)
        return None


def _walk_strings(value: Any, key: Optional[str] = None) -> Iterable[Tuple[Optional[str], str]]:
    if isinstance(value, str):
        yield key, value
    elif isinstance(value, list):
        for item in value:
            yield from _walk_strings(item, key)
    elif isinstance(value, dict):
        for next_key, next_value in value.items():
            yield from _walk_strings(next_value, next_key)


def _find_value_by_key(value: Any, wanted: str) -> Optional[Any]:
    if isinstance(value, dict):
        if wanted in value and value[wanted]:
            return value[wanted]
        for nested in value.values():
            found = _find_value_by_key(nested, wanted)
            if found:
                return found
    elif isinstance(value, list):
        for item in value:
            found = _find_value_by_key(item, wanted)
            if found:
                return found
    return None


def _longest(candidates: List[str]) -> Optional[str]:
    candidates = [c for c in candidates if c and c.strip()]
    if not candidates:
        return None
    return max(candidates, key=len)


class SocialPlatform:
    """Where a platform keeps its caption and cover image inside a page."""

    name: str = ""
    host_suffixes: Tuple[str, ...] = ()

    def matches(self, hostname: str) -> bool:
        host = (hostname or "").lower()
        return any(host == suffix or host.endswith("." + suffix) for suffix in self.host_suffixes)

    def caption_from_state(self, soup: BeautifulSoup, html: str, url: str) -> Optional[str]:
        return None

    def caption_from_regex(self, html: str) -> Optional[str]:
        return None

    def image_from_state(self, soup: BeautifulSoup, html: str, url: str) -> Tuple[Optional[str], Optional[str]]:
        return None, None

    def extract_caption(self, soup: BeautifulSoup, html: str, url: str, meta: PageMeta) -> CaptionExtraction:
        """Embedded state first, then a regex over the raw page, then the meta description."""
        caption = self.caption_from_state(soup, html, url)
        if caption:
            return CaptionExtraction(text=caption, source="state")
        caption = self.caption_from_regex(html)
        if caption:
            return CaptionExtraction(text=caption, source="regex")
        if meta.description:
            return CaptionExtraction(text=meta.description, source="meta")
        return CaptionExtraction()

    def extract_image(self, soup: BeautifulSoup, html: str, url: str, meta: PageMeta) -> Tuple[Optional[str], Optional[str]]:
        image, source = self.image_from_state(soup, html, url)
        if image:
            return image, source
        normalized = normalize_image_url(meta.image)
        if normalized:
            return normalized, "meta"
        return None, None


class TikTokPlatform(SocialPlatform):
    name = "tiktok"
    host_suffixes = ("tiktok.com",)
    cover_keys = ("cover", "originCover", "dynamicCover", "shareCover", "thumbnail")

    def _sigi_items(self, soup: BeautifulSoup, url: str) -> List[dict]:
        state = _script_json_by_id(soup, "SIGI_STATE")
        module = state.get("ItemModule") if isinstance(state, dict) else None
        if not isinstance(module, dict):
            return []
        items = [item for item in module.values() if isinstance(item, dict)]
        match = TIKTOK_VIDEO_ID_RE.search(url or "")
        preferred = module.get(match.group(1)) if match else None
        if isinstance(preferred, dict):
            items.insert(0, preferred)
        return items

    def _rehydration_root(self, soup: BeautifulSoup) -> Optional[Any]:
        data = _script_json_by_id(soup, "__UNIVERSAL_DATA_FOR_REHYDRATION__")
        if isinstance(data, dict):
            return data.get("__DEFAULT_SCOPE__", data)
        return data

    def caption_from_state(self, soup: BeautifulSoup, html: str, url: str) -> Optional[str]:
        for item in self._sigi_items(soup, url):
            share_info = item.get("shareInfo") if isinstance(item.get("shareInfo"), dict) else {}
            for candidate in (item.get("desc"), item.get("text"), share_info.get("desc")):
                if isinstance(candidate, str) and candidate.strip():
                    return candidate
        root = self._rehydration_root(soup)
        if root is not None:
            return _longest([value for key, value in _walk_strings(root) if key and CAPTION_KEY_RE.search(key)])
        return None

    def caption_from_regex(self, html: str) -> Optional[str]:
        return _longest([_decode_json_string(match) for match in TIKTOK_DESC_RE.findall(html or "")])

    def image_from_state(self, soup: BeautifulSoup, html: str, url: str) -> Tuple[Optional[str], Optional[str]]:
        for item in self._sigi_items(soup, url):
            video = item.get("video") if isinstance(item.get("video"), dict) else {}
            for key in self.cover_keys:
                candidate = normalize_image_url(video.get(key))
                if candidate:
                    return candidate, f"SIGI_STATE.{key}"
        root = self._rehydration_root(soup)
        if root is not None:
            for key in self.cover_keys:
                candidate = normalize_image_url(_find_value_by_key(root, key))
                if candidate:
                    return candidate, f"rehydration.{key}"
        return None, None


class InstagramPlatform(SocialPlatform):
    name = "instagram"
    host_suffixes = ("instagram.com",)
    image_keys = ("display_url", "thumbnail_url", "image_url")

    def _shared_data(self, html: str) -> Optional[Any]:
        match = SHARED_DATA_RE.search(html or "")
        if not match:
            return None
        try:
            return json.loads(match.group(1))
        except json.JSONDecodeError:
            logger.debug("window._sharedData is not valid JSON")
            return None

    def caption_from_state(self, soup: BeautifulSoup, html: str, url: str) -> Optional[str]:
        shared = self._shared_data(html)
        if shared is None:
            return None
        return _longest([value for key, value in _walk_strings(shared) if key and CAPTION_KEY_RE.search(key)])

    def caption_from_regex(self, html: str) -> Optional[str]:
        return _longest([_decode_json_string(match) for match in INSTAGRAM_CAPTION_RE.findall(html or "")])

    def image_from_state(self, soup: BeautifulSoup, html: str, url: str) -> Tuple[Optional[str], Optional[str]]:
        shared = self._shared_data(html)
        if shared is None:
            return None, None
        for key in self.image_keys:
            candidate = normalize_image_url(_find_value_by_key(shared, key))
            if candidate:
                return candidate, f"sharedData.{key}"
        return None, None


PLATFORMS: Tuple[SocialPlatform, ...] = (TikTokPlatform(), InstagramPlatform())


def detect_platform(hostname: str) -> Optional[SocialPlatform]:
    for platform in PLATFORMS:
        if platform.matches(hostname):
            return platform
    return None
