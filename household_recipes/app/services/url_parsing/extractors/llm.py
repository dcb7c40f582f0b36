"""LLM-assisted structuring of short-video captions."""

import asyncio
import hashlib
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from household_recipes.app.core.config import Settings, get_settings
from household_recipes.app.services import llm_client
from household_recipes.app.services.url_parsing.caption_cache import CaptionCache, default_caption_cache
from household_recipes.app.services.url_parsing.models import AssistedRecipe

logger = logging.getLogger(__name__)

CompletionFn = Callable[[str, str, str], Awaitable[Dict[str, Any]]]

SYSTEM_PROMPT = (
    "You are a precise data extraction engine.\n"
    "You do not explain.\n"
    "You do not guess.\n"
    "You only return valid JSON.\n"
    "If data is missing or unclear, you return null or an empty array.\n"
    "\n"
    "Extraction rules:\n"
    "- Title: Prefer a clear dish name at the start of the caption. Remove emojis, macros, hashtags, and CTAs. "
    "If no clear dish name exists, return null.\n"
    "- Description: Short paragraph describing the dish. Exclude ingredients, steps, CTAs, and hashtags.\n"
    "- Ingredients: Extract only ingredient lines. Preserve quantities and units as plain text. "
    "One ingredient per array item.\n"
    "- Directions: Extract cooking steps in order. One step per array item. "
    "Remove fluff, jokes, and promotional language.\n"
    "- Times: Only return minutes if explicitly stated. Convert ranges to average (e.g., 5-10 min -> 8). "
    "Otherwise return null.\n"
    '- Servings/Yields: Extract if explicitly stated ("serves 4", "feeds 2"). Otherwise return null.\n'
    "\n"
    "Return JSON with exactly these keys: title, description, ingredients, directions, "
    "prepTimeMinutes, cookTimeMinutes, totalTimeMinutes, servings, yields."
)


def caption_cache_key(platform: str, caption_text: str) -> str:
    digest = hashlib.sha256(caption_text.encode("utf-8")).hexdigest()
    return f"{platform}:{digest}"


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _as_str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _as_minutes(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value != value or value < 0:
        return None
    return int(round(value))


def coerce_assisted_recipe(data: Any) -> Optional[AssistedRecipe]:
    """Keep only well-typed fields from model output; anything else becomes null or empty."""
    if not isinstance(data, dict):
        return None
    return AssistedRecipe(
        title=_as_str(data.get("title")),
        description=_as_str(data.get("description")),
        ingredients=_as_str_list(data.get("ingredients")),
        directions=_as_str_list(data.get("directions")),
        prep_time_minutes=_as_minutes(data.get("prepTimeMinutes")),
        cook_time_minutes=_as_minutes(data.get("cookTimeMinutes")),
        total_time_minutes=_as_minutes(data.get("totalTimeMinutes")),
        servings=_as_str(data.get("servings")),
        yields=_as_str(data.get("yields")),
    )


class CaptionAssist:
    """Optional LLM pass over caption text, deduplicated by content hash."""

    def __init__(
        self,
        cache: Optional[CaptionCache] = None,
        completion: Optional[CompletionFn] = None,
        settings: Optional[Settings] = None,
    ):
        self.cache = cache if cache is not None else default_caption_cache
        self._completion = completion or llm_client.call_json_completion
        self._settings = settings

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    @property
    def enabled(self) -> bool:
        return bool(self.settings.llm_api_key)

    async def assist(self, caption_text: Optional[str], platform: str) -> Optional[AssistedRecipe]:
        if not caption_text or not caption_text.strip() or not self.enabled:
            return None

        key = caption_cache_key(platform, caption_text)
        pending = self.cache.get(key)
        if pending is not None:
            if not pending.cancelled():
                return await pending
            self.cache.delete(key)

        task = asyncio.ensure_future(self._request(caption_text, platform))
        self.cache.set(key, task)
        result = await task
        if result is None:
            self.cache.delete(key)
        return result

    async def _request(self, caption_text: str, platform: str) -> Optional[AssistedRecipe]:
        user_prompt = f"Source: {platform}\nCaption:\n{caption_text[:8000]}"
        try:
            data = await self._completion(SYSTEM_PROMPT, user_prompt, self.settings.llm_caption_model)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Caption assist failed for %s caption: %s", platform, exc)
            return None
        recipe = coerce_assisted_recipe(data)
        if recipe is None:
            logger.warning("Caption assist returned a non-object payload for %s", platform)
        return recipe
