import asyncio

import pytest

from household_recipes.app.core.config import Settings
from household_recipes.app.services.url_parsing.caption_cache import InMemoryCaptionCache
from household_recipes.app.services.url_parsing.extractors.llm import (
    CaptionAssist,
    caption_cache_key,
    coerce_assisted_recipe,
)

ENABLED = Settings(LLM_API_KEY="test-key", _env_file=None)


def test_coerce_keeps_only_well_typed_fields():
    recipe = coerce_assisted_recipe(
        {
            "title": "  Orzo  ",
            "description": 12,
            "ingredients": ["1 cup orzo", "", 3],
            "directions": "not a list",
            "prepTimeMinutes": 7.6,
            "cookTimeMinutes": True,
            "totalTimeMinutes": -5,
            "servings": "4",
        }
    )

    assert recipe.title == "Orzo"
    assert recipe.description is None
    assert recipe.ingredients == ["1 cup orzo"]
    assert recipe.directions == []
    assert recipe.prep_time_minutes == 8
    assert recipe.cook_time_minutes is None
    assert recipe.total_time_minutes is None
    assert recipe.servings == "4"
    assert coerce_assisted_recipe(["not", "a", "dict"]) is None


def test_cache_key_depends_on_platform_and_text():
    assert caption_cache_key("tiktok", "abc") != caption_cache_key("instagram", "abc")
    assert caption_cache_key("tiktok", "abc") == caption_cache_key("tiktok", "abc")


@pytest.mark.asyncio
async def test_assist_is_skipped_without_api_key():
    calls = []

    async def completion(system, user, model):
        calls.append(user)
        return {}

    assist = CaptionAssist(
        cache=InMemoryCaptionCache(), completion=completion, settings=Settings(LLM_API_KEY=None, _env_file=None)
    )

    assert await assist.assist("1 cup rice", "tiktok") is None
    assert calls == []


@pytest.mark.asyncio
async def test_concurrent_identical_captions_share_one_request():
    calls = []

    async def completion(system, user, model):
        calls.append(model)
        await asyncio.sleep(0)
        return {"title": "Rice bowl", "ingredients": ["1 cup rice"], "directions": ["Cook rice."]}

    cache = InMemoryCaptionCache()
    assist = CaptionAssist(cache=cache, completion=completion, settings=ENABLED)

    first, second = await asyncio.gather(assist.assist("rice caption", "tiktok"), assist.assist("rice caption", "tiktok"))

    assert len(calls) == 1
    assert calls[0] == ENABLED.llm_caption_model
    assert first.title == second.title == "Rice bowl"
    assert len(cache) == 1


@pytest.mark.asyncio
async def test_failed_request_is_evicted_from_cache():
    async def completion(system, user, model):
        raise RuntimeError("upstream down")

    cache = InMemoryCaptionCache()
    assist = CaptionAssist(cache=cache, completion=completion, settings=ENABLED)

    assert await assist.assist("rice caption", "tiktok") is None
    assert len(cache) == 0
