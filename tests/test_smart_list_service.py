import json
from datetime import date
from decimal import Decimal

import pytest

from household_recipes.app.services import meal_plan_service, smart_list_service
from household_recipes.app.services.smart_list_service import (
    SmartListGenerationError,
    format_week_title,
    generate_smart_list,
    get_smart_list,
    normalize_category,
    ordinal,
    sanitize_text,
    validate_normalized_items,
)

ALLOWED = {"200 g pasta": "recipe-tomato-pasta", "100 g pasta": "recipe-chickpea-curry", "1 onion": "recipe-chickpea-curry"}

MODEL_RESPONSE = {
    "categories": [
        {
            "name": "Pasta & Grains",
            "items": [
                {
                    "name": "pasta",
                    "displayText": "300 g pasta",
                    "quantityValue": 300,
                    "quantityUnit": "g",
                    "isMerged": True,
                    "mergedFrom": ["200 g pasta", "100 g pasta"],
                }
            ],
        },
        {
            "name": "fresh produce (fruit, veg, fresh herbs)",
            "items": [{"name": "onion", "quantityValue": 1, "mergedFrom": ["1 onion"]}],
        },
    ],
    "notes": [],
}


class FakeCompletion:
    def __init__(self, response=None):
        self.response = MODEL_RESPONSE if response is None else response
        self.calls = []

    async def __call__(self, system_prompt, user_prompt, model_name, max_tokens=1500):
        self.calls.append({"user": user_prompt, "model": model_name, "max_tokens": max_tokens})
        return self.response


@pytest.mark.parametrize(
    "day, expected",
    [(1, "1st"), (2, "2nd"), (3, "3rd"), (4, "4th"), (11, "11th"), (12, "12th"), (13, "13th"), (21, "21st"), (22, "22nd")],
)
def test_ordinal(day, expected):
    assert ordinal(day) == expected


def test_format_week_title():
    assert format_week_title(date(2026, 1, 5)) == "Shopping List w/c 5th Jan"
    assert format_week_title(date(2026, 3, 23)) == "Shopping List w/c 23rd Mar"


def test_normalize_category_and_sanitize_text():
    assert normalize_category("  meat & seafood ") == "Meat & Seafood"
    assert normalize_category("Snacks") == "Other"
    assert normalize_category(None) == "Other"
    assert sanitize_text("<b>2  eggs</b>\n") == "2 eggs"
    long_text = sanitize_text("x" * 200)
    assert len(long_text) == 140
    assert long_text.endswith("…")


def test_validation_orders_by_category_and_fills_display_text():
    items = validate_normalized_items(MODEL_RESPONSE, ALLOWED)

    assert [item.category for item in items] == ["Fresh Produce (Fruit, Veg, Fresh Herbs)", "Pasta & Grains"]
    assert items[0].display_text == "1 onion"
    assert items[1].quantity_value == Decimal("300")
    assert items[1].is_merged is True
    assert items[1].sources == ["200 g pasta", "100 g pasta"]


def test_validation_drops_items_with_unknown_provenance():
    data = {
        "categories": [
            {
                "name": "Other",
                "items": [
                    {"displayText": "caviar", "mergedFrom": ["1 tin caviar"]},
                    {"displayText": "pasta", "sources": ["200 g pasta", "200 g pasta", "made up"]},
                    {"displayText": "", "mergedFrom": ["1 onion"]},
                    "not an item",
                ],
            },
            "not a category",
        ]
    }

    items = validate_normalized_items(data, ALLOWED)

    assert [(item.display_text, item.sources) for item in items] == [("pasta", ["200 g pasta"])]


def test_validation_rejects_malformed_response():
    with pytest.raises(SmartListGenerationError):
        validate_normalized_items({"items": []}, ALLOWED)
    with pytest.raises(SmartListGenerationError):
        validate_normalized_items(["nope"], ALLOWED)


@pytest.mark.asyncio
async def test_generate_stores_validated_items_with_provenance(db_session, planned_week, workspace_id):
    completion = FakeCompletion()

    smart_list = await generate_smart_list(db_session, workspace_id, planned_week.id, completion=completion)

    assert smart_list.version == planned_week.version
    assert len(completion.calls) == 1
    assert completion.calls[0]["max_tokens"] == 4000
    payload = json.loads(completion.calls[0]["user"].split("Input:\n", 1)[1])
    assert payload["weekStart"] == "2026-01-05"
    assert payload["categories"] == smart_list_service.SMART_LIST_CATEGORIES
    pasta_entry = next(entry for entry in payload["items"] if entry["name"] == "pasta")
    assert [source["text"] for source in pasta_entry["sources"]] == ["200 g pasta", "100 g pasta"]

    stored = get_smart_list(db_session, smart_list.id, workspace_id=workspace_id)
    assert [item.display_text for item in stored.items] == ["1 onion", "300 g pasta"]
    assert [item.sort_key for item in stored.items] == [0, 1]
    pasta_sources = stored.items[1].sources
    assert [(source.source_text, source.source_recipe_id) for source in pasta_sources] == [
        ("200 g pasta", "recipe-tomato-pasta"),
        ("100 g pasta", "recipe-chickpea-curry"),
    ]


@pytest.mark.asyncio
async def test_generate_reuses_list_for_same_week_version(db_session, planned_week, workspace_id, make_recipe):
    completion = FakeCompletion()

    first = await generate_smart_list(db_session, workspace_id, planned_week.id, completion=completion)
    second = await generate_smart_list(db_session, workspace_id, planned_week.id, completion=completion)

    assert second.id == first.id
    assert len(completion.calls) == 1

    soup = make_recipe("Onion Soup", ["3 onions"])
    meal_plan_service.add_meal(db_session, planned_week, soup.id, date(2026, 1, 8))
    third = await generate_smart_list(db_session, workspace_id, planned_week.id, completion=completion)

    assert third.id != first.id
    assert third.version == first.version + 1
    assert len(completion.calls) == 2


@pytest.mark.asyncio
async def test_generate_requires_api_key_without_injected_completion(db_session, planned_week, workspace_id, monkeypatch):
    monkeypatch.setattr(smart_list_service.get_settings(), "llm_api_key", None)

    with pytest.raises(SmartListGenerationError, match="Missing LLM API key"):
        await generate_smart_list(db_session, workspace_id, planned_week.id)


@pytest.mark.asyncio
async def test_generate_fails_for_empty_week(db_session, workspace_id):
    week = meal_plan_service.get_or_create_week(db_session, workspace_id, date(2026, 2, 2))

    with pytest.raises(SmartListGenerationError, match="No ingredients to normalize"):
        await generate_smart_list(db_session, workspace_id, week.id, completion=FakeCompletion())


@pytest.mark.asyncio
async def test_generate_fails_when_nothing_survives_validation(db_session, planned_week, workspace_id):
    completion = FakeCompletion({"categories": [{"name": "Other", "items": [{"displayText": "x", "mergedFrom": ["?"]}]}]})

    with pytest.raises(SmartListGenerationError, match="no usable items"):
        await generate_smart_list(db_session, workspace_id, planned_week.id, completion=completion)


@pytest.mark.asyncio
async def test_generate_rejects_week_from_other_workspace(db_session, planned_week):
    with pytest.raises(meal_plan_service.WeekNotFoundError):
        await generate_smart_list(db_session, "ws-other", planned_week.id, completion=FakeCompletion())
