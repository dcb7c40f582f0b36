"""Generate a normalized, de-duplicated shopping list for a planned week.

The week's ingredient lines are first aggregated locally, then handed to an
OpenAI-compatible model that merges synonyms and assigns grocery categories.
Everything the model returns is validated against the submitted lines before it
is stored.
"""

import json
import logging
import re
import uuid
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from household_recipes.app.core.config import get_settings
from household_recipes.app.db import models
from household_recipes.app.schemas.smart_list import NormalizedItem
from household_recipes.app.services import llm_client, meal_plan_service
from household_recipes.app.services.shopping_view import build_aggregated_source_view

logger = logging.getLogger(__name__)

CompletionFn = Callable[..., Awaitable[Dict[str, Any]]]

SMART_LIST_CATEGORIES = [
    "Fresh Produce (Fruit, Veg, Fresh Herbs)",
    "Meat & Seafood",
    "Dairy, Eggs, Cheese & Fridge",
    "Dry Herbs & Spices",
    "Condiments & Sauces",
    "Pasta & Grains",
    "Oils & Vinegars",
    "Flours, Bakery & Sugars",
    "Pantry (Biscuits, tins, other)",
    "Frozen",
    "Other",
]
FALLBACK_CATEGORY = "Other"
DISPLAY_TEXT_MAX_CHARS = 140

TAG_RE = re.compile(r"<[^>]*>")

SYSTEM_PROMPT = (
    "You are a shopping list normalizer and aggregator.\n"
    "Return ONLY strict JSON. No prose.\n"
    "\n"
    "Workflow:\n"
    "1) Parse every provided source line into candidate items without changing quantities.\n"
    "2) Canonicalize names: singular form, drop preparation words that do not change what is bought "
    "(chopped, crushed, freshly).\n"
    "3) Split combined lines such as \"salt and pepper\" into separate items.\n"
    "4) Merge across the whole list, ignoring categories; assign categories only after merging.\n"
    "5) Check arithmetic, units and duplicates before answering.\n"
    "\n"
    "Rules:\n"
    "- Never invent ingredients or quantities. Use only the provided source lines.\n"
    "- Convert units only when standard and unambiguous. When unsure keep the original unit and "
    "set isEstimated=true.\n"
    "- Every merged item must list all of its source lines, verbatim, in mergedFrom.\n"
    "- Do not use ml for solids or g for liquids. Round fractional pieces up and set isEstimated=true.\n"
    "- \"to taste\" or \"optional\" lines become quantity 1 with isEstimated=true.\n"
    "\n"
    "Each item has: name, displayText, quantityValue, quantityUnit, isEstimated, isMerged, "
    "category (exactly one of the provided categories), mergedFrom.\n"
    "Return JSON with keys: categories (array of {name, items}) and notes (array)."
)


class SmartListGenerationError(RuntimeError):
    pass


def ordinal(day: int) -> str:
    if 11 <= day % 100 <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


def format_week_title(week_start: date) -> str:
    """'Shopping List w/c 5th Jan'"""
    return f"Shopping List w/c {ordinal(week_start.day)} {week_start.strftime('%b')}"


def normalize_category(name: Any) -> str:
    if not isinstance(name, str):
        return FALLBACK_CATEGORY
    wanted = name.strip().lower()
    for category in SMART_LIST_CATEGORIES:
        if category.lower() == wanted:
            return category
    return FALLBACK_CATEGORY


def sanitize_text(value: str, max_length: int = DISPLAY_TEXT_MAX_CHARS) -> str:
    stripped = " ".join(TAG_RE.sub("", value).split())
    if len(stripped) <= max_length:
        return stripped
    return stripped[: max_length - 1] + "…"


def _quantity_value(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        return None
    return result if result.is_finite() else None


def _display_text(item: Dict[str, Any]) -> str:
    if isinstance(item.get("displayText"), str):
        return item["displayText"]
    name = item.get("name")
    if not isinstance(name, str):
        return ""
    quantity = item.get("quantityValue")
    unit = item.get("quantityUnit")
    prefix = "" if quantity is None or isinstance(quantity, bool) else str(quantity)
    unit_label = f" {unit}" if isinstance(unit, str) and unit else ""
    return f"{prefix}{unit_label} {name}".strip()


def validate_normalized_items(data: Any, allowed_sources: Dict[str, Optional[str]]) -> List[NormalizedItem]:
    """Keep only model items whose provenance points at lines that were actually submitted."""
    if not isinstance(data, dict) or not isinstance(data.get("categories"), list):
        raise SmartListGenerationError("Invalid model response")

    items: List[NormalizedItem] = []
    for category in data["categories"]:
        if not isinstance(category, dict) or not isinstance(category.get("items"), list):
            continue
        category_name = normalize_category(category.get("name"))
        for raw_item in category["items"]:
            if not isinstance(raw_item, dict):
                continue
            sources_raw = raw_item.get("mergedFrom")
            if not isinstance(sources_raw, list):
                sources_raw = raw_item.get("sources") if isinstance(raw_item.get("sources"), list) else []
            sources = []
            for source in sources_raw:
                if isinstance(source, str) and source.strip() in allowed_sources and source.strip() not in sources:
                    sources.append(source.strip())
            if not sources:
                continue
            display_text = sanitize_text(_display_text(raw_item))
            if not display_text:
                continue
            unit = raw_item.get("quantityUnit")
            items.append(
                NormalizedItem(
                    category=category_name,
                    display_text=display_text,
                    quantity_value=_quantity_value(raw_item.get("quantityValue")),
                    quantity_unit=unit if isinstance(unit, str) and unit else None,
                    is_estimated=bool(raw_item.get("isEstimated")),
                    is_merged=bool(raw_item.get("isMerged")),
                    sources=sources,
                )
            )
    # stable: model order is kept within a category
    items.sort(key=lambda item: SMART_LIST_CATEGORIES.index(item.category))
    return items


def get_smart_list(
    db: Session, smart_list_id: str, workspace_id: Optional[str] = None
) -> Optional[models.SmartList]:
    stmt = (
        select(models.SmartList)
        .where(models.SmartList.id == smart_list_id)
        .options(selectinload(models.SmartList.items).selectinload(models.SmartListItem.sources))
    )
    smart_list = db.scalars(stmt).first()
    if smart_list is None or (workspace_id is not None and smart_list.workspace_id != workspace_id):
        return None
    return smart_list


def _find_for_version(db: Session, workspace_id: str, week_id: str, version: int) -> Optional[models.SmartList]:
    stmt = select(models.SmartList).where(
        models.SmartList.workspace_id == workspace_id,
        models.SmartList.week_id == week_id,
        models.SmartList.version == version,
    )
    return db.scalars(stmt).first()


def _persist(
    db: Session,
    week: models.PlanWeek,
    version: int,
    model_name: str,
    items: List[NormalizedItem],
    allowed_sources: Dict[str, Optional[str]],
) -> models.SmartList:
    smart_list = models.SmartList(
        id=str(uuid.uuid4()),
        workspace_id=week.workspace_id,
        week_id=week.id,
        version=version,
        model=model_name,
    )
    for sort_key, item in enumerate(items):
        row = models.SmartListItem(
            category=item.category,
            display_text=item.display_text,
            quantity_value=item.quantity_value,
            quantity_unit=item.quantity_unit,
            is_estimated=item.is_estimated,
            is_merged=item.is_merged,
            sort_key=sort_key,
        )
        for source in item.sources:
            row.sources.append(models.SmartListItemSource(source_text=source, source_recipe_id=allowed_sources.get(source)))
        smart_list.items.append(row)
    db.add(smart_list)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = _find_for_version(db, week.workspace_id, week.id, version)
        if existing is not None:
            logger.info("Smart list for week %s v%s was stored concurrently; reusing %s", week.id, version, existing.id)
            return existing
        raise
    db.refresh(smart_list)
    return smart_list


async def generate_smart_list(
    db: Session, workspace_id: str, week_id: str, completion: Optional[CompletionFn] = None
) -> models.SmartList:
    week = meal_plan_service.get_week(db, week_id, workspace_id=workspace_id)
    if week is None:
        raise meal_plan_service.WeekNotFoundError(f"Week {week_id} not found")
    version = week.version

    existing = _find_for_version(db, workspace_id, week.id, version)
    if existing is not None:
        logger.info("Smart list cache hit for week %s v%s: %s", week.id, version, existing.id)
        return existing

    settings = get_settings()
    if completion is None:
        if not settings.llm_api_key:
            raise SmartListGenerationError("Missing LLM API key")
        completion = llm_client.call_json_completion

    sections = build_aggregated_source_view(meal_plan_service.get_week_list(db, week))
    flattened = [
        {
            "categoryHint": section.label,
            "name": item.name,
            "quantity": float(item.quantity) if item.quantity is not None else None,
            "unit": item.unit,
            "notes": item.notes,
            "display": item.display_text,
            "sources": [{"recipeId": line.recipe_id, "text": line.text} for line in item.source_lines],
        }
        for section in sections
        for item in section.items
    ]
    if not flattened:
        raise SmartListGenerationError("No ingredients to normalize")

    allowed_sources: Dict[str, Optional[str]] = {}
    for entry in flattened:
        for source in entry["sources"]:
            allowed_sources.setdefault(source["text"], source["recipeId"])

    prompt_payload = {
        "weekStart": week.week_start.isoformat(),
        "categories": SMART_LIST_CATEGORIES,
        "items": flattened,
    }
    user_prompt = (
        "Use the provided items with provenance. mergedFrom entries must be copied from the sources' text.\n\n"
        f"Input:\n{json.dumps(prompt_payload)}"
    )
    model_name = settings.llm_smart_list_model
    logger.info("Normalizing %d items for week %s v%s with %s", len(flattened), week.id, version, model_name)
    data = await completion(SYSTEM_PROMPT, user_prompt, model_name, max_tokens=4000)

    items = validate_normalized_items(data, allowed_sources)
    if not items:
        raise SmartListGenerationError("Model returned no usable items")

    smart_list = _persist(db, week, version, model_name, items, allowed_sources)
    logger.info("Stored smart list %s with %d items", smart_list.id, len(items))
    return smart_list
