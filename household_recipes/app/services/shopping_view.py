"""Build the week's shopping view from recipe ingredient lines.

Two shapes are produced: a per-recipe view, grouped by category and then by the
recipe that contributed each line, and an aggregated view where lines sharing a
merge key are combined into one item.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from household_recipes.app.schemas.shopping import (
    AggregatedShoppingItem,
    CategorySection,
    ParsedIngredient,
    RecipeGroup,
    ShoppingItem,
    ShoppingView,
    SourceLine,
    WeekList,
)
from household_recipes.app.services.categorizer import CATEGORIES, categorize
from household_recipes.app.services.ingredient_parser import parse_ingredient_line
from household_recipes.app.services.quantity_parser import format_quantity
from household_recipes.app.services.unit_conversion import convert_to_metric

logger = logging.getLogger(__name__)


def format_display(name: str, quantity: Optional[Decimal], unit: Optional[str], notes: Optional[str]) -> str:
    if quantity is None:
        return f"{name} ({notes})" if notes else name
    unit_label = f" {unit}" if unit and unit != "pcs" else ""
    base = f"{format_quantity(quantity)}{unit_label} {name}".strip()
    return f"{base} ({notes})" if notes else base


def merge_key(category: str, item: ParsedIngredient) -> str:
    return "|".join(
        [
            category,
            item.name,
            item.unit or "none",
            item.notes or "none",
            "noq" if item.quantity is None else "q",
        ]
    )


def _empty_sections() -> Dict[str, CategorySection]:
    return {category.key: CategorySection(key=category.key, label=category.label) for category in CATEGORIES}


def _parse(line: str, metric: bool) -> ParsedIngredient:
    parsed = parse_ingredient_line(line)
    return convert_to_metric(parsed) if metric else parsed


def _per_recipe_view(week: WeekList, metric: bool) -> Dict[str, CategorySection]:
    sections = _empty_sections()
    groups: Dict[Tuple[str, str], RecipeGroup] = {}
    for recipe in week.recipes:
        for line in recipe.ingredients:
            item = _parse(line, metric)
            category = categorize(item.name)
            group = groups.get((category, recipe.id))
            if group is None:
                group = RecipeGroup(recipe_id=recipe.id, recipe_title=recipe.title)
                groups[(category, recipe.id)] = group
                sections[category].recipes.append(group)
            group.items.append(
                ShoppingItem(
                    name=item.name,
                    quantity=item.quantity,
                    unit=item.unit,
                    notes=item.notes,
                    display_text=format_display(item.name, item.quantity, item.unit, item.notes),
                    raw=item.raw,
                )
            )
    return sections


def _merge(existing: AggregatedShoppingItem, item: ParsedIngredient, recipe_id: str, keep_sources: bool) -> None:
    if existing.unit != item.unit:
        return
    if existing.quantity is not None and item.quantity is not None:
        existing.quantity = existing.quantity + item.quantity
    # a quantity-less entry stays quantity-less; the first occurrence decides the shape
    if recipe_id not in existing.source_recipe_ids:
        existing.source_recipe_ids.append(recipe_id)
    if keep_sources:
        existing.source_lines.append(SourceLine(recipe_id=recipe_id, text=item.raw))
    existing.display_text = format_display(existing.name, existing.quantity, existing.unit, existing.notes)


def aggregate_week(week: WeekList, metric: bool = False, keep_sources: bool = True) -> Dict[str, CategorySection]:
    sections = _empty_sections()
    items: Dict[str, AggregatedShoppingItem] = {}
    for recipe in week.recipes:
        for line in recipe.ingredients:
            item = _parse(line, metric)
            category = categorize(item.name)
            key = merge_key(category, item)
            existing = items.get(key)
            if existing is not None:
                _merge(existing, item, recipe.id, keep_sources)
                continue
            aggregated = AggregatedShoppingItem(
                merge_key=key,
                name=item.name,
                quantity=item.quantity,
                unit=item.unit,
                notes=item.notes,
                display_text=format_display(item.name, item.quantity, item.unit, item.notes),
                source_recipe_ids=[recipe.id],
                source_lines=[SourceLine(recipe_id=recipe.id, text=item.raw)] if keep_sources else [],
            )
            items[key] = aggregated
            sections[category].items.append(aggregated)
    return sections


def build_shopping_view(week: Optional[WeekList], aggregate: bool = False, metric: bool = False) -> ShoppingView:
    if week is None:
        return ShoppingView(week_id="", aggregate=aggregate, metric=metric, categories=list(_empty_sections().values()))
    if aggregate:
        sections = aggregate_week(week, metric=metric, keep_sources=False)
    else:
        sections = _per_recipe_view(week, metric)
    logger.debug("Built shopping view for week %s (aggregate=%s, metric=%s)", week.week_id, aggregate, metric)
    return ShoppingView(week_id=week.week_id, aggregate=aggregate, metric=metric, categories=list(sections.values()))


def build_aggregated_source_view(week: Optional[WeekList]) -> List[CategorySection]:
    """Aggregated view in raw units that keeps every contributing line for provenance."""
    if week is None:
        return list(_empty_sections().values())
    return list(aggregate_week(week, metric=False, keep_sources=True).values())
