"""Metric view conversions for parsed ingredients.

Only unambiguous conversions happen: a spoon or cup of something that is neither a
known liquid nor in the density table keeps its original unit.
"""

from decimal import Decimal
from typing import Optional, Tuple

from household_recipes.app.schemas.shopping import ParsedIngredient

VOLUME_TO_ML = {
    "cup": Decimal("240"),
    "tbsp": Decimal("15"),
    "tsp": Decimal("5"),
}

LIQUID_KEYWORDS = ("milk", "water", "oil", "stock", "broth")

# grams per millilitre
DRY_DENSITY = (
    ("flour", Decimal("0.53")),
    ("sugar", Decimal("0.85")),
    ("rice", Decimal("0.85")),
    ("oats", Decimal("0.36")),
)

THOUSAND = Decimal("1000")


def _density_for(name: str) -> Optional[Decimal]:
    for keyword, density in DRY_DENSITY:
        if keyword in name:
            return density
    return None


def _converted(item: ParsedIngredient, quantity: Decimal, unit: str) -> ParsedIngredient:
    return item.model_copy(update={"quantity": quantity, "unit": unit})


def metric_quantity(quantity: Decimal, unit: str, name: str) -> Tuple[Decimal, str]:
    if unit == "kg":
        return quantity * THOUSAND, "g"
    if unit == "l":
        return quantity * THOUSAND, "ml"

    lower_name = name.lower()
    if unit in VOLUME_TO_ML:
        ml = quantity * VOLUME_TO_ML[unit]
        if any(keyword in lower_name for keyword in LIQUID_KEYWORDS):
            return ml, "ml"
        density = _density_for(lower_name)
        if density is not None:
            return ml * density, "g"
        return quantity, unit

    if unit == "ml":
        density = _density_for(lower_name)
        if density is not None:
            return quantity * density, "g"
    return quantity, unit


def convert_to_metric(item: ParsedIngredient) -> ParsedIngredient:
    if item.quantity is None or not item.unit:
        return item
    quantity, unit = metric_quantity(item.quantity, item.unit, item.name)
    if unit == item.unit and quantity == item.quantity:
        return item
    return _converted(item, quantity, unit)
