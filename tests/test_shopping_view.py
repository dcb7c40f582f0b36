from decimal import Decimal
from itertools import permutations

import pytest

from household_recipes.app.schemas.shopping import WeekList, WeekRecipe
from household_recipes.app.services.shopping_view import (
    build_aggregated_source_view,
    build_shopping_view,
    format_display,
)


def _week(*recipes):
    return WeekList(week_id="week-1", recipes=list(recipes))


PASTA = WeekRecipe(
    id="r-pasta",
    title="Tomato Pasta",
    ingredients=["200 g pasta", "2 tomatoes", "1 tbsp olive oil", "Salt to taste"],
)
CURRY = WeekRecipe(
    id="r-curry",
    title="Chickpea Curry",
    ingredients=["1 can chickpeas", "1 onion", "100 g pasta", "2 cups water"],
)


def _section(view, key):
    return next(section for section in view.categories if section.key == key)


def _items_by_name(view):
    return {item.name: item for section in view.categories for item in section.items}


def test_format_display():
    assert format_display("pasta", Decimal("300"), "g", None) == "300 g pasta"
    assert format_display("tomato", Decimal("2"), "pcs", None) == "2 tomato"
    assert format_display("salt", None, None, "to taste") == "salt (to taste)"
    assert format_display("flour", Decimal("1.25"), "cup", "sifted") == "1.3 cup flour (sifted)"


def test_per_recipe_view_groups_by_category_then_recipe():
    view = build_shopping_view(_week(PASTA, CURRY))

    assert [section.key for section in view.categories][0] == "produce"
    produce = _section(view, "produce")
    assert [group.recipe_title for group in produce.recipes] == ["Tomato Pasta", "Chickpea Curry"]
    assert produce.recipes[0].items[0].display_text == "2 tomato"
    assert produce.recipes[1].items[0].display_text == "1 onion"

    pantry = _section(view, "pantry")
    assert [len(group.items) for group in pantry.recipes] == [2, 1]
    assert all(section.items == [] for section in view.categories)


def test_aggregate_sums_matching_lines_across_recipes():
    view = build_shopping_view(_week(PASTA, CURRY), aggregate=True)
    items = _items_by_name(view)

    assert items["pasta"].quantity == Decimal("300")
    assert items["pasta"].display_text == "300 g pasta"
    assert items["pasta"].source_recipe_ids == ["r-pasta", "r-curry"]
    assert items["pasta"].source_lines == []
    assert items["salt"].display_text == "salt (to taste)"
    assert _section(view, "spices").items[0].name == "salt"
    assert all(section.recipes == [] for section in view.categories)


def test_metric_aggregate_converts_before_merging():
    view = build_shopping_view(_week(PASTA, CURRY), aggregate=True, metric=True)
    items = _items_by_name(view)

    assert items["water"].display_text == "480 ml water"
    assert items["olive oil"].display_text == "15 ml olive oil"
    assert view.metric is True


def test_different_units_and_quantity_shapes_stay_separate():
    recipe = WeekRecipe(id="r-1", title="Mixed", ingredients=["1 cup rice", "100 g rice", "salt", "1 tsp salt"])

    view = build_shopping_view(_week(recipe), aggregate=True)
    names = [item.display_text for section in view.categories for item in section.items]

    assert "1 cup rice" in names
    assert "100 g rice" in names
    assert "salt" in names
    assert "1 tsp salt" in names


def test_recipe_planned_twice_counts_twice():
    view = build_shopping_view(_week(PASTA, PASTA), aggregate=True)
    pasta = _items_by_name(view)["pasta"]

    assert pasta.quantity == Decimal("400")
    assert pasta.source_recipe_ids == ["r-pasta"]


def test_source_view_keeps_every_contributing_line():
    sections = build_aggregated_source_view(_week(PASTA, CURRY))
    pantry = next(section for section in sections if section.key == "pantry")
    pasta = next(item for item in pantry.items if item.name == "pasta")

    assert [(line.recipe_id, line.text) for line in pasta.source_lines] == [
        ("r-pasta", "200 g pasta"),
        ("r-curry", "100 g pasta"),
    ]


def test_missing_week_gives_empty_sections():
    view = build_shopping_view(None)

    assert view.week_id == ""
    assert len(view.categories) == 9
    assert all(not section.items and not section.recipes for section in view.categories)


SOUP = WeekRecipe(id="r-soup", title="Onion Soup", ingredients=["1 onion", "1 cup water", "50 g pasta", "Salt to taste"])


def _quantities_by_key(view):
    return {item.merge_key: item.quantity for section in view.categories for item in section.items}


@pytest.mark.parametrize("order", list(permutations([PASTA, CURRY, SOUP])))
def test_aggregate_totals_do_not_depend_on_recipe_order(order):
    expected = _quantities_by_key(build_shopping_view(_week(PASTA, CURRY, SOUP), aggregate=True))

    assert _quantities_by_key(build_shopping_view(_week(*order), aggregate=True)) == expected
    assert expected["pantry|pasta|g|none|q"] == Decimal("350")
    assert expected["produce|onion|pcs|none|q"] == Decimal("2")
