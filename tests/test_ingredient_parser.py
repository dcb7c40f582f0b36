from decimal import Decimal

import pytest

from household_recipes.app.services.ingredient_parser import normalize_name, parse_ingredient_line, singularize
from household_recipes.app.services.quantity_parser import (
    format_quantity,
    parse_quantity_display,
    split_leading_quantity,
)
from household_recipes.app.services.shopping_view import format_display


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2", Decimal("2")),
        ("1.5", Decimal("1.5")),
        ("1/2", Decimal("0.5")),
        ("1 1/2", Decimal("1.5")),
        ("1/0", None),
        ("0/4", None),
        ("abc", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_quantity_display(raw, expected):
    assert parse_quantity_display(raw) == expected


def test_split_leading_quantity_keeps_remainder():
    assert split_leading_quantity("1 1/2 cups flour") == (Decimal("1.5"), "cups flour")
    assert split_leading_quantity("pinch of salt") == (None, "pinch of salt")


@pytest.mark.parametrize(
    "value, expected",
    [
        (Decimal("200"), "200"),
        (Decimal("2.0"), "2"),
        (Decimal("1.5"), "1.5"),
        (Decimal("0.25"), "0.3"),
        (Decimal("0.96"), "1"),
        (Decimal("127.20"), "127.2"),
    ],
)
def test_format_quantity(value, expected):
    assert format_quantity(value) == expected


def test_parses_quantity_unit_and_name():
    parsed = parse_ingredient_line("200 g pasta")

    assert parsed.quantity == Decimal("200")
    assert parsed.unit == "g"
    assert parsed.name == "pasta"
    assert parsed.notes is None


def test_unit_aliases_and_leading_of():
    parsed = parse_ingredient_line("3 Tablespoons of honey")

    assert parsed.quantity == Decimal("3")
    assert parsed.unit == "tbsp"
    assert parsed.name == "honey"

    assert parse_ingredient_line("2 tbsp. soy sauce").unit == "tbsp"


def test_notes_from_parentheses_and_phrases():
    parsed = parse_ingredient_line("1 1/2 cups flour (sifted)")
    assert parsed.quantity == Decimal("1.5")
    assert parsed.unit == "cup"
    assert parsed.name == "flour"
    assert parsed.notes == "sifted"

    assert parse_ingredient_line("Salt to taste").notes == "to taste"
    assert parse_ingredient_line("Parsley, optional").notes == "optional"
    assert parse_ingredient_line("Parsley, optional").name == "parsley"


def test_countable_items_get_pieces_unit():
    parsed = parse_ingredient_line("2 tomatoes")

    assert parsed.name == "tomato"
    assert parsed.unit == "pcs"
    assert parse_ingredient_line("2 large eggs").unit == "pcs"
    assert parse_ingredient_line("tomatoes").unit is None


def test_line_without_quantity_keeps_name():
    parsed = parse_ingredient_line("  Fresh basil leaves  ")

    assert parsed.raw == "Fresh basil leaves"
    assert parsed.quantity is None
    assert parsed.unit is None
    assert parsed.name == "fresh basil leave"


def test_unknown_unit_word_stays_in_name():
    parsed = parse_ingredient_line("1 can chickpeas")

    assert parsed.unit is None
    assert parsed.name == "can chickpea"


def test_singularize_and_normalize():
    assert singularize("berries") == "berry"
    assert singularize("potatoes") == "potato"
    assert singularize("glass") == "glass"
    assert normalize_name("Red  Onions.") == "red onion"
    assert normalize_name("All-purpose flour, sifted") == "all-purpose flour sifted"
    assert parse_ingredient_line("2 cups all-purpose flour").name == "all-purpose flour"


@pytest.mark.parametrize(
    "line",
    [
        "200 g pasta",
        "1 1/2 cups flour (sifted)",
        "1/3 cup sugar",
        "1.25 cup oats",
        "3 Tablespoons of honey",
        "2 large eggs",
        "0.75 l milk",
    ],
)
def test_display_text_reparses_to_same_quantity(line):
    parsed = parse_ingredient_line(line)
    display = format_display(parsed.name, parsed.quantity, parsed.unit, parsed.notes)

    reparsed = parse_ingredient_line(display)

    assert abs(reparsed.quantity - parsed.quantity) <= Decimal("0.05")
    assert reparsed.unit == parsed.unit
    assert reparsed.name == parsed.name
    assert reparsed.notes == parsed.notes


@pytest.mark.parametrize(
    "line",
    ["1 1/2 cups flour (sifted)", "Salt to taste", "2 tomatoes", "Parsley, optional", "1 can chickpeas", ""],
)
def test_parsing_is_repeatable(line):
    assert parse_ingredient_line(line) == parse_ingredient_line(line)
