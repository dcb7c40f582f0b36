from dataclasses import dataclass
from typing import List, Tuple


@dataclass(frozen=True)
class Category:
    key: str
    label: str
    keywords: Tuple[str, ...]


# Order matters: keyword sets overlap and the first match wins.
CATEGORIES: List[Category] = [
    Category(
        "produce",
        "Produce (Vegetables / Fruit / Herbs)",
        (
            "onion", "garlic", "tomato", "carrot", "leek", "potato", "spinach", "broccoli",
            "lettuce", "cabbage", "celery", "courgette", "zucchini", "cucumber", "mushroom",
            "ginger", "herb", "basil", "parsley", "coriander", "cilantro", "thyme", "rosemary",
            "dill", "mint", "lemon", "lime", "apple", "banana", "berry", "orange",
        ),
    ),
    Category(
        "meat",
        "Meat & Fish",
        ("chicken", "beef", "pork", "lamb", "bacon", "sausage", "salmon", "tuna", "prawn", "shrimp", "fish"),
    ),
    Category("dairy", "Dairy & Eggs", ("milk", "cheese", "butter", "yogurt", "cream", "egg")),
    Category("bakery", "Bakery & Bread", ("bread", "bagel", "bun", "roll", "tortilla", "pita")),
    Category(
        "pantry",
        "Pantry (Condiments / Sauces)",
        (
            "soy sauce", "vinegar", "olive oil", "oil", "flour", "sugar", "pasta", "rice", "oat",
            "noodle", "honey", "maple syrup", "sauce", "stock", "broth",
        ),
    ),
    Category("spices", "Spices", ("paprika", "cumin", "chilli", "chili", "pepper", "cinnamon", "salt")),
    Category("frozen", "Frozen", ("frozen",)),
    Category("canned", "Canned / Jarred", ("canned", "jarred", "tin", "tinned", "chickpeas", "beans")),
    Category("other", "Other", ()),
]

DEFAULT_CATEGORY = "other"


def categorize(name: str) -> str:
    lower = (name or "").lower()
    for category in CATEGORIES:
        if any(keyword in lower for keyword in category.keywords):
            return category.key
    return DEFAULT_CATEGORY
