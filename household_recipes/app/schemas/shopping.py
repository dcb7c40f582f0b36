from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class ParsedIngredient(BaseModel):
    raw: str
    name: str
    quantity: Optional[Decimal] = None
    unit: Optional[str] = None
    notes: Optional[str] = None


class WeekRecipe(BaseModel):
    id: str
    title: str
    ingredients: List[str] = Field(default_factory=list)


class WeekList(BaseModel):
    week_id: str
    recipes: List[WeekRecipe] = Field(default_factory=list)


class ShoppingItem(BaseModel):
    name: str
    quantity: Optional[Decimal] = None
    unit: Optional[str] = None
    notes: Optional[str] = None
    display_text: str
    raw: str


class RecipeGroup(BaseModel):
    recipe_id: str
    recipe_title: str
    items: List[ShoppingItem] = Field(default_factory=list)


class SourceLine(BaseModel):
    recipe_id: str
    text: str


class AggregatedShoppingItem(BaseModel):
    merge_key: str
    name: str
    quantity: Optional[Decimal] = None
    unit: Optional[str] = None
    notes: Optional[str] = None
    display_text: str
    source_recipe_ids: List[str] = Field(default_factory=list)
    source_lines: List[SourceLine] = Field(default_factory=list)


class CategorySection(BaseModel):
    key: str
    label: str
    recipes: List[RecipeGroup] = Field(default_factory=list)
    items: List[AggregatedShoppingItem] = Field(default_factory=list)


class ShoppingView(BaseModel):
    week_id: str
    aggregate: bool
    metric: bool
    categories: List[CategorySection] = Field(default_factory=list)
