from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class NormalizedItem(BaseModel):
    category: str
    display_text: str
    quantity_value: Optional[Decimal] = None
    quantity_unit: Optional[str] = None
    is_estimated: bool = False
    is_merged: bool = False
    sources: List[str] = Field(default_factory=list)


class SmartListGenerateRequest(BaseModel):
    workspace_id: str = Field(min_length=1)
    week_id: str = Field(min_length=1)
    shopping_list_id: str = Field(min_length=1)


class SmartListGenerateResponse(BaseModel):
    job_id: str
    status: str


class SmartListRunRequest(BaseModel):
    job_id: str = Field(min_length=1)


class SmartListJobOut(BaseModel):
    id: str
    status: str
    shopping_list_name: Optional[str] = None
    smart_list_id: Optional[str] = None
    updated_at: Optional[datetime] = None
    error: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SmartListItemSourceOut(BaseModel):
    source_text: str
    source_recipe_id: Optional[str] = None
    source_count: int = 1
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SmartListItemOut(BaseModel):
    id: int
    category: str
    display_text: str
    quantity_value: Optional[Decimal] = None
    quantity_unit: Optional[str] = None
    is_estimated: bool
    is_merged: bool
    sort_key: int
    sources: List[SmartListItemSourceOut] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class SmartListCategoryOut(BaseModel):
    name: str
    items: List[SmartListItemOut] = Field(default_factory=list)


class SmartListOut(BaseModel):
    id: str
    week_id: str
    version: int
    model: Optional[str] = None
    created_at: Optional[datetime] = None
    categories: List[SmartListCategoryOut] = Field(default_factory=list)


class WeekCreate(BaseModel):
    workspace_id: str = Field(min_length=1)
    day: date


class WeekOut(BaseModel):
    id: str
    workspace_id: str
    week_start: date
    version: int

    model_config = ConfigDict(from_attributes=True)


class MealCreate(BaseModel):
    recipe_id: str = Field(min_length=1)
    day: date


class MealOut(BaseModel):
    id: int
    week_id: str
    recipe_id: str
    date: date

    model_config = ConfigDict(from_attributes=True)
