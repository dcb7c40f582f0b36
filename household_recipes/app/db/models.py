from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from household_recipes.app.db.base import Base


class Recipe(Base):
    __tablename__ = "recipes"

    id = Column(String, primary_key=True, index=True)
    workspace_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text)
    image_url = Column(String)
    source_url = Column(String)
    source_name = Column(String)
    prep_time_minutes = Column(Integer)
    cook_time_minutes = Column(Integer)
    total_time_minutes = Column(Integer)
    servings = Column(String)
    yields = Column(String)
    directions = Column(Text)
    is_draft = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    ingredient_lines = relationship(
        "IngredientLine",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="IngredientLine.position",
    )
    imports = relationship("RecipeImport", back_populates="recipe")


class IngredientLine(Base):
    __tablename__ = "ingredient_lines"
    __table_args__ = (UniqueConstraint("recipe_id", "position", name="uq_ingredient_line_position"),)

    id = Column(Integer, primary_key=True)
    recipe_id = Column(String, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    text = Column(Text, nullable=False)

    recipe = relationship("Recipe", back_populates="ingredient_lines")


class RecipeImport(Base):
    __tablename__ = "recipe_imports"

    id = Column(String, primary_key=True, index=True)
    workspace_id = Column(String, nullable=False, index=True)
    source_url = Column(String, nullable=False)
    status = Column(String, nullable=False, default="queued")
    error = Column(Text)
    recipe_id = Column(String, ForeignKey("recipes.id", ondelete="SET NULL"), nullable=True)
    raw_payload = Column(JSON)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    recipe = relationship("Recipe", back_populates="imports")


class PlanWeek(Base):
    __tablename__ = "plan_weeks"
    __table_args__ = (UniqueConstraint("workspace_id", "week_start", name="uq_plan_week_start"),)

    id = Column(String, primary_key=True, index=True)
    workspace_id = Column(String, nullable=False, index=True)
    week_start = Column(Date, nullable=False)
    version = Column(Integer, nullable=False, default=0)

    items = relationship(
        "MealPlanItem",
        back_populates="week",
        cascade="all, delete-orphan",
        order_by="MealPlanItem.date",
    )


class MealPlanItem(Base):
    __tablename__ = "meal_plan_items"

    id = Column(Integer, primary_key=True)
    week_id = Column(String, ForeignKey("plan_weeks.id", ondelete="CASCADE"), nullable=False, index=True)
    recipe_id = Column(String, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    week = relationship("PlanWeek", back_populates="items")
    recipe = relationship("Recipe")


class SmartListJob(Base):
    __tablename__ = "smart_list_jobs"

    id = Column(String, primary_key=True, index=True)
    workspace_id = Column(String, nullable=False, index=True)
    week_id = Column(String, ForeignKey("plan_weeks.id", ondelete="CASCADE"), nullable=False)
    shopping_list_id = Column(String, nullable=False)
    shopping_list_name = Column(String)
    status = Column(String, nullable=False, default="QUEUED")
    started_at = Column(DateTime)
    finished_at = Column(DateTime)
    smart_list_id = Column(String, ForeignKey("smart_lists.id", ondelete="SET NULL"), nullable=True)
    error = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (Index("ix_smart_list_jobs_workspace_updated", "workspace_id", "updated_at"),)


class SmartList(Base):
    __tablename__ = "smart_lists"
    __table_args__ = (UniqueConstraint("workspace_id", "week_id", "version", name="uq_smart_list_week_version"),)

    id = Column(String, primary_key=True, index=True)
    workspace_id = Column(String, nullable=False, index=True)
    week_id = Column(String, ForeignKey("plan_weeks.id", ondelete="CASCADE"), nullable=False)
    version = Column(Integer, nullable=False)
    model = Column(String)
    created_at = Column(DateTime, default=datetime.utcnow)

    items = relationship(
        "SmartListItem",
        back_populates="smart_list",
        cascade="all, delete-orphan",
        order_by="SmartListItem.sort_key",
    )


class SmartListItem(Base):
    __tablename__ = "smart_list_items"

    id = Column(Integer, primary_key=True)
    smart_list_id = Column(String, ForeignKey("smart_lists.id", ondelete="CASCADE"), nullable=False, index=True)
    category = Column(String, nullable=False)
    display_text = Column(String, nullable=False)
    quantity_value = Column(Numeric(10, 4))
    quantity_unit = Column(String)
    is_estimated = Column(Boolean, nullable=False, default=False)
    is_merged = Column(Boolean, nullable=False, default=False)
    sort_key = Column(Integer, nullable=False)

    smart_list = relationship("SmartList", back_populates="items")
    sources = relationship(
        "SmartListItemSource",
        back_populates="item",
        cascade="all, delete-orphan",
        order_by="SmartListItemSource.id",
    )


class SmartListItemSource(Base):
    __tablename__ = "smart_list_item_sources"

    id = Column(Integer, primary_key=True)
    item_id = Column(Integer, ForeignKey("smart_list_items.id", ondelete="CASCADE"), nullable=False, index=True)
    source_text = Column(Text, nullable=False)
    source_recipe_id = Column(String, ForeignKey("recipes.id", ondelete="SET NULL"), nullable=True)
    source_count = Column(Integer, nullable=False, default=1)
    notes = Column(String)

    item = relationship("SmartListItem", back_populates="sources")
