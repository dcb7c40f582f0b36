import uuid
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from household_recipes.app.db import models
from household_recipes.app.schemas.shopping import WeekList, WeekRecipe


class WeekNotFoundError(LookupError):
    pass


def week_start_for(day: date) -> date:
    """Weeks start on Monday."""
    return day - timedelta(days=day.weekday())


def get_week(db: Session, week_id: str, workspace_id: Optional[str] = None) -> Optional[models.PlanWeek]:
    week = db.get(models.PlanWeek, week_id)
    if week is None or (workspace_id is not None and week.workspace_id != workspace_id):
        return None
    return week


def get_or_create_week(db: Session, workspace_id: str, day: date) -> models.PlanWeek:
    start = week_start_for(day)
    stmt = select(models.PlanWeek).where(
        models.PlanWeek.workspace_id == workspace_id, models.PlanWeek.week_start == start
    )
    week = db.scalars(stmt).first()
    if week:
        return week

    week = models.PlanWeek(id=str(uuid.uuid4()), workspace_id=workspace_id, week_start=start, version=0)
    db.add(week)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        week = db.scalars(stmt).first()
        if week:
            return week
        raise
    db.refresh(week)
    return week


def _bump_version(db: Session, week_id: str) -> None:
    db.execute(
        update(models.PlanWeek)
        .where(models.PlanWeek.id == week_id)
        .values(version=models.PlanWeek.version + 1)
    )


def add_meal(db: Session, week: models.PlanWeek, recipe_id: str, day: date) -> models.MealPlanItem:
    if not week.week_start <= day < week.week_start + timedelta(days=7):
        raise ValueError(f"{day.isoformat()} is outside the week starting {week.week_start.isoformat()}")
    recipe = db.get(models.Recipe, recipe_id)
    if recipe is None or recipe.workspace_id != week.workspace_id:
        raise LookupError(f"Recipe {recipe_id} not found")

    item = models.MealPlanItem(week_id=week.id, recipe_id=recipe_id, date=day)
    db.add(item)
    _bump_version(db, week.id)
    db.commit()
    db.refresh(item)
    db.refresh(week)
    return item


def remove_meal(db: Session, week: models.PlanWeek, item_id: int) -> bool:
    item = db.get(models.MealPlanItem, item_id)
    if item is None or item.week_id != week.id:
        return False
    db.delete(item)
    _bump_version(db, week.id)
    db.commit()
    db.refresh(week)
    return True


def week_recipes(db: Session, week: models.PlanWeek) -> List[models.Recipe]:
    """Recipes planned for the week in date order. A recipe planned twice appears twice."""
    stmt = (
        select(models.MealPlanItem)
        .where(models.MealPlanItem.week_id == week.id)
        .order_by(models.MealPlanItem.date.asc(), models.MealPlanItem.id.asc())
    )
    return [item.recipe for item in db.scalars(stmt) if item.recipe is not None]


def get_week_list(db: Session, week: models.PlanWeek) -> WeekList:
    return WeekList(
        week_id=week.id,
        recipes=[
            WeekRecipe(
                id=recipe.id,
                title=recipe.title,
                ingredients=[line.text for line in recipe.ingredient_lines],
            )
            for recipe in week_recipes(db, week)
        ],
    )
