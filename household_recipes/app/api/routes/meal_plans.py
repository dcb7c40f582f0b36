from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from household_recipes.app.api.deps import get_db_session
from household_recipes.app.schemas.smart_list import MealCreate, MealOut, WeekCreate, WeekOut
from household_recipes.app.services import meal_plan_service

router = APIRouter(prefix="/weeks", tags=["meal_plans"])


def _get_week_or_404(db: Session, week_id: str):
    week = meal_plan_service.get_week(db, week_id)
    if week is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Week not found")
    return week


@router.post("", response_model=WeekOut)
def get_or_create_week(payload: WeekCreate, db: Session = Depends(get_db_session)):
    return meal_plan_service.get_or_create_week(db, payload.workspace_id, payload.day)


@router.post("/{week_id}/meals", response_model=MealOut, status_code=status.HTTP_201_CREATED)
def add_meal(week_id: str, payload: MealCreate, db: Session = Depends(get_db_session)):
    week = _get_week_or_404(db, week_id)
    try:
        return meal_plan_service.add_meal(db, week, payload.recipe_id, payload.day)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except LookupError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.delete("/{week_id}/meals/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_meal(week_id: str, item_id: int, db: Session = Depends(get_db_session)):
    week = _get_week_or_404(db, week_id)
    if not meal_plan_service.remove_meal(db, week, item_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Meal not found")
