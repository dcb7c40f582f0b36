from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from household_recipes.app.api.deps import get_db_session
from household_recipes.app.schemas.shopping import ShoppingView
from household_recipes.app.services import meal_plan_service
from household_recipes.app.services.shopping_view import build_shopping_view

router = APIRouter(tags=["shopping"])


@router.get("/shopping-view", response_model=ShoppingView)
def shopping_view(
    workspace_id: str = Query(..., min_length=1),
    week_id: str = Query(..., min_length=1),
    aggregate: bool = False,
    metric: bool = False,
    db: Session = Depends(get_db_session),
):
    week = meal_plan_service.get_week(db, week_id, workspace_id=workspace_id)
    if week is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Week not found")
    return build_shopping_view(meal_plan_service.get_week_list(db, week), aggregate=aggregate, metric=metric)
