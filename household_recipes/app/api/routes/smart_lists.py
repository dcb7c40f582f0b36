from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from household_recipes.app.api.deps import get_db_session
from household_recipes.app.db import models
from household_recipes.app.schemas.smart_list import (
    SmartListCategoryOut,
    SmartListGenerateRequest,
    SmartListGenerateResponse,
    SmartListItemOut,
    SmartListJobOut,
    SmartListOut,
    SmartListRunRequest,
)
from household_recipes.app.services import meal_plan_service, smart_list_jobs, smart_list_service

router = APIRouter(prefix="/smart-lists", tags=["smart-lists"])


def _to_out(smart_list: models.SmartList) -> SmartListOut:
    grouped: Dict[str, List[SmartListItemOut]] = {}
    for item in sorted(smart_list.items, key=lambda row: row.sort_key):
        grouped.setdefault(item.category, []).append(SmartListItemOut.model_validate(item))
    ordered = [name for name in smart_list_service.SMART_LIST_CATEGORIES if name in grouped]
    ordered += [name for name in grouped if name not in smart_list_service.SMART_LIST_CATEGORIES]
    return SmartListOut(
        id=smart_list.id,
        week_id=smart_list.week_id,
        version=smart_list.version,
        model=smart_list.model,
        created_at=smart_list.created_at,
        categories=[SmartListCategoryOut(name=name, items=grouped[name]) for name in ordered],
    )


@router.post("/generate", response_model=SmartListGenerateResponse, status_code=status.HTTP_202_ACCEPTED)
def generate_smart_list(payload: SmartListGenerateRequest, db: Session = Depends(get_db_session)):
    try:
        job = smart_list_jobs.enqueue_smart_list_job(
            db, payload.workspace_id, payload.week_id, payload.shopping_list_id
        )
    except meal_plan_service.WeekNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    return SmartListGenerateResponse(job_id=job.id, status=job.status)


@router.post("/run")
async def run_smart_list(payload: SmartListRunRequest, db: Session = Depends(get_db_session)):
    try:
        result = await smart_list_jobs.run_smart_list_job(db, payload.job_id)
    except smart_list_jobs.SmartListJobNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if not result.get("ok"):
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": result.get("error")})
    return {"ok": True}


@router.get("/jobs")
def list_jobs(workspace_id: str = Query(..., min_length=1), db: Session = Depends(get_db_session)):
    jobs = smart_list_jobs.list_recent_jobs(db, workspace_id)
    return {"jobs": [SmartListJobOut.model_validate(job).model_dump(mode="json") for job in jobs]}


@router.get("/{smart_list_id}", response_model=SmartListOut)
def get_smart_list(smart_list_id: str, db: Session = Depends(get_db_session)):
    smart_list = smart_list_service.get_smart_list(db, smart_list_id)
    if smart_list is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Smart list not found")
    return _to_out(smart_list)
