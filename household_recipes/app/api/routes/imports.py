from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from household_recipes.app.api.deps import get_db_session
from household_recipes.app.schemas.recipe_import import ImportCreate, ImportCreated, ImportRunRequest, ImportStatusOut
from household_recipes.app.services import queue_service, recipe_import_service
from household_recipes.app.services.url_parsing.html_fetcher import UnsafeUrlError

router = APIRouter(prefix="/imports", tags=["imports"])


@router.post("", response_model=ImportCreated, status_code=status.HTTP_201_CREATED)
def create_import(payload: ImportCreate, db: Session = Depends(get_db_session)):
    try:
        job = recipe_import_service.create_import(db, payload.workspace_id, payload.url)
    except UnsafeUrlError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    queue_service.fire_job(queue_service.JOB_RECIPE_IMPORT, job.id, {"import_id": job.id})
    return ImportCreated(import_id=job.id, recipe_id=job.recipe_id, status=job.status)


@router.post("/run")
async def run_import(payload: ImportRunRequest, db: Session = Depends(get_db_session)):
    try:
        await recipe_import_service.run_import(db, payload.import_id)
    except recipe_import_service.ImportNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except Exception as exc:  # noqa: BLE001
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": recipe_import_service.import_error_message(exc)},
        )
    return {"ok": True}


@router.get("/{import_id}", response_model=ImportStatusOut)
def get_import_status(import_id: str, db: Session = Depends(get_db_session)):
    job = recipe_import_service.get_import(db, import_id)
    if job is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Import not found")
    return ImportStatusOut(import_id=job.id, status=job.status, error=job.error, recipe_id=job.recipe_id)
