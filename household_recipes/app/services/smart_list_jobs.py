import logging
import uuid
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from household_recipes.app.core.config import get_settings
from household_recipes.app.db import models
from household_recipes.app.services import meal_plan_service, queue_service, smart_list_service

logger = logging.getLogger(__name__)

Generator = Callable[[Session, str, str], Awaitable[models.SmartList]]

ERROR_MAX_CHARS = 500


class SmartListJobStatus(str, Enum):
    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class SmartListJobNotFoundError(LookupError):
    pass


def truncate_error(message: str, limit: int = ERROR_MAX_CHARS) -> str:
    if len(message) <= limit:
        return message
    return message[: limit - 1] + "…"


def create_job(db: Session, workspace_id: str, week_id: str, shopping_list_id: str) -> models.SmartListJob:
    week = meal_plan_service.get_week(db, week_id, workspace_id=workspace_id)
    if week is None:
        raise meal_plan_service.WeekNotFoundError(f"Week {week_id} not found")
    job = models.SmartListJob(
        id=str(uuid.uuid4()),
        workspace_id=workspace_id,
        week_id=week.id,
        shopping_list_id=shopping_list_id,
        shopping_list_name=smart_list_service.format_week_title(week.week_start),
        status=SmartListJobStatus.QUEUED.value,
    )
    db.add(job)
    db.commit()
    db.refresh(job)
    return job


def enqueue_smart_list_job(db: Session, workspace_id: str, week_id: str, shopping_list_id: str) -> models.SmartListJob:
    """Store a queued job and fire its trigger. A failed trigger leaves the job queued."""
    job = create_job(db, workspace_id, week_id, shopping_list_id)
    queue_service.fire_job(queue_service.JOB_SMART_LIST_RUN, job.id, {"job_id": job.id})
    return job


def get_job(db: Session, job_id: str) -> Optional[models.SmartListJob]:
    return db.get(models.SmartListJob, job_id)


def list_recent_jobs(db: Session, workspace_id: str, limit: Optional[int] = None) -> List[models.SmartListJob]:
    stmt = (
        select(models.SmartListJob)
        .where(models.SmartListJob.workspace_id == workspace_id)
        .order_by(models.SmartListJob.updated_at.desc(), models.SmartListJob.created_at.desc())
        .limit(limit or get_settings().smart_list_jobs_page_size)
    )
    return list(db.scalars(stmt))


def _is_in_progress(job: models.SmartListJob, now: datetime) -> bool:
    if job.status != SmartListJobStatus.RUNNING.value or job.started_at is None:
        return False
    timeout = timedelta(minutes=get_settings().smart_list_running_timeout_minutes)
    return now - job.started_at < timeout


def mark_running(db: Session, job: models.SmartListJob) -> None:
    job.status = SmartListJobStatus.RUNNING.value
    job.error = None
    job.started_at = datetime.utcnow()
    job.finished_at = None
    db.commit()
    db.refresh(job)


def mark_succeeded(db: Session, job: models.SmartListJob, smart_list_id: str) -> None:
    job.status = SmartListJobStatus.SUCCEEDED.value
    job.smart_list_id = smart_list_id
    job.finished_at = datetime.utcnow()
    db.commit()
    db.refresh(job)


def mark_failed(db: Session, job: models.SmartListJob, message: str) -> None:
    job.status = SmartListJobStatus.FAILED.value
    job.error = truncate_error(message)
    job.finished_at = datetime.utcnow()
    db.commit()
    db.refresh(job)


async def run_smart_list_job(db: Session, job_id: str, generator: Optional[Generator] = None) -> Dict[str, Any]:
    """Drive one job to a terminal status.

    Succeeded jobs and jobs another worker started recently are skipped. A job left
    RUNNING past the timeout is reclaimed and run again. Generation errors are
    stored on the job and reported in the result instead of raised.
    """
    job = get_job(db, job_id)
    if job is None:
        raise SmartListJobNotFoundError(f"Smart list job {job_id} not found")

    if job.status == SmartListJobStatus.SUCCEEDED.value:
        return {"ok": True, "skipped": True}
    now = datetime.utcnow()
    if _is_in_progress(job, now):
        logger.info("Smart list job %s is already running since %s; skipping", job_id, job.started_at)
        return {"ok": True, "skipped": True}
    if job.status == SmartListJobStatus.RUNNING.value:
        logger.warning("Reclaiming stale smart list job %s started at %s", job_id, job.started_at)

    mark_running(db, job)
    generate = generator or smart_list_service.generate_smart_list
    try:
        smart_list = await generate(db, job.workspace_id, job.week_id)
    except Exception as exc:  # noqa: BLE001
        message = str(exc) or exc.__class__.__name__
        logger.warning("Smart list job %s failed: %s", job_id, message)
        db.rollback()
        mark_failed(db, job, message)
        return {"ok": False, "error": job.error}

    mark_succeeded(db, job, smart_list.id)
    logger.info("Smart list job %s succeeded with list %s", job_id, smart_list.id)
    return {"ok": True, "smart_list_id": smart_list.id}
