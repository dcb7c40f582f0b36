"""
Worker functions for processing jobs from the Redis queue.

``process_job`` is the RQ entry point. It owns its database session and routes
each envelope to the matching runner by job type.
"""
import asyncio
import json
import logging
from typing import Any, Dict

from sqlalchemy.orm import Session

from household_recipes.app.db.session import SessionLocal
from household_recipes.app.services import recipe_import_service, smart_list_jobs
from household_recipes.app.services.queue_service import JOB_RECIPE_IMPORT, JOB_SMART_LIST_RUN

logger = logging.getLogger(__name__)


def _process_import(db: Session, payload: Dict[str, Any]) -> None:
    job = asyncio.run(recipe_import_service.run_import(db, payload["import_id"]))
    logger.info("Import %s is %s", job.id, job.status)


def _process_smart_list(db: Session, payload: Dict[str, Any]) -> None:
    result = asyncio.run(smart_list_jobs.run_smart_list_job(db, payload["job_id"]))
    if not result.get("ok"):
        logger.warning("Smart list job %s failed: %s", payload["job_id"], result.get("error"))


HANDLERS = {
    JOB_RECIPE_IMPORT: _process_import,
    JOB_SMART_LIST_RUN: _process_smart_list,
}


def process_job(payload_json: str) -> None:
    envelope = json.loads(payload_json)
    job_id = envelope.get("job_id")
    job_type = envelope.get("job_type")
    payload = envelope.get("payload") or {}
    logger.info("Processing job %s (%s), attempt %s", job_id, job_type, envelope.get("attempt", 1))

    handler = HANDLERS.get(job_type)
    if handler is None:
        logger.error("Unknown job type in envelope: %s", job_type)
        return

    with SessionLocal() as db:
        try:
            handler(db, payload)
        except LookupError as exc:
            logger.error("Job %s (%s) references a missing record: %s", job_id, job_type, exc)
        except Exception as exc:
            # the runner has already stored the failure on the record
            logger.exception("Job %s (%s) failed: %s", job_id, job_type, exc)
