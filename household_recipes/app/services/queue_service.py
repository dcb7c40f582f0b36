"""
Redis queue service for background recipe jobs.

Jobs are wrapped in a versioned envelope and enqueued with RQ on a single queue.
When the HTTP backend is configured, the same jobs are triggered by POSTing to this
service's own run endpoints instead.
"""
import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional

import httpx
from redis import Redis
from rq import Queue

from household_recipes.app.core.config import get_settings

logger = logging.getLogger(__name__)

QUEUE_RECIPES = "household.recipes.jobs"

JOB_RECIPE_IMPORT = "recipe.import.requested"
JOB_SMART_LIST_RUN = "smart_list.run.requested"

# job type -> (run endpoint, payload key) for the HTTP trigger backend
RUN_ENDPOINTS = {
    JOB_RECIPE_IMPORT: ("/imports/run", "import_id"),
    JOB_SMART_LIST_RUN: ("/smart-lists/run", "job_id"),
}

HTTP_TRIGGER_TIMEOUT_SECONDS = 5.0

_redis_conn: Optional[Redis] = None
_queues: Dict[str, Queue] = {}


def get_redis_connection() -> Redis:
    """Get or create Redis connection."""
    global _redis_conn
    if _redis_conn is None:
        settings = get_settings()
        _redis_conn = Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            decode_responses=False,  # RQ expects bytes
        )
    return _redis_conn


def get_queue(queue_name: str = QUEUE_RECIPES) -> Queue:
    if queue_name not in _queues:
        _queues[queue_name] = Queue(queue_name, connection=get_redis_connection())
    return _queues[queue_name]


def create_envelope(job_type: str, job_id: str, payload: Dict[str, Any], attempt: int = 1) -> Dict[str, Any]:
    return {
        "schema_version": 1,
        "job_id": job_id,
        "job_type": job_type,
        "created_at": datetime.utcnow().isoformat(),
        "attempt": attempt,
        "payload": payload,
    }


def enqueue_recipes_job(job_type: str, job_id: str, payload: Dict[str, Any]) -> None:
    envelope = create_envelope(job_type=job_type, job_id=job_id, payload=payload)
    try:
        queue = get_queue(QUEUE_RECIPES)
        queue.enqueue(
            "household_recipes.app.services.queue_worker.process_job",
            json.dumps(envelope),
            job_id=job_id,
            job_timeout="10m",
        )
    except Exception as exc:
        logger.exception("Failed to enqueue job %s: %s", job_id, exc)
        raise
    logger.info("Enqueued job %s (%s) to %s", job_id, job_type, QUEUE_RECIPES)


def post_run_request(job_type: str, payload: Dict[str, Any], transport: Optional[httpx.BaseTransport] = None) -> None:
    if job_type not in RUN_ENDPOINTS:
        raise ValueError(f"Unknown job type: {job_type}")
    path, key = RUN_ENDPOINTS[job_type]
    url = f"{get_settings().app_base_url.rstrip('/')}{path}"
    with httpx.Client(timeout=HTTP_TRIGGER_TIMEOUT_SECONDS, transport=transport) as client:
        response = client.post(url, json={key: payload[key]})
    response.raise_for_status()
    logger.info("Triggered %s via %s", job_type, url)


def trigger_job(job_type: str, job_id: str, payload: Dict[str, Any]) -> None:
    """Start a background job on the configured backend. Raises on failure."""
    backend = get_settings().job_trigger_backend
    if backend == "http":
        post_run_request(job_type, payload)
    elif backend == "rq":
        enqueue_recipes_job(job_type, job_id, payload)
    else:
        raise ValueError(f"Unknown job trigger backend: {backend}")


def fire_job(job_type: str, job_id: str, payload: Dict[str, Any]) -> bool:
    """Best-effort trigger. A failure is logged and the record stays queued for a later retry."""
    try:
        trigger_job(job_type, job_id, payload)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Could not trigger %s job %s: %s", job_type, job_id, exc)
        return False
    return True
