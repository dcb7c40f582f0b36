import json

import httpx
import pytest

from household_recipes.app.services import queue_service, queue_worker
from household_recipes.app.services.queue_service import (
    JOB_RECIPE_IMPORT,
    JOB_SMART_LIST_RUN,
    create_envelope,
    fire_job,
    post_run_request,
    trigger_job,
)


class FakeQueue:
    def __init__(self):
        self.enqueued = []

    def enqueue(self, func, *args, **kwargs):
        self.enqueued.append((func, args, kwargs))


def test_envelope_shape():
    envelope = create_envelope(JOB_RECIPE_IMPORT, "imp-1", {"import_id": "imp-1"})

    assert envelope["schema_version"] == 1
    assert envelope["job_id"] == "imp-1"
    assert envelope["job_type"] == JOB_RECIPE_IMPORT
    assert envelope["attempt"] == 1
    assert envelope["payload"] == {"import_id": "imp-1"}
    assert "created_at" in envelope


def test_rq_backend_enqueues_worker_entry_point(monkeypatch):
    queue = FakeQueue()
    monkeypatch.setattr(queue_service, "get_queue", lambda name=queue_service.QUEUE_RECIPES: queue)
    monkeypatch.setattr(queue_service.get_settings(), "job_trigger_backend", "rq")

    trigger_job(JOB_SMART_LIST_RUN, "job-1", {"job_id": "job-1"})

    func, args, kwargs = queue.enqueued[0]
    assert func == "household_recipes.app.services.queue_worker.process_job"
    assert json.loads(args[0])["payload"] == {"job_id": "job-1"}
    assert kwargs["job_id"] == "job-1"


def test_http_backend_posts_to_run_endpoint(monkeypatch):
    posted = []
    monkeypatch.setattr(queue_service.get_settings(), "job_trigger_backend", "http")
    monkeypatch.setattr(queue_service, "post_run_request", lambda job_type, payload: posted.append((job_type, payload)))

    trigger_job(JOB_RECIPE_IMPORT, "imp-1", {"import_id": "imp-1"})

    assert posted == [(JOB_RECIPE_IMPORT, {"import_id": "imp-1"})]


def test_post_run_request_hits_own_endpoint(monkeypatch):
    seen = []
    monkeypatch.setattr(queue_service.get_settings(), "app_base_url", "http://api.internal:8000/")

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((str(request.url), json.loads(request.content)))
        return httpx.Response(200, json={"ok": True})

    post_run_request(JOB_SMART_LIST_RUN, {"job_id": "job-1"}, transport=httpx.MockTransport(handler))

    assert seen == [("http://api.internal:8000/smart-lists/run", {"job_id": "job-1"})]


def test_post_run_request_raises_on_error_status():
    transport = httpx.MockTransport(lambda request: httpx.Response(503))

    with pytest.raises(httpx.HTTPStatusError):
        post_run_request(JOB_RECIPE_IMPORT, {"import_id": "imp-1"}, transport=transport)


def test_unknown_backend_is_rejected(monkeypatch):
    monkeypatch.setattr(queue_service.get_settings(), "job_trigger_backend", "carrier-pigeon")

    with pytest.raises(ValueError):
        trigger_job(JOB_RECIPE_IMPORT, "imp-1", {"import_id": "imp-1"})
    assert fire_job(JOB_RECIPE_IMPORT, "imp-1", {"import_id": "imp-1"}) is False


def test_worker_routes_by_job_type(monkeypatch):
    handled = []
    monkeypatch.setitem(queue_worker.HANDLERS, JOB_RECIPE_IMPORT, lambda db, payload: handled.append(payload))

    queue_worker.process_job(json.dumps(create_envelope(JOB_RECIPE_IMPORT, "imp-1", {"import_id": "imp-1"})))

    assert handled == [{"import_id": "imp-1"}]


def test_worker_swallows_handler_errors(monkeypatch):
    def explode(db, payload):
        raise LookupError("gone")

    monkeypatch.setitem(queue_worker.HANDLERS, JOB_SMART_LIST_RUN, explode)

    queue_worker.process_job(json.dumps(create_envelope(JOB_SMART_LIST_RUN, "job-1", {"job_id": "job-1"})))


def test_worker_ignores_unknown_job_type(monkeypatch):
    opened = []
    monkeypatch.setattr(queue_worker, "SessionLocal", lambda: opened.append(True))

    queue_worker.process_job(json.dumps(create_envelope("mystery.job", "x-1", {})))

    assert opened == []
