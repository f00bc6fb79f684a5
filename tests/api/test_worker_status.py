"""Tests for the worker status endpoint."""

import time

from fastapi.testclient import TestClient

from content_review.api.main import create_app
from content_review.workers.container import assemble_worker


def test_worker_status_when_disabled(settings, blob_store, message_queue, bedrock_runtime):
    app = create_app(assemble_worker(settings, blob_store, message_queue, bedrock_runtime))

    with TestClient(app) as client:
        response = client.get("/api/v1/worker/status")

    assert response.status_code == 200
    assert response.json() == {
        "running": False,
        "maxConcurrentRequests": 2,
        "currentConcurrentRequests": 0,
        "queuedMessages": 0,
    }


def test_worker_status_when_running(settings, blob_store, message_queue, bedrock_runtime):
    """Test the consumer runs for the life of the app when enabled."""
    enabled = settings.model_copy(update={"queue": settings.queue.model_copy(update={"worker_enabled": True})})
    container = assemble_worker(enabled, blob_store, message_queue, bedrock_runtime)
    app = create_app(container)

    with TestClient(app) as client:
        body = {}
        for _ in range(100):
            body = client.get("/api/v1/worker/status").json()
            if body["running"]:
                break
            time.sleep(0.01)

    assert body["running"] is True
    assert container.consumer.running is False
    assert container.consumer.stop_reason == "requested"


def test_worker_status_before_startup():
    """Test a 503 is returned until the lifespan has wired the worker."""
    client = TestClient(create_app(container=None))

    response = client.get("/api/v1/worker/status")

    assert response.status_code == 503
