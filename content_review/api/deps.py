"""
FastAPI dependencies.

Dependencies: fastapi
System role: Access to the worker container held on app.state
"""

from fastapi import HTTPException, Request

from content_review.workers.container import WorkerContainer
from content_review.workers.queue_consumer import QueueConsumer


def get_container(request: Request) -> WorkerContainer:
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise HTTPException(status_code=503, detail="Worker not initialised")
    return container


def get_consumer(request: Request) -> QueueConsumer:
    return get_container(request).consumer
