"""
Worker status API endpoint.

Routes: GET /worker/status

Dependencies: fastapi, content_review.api.deps
System role: Observability surface for the queue consumer
"""

from fastapi import APIRouter, Depends

from content_review.api.deps import get_consumer
from content_review.models.worker import WorkerStatus
from content_review.workers.queue_consumer import QueueConsumer

router = APIRouter(prefix="/worker", tags=["worker"])


@router.get("/status", response_model=WorkerStatus)
async def worker_status(consumer: QueueConsumer = Depends(get_consumer)) -> WorkerStatus:
    """Running flag, pool size, in-flight jobs and backlog size."""
    return consumer.get_status()
