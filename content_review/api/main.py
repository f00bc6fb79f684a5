"""
FastAPI application hosting the review worker.

The lifespan wires the worker container (unless one is supplied) and,
when SQS_WORKER_ENABLED is true, runs the queue consumer in the
background for the life of the app.

Dependencies: fastapi, uvicorn, content_review.workers
System role: HTTP entry point exposing health and worker status
"""

import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI

from content_review.configs.settings import get_settings
from content_review.observability.logger import configure_logging
from content_review.workers.container import WorkerContainer, build_container

from .routers import health_router, worker_router


def create_app(container: WorkerContainer | None = None) -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Args:
        container: Pre-wired worker (built from settings at startup when None)

    Returns:
        FastAPI: Configured application instance
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger = logging.getLogger("uvicorn")
        wired = container
        if wired is None:
            settings = get_settings()
            configure_logging(settings.log_level)
            wired = build_container(settings)
        app.state.container = wired

        consumer_task: asyncio.Task | None = None
        if wired.settings.queue.worker_enabled:
            consumer_task = asyncio.create_task(wired.consumer.run(), name="review-consumer")
            logger.info("Review worker started")
        else:
            logger.info("Review worker disabled (SQS_WORKER_ENABLED=false)")

        yield

        if consumer_task is not None:
            await wired.consumer.shutdown()
            await asyncio.gather(consumer_task, return_exceptions=True)
        await wired.job_store.wait_for_background_tasks()
        logger.info("Review worker stopped")

    app = FastAPI(
        title="Content Review Worker",
        description="Asynchronous content review pipeline with PII redaction",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(health_router, prefix="/api/v1")
    app.include_router(worker_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    load_dotenv()
    uvicorn.run(
        "content_review.api.main:app",
        host="0.0.0.0",
        port=8000,
    )
