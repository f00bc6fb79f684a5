"""
Composition root for the review worker.

Builds every component explicitly from settings and wires them
together; nothing is a module-level singleton. assemble_worker() takes
already-built stores and clients so tests can pass in-memory doubles.

Dependencies: boto3, content_review.configs, content_review.core
System role: Dependency wiring for the worker and API processes
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from content_review.boundary.aws.interfaces import BlobStore, MessageQueue
from content_review.boundary.aws.s3_client import S3BlobStore
from content_review.boundary.aws.session import create_bedrock_runtime_client, create_client
from content_review.boundary.aws.sqs_client import SQSMessageQueue
from content_review.configs.settings import Settings
from content_review.core.ai_review.prompt_provider import PromptProvider
from content_review.core.ai_review.reviewer_client import AIReviewerClient
from content_review.core.content_extraction.extractor import ContentExtractor
from content_review.core.job_store.job_store import JobStore
from content_review.core.pii_redaction.redactor import PIIRedactor
from content_review.workers.queue_consumer import QueueConsumer
from content_review.workers.review_processor import ReviewProcessor

logger = logging.getLogger(__name__)


@dataclass
class WorkerContainer:
    """Wired worker components."""

    settings: Settings
    blob_store: BlobStore
    queue: MessageQueue
    job_store: JobStore
    extractor: ContentExtractor
    redactor: PIIRedactor
    reviewer: AIReviewerClient
    processor: ReviewProcessor
    consumer: QueueConsumer


def assemble_worker(
    settings: Settings,
    blob_store: BlobStore,
    queue: MessageQueue,
    runtime_client: Any,
    clock: Callable[[], datetime] | None = None,
) -> WorkerContainer:
    """
    Wire the worker from pre-built boundary objects.

    Args:
        settings: Application settings
        blob_store: Store for content, records and prompts
        queue: Message queue
        runtime_client: bedrock-runtime client (or a test double)
        clock: Optional UTC clock shared by store and processor

    Returns:
        WorkerContainer: Ready-to-run components
    """
    job_store = JobStore(blob_store, settings.storage, clock=clock)
    extractor = ContentExtractor()
    redactor = PIIRedactor()
    prompts = PromptProvider(
        blob_store,
        settings.storage.prompt_key,
        cache_ttl_seconds=settings.bedrock.prompt_cache_ttl_seconds,
    )
    reviewer = AIReviewerClient(runtime_client, settings.bedrock, prompts)
    processor = ReviewProcessor(
        queue=queue,
        blob_store=blob_store,
        job_store=job_store,
        extractor=extractor,
        redactor=redactor,
        reviewer=reviewer,
        settings=settings.queue,
        clock=clock,
    )
    consumer = QueueConsumer(queue, processor, settings.queue)
    return WorkerContainer(
        settings=settings,
        blob_store=blob_store,
        queue=queue,
        job_store=job_store,
        extractor=extractor,
        redactor=redactor,
        reviewer=reviewer,
        processor=processor,
        consumer=consumer,
    )


def build_container(settings: Settings) -> WorkerContainer:
    """Create boto3 clients from settings and wire the worker."""
    s3 = create_client("s3", settings.aws)
    sqs = create_client("sqs", settings.aws)
    runtime = create_bedrock_runtime_client(settings.bedrock)
    logger.info(
        "%s:build_container - Wiring worker",
        __name__,
        extra={
            "bucket": settings.storage.bucket,
            "queue_url": settings.queue.queue_url,
            "model_id": settings.bedrock.model_id,
        },
    )
    return assemble_worker(
        settings,
        blob_store=S3BlobStore(s3, settings.storage.bucket),
        queue=SQSMessageQueue(sqs, settings.queue.queue_url, settings.queue.visibility_timeout),
        runtime_client=runtime,
    )
