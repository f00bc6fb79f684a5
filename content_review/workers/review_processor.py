"""
Per-message review pipeline.

Runs one queue message through: parse -> mark processing -> extract ->
inbound redaction -> AI review -> outbound redaction -> persist -> delete.

Failure policy:
- malformed bodies (including unknown message types) are deleted without
  touching the job store
- a failure is recorded on the job; the message is deleted only once that
  write succeeds, with one retry using a minimal payload
- unsupported formats and missing jobs can never succeed, so their
  messages are deleted even if the failure write does not succeed

Dependencies: content_review.core, content_review.boundary.aws.interfaces
System role: Unit of work executed by each worker pool slot
"""

import asyncio
import logging
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from pydantic import ValidationError

from content_review.boundary.aws.interfaces import BlobStore, MessageQueue
from content_review.configs.queue import QueueSettings
from content_review.core.ai_review.review_parser import parse_review
from content_review.core.ai_review.reviewer_client import AIReviewerClient
from content_review.core.content_extraction.extractor import ContentExtractor
from content_review.core.errors import to_job_error
from content_review.core.exceptions import (
    ContentBlockedError,
    InvalidStatusTransitionError,
    JobNotFoundError,
    MalformedMessageError,
    QueueError,
)
from content_review.core.job_store.job_store import JobStore
from content_review.core.pii_redaction.redactor import PIIRedactor, build_pii_report
from content_review.models.errors import TERMINAL_CODES, JobError
from content_review.models.job import JobPatch, JobStatus
from content_review.models.queue_message import QueueMessage, ReviewMessage
from content_review.models.review import ReviewResult
from content_review.models.worker import ProcessingOutcome
from content_review.observability.correlation import bind_correlation_id
from content_review.observability.log_utils import log_exception_with_context, truncate_handle

logger = logging.getLogger(__name__)

MINIMAL_ERROR_MESSAGE = "Processing failed - error details unavailable"


@contextmanager
def _stage(job_id: str, name: str) -> Iterator[None]:
    started = time.monotonic()
    yield
    logger.info(
        "%s:stage - %s finished",
        __name__,
        name,
        extra={"job_id": job_id, "stage": name, "duration_ms": int((time.monotonic() - started) * 1000)},
    )


def parse_message(message: QueueMessage) -> ReviewMessage:
    """
    Parse and validate a queue message body.

    Args:
        message: Received queue message

    Returns:
        ReviewMessage: Validated request

    Raises:
        MalformedMessageError: Empty body, invalid JSON, missing fields or
            unknown message type
    """
    if not message.body or not message.body.strip():
        raise MalformedMessageError("Empty message body", message_id=message.message_id)
    try:
        return ReviewMessage.model_validate_json(message.body)
    except ValidationError as e:
        raise MalformedMessageError(
            f"Invalid review message ({e.error_count()} validation error(s))",
            message_id=message.message_id,
            details={"fields": [".".join(str(part) for part in err["loc"]) for err in e.errors()]},
        ) from e


class ReviewProcessor:
    """Executes the review pipeline for one message."""

    def __init__(
        self,
        queue: MessageQueue,
        blob_store: BlobStore,
        job_store: JobStore,
        extractor: ContentExtractor,
        redactor: PIIRedactor,
        reviewer: AIReviewerClient,
        settings: QueueSettings,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._queue = queue
        self._blobs = blob_store
        self._jobs = job_store
        self._extractor = extractor
        self._redactor = redactor
        self._reviewer = reviewer
        self._settings = settings
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def process_message(self, message: QueueMessage) -> ProcessingOutcome:
        """
        Process one message end to end.

        Args:
            message: Received queue message

        Returns:
            ProcessingOutcome: What happened to the message
        """
        try:
            request = parse_message(message)
        except MalformedMessageError as e:
            logger.warning(
                "%s:process_message - Discarding malformed message: %s",
                __name__,
                e.message,
                extra={"message_id": message.message_id, **e.details},
            )
            await self._delete(message)
            return ProcessingOutcome.MALFORMED

        with bind_correlation_id(request.job_id):
            heartbeat = self._start_heartbeat(message)
            try:
                return await self._process(message, request)
            finally:
                if heartbeat is not None:
                    heartbeat.cancel()
                    await asyncio.gather(heartbeat, return_exceptions=True)

    async def _process(self, message: QueueMessage, request: ReviewMessage) -> ProcessingOutcome:
        job_id = request.job_id
        started = time.monotonic()
        logger.info(
            "%s:process_message - Processing %s",
            __name__,
            request.message_type,
            extra={"job_id": job_id, "message_id": message.message_id, "receive_count": message.receive_count},
        )

        try:
            job = await self._jobs.update_status(job_id, JobStatus.PROCESSING)
            if job.status.is_terminal:
                logger.info(
                    "%s:process_message - Job already %s, discarding duplicate delivery",
                    __name__,
                    job.status.value,
                    extra={"job_id": job_id},
                )
                await self._delete(message)
                return ProcessingOutcome.SKIPPED
        except JobNotFoundError:
            logger.error("%s:process_message - Job does not exist, discarding message", __name__, extra={"job_id": job_id})
            await self._delete(message)
            return ProcessingOutcome.SKIPPED
        except Exception as e:
            logger.critical(
                "%s:process_message - Could not mark job processing, continuing: %s: %s",
                __name__,
                type(e).__name__,
                e,
                extra={"job_id": job_id},
            )

        try:
            result = await self._run_pipeline(request)
            with _stage(job_id, "persist"):
                await self._jobs.update_status(
                    job_id,
                    JobStatus.COMPLETED,
                    JobPatch(
                        result=result,
                        metadata={"outputPii": result.output_pii.model_dump(mode="json", by_alias=True)},
                    ),
                )
        except Exception as e:
            return await self._handle_failure(message, request, e)

        await self._delete(message)
        logger.info(
            "%s:process_message - Review completed",
            __name__,
            extra={"job_id": job_id, "duration_ms": int((time.monotonic() - started) * 1000)},
        )
        return ProcessingOutcome.COMPLETED

    async def _run_pipeline(self, request: ReviewMessage) -> ReviewResult:
        job_id = request.job_id

        with _stage(job_id, "extract"):
            content = await self._blobs.get(request.content_ref)
            if request.message_type == "file_review":
                text = await asyncio.to_thread(self._extractor.extract, content, request.content_type)
            else:
                text = self._extractor.extract(content, "text/plain")

        with _stage(job_id, "redact_input"):
            inbound = self._redactor.redact_user_content(text)
            input_report = build_pii_report(text, inbound)
            await self._jobs.update_metadata(
                job_id, {"inputPii": input_report.model_dump(mode="json", by_alias=True)}
            )

        with _stage(job_id, "review"):
            outcome = await self._reviewer.review(inbound.redacted_text)
        if outcome.blocked:
            try:
                await self._jobs.update_metadata(
                    job_id, {"safetyVerdict": outcome.safety_verdict.model_dump(mode="json", by_alias=True)}
                )
            except Exception as e:
                logger.error(
                    "%s:process_message - Could not store safety verdict: %s: %s",
                    __name__,
                    type(e).__name__,
                    e,
                    extra={"job_id": job_id},
                )
            raise ContentBlockedError(
                "Review blocked by safety guardrail",
                details={"job_id": job_id, "action": outcome.safety_verdict.action},
            )

        with _stage(job_id, "redact_output"):
            outbound = self._redactor.redact_model_output(outcome.content)
            output_report = build_pii_report(
                outcome.content, outbound, outcome.safety_verdict.flagged_entities
            )
            parsed = parse_review(outbound.redacted_text)

        return ReviewResult(
            raw_response=outbound.redacted_text,
            review_data=parsed,
            safety_verdict=outcome.safety_verdict,
            stop_reason=outcome.stop_reason,
            usage=outcome.usage,
            input_pii=input_report,
            output_pii=output_report,
            completed_at=self._clock(),
        )

    async def _handle_failure(
        self,
        message: QueueMessage,
        request: ReviewMessage,
        exc: Exception,
    ) -> ProcessingOutcome:
        job_id = request.job_id
        error = to_job_error(exc)
        log_exception_with_context(
            logger,
            f"{__name__}:process_message - Review failed",
            exc,
            job_id=job_id,
            error_code=error.code.value if error.code else None,
        )
        terminal = error.code in TERMINAL_CODES

        try:
            await self._jobs.update_status(job_id, JobStatus.FAILED, JobPatch(error=error))
            recorded = True
        except (InvalidStatusTransitionError, JobNotFoundError) as e:
            logger.warning(
                "%s:process_message - Failure not recorded, job already settled: %s",
                __name__,
                e.message,
                extra={"job_id": job_id},
            )
            await self._delete(message)
            return ProcessingOutcome.SKIPPED
        except Exception as e:
            logger.error(
                "%s:process_message - Failure write failed, retrying with minimal payload: %s: %s",
                __name__,
                type(e).__name__,
                e,
                extra={"job_id": job_id},
            )
            recorded = await self._record_minimal_failure(job_id, error)

        if recorded or terminal:
            await self._delete(message)
            return ProcessingOutcome.FAILED

        logger.critical(
            "%s:process_message - Failure could not be recorded, leaving message for redelivery",
            __name__,
            extra={"job_id": job_id, "message_id": message.message_id},
        )
        return ProcessingOutcome.RETRY

    async def _record_minimal_failure(self, job_id: str, error: JobError) -> bool:
        try:
            await self._jobs.update_status(
                job_id,
                JobStatus.FAILED,
                JobPatch(error=JobError(message=MINIMAL_ERROR_MESSAGE, code=error.code)),
            )
            return True
        except Exception as e:
            logger.critical(
                "%s:process_message - Minimal failure write failed: %s: %s",
                __name__,
                type(e).__name__,
                e,
                extra={"job_id": job_id},
            )
            return False

    async def _delete(self, message: QueueMessage) -> None:
        try:
            await self._queue.delete(message.receipt_handle)
        except QueueError as e:
            logger.error(
                "%s:_delete - Message not deleted, it will be redelivered: %s",
                __name__,
                e.message,
                extra={"message_id": message.message_id, "receipt_handle": truncate_handle(message.receipt_handle)},
            )

    def _start_heartbeat(self, message: QueueMessage) -> asyncio.Task | None:
        interval = self._settings.visibility_heartbeat_seconds
        if interval <= 0:
            return None
        return asyncio.create_task(self._heartbeat(message, interval), name=f"visibility-{message.message_id}")

    async def _heartbeat(self, message: QueueMessage, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self._queue.extend_visibility(message.receipt_handle, self._settings.visibility_timeout)
            except QueueError as e:
                logger.warning(
                    "%s:_heartbeat - Visibility not extended: %s",
                    __name__,
                    e.message,
                    extra={"message_id": message.message_id},
                )
