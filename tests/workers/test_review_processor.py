"""Tests for the per-message review pipeline."""

import asyncio
import io
import time

import pytest
from botocore.exceptions import ClientError, ReadTimeoutError
from docx import Document

from conftest import FakeBedrockRuntime, converse_response
from content_review.core.exceptions import BlobStoreError
from content_review.models.errors import USER_MESSAGES, ErrorCode
from content_review.models.job import JobStatus, NewJob, SourceType
from content_review.models.worker import ProcessingOutcome
from content_review.observability.correlation import get_correlation_id
from content_review.workers.container import assemble_worker
from content_review.workers.review_processor import MINIMAL_ERROR_MESSAGE

DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

REVIEW_TEXT = """[SCORES]
Clarity: 4/5 - Clear and direct
[/SCORES]
[REVIEWED_CONTENT]
Contact me at [EMAIL_REDACTED]. [ISSUE:tone]For help write to help@example.org.[/ISSUE]
[/REVIEWED_CONTENT]
"""

BLOCKED_TRACE = {
    "outputAssessments": {
        "gr-test": [
            {"contentPolicy": {"filters": [{"type": "HATE", "confidence": "HIGH", "action": "BLOCKED"}]}}
        ]
    }
}


class SlowBedrockRuntime(FakeBedrockRuntime):
    def converse(self, **kwargs):
        time.sleep(0.1)
        return super().converse(**kwargs)


@pytest.fixture
def container(settings, blob_store, message_queue, bedrock_runtime, clock):
    return assemble_worker(settings, blob_store, message_queue, bedrock_runtime, clock=clock)


async def _submit_text(container, blob_store, message_queue, job_id: str, text: str, **overrides):
    content_ref = f"uploads/{job_id}/content.txt"
    blob_store.seed(content_ref, text, "text/plain")
    await container.job_store.create(NewJob(id=job_id, source_type=SourceType.TEXT, content_ref=content_ref))
    await container.job_store.wait_for_background_tasks()
    body = {"jobId": job_id, "messageType": "text_review", "contentRef": content_ref}
    body.update(overrides)
    return message_queue.push(body)


async def _submit_file(container, blob_store, message_queue, job_id: str, data: bytes, content_type: str):
    content_ref = f"uploads/{job_id}/upload"
    blob_store.seed(content_ref, data, content_type)
    await container.job_store.create(
        NewJob(
            id=job_id,
            source_type=SourceType.FILE,
            content_ref=content_ref,
            file_name="upload",
            file_size=len(data),
            mime_type=content_type,
        )
    )
    await container.job_store.wait_for_background_tasks()
    return message_queue.push(
        {
            "jobId": job_id,
            "messageType": "file_review",
            "contentRef": content_ref,
            "contentType": content_type,
            "filename": "upload",
            "fileSize": len(data),
        }
    )


def _fail_failure_writes(job_store, times: int):
    """Make the next `times` FAILED writes raise."""
    original = job_store.update_status
    remaining = {"count": times}

    async def flaky(job_id, status, patch=None):
        if JobStatus(status) == JobStatus.FAILED and remaining["count"] > 0:
            remaining["count"] -= 1
            raise BlobStoreError("simulated write failure")
        return await original(job_id, status, patch)

    job_store.update_status = flaky


@pytest.mark.asyncio
async def test_text_review_redacts_both_directions(container, blob_store, message_queue, bedrock_runtime):
    """Test PII never reaches the reviewer or the stored result."""
    bedrock_runtime.response = converse_response(text=REVIEW_TEXT)
    message = await _submit_text(
        container, blob_store, message_queue, "job-1", "Contact me at jane@example.com or 020 7946 0991"
    )

    outcome = await container.processor.process_message(message)

    assert outcome == ProcessingOutcome.COMPLETED
    assert message.receipt_handle in message_queue.deleted

    sent = bedrock_runtime.calls[0]["messages"][2]["content"][0]["text"]
    assert "Contact me at [EMAIL_REDACTED] or [PHONE_REDACTED]" in sent
    assert "jane@example.com" not in sent

    job = await container.job_store.require("job-1")
    assert job.status == JobStatus.COMPLETED
    assert job.error is None
    assert job.processing_started_at is not None
    assert job.processing_completed_at is not None
    assert "help@example.org" not in job.result.raw_response
    assert job.result.review_data.scores["Clarity"].score == 4
    assert job.result.review_data.reviewed_content.issues[0].category == "tone"
    assert job.result.input_pii.redaction_count == 2
    assert job.result.output_pii.has_pii is True
    assert job.metadata["inputPii"]["hasPII"] is True
    assert job.metadata["inputPii"]["detectedTypes"] == ["email", "uk_phone"]
    assert job.metadata["outputPii"]["redactionCount"] == 1
    assert "help@example.org" not in blob_store.objects["reviews/job-1.json"].data.decode()
    assert get_correlation_id() == ""


@pytest.mark.asyncio
async def test_docx_file_review(container, blob_store, message_queue, bedrock_runtime):
    document = Document()
    document.add_paragraph("Quarterly report for the team.")
    buffer = io.BytesIO()
    document.save(buffer)
    message = await _submit_file(container, blob_store, message_queue, "job-1", buffer.getvalue(), DOCX)

    outcome = await container.processor.process_message(message)

    assert outcome == ProcessingOutcome.COMPLETED
    assert "Quarterly report for the team." in bedrock_runtime.calls[0]["messages"][2]["content"][0]["text"]


@pytest.mark.asyncio
@pytest.mark.parametrize("body", ["not json", "", '{"messageType": "text_review"}'])
async def test_malformed_message_is_discarded(container, blob_store, message_queue, body):
    message = message_queue.push(body)

    outcome = await container.processor.process_message(message)

    assert outcome == ProcessingOutcome.MALFORMED
    assert message_queue.deleted == [message.receipt_handle]
    assert blob_store.put_calls == []


@pytest.mark.asyncio
async def test_unknown_message_type_does_not_touch_job(container, blob_store, message_queue, bedrock_runtime):
    """Test an unknown message type is deleted with no store mutation."""
    message = await _submit_text(
        container, blob_store, message_queue, "job-1", "Hello", messageType="image_review"
    )
    writes = list(blob_store.put_calls)

    outcome = await container.processor.process_message(message)

    assert outcome == ProcessingOutcome.MALFORMED
    assert message.receipt_handle in message_queue.deleted
    assert blob_store.put_calls == writes
    assert (await container.job_store.require("job-1")).status == JobStatus.PENDING
    assert bedrock_runtime.calls == []


@pytest.mark.asyncio
async def test_unsupported_format_fails_job(container, blob_store, message_queue, bedrock_runtime):
    message = await _submit_file(container, blob_store, message_queue, "job-1", b"\x89PNG", "image/png")

    outcome = await container.processor.process_message(message)

    assert outcome == ProcessingOutcome.FAILED
    assert message.receipt_handle in message_queue.deleted
    job = await container.job_store.require("job-1")
    assert job.status == JobStatus.FAILED
    assert job.error.code == ErrorCode.EXTRACTION_UNSUPPORTED_FORMAT
    assert job.error.message == USER_MESSAGES[ErrorCode.EXTRACTION_UNSUPPORTED_FORMAT]
    assert bedrock_runtime.calls == []


@pytest.mark.asyncio
async def test_unsupported_format_deleted_even_when_failure_write_fails(container, blob_store, message_queue):
    message = await _submit_file(container, blob_store, message_queue, "job-1", b"\x89PNG", "image/png")
    _fail_failure_writes(container.job_store, times=2)

    outcome = await container.processor.process_message(message)

    assert outcome == ProcessingOutcome.FAILED
    assert message.receipt_handle in message_queue.deleted


@pytest.mark.asyncio
async def test_provider_error_recorded(container, blob_store, message_queue, bedrock_runtime):
    bedrock_runtime.error = ClientError(
        {"Error": {"Code": "ThrottlingException", "Message": "Rate exceeded for account 123456789012"}},
        "Converse",
    )
    message = await _submit_text(container, blob_store, message_queue, "job-1", "Some content")

    outcome = await container.processor.process_message(message)

    assert outcome == ProcessingOutcome.FAILED
    assert message.receipt_handle in message_queue.deleted
    job = await container.job_store.require("job-1")
    assert job.error.code == ErrorCode.RATE_LIMIT_EXCEEDED
    assert "123456789012" not in job.error.message
    assert job.result is None
    assert job.metadata["inputPii"]["hasPII"] is False


@pytest.mark.asyncio
async def test_timeout_recorded(container, blob_store, message_queue, bedrock_runtime):
    bedrock_runtime.error = ReadTimeoutError(endpoint_url="https://bedrock-runtime.test")
    message = await _submit_text(container, blob_store, message_queue, "job-1", "Some content")

    await container.processor.process_message(message)

    assert (await container.job_store.require("job-1")).error.code == ErrorCode.TIMEOUT


@pytest.mark.asyncio
async def test_guardrail_block_fails_job(container, blob_store, message_queue, bedrock_runtime):
    bedrock_runtime.response = converse_response(
        text="Blocked.", stop_reason="guardrail_intervened", guardrail=BLOCKED_TRACE
    )
    message = await _submit_text(container, blob_store, message_queue, "job-1", "Some content")

    outcome = await container.processor.process_message(message)

    assert outcome == ProcessingOutcome.FAILED
    job = await container.job_store.require("job-1")
    assert job.error.code == ErrorCode.CONTENT_BLOCKED
    assert job.result is None
    assert job.metadata["safetyVerdict"]["blocked"] is True
    assert message.receipt_handle in message_queue.deleted


@pytest.mark.asyncio
async def test_guardrail_block_kept_when_verdict_write_fails(container, blob_store, message_queue, bedrock_runtime):
    """Test a failed safety verdict write does not change the recorded failure."""
    bedrock_runtime.response = converse_response(
        text="Blocked.", stop_reason="guardrail_intervened", guardrail=BLOCKED_TRACE
    )
    message = await _submit_text(container, blob_store, message_queue, "job-1", "Some content")
    job_store = container.job_store
    original = job_store.update_metadata

    async def flaky(job_id, partial):
        if "safetyVerdict" in partial:
            raise BlobStoreError("simulated write failure")
        return await original(job_id, partial)

    job_store.update_metadata = flaky

    outcome = await container.processor.process_message(message)

    assert outcome == ProcessingOutcome.FAILED
    job = await job_store.require("job-1")
    assert job.error.code == ErrorCode.CONTENT_BLOCKED
    assert "safetyVerdict" not in job.metadata
    assert message.receipt_handle in message_queue.deleted


@pytest.mark.asyncio
async def test_failure_write_retried_with_minimal_payload(container, blob_store, message_queue, bedrock_runtime):
    """Test a failed failure-write is retried once with a minimal error."""
    bedrock_runtime.error = ClientError({"Error": {"Code": "ThrottlingException", "Message": "slow"}}, "Converse")
    message = await _submit_text(container, blob_store, message_queue, "job-1", "Some content")
    _fail_failure_writes(container.job_store, times=1)

    outcome = await container.processor.process_message(message)

    assert outcome == ProcessingOutcome.FAILED
    assert message.receipt_handle in message_queue.deleted
    job = await container.job_store.require("job-1")
    assert job.status == JobStatus.FAILED
    assert job.error.message == MINIMAL_ERROR_MESSAGE
    assert job.error.code == ErrorCode.RATE_LIMIT_EXCEEDED


@pytest.mark.asyncio
async def test_unrecorded_failure_left_for_redelivery(container, blob_store, message_queue, bedrock_runtime):
    bedrock_runtime.error = ClientError({"Error": {"Code": "ThrottlingException", "Message": "slow"}}, "Converse")
    message = await _submit_text(container, blob_store, message_queue, "job-1", "Some content")
    _fail_failure_writes(container.job_store, times=2)

    outcome = await container.processor.process_message(message)

    assert outcome == ProcessingOutcome.RETRY
    assert message.receipt_handle not in message_queue.deleted
    assert (await container.job_store.require("job-1")).status == JobStatus.PROCESSING


@pytest.mark.asyncio
async def test_duplicate_delivery_after_completion(container, blob_store, message_queue, bedrock_runtime):
    first = await _submit_text(container, blob_store, message_queue, "job-1", "Some content")
    await container.processor.process_message(first)
    completed = await container.job_store.require("job-1")
    duplicate = message_queue.push(first.body)

    outcome = await container.processor.process_message(duplicate)

    assert outcome == ProcessingOutcome.SKIPPED
    assert duplicate.receipt_handle in message_queue.deleted
    assert len(bedrock_runtime.calls) == 1
    job = await container.job_store.require("job-1")
    assert job.processing_started_at == completed.processing_started_at
    assert job.processing_completed_at == completed.processing_completed_at
    assert job.created_at == completed.created_at
    assert job.content_ref == completed.content_ref


@pytest.mark.asyncio
async def test_concurrent_duplicate_deliveries_both_complete(container, blob_store, message_queue, bedrock_runtime):
    """Test two in-flight copies of one message leave a consistent completed job."""
    first = await _submit_file(container, blob_store, message_queue, "job-1", b"Some content", "text/plain")
    created = await container.job_store.require("job-1")
    second = message_queue.push(first.body)

    job_store = container.job_store
    original = job_store.update_status
    started_stamps = []

    async def recording(job_id, status, patch=None):
        job = await original(job_id, status, patch)
        if JobStatus(status) == JobStatus.PROCESSING:
            started_stamps.append(job.processing_started_at)
        return job

    job_store.update_status = recording

    outcomes = await asyncio.gather(
        container.processor.process_message(first),
        container.processor.process_message(second),
    )

    assert outcomes == [ProcessingOutcome.COMPLETED, ProcessingOutcome.COMPLETED]
    assert {first.receipt_handle, second.receipt_handle} <= set(message_queue.deleted)
    job = await job_store.require("job-1")
    assert job.status == JobStatus.COMPLETED
    assert job.error is None
    assert job.file_name == "upload"
    assert job.created_at == created.created_at
    assert job.content_ref == created.content_ref
    assert len(started_stamps) == 2
    assert started_stamps[0] is not None
    assert started_stamps[1] == started_stamps[0]
    assert job.processing_started_at == started_stamps[0]


@pytest.mark.asyncio
async def test_missing_job_is_discarded(container, blob_store, message_queue, bedrock_runtime):
    message = message_queue.push({"jobId": "ghost", "messageType": "text_review", "contentRef": "uploads/ghost"})

    outcome = await container.processor.process_message(message)

    assert outcome == ProcessingOutcome.SKIPPED
    assert message.receipt_handle in message_queue.deleted
    assert "reviews/ghost.json" not in blob_store.objects
    assert bedrock_runtime.calls == []


@pytest.mark.asyncio
async def test_visibility_heartbeat(settings, blob_store, message_queue, clock):
    """Test long reviews keep extending message visibility."""
    queue_settings = settings.queue.model_copy(update={"visibility_heartbeat_seconds": 0.02})
    container = assemble_worker(
        settings.model_copy(update={"queue": queue_settings}),
        blob_store,
        message_queue,
        SlowBedrockRuntime(),
        clock=clock,
    )
    message = await _submit_text(container, blob_store, message_queue, "job-1", "Some content")

    outcome = await container.processor.process_message(message)
    extended = len(message_queue.extended)

    assert outcome == ProcessingOutcome.COMPLETED
    assert extended >= 1
    assert message_queue.extended[0] == (message.receipt_handle, queue_settings.visibility_timeout)
    assert len(message_queue.extended) == extended
