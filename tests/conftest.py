"""
Shared test fixtures and configuration for entire test suite.

Provides: in-memory blob store and message queue doubles, a fake
bedrock-runtime client, deterministic clock, settings fixtures
Dependencies: pytest, pytest-asyncio
System role: Test infrastructure and fixture management
"""

import asyncio
import json
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from content_review.boundary.aws.interfaces import BlobLocation, BlobObject
from content_review.configs import BedrockSettings, QueueSettings, Settings, StorageSettings
from content_review.core.exceptions import BlobNotFoundError, BlobStoreError
from content_review.models.queue_message import QueueMessage

BASE_TIME = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """UTC clock advancing one second per call."""

    def __init__(self, start: datetime = BASE_TIME) -> None:
        self.current = start

    def __call__(self) -> datetime:
        self.current = self.current + timedelta(seconds=1)
        return self.current


@dataclass
class StoredBlob:
    data: bytes
    content_type: str
    metadata: dict[str, str]
    last_modified: datetime


class InMemoryBlobStore:
    """BlobStore double with monotonically increasing last-modified stamps."""

    def __init__(self) -> None:
        self.objects: dict[str, StoredBlob] = {}
        self.put_calls: list[str] = []
        self.delete_calls: list[str] = []
        self.fail_puts: dict[str, int] = {}
        self.fail_deletes: set[str] = set()
        self.fail_lists = False
        self._stamp = BASE_TIME

    def _next_stamp(self) -> datetime:
        self._stamp = self._stamp + timedelta(seconds=1)
        return self._stamp

    def seed(self, key: str, data: bytes | str, content_type: str = "application/octet-stream") -> None:
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.objects[key] = StoredBlob(data, content_type, {}, self._next_stamp())

    def record(self, key: str) -> dict[str, Any]:
        return json.loads(self.objects[key].data)

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> BlobLocation:
        self.put_calls.append(key)
        remaining = self.fail_puts.get(key, 0)
        if remaining:
            self.fail_puts[key] = remaining - 1
            raise BlobStoreError("simulated write failure", key=key)
        self.objects[key] = StoredBlob(data, content_type, dict(metadata or {}), self._next_stamp())
        return BlobLocation(key=key, location=f"memory://{key}")

    async def get(self, key: str) -> bytes:
        if key not in self.objects:
            raise BlobNotFoundError(f"Object not found: {key}", key=key)
        return self.objects[key].data

    async def delete(self, key: str) -> None:
        self.delete_calls.append(key)
        if key in self.fail_deletes:
            raise BlobStoreError("simulated delete failure", key=key)
        self.objects.pop(key, None)

    async def list_objects(self, prefix: str) -> list[BlobObject]:
        if self.fail_lists:
            raise BlobStoreError("simulated list failure")
        return [
            BlobObject(key=key, last_modified=blob.last_modified, size=len(blob.data))
            for key, blob in self.objects.items()
            if key.startswith(prefix)
        ]


class FakeMessageQueue:
    """MessageQueue double backed by a deque."""

    def __init__(self, empty_delay: float = 0.005) -> None:
        self.pending: deque[QueueMessage] = deque()
        self.deleted: list[str] = []
        self.extended: list[tuple[str, int]] = []
        self.receive_calls: list[int] = []
        self.receive_errors: deque[Exception] = deque()
        self.empty_delay = empty_delay
        self._counter = 0

    def push(self, body: dict[str, Any] | str) -> QueueMessage:
        self._counter += 1
        message = QueueMessage(
            message_id=f"msg-{self._counter}",
            receipt_handle=f"receipt-{self._counter}",
            body=body if isinstance(body, str) else json.dumps(body),
        )
        self.pending.append(message)
        return message

    async def receive(self, max_messages: int, wait_seconds: int) -> list[QueueMessage]:
        self.receive_calls.append(max_messages)
        if self.receive_errors:
            raise self.receive_errors.popleft()
        if not self.pending:
            await asyncio.sleep(self.empty_delay)
            return []
        count = min(max_messages, len(self.pending))
        return [self.pending.popleft() for _ in range(count)]

    async def delete(self, receipt_handle: str) -> bool:
        self.deleted.append(receipt_handle)
        return True

    async def extend_visibility(self, receipt_handle: str, timeout_seconds: int) -> None:
        self.extended.append((receipt_handle, timeout_seconds))


def converse_response(
    text: str = "Clarity: 4/5 - Clear",
    stop_reason: str = "end_turn",
    input_tokens: int = 120,
    output_tokens: int = 80,
    guardrail: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a Bedrock Converse response payload."""
    response: dict[str, Any] = {
        "output": {"message": {"role": "assistant", "content": [{"text": text}]}},
        "stopReason": stop_reason,
        "usage": {
            "inputTokens": input_tokens,
            "outputTokens": output_tokens,
            "totalTokens": input_tokens + output_tokens,
        },
    }
    if guardrail is not None:
        response["trace"] = {"guardrail": guardrail}
    return response


@dataclass
class FakeBedrockRuntime:
    """Synchronous bedrock-runtime double (called through asyncio.to_thread)."""

    response: dict[str, Any] = field(default_factory=converse_response)
    error: Exception | None = None
    calls: list[dict[str, Any]] = field(default_factory=list)

    def converse(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def message_queue() -> FakeMessageQueue:
    return FakeMessageQueue()


@pytest.fixture
def bedrock_runtime() -> FakeBedrockRuntime:
    return FakeBedrockRuntime()


@pytest.fixture
def storage_settings() -> StorageSettings:
    return StorageSettings(
        bucket="test-bucket",
        retention_limit=100,
        lookup_attempts=2,
        lookup_backoff_seconds=0,
        legacy_search_days=2,
    )


@pytest.fixture
def queue_settings() -> QueueSettings:
    return QueueSettings(
        queue_url="https://sqs.eu-west-2.amazonaws.com/000000000000/reviews",
        max_concurrent_requests=2,
        wait_time_seconds=0,
        idle_poll_seconds=0.01,
        backoff_initial_seconds=0.01,
        backoff_max_seconds=0.04,
        max_consecutive_fatal_errors=3,
        worker_enabled=False,
    )


@pytest.fixture
def bedrock_settings() -> BedrockSettings:
    return BedrockSettings(
        model_id="eu.anthropic.test-model",
        guardrail_id="gr-test",
        guardrail_version="1",
        max_tokens=1000,
        temperature=0.2,
    )


@pytest.fixture
def settings(storage_settings, queue_settings, bedrock_settings) -> Settings:
    return Settings(storage=storage_settings, queue=queue_settings, bedrock=bedrock_settings)
