"""
Capability interfaces for external stores.

The worker and job store depend on these protocols only; the boto3
implementations and in-memory test doubles both satisfy them.

Dependencies: typing (stdlib)
System role: Seam between domain logic and AWS services
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from content_review.models.queue_message import QueueMessage


@dataclass(frozen=True)
class BlobLocation:
    key: str
    location: str


@dataclass(frozen=True)
class BlobObject:
    """Listing entry; last_modified is the store's own stamp."""

    key: str
    last_modified: datetime
    size: int = 0
    metadata: dict[str, str] = field(default_factory=dict)


class BlobStore(Protocol):
    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        metadata: dict[str, str] | None = None,
    ) -> BlobLocation: ...

    async def get(self, key: str) -> bytes: ...

    async def delete(self, key: str) -> None: ...

    async def list_objects(self, prefix: str) -> list[BlobObject]: ...


class MessageQueue(Protocol):
    async def receive(self, max_messages: int, wait_seconds: int) -> list[QueueMessage]: ...

    async def delete(self, receipt_handle: str) -> bool: ...

    async def extend_visibility(self, receipt_handle: str, timeout_seconds: int) -> None: ...
