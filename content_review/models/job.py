"""
Job record data contracts.

Defines the persisted Job entity, its status machine and the whitelist
patch type used for status updates. Immutable fields cannot be expressed
in a JobPatch at all; raw mappings are filtered through from_mapping().

Dependencies: pydantic
System role: Data contract for the job store
"""

import logging
from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel, to_snake

from content_review.models.errors import JobError
from content_review.models.review import ReviewResult

logger = logging.getLogger(__name__)


class JobStatus(str, Enum):
    """Job processing status."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class SourceType(str, Enum):
    """Origin of the reviewed content."""

    FILE = "file"
    TEXT = "text"


IMMUTABLE_FIELDS: frozenset[str] = frozenset(
    {"id", "created_at", "file_name", "file_size", "mime_type", "content_ref", "source_type"}
)

# Managed by the store itself, never by callers
STORE_MANAGED_FIELDS: frozenset[str] = frozenset(
    {"status", "updated_at", "processing_started_at", "processing_completed_at"}
)


class Job(BaseModel):
    """Durable review job record."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., min_length=1, description="Opaque job identifier")
    status: JobStatus = Field(default=JobStatus.PENDING)
    source_type: SourceType = Field(..., description="file or text")
    file_name: str | None = None
    file_size: int | None = None
    mime_type: str | None = None
    content_ref: str = Field(..., description="Blob store key of the uploaded content")
    created_at: datetime
    updated_at: datetime
    processing_started_at: datetime | None = None
    processing_completed_at: datetime | None = None
    result: ReviewResult | None = None
    error: JobError | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    def to_record(self) -> dict[str, Any]:
        """Serialize to the persisted JSON shape (camelCase keys)."""
        return self.model_dump(mode="json", by_alias=True)


class NewJob(BaseModel):
    """Input for creating a job."""

    id: str = Field(..., min_length=1)
    source_type: SourceType
    content_ref: str = Field(..., min_length=1)
    file_name: str | None = None
    file_size: int | None = None
    mime_type: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class JobPatch(BaseModel):
    """Mutable fields a status update may carry."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, alias_generator=to_camel)

    result: ReviewResult | None = None
    error: JobError | None = None
    metadata: dict[str, Any] | None = None

    @classmethod
    def from_mapping(cls, job_id: str, data: Mapping[str, Any]) -> "JobPatch":
        """
        Build a patch from an untyped mapping, dropping anything not mutable.

        Immutable and store-managed keys (camelCase or snake_case) are
        removed and each blocked attempt is logged.

        Args:
            job_id: Job the patch is destined for (for logging)
            data: Raw field mapping

        Returns:
            JobPatch: Patch holding only whitelisted fields
        """
        allowed = set(cls.model_fields)
        kept: dict[str, Any] = {}
        for key, value in data.items():
            name = to_snake(key)
            if name in IMMUTABLE_FIELDS:
                logger.warning(
                    "%s:from_mapping - Blocked attempt to modify immutable field",
                    __name__,
                    extra={"job_id": job_id, "field": key},
                )
                continue
            if name not in allowed:
                logger.warning(
                    "%s:from_mapping - Ignored non-patchable field",
                    __name__,
                    extra={"job_id": job_id, "field": key},
                )
                continue
            kept[name] = value
        return cls.model_validate(kept)


class JobPage(BaseModel):
    """One page of list_recent results."""

    jobs: list[Job] = Field(default_factory=list)
    next_cursor: str | None = None
    has_more: bool = False
