"""
Worker status and outcome models.

Dependencies: pydantic
System role: Observable state of the queue consumer
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ProcessingOutcome(str, Enum):
    """What happened to one queue message."""

    COMPLETED = "completed"
    FAILED = "failed"
    MALFORMED = "malformed"
    SKIPPED = "skipped"
    RETRY = "retry"


class WorkerStatus(BaseModel):
    """Snapshot of the consumer's state."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    running: bool
    max_concurrent_requests: int
    current_concurrent_requests: int
    queued_messages: int
