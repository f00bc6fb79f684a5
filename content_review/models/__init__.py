"""
Domain data models.

Exports: Job, JobStatus, SourceType, NewJob, JobPatch, JobPage, JobError,
ErrorCode, PII and review contracts, queue messages, worker status.
"""

from content_review.models.errors import ErrorCode, JobError, TERMINAL_CODES, USER_MESSAGES
from content_review.models.job import (
    IMMUTABLE_FIELDS,
    Job,
    JobPage,
    JobPatch,
    JobStatus,
    NewJob,
    SourceType,
)
from content_review.models.pii import DetectedPII, GuardrailEntity, PIIReport, RedactionResult
from content_review.models.queue_message import QueueMessage, ReviewMessage
from content_review.models.review import (
    ContentIssue,
    Improvement,
    ParsedReview,
    ReviewedContent,
    ReviewOutcome,
    ReviewResult,
    SafetyVerdict,
    ScoreEntry,
    TokenUsage,
)
from content_review.models.worker import ProcessingOutcome, WorkerStatus

__all__ = [
    "ContentIssue",
    "DetectedPII",
    "ErrorCode",
    "GuardrailEntity",
    "IMMUTABLE_FIELDS",
    "Improvement",
    "Job",
    "JobError",
    "JobPage",
    "JobPatch",
    "JobStatus",
    "NewJob",
    "PIIReport",
    "ParsedReview",
    "ProcessingOutcome",
    "QueueMessage",
    "RedactionResult",
    "ReviewMessage",
    "ReviewOutcome",
    "ReviewResult",
    "ReviewedContent",
    "SafetyVerdict",
    "ScoreEntry",
    "SourceType",
    "TERMINAL_CODES",
    "TokenUsage",
    "USER_MESSAGES",
    "WorkerStatus",
]
