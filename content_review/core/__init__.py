"""
Core business logic module.

Contains the review pipeline domain logic: exception hierarchy, failure
classification, PII redaction, content extraction, the job store and
the AI reviewer client.
"""

from content_review.core.errors import classify_exception, to_job_error
from content_review.core.exceptions import (
    BlobNotFoundError,
    BlobStoreError,
    ContentBlockedError,
    ContentReviewException,
    ExtractionError,
    InvalidStatusTransitionError,
    JobNotFoundError,
    MalformedMessageError,
    QueueError,
    QueueFatalError,
    QueueTransientError,
    ReviewerError,
    UnsupportedFormatError,
)

__all__ = [
    # Exceptions
    "BlobNotFoundError",
    "BlobStoreError",
    "ContentBlockedError",
    "ContentReviewException",
    "ExtractionError",
    "InvalidStatusTransitionError",
    "JobNotFoundError",
    "MalformedMessageError",
    "QueueError",
    "QueueFatalError",
    "QueueTransientError",
    "ReviewerError",
    "UnsupportedFormatError",
    # Classification
    "classify_exception",
    "to_job_error",
]
