"""
Exception hierarchy for the content review worker.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: content_review.models.errors
System role: Centralized exception handling across the application
"""

from typing import Any

from content_review.models.errors import ErrorCode


class ContentReviewException(Exception):
    """Base exception for all content review errors."""

    error_code: ErrorCode = ErrorCode.PROCESSING_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class MalformedMessageError(ContentReviewException):
    """Raised when a queue message body cannot be parsed or validated."""

    error_code = ErrorCode.MALFORMED_MESSAGE

    def __init__(
        self,
        message: str,
        message_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if message_id:
            details["message_id"] = message_id
        super().__init__(message, details)


class JobNotFoundError(ContentReviewException):
    """Raised when a job record does not exist."""

    error_code = ErrorCode.JOB_NOT_FOUND

    def __init__(self, job_id: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize job not found error.

        Args:
            job_id: ID of the missing job
            details: Additional context
        """
        details = details or {}
        details["job_id"] = job_id
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}", details)


class InvalidStatusTransitionError(ContentReviewException):
    """Raised when a status change is not an allowed edge."""

    def __init__(self, job_id: str, current: str, requested: str) -> None:
        self.job_id = job_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Invalid status transition {current} -> {requested}",
            {"job_id": job_id, "current": current, "requested": requested},
        )


class ExtractionError(ContentReviewException):
    """Raised when text cannot be extracted from content."""

    error_code = ErrorCode.EXTRACTION_FAILED

    def __init__(
        self,
        message: str,
        content_type: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize extraction error.

        Args:
            message: Error message
            content_type: Content type being extracted
            details: Additional context
        """
        details = details or {}
        if content_type:
            details["content_type"] = content_type
        self.content_type = content_type
        super().__init__(message, details)


class UnsupportedFormatError(ExtractionError):
    """Raised when no converter is registered for a content type."""

    error_code = ErrorCode.EXTRACTION_UNSUPPORTED_FORMAT


class ReviewerError(ContentReviewException):
    """Raised when the AI reviewer call fails."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize reviewer error.

        Args:
            code: Classified failure label
            message: Provider-side message (logged, never shown to users)
            details: Additional context
        """
        self.error_code = code
        details = details or {}
        details["code"] = code.value
        super().__init__(message, details)


class ContentBlockedError(ContentReviewException):
    """Raised when the safety guardrail blocks a review."""

    error_code = ErrorCode.CONTENT_BLOCKED


class BlobStoreError(ContentReviewException):
    """Raised when a blob store operation fails."""

    error_code = ErrorCode.SERVICE_UNAVAILABLE

    def __init__(
        self,
        message: str,
        key: str | None = None,
        details: dict[str, Any] | None = None,
        code: ErrorCode | None = None,
    ) -> None:
        """
        Initialize blob store error.

        Args:
            message: Error message
            key: Object key involved, if any
            details: Additional context
            code: Classified failure label (default: ServiceUnavailable)
        """
        details = details or {}
        if key:
            details["key"] = key
        if code is not None:
            self.error_code = code
            details["code"] = code.value
        self.key = key
        super().__init__(message, details)


class BlobNotFoundError(BlobStoreError):
    """Raised when a blob does not exist."""

    error_code = ErrorCode.RESOURCE_NOT_FOUND


class QueueError(ContentReviewException):
    """Base class for message queue failures."""

    error_code = ErrorCode.SERVICE_UNAVAILABLE

    def __init__(
        self,
        message: str,
        aws_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if aws_code:
            details["aws_code"] = aws_code
        self.aws_code = aws_code
        super().__init__(message, details)


class QueueTransientError(QueueError):
    """Queue failure expected to clear on retry (throttling, network)."""


class QueueFatalError(QueueError):
    """Queue failure that will not clear on its own (missing queue, access denied)."""
