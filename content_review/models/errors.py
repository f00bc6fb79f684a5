"""
Error taxonomy shared by the worker and the job store.

Stable labels recorded on failed jobs. Raw provider messages never
appear here; only the label and a user-safe message.

Dependencies: pydantic
System role: Data contract for job failure records
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ErrorCode(str, Enum):
    """Classified failure labels."""

    TIMEOUT = "Timeout"
    TOKEN_QUOTA_EXCEEDED = "TokenQuotaExceeded"
    RATE_LIMIT_EXCEEDED = "RateLimitExceeded"
    SERVICE_UNAVAILABLE = "ServiceUnavailable"
    ACCESS_DENIED = "AccessDenied"
    RESOURCE_NOT_FOUND = "ResourceNotFound"
    AUTHENTICATION_ERROR = "AuthenticationError"
    INVALID_REQUEST = "InvalidRequest"
    UNKNOWN_PROVIDER_ERROR = "UnknownProviderError"
    EXTRACTION_UNSUPPORTED_FORMAT = "ExtractionUnsupportedFormat"
    EXTRACTION_FAILED = "ExtractionFailed"
    MALFORMED_MESSAGE = "MalformedMessage"
    JOB_NOT_FOUND = "JobNotFound"
    CONTENT_BLOCKED = "ContentBlocked"
    PROCESSING_ERROR = "ProcessingError"


USER_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.TIMEOUT: "The review timed out. Please try again.",
    ErrorCode.TOKEN_QUOTA_EXCEEDED: "Token quota exceeded. Please try again later.",
    ErrorCode.RATE_LIMIT_EXCEEDED: "Rate limit reached. Please try again shortly.",
    ErrorCode.SERVICE_UNAVAILABLE: "The review service is temporarily unavailable.",
    ErrorCode.ACCESS_DENIED: "Access denied to the review service.",
    ErrorCode.RESOURCE_NOT_FOUND: "A required resource was not found.",
    ErrorCode.AUTHENTICATION_ERROR: "The review service could not authenticate.",
    ErrorCode.INVALID_REQUEST: "The review request was invalid.",
    ErrorCode.UNKNOWN_PROVIDER_ERROR: "The review service returned an unexpected error.",
    ErrorCode.EXTRACTION_UNSUPPORTED_FORMAT: "This file format is not supported.",
    ErrorCode.EXTRACTION_FAILED: "No text could be extracted from the content.",
    ErrorCode.MALFORMED_MESSAGE: "The review request could not be read.",
    ErrorCode.JOB_NOT_FOUND: "The review job no longer exists.",
    ErrorCode.CONTENT_BLOCKED: "The content was blocked by the safety policy.",
    ErrorCode.PROCESSING_ERROR: "Processing failed due to an internal error.",
}

# Classifications that can never succeed on redelivery
TERMINAL_CODES = frozenset(
    {
        ErrorCode.MALFORMED_MESSAGE,
        ErrorCode.EXTRACTION_UNSUPPORTED_FORMAT,
        ErrorCode.JOB_NOT_FOUND,
    }
)


class JobError(BaseModel):
    """Failure record stored on a failed job."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: str = Field(..., description="User-safe failure message")
    code: ErrorCode | None = Field(default=None, description="Classified failure label")

    @classmethod
    def for_code(cls, code: ErrorCode) -> "JobError":
        """Build the standard record for a classification."""
        return cls(message=USER_MESSAGES[code], code=code)
