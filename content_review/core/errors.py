"""
Failure classification.

Maps any exception raised during a review (domain errors, botocore
client/transport errors, asyncio timeouts) onto the stable ErrorCode
taxonomy and builds the user-safe JobError stored on failed jobs.

Dependencies: botocore, content_review.core.exceptions
System role: Single source of truth for error labels
"""

import asyncio

from botocore.exceptions import (
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    PartialCredentialsError,
    ReadTimeoutError,
)

from content_review.core.exceptions import ContentReviewException
from content_review.models.errors import ErrorCode, JobError

CLIENT_ERROR_CODES: dict[str, ErrorCode] = {
    "ServiceQuotaExceededException": ErrorCode.TOKEN_QUOTA_EXCEEDED,
    "ModelTimeoutException": ErrorCode.TIMEOUT,
    "RequestTimeout": ErrorCode.TIMEOUT,
    "ServiceUnavailableException": ErrorCode.SERVICE_UNAVAILABLE,
    "ServiceUnavailable": ErrorCode.SERVICE_UNAVAILABLE,
    "InternalServerException": ErrorCode.SERVICE_UNAVAILABLE,
    "InternalError": ErrorCode.SERVICE_UNAVAILABLE,
    "ModelNotReadyException": ErrorCode.SERVICE_UNAVAILABLE,
    "AccessDeniedException": ErrorCode.ACCESS_DENIED,
    "AccessDenied": ErrorCode.ACCESS_DENIED,
    "ResourceNotFoundException": ErrorCode.RESOURCE_NOT_FOUND,
    "NoSuchKey": ErrorCode.RESOURCE_NOT_FOUND,
    "NoSuchBucket": ErrorCode.RESOURCE_NOT_FOUND,
    "404": ErrorCode.RESOURCE_NOT_FOUND,
    "UnrecognizedClientException": ErrorCode.AUTHENTICATION_ERROR,
    "ExpiredTokenException": ErrorCode.AUTHENTICATION_ERROR,
    "InvalidClientTokenId": ErrorCode.AUTHENTICATION_ERROR,
    "ValidationException": ErrorCode.INVALID_REQUEST,
}

THROTTLING_CODES = frozenset(
    {
        "ThrottlingException",
        "Throttling",
        "TooManyRequestsException",
        "RequestThrottled",
        "SlowDown",
    }
)

# Keyword fallbacks for errors without a structured code
MESSAGE_KEYWORDS: tuple[tuple[tuple[str, ...], ErrorCode], ...] = (
    (("timed out", "timeout", "etimedout"), ErrorCode.TIMEOUT),
    (("token quota", "tokens per minute", "too many tokens"), ErrorCode.TOKEN_QUOTA_EXCEEDED),
    (("rate limit", "throttl"), ErrorCode.RATE_LIMIT_EXCEEDED),
    (("temporarily unavailable", "service unavailable"), ErrorCode.SERVICE_UNAVAILABLE),
    (("access denied",), ErrorCode.ACCESS_DENIED),
    (("credentials",), ErrorCode.AUTHENTICATION_ERROR),
    (("validation error",), ErrorCode.INVALID_REQUEST),
    (("not found",), ErrorCode.RESOURCE_NOT_FOUND),
)


def _is_token_quota_message(message: str) -> bool:
    lowered = message.lower()
    return "token" in lowered or "quota" in lowered


def classify_client_error(error: ClientError) -> ErrorCode:
    """
    Classify a botocore ClientError by its AWS error code.

    Args:
        error: ClientError raised by a boto3 call

    Returns:
        ErrorCode: Matching label, UnknownProviderError when unmapped
    """
    err = error.response.get("Error", {})
    code = str(err.get("Code", ""))
    message = str(err.get("Message", ""))

    if code in THROTTLING_CODES:
        if _is_token_quota_message(message):
            return ErrorCode.TOKEN_QUOTA_EXCEEDED
        return ErrorCode.RATE_LIMIT_EXCEEDED
    if code in CLIENT_ERROR_CODES:
        return CLIENT_ERROR_CODES[code]
    return _classify_message(message) or ErrorCode.UNKNOWN_PROVIDER_ERROR


def _classify_message(message: str) -> ErrorCode | None:
    lowered = message.lower()
    for keywords, code in MESSAGE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return code
    return None


def classify_exception(exc: BaseException) -> ErrorCode:
    """
    Map any exception raised during processing to an ErrorCode.

    Domain exceptions carry their own label; botocore transport errors
    and asyncio/builtin timeouts are mapped here. Anything else is an
    internal ProcessingError.

    Args:
        exc: Exception to classify

    Returns:
        ErrorCode: Stable failure label
    """
    if isinstance(exc, ContentReviewException):
        return exc.error_code
    if isinstance(exc, ClientError):
        return classify_client_error(exc)
    if isinstance(exc, (ReadTimeoutError, ConnectTimeoutError, asyncio.TimeoutError, TimeoutError)):
        return ErrorCode.TIMEOUT
    if isinstance(exc, (NoCredentialsError, PartialCredentialsError)):
        return ErrorCode.AUTHENTICATION_ERROR
    if isinstance(exc, EndpointConnectionError):
        return ErrorCode.SERVICE_UNAVAILABLE
    return ErrorCode.PROCESSING_ERROR


def to_job_error(exc: BaseException) -> JobError:
    """Build the user-safe failure record for an exception."""
    return JobError.for_code(classify_exception(exc))
