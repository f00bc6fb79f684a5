"""
SQS message queue client.

Receives, deletes and extends visibility of review messages, and sorts
receive failures into fatal (missing queue, access denied, credentials)
and transient (everything else) so the poll loop can pick a policy.

Dependencies: boto3, botocore
System role: MessageQueue implementation for the queue consumer
"""

import asyncio
import logging
from typing import Any

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    NoCredentialsError,
    PartialCredentialsError,
)

from content_review.core.exceptions import QueueFatalError, QueueTransientError
from content_review.models.queue_message import QueueMessage
from content_review.observability.log_utils import truncate_handle

logger = logging.getLogger(__name__)

FATAL_CODES = frozenset(
    {
        "AWS.SimpleQueueService.NonExistentQueue",
        "QueueDoesNotExist",
        "AccessDenied",
        "AccessDeniedException",
        "InvalidClientTokenId",
        "UnrecognizedClientException",
    }
)

INVALID_HANDLE_CODES = frozenset({"ReceiptHandleIsInvalid", "InvalidParameterValue"})


class SQSMessageQueue:
    """Message queue over one SQS queue URL."""

    def __init__(self, sqs_client: Any, queue_url: str, visibility_timeout: int = 300) -> None:
        """
        Initialize SQS queue client.

        Args:
            sqs_client: Boto3 SQS client
            queue_url: Queue URL
            visibility_timeout: Visibility timeout requested on receive

        Raises:
            ValueError: If sqs_client or queue_url not provided
        """
        if not sqs_client:
            raise ValueError("sqs_client is required")
        if not queue_url:
            raise ValueError("queue_url is required")
        self._sqs = sqs_client
        self._queue_url = queue_url
        self._visibility_timeout = visibility_timeout

    async def receive(self, max_messages: int, wait_seconds: int) -> list[QueueMessage]:
        """
        Long-poll for messages.

        Args:
            max_messages: Upper bound on messages returned (1-10)
            wait_seconds: Long-poll wait time

        Returns:
            list[QueueMessage]: Received messages, possibly empty

        Raises:
            QueueFatalError: Queue missing, access denied or credentials invalid
            QueueTransientError: Throttling, timeouts, network or other service errors
        """
        try:
            response = await asyncio.to_thread(
                self._sqs.receive_message,
                QueueUrl=self._queue_url,
                MaxNumberOfMessages=max(1, min(max_messages, 10)),
                WaitTimeSeconds=wait_seconds,
                VisibilityTimeout=self._visibility_timeout,
                AttributeNames=["ApproximateReceiveCount"],
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in FATAL_CODES:
                logger.critical("%s:receive - Fatal queue error %s", __name__, code)
                raise QueueFatalError(f"Fatal queue error: {code}", aws_code=code) from e
            logger.warning("%s:receive - Transient queue error %s", __name__, code)
            raise QueueTransientError(f"Transient queue error: {code}", aws_code=code) from e
        except (NoCredentialsError, PartialCredentialsError) as e:
            logger.critical("%s:receive - %s", __name__, type(e).__name__)
            raise QueueFatalError("AWS credentials unavailable", aws_code=type(e).__name__) from e
        except BotoCoreError as e:
            logger.warning("%s:receive - %s: %s", __name__, type(e).__name__, e)
            raise QueueTransientError(f"Queue transport error: {type(e).__name__}") from e

        messages = []
        for raw in response.get("Messages", []):
            attributes = raw.get("Attributes", {})
            messages.append(
                QueueMessage(
                    message_id=raw["MessageId"],
                    receipt_handle=raw["ReceiptHandle"],
                    body=raw.get("Body", ""),
                    receive_count=int(attributes.get("ApproximateReceiveCount", 1)),
                )
            )
        if messages:
            logger.info(f"{__name__}:receive - Received {len(messages)} message(s)")
        return messages

    async def delete(self, receipt_handle: str) -> bool:
        """
        Delete a message.

        Returns:
            bool: True when deleted, False when the receipt handle was
            already invalid or expired

        Raises:
            QueueTransientError: Any other failure (message will be redelivered)
        """
        try:
            await asyncio.to_thread(
                self._sqs.delete_message,
                QueueUrl=self._queue_url,
                ReceiptHandle=receipt_handle,
            )
            return True
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code in INVALID_HANDLE_CODES:
                logger.warning(
                    "%s:delete - Receipt handle invalid or expired, message may be redelivered",
                    __name__,
                    extra={"receipt_handle": truncate_handle(receipt_handle), "aws_code": code},
                )
                return False
            raise QueueTransientError(f"Failed to delete message: {code}", aws_code=code) from e
        except BotoCoreError as e:
            raise QueueTransientError(f"Failed to delete message: {type(e).__name__}") from e

    async def extend_visibility(self, receipt_handle: str, timeout_seconds: int) -> None:
        """Reset a message's visibility timeout."""
        try:
            await asyncio.to_thread(
                self._sqs.change_message_visibility,
                QueueUrl=self._queue_url,
                ReceiptHandle=receipt_handle,
                VisibilityTimeout=timeout_seconds,
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            raise QueueTransientError(f"Failed to extend visibility: {code}", aws_code=code) from e
        except BotoCoreError as e:
            raise QueueTransientError(f"Failed to extend visibility: {type(e).__name__}") from e
