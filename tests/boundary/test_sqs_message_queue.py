"""Unit tests for the SQS message queue client."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, NoCredentialsError

from content_review.boundary.aws.sqs_client import SQSMessageQueue
from content_review.core.exceptions import QueueFatalError, QueueTransientError

QUEUE_URL = "https://sqs.eu-west-2.amazonaws.com/000000000000/reviews"


@pytest.fixture
def sqs_client():
    return MagicMock()


@pytest.fixture
def queue(sqs_client):
    return SQSMessageQueue(sqs_client, QUEUE_URL, visibility_timeout=120)


def _client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


@pytest.mark.asyncio
async def test_receive_maps_messages(queue, sqs_client):
    """Test raw SQS messages become QueueMessage envelopes."""
    sqs_client.receive_message.return_value = {
        "Messages": [
            {
                "MessageId": "m-1",
                "ReceiptHandle": "r-1",
                "Body": '{"jobId": "job-1"}',
                "Attributes": {"ApproximateReceiveCount": "3"},
            }
        ]
    }

    messages = await queue.receive(max_messages=25, wait_seconds=20)

    assert len(messages) == 1
    assert messages[0].message_id == "m-1"
    assert messages[0].receive_count == 3
    kwargs = sqs_client.receive_message.call_args.kwargs
    assert kwargs["MaxNumberOfMessages"] == 10
    assert kwargs["WaitTimeSeconds"] == 20
    assert kwargs["VisibilityTimeout"] == 120


@pytest.mark.asyncio
async def test_receive_empty(queue, sqs_client):
    sqs_client.receive_message.return_value = {}
    assert await queue.receive(max_messages=5, wait_seconds=0) == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "code",
    ["AWS.SimpleQueueService.NonExistentQueue", "AccessDenied", "InvalidClientTokenId"],
)
async def test_receive_fatal_errors(queue, sqs_client, code):
    sqs_client.receive_message.side_effect = _client_error(code, "ReceiveMessage")

    with pytest.raises(QueueFatalError) as exc_info:
        await queue.receive(max_messages=1, wait_seconds=0)
    assert exc_info.value.aws_code == code


@pytest.mark.asyncio
async def test_receive_missing_credentials_is_fatal(queue, sqs_client):
    sqs_client.receive_message.side_effect = NoCredentialsError()

    with pytest.raises(QueueFatalError):
        await queue.receive(max_messages=1, wait_seconds=0)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        _client_error("ThrottlingException", "ReceiveMessage"),
        _client_error("InternalError", "ReceiveMessage"),
        EndpointConnectionError(endpoint_url=QUEUE_URL),
    ],
)
async def test_receive_transient_errors(queue, sqs_client, error):
    sqs_client.receive_message.side_effect = error

    with pytest.raises(QueueTransientError):
        await queue.receive(max_messages=1, wait_seconds=0)


@pytest.mark.asyncio
async def test_delete_message(queue, sqs_client):
    assert await queue.delete("r-1") is True
    sqs_client.delete_message.assert_called_once_with(QueueUrl=QUEUE_URL, ReceiptHandle="r-1")


@pytest.mark.asyncio
async def test_delete_with_expired_handle(queue, sqs_client):
    sqs_client.delete_message.side_effect = _client_error("ReceiptHandleIsInvalid", "DeleteMessage")
    assert await queue.delete("r-old") is False


@pytest.mark.asyncio
async def test_delete_other_failure(queue, sqs_client):
    sqs_client.delete_message.side_effect = _client_error("InternalError", "DeleteMessage")

    with pytest.raises(QueueTransientError):
        await queue.delete("r-1")


@pytest.mark.asyncio
async def test_extend_visibility(queue, sqs_client):
    await queue.extend_visibility("r-1", 300)

    sqs_client.change_message_visibility.assert_called_once_with(
        QueueUrl=QUEUE_URL, ReceiptHandle="r-1", VisibilityTimeout=300
    )
