"""
AWS boundary modules.

Exports: S3BlobStore, SQSMessageQueue, BlobStore, MessageQueue, client factories
"""

from .interfaces import BlobLocation, BlobObject, BlobStore, MessageQueue
from .s3_client import S3BlobStore
from .session import create_bedrock_runtime_client, create_client
from .sqs_client import SQSMessageQueue

__all__ = [
    "BlobLocation",
    "BlobObject",
    "BlobStore",
    "MessageQueue",
    "S3BlobStore",
    "SQSMessageQueue",
    "create_bedrock_runtime_client",
    "create_client",
]
