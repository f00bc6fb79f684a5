"""
boto3 client construction.

Builds every AWS client from settings in one place so endpoint and
region overrides (LocalStack) apply uniformly.

Dependencies: boto3, botocore
System role: Client factory used by the composition root
"""

import logging
from typing import Any

import boto3
from botocore.config import Config

from content_review.configs.aws import AWSSettings
from content_review.configs.bedrock import BedrockSettings

logger = logging.getLogger(__name__)


def create_client(service: str, aws: AWSSettings, **kwargs: Any) -> Any:
    """
    Create a boto3 client honouring region and endpoint overrides.

    Args:
        service: boto3 service name (s3, sqs, ...)
        aws: Shared AWS settings
        **kwargs: Extra boto3.client arguments

    Returns:
        botocore client
    """
    params: dict[str, Any] = {"region_name": aws.region, **kwargs}
    if aws.endpoint_url:
        params["endpoint_url"] = aws.endpoint_url
        if service == "s3":
            params["config"] = Config(s3={"addressing_style": "path"})
    logger.debug(
        f"{__name__}:create_client - Creating {service} client "
        f"region={params['region_name']} endpoint={aws.endpoint_url}"
    )
    return boto3.client(service, **params)


def create_bedrock_runtime_client(bedrock: BedrockSettings) -> Any:
    """Create the bedrock-runtime client with explicit timeouts and retry mode."""
    config = Config(
        read_timeout=bedrock.read_timeout_seconds,
        connect_timeout=bedrock.connect_timeout_seconds,
        retries={"max_attempts": bedrock.max_attempts, "mode": "standard"},
    )
    return boto3.client("bedrock-runtime", region_name=bedrock.region, config=config)
