"""
AWS connection configuration.

Dependencies: pydantic_settings
System role: Shared region/endpoint settings for every boto3 client
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from content_review.configs.base import BaseSettings


class AWSSettings(BaseSettings):
    """Region and endpoint override shared by S3 and SQS clients."""

    model_config = SettingsConfigDict(
        env_prefix="AWS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    region: str = Field(default="eu-west-2", description="AWS region")
    endpoint_url: str | None = Field(
        default=None,
        description="Custom endpoint (e.g. LocalStack http://localhost:4566)",
    )
