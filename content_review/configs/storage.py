"""
Job store configuration.

Settings for the S3 bucket holding uploaded content, job records
and the reviewer system prompt.

Dependencies: pydantic_settings
System role: Job store and retention configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from content_review.configs.base import BaseSettings


class StorageSettings(BaseSettings):
    """S3 storage settings for job records and uploaded content."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    bucket: str = Field(
        default="content-review-data",
        description="S3 bucket for uploads, job records and prompts",
    )
    records_prefix: str = Field(
        default="reviews/",
        description="Key prefix under which job records are stored",
    )
    prompt_key: str = Field(
        default="prompts/system-prompt.md",
        description="Key of the reviewer system prompt",
    )
    retention_limit: int = Field(
        default=100,
        ge=1,
        description="Number of most recent jobs kept by the retention pass",
    )
    lookup_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts made when a freshly written record is not yet visible",
    )
    lookup_backoff_seconds: float = Field(
        default=0.5,
        ge=0,
        description="Initial wait between record lookup attempts",
    )
    legacy_search_days: int = Field(
        default=7,
        ge=0,
        description="Days of date-partitioned legacy keys searched on lookup miss",
    )
