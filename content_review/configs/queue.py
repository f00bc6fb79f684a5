"""
Queue consumer configuration.

Settings for the SQS queue, the worker pool size and the poll loop
backoff policy.

Dependencies: pydantic_settings
System role: Worker and poll loop configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from content_review.configs.base import BaseSettings


class QueueSettings(BaseSettings):
    """SQS consumer settings."""

    model_config = SettingsConfigDict(
        env_prefix="SQS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    queue_url: str = Field(
        default="",
        description="SQS queue URL for review jobs",
    )
    worker_enabled: bool = Field(
        default=True,
        description="Start the queue consumer with the API process",
    )
    max_messages: int = Field(
        default=10,
        ge=1,
        le=10,
        description="Maximum messages per receive call (SQS cap is 10)",
    )
    wait_time_seconds: int = Field(
        default=20,
        ge=0,
        le=20,
        description="Long-poll wait time for receive calls",
    )
    visibility_timeout: int = Field(
        default=300,
        ge=0,
        description="Visibility timeout applied to received messages",
    )
    idle_poll_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Pause after an empty receive when wait_time_seconds is 0",
    )
    max_concurrent_requests: int = Field(
        default=5,
        ge=1,
        description="Maximum number of jobs processed concurrently",
    )
    backoff_initial_seconds: float = Field(
        default=5.0,
        ge=0,
        description="First backoff delay after a transient queue error",
    )
    backoff_max_seconds: float = Field(
        default=30.0,
        ge=0,
        description="Upper bound of the poll loop backoff delay",
    )
    max_consecutive_fatal_errors: int = Field(
        default=3,
        ge=1,
        description="Consecutive fatal queue errors before the consumer stops",
    )
    visibility_heartbeat_seconds: float = Field(
        default=0.0,
        ge=0,
        description="Extend message visibility at this interval while a job runs (0 disables)",
    )
