"""
AI reviewer configuration.

Settings for the Bedrock Converse call: model, guardrail, inference
parameters and client timeouts.

Dependencies: pydantic_settings
System role: AI reviewer configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from content_review.configs.base import BaseSettings


class BedrockSettings(BaseSettings):
    """Bedrock runtime settings."""

    model_config = SettingsConfigDict(
        env_prefix="BEDROCK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    enabled: bool = Field(
        default=True,
        description="Enable calls to the AI reviewer",
    )
    region: str = Field(
        default="eu-west-2",
        description="Region of the Bedrock runtime endpoint",
    )
    model_id: str = Field(
        default="eu.anthropic.claude-3-7-sonnet-20250219-v1:0",
        description="Model or inference profile identifier",
    )
    guardrail_id: str | None = Field(
        default=None,
        description="Guardrail identifier applied to every review call",
    )
    guardrail_version: str = Field(
        default="DRAFT",
        description="Guardrail version",
    )
    max_tokens: int = Field(
        default=4096,
        ge=1,
        description="Maximum tokens generated per review",
    )
    temperature: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Sampling temperature",
    )
    read_timeout_seconds: int = Field(
        default=60,
        ge=1,
        description="Socket read timeout for the runtime client",
    )
    connect_timeout_seconds: int = Field(
        default=10,
        ge=1,
        description="Connect timeout for the runtime client",
    )
    max_attempts: int = Field(
        default=2,
        ge=1,
        description="botocore standard-mode attempts per call",
    )
    prompt_cache_ttl_seconds: float = Field(
        default=300.0,
        ge=0,
        description="How long a loaded system prompt is reused",
    )
