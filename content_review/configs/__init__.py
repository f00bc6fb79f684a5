"""
Configuration management module.

Provides centralized, type-safe configuration using Pydantic Settings.
All config modules support environment variable mapping with validation.
"""

from content_review.configs.aws import AWSSettings
from content_review.configs.bedrock import BedrockSettings
from content_review.configs.queue import QueueSettings
from content_review.configs.settings import Settings, get_settings
from content_review.configs.storage import StorageSettings

__all__ = [
    "AWSSettings",
    "BedrockSettings",
    "QueueSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
]
