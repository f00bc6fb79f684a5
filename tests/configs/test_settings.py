"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from content_review.configs import BedrockSettings, QueueSettings, Settings, StorageSettings


class TestQueueSettings:
    """Tests for SQS consumer settings."""

    def test_defaults(self, monkeypatch) -> None:
        monkeypatch.delenv("SQS_MAX_CONCURRENT_REQUESTS", raising=False)
        settings = QueueSettings(_env_file=None)
        assert settings.max_concurrent_requests == 5
        assert settings.backoff_initial_seconds == 5
        assert settings.backoff_max_seconds == 30
        assert settings.max_consecutive_fatal_errors == 3
        assert settings.visibility_heartbeat_seconds == 0

    def test_env_prefix(self, monkeypatch) -> None:
        """Values are read from SQS_-prefixed variables."""
        monkeypatch.setenv("SQS_QUEUE_URL", "https://sqs.test/queue")
        monkeypatch.setenv("SQS_MAX_CONCURRENT_REQUESTS", "3")
        settings = QueueSettings(_env_file=None)
        assert settings.queue_url == "https://sqs.test/queue"
        assert settings.max_concurrent_requests == 3


class TestStorageSettings:
    def test_retention_default(self, monkeypatch) -> None:
        monkeypatch.delenv("STORAGE_RETENTION_LIMIT", raising=False)
        assert StorageSettings(_env_file=None).retention_limit == 100


class TestBedrockSettings:
    def test_temperature_bounds(self) -> None:
        BedrockSettings(_env_file=None, temperature=0.0)
        with pytest.raises(ValidationError):
            BedrockSettings(_env_file=None, temperature=1.5)


class TestSettings:
    """Tests for the aggregated settings."""

    def test_log_level_normalised(self, monkeypatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", " debug ")
        assert Settings(_env_file=None).log_level == "DEBUG"

    def test_log_level_rejects_unknown(self, monkeypatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "verbose")
        with pytest.raises(ValidationError, match="log_level"):
            Settings(_env_file=None)

    def test_sections_keep_their_prefix(self, monkeypatch) -> None:
        """Shared base config does not leak unprefixed keys into sections."""
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        monkeypatch.setenv("STORAGE_BUCKET", "other-bucket")
        settings = Settings(_env_file=None)
        assert settings.log_level == "WARNING"
        assert settings.storage.bucket == "other-bucket"
        assert not hasattr(settings.storage, "log_level")
