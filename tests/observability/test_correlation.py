"""Tests for correlation ID propagation and log helpers."""

import logging

from content_review.observability.correlation import (
    CorrelationIdFilter,
    bind_correlation_id,
    clear_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from content_review.observability.log_utils import safe_log_value, truncate_handle


class TestCorrelationId:
    """Tests for the correlation ID context helpers."""

    def test_bind_restores_previous(self) -> None:
        """Binding a job id is undone when the block exits."""
        set_correlation_id("outer")
        with bind_correlation_id("job-1") as bound:
            assert bound == "job-1"
            assert get_correlation_id() == "job-1"
        assert get_correlation_id() == "outer"
        clear_correlation_id()
        assert get_correlation_id() == ""

    def test_filter_stamps_records(self) -> None:
        record = logging.LogRecord("test", logging.INFO, __file__, 1, "msg", None, None)
        with bind_correlation_id("job-9"):
            CorrelationIdFilter().filter(record)
        assert record.correlation_id == "job-9"

    def test_filter_placeholder_when_unset(self) -> None:
        clear_correlation_id()
        record = logging.LogRecord("test", logging.INFO, __file__, 1, "msg", None, None)
        CorrelationIdFilter().filter(record)
        assert record.correlation_id == "-"


class TestLogUtils:
    """Tests for safe logging helpers."""

    def test_safe_log_value(self) -> None:
        assert safe_log_value(None) == "None"
        assert safe_log_value([1, 2, 3]) == "list(3 items)"
        assert safe_log_value({"a": 1}) == "dict(1 keys)"
        assert safe_log_value("x" * 10, max_length=4).startswith("xxxx... (truncated")

    def test_truncate_handle(self) -> None:
        assert truncate_handle(None) == "None"
        assert truncate_handle("short") == "short"
        assert truncate_handle("a" * 30, keep=5) == "aaaaa..."
