"""
Observability module.

Provides structured logging setup, correlation ID tracking and
safe logging helpers.
"""

from content_review.observability.correlation import (
    CorrelationIdFilter,
    bind_correlation_id,
    clear_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from content_review.observability.logger import configure_logging

__all__ = [
    "CorrelationIdFilter",
    "bind_correlation_id",
    "clear_correlation_id",
    "configure_logging",
    "get_correlation_id",
    "set_correlation_id",
]
