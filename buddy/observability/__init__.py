"""
Observability module.

Provides structured logging, correlation ID tracking, request logging and
operation timing metrics.
"""

from buddy.observability.correlation import (
    correlation_scope,
    get_correlation_id,
    set_correlation_id,
)
from buddy.observability.logger import configure_logging
from buddy.observability.metrics import MetricsStore

__all__ = [
    "MetricsStore",
    "configure_logging",
    "correlation_scope",
    "get_correlation_id",
    "set_correlation_id",
]
