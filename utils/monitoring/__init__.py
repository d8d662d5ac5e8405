"""Monitoring package: structured logging and flow metrics."""

from .logging import (
    get_logger,
    setup_logging,
    get_correlation_id,
    set_correlation_id,
    clear_correlation_id,
)
from .metrics import (
    FlowTimer,
    track_flow,
    track_fallback,
    track_error,
    get_metrics_summary,
    reset_metrics,
)

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    # Metrics
    "FlowTimer",
    "track_flow",
    "track_fallback",
    "track_error",
    "get_metrics_summary",
    "reset_metrics",
]
