"""Metrics collection and tracking."""

from typing import Dict, Any, Optional
from collections import defaultdict
import time

from config import settings


class MetricsCollector:
    """Lightweight metrics collector."""

    def __init__(self):
        self.call_count = 0
        self.error_count = 0
        self.fallback_count = 0
        self.total_latency_ms = 0
        self.flow_usage = defaultdict(int)
        self.flow_errors = defaultdict(int)
        self.flow_fallbacks = defaultdict(int)
        self.error_types = defaultdict(int)
        self.dedupe_hits = 0

    def track_flow(
        self,
        flow: str,
        latency_ms: int,
        success: bool,
        deduplicated: bool = False
    ):
        """Track a single flow call."""
        self.call_count += 1
        self.total_latency_ms += latency_ms
        self.flow_usage[flow] += 1

        if not success:
            self.error_count += 1
            self.flow_errors[flow] += 1

        if deduplicated:
            self.dedupe_hits += 1

    def track_fallback(self, flow: str):
        """Track substitution of a fallback value."""
        self.fallback_count += 1
        self.flow_fallbacks[flow] += 1

    def track_error(self, error_type: str):
        """Track error occurrence."""
        self.error_types[error_type] += 1

    def get_summary(self) -> Dict[str, Any]:
        """Get metrics summary."""
        avg_latency = (
            self.total_latency_ms / self.call_count
            if self.call_count > 0 else 0
        )

        return {
            "total_calls": self.call_count,
            "total_errors": self.error_count,
            "total_fallbacks": self.fallback_count,
            "error_rate_percent": round(
                (self.error_count / self.call_count * 100)
                if self.call_count > 0 else 0,
                2
            ),
            "avg_latency_ms": round(avg_latency, 2),
            "dedupe_hits": self.dedupe_hits,
            "flow_usage": dict(self.flow_usage),
            "flow_errors": dict(self.flow_errors),
            "flow_fallbacks": dict(self.flow_fallbacks),
            "error_types": dict(self.error_types),
        }

    def reset(self):
        """Reset all metrics."""
        self.call_count = 0
        self.error_count = 0
        self.fallback_count = 0
        self.total_latency_ms = 0
        self.flow_usage.clear()
        self.flow_errors.clear()
        self.flow_fallbacks.clear()
        self.error_types.clear()
        self.dedupe_hits = 0


# Global metrics collector
_metrics = MetricsCollector()


def track_flow(
    flow: str,
    latency_ms: int,
    success: bool,
    deduplicated: bool = False
):
    """Track flow call metrics."""
    if settings.enable_metrics:
        _metrics.track_flow(flow, latency_ms, success, deduplicated)


def track_fallback(flow: str):
    """Track fallback substitution."""
    if settings.enable_metrics:
        _metrics.track_fallback(flow)


def track_error(error_type: str):
    """Track error occurrence."""
    if settings.enable_metrics:
        _metrics.track_error(error_type)


def get_metrics_summary() -> Dict[str, Any]:
    """Get current metrics summary."""
    return _metrics.get_summary()


def reset_metrics():
    """Reset all metrics."""
    _metrics.reset()


class FlowTimer:
    """Context manager for timing flow calls."""

    def __init__(self, flow: str):
        self.flow = flow
        self.start_time: Optional[float] = None
        self.latency_ms = 0

    def __enter__(self):
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.latency_ms = int((time.time() - self.start_time) * 1000)
        return False
