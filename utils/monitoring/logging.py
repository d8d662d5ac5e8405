"""Structured logging with correlation IDs and flow-level context."""

import json
import logging
import sys
import uuid
from typing import Optional
from datetime import datetime
from pathlib import Path
from contextvars import ContextVar

from config import settings

# Correlation ID for the current request/task
correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)


def get_correlation_id() -> str:
    """Get or generate correlation ID for request tracking."""
    correlation_id = correlation_id_var.get()
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())
        correlation_id_var.set(correlation_id)
    return correlation_id


def set_correlation_id(correlation_id: str):
    """Set correlation ID for current context."""
    correlation_id_var.set(correlation_id)


def clear_correlation_id():
    """Clear correlation ID from context."""
    correlation_id_var.set(None)


class StructuredFormatter(logging.Formatter):
    """Formatter with structured output and correlation IDs."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.utcnow().isoformat()

        if settings.is_development:
            parts = [f"{timestamp} [{record.levelname}] {record.name} [{get_correlation_id()[:8]}]"]
            parts.append(f"  Message: {record.getMessage()}")
            if hasattr(record, "context"):
                parts.append(f"  Context: {record.context}")
            if record.exc_info:
                parts.append(f"  Error: {self.formatException(record.exc_info)}")
            return "\n".join(parts)

        log_data = {
            "timestamp": timestamp,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
        }
        if hasattr(record, "context"):
            log_data["context"] = record.context
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


def setup_logging():
    """Setup logging configuration."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, settings.log_level))
    if settings.is_development:
        console_handler.setFormatter(StructuredFormatter())
    else:
        console_handler.setFormatter(logging.Formatter(
            '%(asctime)s [%(levelname)s] %(name)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
    root_logger.addHandler(console_handler)

    if not settings.testing:
        try:
            log_dir = Path("logs")
            log_dir.mkdir(exist_ok=True)
            file_handler = logging.FileHandler(
                log_dir / "flows.log",
                mode='a',
                encoding='utf-8',
                delay=True
            )
            file_handler.setFormatter(StructuredFormatter())
            file_handler.setLevel(logging.INFO)
            root_logger.addHandler(file_handler)
        except OSError as e:
            print(f"Warning: Could not setup file logging: {e}", file=sys.stderr)

    root_logger.setLevel(getattr(logging, settings.log_level))

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("google").setLevel(logging.WARNING)


class FlowLogger:
    """Logger wrapper that accepts keyword context."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def info(self, message: str, **context):
        extra = {"context": context} if context else {}
        self.logger.info(message, extra=extra)

    def error(self, message: str, error: Optional[Exception] = None, **context):
        extra = {"context": context} if context else {}
        self.logger.error(message, exc_info=error, extra=extra)

    def warning(self, message: str, **context):
        extra = {"context": context} if context else {}
        self.logger.warning(message, extra=extra)

    def debug(self, message: str, **context):
        if settings.debug:
            extra = {"context": context} if context else {}
            self.logger.debug(message, extra=extra)

    def flow_start(self, flow: str, **context):
        """Log the start of a flow call."""
        self.info(f"Flow started: {flow}", flow=flow, **context)

    def flow_end(
        self,
        flow: str,
        success: bool,
        latency_ms: int,
        **context
    ):
        """Log flow completion."""
        level = "info" if success else "warning"
        getattr(self, level)(
            f"Flow {'completed' if success else 'failed'}: {flow}",
            flow=flow,
            success=success,
            latency_ms=latency_ms,
            **context
        )


def get_logger(name: str) -> FlowLogger:
    """Get logger instance for a module."""
    if not logging.getLogger().handlers:
        setup_logging()
    return FlowLogger(name)
