"""Custom exception classes with detailed error information."""

from enum import Enum
from typing import Optional, Dict, Any
from datetime import datetime


class ErrorCategory(str, Enum):
    """Failure categories surfaced to callers of a flow."""

    INVALID_INPUT = "invalid_input"
    RATE_LIMITED = "rate_limited"
    SAFETY_BLOCKED = "safety_blocked"
    MALFORMED_OUTPUT = "malformed_output"
    SERVICE_ERROR = "service_error"
    UNKNOWN = "unknown"


class BaseApplicationError(Exception):
    """Base exception for all application errors."""

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize base error.

        Args:
            message: Error message
            error_code: Machine-readable error code
            status_code: HTTP status code
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow()

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary."""
        return {
            "error": self.error_code,
            "message": self.message,
            "category": self.category.value,
            "status_code": self.status_code,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class FlowInputError(BaseApplicationError):
    """Flow input rejected before any model call."""

    category = ErrorCategory.INVALID_INPUT

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message,
            error_code="INVALID_INPUT",
            status_code=400,
            **kwargs
        )
        self.details["field"] = field


class NotFoundError(BaseApplicationError):
    """Requested record or session does not exist for this owner."""

    category = ErrorCategory.INVALID_INPUT

    def __init__(
        self,
        message: str,
        resource: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message,
            error_code="NOT_FOUND",
            status_code=404,
            **kwargs
        )
        self.details["resource"] = resource


class DatabaseError(BaseApplicationError):
    """Database operation error."""

    category = ErrorCategory.SERVICE_ERROR

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, error_code="DATABASE_ERROR", **kwargs)
        self.details["operation"] = operation


class LLMError(BaseApplicationError):
    """LLM API error."""

    category = ErrorCategory.SERVICE_ERROR

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        error_code: str = "LLM_ERROR",
        **kwargs
    ):
        super().__init__(message, error_code=error_code, **kwargs)
        self.details["provider"] = provider
        self.details["model"] = model


class RateLimitError(LLMError):
    """Upstream rate limit, quota or overload."""

    category = ErrorCategory.RATE_LIMITED

    def __init__(self, message: str = "Rate limit exceeded", **kwargs):
        kwargs.setdefault("status_code", 429)
        super().__init__(message, error_code="RATE_LIMIT_EXCEEDED", **kwargs)


class SafetyBlockedError(LLMError):
    """Prompt or response rejected by the model's safety filters."""

    category = ErrorCategory.SAFETY_BLOCKED

    def __init__(self, message: str = "Content blocked by safety filters", **kwargs):
        kwargs.setdefault("status_code", 422)
        super().__init__(message, error_code="SAFETY_BLOCKED", **kwargs)


class ModelServiceError(LLMError):
    """Any other transport or service failure."""

    category = ErrorCategory.SERVICE_ERROR

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("status_code", 502)
        super().__init__(message, error_code="MODEL_SERVICE_ERROR", **kwargs)


class MalformedOutputError(LLMError):
    """Model reply missing required fields or not matching the schema."""

    category = ErrorCategory.MALFORMED_OUTPUT

    def __init__(
        self,
        message: str,
        partial: Optional[Dict[str, Any]] = None,
        **kwargs
    ):
        kwargs.setdefault("status_code", 502)
        super().__init__(message, error_code="MALFORMED_OUTPUT", **kwargs)
        self.partial = partial
