"""Error taxonomy, classification and handling."""

from .exceptions import (
    ErrorCategory,
    BaseApplicationError,
    FlowInputError,
    NotFoundError,
    DatabaseError,
    LLMError,
    RateLimitError,
    SafetyBlockedError,
    ModelServiceError,
    MalformedOutputError,
)
from .classification import (
    CATCH_ALL_TEMPLATE,
    CLASSIFICATION_RULES,
    DEFAULT_MESSAGES,
    ClassificationRule,
    ErrorMessages,
    classify_exception,
)
from .handlers import (
    ErrorHandler,
    get_error_handler,
    handle_errors,
)

__all__ = [
    # Exceptions
    "ErrorCategory",
    "BaseApplicationError",
    "FlowInputError",
    "NotFoundError",
    "DatabaseError",
    "LLMError",
    "RateLimitError",
    "SafetyBlockedError",
    "ModelServiceError",
    "MalformedOutputError",
    # Classification
    "CATCH_ALL_TEMPLATE",
    "CLASSIFICATION_RULES",
    "DEFAULT_MESSAGES",
    "ClassificationRule",
    "ErrorMessages",
    "classify_exception",
    # Handlers
    "ErrorHandler",
    "get_error_handler",
    "handle_errors",
]
