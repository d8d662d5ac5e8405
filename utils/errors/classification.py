"""
Declarative error classification.

Raw exception text from the model client is matched against a small table of
substrings; the first matching rule decides the error class. Each category
maps to one user-facing sentence, overridable per flow.
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Type

from .exceptions import (
    BaseApplicationError,
    ErrorCategory,
    LLMError,
    ModelServiceError,
    RateLimitError,
    SafetyBlockedError,
)


@dataclass(frozen=True)
class ClassificationRule:
    """Case-insensitive substring rule mapping error text to an error class."""

    substrings: Tuple[str, ...]
    error_class: Type[LLMError]

    def matches(self, text: str) -> bool:
        lowered = text.lower()
        return any(needle in lowered for needle in self.substrings)


# Order matters: first match wins
CLASSIFICATION_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule(("rate limit", "quota", "503", "overloaded"), RateLimitError),
    ClassificationRule(("safety", "blocked"), SafetyBlockedError),
)

CATCH_ALL_TEMPLATE = "I encountered an issue. Details: {message}. Let's try that again."


def classify_exception(error: Exception) -> BaseApplicationError:
    """Convert any exception into an application error with a category."""
    if isinstance(error, BaseApplicationError):
        return error

    text = str(error) or type(error).__name__
    for rule in CLASSIFICATION_RULES:
        if rule.matches(text):
            return rule.error_class(text)
    return ModelServiceError(text)


@dataclass(frozen=True)
class ErrorMessages:
    """
    User-facing message per error category.

    A ``None`` entry means "use the error's own message" for invalid input and
    the catch-all template for everything else.
    """

    invalid_input: Optional[str] = None
    rate_limited: str = (
        "The AI service is currently busy or rate limits have been exceeded. "
        "Please try again in a few moments."
    )
    safety_blocked: str = (
        "Your request could not be processed due to safety filters. "
        "Please try different phrasing or content."
    )
    malformed_output: Optional[str] = None
    service_error: Optional[str] = None
    unknown: Optional[str] = None
    catch_all: str = CATCH_ALL_TEMPLATE

    def message_for(self, error: Exception) -> Tuple[str, ErrorCategory]:
        """Resolve the sentence shown to the user and the error category."""
        app_error = classify_exception(error)
        category = app_error.category
        override = getattr(self, category.value)

        if override:
            return override.format(message=app_error.message), category
        if category == ErrorCategory.INVALID_INPUT:
            return app_error.message, category
        return self.catch_all.format(message=app_error.message.rstrip(".")), category


DEFAULT_MESSAGES = ErrorMessages()
