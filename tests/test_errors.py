"""Error classification and user-facing messages."""

import pytest

from utils.errors import (
    CATCH_ALL_TEMPLATE,
    DEFAULT_MESSAGES,
    ErrorCategory,
    ErrorMessages,
    FlowInputError,
    MalformedOutputError,
    ModelServiceError,
    NotFoundError,
    RateLimitError,
    SafetyBlockedError,
    classify_exception,
    get_error_handler,
)
from utils.monitoring import get_metrics_summary


class TestClassification:
    """Declarative substring table."""

    @pytest.mark.parametrize("text", [
        "429 Rate limit reached",
        "Resource has been exhausted (e.g. check QUOTA).",
        "503 Service Unavailable",
        "The model is overloaded. Please try again later.",
    ])
    def test_rate_limited(self, text):
        assert isinstance(classify_exception(RuntimeError(text)), RateLimitError)

    @pytest.mark.parametrize("text", ["Response was blocked", "SAFETY: finish reason"])
    def test_safety(self, text):
        assert isinstance(classify_exception(RuntimeError(text)), SafetyBlockedError)

    def test_other_errors_are_service_errors(self):
        error = classify_exception(ConnectionError("connection reset by peer"))
        assert isinstance(error, ModelServiceError)
        assert error.category == ErrorCategory.SERVICE_ERROR

    def test_application_errors_pass_through(self):
        original = FlowInputError("Document name cannot be empty.")
        assert classify_exception(original) is original


class TestMessages:
    """Per-category sentences."""

    def test_busy_message(self):
        message, category = DEFAULT_MESSAGES.message_for(RuntimeError("503 overloaded"))
        assert category == ErrorCategory.RATE_LIMITED
        assert "busy" in message

    def test_safety_message(self):
        message, category = DEFAULT_MESSAGES.message_for(RuntimeError("blocked"))
        assert category == ErrorCategory.SAFETY_BLOCKED
        assert "safety filters" in message

    def test_invalid_input_uses_own_message(self):
        message, category = DEFAULT_MESSAGES.message_for(FlowInputError("Please add some text."))
        assert message == "Please add some text."
        assert category == ErrorCategory.INVALID_INPUT

    def test_catch_all(self):
        message, category = DEFAULT_MESSAGES.message_for(ValueError("socket closed."))
        assert message == CATCH_ALL_TEMPLATE.format(message="socket closed")
        assert message == "I encountered an issue. Details: socket closed. Let's try that again."
        assert category == ErrorCategory.SERVICE_ERROR

    def test_override(self):
        messages = ErrorMessages(malformed_output="No summary this time.")
        message, category = messages.message_for(MalformedOutputError("empty"))
        assert message == "No summary this time."
        assert category == ErrorCategory.MALFORMED_OUTPUT


class TestErrorHandler:
    """Central logging and tracking."""

    def test_log_error_tracks_category(self):
        handler = get_error_handler()
        before = handler.get_stats()["total_errors"]

        handler.log_error(RuntimeError("quota exceeded"), context={"flow": "test"})

        stats = handler.get_stats()
        assert stats["total_errors"] == before + 1
        assert stats["categories"].get("rate_limited", 0) >= 1
        assert get_metrics_summary()["error_types"]["rate_limited"] == 1

    def test_to_dict(self):
        data = RateLimitError("slow down").to_dict()
        assert data["category"] == "rate_limited"
        assert data["status_code"] == 429
