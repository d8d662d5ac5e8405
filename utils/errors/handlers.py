"""Error handling utilities and decorators."""

import asyncio
import traceback
from typing import Optional, Callable, Any, Dict
from functools import wraps

from .exceptions import BaseApplicationError
from .classification import classify_exception
from utils.monitoring import get_logger, track_error

logger = get_logger(__name__)


class ErrorHandler:
    """
    Centralized error handling.

    Features:
    - Error logging
    - Error tracking
    - Error classification
    """

    def __init__(self, max_history: int = 100):
        self.error_count = 0
        self.error_history: list = []
        self.max_history = max_history

    def log_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None
    ):
        """
        Log error with context.

        Args:
            error: Exception to log
            context: Additional context
        """
        self.error_count += 1
        app_error = classify_exception(error)

        error_info = {
            "type": type(error).__name__,
            "category": app_error.category.value,
            "message": str(error),
            "context": context or {},
            "traceback": traceback.format_exc(),
        }

        self.error_history.append(error_info)
        if len(self.error_history) > self.max_history:
            self.error_history.pop(0)

        if isinstance(error, BaseApplicationError):
            logger.warning(
                f"{error.error_code}: {error.message}",
                category=error.category.value,
                details=error.details,
                **(context or {})
            )
        else:
            logger.error(
                f"{type(error).__name__}: {str(error)}",
                error=error,
                category=app_error.category.value,
                **(context or {})
            )

        track_error(app_error.category.value)

    def handle_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        default_response: Any = None
    ) -> Any:
        """
        Handle error and return response.

        Args:
            error: Exception to handle
            context: Additional context
            default_response: Default response on error

        Returns:
            Error response or default
        """
        self.log_error(error, context)

        if default_response is not None:
            return default_response

        return classify_exception(error).to_dict()

    def get_stats(self) -> Dict[str, Any]:
        """Get error statistics."""
        categories: Dict[str, int] = {}
        for error in self.error_history:
            categories[error["category"]] = categories.get(error["category"], 0) + 1

        return {
            "total_errors": self.error_count,
            "recent_errors": len(self.error_history),
            "categories": categories,
        }


# Global error handler
_global_handler: Optional[ErrorHandler] = None


def get_error_handler() -> ErrorHandler:
    """Get or create global error handler."""
    global _global_handler
    if _global_handler is None:
        _global_handler = ErrorHandler()
    return _global_handler


def handle_errors(
    default_response: Any = None,
    raise_on_error: bool = False
):
    """
    Decorator to log and convert errors in functions.

    Usage:
        @handle_errors(default_response=[])
        async def my_function():
            ...
    """
    def decorator(func: Callable) -> Callable:
        def _handle(e: Exception, args, kwargs):
            response = get_error_handler().handle_error(
                e,
                context={
                    "function": func.__name__,
                    "args": str(args)[:100],
                    "kwargs": str(kwargs)[:100],
                },
                default_response=default_response
            )
            if raise_on_error:
                raise e
            return response

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                return _handle(e, args, kwargs)

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                return _handle(e, args, kwargs)

        return async_wrapper if asyncio.iscoroutinefunction(func) else sync_wrapper

    return decorator
