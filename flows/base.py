"""
Public entry point wrapper for flows.

``flow_entry_point`` turns an ``async`` flow body into a public operation
that validates its input, shares identical in-flight calls, logs and times
the call, and converts every exception into a ``FlowError``. Public flows
never raise.
"""

import asyncio
import hashlib
import json
from functools import wraps
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Type, Union

from pydantic import ValidationError

from config import settings
from flows.invoker import ModelInvoker
from flows.schemas import FlowError, FlowModel
from utils.core.llm import UseCase
from utils.errors import (
    DEFAULT_MESSAGES,
    ErrorCategory,
    ErrorMessages,
    FlowInputError,
    get_error_handler,
)
from utils.monitoring import FlowTimer, get_logger, track_flow

logger = get_logger(__name__)

FlowBody = Callable[[Any, ModelInvoker], Awaitable[FlowModel]]


def fingerprint(flow: str, payload: Mapping[str, Any]) -> str:
    """Stable key for a flow call: flow name plus canonical JSON of the input."""
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.md5(f"{flow}:{canonical}".encode()).hexdigest()


class InFlightCalls:
    """At most one running call per fingerprint; later callers await the first."""

    def __init__(self):
        self._tasks: Dict[str, asyncio.Task] = {}

    def __len__(self) -> int:
        return len(self._tasks)

    async def run(
        self,
        key: str,
        factory: Callable[[], Awaitable[Any]]
    ) -> "tuple[Any, bool]":
        """Run ``factory`` or join the identical call already running."""
        task = self._tasks.get(key)
        if task is not None:
            return await asyncio.shield(task), True

        async def owner():
            try:
                return await factory()
            finally:
                self._tasks.pop(key, None)

        task = asyncio.ensure_future(owner())
        self._tasks[key] = task
        return await asyncio.shield(task), False


_in_flight = InFlightCalls()


def get_in_flight_calls() -> InFlightCalls:
    return _in_flight


def _coerce_input(model: Type[FlowModel], data: Any, fields: Dict[str, Any]) -> FlowModel:
    if isinstance(data, model) and not fields:
        return data
    if isinstance(data, FlowModel):
        data = data.model_dump(by_alias=True)
    payload = {**(data or {}), **fields}
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise FlowInputError(
            f"Some of the information provided is not valid ({location}: {first.get('msg', 'invalid value')}). "
            "Please check it and try again.",
            field=location or None
        ) from e


def flow_entry_point(
    name: str,
    input_model: Type[FlowModel],
    messages: ErrorMessages = DEFAULT_MESSAGES,
    use_case: UseCase = "study",
):
    """
    Decorator creating a public flow operation.

    Usage:
        @flow_entry_point("summarize", SummarizeDocumentInput)
        async def summarize_document(data, invoker):
            ...

        result = await summarize_document({"documentContent": "..."})
    """
    def decorator(body: FlowBody) -> Callable[..., Awaitable[Union[FlowModel, FlowError]]]:
        @wraps(body)
        async def wrapper(
            data: Optional[Union[FlowModel, Mapping[str, Any]]] = None,
            *,
            invoker: Optional[ModelInvoker] = None,
            **fields
        ) -> Union[FlowModel, FlowError]:
            invoker = invoker or ModelInvoker(use_case=use_case)
            deduplicated = False
            success = False
            logger.flow_start(name)

            with FlowTimer(name) as timer:
                try:
                    flow_input = _coerce_input(input_model, data, fields)
                    if settings.flow_dedupe_enabled:
                        key = fingerprint(name, flow_input.model_dump(mode="json"))
                        result, deduplicated = await _in_flight.run(
                            key, lambda: body(flow_input, invoker)
                        )
                        if deduplicated:
                            result = result.model_copy(deep=True)
                    else:
                        result = await body(flow_input, invoker)
                    success = not isinstance(result, FlowError)
                except Exception as e:
                    get_error_handler().log_error(e, context={"flow": name})
                    message, category = messages.message_for(e)
                    result = FlowError(error=message, category=category)

            track_flow(name, timer.latency_ms, success, deduplicated)
            logger.flow_end(
                name,
                success=success,
                latency_ms=timer.latency_ms,
                deduplicated=deduplicated,
                category=None if success else _category_of(result),
            )
            return result

        wrapper.flow_name = name
        wrapper.body = body
        wrapper.input_model = input_model
        wrapper.messages = messages
        return wrapper

    return decorator


def _category_of(result: Any) -> Optional[str]:
    if isinstance(result, FlowError):
        return result.category.value
    return ErrorCategory.UNKNOWN.value
