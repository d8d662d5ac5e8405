"""Public entry point wrapper: error conversion, metrics and in-flight sharing."""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from config import settings
from flows import FlowError, summarize_document
from flows.base import InFlightCalls, fingerprint, flow_entry_point, get_in_flight_calls
from flows.invoker import ModelInvoker
from flows.schemas import FlowModel
from utils.errors import ErrorCategory
from utils.monitoring import get_metrics_summary

from conftest import DOCUMENT, model_reply


class EchoInput(FlowModel):
    text: str = ""


class EchoOutput(FlowModel):
    echoed: str


@flow_entry_point("echo", EchoInput)
async def echo(data: EchoInput, invoker: ModelInvoker) -> EchoOutput:
    if data.text == "boom":
        raise KeyError("boom")
    return EchoOutput(echoed=data.text)


def slow_invoker(release: asyncio.Event, payload) -> ModelInvoker:
    async def respond(messages):
        await release.wait()
        if isinstance(payload, Exception):
            raise payload
        return model_reply(payload)

    llm = MagicMock()
    llm.ainvoke = AsyncMock(side_effect=respond)
    return ModelInvoker(llm=llm)


async def release_soon(release: asyncio.Event):
    await asyncio.sleep(0.01)
    release.set()


class TestEntryPoint:

    @pytest.mark.asyncio
    async def test_result_and_metadata(self):
        result = await echo({"text": "hi"})

        assert result == EchoOutput(echoed="hi")
        assert echo.flow_name == "echo"
        assert echo.input_model is EchoInput
        summary = get_metrics_summary()
        assert summary["flow_usage"] == {"echo": 1}
        assert summary["total_errors"] == 0

    @pytest.mark.asyncio
    async def test_never_raises(self):
        result = await echo(text="boom")

        assert isinstance(result, FlowError)
        # KeyError is not a model error; it is classified as a service failure
        assert result.category == ErrorCategory.SERVICE_ERROR
        assert result.error.startswith("I encountered an issue. Details:")
        assert get_metrics_summary()["flow_errors"] == {"echo": 1}

    @pytest.mark.asyncio
    async def test_accepts_model_instance(self):
        result = await echo(EchoInput(text="model"))
        assert result.echoed == "model"

    def test_fingerprint(self):
        assert fingerprint("a", {"x": 1, "y": 2}) == fingerprint("a", {"y": 2, "x": 1})
        assert fingerprint("a", {"x": 1}) != fingerprint("b", {"x": 1})


class TestInFlightSharing:

    @pytest.mark.asyncio
    async def test_identical_calls_share_one_model_call(self):
        release = asyncio.Event()
        first = slow_invoker(release, {"summary": "Shared summary."})
        second = slow_invoker(release, {"summary": "Never produced."})
        payload = {"documentContent": DOCUMENT}

        a, b, _ = await asyncio.gather(
            summarize_document(payload, invoker=first),
            summarize_document(payload, invoker=second),
            release_soon(release),
        )

        assert a.summary == b.summary == "Shared summary."
        assert a is not b
        assert first.llm.ainvoke.await_count == 1
        assert second.llm.ainvoke.await_count == 0
        assert get_metrics_summary()["dedupe_hits"] == 1
        assert len(get_in_flight_calls()) == 0

    @pytest.mark.asyncio
    async def test_different_inputs_are_not_shared(self):
        release = asyncio.Event()
        first = slow_invoker(release, {"summary": "One."})
        second = slow_invoker(release, {"summary": "Two."})

        a, b, _ = await asyncio.gather(
            summarize_document({"documentContent": DOCUMENT}, invoker=first),
            summarize_document({"documentContent": DOCUMENT + " More."}, invoker=second),
            release_soon(release),
        )

        assert (a.summary, b.summary) == ("One.", "Two.")

    @pytest.mark.asyncio
    async def test_shared_failure(self):
        release = asyncio.Event()
        invoker = slow_invoker(release, RuntimeError("503 overloaded"))
        payload = {"documentContent": DOCUMENT}

        a, b, _ = await asyncio.gather(
            summarize_document(payload, invoker=invoker),
            summarize_document(payload, invoker=invoker),
            release_soon(release),
        )

        assert a.category == b.category == ErrorCategory.RATE_LIMITED
        assert invoker.llm.ainvoke.await_count == 1

    @pytest.mark.asyncio
    async def test_disabled(self, monkeypatch):
        monkeypatch.setattr(settings, "flow_dedupe_enabled", False)
        release = asyncio.Event()
        invoker = slow_invoker(release, {"summary": "Same."})
        payload = {"documentContent": DOCUMENT}

        await asyncio.gather(
            summarize_document(payload, invoker=invoker),
            summarize_document(payload, invoker=invoker),
            release_soon(release),
        )

        assert invoker.llm.ainvoke.await_count == 2

    @pytest.mark.asyncio
    async def test_in_flight_calls(self):
        calls = InFlightCalls()
        started = 0

        async def work():
            nonlocal started
            started += 1
            await asyncio.sleep(0.01)
            return "done"

        results = await asyncio.gather(calls.run("k", work), calls.run("k", work))

        assert results == [("done", False), ("done", True)]
        assert started == 1
        assert len(calls) == 0
