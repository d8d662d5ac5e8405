"""Model invocation wrapper tests."""

import pytest
from unittest.mock import patch

from pydantic import Field

from flows.invoker import ModelInvoker, extract_json, message_text
from flows.prompting import RenderedPrompt
from flows.schemas import FlowModel
from utils.errors import MalformedOutputError, RateLimitError, SafetyBlockedError

from conftest import mock_llm, prompt_text


class Answer(FlowModel):
    answer_text: str = Field(description="The answer.")
    confidence: int = 0


PROMPT = RenderedPrompt(text="What is 2 + 2?")


class TestParsing:
    """JSON extraction from replies."""

    def test_plain_json(self):
        assert extract_json('{"a": 1}') == {"a": 1}

    def test_fenced_json(self):
        assert extract_json('```json\n{"a": 1}\n```') == {"a": 1}
        assert extract_json('```\n{"a": 2}\n```') == {"a": 2}

    def test_json_inside_prose(self):
        assert extract_json('Sure! Here it is: {"a": 3} Hope it helps.') == {"a": 3}

    def test_fence_inside_string_value(self):
        reply = "```json\n{\"code\": \"```python\\nprint(1)\\n```\", \"n\": 1}\n```"
        assert extract_json(reply) == {"code": "```python\nprint(1)\n```", "n": 1}

    def test_fenced_json_after_prose(self):
        assert extract_json('Here it is:\n```json\n{"a": 4}\n```\nEnjoy!') == {"a": 4}

    def test_unparseable(self):
        assert extract_json("") is None
        assert extract_json("no json here") is None

    def test_message_text_parts(self):
        class Message:
            content = [{"type": "text", "text": '{"a"'}, {"type": "text", "text": ": 1}"}]
        assert message_text(Message()) == '{"a": 1}'


class TestInvoke:
    """Single structured call."""

    @pytest.mark.asyncio
    async def test_valid_reply(self):
        invoker = ModelInvoker(llm=mock_llm({"answerText": "4", "confidence": 9}))

        result = await invoker.invoke(PROMPT, Answer, required=("answer_text",))

        assert result.answer_text == "4"
        assert invoker.llm.ainvoke.await_count == 1
        # Format instructions are appended to the prompt
        assert "answerText" in prompt_text(invoker)
        assert prompt_text(invoker).startswith("What is 2 + 2?")

    @pytest.mark.asyncio
    async def test_missing_required_field(self):
        invoker = ModelInvoker(llm=mock_llm({"answerText": "  ", "confidence": 1}))

        with pytest.raises(MalformedOutputError) as exc_info:
            await invoker.invoke(PROMPT, Answer, required=("answer_text",))
        assert exc_info.value.partial == {"answerText": "  ", "confidence": 1}

    @pytest.mark.asyncio
    async def test_not_json(self):
        invoker = ModelInvoker(llm=mock_llm("I think the answer is four."))

        with pytest.raises(MalformedOutputError):
            await invoker.invoke(PROMPT, Answer)

    @pytest.mark.asyncio
    async def test_schema_mismatch(self):
        invoker = ModelInvoker(llm=mock_llm({"answerText": "4", "confidence": "very"}))

        with pytest.raises(MalformedOutputError):
            await invoker.invoke(PROMPT, Answer)

    @pytest.mark.asyncio
    async def test_transport_errors_are_classified(self):
        invoker = ModelInvoker(llm=mock_llm(RuntimeError("503 The model is overloaded")))
        with pytest.raises(RateLimitError):
            await invoker.invoke_raw(PROMPT, Answer)

        invoker = ModelInvoker(llm=mock_llm(RuntimeError("Candidate was blocked due to SAFETY")))
        with pytest.raises(SafetyBlockedError):
            await invoker.invoke_raw(PROMPT, Answer)

    @pytest.mark.asyncio
    async def test_no_retries(self):
        invoker = ModelInvoker(llm=mock_llm(RuntimeError("quota"), {"answerText": "4"}))

        with pytest.raises(RateLimitError):
            await invoker.invoke(PROMPT, Answer)
        assert invoker.llm.ainvoke.await_count == 1

    def test_llm_built_lazily(self):
        with patch("flows.invoker.initialize_llm") as init:
            invoker = ModelInvoker(use_case="code")
            init.assert_not_called()
            assert invoker.llm is init.return_value
            init.assert_called_once_with(use_case="code")
