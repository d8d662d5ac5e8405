"""Code Wiz, code lesson and language listing tests."""

import json

import pytest

from flows import (
    FlowError,
    analyze_code,
    explain_code,
    get_code_teaching_step,
    get_programming_languages,
    optimize_code,
)
from flows.code_lesson import CODE_LESSON_MESSAGES
from flows.code_wiz import FALLBACK_ANALYSIS, FALLBACK_EXPLANATION, FALLBACK_OPTIMIZATION
from flows.languages import FALLBACK_LANGUAGES
from utils.errors import ErrorCategory

from conftest import prompt_text

CODE = "def add(a, b):\n    return a + b"


class TestCodeWiz:

    @pytest.mark.asyncio
    async def test_blank_code_messages(self, make_invoker):
        invoker = make_invoker()

        analysis = await analyze_code({"code": " "}, invoker=invoker)
        explanation = await explain_code({"code": ""}, invoker=invoker)
        optimized = await optimize_code({"code": "\n"}, invoker=invoker)

        assert analysis.analysis == "It seems there's no code provided for analysis. Please input some code!"
        assert explanation.explanation == "There's no code here to explain. Please provide some code first!"
        assert optimized.optimized_code == ""
        assert optimized.optimization_summary == "No code was provided to optimize. Please input some code."
        invoker.llm.ainvoke.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_analyze(self, make_invoker):
        invoker = make_invoker({"analysis": "Adds two numbers."})

        result = await analyze_code({"code": CODE, "languageHint": "Python"}, invoker=invoker)

        assert result.analysis == "Adds two numbers."
        text = prompt_text(invoker)
        assert "The code is written in Python." in text
        assert CODE in text

    @pytest.mark.asyncio
    async def test_no_language_hint(self, make_invoker):
        invoker = make_invoker({"explanation": "Line one defines a function."})

        await explain_code({"code": CODE}, invoker=invoker)

        text = prompt_text(invoker)
        assert "The code is written in" not in text
        assert "None" not in text.split("Code:")[1]

    @pytest.mark.asyncio
    async def test_fallbacks(self, make_invoker):
        analysis = await analyze_code({"code": CODE}, invoker=make_invoker({}))
        explanation = await explain_code({"code": CODE}, invoker=make_invoker({"explanation": ""}))

        assert analysis.analysis == FALLBACK_ANALYSIS
        assert explanation.explanation == FALLBACK_EXPLANATION

    @pytest.mark.asyncio
    async def test_optimize(self, make_invoker):
        result = await optimize_code(
            {"code": CODE},
            invoker=make_invoker({
                "optimizedCode": "def add(a: int, b: int) -> int:\n    return a + b",
                "optimizationSummary": "Added type hints.",
            }),
        )
        assert result.optimization_summary == "Added type hints."
        assert "-> int" in result.optimized_code

    @pytest.mark.asyncio
    async def test_optimize_fallback_keeps_original(self, make_invoker):
        result = await optimize_code({"code": CODE}, invoker=make_invoker("not json"))

        assert result.optimized_code == CODE
        assert result.optimization_summary == FALLBACK_OPTIMIZATION

    @pytest.mark.asyncio
    async def test_service_error(self, make_invoker):
        result = await explain_code({"code": CODE}, invoker=make_invoker(ConnectionError("reset by peer")))

        assert isinstance(result, FlowError)
        assert result.category == ErrorCategory.SERVICE_ERROR
        assert result.error == "I encountered an issue. Details: reset by peer. Let's try that again."


STEP = {
    "topic": "Printing output",
    "explanation": "In Python we use print to show text.",
    "codeExample": "print('Selam')",
    "challenge": "Print your name.",
    "nextTopicSuggestion": "Variables",
    "isLastStepInTopic": True,
}


class TestCodeLesson:

    @pytest.mark.asyncio
    async def test_step(self, make_invoker):
        invoker = make_invoker(STEP)

        result = await get_code_teaching_step({"language": "Python"}, invoker=invoker)

        assert result.topic == "Printing output"
        assert result.is_last_step_in_topic is True
        text = prompt_text(invoker)
        assert "Language to Teach: 'Python'" in text
        assert "Current Broader Topic: 'Syntax Basics'" in text
        assert "previous answer or code submission" not in text

    @pytest.mark.asyncio
    async def test_forwards_previous_answer(self, make_invoker):
        invoker = make_invoker(STEP)

        await get_code_teaching_step(
            {
                "language": "Python",
                "currentTopic": "Variables",
                "previousExplanation": "Variables hold values.",
                "userAnswerOrCode": "x = 5",
            },
            invoker=invoker,
        )

        text = prompt_text(invoker)
        assert "Variables hold values." in text
        assert "x = 5" in text

    @pytest.mark.asyncio
    async def test_missing_fields_is_error(self, make_invoker):
        result = await get_code_teaching_step(
            {"language": "Python"},
            invoker=make_invoker({"topic": "Printing", "explanation": "Use print."}),
        )

        assert isinstance(result, FlowError)
        assert result.error == CODE_LESSON_MESSAGES.malformed_output

    @pytest.mark.asyncio
    async def test_blank_language(self, make_invoker):
        result = await get_code_teaching_step({"language": " "}, invoker=make_invoker())
        assert result.category == ErrorCategory.INVALID_INPUT

    @pytest.mark.asyncio
    async def test_busy(self, make_invoker):
        result = await get_code_teaching_step(
            {"language": "Python"},
            invoker=make_invoker(RuntimeError("RESOURCE_EXHAUSTED: quota")),
        )
        assert result.error.startswith("I'm currently very busy helping other students")


class TestLanguages:

    @pytest.mark.asyncio
    async def test_languages(self, make_invoker):
        result = await get_programming_languages(
            {"category": "backend"},
            invoker=make_invoker({"languages": ["Python", "Go", " ", "Java"]}),
        )
        assert result.languages == ["Python", "Go", "Java"]

    @pytest.mark.asyncio
    async def test_fallback(self, make_invoker):
        result = await get_programming_languages({"category": "frontend"}, invoker=make_invoker({"languages": []}))
        assert result.languages == FALLBACK_LANGUAGES["frontend"]

    @pytest.mark.asyncio
    async def test_unknown_category(self, make_invoker):
        result = await get_programming_languages({"category": "mobile"}, invoker=make_invoker())
        assert result.category == ErrorCategory.INVALID_INPUT

    @pytest.mark.asyncio
    async def test_non_list_falls_back(self, make_invoker):
        result = await get_programming_languages(
            {"category": "backend"},
            invoker=make_invoker({"languages": "Python, Java"}),
        )
        assert result.languages == FALLBACK_LANGUAGES["backend"]


class TestFencedCodeInReply:

    @pytest.mark.asyncio
    async def test_code_example_with_fence(self, make_invoker):
        step = dict(STEP, codeExample="```python\nprint('hi')\n```")
        reply = "```json\n" + json.dumps(step) + "\n```"

        result = await get_code_teaching_step({"language": "Python"}, invoker=make_invoker(reply))

        assert result.code_example == "```python\nprint('hi')\n```"
        assert result.topic == "Printing output"

    @pytest.mark.asyncio
    async def test_optimized_code_with_fence(self, make_invoker):
        reply = "Here you go:\n```json\n" + json.dumps({
            "optimizedCode": "```python\ndef add(a, b):\n    return a + b\n```",
            "optimizationSummary": "Already optimal.",
        }) + "\n```"

        result = await optimize_code({"code": CODE}, invoker=make_invoker(reply))

        assert result.optimization_summary == "Already optimal."
        assert result.optimized_code.startswith("```python")
