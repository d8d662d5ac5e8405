"""Summary, question, flashcard and study session flow tests."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from flows import (
    FlowError,
    generate_flashcards,
    generate_questions,
    prepare_study_session,
    summarize_document,
)
from flows.invoker import ModelInvoker
from flows.study_session import PLACEHOLDER_QUESTIONS, PLACEHOLDER_SUMMARY
from flows.summarize import NO_CONTENT_MESSAGE, NO_SUMMARY_MESSAGE
from utils.errors import ErrorCategory
from utils.monitoring import get_metrics_summary

from conftest import DOCUMENT, PHOTO, model_reply, prompt_text, question


class TestSummarize:

    @pytest.mark.asyncio
    async def test_summary(self, make_invoker):
        invoker = make_invoker({"summary": "Plants turn light into sugar."})

        result = await summarize_document({"documentContent": DOCUMENT}, invoker=invoker)

        assert result.summary == "Plants turn light into sugar."
        assert result.to_wire() == {"summary": "Plants turn light into sugar."}
        assert DOCUMENT in prompt_text(invoker)

    @pytest.mark.asyncio
    async def test_keyword_fields(self, make_invoker):
        invoker = make_invoker({"summary": "An image of a leaf."})

        result = await summarize_document(photo_data_uri=PHOTO, invoker=invoker)

        assert result.summary == "An image of a leaf."
        content = invoker.llm.ainvoke.await_args.args[0][0].content
        assert content[1]["image_url"]["url"] == PHOTO

    @pytest.mark.asyncio
    async def test_empty_input(self, make_invoker):
        invoker = make_invoker()

        result = await summarize_document({"documentContent": "   "}, invoker=invoker)

        assert isinstance(result, FlowError)
        assert result.category == ErrorCategory.INVALID_INPUT
        assert result.error == NO_CONTENT_MESSAGE
        invoker.llm.ainvoke.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_summary(self, make_invoker):
        result = await summarize_document({"documentContent": DOCUMENT}, invoker=make_invoker({"summary": ""}))

        assert isinstance(result, FlowError)
        assert result.category == ErrorCategory.MALFORMED_OUTPUT
        assert result.error == NO_SUMMARY_MESSAGE

    @pytest.mark.asyncio
    async def test_overloaded_model(self, make_invoker):
        invoker = make_invoker(RuntimeError("503 UNAVAILABLE: The model is overloaded."))

        result = await summarize_document({"documentContent": DOCUMENT}, invoker=invoker)

        assert result.category == ErrorCategory.RATE_LIMITED
        assert "busy" in result.error
        assert result.to_wire() == {"error": result.error, "category": "rate_limited"}

    @pytest.mark.asyncio
    async def test_invalid_field(self, make_invoker):
        result = await summarize_document({"documentContent": 42}, invoker=make_invoker())

        assert result.category == ErrorCategory.INVALID_INPUT
        assert "documentContent" in result.error


class TestQuestions:

    @pytest.mark.asyncio
    async def test_empty_input_skips_model(self, make_invoker):
        invoker = make_invoker()

        result = await generate_questions({"documentContent": ""}, invoker=invoker)

        assert result.questions == []
        invoker.llm.ainvoke.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_filters_and_truncates(self, make_invoker):
        invoker = make_invoker({"questions": [
            question("Where does photosynthesis happen?", answer=1, explanation="In chloroplasts."),
            question("Bad options?", options=["a", "b"]),
            question("What gas is released?", answer="B"),
            question("What do plants need?", answer=2),
        ]})

        result = await generate_questions(
            {"documentContent": DOCUMENT, "numberOfQuestions": 2},
            invoker=invoker,
        )

        assert [q.question for q in result.questions] == [
            "Where does photosynthesis happen?",
            "What gas is released?",
        ]
        assert result.questions[1].answer == 1
        assert result.questions[1].explanation

    @pytest.mark.asyncio
    async def test_previous_questions_in_prompt(self, make_invoker):
        invoker = make_invoker({"questions": [question("What is glucose?")]})

        await generate_questions(
            {"documentContent": DOCUMENT, "previousQuestionTexts": ["What is a leaf?"]},
            invoker=invoker,
        )

        text = prompt_text(invoker)
        assert '- "What is a leaf?"' in text
        assert "None" not in text.split("Previously generated")[0]

    @pytest.mark.asyncio
    async def test_missing_questions_array(self, make_invoker):
        result = await generate_questions({"documentContent": DOCUMENT}, invoker=make_invoker({"items": []}))

        assert isinstance(result, FlowError)
        assert result.category == ErrorCategory.MALFORMED_OUTPUT

    @pytest.mark.asyncio
    async def test_count_out_of_range(self, make_invoker):
        result = await generate_questions(
            {"documentContent": DOCUMENT, "numberOfQuestions": 0},
            invoker=make_invoker(),
        )
        assert result.category == ErrorCategory.INVALID_INPUT


class TestFlashcards:

    @pytest.mark.asyncio
    async def test_empty_input_skips_model(self, make_invoker):
        invoker = make_invoker()

        result = await generate_flashcards({}, invoker=invoker)

        assert result.to_wire() == {"flashcards": []}
        invoker.llm.ainvoke.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cards(self, make_invoker):
        invoker = make_invoker({"flashcards": [
            {"term": "Chlorophyll", "definition": "Green pigment that absorbs light."},
            {"term": "Glucose", "definition": "Sugar made by photosynthesis."},
            {"term": "Stomata", "definition": ""},
        ]})

        result = await generate_flashcards(
            {"documentContent": DOCUMENT, "previousFlashcardTerms": ["Glucose"]},
            invoker=invoker,
        )

        assert [card.term for card in result.flashcards] == ["Chlorophyll"]

    @pytest.mark.asyncio
    async def test_malformed_reply_is_empty_list(self, make_invoker):
        result = await generate_flashcards({"documentContent": DOCUMENT}, invoker=make_invoker("Sorry!"))

        assert not isinstance(result, FlowError)
        assert result.flashcards == []
        assert get_metrics_summary()["flow_fallbacks"]["generate_flashcards"] == 1


def routed_invoker(summary_reply, questions_reply) -> ModelInvoker:
    """Model answering the summary and question prompts independently of call order."""
    def respond(messages):
        content = messages[0].content
        text = content if isinstance(content, str) else content[0]["text"]
        payload = questions_reply if "Create multiple-choice questions" in text else summary_reply
        if isinstance(payload, Exception):
            raise payload
        return model_reply(payload)

    llm = MagicMock()
    llm.ainvoke = AsyncMock(side_effect=respond)
    return ModelInvoker(llm=llm)


class TestStudySession:

    @pytest.mark.asyncio
    async def test_summary_and_questions(self):
        invoker = routed_invoker(
            {"summary": "Plants make food."},
            {"questions": [question("What do plants make?", answer=0)]},
        )

        result = await prepare_study_session(
            {"documentName": "Biology", "documentContent": DOCUMENT},
            invoker=invoker,
        )

        assert result.document_name == "Biology"
        assert result.summary == "Plants make food."
        assert len(result.questions) == 1
        assert result.questions[0].explanation
        assert invoker.llm.ainvoke.await_count == 2

    @pytest.mark.asyncio
    async def test_placeholders(self):
        invoker = routed_invoker({"summary": ""}, {"questions": []})

        result = await prepare_study_session(
            {"documentName": "Biology", "documentContent": DOCUMENT},
            invoker=invoker,
        )

        assert result.summary == PLACEHOLDER_SUMMARY
        assert [q.question for q in result.questions] == [q.question for q in PLACEHOLDER_QUESTIONS]
        assert all("correct answer" in q.explanation for q in result.questions)

    @pytest.mark.asyncio
    async def test_name_required(self, make_invoker):
        result = await prepare_study_session({"documentContent": DOCUMENT}, invoker=make_invoker())
        assert result.error == "Document name cannot be empty."

    @pytest.mark.asyncio
    async def test_content_required(self, make_invoker):
        result = await prepare_study_session({"documentName": "Biology"}, invoker=make_invoker())
        assert result.error == "Document content or media (image/audio) must be provided."

    @pytest.mark.asyncio
    async def test_blocked_content(self):
        invoker = routed_invoker(RuntimeError("Prompt blocked: SAFETY"), {"questions": []})

        result = await prepare_study_session(
            {"documentName": "Biology", "documentContent": DOCUMENT},
            invoker=invoker,
        )

        assert result.category == ErrorCategory.SAFETY_BLOCKED
        assert "safety filters" in result.error
