"""Multi-turn session tests."""

from datetime import datetime, timedelta

import pytest

from config import settings
from flows import FlowError
from flows.sessions import (
    ChatSession,
    CodeLessonSession,
    FlashcardSession,
    QuizSession,
    SessionRegistry,
    TutorSession,
)
from flows.tutor import START_OF_SESSION
from utils.errors import FlowInputError, NotFoundError

from conftest import DOCUMENT, prompt_text, question


def scene(title, last=False):
    return {
        "mode": "teach",
        "teachingScene": {
            "title": title,
            "description": f"All about {title}.",
            "iconName": "Sparkles",
            "colorThemeHint": "science",
            "isLastTeachingStep": last,
        },
    }


class TestChatSession:

    @pytest.mark.asyncio
    async def test_history_grows_on_success(self, make_invoker):
        session = ChatSession("u1", document_name="Bio", document_content=DOCUMENT)
        invoker = make_invoker({"response": "Chlorophyll."}, {"response": "In leaves."})

        await session.send("What pigment?", invoker=invoker)
        await session.send("Where?", invoker=invoker)

        assert [m.text for m in session.history] == ["What pigment?", "Chlorophyll.", "Where?", "In leaves."]
        assert [m.role for m in session.history] == ["user", "model", "user", "model"]
        assert "User: What pigment?\nMr. Know: Chlorophyll." in prompt_text(invoker, call=1)

    @pytest.mark.asyncio
    async def test_failure_leaves_history(self, make_invoker):
        session = ChatSession("u1", document_content=DOCUMENT)
        await session.send("First", invoker=make_invoker({"response": "Reply."}))
        before = list(session.history)
        updated = session.updated_at

        result = await session.send("Second", invoker=make_invoker(RuntimeError("quota")))

        assert isinstance(result, FlowError)
        assert session.history == before
        assert session.updated_at == updated

    @pytest.mark.asyncio
    async def test_advance_payload(self, make_invoker):
        session = ChatSession("u1", document_content=DOCUMENT)
        result = await session.advance({"userQuery": "Hi"}, invoker=make_invoker({"response": "Hello!"}))
        assert result.response == "Hello!"
        assert session.snapshot()["chatHistory"][1]["parts"] == [{"text": "Hello!"}]


class TestTutorSession:

    @pytest.mark.asyncio
    async def test_progression(self, make_invoker):
        session = TutorSession("u1", document_name="Photosynthesis", document_content=DOCUMENT)
        invoker = make_invoker(
            scene("Intro"),
            {"mode": "quiz", "quiz": {"question": "Where?", "options": ["Leaf", "Root", "Stem"], "answerIndex": 0}},
            {"mode": "feedback", "feedback": {"text": "Correct!", "isCorrect": True}},
            scene("Wrap up", last=True),
        )

        assert session.learning_context == START_OF_SESSION
        await session.step("teach", invoker=invoker)
        assert session.learning_context == "Intro: All about Intro."

        await session.step("generate_quiz", invoker=invoker)
        assert session.current_quiz.question == "Where?"

        await session.step("evaluate_answer", "Leaf", invoker=invoker)
        assert session.last_feedback.is_correct
        assert session.current_quiz is None
        assert 'for the question: "Where? (Options: Leaf; Root; Stem)"' in prompt_text(invoker, call=2)

        await session.step("teach", invoker=invoker)
        assert session.steps_taught == 2
        assert session.finished
        assert 'Current Learning Context: "Intro: All about Intro."' in prompt_text(invoker, call=3)

    @pytest.mark.asyncio
    async def test_failed_quiz_keeps_state(self, make_invoker):
        session = TutorSession("u1", document_content=DOCUMENT)
        await session.step("teach", invoker=make_invoker(scene("Intro")))

        result = await session.step(
            "generate_quiz",
            invoker=make_invoker({"mode": "quiz", "quiz": {"question": "Where?", "options": [], "answerIndex": 0}}),
        )

        assert isinstance(result, FlowError)
        assert session.current_quiz is None
        assert session.current_scene.title == "Intro"
        assert session.steps_taught == 1

    @pytest.mark.asyncio
    async def test_answer_query_keeps_scene(self, make_invoker):
        session = TutorSession("u1", document_content=DOCUMENT)
        await session.step("teach", invoker=make_invoker(scene("Intro")))

        result = await session.advance(
            {"mode": "answer_query", "userQueryOrAnswer": "Why?"},
            invoker=make_invoker({"mode": "answer_query", "aiQueryResponseText": "Because."}),
        )

        assert result.ai_query_response_text == "Because."
        assert session.current_scene.title == "Intro"


class TestFlashcardSession:

    @pytest.mark.asyncio
    async def test_batches_exclude_seen_terms(self, make_invoker):
        session = FlashcardSession("u1", document_content=DOCUMENT)
        invoker = make_invoker(
            {"flashcards": [{"term": "Chlorophyll", "definition": "Pigment."}]},
            {"flashcards": [{"term": "Chlorophyll", "definition": "Again."}, {"term": "Glucose", "definition": "Sugar."}]},
            {"flashcards": []},
        )

        await session.next_batch(invoker=invoker)
        await session.next_batch(invoker=invoker)
        assert session.seen_terms == ["Chlorophyll", "Glucose"]
        assert '- "Chlorophyll"' in prompt_text(invoker, call=1)

        await session.next_batch(invoker=invoker)
        assert session.exhausted
        assert len(session.cards) == 2


class TestQuizSession:

    @pytest.mark.asyncio
    async def test_answers_and_history(self, make_invoker):
        session = QuizSession("u1", document_name="Bio", document_content=DOCUMENT, summary="Plants.")
        await session.next_batch(count=2, invoker=make_invoker({"questions": [
            question("Q1?", answer=0),
            question("Q2?", answer=3),
        ]}))

        assert session.answer(0, 0) is True
        assert session.answer(1, 1) is False
        assert session.score == 1

        record = session.to_history()
        assert record["user_answers"] == [0, 1]
        assert record["score"] == 1
        assert record["summary"] == "Plants."

    def test_invalid_answer(self):
        session = QuizSession("u1", document_content=DOCUMENT)
        with pytest.raises(FlowInputError):
            session.answer(0, 0)


class TestCodeLessonSession:

    @pytest.mark.asyncio
    async def test_topic_advances(self, make_invoker):
        session = CodeLessonSession("u1", "Python")
        step = {
            "topic": "print()",
            "explanation": "print shows text.",
            "challenge": "Print hi.",
            "nextTopicSuggestion": "Variables",
            "isLastStepInTopic": False,
        }
        invoker = make_invoker(step, dict(step, isLastStepInTopic=True))

        await session.next_step(invoker=invoker)
        assert session.current_topic == "Syntax Basics"

        await session.next_step("print('hi')", invoker=invoker)
        assert session.current_topic == "Variables"
        assert session.steps_taken == 2
        text = prompt_text(invoker, call=1)
        assert "print shows text." in text
        assert "print('hi')" in text

    @pytest.mark.asyncio
    async def test_failure_keeps_topic(self, make_invoker):
        session = CodeLessonSession("u1", "Python")
        result = await session.next_step(invoker=make_invoker({"topic": "Only a topic"}))

        assert isinstance(result, FlowError)
        assert session.steps_taken == 0
        assert session.last_step is None


class TestRegistry:

    def test_owner_scoping(self):
        registry = SessionRegistry()
        session = registry.add(ChatSession("u1", document_content=DOCUMENT))

        assert registry.get("u1", session.id) is session
        with pytest.raises(NotFoundError):
            registry.get("u2", session.id)
        assert registry.list("u2") == []

        registry.end("u1", session.id)
        assert len(registry) == 0
        with pytest.raises(NotFoundError):
            registry.end("u1", session.id)

    def test_idle_sessions_expire(self, monkeypatch):
        monkeypatch.setattr(settings, "session_idle_minutes", 30)
        registry = SessionRegistry()
        stale = registry.add(ChatSession("u1", document_content=DOCUMENT))
        fresh = registry.add(ChatSession("u1", document_content=DOCUMENT))
        stale.updated_at = datetime.utcnow() - timedelta(minutes=31)

        assert [session.id for session in registry.list("u1")] == [fresh.id]
        with pytest.raises(NotFoundError):
            registry.get("u1", stale.id)
        assert registry.expire_idle(now=datetime.utcnow() + timedelta(minutes=31)) == 1
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_busy_session_is_kept(self, monkeypatch):
        monkeypatch.setattr(settings, "session_idle_minutes", 30)
        registry = SessionRegistry()
        session = registry.add(ChatSession("u1", document_content=DOCUMENT))
        session.updated_at = datetime.utcnow() - timedelta(hours=2)

        async with session._lock:
            assert registry.expire_idle() == 0
        assert registry.expire_idle() == 1
