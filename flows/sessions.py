"""
Multi-turn session objects.

A session holds the client-visible state of one conversation or lesson and
calls the public flows to advance it. State changes only after a successful
flow result; a ``FlowError`` leaves the session exactly as it was. Each
session serializes its own updates with an ``asyncio.Lock``.
"""

import asyncio
import uuid
from datetime import datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional, Type

from config import settings
from flows.chat import chat_with_mr_know
from flows.code_lesson import FIRST_TOPIC, get_code_teaching_step
from flows.flashcards import generate_flashcards
from flows.invoker import ModelInvoker
from flows.questions import generate_questions
from flows.schemas import ChatMessage, FlowError, QuizQuestion
from flows.tutor import START_OF_SESSION, get_next_tutor_step
from utils.errors import FlowInputError, NotFoundError
from utils.monitoring import get_logger

logger = get_logger(__name__)


class StudySession:
    """Base class: identity, ownership, lock and snapshot."""

    kind = "session"

    def __init__(
        self,
        owner_id: str,
        document_name: str = "",
        document_content: str = "",
        media_data_uri: Optional[str] = None,
        session_id: Optional[str] = None,
    ):
        self.id = session_id or uuid.uuid4().hex
        self.owner_id = owner_id
        self.document_name = document_name
        self.document_content = document_content
        self.media_data_uri = media_data_uri
        self.created_at = datetime.utcnow()
        self.updated_at = self.created_at
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        """True while a step is running."""
        return self._lock.locked()

    @property
    def content_fields(self) -> Dict[str, Any]:
        return {
            "document_content": self.document_content,
            "photo_data_uri": self.media_data_uri,
        }

    async def advance(self, payload: Mapping[str, Any], invoker: Optional[ModelInvoker] = None):
        """Run one step from a generic request payload."""
        raise NotImplementedError

    def _touch(self):
        self.updated_at = datetime.utcnow()

    def state(self) -> Dict[str, Any]:
        return {}

    def snapshot(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "documentName": self.document_name,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            **self.state(),
        }


class ChatSession(StudySession):
    """Mr. Know conversation with an append-only history."""

    kind = "chat"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.history: List[ChatMessage] = []

    async def send(self, user_query: str, invoker: Optional[ModelInvoker] = None):
        async with self._lock:
            result = await chat_with_mr_know(
                dict(self.content_fields, chat_history=list(self.history), user_query=user_query),
                invoker=invoker,
            )
            if isinstance(result, FlowError):
                return result

            self.history = self.history + [
                ChatMessage.from_text("user", user_query),
                ChatMessage.from_text("model", result.response),
            ]
            self._touch()
            return result

    async def advance(self, payload, invoker=None):
        return await self.send(payload.get("userQuery", ""), invoker=invoker)

    def state(self):
        return {"chatHistory": [message.to_wire() for message in self.history]}


class TutorSession(StudySession):
    """
    Interactive tutor progression.

    teach -> (answer_query -> teach) -> generate_quiz -> evaluate_answer -> teach ...
    until the model marks a scene as the last teaching step.
    """

    kind = "tutor"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.current_scene = None
        self.current_quiz = None
        self.last_feedback = None
        self.steps_taught = 0
        self.finished = False

    @property
    def learning_context(self) -> str:
        if self.current_scene is None:
            return START_OF_SESSION
        return f"{self.current_scene.title}: {self.current_scene.description}"

    def _quiz_context(self) -> Optional[str]:
        if self.current_quiz is None:
            return None
        options = "; ".join(self.current_quiz.options)
        return f"{self.current_quiz.question} (Options: {options})"

    async def step(
        self,
        mode: str = "teach",
        user_query_or_answer: Optional[str] = None,
        invoker: Optional[ModelInvoker] = None,
    ):
        async with self._lock:
            result = await get_next_tutor_step(
                dict(
                    self.content_fields,
                    document_name=self.document_name,
                    current_learning_context=self.learning_context,
                    interaction_mode=mode,
                    user_query_or_answer=user_query_or_answer,
                    quiz_question_context=self._quiz_context() if mode == "evaluate_answer" else None,
                ),
                invoker=invoker,
            )
            if isinstance(result, FlowError):
                return result

            if result.mode == "teach" and result.teaching_scene is not None:
                self.current_scene = result.teaching_scene
                self.current_quiz = None
                self.steps_taught += 1
                self.finished = result.teaching_scene.is_last_teaching_step
            elif result.mode == "quiz":
                self.current_quiz = result.quiz
            elif result.mode == "feedback":
                self.last_feedback = result.feedback
                self.current_quiz = None
            self._touch()
            return result

    async def advance(self, payload, invoker=None):
        return await self.step(
            mode=payload.get("mode", "teach"),
            user_query_or_answer=payload.get("userQueryOrAnswer"),
            invoker=invoker,
        )

    def state(self):
        return {
            "currentScene": self.current_scene.to_wire() if self.current_scene else None,
            "currentQuiz": self.current_quiz.to_wire() if self.current_quiz else None,
            "lastFeedback": self.last_feedback.to_wire() if self.last_feedback else None,
            "stepsTaught": self.steps_taught,
            "finished": self.finished,
        }


class FlashcardSession(StudySession):
    """Continuous flashcard generation without repeated terms."""

    kind = "flashcards"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.cards: List[Dict[str, str]] = []
        self.exhausted = False

    @property
    def seen_terms(self) -> List[str]:
        return [card["term"] for card in self.cards]

    async def next_batch(self, count: Optional[int] = None, invoker: Optional[ModelInvoker] = None):
        async with self._lock:
            request = dict(self.content_fields, previous_flashcard_terms=self.seen_terms)
            if count:
                request["number_of_flashcards"] = count
            result = await generate_flashcards(request, invoker=invoker)
            if isinstance(result, FlowError):
                return result

            self.cards = self.cards + [card.model_dump() for card in result.flashcards]
            self.exhausted = not result.flashcards
            self._touch()
            return result

    async def advance(self, payload, invoker=None):
        return await self.next_batch(payload.get("count"), invoker=invoker)

    def state(self):
        return {"flashcards": list(self.cards), "exhausted": self.exhausted}


class QuizSession(StudySession):
    """Batches of quiz questions plus the user's answers and score."""

    kind = "quiz"

    def __init__(self, *args, summary: str = "", **kwargs):
        super().__init__(*args, **kwargs)
        self.summary = summary
        self.questions: List[QuizQuestion] = []
        self.user_answers: Dict[int, int] = {}
        self.exhausted = False

    async def next_batch(self, count: Optional[int] = None, invoker: Optional[ModelInvoker] = None):
        async with self._lock:
            request = dict(
                self.content_fields,
                previous_question_texts=[question.question for question in self.questions],
            )
            if count:
                request["number_of_questions"] = count
            result = await generate_questions(request, invoker=invoker)
            if isinstance(result, FlowError):
                return result

            self.questions = self.questions + list(result.questions)
            self.exhausted = not result.questions
            self._touch()
            return result

    def answer(self, question_index: int, choice: int) -> bool:
        """Record an answer; returns whether it was correct."""
        if not (0 <= question_index < len(self.questions)):
            raise FlowInputError("That question is not part of this quiz.", field="questionIndex")
        question = self.questions[question_index]
        if not (0 <= choice < len(question.options)):
            raise FlowInputError("Please pick one of the listed options.", field="choice")
        self.user_answers[question_index] = choice
        self._touch()
        return choice == question.answer

    @property
    def score(self) -> int:
        return sum(
            1 for index, choice in self.user_answers.items()
            if self.questions[index].answer == choice
        )

    async def advance(self, payload, invoker=None):
        return await self.next_batch(payload.get("count"), invoker=invoker)

    def to_history(self) -> Dict[str, Any]:
        """Learning history record for this quiz."""
        return {
            "id": self.id,
            "document_name": self.document_name,
            "summary": self.summary,
            "questions": [question.to_wire() for question in self.questions],
            "user_answers": [self.user_answers.get(i) for i in range(len(self.questions))],
            "score": self.score,
        }

    def state(self):
        return {
            "questions": [question.to_wire() for question in self.questions],
            "userAnswers": {str(k): v for k, v in self.user_answers.items()},
            "score": self.score,
            "exhausted": self.exhausted,
        }


class CodeLessonSession(StudySession):
    """Code lesson that forwards the previous explanation and advances topics."""

    kind = "code-lesson"

    def __init__(self, owner_id: str, language: str, **kwargs):
        super().__init__(owner_id, document_name=language, **kwargs)
        self.language = language
        self.current_topic = FIRST_TOPIC
        self.previous_explanation: Optional[str] = None
        self.last_step = None
        self.steps_taken = 0

    async def next_step(
        self,
        user_answer_or_code: Optional[str] = None,
        invoker: Optional[ModelInvoker] = None,
    ):
        async with self._lock:
            result = await get_code_teaching_step(
                {
                    "language": self.language,
                    "current_topic": self.current_topic,
                    "previous_explanation": self.previous_explanation,
                    "user_answer_or_code": user_answer_or_code,
                },
                invoker=invoker,
            )
            if isinstance(result, FlowError):
                return result

            self.last_step = result
            self.previous_explanation = result.explanation
            if result.is_last_step_in_topic:
                self.current_topic = result.next_topic_suggestion
            self.steps_taken += 1
            self._touch()
            return result

    async def advance(self, payload, invoker=None):
        return await self.next_step(payload.get("userAnswerOrCode"), invoker=invoker)

    def state(self):
        return {
            "language": self.language,
            "currentTopic": self.current_topic,
            "lastStep": self.last_step.to_wire() if self.last_step else None,
            "stepsTaken": self.steps_taken,
        }


SESSION_TYPES: Dict[str, Type[StudySession]] = {
    ChatSession.kind: ChatSession,
    TutorSession.kind: TutorSession,
    FlashcardSession.kind: FlashcardSession,
    QuizSession.kind: QuizSession,
    CodeLessonSession.kind: CodeLessonSession,
}


class SessionRegistry:
    """
    Live sessions keyed by id, always looked up together with their owner.

    Sessions untouched for ``settings.session_idle_minutes`` are dropped on the
    next registry access, unless a step is still running.
    """

    def __init__(self):
        self._sessions: Dict[str, StudySession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def expire_idle(self, now: Optional[datetime] = None) -> int:
        """Drop idle sessions. Returns how many were removed."""
        cutoff = (now or datetime.utcnow()) - timedelta(minutes=settings.session_idle_minutes)
        stale = [
            session for session in self._sessions.values()
            if session.updated_at < cutoff and not session.busy
        ]
        for session in stale:
            del self._sessions[session.id]
            logger.info("Session expired", session_id=session.id, kind=session.kind, owner=session.owner_id)
        return len(stale)

    def add(self, session: StudySession) -> StudySession:
        self.expire_idle()
        self._sessions[session.id] = session
        logger.info("Session created", session_id=session.id, kind=session.kind, owner=session.owner_id)
        return session

    def get(self, owner_id: str, session_id: str) -> StudySession:
        self.expire_idle()
        session = self._sessions.get(session_id)
        if session is None or session.owner_id != owner_id:
            raise NotFoundError("That session has ended or does not exist.", resource="session")
        return session

    def list(self, owner_id: str) -> List[StudySession]:
        self.expire_idle()
        return [session for session in self._sessions.values() if session.owner_id == owner_id]

    def end(self, owner_id: str, session_id: str) -> StudySession:
        session = self.get(owner_id, session_id)
        del self._sessions[session_id]
        logger.info("Session ended", session_id=session_id, kind=session.kind)
        return session
