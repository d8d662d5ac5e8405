"""
Sessions Router - multi-turn chat, tutor, flashcard, quiz and code lessons.

A session is created for the selected content, advanced one step per
``POST /sessions/{id}/next`` and ended explicitly. A failed step returns the
flow error in ``result`` and leaves the session unchanged.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from api.dependencies import get_db_dependency, get_invoker, get_session_registry, get_user_id
from api.models import (
    CreateSessionRequest,
    HistoryItemResponse,
    QuizAnswerRequest,
    QuizAnswerResponse,
    SessionResponse,
)
from database.operations import get_knowledge_item, save_history_item
from flows.sessions import SESSION_TYPES, CodeLessonSession, QuizSession, SessionRegistry, StudySession
from utils.errors import FlowInputError, NotFoundError
from utils.monitoring import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/sessions", tags=["Sessions"])


def _build_session(kind: str, user_id: str, request: CreateSessionRequest, db: Session) -> StudySession:
    session_class = SESSION_TYPES.get(kind)
    if session_class is None:
        raise NotFoundError(f"There is no '{kind}' session type.", resource="session_type")

    content = {
        "document_name": request.document_name,
        "document_content": request.document_content,
        "media_data_uri": request.media_data_uri,
    }
    summary = ""
    if request.knowledge_item_id:
        item = get_knowledge_item(db, user_id, request.knowledge_item_id)
        if item is None:
            raise NotFoundError("That knowledge base item could not be found.", resource="knowledge_item")
        content = {
            "document_name": item.document_name,
            "document_content": item.document_content,
            "media_data_uri": item.media_data_uri,
        }
        summary = item.summary

    if session_class is CodeLessonSession:
        if not request.language or not request.language.strip():
            raise FlowInputError("Please choose a programming language to learn.", field="language")
        return CodeLessonSession(user_id, request.language.strip())
    if session_class is QuizSession:
        return QuizSession(user_id, summary=summary, **content)
    return session_class(user_id, **content)


def _quiz(registry: SessionRegistry, user_id: str, session_id: str) -> QuizSession:
    session = registry.get(user_id, session_id)
    if not isinstance(session, QuizSession):
        raise FlowInputError("Only quiz sessions accept answers.", field="sessionId")
    return session


@router.get("")
async def list_sessions(
    user_id: str = Depends(get_user_id),
    registry: SessionRegistry = Depends(get_session_registry)
):
    return {"sessions": [session.snapshot() for session in registry.list(user_id)]}


@router.post("/{kind}", response_model=SessionResponse)
async def create_session(
    kind: str,
    request: CreateSessionRequest,
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db_dependency),
    registry: SessionRegistry = Depends(get_session_registry)
):
    """
    Start a session for the selected content.

    **Kinds:** chat, tutor, flashcards, quiz, code-lesson
    """
    session = registry.add(_build_session(kind, user_id, request, db))
    return SessionResponse(session=session.snapshot())


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    user_id: str = Depends(get_user_id),
    registry: SessionRegistry = Depends(get_session_registry)
):
    return SessionResponse(session=registry.get(user_id, session_id).snapshot())


@router.post("/{session_id}/next", response_model=SessionResponse)
async def advance_session(
    session_id: str,
    payload: Optional[Dict[str, Any]] = Body(default=None),
    user_id: str = Depends(get_user_id),
    registry: SessionRegistry = Depends(get_session_registry),
    invoker=Depends(get_invoker)
):
    """
    Advance a session by one step.

    Body by kind:
    - **chat**: `userQuery`
    - **tutor**: `mode`, `userQueryOrAnswer`
    - **flashcards** / **quiz**: optional `count`
    - **code-lesson**: optional `userAnswerOrCode`
    """
    session = registry.get(user_id, session_id)
    result = await session.advance(payload or {}, invoker=invoker)
    return SessionResponse(session=session.snapshot(), result=result.to_wire())


@router.post("/{session_id}/answer", response_model=QuizAnswerResponse)
async def answer_question(
    session_id: str,
    request: QuizAnswerRequest,
    user_id: str = Depends(get_user_id),
    registry: SessionRegistry = Depends(get_session_registry)
):
    session = _quiz(registry, user_id, session_id)
    correct = session.answer(request.question_index, request.choice)
    return QuizAnswerResponse(correct=correct, session=session.snapshot())


@router.post("/{session_id}/complete", response_model=HistoryItemResponse)
async def complete_quiz(
    session_id: str,
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db_dependency),
    registry: SessionRegistry = Depends(get_session_registry)
):
    """Save a quiz to the learning history and end the session."""
    session = _quiz(registry, user_id, session_id)
    record = session.to_history()
    item = save_history_item(
        db,
        user_id,
        document_name=record["document_name"] or "Untitled",
        summary=record["summary"],
        questions=record["questions"],
        user_answers=record["user_answers"],
        score=record["score"],
        item_id=record["id"],
    )
    registry.end(user_id, session_id)
    return HistoryItemResponse.model_validate(item.to_dict())


@router.delete("/{session_id}")
async def end_session(
    session_id: str,
    user_id: str = Depends(get_user_id),
    registry: SessionRegistry = Depends(get_session_registry)
):
    session = registry.end(user_id, session_id)
    return {"ended": True, "id": session.id, "kind": session.kind}
