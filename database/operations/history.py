"""Learning history operations."""

from typing import Any, Dict, List, Optional
from datetime import datetime

from sqlalchemy import desc
from sqlalchemy.orm import Session

from config import settings
from database.core.connection import commit_changes
from database.models import LearningHistoryItem


def list_history_items(db: Session, user_id: str) -> List[LearningHistoryItem]:
    """History for a user, most recently completed first."""
    return (
        db.query(LearningHistoryItem)
        .filter(LearningHistoryItem.user_id == user_id)
        .order_by(desc(LearningHistoryItem.completed_at), desc(LearningHistoryItem.id))
        .all()
    )


def save_history_item(
    db: Session,
    user_id: str,
    document_name: str,
    summary: str = "",
    questions: Optional[List[Dict[str, Any]]] = None,
    user_answers: Optional[List[Optional[int]]] = None,
    score: Optional[int] = None,
    item_id: Optional[str] = None,
) -> LearningHistoryItem:
    """
    Upsert a history record by id and cap the user's history.

    Re-saving an existing id replaces its contents and moves it to the top.
    """
    item = None
    if item_id:
        item = (
            db.query(LearningHistoryItem)
            .filter(LearningHistoryItem.user_id == user_id, LearningHistoryItem.id == item_id)
            .first()
        )

    if item is None:
        item = LearningHistoryItem(user_id=user_id)
        if item_id:
            item.id = item_id
        db.add(item)

    item.document_name = document_name
    item.summary = summary or ""
    item.questions = list(questions or [])
    item.user_answers = list(user_answers or [])
    item.score = score
    item.completed_at = datetime.utcnow()

    commit_changes(db, "save_history_item")
    db.refresh(item)

    stale = list_history_items(db, user_id)[settings.history_items_limit:]
    for old in stale:
        db.delete(old)
    if stale:
        commit_changes(db, "enforce_history_limit")
    return item
