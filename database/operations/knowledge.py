"""
Knowledge base operations.

Every function is scoped to an owner: an item belonging to someone else is
treated exactly like a missing one.
"""

from typing import List, Optional
from datetime import datetime

from sqlalchemy import desc
from sqlalchemy.orm import Session

from config import settings
from database.core.connection import commit_changes
from database.models import KnowledgeItem


def list_knowledge_items(db: Session, user_id: str, limit: Optional[int] = None) -> List[KnowledgeItem]:
    """Items for a user, newest first."""
    query = (
        db.query(KnowledgeItem)
        .filter(KnowledgeItem.user_id == user_id)
        .order_by(desc(KnowledgeItem.created_at), desc(KnowledgeItem.id))
    )
    if limit:
        query = query.limit(limit)
    return query.all()


def get_knowledge_item(db: Session, user_id: str, item_id: str) -> Optional[KnowledgeItem]:
    return (
        db.query(KnowledgeItem)
        .filter(KnowledgeItem.user_id == user_id, KnowledgeItem.id == item_id)
        .first()
    )


def save_knowledge_item(
    db: Session,
    user_id: str,
    document_name: str,
    document_content: str,
    summary: str,
    media_data_uri: Optional[str] = None,
    item_id: Optional[str] = None,
) -> KnowledgeItem:
    """
    Insert or update an item by id.

    Updates keep ``created_at`` and refresh ``updated_at``. After saving, only
    the newest ``settings.knowledge_items_limit`` items are kept.
    """
    item = get_knowledge_item(db, user_id, item_id) if item_id else None

    if item is None:
        item = KnowledgeItem(user_id=user_id)
        if item_id:
            item.id = item_id
        db.add(item)

    item.document_name = document_name
    item.document_content = document_content or ""
    item.media_data_uri = media_data_uri
    item.summary = summary
    item.updated_at = datetime.utcnow()

    commit_changes(db, "save_knowledge_item")
    db.refresh(item)

    _enforce_limit(db, user_id)
    return item


def delete_knowledge_item(db: Session, user_id: str, item_id: str) -> bool:
    """Delete an item. Returns False when it does not exist for this user."""
    item = get_knowledge_item(db, user_id, item_id)
    if item is None:
        return False
    db.delete(item)
    commit_changes(db, "delete_knowledge_item")
    return True


def _enforce_limit(db: Session, user_id: str):
    stale = list_knowledge_items(db, user_id)[settings.knowledge_items_limit:]
    if not stale:
        return
    for item in stale:
        db.delete(item)
    commit_changes(db, "enforce_knowledge_limit")
