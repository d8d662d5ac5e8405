"""
Database Package

- core: Database connection and session management
- models: SQLAlchemy models (knowledge items, learning history)
- operations: Owner-scoped CRUD operations
"""

from .models import Base, KnowledgeItem, LearningHistoryItem
from .operations import (
    list_knowledge_items,
    get_knowledge_item,
    save_knowledge_item,
    delete_knowledge_item,
    list_history_items,
    save_history_item,
)

__all__ = [
    'Base',
    'KnowledgeItem',
    'LearningHistoryItem',
    'list_knowledge_items',
    'get_knowledge_item',
    'save_knowledge_item',
    'delete_knowledge_item',
    'list_history_items',
    'save_history_item',
]
