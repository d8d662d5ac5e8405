"""
Database Operations Package

- knowledge: Knowledge base CRUD
- history: Learning history
"""

from .knowledge import (
    list_knowledge_items,
    get_knowledge_item,
    save_knowledge_item,
    delete_knowledge_item,
)
from .history import (
    list_history_items,
    save_history_item,
)

__all__ = [
    'list_knowledge_items',
    'get_knowledge_item',
    'save_knowledge_item',
    'delete_knowledge_item',
    'list_history_items',
    'save_history_item',
]
