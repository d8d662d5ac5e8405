"""
Database Models Package

- base: Shared SQLAlchemy base and imports
- knowledge: Knowledge base items
- history: Learning history
"""

from .base import Base
from .knowledge import KnowledgeItem
from .history import LearningHistoryItem

__all__ = [
    'Base',
    'KnowledgeItem',
    'LearningHistoryItem',
]
