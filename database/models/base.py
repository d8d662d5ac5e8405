"""
Database Models Base

Shared SQLAlchemy base and common imports for all model modules.
"""

from datetime import datetime
from sqlalchemy import (
    Column, String, Integer, DateTime, Text, JSON, Index
)
from sqlalchemy.orm import declarative_base
import uuid

# Shared declarative base for all models
Base = declarative_base()


def new_id() -> str:
    """Opaque string id for stored items."""
    return uuid.uuid4().hex


__all__ = [
    'Base',
    'Column',
    'String',
    'Integer',
    'DateTime',
    'Text',
    'JSON',
    'Index',
    'datetime',
    'new_id',
]
