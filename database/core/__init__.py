"""
Core Database Package

Database connection and session management.
"""

from .connection import (
    engine,
    SessionLocal,
    get_db,
    get_db_dependency,
    init_db,
    close_db,
    commit_changes,
)

__all__ = [
    'engine',
    'SessionLocal',
    'get_db',
    'get_db_dependency',
    'init_db',
    'close_db',
    'commit_changes',
]
