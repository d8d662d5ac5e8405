"""
Database connection and session management.

Provides the SQLAlchemy engine and sessions for PostgreSQL (production) or
SQLite (development and tests).
"""

from typing import Generator
from contextlib import contextmanager
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session

from config import settings
from database.models import Base
from utils.errors import DatabaseError
from utils.monitoring import get_logger

logger = get_logger(__name__)


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": 10,
        "max_overflow": 20,
        "pool_recycle": 3600,
        "pool_timeout": 30,
    }


engine = create_engine(
    settings.database_url,
    pool_pre_ping=settings.db_pool_pre_ping,
    echo=settings.db_echo,
    **_engine_options(settings.database_url)
)

# Create session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


@contextmanager
def get_db() -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Usage:
        with get_db() as db:
            items = list_knowledge_items(db, user_id)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_db_dependency() -> Generator[Session, None, None]:
    """
    FastAPI dependency for database sessions.

    Usage in FastAPI:
        @router.get("/knowledge")
        def list_items(db: Session = Depends(get_db_dependency)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit_changes(db: Session, operation: str):
    """Commit the session, rolling back and raising DatabaseError on failure."""
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Database commit failed", error=e, operation=operation)
        raise DatabaseError(
            "Your study material could not be saved right now. Please try again.",
            operation=operation
        ) from e


def init_db() -> bool:
    """
    Create all tables if they don't exist.

    Called once at application startup.
    """
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created/verified", backend=engine.url.get_backend_name())
        return True
    except Exception as e:
        logger.error("Database initialization failed", error=e)
        return False


def close_db():
    """Dispose of the engine on shutdown."""
    engine.dispose()
