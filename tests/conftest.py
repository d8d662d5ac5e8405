"""
Test Configuration and Utilities

Shared fixtures for the flow, persistence and API tests:
- Mocked chat model (no network, no API key)
- In-memory SQLite database
- FastAPI test client with dependency overrides
"""

import json
import os

# Settings are read at import time
os.environ["TESTING"] = "true"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["GOOGLE_API_KEY"] = ""
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from typing import Any, List
from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient
from langchain_core.messages import AIMessage
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database.models.base import Base
from flows.invoker import ModelInvoker
from utils.monitoring import reset_metrics


# ============================================================================
# Mock Model
# ============================================================================

def model_reply(payload: Any) -> Any:
    """Wrap a payload the way the chat model returns it; exceptions pass through."""
    if isinstance(payload, Exception):
        return payload
    if isinstance(payload, str):
        return AIMessage(content=payload)
    return AIMessage(content=json.dumps(payload))


def mock_llm(*payloads: Any) -> MagicMock:
    """Chat model whose ``ainvoke`` returns (or raises) the given payloads in order."""
    llm = MagicMock()
    llm.ainvoke = AsyncMock(side_effect=[model_reply(payload) for payload in payloads])
    return llm


@pytest.fixture
def make_invoker():
    """
    Factory for invokers backed by a mocked model.

    Usage:
        invoker = make_invoker({"summary": "..."})
        result = await summarize_document({...}, invoker=invoker)
        assert invoker.llm.ainvoke.await_count == 1
    """
    def factory(*payloads: Any) -> ModelInvoker:
        return ModelInvoker(llm=mock_llm(*payloads))
    return factory


def prompt_text(invoker: ModelInvoker, call: int = 0) -> str:
    """Text part of the prompt sent on the given model call."""
    messages = invoker.llm.ainvoke.await_args_list[call].args[0]
    content = messages[0].content
    if isinstance(content, str):
        return content
    return "".join(part.get("text", "") for part in content if isinstance(part, dict))


# ============================================================================
# Test Data
# ============================================================================

DOCUMENT = (
    "Photosynthesis is the process by which green plants use sunlight, water and carbon dioxide "
    "to produce glucose and oxygen. It takes place in the chloroplasts."
)

PHOTO = "data:image/png;base64,iVBORw0KGgo="


def question(text: str, answer: Any = 0, options: List[str] = None, **extra) -> dict:
    return {
        "question": text,
        "options": options if options is not None else ["A one", "B two", "C three", "D four"],
        "answer": answer,
        **extra,
    }


# ============================================================================
# Database
# ============================================================================

@pytest.fixture
def db_engine():
    """In-memory SQLite engine shared across threads."""
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """Database session for a single test."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    yield session
    session.close()


# ============================================================================
# API
# ============================================================================

@pytest.fixture
def api_llm():
    """Mocked model used by every flow the API runs; set ``ainvoke.side_effect`` per test."""
    llm = MagicMock()
    llm.ainvoke = AsyncMock()
    return llm


@pytest.fixture
def client(db_engine, api_llm):
    """Test client with database, session registry and model overridden."""
    from api.app import app
    from api.dependencies import get_db_dependency, get_invoker
    from flows.sessions import SessionRegistry

    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def override_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db_dependency] = override_db
    app.dependency_overrides[get_invoker] = lambda: ModelInvoker(llm=api_llm)
    app.state.session_registry = SessionRegistry()

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def user_headers():
    return {"X-User-ID": "student-1"}


@pytest.fixture(autouse=True)
def clean_metrics():
    """Each test starts with empty flow metrics."""
    reset_metrics()
    yield
    reset_metrics()
