"""
API Request/Response Models.

Pydantic models for API request validation and response serialization.
Field names are camelCase on the wire, like the flow schemas.
"""

from typing import Any, Dict, List, Optional

from pydantic import Field

from flows.schemas import FlowModel


# ============================================================================
# Knowledge Base
# ============================================================================

class KnowledgeItemRequest(FlowModel):
    """Material to add to (or replace in) the knowledge base."""

    document_name: str = Field(..., description="Display name of the document", max_length=500)
    document_content: str = Field(default="", description="Document text")
    media_data_uri: Optional[str] = Field(
        default=None,
        description="Optional image as a data URI"
    )


class KnowledgeItemResponse(FlowModel):
    id: str
    document_name: str
    document_content: str = ""
    media_data_uri: Optional[str] = None
    summary: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class KnowledgeListResponse(FlowModel):
    items: List[KnowledgeItemResponse] = Field(default_factory=list)


# ============================================================================
# Learning History
# ============================================================================

class HistoryItemRequest(FlowModel):
    """A completed study session. Re-sending an id replaces that record."""

    id: Optional[str] = Field(default=None, description="Existing record id to update")
    document_name: str = Field(..., min_length=1, max_length=500)
    summary: str = ""
    questions: List[Dict[str, Any]] = Field(default_factory=list)
    user_answers: List[Optional[int]] = Field(default_factory=list)
    score: Optional[int] = Field(default=None, ge=0)


class HistoryItemResponse(FlowModel):
    id: str
    document_name: str
    summary: str = ""
    questions: List[Dict[str, Any]] = Field(default_factory=list)
    user_answers: List[Optional[int]] = Field(default_factory=list)
    score: Optional[int] = None
    completed_at: Optional[str] = None


class HistoryListResponse(FlowModel):
    items: List[HistoryItemResponse] = Field(default_factory=list)


# ============================================================================
# Sessions
# ============================================================================

class CreateSessionRequest(FlowModel):
    """
    Content for a new session.

    Either reference a knowledge base item or pass the content inline.
    """

    knowledge_item_id: Optional[str] = Field(default=None, description="Knowledge item to study")
    document_name: str = Field(default="", max_length=500)
    document_content: str = ""
    media_data_uri: Optional[str] = None
    language: Optional[str] = Field(default=None, description="Programming language for code lessons")


class QuizAnswerRequest(FlowModel):
    question_index: int = Field(..., ge=0)
    choice: int = Field(..., ge=0)


class SessionResponse(FlowModel):
    """Session snapshot plus the result of the step that produced it."""

    session: Dict[str, Any]
    result: Optional[Dict[str, Any]] = None


class QuizAnswerResponse(FlowModel):
    correct: bool
    session: Dict[str, Any]


# ============================================================================
# Health
# ============================================================================

class HealthResponse(FlowModel):
    status: str
    version: str
    model: str
    llm_configured: bool
    database_available: bool
    active_sessions: int
