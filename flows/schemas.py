"""Shared pydantic shapes for flow inputs and outputs."""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from utils.errors import ErrorCategory


class FlowModel(BaseModel):
    """Base for flow payloads: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class FlowError(FlowModel):
    """Failure value returned by every public flow instead of raising."""

    error: str = Field(description="Complete sentence suitable for display or speech")
    category: ErrorCategory = Field(default=ErrorCategory.UNKNOWN)


def is_flow_error(result: object) -> bool:
    return isinstance(result, FlowError)


class ContentInput(FlowModel):
    """Input shared by every content-dependent flow."""

    document_content: str = Field(
        default="",
        description="Document text. May be empty when photo_data_uri is set."
    )
    photo_data_uri: Optional[str] = Field(
        default=None,
        description="Optional image as 'data:<mimetype>;base64,<encoded_data>'."
    )


class TextPart(FlowModel):
    text: str


class ChatMessage(FlowModel):
    """One turn of a Mr. Know conversation."""

    role: Literal["user", "model"]
    parts: List[TextPart] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return " ".join(part.text for part in self.parts)

    @classmethod
    def from_text(cls, role: str, text: str) -> "ChatMessage":
        return cls(role=role, parts=[TextPart(text=text)])


class QuizQuestion(FlowModel):
    """Multiple-choice question with a valid answer index."""

    question: str
    options: List[str]
    answer: int = Field(ge=0)
    explanation: Optional[str] = None
