"""
Prompt template rendering for flows.

A ``FlowPrompt`` is an ordered list of ``Section`` objects. Each section is an
f-string template interpolated with LangChain's ``PromptTemplate`` and may be
gated on the presence (``when``) or absence (``unless``) of input fields.
Missing values never render as ``None``; when none of the content-bearing
fields are set the prompt carries ``NO_CONTENT_MARKER`` instead.
"""

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from langchain_core.messages import HumanMessage
from langchain_core.prompts import PromptTemplate

NO_CONTENT_MARKER = "No document text or image was provided."

FieldNames = Union[str, Sequence[str]]


def is_present(value: Any) -> bool:
    """True for values that carry content (non-blank strings, non-empty lists)."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) > 0
    return True


def _as_names(names: Optional[FieldNames]) -> Tuple[str, ...]:
    if names is None:
        return ()
    if isinstance(names, str):
        return (names,)
    return tuple(names)


def format_value(value: Any) -> str:
    """Render one input value as prompt text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, (list, tuple)):
        return "\n".join(f'- "{item}"' for item in value if is_present(item))
    return str(value)


@dataclass(frozen=True)
class Section:
    """
    One block of prompt text.

    ``when``: render only if any of the named fields is present.
    ``unless``: render only if none of the named fields is present.
    """

    template: str
    when: Optional[FieldNames] = None
    unless: Optional[FieldNames] = None

    def applies(self, values: Mapping[str, Any]) -> bool:
        when = _as_names(self.when)
        unless = _as_names(self.unless)
        if when and not any(is_present(values.get(name)) for name in when):
            return False
        if unless and any(is_present(values.get(name)) for name in unless):
            return False
        return True

    def render(self, values: Mapping[str, Any]) -> str:
        template = PromptTemplate.from_template(self.template)
        variables = {
            name: format_value(values.get(name))
            for name in template.input_variables
        }
        return template.format(**variables).strip()


@dataclass
class RenderedPrompt:
    """Prompt text plus at most one inline media resource."""

    text: str
    media_uri: Optional[str] = None

    def with_suffix(self, suffix: str) -> "RenderedPrompt":
        return RenderedPrompt(text=f"{self.text}\n\n{suffix}", media_uri=self.media_uri)

    def to_messages(self) -> List[HumanMessage]:
        """Build the single user message sent to the chat model."""
        if not self.media_uri:
            return [HumanMessage(content=self.text)]
        return [
            HumanMessage(content=[
                {"type": "text", "text": self.text},
                {"type": "image_url", "image_url": {"url": self.media_uri}},
            ])
        ]


@dataclass
class FlowPrompt:
    """Named prompt made of conditional sections."""

    name: str
    sections: Sequence[Section]
    content_fields: Tuple[str, ...] = ()
    media_field: Optional[str] = None

    def has_content(self, values: Mapping[str, Any]) -> bool:
        return any(is_present(values.get(name)) for name in self.content_fields)

    def render(self, values: Mapping[str, Any]) -> RenderedPrompt:
        """Render all applicable sections against ``values``."""
        merged = dict(values)
        blocks = [
            section.render(merged)
            for section in self.sections
            if section.applies(merged)
        ]
        blocks = [block for block in blocks if block]

        if self.content_fields and not self.has_content(merged):
            blocks.append(NO_CONTENT_MARKER)

        media = merged.get(self.media_field) if self.media_field else None
        return RenderedPrompt(
            text="\n\n".join(blocks),
            media_uri=media if is_present(media) else None,
        )
