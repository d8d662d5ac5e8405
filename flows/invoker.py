"""
Model invocation wrapper.

Sends one rendered prompt to the chat model, parses the JSON reply and turns
transport failures into classified ``LLMError`` subclasses. No retries.
"""

import json
from typing import Any, Dict, Optional, Sequence, Type, TypeVar

from langchain_core.output_parsers import PydanticOutputParser
from langchain_core.utils.json import parse_json_markdown
from pydantic import BaseModel, ValidationError

from flows.prompting import RenderedPrompt, is_present
from utils.core.llm import UseCase, initialize_llm
from utils.errors import BaseApplicationError, MalformedOutputError, classify_exception
from utils.monitoring import get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)


def extract_json(content: str) -> Optional[Any]:
    """Parse JSON from a model reply, tolerating markdown fences and surrounding prose."""
    content = (content or "").strip()
    if not content:
        return None

    try:
        parsed = parse_json_markdown(content)
    except ValueError:
        parsed = None
    if parsed is not None:
        return parsed

    # Replies sometimes wrap the object in prose without a fence
    start, end = content.find("{"), content.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        return json.loads(content[start:end + 1], strict=False)
    except json.JSONDecodeError:
        return None


def field_value(raw: Dict[str, Any], schema: Type[BaseModel], name: str) -> Any:
    """Read a field from raw output by its wire alias, falling back to the Python name."""
    info = schema.model_fields.get(name)
    alias = info.alias if info is not None and info.alias else name
    return raw.get(alias, raw.get(name))


def message_text(message: Any) -> str:
    """Flatten an AIMessage (string or content-part list) into text."""
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts)
    return str(content or "")


class ModelInvoker:
    """
    Single-shot structured model call.

    The LLM is created lazily so that flows can be imported (and tested with
    an injected mock) without an API key.
    """

    def __init__(self, llm: Any = None, use_case: UseCase = "study"):
        self._llm = llm
        self.use_case = use_case

    @property
    def llm(self):
        if self._llm is None:
            self._llm = initialize_llm(use_case=self.use_case)
        return self._llm

    @staticmethod
    def format_instructions(schema: Type[BaseModel]) -> str:
        return PydanticOutputParser(pydantic_object=schema).get_format_instructions()

    async def invoke_raw(
        self,
        prompt: RenderedPrompt,
        schema: Type[BaseModel]
    ) -> Optional[Dict[str, Any]]:
        """
        Call the model once and return the parsed JSON object.

        Returns ``None`` when the reply is empty or not a JSON object.
        Raises a classified ``LLMError`` on transport failure.
        """
        full_prompt = prompt.with_suffix(self.format_instructions(schema))

        try:
            response = await self.llm.ainvoke(full_prompt.to_messages())
        except BaseApplicationError:
            raise
        except Exception as e:
            error = classify_exception(e)
            logger.warning(
                "Model call failed",
                schema=schema.__name__,
                category=error.category.value,
                reason=str(e)[:200]
            )
            raise error from e

        parsed = extract_json(message_text(response))
        if not isinstance(parsed, dict):
            logger.warning("Model reply was not a JSON object", schema=schema.__name__)
            return None
        return parsed

    async def invoke(
        self,
        prompt: RenderedPrompt,
        schema: Type[T],
        required: Sequence[str] = ()
    ) -> T:
        """
        Call the model and validate the reply against ``schema``.

        Raises:
            MalformedOutputError: reply unparseable, invalid, or missing a
                required field (``partial`` carries whatever was parsed).
        """
        raw = await self.invoke_raw(prompt, schema)
        if raw is None:
            raise MalformedOutputError(
                f"The model returned no usable {schema.__name__}",
                partial=None
            )

        missing = [name for name in required if not is_present(field_value(raw, schema, name))]
        if missing:
            raise MalformedOutputError(
                f"The model reply is missing {', '.join(missing)}",
                partial=raw
            )

        try:
            return schema.model_validate(raw)
        except ValidationError as e:
            raise MalformedOutputError(
                f"The model reply did not match {schema.__name__}",
                partial=raw
            ) from e
