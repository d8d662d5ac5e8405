"""Mr. Know: conversational Q&A grounded in a document and/or image."""

from typing import List

from pydantic import Field

from flows.base import flow_entry_point
from flows.guards import text_or_fallback
from flows.invoker import ModelInvoker
from flows.prompting import FlowPrompt, Section
from flows.schemas import ChatMessage, ContentInput, FlowModel
from utils.errors import ErrorMessages, FlowInputError

ROLE_LABELS = {"user": "User", "model": "Mr. Know"}

NO_CONTEXT_MESSAGE = (
    "Mr. Know needs some context (document text or image) to chat about. "
    "Please select content from the knowledge base."
)
EMPTY_QUERY_MESSAGE = "Your message cannot be empty. Please type a question for Mr. Know."
FALLBACK_RESPONSE = (
    "I'm sorry, I couldn't generate a response for that. Please try rephrasing your question "
    "or asking something else related to the context."
)

CHAT_MESSAGES = ErrorMessages(
    rate_limited=(
        "Mr. Know is currently busy or rate limits have been exceeded. "
        "Please try again in a few moments."
    ),
    safety_blocked=(
        "Your message or the provided context could not be processed due to safety filters. "
        "Please try different phrasing or content."
    ),
)


class AskMrKnowInput(ContentInput):
    chat_history: List[ChatMessage] = Field(default_factory=list)
    user_query: str = Field(default="", description="The user's latest message.")


class AskMrKnowOutput(FlowModel):
    response: str = Field(
        description=(
            "Mr. Know's reply. If the context does not allow a meaningful answer, say so politely."
        )
    )


def format_transcript(history: List[ChatMessage]) -> str:
    return "\n".join(
        f"{ROLE_LABELS[message.role]}: {message.text}"
        for message in history
    )


CHAT_PROMPT = FlowPrompt(
    name="chat_with_mr_know",
    sections=[
        Section(
            'You are "Mr. Know", a helpful and friendly assistant. Your knowledge is primarily based on '
            "the following document content and/or image.\n"
            "Answer the user's questions based on this information. If the question is clearly outside "
            "the scope of the provided context, politely state that you can only answer questions related "
            "to the document or image.\n"
            "Do not make up information. Be concise and helpful. If you are unsure or cannot answer, "
            "say so politely.\n\nContext:"
        ),
        Section("Document Text:\n{document_content}", when="document_content"),
        Section("Associated Image: see the attached image.", when="photo_data_uri"),
        Section("Chat History (User and Mr. Know):\n{transcript}", when="transcript"),
        Section("User: {user_query}\nMr. Know:"),
    ],
    content_fields=("document_content", "photo_data_uri"),
    media_field="photo_data_uri",
)


@flow_entry_point("chat_with_mr_know", AskMrKnowInput, messages=CHAT_MESSAGES)
async def chat_with_mr_know(data: AskMrKnowInput, invoker: ModelInvoker) -> AskMrKnowOutput:
    """One conversational turn. The history itself is never modified here."""
    values = data.model_dump()
    if not CHAT_PROMPT.has_content(values):
        raise FlowInputError(NO_CONTEXT_MESSAGE, field="documentContent")
    if not data.user_query.strip():
        raise FlowInputError(EMPTY_QUERY_MESSAGE, field="userQuery")

    values["transcript"] = format_transcript(data.chat_history)
    raw = await invoker.invoke_raw(CHAT_PROMPT.render(values), AskMrKnowOutput)
    response = (raw or {}).get("response")
    return AskMrKnowOutput(response=text_or_fallback("chat_with_mr_know", response, FALLBACK_RESPONSE))
