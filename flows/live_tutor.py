"""
Live (video avatar) tutor flows.

``generate_live_tutor_context`` prepares the persona setup handed to the
video-avatar vendor; ``get_next_live_tutor_text`` produces the next line the
avatar speaks. The vendor call itself happens outside this service.
"""

from typing import List, Literal, Optional

from pydantic import Field

from flows.base import flow_entry_point
from flows.guards import text_or_fallback, use_fallback
from flows.invoker import ModelInvoker
from flows.prompting import FlowPrompt, Section, is_present
from flows.schemas import ContentInput, FlowModel
from utils.errors import ErrorMessages, FlowInputError

TUTOR_NAME = "StudyEthiopia AI+"
DISPLAY_ROLES = {"user": "Student", "model": TUTOR_NAME}

NO_CONTEXT_MESSAGE = "Tutor needs context (document text or image) to continue the session."
EMPTY_QUERY_MESSAGE = "Your message cannot be empty. What would you like to ask or discuss?"
FALLBACK_TUTOR_TEXT = (
    "I'm sorry, I couldn't generate a response for that. Could you try rephrasing your question "
    "or asking about a different part of the material?"
)

LIVE_TUTOR_MESSAGES = ErrorMessages(
    rate_limited="The tutor is currently very busy. Please try again in a few moments.",
    safety_blocked=(
        "Your message or the context could not be processed due to safety filters. "
        "Let's try a different phrasing or topic."
    ),
    catch_all="The tutor encountered an issue: {message}. Let's try that again?",
)


class LiveTutorContextInput(FlowModel):
    document_name: str = Field(default="", description="Title of the material the tutor focuses on.")
    document_content: str = Field(default="")
    media_data_uri: Optional[str] = None


class LiveTutorContextOutput(FlowModel):
    conversation_name: str = Field(alias="conversation_name", description="Name for the video conversation.")
    conversational_context: str = Field(
        alias="conversational_context",
        description="Detailed system prompt for the tutor persona, specific to this material."
    )
    custom_greeting: str = Field(
        alias="custom_greeting",
        description="Warm opening line that references the document name."
    )


class LiveChatMessage(FlowModel):
    role: Literal["user", "model"]
    text: str = ""


class LiveTutorTextInput(ContentInput):
    document_name: str = ""
    chat_history: List[LiveChatMessage] = Field(default_factory=list)
    user_query: str = ""


class LiveTutorTextOutput(FlowModel):
    tutor_text_response: str = Field(
        description="What the tutor says next; plain speakable text with no lists or markdown."
    )


GENERIC_CONTEXT = LiveTutorContextOutput(
    conversation_name=f"General Tutoring Session with {TUTOR_NAME}",
    conversational_context=(
        f"You are {TUTOR_NAME}, a friendly and knowledgeable tutor. You are ready to help a student "
        "with various academic topics. Be encouraging and explain concepts clearly. Your persona is "
        "warm, patient, and empowering. Ask questions to understand the student's needs."
    ),
    custom_greeting=f"Hello! I'm {TUTOR_NAME}. What can I help you learn about today?",
)


def default_context(data: LiveTutorContextInput) -> LiveTutorContextOutput:
    """Deterministic persona context built from the document name."""
    topic = data.document_name.strip()
    reference = data.document_content.strip()
    if is_present(data.media_data_uri):
        reference = f"{reference} An image accompanies this material.".strip()
    return LiveTutorContextOutput(
        conversation_name=f"Tutoring: {topic or 'Selected Topic'}",
        conversational_context=(
            f"You are {TUTOR_NAME}, a friendly and knowledgeable tutor. You are helping a student learn "
            f"about \"{topic or 'the selected topic'}\". Be encouraging and explain concepts clearly. "
            f"Use the provided content as your primary reference: {reference}"
        ),
        custom_greeting=(
            f"Hello! I'm {TUTOR_NAME}, and I'm ready to explore {topic or 'this topic'} with you! "
            "What's on your mind?"
        ),
    )


CONTEXT_PROMPT = FlowPrompt(
    name="generate_live_tutor_context",
    sections=[
        Section(
            f'You are creating the setup for a conversational video tutor persona named "{TUTOR_NAME}".\n'
            "The tutor helps Ethiopian students (high school to university) learn specific content. "
            "The tutor should be multilingual (Amharic and English), clear, conversational, motivational, "
            "patient and empowering; personalize explanations; teach through questions and examples "
            "rather than lectures; be culturally aware; focus on academic subjects; never refer to "
            "itself as an AI; and gently redirect off-topic discussion back to the material."
        ),
        Section(
            "Given the document details below, generate:\n"
            '1. conversation_name: e.g. "Interactive Session on {document_name}".\n'
            "2. conversational_context: a comprehensive system prompt for the persona that includes "
            "the traits above and states that the tutor focuses on the provided document or image.\n"
            "3. custom_greeting: a friendly opening line that references the document name."
        ),
        Section("Document Name: {document_name}"),
        Section("Document Content:\n{document_content}", when="document_content"),
        Section("Image to consider: see the attached image.", when="media_data_uri"),
    ],
    content_fields=("document_content", "media_data_uri"),
    media_field="media_data_uri",
)

TEXT_PROMPT = FlowPrompt(
    name="get_next_live_tutor_text",
    sections=[
        Section(
            f"You are {TUTOR_NAME}, continuing a tutoring session with a student.\n"
            'The current tutoring session is about: "{document_name}".\n'
            "Your knowledge for this session is primarily based on the document content and/or image below."
        ),
        Section("Document Name: {document_name}"),
        Section("Document Content:\n{document_content}", when="document_content"),
        Section("Associated Image: see the attached image.", when="photo_data_uri"),
        Section(f"Chat History (Student and you, {TUTOR_NAME}):\n" + "{transcript}", when="transcript"),
        Section('Student\'s latest query/response: "{user_query}"', when="user_query"),
        Section(
            "Generate the next tutor response:\n"
            "- a natural continuation of the conversation, true to your persona;\n"
            '- focused on explaining concepts from "{document_name}", asking questions and guiding '
            "the student;\n"
            "- conversational, encouraging and clear, with no lists, markdown or complex formatting "
            "since it is spoken aloud;\n"
            '- gently redirect off-topic queries back to "{document_name}"; answer questions from the '
            "provided context; acknowledge answers to your previous question and move on."
        ),
    ],
    content_fields=("document_content", "photo_data_uri"),
    media_field="photo_data_uri",
)


@flow_entry_point("generate_live_tutor_context", LiveTutorContextInput, use_case="creative")
async def generate_live_tutor_context(
    data: LiveTutorContextInput,
    invoker: ModelInvoker
) -> LiveTutorContextOutput:
    values = data.model_dump()
    if not CONTEXT_PROMPT.has_content(values):
        return GENERIC_CONTEXT.model_copy()

    raw = await invoker.invoke_raw(CONTEXT_PROMPT.render(values), LiveTutorContextOutput) or {}
    fields = ("conversation_name", "conversational_context", "custom_greeting")
    if not all(isinstance(raw.get(name), str) and raw[name].strip() for name in fields):
        use_fallback("generate_live_tutor_context", "incomplete persona context")
        return default_context(data)
    return LiveTutorContextOutput(**{name: raw[name].strip() for name in fields})


@flow_entry_point("get_next_live_tutor_text", LiveTutorTextInput, messages=LIVE_TUTOR_MESSAGES)
async def get_next_live_tutor_text(data: LiveTutorTextInput, invoker: ModelInvoker) -> LiveTutorTextOutput:
    """Next spoken line. An empty query is allowed only right after the greeting."""
    values = data.model_dump()
    if not TEXT_PROMPT.has_content(values):
        raise FlowInputError(NO_CONTEXT_MESSAGE, field="documentContent")
    if not data.user_query.strip() and len(data.chat_history) > 1:
        raise FlowInputError(EMPTY_QUERY_MESSAGE, field="userQuery")

    values["transcript"] = "\n".join(
        f"{DISPLAY_ROLES[message.role]}: {message.text}" for message in data.chat_history
    )
    raw = await invoker.invoke_raw(TEXT_PROMPT.render(values), LiveTutorTextOutput) or {}
    text = raw.get("tutorTextResponse", raw.get("tutor_text_response"))
    return LiveTutorTextOutput(
        tutor_text_response=text_or_fallback("get_next_live_tutor_text", text, FALLBACK_TUTOR_TEXT)
    )
