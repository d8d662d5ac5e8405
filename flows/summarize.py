"""Document summarization flow."""

from pydantic import Field

from flows.base import flow_entry_point
from flows.invoker import ModelInvoker
from flows.persona import DOCUMENT_SECTION, IMAGE_SECTION, TUTOR_PERSONA
from flows.prompting import FlowPrompt, Section
from flows.schemas import ContentInput, FlowModel
from utils.errors import ErrorMessages, FlowInputError


class SummarizeDocumentInput(ContentInput):
    pass


class SummarizeDocumentOutput(FlowModel):
    summary: str = Field(
        description=(
            "A concise summary of the key learning points in clear, conversational and "
            "motivational language, suitable for audio delivery (no bullet points or headings)."
        )
    )


NO_CONTENT_MESSAGE = "I can't generate a summary without any content. Please provide some text or an image."
NO_SUMMARY_MESSAGE = (
    "I wasn't able to generate a summary for this content. "
    "Perhaps we could try looking at it a different way?"
)

SUMMARIZE_PROMPT = FlowPrompt(
    name="summarize_document",
    sections=[
        Section(TUTOR_PERSONA),
        Section(
            "Your task is to create a concise summary of the provided content. Focus on the most "
            "important information a student should know before interactive tutoring or generating "
            "quizzes or flashcards.\n"
            "The summary should be suitable for audio/video delivery, so avoid formatting like bullet "
            "points or headings. Speak naturally as if you're explaining it one-on-one."
        ),
        Section(DOCUMENT_SECTION, when="document_content"),
        Section(IMAGE_SECTION, when="photo_data_uri"),
    ],
    content_fields=("document_content", "photo_data_uri"),
    media_field="photo_data_uri",
)


@flow_entry_point(
    "summarize_document",
    SummarizeDocumentInput,
    messages=ErrorMessages(malformed_output=NO_SUMMARY_MESSAGE),
)
async def summarize_document(data: SummarizeDocumentInput, invoker: ModelInvoker) -> SummarizeDocumentOutput:
    """Summarize document text and/or an image. No fallback summary: failures are errors."""
    if not SUMMARIZE_PROMPT.has_content(data.model_dump()):
        raise FlowInputError(NO_CONTENT_MESSAGE, field="documentContent")

    prompt = SUMMARIZE_PROMPT.render(data.model_dump())
    return await invoker.invoke(prompt, SummarizeDocumentOutput, required=("summary",))
