"""Multiple-choice question generation flow."""

from typing import List

from pydantic import Field

from config import settings
from flows.base import flow_entry_point
from flows.guards import clean_questions
from flows.invoker import ModelInvoker
from flows.persona import IMAGE_SECTION, SHORT_PERSONA
from flows.prompting import FlowPrompt, Section
from flows.schemas import ContentInput, FlowModel, QuizQuestion
from utils.errors import ErrorMessages, MalformedOutputError


class GenerateQuestionsInput(ContentInput):
    number_of_questions: int = Field(
        default_factory=lambda: settings.default_question_count,
        ge=1,
        le=50,
        description="Desired number of questions."
    )
    previous_question_texts: List[str] = Field(
        default_factory=list,
        description="Questions already asked, to avoid repetition."
    )


class GenerateQuestionsOutput(FlowModel):
    questions: List[QuizQuestion] = Field(
        default_factory=list,
        description=(
            "Multiple-choice questions. Each has exactly 4 options, the index (0-3) of the "
            "correct option in 'answer', and a brief encouraging explanation."
        )
    )


QUESTIONS_PROMPT = FlowPrompt(
    name="generate_questions",
    sections=[
        Section(
            SHORT_PERSONA + "\n"
            "Create multiple-choice questions based on the provided text content and/or an image.\n"
            "The questions should test understanding of key concepts and be suitable for high school "
            "to university level students.\n"
            "The explanations should be clear, conversational, encouraging, and help the student "
            "understand why the answer is correct."
        ),
        Section("Document Content: {document_content}", when="document_content"),
        Section(IMAGE_SECTION, when="photo_data_uri"),
        Section(
            "Generate up to {number_of_questions} multiple-choice questions. Each question MUST have "
            "exactly 4 options.\n"
            "Clearly indicate the correct answer's index (0, 1, 2, or 3) in the options array.\n"
            "Provide a brief explanation for why the answer is correct for each question."
        ),
        Section(
            "IMPORTANT: You have already generated questions with the following texts. Ensure the new "
            "questions are SUBSTANTIALLY DIFFERENT and cover NEW aspects, details, or question styles. "
            "Do NOT repeat these questions or variations of them.\n"
            "Previously generated question texts to avoid:\n{previous_question_texts}",
            when="previous_question_texts",
        ),
        Section(
            "If you cannot generate {number_of_questions} genuinely new and distinct questions, generate "
            "as many as you can. If every suitable concept has already been covered, return an empty "
            "\"questions\" array rather than rephrasing earlier questions."
        ),
    ],
    content_fields=("document_content", "photo_data_uri"),
    media_field="photo_data_uri",
)


@flow_entry_point(
    "generate_questions",
    GenerateQuestionsInput,
    messages=ErrorMessages(
        malformed_output=(
            "I wasn't able to create questions for this content. "
            "Please try again or with different material."
        )
    ),
    use_case="quiz",
)
async def generate_questions(data: GenerateQuestionsInput, invoker: ModelInvoker) -> GenerateQuestionsOutput:
    values = data.model_dump()
    if not QUESTIONS_PROMPT.has_content(values):
        return GenerateQuestionsOutput(questions=[])

    raw = await invoker.invoke_raw(QUESTIONS_PROMPT.render(values), GenerateQuestionsOutput)
    if raw is None or not isinstance(raw.get("questions"), list):
        raise MalformedOutputError("The model reply did not contain a questions array", partial=raw)

    questions = clean_questions(raw["questions"], previous=data.previous_question_texts)
    return GenerateQuestionsOutput(questions=questions[:data.number_of_questions])
