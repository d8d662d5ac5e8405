"""
Study session preparation: summary and quiz questions for one piece of content.

The two model calls run concurrently. A missing summary or an empty question
list is replaced with placeholders so the session can still start.
"""

import asyncio
from typing import List, Optional

from pydantic import Field

from flows.base import flow_entry_point
from flows.guards import use_fallback
from flows.invoker import ModelInvoker
from flows.questions import GenerateQuestionsInput, generate_questions
from flows.schemas import FlowModel, QuizQuestion
from flows.summarize import SummarizeDocumentInput, summarize_document
from utils.errors import ErrorMessages, FlowInputError, MalformedOutputError

PLACEHOLDER_SUMMARY = (
    "The AI could not generate a summary. This might be because the content was too short, "
    "unsuitable for summarization, or an issue occurred. Please try with different content or "
    "ensure the provided image (if any) is clear."
)
PLACEHOLDER_QUESTIONS = (
    QuizQuestion(
        question="Sample Question 1: What is a key characteristic of effective learning material?",
        options=["Clarity and conciseness", "Length and complexity", "Use of jargon", "Ambiguity"],
        answer=0,
    ),
    QuizQuestion(
        question="Sample Question 2: If an AI fails to generate questions, what might be a reason?",
        options=[
            "The input content was too short or unclear",
            "The AI model is perfect",
            "The user interface is faulty",
            "Network connectivity is always perfect",
        ],
        answer=0,
    ),
)

STUDY_SESSION_MESSAGES = ErrorMessages(
    safety_blocked=(
        "The content could not be processed due to safety filters or was blocked by the AI. "
        "Please try with different content."
    ),
    catch_all=(
        "AI processing failed. This could be due to the content provided or a temporary issue with "
        "the AI service. Details: {message}. If the problem persists, try with different content."
    ),
)


class PrepareStudySessionInput(FlowModel):
    document_name: str = ""
    document_content: str = ""
    media_data_uri: Optional[str] = None


class StudySessionData(FlowModel):
    document_name: str
    summary: str
    questions: List[QuizQuestion] = Field(default_factory=list)
    document_content: Optional[str] = None
    media_data_uri: Optional[str] = None


def with_explanation(question: QuizQuestion) -> QuizQuestion:
    if question.explanation:
        return question
    correct = question.options[question.answer]
    return question.model_copy(update={
        "explanation": (
            f'The correct answer is "{correct}" (option {question.answer + 1}). For actual content, '
            "a more detailed AI-generated explanation would ideally appear here."
        )
    })


async def _summary(content: SummarizeDocumentInput, invoker: ModelInvoker) -> Optional[str]:
    try:
        result = await summarize_document.body(content, invoker)
    except MalformedOutputError:
        return None
    return result.summary


async def _questions(content: GenerateQuestionsInput, invoker: ModelInvoker) -> List[QuizQuestion]:
    try:
        result = await generate_questions.body(content, invoker)
    except MalformedOutputError:
        return []
    return result.questions


@flow_entry_point("prepare_study_session", PrepareStudySessionInput, messages=STUDY_SESSION_MESSAGES)
async def prepare_study_session(data: PrepareStudySessionInput, invoker: ModelInvoker) -> StudySessionData:
    if not data.document_name.strip():
        raise FlowInputError("Document name cannot be empty.", field="documentName")
    if not data.document_content.strip() and not data.media_data_uri:
        raise FlowInputError(
            "Document content or media (image/audio) must be provided.",
            field="documentContent"
        )

    results = await asyncio.gather(
        _summary(
            SummarizeDocumentInput(document_content=data.document_content, photo_data_uri=data.media_data_uri),
            invoker,
        ),
        _questions(
            GenerateQuestionsInput(document_content=data.document_content, photo_data_uri=data.media_data_uri),
            invoker,
        ),
        return_exceptions=True,
    )
    for outcome in results:
        if isinstance(outcome, Exception):
            raise outcome
    summary, questions = results

    if not summary:
        use_fallback("prepare_study_session", "missing summary")
        summary = PLACEHOLDER_SUMMARY
    if not questions:
        use_fallback("prepare_study_session", "no questions")
        questions = list(PLACEHOLDER_QUESTIONS)

    return StudySessionData(
        document_name=data.document_name,
        summary=summary,
        questions=[with_explanation(question) for question in questions],
        document_content=data.document_content,
        media_data_uri=data.media_data_uri,
    )
