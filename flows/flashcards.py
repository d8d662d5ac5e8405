"""Flashcard generation flow."""

from typing import List

from pydantic import Field

from config import settings
from flows.base import flow_entry_point
from flows.guards import clean_flashcards, use_fallback
from flows.invoker import ModelInvoker
from flows.persona import IMAGE_SECTION, SHORT_PERSONA
from flows.prompting import FlowPrompt, Section
from flows.schemas import ContentInput, FlowModel
from utils.errors import MalformedOutputError


class GenerateFlashcardsInput(ContentInput):
    number_of_flashcards: int = Field(
        default_factory=lambda: settings.default_flashcard_count,
        ge=1,
        le=50,
        description="Desired number of flashcards."
    )
    previous_flashcard_terms: List[str] = Field(
        default_factory=list,
        description="Terms already shown in this session."
    )


class Flashcard(FlowModel):
    term: str = Field(description="Key concept, question or vocabulary word for the front.")
    definition: str = Field(description="Clear, encouraging explanation for the back.")


class GenerateFlashcardsOutput(FlowModel):
    flashcards: List[Flashcard] = Field(default_factory=list)


FLASHCARDS_PROMPT = FlowPrompt(
    name="generate_flashcards",
    sections=[
        Section(
            SHORT_PERSONA + "\n"
            "Create concise and informative flashcards from the provided text content and/or an image.\n"
            'Each flashcard should have a "term" (a key concept, question, or vocabulary word) and a '
            '"definition" (the explanation, answer, or description).\n'
            "The language should be clear, conversational, and motivational, suitable for high school "
            "to university level students.\n"
            "Focus on the most important information suitable for learning with flashcards."
        ),
        Section("Document Content: {document_content}", when="document_content"),
        Section(IMAGE_SECTION, when="photo_data_uri"),
        Section("Generate up to {number_of_flashcards} new, distinct flashcards."),
        Section(
            "IMPORTANT: You have already generated flashcards with the following terms. Do NOT generate "
            "flashcards with these exact terms again. Focus on creating NEW and DIFFERENT flashcards.\n"
            "Previously generated terms to avoid:\n{previous_flashcard_terms}",
            when="previous_flashcard_terms",
        ),
        Section(
            'If no new flashcards can be generated, return an empty "flashcards" array.'
        ),
    ],
    content_fields=("document_content", "photo_data_uri"),
    media_field="photo_data_uri",
)


@flow_entry_point("generate_flashcards", GenerateFlashcardsInput, use_case="quiz")
async def generate_flashcards(data: GenerateFlashcardsInput, invoker: ModelInvoker) -> GenerateFlashcardsOutput:
    values = data.model_dump()
    if not FLASHCARDS_PROMPT.has_content(values):
        return GenerateFlashcardsOutput(flashcards=[])

    try:
        raw = await invoker.invoke_raw(FLASHCARDS_PROMPT.render(values), GenerateFlashcardsOutput)
    except MalformedOutputError:
        raw = None

    if raw is None or not isinstance(raw.get("flashcards"), list):
        use_fallback("generate_flashcards", "no flashcards array in reply")
        return GenerateFlashcardsOutput(flashcards=[])

    cards = clean_flashcards(raw["flashcards"], data.previous_flashcard_terms)
    return GenerateFlashcardsOutput(
        flashcards=[Flashcard(**card) for card in cards[:data.number_of_flashcards]]
    )
