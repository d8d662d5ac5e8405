"""
Flows Router - one endpoint per study flow.

The request body is the flow input (camelCase). The response is the flow
output, or ``{"error": ..., "category": ...}`` when the flow failed; both
are returned with status 200 so the UI only needs to check for ``error``.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends

from api.dependencies import get_invoker, get_or_create_correlation_id
from flows import (
    analyze_code,
    chat_with_mr_know,
    explain_code,
    generate_flashcards,
    generate_live_tutor_context,
    generate_questions,
    get_code_teaching_step,
    get_next_live_tutor_text,
    get_next_tutor_step,
    get_programming_languages,
    optimize_code,
    prepare_study_session,
    summarize_document,
)
from flows.invoker import ModelInvoker
from utils.monitoring import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/flows", tags=["Flows"])

FlowPayload = Optional[Dict[str, Any]]


async def _run(flow, payload: FlowPayload, invoker: Optional[ModelInvoker], correlation_id: str) -> Dict[str, Any]:
    logger.debug("Flow request", flow=flow.flow_name, correlation_id=correlation_id)
    result = await flow(payload or {}, invoker=invoker)
    return result.to_wire()


# ============================================================================
# Study material
# ============================================================================

@router.post("/summarize")
async def summarize(
    payload: FlowPayload = Body(default=None),
    invoker=Depends(get_invoker),
    correlation_id: str = Depends(get_or_create_correlation_id)
):
    """Summarize document text and/or an image."""
    return await _run(summarize_document, payload, invoker, correlation_id)


@router.post("/questions")
async def questions(
    payload: FlowPayload = Body(default=None),
    invoker=Depends(get_invoker),
    correlation_id: str = Depends(get_or_create_correlation_id)
):
    """Generate multiple-choice questions, avoiding previousQuestionTexts."""
    return await _run(generate_questions, payload, invoker, correlation_id)


@router.post("/flashcards")
async def flashcards(
    payload: FlowPayload = Body(default=None),
    invoker=Depends(get_invoker),
    correlation_id: str = Depends(get_or_create_correlation_id)
):
    """Generate term/definition flashcards, avoiding previousFlashcardTerms."""
    return await _run(generate_flashcards, payload, invoker, correlation_id)


@router.post("/study-session")
async def study_session(
    payload: FlowPayload = Body(default=None),
    invoker=Depends(get_invoker),
    correlation_id: str = Depends(get_or_create_correlation_id)
):
    """Summary and first quiz questions for a document in one call."""
    return await _run(prepare_study_session, payload, invoker, correlation_id)


# ============================================================================
# Conversation & tutoring
# ============================================================================

@router.post("/chat")
async def chat(
    payload: FlowPayload = Body(default=None),
    invoker=Depends(get_invoker),
    correlation_id: str = Depends(get_or_create_correlation_id)
):
    """Ask Mr. Know about the selected content."""
    return await _run(chat_with_mr_know, payload, invoker, correlation_id)


@router.post("/tutor/step")
async def tutor_step(
    payload: FlowPayload = Body(default=None),
    invoker=Depends(get_invoker),
    correlation_id: str = Depends(get_or_create_correlation_id)
):
    """
    Next interactive tutor step.

    **Modes:** teach, generate_quiz, evaluate_answer, answer_query
    """
    return await _run(get_next_tutor_step, payload, invoker, correlation_id)


@router.post("/live-tutor/context")
async def live_tutor_context(
    payload: FlowPayload = Body(default=None),
    invoker=Depends(get_invoker),
    correlation_id: str = Depends(get_or_create_correlation_id)
):
    """Persona context and greeting for a live tutor conversation."""
    return await _run(generate_live_tutor_context, payload, invoker, correlation_id)


@router.post("/live-tutor/text")
async def live_tutor_text(
    payload: FlowPayload = Body(default=None),
    invoker=Depends(get_invoker),
    correlation_id: str = Depends(get_or_create_correlation_id)
):
    """Text-only reply from the live tutor."""
    return await _run(get_next_live_tutor_text, payload, invoker, correlation_id)


# ============================================================================
# Code
# ============================================================================

@router.post("/code/analyze")
async def code_analyze(
    payload: FlowPayload = Body(default=None),
    invoker=Depends(get_invoker),
    correlation_id: str = Depends(get_or_create_correlation_id)
):
    return await _run(analyze_code, payload, invoker, correlation_id)


@router.post("/code/explain")
async def code_explain(
    payload: FlowPayload = Body(default=None),
    invoker=Depends(get_invoker),
    correlation_id: str = Depends(get_or_create_correlation_id)
):
    return await _run(explain_code, payload, invoker, correlation_id)


@router.post("/code/optimize")
async def code_optimize(
    payload: FlowPayload = Body(default=None),
    invoker=Depends(get_invoker),
    correlation_id: str = Depends(get_or_create_correlation_id)
):
    return await _run(optimize_code, payload, invoker, correlation_id)


@router.post("/code/lesson-step")
async def code_lesson_step(
    payload: FlowPayload = Body(default=None),
    invoker=Depends(get_invoker),
    correlation_id: str = Depends(get_or_create_correlation_id)
):
    """Next step of a code lesson for a language and topic."""
    return await _run(get_code_teaching_step, payload, invoker, correlation_id)


@router.post("/languages")
async def languages(
    payload: FlowPayload = Body(default=None),
    invoker=Depends(get_invoker),
    correlation_id: str = Depends(get_or_create_correlation_id)
):
    """Popular programming languages for a category (frontend or backend)."""
    return await _run(get_programming_languages, payload, invoker, correlation_id)
