"""
Study flows.

Each flow pairs an input schema, a prompt, an output schema and a guard, and
is exposed as an ``async`` function that returns its output or a
``FlowError``.
"""

from flows.schemas import FlowError, FlowModel, is_flow_error
from flows.summarize import summarize_document
from flows.questions import generate_questions
from flows.flashcards import generate_flashcards
from flows.chat import chat_with_mr_know
from flows.tutor import get_next_tutor_step
from flows.code_wiz import analyze_code, explain_code, optimize_code
from flows.code_lesson import get_code_teaching_step
from flows.languages import get_programming_languages
from flows.live_tutor import generate_live_tutor_context, get_next_live_tutor_text
from flows.study_session import prepare_study_session

__all__ = [
    "FlowError",
    "FlowModel",
    "is_flow_error",
    "summarize_document",
    "generate_questions",
    "generate_flashcards",
    "chat_with_mr_know",
    "get_next_tutor_step",
    "analyze_code",
    "explain_code",
    "optimize_code",
    "get_code_teaching_step",
    "get_programming_languages",
    "generate_live_tutor_context",
    "get_next_live_tutor_text",
    "prepare_study_session",
]
