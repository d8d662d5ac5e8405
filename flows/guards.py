"""
Guard helpers applied to raw model output.

They repair what can be repaired (letter answers, missing explanations),
drop invalid nested items and record fallback substitutions in metrics.
"""

from typing import Any, Dict, Iterable, List, Optional

from flows.prompting import is_present
from flows.schemas import QuizQuestion
from utils.monitoring import get_logger, track_fallback

logger = get_logger(__name__)

ANSWER_LETTERS = "ABCDEFGH"


def answer_index(value: Any, option_count: int) -> Optional[int]:
    """
    Normalize an answer reference to an index into the options.

    Accepts integers, numeric strings and option letters ("A" is 0).
    Returns ``None`` when the reference is out of range or unreadable.
    """
    index: Optional[int] = None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        index = value
    elif isinstance(value, float) and value.is_integer():
        index = int(value)
    elif isinstance(value, str):
        text = value.strip().upper()
        if text.isdigit():
            index = int(text)
        elif len(text) == 1 and text in ANSWER_LETTERS:
            index = ANSWER_LETTERS.index(text)

    if index is None or not (0 <= index < option_count):
        return None
    return index


def default_explanation(answer: int) -> str:
    return f"The correct choice is option {answer + 1}. Understanding this point is key!"


def clean_question(
    raw: Any,
    option_count: Optional[int] = 4,
    min_options: int = 2
) -> Optional[QuizQuestion]:
    """
    Validate one multiple-choice question.

    With ``option_count`` set, exactly that many options are required;
    otherwise at least ``min_options``.
    """
    if not isinstance(raw, dict):
        return None

    question = raw.get("question")
    options = raw.get("options")
    if not isinstance(question, str) or not question.strip():
        return None
    if not isinstance(options, list) or not all(isinstance(o, str) for o in options):
        return None
    if option_count is not None and len(options) != option_count:
        return None
    if len(options) < min_options:
        return None

    raw_answer = raw.get("answer", raw.get("answerIndex", raw.get("correct_answer")))
    index = answer_index(raw_answer, len(options))
    if index is None:
        return None

    explanation = raw.get("explanation")
    return QuizQuestion(
        question=question.strip(),
        options=options,
        answer=index,
        explanation=explanation.strip() if is_present(explanation) else default_explanation(index),
    )


def clean_questions(raw_items: Any, previous: Iterable[str] = ()) -> List[QuizQuestion]:
    """Keep only well-formed four-option questions not asked before."""
    if not isinstance(raw_items, list):
        return []

    seen = {text.strip().lower() for text in previous if is_present(text)}
    questions = []
    dropped = 0
    for raw in raw_items:
        question = clean_question(raw)
        if question is None or question.question.lower() in seen:
            dropped += 1
            continue
        seen.add(question.question.lower())
        questions.append(question)

    if dropped:
        logger.info("Dropped invalid questions", dropped=dropped, kept=len(questions))
    return questions


def clean_mini_quiz(raw: Any) -> Optional[Dict[str, Any]]:
    """
    Validate a tutor mini-quiz.

    Needs at least two options and an answer index inside them; otherwise the
    quiz is dropped.
    """
    if not isinstance(raw, dict):
        return None

    candidate = dict(raw)
    if "answerIndex" in candidate and "answer" not in candidate:
        candidate["answer"] = candidate["answerIndex"]
    question = clean_question(candidate, option_count=None, min_options=2)
    if question is None:
        return None
    return {
        "question": question.question,
        "options": question.options,
        "answer_index": question.answer,
        "explanation": raw.get("explanation") if is_present(raw.get("explanation")) else None,
    }


def clean_flashcards(raw_items: Any, previous_terms: Iterable[str] = ()) -> List[Dict[str, str]]:
    """Keep cards with a term and a definition whose term is new."""
    if not isinstance(raw_items, list):
        return []

    seen = {term.strip().lower() for term in previous_terms if is_present(term)}
    cards = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            continue
        term, definition = raw.get("term"), raw.get("definition")
        if not (isinstance(term, str) and isinstance(definition, str)):
            continue
        if not term.strip() or not definition.strip():
            continue
        if term.strip().lower() in seen:
            continue
        seen.add(term.strip().lower())
        cards.append({"term": term.strip(), "definition": definition.strip()})
    return cards


def text_or_fallback(flow: str, value: Any, fallback: str) -> str:
    """Return ``value`` when it is non-blank text, otherwise the fallback."""
    if isinstance(value, str) and value.strip():
        return value
    use_fallback(flow, "empty text output")
    return fallback


def use_fallback(flow: str, reason: str):
    """Record that a flow substituted its documented fallback."""
    logger.info("Using fallback output", flow=flow, reason=reason)
    track_fallback(flow)
