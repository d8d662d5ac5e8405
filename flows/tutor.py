"""
Interactive tutor flow.

Each call produces one step of a tutoring session: a teaching scene, a
mini-quiz, feedback on a quiz answer, or an answer to an ad-hoc question.
Completion is decided by the model through ``is_last_teaching_step``.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from flows.base import flow_entry_point
from flows.guards import clean_mini_quiz, text_or_fallback, use_fallback
from flows.invoker import ModelInvoker
from flows.prompting import FlowPrompt, Section
from flows.schemas import ContentInput, FlowError, FlowModel
from utils.errors import ErrorCategory, ErrorMessages, FlowInputError, MalformedOutputError

ICON_HINTS = (
    "Brain", "Lightbulb", "Zap", "BookOpen", "Palette", "FileText", "DatabaseZap", "Edit3",
    "Layers", "GraduationCap", "MessageCircleQuestion", "Code2", "Sparkles", "HelpCircle",
    "CheckCircle", "XCircle", "DivideCircle", "AlertCircle",
)
COLOR_THEME_HINTS = ("science", "technology", "history", "arts", "general", "mathematics", "language")

IconName = Literal[ICON_HINTS]
ColorTheme = Literal[COLOR_THEME_HINTS]
InteractionMode = Literal["teach", "generate_quiz", "evaluate_answer", "answer_query"]
OutputMode = Literal["teach", "quiz", "feedback", "answer_query"]

OUTPUT_MODES: Dict[str, str] = {
    "teach": "teach",
    "generate_quiz": "quiz",
    "evaluate_answer": "feedback",
    "answer_query": "answer_query",
}

START_OF_SESSION = "Start of session"

NO_CONTENT_MESSAGE = (
    "It looks like there's no content loaded for this tutoring session. "
    "Please select a document or image."
)
MISSING_ANSWER_MESSAGE = "Missing user answer or question context for evaluation."
EMPTY_QUERY_MESSAGE = "User query cannot be empty when asking a question."
QUIZ_FAILED_MESSAGE = "AI failed to generate a quiz. Please try again."

TUTOR_MESSAGES = ErrorMessages(
    rate_limited=(
        "It seems my systems are a bit busy at the moment. Let's take a short break and try again "
        "in a few moments, okay?"
    ),
    safety_blocked=(
        "It seems some part of our current topic or your response triggered a safety filter. "
        "Let's try rephrasing or moving to a slightly different aspect of the subject."
    ),
    malformed_output=(
        "I'm having a little trouble processing that right now. "
        "Could we try that again or perhaps a different topic?"
    ),
    catch_all="I encountered an issue while preparing the next step. Details: {message}. Maybe we can try that again?",
)


class InteractiveTutorInput(ContentInput):
    document_name: str = Field(default="", description="Name of the document being tutored.")
    current_learning_context: str = Field(
        default=START_OF_SESSION,
        description="What was last taught, or the scene shown when a question was asked."
    )
    interaction_mode: InteractionMode = "teach"
    user_query_or_answer: Optional[str] = None
    quiz_question_context: Optional[str] = None


class TeachingScene(FlowModel):
    title: str = Field(description="Concise, engaging title for this teaching scene.")
    description: str = Field(description="Speakable teaching content, a few short paragraphs.")
    icon_name: IconName = Field(default="Brain", description="Icon hint from the allowed list.")
    color_theme_hint: ColorTheme = Field(default="general", description="Colour theme hint.")
    is_last_teaching_step: bool = Field(
        default=False,
        description="True only when all key concepts of the document are covered."
    )


class TutorQuiz(FlowModel):
    question: str
    options: List[str] = Field(description="3 or 4 multiple-choice options.")
    answer_index: int = Field(ge=0, description="0-based index of the correct option.")
    explanation: Optional[str] = None


class TutorFeedback(FlowModel):
    text: str = Field(description="Encouraging feedback; a gentle re-explanation when incorrect.")
    is_correct: bool


class InteractiveTutorOutput(FlowModel):
    mode: OutputMode
    teaching_scene: Optional[TeachingScene] = None
    quiz: Optional[TutorQuiz] = None
    feedback: Optional[TutorFeedback] = None
    ai_query_response_text: Optional[str] = None


CONTENT_NEEDED_SCENE = TeachingScene(
    title="Content Needed",
    description=(
        "It seems no content is loaded for our session. "
        "Please select an item from your knowledge base first!"
    ),
    icon_name="AlertCircle",
    color_theme_hint="general",
    is_last_teaching_step=True,
)
FALLBACK_SCENE = TeachingScene(
    title="Oops!",
    description=(
        "I had a little trouble preparing that specific learning segment. Let's try moving to the "
        "next idea, or you can ask me to quiz you on what we've covered!"
    ),
    icon_name="HelpCircle",
    color_theme_hint="general",
    is_last_teaching_step=False,
)
FALLBACK_FEEDBACK = TutorFeedback(
    text="Thanks for your answer! Let's continue our learning journey.",
    is_correct=True,
)
FALLBACK_QUERY_ANSWER = (
    "I'm sorry, I couldn't quite understand that question in this context. "
    "Could you try rephrasing it?"
)

TUTOR_PROMPT = FlowPrompt(
    name="get_next_tutor_step",
    sections=[
        Section(
            "You are Study AI+, a dynamic and engaging tutor. Your goal is to teach Ethiopian students "
            "(high school to university) using visually appealing teaching scenes, interactive quizzes, "
            "and by answering their questions.\n"
            "Personality: warm, patient, encouraging, clear, and motivational. Use relatable analogies. "
            "Never refer to yourself as an AI. Your speech is for audio delivery, so make it sound natural."
        ),
        Section("Document Context for this session:\n- Document Name: {document_name}"),
        Section("- Document Text: {document_content}", when="document_content"),
        Section(
            "- Associated Image: see the attached image.\n"
            "(Base your teaching primarily on this provided context.)",
            when="photo_data_uri",
        ),
        Section(
            "Current Interaction Mode: {interaction_mode}\n"
            'Current Learning Context: "{current_learning_context}" (a summary of what was last taught, '
            'the scene shown when a question was asked, or "Start of session" if new.)'
        ),
        Section(
            'Respond with mode "teach". Generate a teaching scene:\n'
            "- title: a concise, engaging title for THIS new teaching segment.\n"
            "- description: 2-4 engaging, conversational sentences.\n"
            "- iconName: ONE of " + ", ".join(ICON_HINTS) + ". Pick Brain or Sparkles if unsure.\n"
            "- colorThemeHint: ONE of " + ", ".join(COLOR_THEME_HINTS) + ". Pick general if unsure.\n"
            '- isLastTeachingStep: true ONLY if all key concepts from "{document_name}" are covered and '
            "this is the final, wrap-up scene.\n"
            "Focus on the next logical piece of information after the current learning context. At the "
            'start of the session, give an engaging introduction to "{document_name}". When resuming '
            "after a question or a skipped quiz, use a smooth, varied transition.",
            when="is_teach",
        ),
        Section(
            'Respond with mode "quiz". Based on the current learning context, generate a quiz:\n'
            "- question: one clear multiple-choice question testing that content.\n"
            "- options: 3 or 4 plausible options.\n"
            "- answerIndex: the 0-based index of the correct option.\n"
            "- explanation: a brief, encouraging explanation of the correct answer.",
            when="is_generate_quiz",
        ),
        Section(
            'Respond with mode "feedback". The user answered: "{user_query_or_answer}" for the question: '
            '"{quiz_question_context}".\n'
            "- text: encouraging feedback. If correct, affirm it enthusiastically. If incorrect, gently "
            "correct and re-explain the core concept. Avoid simply saying \"Incorrect.\"\n"
            "- isCorrect: whether the answer is correct.",
            when="is_evaluate_answer",
        ),
        Section(
            'Respond with mode "answer_query". The user asked: "{user_query_or_answer}" during a '
            'presentation about: "{current_learning_context}".\n'
            "Give a concise, clear and helpful aiQueryResponseText using the document and the current "
            "learning context. No transition phrase is needed; the presentation resumes on its own.",
            when="is_answer_query",
        ),
        Section(
            "General rules: follow the schema for the requested mode, choose icons and themes that make "
            "scenes distinct and relevant, and keep descriptions speakable."
        ),
    ],
    content_fields=("document_content", "photo_data_uri"),
    media_field="photo_data_uri",
)


def _validate_request(data: InteractiveTutorInput, has_content: bool):
    if not has_content and data.interaction_mode != "teach":
        raise FlowInputError(NO_CONTENT_MESSAGE, field="documentContent")
    if data.interaction_mode == "evaluate_answer" and not (
        (data.user_query_or_answer or "").strip() and (data.quiz_question_context or "").strip()
    ):
        raise FlowInputError(MISSING_ANSWER_MESSAGE, field="userQueryOrAnswer")
    if data.interaction_mode == "answer_query" and not (data.user_query_or_answer or "").strip():
        raise FlowInputError(EMPTY_QUERY_MESSAGE, field="userQueryOrAnswer")


def _scene(raw: Any) -> Optional[TeachingScene]:
    if not isinstance(raw, dict):
        return None
    title, description = raw.get("title"), raw.get("description")
    if not (isinstance(title, str) and title.strip() and isinstance(description, str) and description.strip()):
        return None
    icon = raw.get("iconName", raw.get("icon_name"))
    theme = raw.get("colorThemeHint", raw.get("color_theme_hint"))
    return TeachingScene(
        title=title.strip(),
        description=description.strip(),
        icon_name=icon if icon in ICON_HINTS else "Brain",
        color_theme_hint=theme if theme in COLOR_THEME_HINTS else "general",
        is_last_teaching_step=bool(raw.get("isLastTeachingStep", raw.get("is_last_teaching_step", False))),
    )


def _feedback(raw: Any) -> Optional[TutorFeedback]:
    if not isinstance(raw, dict):
        return None
    text = raw.get("text")
    is_correct = raw.get("isCorrect", raw.get("is_correct"))
    if not (isinstance(text, str) and text.strip()) or not isinstance(is_correct, bool):
        return None
    return TutorFeedback(text=text.strip(), is_correct=is_correct)


def repair_tutor_output(mode: str, raw: Dict[str, Any]) -> InteractiveTutorOutput:
    """
    Apply the per-mode guard to a raw tutor reply.

    The output mode always follows the requested interaction mode. An invalid
    quiz is dropped; missing scenes, feedback or answers get fallbacks.
    """
    output = InteractiveTutorOutput(mode=mode)

    quiz = clean_mini_quiz(raw.get("quiz"))
    if quiz is not None:
        output.quiz = TutorQuiz(**quiz)
    elif raw.get("quiz") is not None:
        use_fallback("get_next_tutor_step", "invalid quiz dropped")

    if mode == "teach":
        output.teaching_scene = _scene(raw.get("teachingScene", raw.get("teaching_scene")))
        if output.teaching_scene is None:
            use_fallback("get_next_tutor_step", "missing teaching scene")
            output.teaching_scene = FALLBACK_SCENE.model_copy()
    elif mode == "feedback":
        output.feedback = _feedback(raw.get("feedback"))
        if output.feedback is None:
            use_fallback("get_next_tutor_step", "missing feedback")
            output.feedback = FALLBACK_FEEDBACK.model_copy()
    elif mode == "answer_query":
        output.ai_query_response_text = text_or_fallback(
            "get_next_tutor_step",
            raw.get("aiQueryResponseText", raw.get("ai_query_response_text")),
            FALLBACK_QUERY_ANSWER,
        )
    return output


@flow_entry_point("get_next_tutor_step", InteractiveTutorInput, messages=TUTOR_MESSAGES)
async def get_next_tutor_step(data: InteractiveTutorInput, invoker: ModelInvoker):
    values = data.model_dump()
    has_content = TUTOR_PROMPT.has_content(values)
    _validate_request(data, has_content)

    if data.interaction_mode == "teach" and not has_content:
        return InteractiveTutorOutput(mode="teach", teaching_scene=CONTENT_NEEDED_SCENE.model_copy())

    for mode in OUTPUT_MODES:
        values[f"is_{mode}"] = data.interaction_mode == mode

    raw = await invoker.invoke_raw(TUTOR_PROMPT.render(values), InteractiveTutorOutput)
    if raw is None:
        raise MalformedOutputError("The tutor step reply was empty")

    output = repair_tutor_output(OUTPUT_MODES[data.interaction_mode], raw)
    if output.mode == "quiz" and output.quiz is None:
        return FlowError(error=QUIZ_FAILED_MESSAGE, category=ErrorCategory.MALFORMED_OUTPUT)
    return output
