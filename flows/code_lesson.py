"""Code-teaching step flow: explain, example, challenge, one small concept at a time."""

from typing import Optional

from pydantic import Field

from flows.base import flow_entry_point
from flows.invoker import ModelInvoker
from flows.prompting import FlowPrompt, Section
from flows.schemas import FlowModel
from utils.errors import ErrorMessages, FlowInputError

FIRST_TOPIC = "Syntax Basics"

CODE_LESSON_MESSAGES = ErrorMessages(
    rate_limited=(
        "I'm currently very busy helping other students. Let's take a short break and try again "
        "in a few moments, okay?"
    ),
    safety_blocked=(
        "It seems some part of our current topic or your response triggered a safety filter. "
        "Let's try rephrasing or moving to a slightly different aspect of the subject."
    ),
    malformed_output=(
        "The tutor didn't return a valid step. Let's try to refresh that thought!"
    ),
    catch_all=(
        "I encountered an issue while preparing the next coding step. Details: {message}. "
        "Maybe we can try that again?"
    ),
)


class GetCodeTeachingStepInput(FlowModel):
    language: str = Field(description="Programming language being taught.")
    current_topic: str = Field(default=FIRST_TOPIC, description="Broader topic currently taught.")
    previous_explanation: Optional[str] = None
    user_answer_or_code: Optional[str] = None


class GetCodeTeachingStepOutput(FlowModel):
    topic: str = Field(description="Specific, concise title for this learning segment.")
    explanation: str = Field(
        description="Beginner-friendly explanation in natural speech; no bullet points or headings."
    )
    code_example: Optional[str] = Field(default=None, description="Short runnable snippet for this concept.")
    challenge: str = Field(description="A small question or coding task, phrased encouragingly.")
    feedback_on_previous: Optional[str] = Field(
        default=None,
        description="Constructive feedback on the student's previous answer, if one was given."
    )
    next_topic_suggestion: str = Field(
        description="Next logical topic, or a congratulatory note when the basics are covered."
    )
    is_last_step_in_topic: bool = Field(
        default=False,
        description="True when this step completes the current broader topic."
    )


CODE_LESSON_PROMPT = FlowPrompt(
    name="get_code_teaching_step",
    sections=[
        Section(
            "You are StudyEthiopia AI+, a multilingual academic tutor. For this session you are a Code "
            "Tutor, teaching programming to Ethiopian students from high school to university level.\n"
            "You communicate in clear, conversational, and motivational language at a beginner level. "
            "You never mention that you're an AI or system. Your tone is warm, patient, and empowering. "
            "You engage with questions and examples instead of lecturing, and may use culturally "
            "relevant analogies when they keep the coding concept clear.\n"
            "Responses are for audio/video delivery, so avoid bullet points or headings in the "
            "explanation, challenge and feedback. Speak as if sitting across from the student."
        ),
        Section(
            "Language to Teach: '{language}'\n"
            "Current Broader Topic: '{current_topic}' (start with \"Syntax Basics\" for the first step)."
        ),
        Section("Previous explanation you gave:\n{previous_explanation}", when="previous_explanation"),
        Section(
            "The student's previous answer or code submission was:\n```\n{user_answer_or_code}\n```\n"
            "Evaluate it. If it is incorrect or needs improvement, give warm, constructive "
            "feedbackOnPrevious and let the new explanation guide them; if it was correct, build on it.",
            when="user_answer_or_code",
        ),
        Section(
            "Task: generate the NEXT teaching step following the explain, example code, challenge cycle.\n"
            "1. topic: a granular title for this segment of '{current_topic}'.\n"
            "2. explanation: a clear, beginner-friendly explanation. Use inline backticks for brief "
            "syntax mentions; for HTML, write the actual tags.\n"
            "3. codeExample (optional): a short, runnable snippet demonstrating ONLY this concept.\n"
            "4. challenge: a simple question or very small coding task about this explanation.\n"
            "5. feedbackOnPrevious (optional): feedback on the student's previous answer.\n"
            "6. nextTopicSuggestion: the next logical topic (syntax basics, variables, data types, "
            "operators, control flow, functions, and so on). When the core beginner to intermediate "
            "topics of '{language}' are covered, suggest a congratulatory wrap-up instead.\n"
            "7. isLastStepInTopic: true if this step completes '{current_topic}', and also true for "
            "the final congratulatory step of the whole tutorial.\n"
            "Focus on one small concept per step."
        ),
    ],
)


@flow_entry_point(
    "get_code_teaching_step",
    GetCodeTeachingStepInput,
    messages=CODE_LESSON_MESSAGES,
    use_case="code",
)
async def get_code_teaching_step(
    data: GetCodeTeachingStepInput,
    invoker: ModelInvoker
) -> GetCodeTeachingStepOutput:
    """Next lesson step. There is no fallback step: a missing reply is an error."""
    if not data.language.strip():
        raise FlowInputError("Please choose a programming language to learn.", field="language")

    prompt = CODE_LESSON_PROMPT.render(data.model_dump())
    return await invoker.invoke(
        prompt,
        GetCodeTeachingStepOutput,
        required=("topic", "explanation", "challenge", "next_topic_suggestion"),
    )
