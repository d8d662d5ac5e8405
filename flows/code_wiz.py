"""Code Wiz: analysis, explanation and optimization of a code snippet."""

from typing import Optional

from pydantic import Field

from flows.base import flow_entry_point
from flows.guards import text_or_fallback, use_fallback
from flows.invoker import ModelInvoker
from flows.prompting import FlowPrompt, Section
from flows.schemas import FlowModel


class CodeInput(FlowModel):
    code: str = Field(default="", description="The code snippet.")
    language_hint: Optional[str] = Field(
        default=None,
        description='Optional programming language hint, e.g. "Python".'
    )


class AnalyzeCodeOutput(FlowModel):
    analysis: str = Field(
        description=(
            "Concise analysis: functionality, key components, patterns, and pitfalls a learner "
            "should notice. Plain text suitable for text-to-speech."
        )
    )


class ExplainCodeOutput(FlowModel):
    explanation: str = Field(
        description=(
            "Clear, encouraging line-by-line or section-by-section explanation. "
            "Plain text suitable for text-to-speech."
        )
    )


class OptimizeCodeOutput(FlowModel):
    optimized_code: str = Field(
        description="Only the optimized code as a raw string; the original code if nothing changed."
    )
    optimization_summary: str = Field(
        description="What changed and why it helps a learner. Plain text suitable for text-to-speech."
    )


EMPTY_ANALYSIS = "It seems there's no code provided for analysis. Please input some code!"
FALLBACK_ANALYSIS = (
    "I wasn't able to generate an analysis for this code. It might be too complex, too short, "
    "or I encountered an issue. Please try again or with different code."
)
EMPTY_EXPLANATION = "There's no code here to explain. Please provide some code first!"
FALLBACK_EXPLANATION = (
    "I had some trouble generating an explanation for this code. It might be very complex, "
    "incomplete, or an internal issue occurred. Please try again."
)
EMPTY_OPTIMIZATION = "No code was provided to optimize. Please input some code."
FALLBACK_OPTIMIZATION = (
    "I encountered an issue while trying to optimize this code. Please ensure the code is valid "
    "and try again. For now, the original code is shown."
)

CODE_BLOCK = Section("Code:\n```{language_hint}\n{code}\n```")
LANGUAGE_LINE = Section("The code is written in {language_hint}.", when="language_hint")
PLAIN_TEXT = "Format the output as plain text suitable for Text-to-Speech. Avoid markdown or complex formatting."

ANALYZE_PROMPT = FlowPrompt(
    name="analyze_code",
    sections=[
        Section(
            "You are Code Wiz, an assistant for Study AI+. Your role is to help learners understand code.\n"
            "Analyze the following code.\n"
            "Provide a concise summary of its functionality.\n"
            "Identify key components, algorithms, or programming patterns used.\n"
            "Point out any potential areas of interest or common pitfalls a learner should pay close "
            "attention to.\n"
            "Keep your language clear, encouraging, and easy to understand.\n" + PLAIN_TEXT
        ),
        LANGUAGE_LINE,
        CODE_BLOCK,
    ],
)

EXPLAIN_PROMPT = FlowPrompt(
    name="explain_code",
    sections=[
        Section(
            "You are Code Wiz, an assistant for Study AI+. Your goal is to make code understandable "
            "for learners.\n"
            "Explain the following code. Break it down line-by-line or section-by-section.\n"
            "Explain the purpose of each significant part and how these parts collaborate.\n"
            "Use clear, simple, and encouraging language, as if explaining to someone who is learning "
            "programming.\n" + PLAIN_TEXT
        ),
        LANGUAGE_LINE,
        CODE_BLOCK,
    ],
)

OPTIMIZE_PROMPT = FlowPrompt(
    name="optimize_code",
    sections=[
        Section(
            "You are Code Wiz, an assistant for Study AI+, focused on helping learners improve their code.\n"
            "Analyze the following code for potential optimizations: readability, efficiency within "
            "reason for a learner, and common best practices for the language.\n\n"
            "1. Optimized code: if significant improvements can be made, provide the modified code. If "
            "the code is already good for a learner's level, return the original code or make only minor "
            "readability improvements. The optimized code field MUST contain only code, with no "
            "surrounding text.\n"
            "2. Optimization summary: explain what changed and why it helps. If nothing significant "
            "changed, explain why. Plain text suitable for Text-to-Speech, no markdown."
        ),
        LANGUAGE_LINE,
        CODE_BLOCK,
    ],
)


@flow_entry_point("analyze_code", CodeInput, use_case="code")
async def analyze_code(data: CodeInput, invoker: ModelInvoker) -> AnalyzeCodeOutput:
    if not data.code.strip():
        return AnalyzeCodeOutput(analysis=EMPTY_ANALYSIS)

    raw = await invoker.invoke_raw(ANALYZE_PROMPT.render(data.model_dump()), AnalyzeCodeOutput)
    analysis = (raw or {}).get("analysis")
    return AnalyzeCodeOutput(analysis=text_or_fallback("analyze_code", analysis, FALLBACK_ANALYSIS))


@flow_entry_point("explain_code", CodeInput, use_case="code")
async def explain_code(data: CodeInput, invoker: ModelInvoker) -> ExplainCodeOutput:
    if not data.code.strip():
        return ExplainCodeOutput(explanation=EMPTY_EXPLANATION)

    raw = await invoker.invoke_raw(EXPLAIN_PROMPT.render(data.model_dump()), ExplainCodeOutput)
    explanation = (raw or {}).get("explanation")
    return ExplainCodeOutput(explanation=text_or_fallback("explain_code", explanation, FALLBACK_EXPLANATION))


@flow_entry_point("optimize_code", CodeInput, use_case="code")
async def optimize_code(data: CodeInput, invoker: ModelInvoker) -> OptimizeCodeOutput:
    """Optimize code; on a missing reply the original code is returned unchanged."""
    if not data.code.strip():
        return OptimizeCodeOutput(optimized_code="", optimization_summary=EMPTY_OPTIMIZATION)

    raw = await invoker.invoke_raw(OPTIMIZE_PROMPT.render(data.model_dump()), OptimizeCodeOutput) or {}
    optimized = raw.get("optimizedCode", raw.get("optimized_code"))
    summary = raw.get("optimizationSummary", raw.get("optimization_summary"))

    if not isinstance(optimized, str) or not isinstance(summary, str) or not summary.strip():
        use_fallback("optimize_code", "incomplete optimization reply")
        return OptimizeCodeOutput(optimized_code=data.code, optimization_summary=FALLBACK_OPTIMIZATION)

    return OptimizeCodeOutput(optimized_code=optimized, optimization_summary=summary)
