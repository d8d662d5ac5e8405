"""Programming language listing for the code lessons picker."""

from typing import List, Literal

from pydantic import Field

from flows.base import flow_entry_point
from flows.guards import use_fallback
from flows.invoker import ModelInvoker
from flows.prompting import FlowPrompt, Section
from flows.schemas import FlowModel

FALLBACK_LANGUAGES = {
    "frontend": ["HTML", "CSS", "JavaScript", "TypeScript", "React"],
    "backend": ["Python", "Java", "Node.js", "PHP", "Ruby on Rails"],
}


class GetProgrammingLanguagesInput(FlowModel):
    category: Literal["frontend", "backend"]


class GetProgrammingLanguagesOutput(FlowModel):
    languages: List[str] = Field(
        description="Programming languages or technologies worth learning in this category."
    )


LANGUAGES_PROMPT = FlowPrompt(
    name="get_programming_languages",
    sections=[
        Section(
            "You are StudyEthiopia AI+, a helpful academic tutor for Ethiopian students.\n"
            'Based on the category "{category}", list 5-7 common and relevant programming languages or '
            "technologies that would be beneficial for a student to learn."
        ),
        Section(
            "For frontend, include languages like HTML, CSS, JavaScript, and perhaps a popular "
            "framework like React or Vue.\n"
            "For backend, include languages like Python, Java, Node.js (JavaScript), PHP, or Ruby."
        ),
    ],
)


@flow_entry_point("get_programming_languages", GetProgrammingLanguagesInput, use_case="precise")
async def get_programming_languages(
    data: GetProgrammingLanguagesInput,
    invoker: ModelInvoker
) -> GetProgrammingLanguagesOutput:
    raw = await invoker.invoke_raw(LANGUAGES_PROMPT.render(data.model_dump()), GetProgrammingLanguagesOutput)
    languages = (raw or {}).get("languages")

    if not isinstance(languages, list):
        languages = []
    languages = [item.strip() for item in languages if isinstance(item, str) and item.strip()]
    if not languages:
        use_fallback("get_programming_languages", "empty language list")
        languages = list(FALLBACK_LANGUAGES[data.category])
    return GetProgrammingLanguagesOutput(languages=languages)
