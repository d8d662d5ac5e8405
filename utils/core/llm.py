"""
LLM initialization for the study flows using Google Gemini.

Temperature is picked per use case:
- study: tutoring and chat (conversational)
- quiz: question and flashcard generation
- code: code analysis and teaching
- creative: persona and greeting text
- precise: deterministic listings
"""

from typing import Optional, Literal

from langchain_google_genai import ChatGoogleGenerativeAI

from config import settings
from utils.monitoring import get_logger

logger = get_logger(__name__)

UseCase = Literal["study", "quiz", "code", "creative", "precise"]


def initialize_llm(
    model_name: Optional[str] = None,
    temperature: Optional[float] = None,
    use_case: Optional[UseCase] = None,
    max_tokens: Optional[int] = None,
    **kwargs
) -> ChatGoogleGenerativeAI:
    """
    Initialize Google Gemini LLM for a flow.

    Args:
        model_name: Optional model override (default: settings.default_model)
        temperature: Optional temperature (0.0-1.0), overrides use_case
        use_case: Auto-set temperature from settings.temperature_settings
        max_tokens: Maximum output tokens
        **kwargs: Additional Gemini parameters

    Returns:
        Configured ChatGoogleGenerativeAI instance

    Examples:
        >>> llm = initialize_llm(use_case="quiz")
        >>> llm = initialize_llm(temperature=0.5, max_tokens=2048)
    """
    api_key = settings.google_api_key
    if not api_key:
        raise ValueError(
            "GOOGLE_API_KEY not found. "
            "Get your API key at: https://makersuite.google.com/app/apikey"
        )

    if temperature is None:
        temperature = settings.temperature_settings.get(use_case or "study", settings.temp_study)

    model = model_name or settings.default_model

    config = {
        "model": model,
        "temperature": temperature,
        "google_api_key": api_key,
    }

    max_tokens = max_tokens or settings.max_output_tokens
    if max_tokens:
        config["max_output_tokens"] = max_tokens

    config.update(kwargs)

    try:
        return ChatGoogleGenerativeAI(**config)
    except Exception as e:
        # If default model fails, try fallback
        if model == settings.default_model and "not found" in str(e).lower():
            logger.warning(
                "Default model unavailable, using fallback",
                model=model,
                fallback=settings.fallback_model
            )
            config["model"] = settings.fallback_model
            return ChatGoogleGenerativeAI(**config)
        raise
