"""Core utilities: LLM initialization."""

from .llm import initialize_llm

__all__ = ["initialize_llm"]
