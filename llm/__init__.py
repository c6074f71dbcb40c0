"""
Text generation backends: Google Gemini and OpenAI.
"""

from llm.base import (
    Generation,
    LLMConnectionError,
    LLMError,
    LLMNotConfiguredError,
    LLMProvider,
    LLMRateLimitError,
)
from llm.factory import create_provider, get_llm_provider, reset_provider

__all__ = [
    "Generation",
    "LLMProvider",
    "LLMError",
    "LLMRateLimitError",
    "LLMConnectionError",
    "LLMNotConfiguredError",
    "create_provider",
    "get_llm_provider",
    "reset_provider",
]
