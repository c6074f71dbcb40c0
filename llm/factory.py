"""
Resolves the configured text generation provider.
"""

from typing import Callable, Dict, Optional

from config.settings import Settings, get_settings
from llm.base import LLMError, LLMNotConfiguredError, LLMProvider


def _gemini(settings: Settings) -> LLMProvider:
    from llm.gemini_provider import GeminiProvider
    return GeminiProvider(settings)


def _openai(settings: Settings) -> LLMProvider:
    from llm.openai_provider import OpenAIProvider
    return OpenAIProvider(settings)


PROVIDERS: Dict[str, Callable[[Settings], LLMProvider]] = {
    "gemini": _gemini,
    "openai": _openai,
}

KEY_NAMES = {"gemini": "GEMINI_API_KEY", "openai": "OPENAI_API_KEY"}

_active: Dict[str, LLMProvider] = {}


def create_provider(name: Optional[str] = None, settings: Optional[Settings] = None) -> LLMProvider:
    """
    Build a provider by name (defaults to LLM_PROVIDER).

    Raises:
        LLMError: unknown provider name
        LLMNotConfiguredError: provider selected without its API key
    """
    settings = settings or get_settings()
    name = name or settings.llm_provider

    builder = PROVIDERS.get(name)
    if builder is None:
        raise LLMError(f"Unknown LLM provider '{name}'. Available: {', '.join(PROVIDERS)}")

    provider = builder(settings)
    if not provider.is_configured():
        raise LLMNotConfiguredError(f"LLM provider '{name}' selected but {KEY_NAMES[name]} is not set")
    return provider


def get_llm_provider(settings: Optional[Settings] = None) -> LLMProvider:
    """Configured provider, built once per provider name."""
    settings = settings or get_settings()
    name = settings.llm_provider
    if name not in _active:
        _active[name] = create_provider(name, settings)
    return _active[name]


def reset_provider() -> None:
    _active.clear()
