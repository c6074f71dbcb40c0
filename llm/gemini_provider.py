"""
Google Gemini text generation via the google-genai async client.
"""

from typing import Optional

from config.settings import Settings, get_settings
from llm.base import (
    Generation,
    LLMConnectionError,
    LLMError,
    LLMProvider,
    LLMRateLimitError,
    retry_transient,
)


def _classify(error: Exception) -> LLMError:
    text = str(error).lower()
    if "429" in text or "quota" in text or "resource_exhausted" in text:
        return LLMRateLimitError(f"Gemini rate limited: {error}")
    if "timeout" in text or "connection" in text or "503" in text:
        return LLMConnectionError(f"Gemini unreachable: {error}")
    return LLMError(f"Gemini request failed: {error}")


class GeminiProvider(LLMProvider):
    """Gemini flash-lite is the default digest writer."""

    name = "gemini"

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._client = None

    @property
    def model(self) -> str:
        return self.settings.gemini_model

    def is_configured(self) -> bool:
        return bool(self.settings.gemini_api_key)

    def _get_client(self):
        if self._client is None:
            from google import genai
            self._client = genai.Client(api_key=self.settings.gemini_api_key)
        return self._client

    @retry_transient
    async def generate(self, prompt: str, max_tokens: int = 2048, temperature: float = 0.3) -> Generation:
        from google.genai import types

        try:
            response = await self._get_client().aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    max_output_tokens=max_tokens,
                    temperature=temperature,
                ),
            )
        except Exception as e:
            raise _classify(e) from e

        usage = getattr(response, "usage_metadata", None)
        return Generation(
            text=response.text or "",
            model=self.model,
            provider=self.name,
            input_tokens=getattr(usage, "prompt_token_count", 0) or 0,
            output_tokens=getattr(usage, "candidates_token_count", 0) or 0,
        )
