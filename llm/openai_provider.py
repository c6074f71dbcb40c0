"""
OpenAI chat completions as a text generation backend.
"""

import asyncio
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


class OpenAIProvider(LLMProvider):
    """Runs the synchronous OpenAI client in the default executor."""

    name = "openai"

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._client = None

    @property
    def model(self) -> str:
        return self.settings.openai_model

    def is_configured(self) -> bool:
        return bool(self.settings.openai_api_key)

    def _get_client(self):
        if self._client is None:
            from openai import OpenAI
            self._client = OpenAI(api_key=self.settings.openai_api_key)
        return self._client

    @retry_transient
    async def generate(self, prompt: str, max_tokens: int = 2048, temperature: float = 0.3) -> Generation:
        import openai

        client = self._get_client()
        loop = asyncio.get_running_loop()

        try:
            response = await loop.run_in_executor(
                None,
                lambda: client.chat.completions.create(
                    model=self.model,
                    messages=[{"role": "user", "content": prompt}],
                    max_tokens=max_tokens,
                    temperature=temperature,
                ),
            )
        except openai.RateLimitError as e:
            raise LLMRateLimitError(f"OpenAI rate limited: {e}") from e
        except (openai.APIConnectionError, openai.APITimeoutError) as e:
            raise LLMConnectionError(f"OpenAI unreachable: {e}") from e
        except openai.APIError as e:
            raise LLMError(f"OpenAI request failed: {e}") from e

        text = response.choices[0].message.content if response.choices else None
        usage = response.usage
        return Generation(
            text=text or "",
            model=self.model,
            provider=self.name,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
        )
