"""
Text generation interface used by the summarizer.

Generation is treated as an opaque, fallible call: one prompt in, text out,
or an LLMError. Providers retry transient failures themselves.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import backoff


class LLMError(Exception):
    """Text generation failed."""
    pass


class LLMRateLimitError(LLMError):
    """Provider quota or rate limit hit."""
    pass


class LLMConnectionError(LLMError):
    """Provider unreachable or timed out."""
    pass


class LLMNotConfiguredError(LLMError):
    """Selected provider has no credentials."""
    pass


def is_retryable(error: Exception) -> bool:
    return isinstance(error, (LLMRateLimitError, LLMConnectionError))


# Shared by every provider's generate()
retry_transient = backoff.on_exception(
    backoff.expo,
    LLMError,
    max_tries=4,
    max_time=60,
    giveup=lambda e: not is_retryable(e),
)


@dataclass(frozen=True)
class Generation:
    """Text produced for one prompt."""

    text: str
    model: str
    provider: str
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class LLMProvider(ABC):
    """A configured text generation backend."""

    name: str = "base"

    @property
    @abstractmethod
    def model(self) -> str:
        """Model used for every call."""

    @abstractmethod
    def is_configured(self) -> bool:
        """True when credentials for this provider are present."""

    @abstractmethod
    async def generate(self, prompt: str, max_tokens: int = 2048, temperature: float = 0.3) -> Generation:
        """
        Generate text for a single prompt.

        Raises:
            LLMError: after retries are exhausted or on a permanent failure
        """
