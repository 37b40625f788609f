from __future__ import annotations

from enum import Enum
from typing import Callable, Protocol

ProviderReporter = Callable[[str, "ProviderStatus", Exception | None], None]


class ProviderStatus(str, Enum):
    """Status used when reporting the outcome of a provider call attempt."""

    SUCCESS = "success"
    QUOTA = "quota"
    SERVER = "server"
    FAILURE = "failure"


class LLMProviderError(Exception):
    """Generic failure raised by an LLM provider.

    Raised directly for failures that must not be retried: client errors
    other than 429 and empty response bodies.
    """


class LLMQuotaError(LLMProviderError):
    """Raised when a provider reports rate-limit exhaustion (HTTP 429)."""


class LLMServerError(LLMProviderError):
    """Raised when a provider answers with a server error (HTTP 5xx)."""


class LLMProviderConfigurationError(LLMProviderError):
    """Raised when a provider cannot be configured or authenticated."""


class LLMParseError(LLMProviderError):
    """Raised when an LLM response cannot be parsed as expected.

    This exception includes the raw response text and input prompts
    to aid debugging when the LLM returns unexpected content.
    """

    def __init__(
        self,
        message: str,
        *,
        response_text: str | None = None,
        prompts: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.response_text = response_text
        self.prompts = prompts

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.response_text is not None:
            # Truncate very long responses for readability
            text = self.response_text
            if len(text) > 2000:
                text = text[:2000] + "... [truncated]"
            parts.append(f"\n--- LLM Response ---\n{text}")
        if self.prompts:
            prompt_text = "\n".join(self.prompts)
            if len(prompt_text) > 2000:
                prompt_text = prompt_text[:2000] + "... [truncated]"
            parts.append(f"\n--- Input Prompts ---\n{prompt_text}")
        return "".join(parts)


RETRIABLE_ERRORS: tuple[type[LLMProviderError], ...] = (LLMQuotaError, LLMServerError)


class LLMProvider(Protocol):
    """Shared contract for generative-model endpoints.

    ``generate`` performs exactly one request and returns the raw response
    text. Retrying is the caller's job (see :class:`src.llm.service.LLMService`).
    """

    name: str

    async def generate(
        self,
        system_instruction: str,
        user_prompt: str,
        *,
        model: str,
    ) -> str:
        """Produce a single response for the provided prompts."""
        ...

    def health_check(self) -> bool:
        """Optional quick check that returns True when the provider is ready."""
        ...
