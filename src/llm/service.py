from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

from .json_utils import parse_and_validate
from .provider import (
    LLMProvider,
    LLMProviderError,
    LLMQuotaError,
    ProviderReporter,
    ProviderStatus,
    RETRIABLE_ERRORS,
)

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


class LLMService:
    """Facade that makes one logical model call with retry and backoff.

    Rate-limit (429) and server (5xx) failures are retried up to
    ``max_retries`` times, so a call makes at most ``max_retries + 1``
    attempts. The wait before retry ``k`` (1-based) is
    ``retry_base_delay * 2 ** (k - 1)``. Every other provider error fails on
    the first attempt.
    """

    def __init__(
        self,
        provider: LLMProvider,
        *,
        max_retries: int = 3,
        retry_base_delay: float = 3.0,
        sleep: Sleeper | None = None,
        reporter: ProviderReporter | None = None,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self._provider = provider
        self._max_retries = max_retries
        self._retry_base_delay = max(0.0, retry_base_delay)
        self._sleep = sleep or asyncio.sleep
        self._reporter = reporter

    @property
    def provider_name(self) -> str:
        return self._provider.name

    @property
    def max_retries(self) -> int:
        return self._max_retries

    def health_check(self) -> tuple[str, bool]:
        """Run the optional health check for the provider."""

        return self._provider.name, self._provider.health_check()

    def backoff_delay(self, attempt: int) -> float:
        """Delay to wait after failed attempt ``attempt`` (0-based)."""
        return self._retry_base_delay * (2**attempt)

    async def generate(
        self,
        system_instruction: str,
        user_prompt: str,
        *,
        model: str,
    ) -> str:
        """Return the raw response text, retrying transient failures."""

        for attempt in range(self._max_retries + 1):
            try:
                text = await self._provider.generate(
                    system_instruction, user_prompt, model=model
                )
            except RETRIABLE_ERRORS as exc:
                status = (
                    ProviderStatus.QUOTA
                    if isinstance(exc, LLMQuotaError)
                    else ProviderStatus.SERVER
                )
                self._report(status, exc)
                if attempt >= self._max_retries:
                    logger.warning(
                        "%s: giving up after %d attempt(s): %s",
                        self._provider.name,
                        attempt + 1,
                        exc,
                    )
                    raise
                delay = self.backoff_delay(attempt)
                logger.debug(
                    "%s: attempt %d failed (%s); retrying in %.1fs",
                    self._provider.name,
                    attempt + 1,
                    exc,
                    delay,
                )
                await self._sleep(delay)
                continue
            except LLMProviderError as exc:
                self._report(ProviderStatus.FAILURE, exc)
                raise
            else:
                self._report(ProviderStatus.SUCCESS)
                return text

        # Unreachable: the loop either returns or raises
        raise LLMProviderError("retry loop exited without a result")

    async def generate_json(
        self,
        system_instruction: str,
        user_prompt: str,
        *,
        model: str,
        schema: Any,
    ) -> Any:
        """Generate and validate the response against ``schema``.

        Parse and schema failures raise :class:`LLMParseError` and are not
        retried.
        """
        text = await self.generate(system_instruction, user_prompt, model=model)
        return parse_and_validate(text, schema)

    def _report(
        self,
        status: ProviderStatus,
        error: Exception | None = None,
    ) -> None:
        if self._reporter is None:
            return
        self._reporter(self._provider.name, status, error)
