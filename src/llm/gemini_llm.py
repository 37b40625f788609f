from __future__ import annotations

import os
from pathlib import Path

import httpx
from dotenv import load_dotenv
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from .provider import (
    LLMProviderConfigurationError,
    LLMProviderError,
    LLMQuotaError,
    LLMServerError,
)


class GeminiLLM:
    """Async wrapper around the Gemini SDK.

    One call to :meth:`generate` is one request; the model name is chosen per
    call so the same client serves both the primary and the fallback role.
    SDK errors are translated into the provider error hierarchy so that the
    service layer can decide what to retry.
    """

    name = "gemini"
    DEFAULT_MODEL = "gemini-2.0-flash"

    def __init__(
        self,
        *,
        api_key: str | None = None,
        client: genai.Client | None = None,
        dotenv_path: str | Path | None = None,
        temperature: float = 0.2,
        json_output: bool = True,
    ) -> None:
        if client is None:
            if dotenv_path is not None:
                load_dotenv(dotenv_path=Path(dotenv_path))
            else:
                load_dotenv()
            key = api_key or os.environ.get("AI_API_KEY") or os.environ.get("GEMINI_API_KEY")
            if not key:
                raise LLMProviderConfigurationError(
                    "AI API key not configured. Please set AI_API_KEY in environment variables."
                )
            try:
                client = genai.Client(api_key=key)
            except Exception as exc:
                raise LLMProviderConfigurationError(
                    f"Failed to create Gemini client: {exc}"
                ) from exc
        self._client = client
        self._temperature = temperature
        self._json_output = json_output

    def _build_config(self, system_instruction: str) -> types.GenerateContentConfig:
        config_kwargs = dict(
            system_instruction=system_instruction,
            temperature=self._temperature,
        )
        if self._json_output:
            config_kwargs["response_mime_type"] = "application/json"
        return types.GenerateContentConfig(**config_kwargs)

    async def generate(
        self,
        system_instruction: str,
        user_prompt: str,
        *,
        model: str,
    ) -> str:
        if not user_prompt:
            raise ValueError("user_prompt must not be empty.")

        try:
            response = await self._client.aio.models.generate_content(
                model=model or self.DEFAULT_MODEL,
                contents=user_prompt,
                config=self._build_config(system_instruction),
            )
        except genai_errors.APIError as exc:
            raise _translate_api_error(exc) from exc
        except httpx.HTTPError as exc:
            raise LLMProviderError(f"Gemini request failed: {exc}") from exc

        text = getattr(response, "text", None)
        if not isinstance(text, str) or not text.strip():
            raise LLMProviderError("Empty response from Gemini API")
        return text

    def health_check(self) -> bool:
        return self._client is not None


def _translate_api_error(exc: genai_errors.APIError) -> LLMProviderError:
    code = getattr(exc, "code", None) or 0
    detail = getattr(exc, "message", None) or str(exc)
    message = f"Gemini API error ({code}): {detail}"
    if code == 429:
        return LLMQuotaError(message)
    if code >= 500:
        return LLMServerError(message)
    return LLMProviderError(message)
