from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

from .gemini_llm import GeminiLLM
from .provider import LLMProvider


def _gemini_factory(
    *,
    api_key: str | None,
    temperature: float,
    dotenv_path: str | Path | None,
) -> LLMProvider:
    return GeminiLLM(
        api_key=api_key,
        temperature=temperature,
        dotenv_path=dotenv_path,
    )


_PROVIDER_FACTORIES = {
    "gemini": _gemini_factory,
}


def available_providers() -> list[str]:
    return list(_PROVIDER_FACTORIES.keys())


def create_provider(
    name: str | None = None,
    *,
    api_key: str | None = None,
    temperature: float = 0.2,
    dotenv_path: str | Path | None = None,
) -> LLMProvider:
    """Return the configured provider, honouring the ``LLM_PROVIDER`` hint."""

    # Load the .env early so LLM_PROVIDER is visible before we read it
    if dotenv_path is not None:
        load_dotenv(dotenv_path=str(dotenv_path), override=True)

    chosen = (name or os.environ.get("LLM_PROVIDER") or "gemini").strip().lower()
    if chosen not in _PROVIDER_FACTORIES:
        raise ValueError(f"Unknown LLM provider '{chosen}'")

    return _PROVIDER_FACTORIES[chosen](
        api_key=api_key,
        temperature=temperature,
        dotenv_path=dotenv_path,
    )
