"""Tests for provider registry environment variable handling."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path for test imports
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.llm.provider_registry import (
    _PROVIDER_FACTORIES,
    available_providers,
    create_provider,
)


class MockProvider:
    """Mock provider for testing."""

    def __init__(self, name: str, api_key: str | None, temperature: float):
        self.name = name
        self.api_key = api_key
        self.temperature = temperature

    async def generate(self, system_instruction: str, user_prompt: str, *, model: str) -> str:
        return "[]"

    def health_check(self) -> bool:
        return True


def mock_provider_factory(name: str):
    """Factory that returns a mock provider factory function."""

    def factory(*, api_key, temperature, dotenv_path):
        return MockProvider(name, api_key, temperature)

    return factory


def test_gemini_is_registered() -> None:
    assert "gemini" in available_providers()


def test_explicit_name_overrides_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(_PROVIDER_FACTORIES, "mock1", mock_provider_factory("mock1"))
    monkeypatch.setitem(_PROVIDER_FACTORIES, "mock2", mock_provider_factory("mock2"))
    monkeypatch.setenv("LLM_PROVIDER", "mock2")

    provider = create_provider("mock1", api_key="k", temperature=0.4)

    assert provider.name == "mock1"
    assert provider.api_key == "k"
    assert provider.temperature == 0.4


def test_environment_selects_provider(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(_PROVIDER_FACTORIES, "mock2", mock_provider_factory("mock2"))
    monkeypatch.setenv("LLM_PROVIDER", " Mock2 ")

    assert create_provider().name == "mock2"


def test_dotenv_is_loaded_before_reading_provider(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setitem(_PROVIDER_FACTORIES, "mock1", mock_provider_factory("mock1"))
    # setenv first so the variable is removed again on teardown
    monkeypatch.setenv("LLM_PROVIDER", "placeholder")
    monkeypatch.delenv("LLM_PROVIDER")
    dotenv_path = tmp_path / ".env"
    dotenv_path.write_text("LLM_PROVIDER=mock1\n", encoding="utf-8")

    assert create_provider(dotenv_path=dotenv_path).name == "mock1"


def test_unknown_provider_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("LLM_PROVIDER", raising=False)

    with pytest.raises(ValueError, match="Unknown LLM provider 'openai'"):
        create_provider("openai")
