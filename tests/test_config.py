from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.review.config import ConfigurationError, PipelineConfig

_ENV_NAMES = (
    "AI_API_KEY",
    "GEMINI_API_KEY",
    "AI_MODEL_PRIMARY",
    "AI_MODEL_FALLBACK",
    "LLM_PROVIDER",
    "TCQ_BATCH_SIZE",
    "TCQ_INTER_BATCH_DELAY",
    "TCQ_MAX_RETRIES",
    "TCQ_REWRITE_CONFIDENCE_THRESHOLD",
    "TCQ_LOG_RESPONSES",
    "TCQ_LOG_DIR",
)


@pytest.fixture
def clean_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Clear pipeline variables and return an empty .env path."""
    for name in _ENV_NAMES:
        # setenv first so dotenv-loaded values are removed on teardown
        monkeypatch.setenv(name, "placeholder")
        monkeypatch.delenv(name)
    dotenv_path = tmp_path / ".env"
    dotenv_path.write_text("", encoding="utf-8")
    return dotenv_path


def test_defaults() -> None:
    config = PipelineConfig()

    assert config.batch_size == 12
    assert config.rewrite_confidence_threshold == 70
    assert config.max_rows == 500
    assert config.max_file_size_bytes == 5 * 1024 * 1024
    assert config.similarity_threshold == 0.85
    assert config.validate() is config


def test_from_env_reads_overrides(clean_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GEMINI_API_KEY", "gk")
    monkeypatch.setenv("AI_MODEL_PRIMARY", "gemini-2.5-flash")
    monkeypatch.setenv("TCQ_BATCH_SIZE", "5")
    monkeypatch.setenv("TCQ_INTER_BATCH_DELAY", "0.25")
    monkeypatch.setenv("TCQ_LOG_RESPONSES", "yes")
    monkeypatch.setenv("TCQ_LOG_DIR", "/tmp/tcq-logs")

    config = PipelineConfig.from_env(clean_env)

    assert config.api_key == "gk"
    assert config.primary_model == "gemini-2.5-flash"
    assert config.fallback_model == PipelineConfig().fallback_model
    assert config.batch_size == 5
    assert config.inter_batch_delay == 0.25
    assert config.log_raw_responses is True
    assert config.log_response_dir == Path("/tmp/tcq-logs")


def test_ai_api_key_wins_over_gemini_key(clean_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AI_API_KEY", "primary")
    monkeypatch.setenv("GEMINI_API_KEY", "secondary")

    assert PipelineConfig.from_env(clean_env).api_key == "primary"


def test_from_env_reads_dotenv_file(clean_env: Path) -> None:
    clean_env.write_text("TCQ_MAX_RETRIES=7\nAI_MODEL_FALLBACK=gemini-pro\n", encoding="utf-8")

    config = PipelineConfig.from_env(clean_env)

    assert config.max_retries == 7
    assert config.fallback_model == "gemini-pro"


def test_malformed_numbers_fall_back_to_defaults(
    clean_env: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("TCQ_BATCH_SIZE", "twelve")
    monkeypatch.setenv("TCQ_INTER_BATCH_DELAY", "soon")

    config = PipelineConfig.from_env(clean_env)

    assert config.batch_size == 12
    assert config.inter_batch_delay == 2.5


def test_out_of_range_values_raise(clean_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TCQ_REWRITE_CONFIDENCE_THRESHOLD", "150")

    with pytest.raises(ConfigurationError, match="rewrite_confidence_threshold"):
        PipelineConfig.from_env(clean_env)


@pytest.mark.parametrize(
    "overrides",
    [
        {"batch_size": 0},
        {"max_retries": -1},
        {"inter_rewrite_delay": -0.1},
        {"similarity_threshold": 1.5},
        {"max_rows": 0},
    ],
)
def test_validate_rejects(overrides: dict) -> None:
    with pytest.raises(ConfigurationError):
        PipelineConfig(**overrides).validate()


def test_zero_delay_copy() -> None:
    config = PipelineConfig(batch_size=3)

    fast = config.zero_delay()

    assert (fast.inter_batch_delay, fast.inter_rewrite_delay, fast.retry_base_delay) == (0, 0, 0)
    assert fast.batch_size == 3
    assert config.inter_batch_delay == 2.5
