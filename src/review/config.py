from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TCQ"


class ConfigurationError(ValueError):
    """Raised when a pipeline configuration value is out of range."""


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except ValueError:
        return default


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class PipelineConfig:
    """Tunable constants for ingestion, validation and review.

    Passed explicitly to the orchestrator and summariser so that tests can
    inject fakes and zero delays instead of touching the environment.
    """

    # LLM settings
    api_key: str | None = None
    provider: str = "gemini"
    primary_model: str = "gemini-2.0-flash"
    fallback_model: str = "gemini-2.0-flash"
    temperature: float = 0.2
    rubric: str = "weighted_rubric"

    # Batch settings
    batch_size: int = 12
    inter_batch_delay: float = 2.5
    inter_rewrite_delay: float = 2.5

    # Transport retry
    max_retries: int = 3
    retry_base_delay: float = 3.0

    # Thresholds
    rewrite_confidence_threshold: int = 70
    similarity_threshold: float = 0.85

    # Ingestion ceilings
    max_rows: int = 500
    max_file_size_bytes: int = 5 * 1024 * 1024

    # Logging
    log_raw_responses: bool = False
    log_response_dir: Path = field(default_factory=lambda: Path("data/review_responses"))

    @classmethod
    def from_env(cls, dotenv_path: str | Path | None = None) -> "PipelineConfig":
        """Build a configuration from the environment (and an optional .env).

        Unset or malformed values fall back to the defaults.
        """
        if dotenv_path is not None:
            load_dotenv(dotenv_path=Path(dotenv_path))
        else:
            load_dotenv()

        defaults = cls()
        p = ENV_PREFIX
        config = cls(
            api_key=os.environ.get("AI_API_KEY") or os.environ.get("GEMINI_API_KEY"),
            provider=os.environ.get("LLM_PROVIDER", defaults.provider),
            primary_model=os.environ.get("AI_MODEL_PRIMARY", defaults.primary_model),
            fallback_model=os.environ.get("AI_MODEL_FALLBACK", defaults.fallback_model),
            temperature=_env_float(f"{p}_TEMPERATURE", defaults.temperature),
            rubric=os.environ.get(f"{p}_RUBRIC", defaults.rubric),
            batch_size=_env_int(f"{p}_BATCH_SIZE", defaults.batch_size),
            inter_batch_delay=_env_float(f"{p}_INTER_BATCH_DELAY", defaults.inter_batch_delay),
            inter_rewrite_delay=_env_float(
                f"{p}_INTER_REWRITE_DELAY", defaults.inter_rewrite_delay
            ),
            max_retries=_env_int(f"{p}_MAX_RETRIES", defaults.max_retries),
            retry_base_delay=_env_float(f"{p}_RETRY_BASE_DELAY", defaults.retry_base_delay),
            rewrite_confidence_threshold=_env_int(
                f"{p}_REWRITE_CONFIDENCE_THRESHOLD", defaults.rewrite_confidence_threshold
            ),
            similarity_threshold=_env_float(
                f"{p}_SIMILARITY_THRESHOLD", defaults.similarity_threshold
            ),
            max_rows=_env_int(f"{p}_MAX_ROWS", defaults.max_rows),
            max_file_size_bytes=_env_int(
                f"{p}_MAX_FILE_SIZE_BYTES", defaults.max_file_size_bytes
            ),
            log_raw_responses=_env_flag(f"{p}_LOG_RESPONSES", defaults.log_raw_responses),
            log_response_dir=Path(
                os.environ.get(f"{p}_LOG_DIR", str(defaults.log_response_dir))
            ),
        )
        config.validate()
        return config

    def validate(self) -> "PipelineConfig":
        if self.batch_size < 1:
            raise ConfigurationError("batch_size must be at least 1")
        if self.max_retries < 0:
            raise ConfigurationError("max_retries must be >= 0")
        for name in ("inter_batch_delay", "inter_rewrite_delay", "retry_base_delay"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must be >= 0")
        if not 0 <= self.rewrite_confidence_threshold <= 100:
            raise ConfigurationError("rewrite_confidence_threshold must be between 0 and 100")
        if not 0.0 <= self.similarity_threshold <= 1.0:
            raise ConfigurationError("similarity_threshold must be between 0 and 1")
        if self.max_rows < 1:
            raise ConfigurationError("max_rows must be at least 1")
        if self.max_file_size_bytes < 1:
            raise ConfigurationError("max_file_size_bytes must be at least 1")
        return self

    def zero_delay(self) -> "PipelineConfig":
        """Copy of this configuration with every wait set to zero."""
        return replace(
            self,
            inter_batch_delay=0.0,
            inter_rewrite_delay=0.0,
            retry_base_delay=0.0,
        )
