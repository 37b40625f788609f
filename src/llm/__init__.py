"""Generative-model seam: provider protocol, Gemini adapter and retrying service."""

from __future__ import annotations

from .json_utils import parse_and_validate, parse_json_response
from .provider import (
    LLMParseError,
    LLMProvider,
    LLMProviderConfigurationError,
    LLMProviderError,
    LLMQuotaError,
    LLMServerError,
    ProviderStatus,
)
from .service import LLMService

__all__ = [
    "parse_and_validate",
    "parse_json_response",
    "LLMParseError",
    "LLMProvider",
    "LLMProviderConfigurationError",
    "LLMProviderError",
    "LLMQuotaError",
    "LLMServerError",
    "ProviderStatus",
    "LLMService",
]
