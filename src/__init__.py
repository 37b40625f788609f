"""Test-case quality pipeline package."""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = [
    "ingest",
    "rules",
    "llm",
    "prompt",
    "review",
    "models",
]
