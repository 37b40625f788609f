"""Enumerations shared by the pipeline models.

Values are the literal strings used in the reviewer prompts and in the JSON
returned by the model, so they serialise unchanged.
"""

from __future__ import annotations

from enum import Enum


class AIStatus(str, Enum):
    """Lifecycle of a row's reviewer annotation.

    PENDING -> ANALYZING -> one of PASS, NEEDS_REWRITE, ERROR.
    """

    PENDING = "PENDING"
    ANALYZING = "ANALYZING"
    PASS = "PASS"
    NEEDS_REWRITE = "NEEDS_REWRITE"
    ERROR = "ERROR"

    @classmethod
    def all_values(cls) -> list[str]:
        return [m.value for m in cls]


class IssueSeverity(str, Enum):
    """Severity of a cell-level ingestion diagnostic."""

    ERROR = "error"
    WARNING = "warning"


class AutomationReadiness(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @classmethod
    def all_values(cls) -> list[str]:
        return [m.value for m in cls]
