"""Public model exports for the project.

Keep the :mod:`src` namespace clean. Tests and other modules should import
``from src.models import TestCase, AIStatus``.
"""

from __future__ import annotations

from .enums import AIStatus, AutomationReadiness, IssueSeverity
from .ingest import CellIssue, CSVParseResult
from .review import AIModuleSummary, AIReviewResult, AIRewriteResult, ReviewResultsEnvelope
from .test_case import TestCase

__all__ = [
    "AIStatus",
    "AutomationReadiness",
    "IssueSeverity",
    "CellIssue",
    "CSVParseResult",
    "AIModuleSummary",
    "AIReviewResult",
    "AIRewriteResult",
    "ReviewResultsEnvelope",
    "TestCase",
]
