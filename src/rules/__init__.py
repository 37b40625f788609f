"""Local, synchronous rule checks for test cases."""

from __future__ import annotations

from .rule_engine import (
    ACTION_VERBS,
    DEFAULT_SIMILARITY_THRESHOLD,
    MISSING_EXPECTED_RESULT,
    NO_ACTION_VERB,
    compare_two_strings,
    detect_duplicates,
    validate_all,
    validate_test_case,
)

__all__ = [
    "ACTION_VERBS",
    "DEFAULT_SIMILARITY_THRESHOLD",
    "MISSING_EXPECTED_RESULT",
    "NO_ACTION_VERB",
    "compare_two_strings",
    "detect_duplicates",
    "validate_all",
    "validate_test_case",
]
