"""Deterministic local checks run against normalised test cases.

No I/O and no model calls: every function here is pure and synchronous, so
the checks can run on upload before any reviewer call is made.

Per-row checks produce flags in a fixed order (missing expected result, then
missing action verb); the near-duplicate flag is appended last.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import Iterable, Sequence

from src.models import TestCase

MISSING_EXPECTED_RESULT = "Missing expected result"
NO_ACTION_VERB = "No action verb found in description"
SIMILAR_PREFIX = "Similar to: "

DEFAULT_SIMILARITY_THRESHOLD = 0.85

ACTION_VERBS: tuple[str, ...] = (
    "verify",
    "validate",
    "confirm",
    "open",
    "click",
    "navigate",
    "install",
    "login",
    "select",
    "scroll",
    "enter",
    "check",
    "ensure",
    "tap",
    "submit",
    "drag",
    "upload",
    "download",
    "type",
    "press",
)

_ACTION_VERB_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(v) for v in ACTION_VERBS) + r")\b"
)
_WHITESPACE_RE = re.compile(r"\s+")


def check_missing_expected_result(expected_result: str) -> str | None:
    if not (expected_result or "").strip():
        return MISSING_EXPECTED_RESULT
    return None


def check_no_action_verb(description: str) -> str | None:
    """Flag descriptions without a whole-word action verb.

    ``"Verify login"`` passes; ``"Verification pending"`` does not, because
    only whole words count.
    """
    if _ACTION_VERB_RE.search((description or "").lower()):
        return None
    return NO_ACTION_VERB


def validate_test_case(test_case: TestCase) -> list[str]:
    """Run the per-row checks and return the flags (empty list = clean)."""
    flags: list[str] = []

    missing_expected = check_missing_expected_result(test_case.expected_result)
    if missing_expected:
        flags.append(missing_expected)

    no_verb = check_no_action_verb(test_case.description)
    if no_verb:
        flags.append(no_verb)

    return flags


def _bigrams(text: str) -> Counter[str]:
    return Counter(text[i : i + 2] for i in range(len(text) - 1))


def compare_two_strings(first: str, second: str) -> float:
    """Return the Dice coefficient of the character bigrams of two strings.

    Whitespace is ignored. Identical strings score 1.0; strings shorter than
    two characters (that are not identical) score 0.0. Bigrams are counted as
    a multiset so repeated pairs only match as often as they occur in both.
    """
    first = _WHITESPACE_RE.sub("", first)
    second = _WHITESPACE_RE.sub("", second)

    if first == second:
        return 1.0
    if len(first) < 2 or len(second) < 2:
        return 0.0

    overlap = sum((_bigrams(first) & _bigrams(second)).values())
    return (2.0 * overlap) / (len(first) + len(second) - 2)


def detect_duplicates(
    rows: Sequence[TestCase],
    *,
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> dict[int, list[int]]:
    """Find near-duplicate descriptions across ``rows``.

    Returns a mapping of row index to the indices of its similar partners, in
    ascending order. The relation is symmetric: if ``j`` is listed for ``i``
    then ``i`` is listed for ``j``. Rows without partners are absent.

    Every unordered pair is compared, so cost grows as O(n^2). That is fine at
    the 500-row ingestion ceiling; a larger ceiling would need candidate
    blocking (e.g. shingling into buckets) before pairwise comparison.
    """
    lowered = [row.description.lower() for row in rows]
    partners: dict[int, list[int]] = {}

    for i in range(len(rows)):
        for j in range(i + 1, len(rows)):
            if compare_two_strings(lowered[i], lowered[j]) >= threshold:
                partners.setdefault(i, []).append(j)
                partners.setdefault(j, []).append(i)

    return {index: sorted(found) for index, found in partners.items()}


def similar_flag(test_ids: Iterable[str]) -> str:
    return SIMILAR_PREFIX + ", ".join(test_ids)


def validate_all(
    rows: Sequence[TestCase],
    *,
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> list[TestCase]:
    """Return copies of ``rows`` with ``local_flags`` re-derived from scratch.

    Existing flags are discarded, so applying this twice yields the same
    flags as applying it once.
    """
    duplicates = detect_duplicates(rows, threshold=similarity_threshold)

    validated: list[TestCase] = []
    for index, row in enumerate(rows):
        flags = validate_test_case(row)

        partner_indices = duplicates.get(index)
        if partner_indices:
            flags.append(similar_flag(rows[p].test_id for p in partner_indices))

        validated.append(row.model_copy(update={"local_flags": flags}, deep=True))

    return validated
