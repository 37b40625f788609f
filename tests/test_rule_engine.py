from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.models import TestCase
from src.rules import (
    MISSING_EXPECTED_RESULT,
    NO_ACTION_VERB,
    compare_two_strings,
    detect_duplicates,
    validate_all,
    validate_test_case,
)


def _case(test_id: str, description: str, expected: str = "Page is shown") -> TestCase:
    return TestCase(
        test_id=test_id,
        description=description,
        expected_result=expected,
        priority="High",
    )


class TestCompareTwoStrings:
    def test_identical_strings(self) -> None:
        assert compare_two_strings("login page", "login page") == 1.0

    def test_whitespace_is_ignored(self) -> None:
        assert compare_two_strings("log in", "login") == 1.0

    def test_short_strings_score_zero(self) -> None:
        assert compare_two_strings("a", "b") == 0.0
        assert compare_two_strings("a", "ab") == 0.0

    def test_known_value(self) -> None:
        # "night" vs "nacht": bigrams ni,ig,gh,ht / na,ac,ch,ht share only "ht"
        assert compare_two_strings("night", "nacht") == pytest.approx(0.25)

    def test_repeated_bigrams_count_once_per_occurrence(self) -> None:
        # "aaaa" has aa x3, "aa" has aa x1: overlap 1 -> 2*1 / (3 + 1)
        assert compare_two_strings("aaaa", "aa") == pytest.approx(0.5)

    def test_symmetric(self) -> None:
        a, b = "click the save button", "click on save button"
        assert compare_two_strings(a, b) == compare_two_strings(b, a)


class TestRowChecks:
    def test_clean_row_has_no_flags(self) -> None:
        assert validate_test_case(_case("TC1", "Click the Save button")) == []

    def test_missing_expected_result(self) -> None:
        flags = validate_test_case(_case("TC1", "Click Save", expected="   "))

        assert flags == [MISSING_EXPECTED_RESULT]

    @pytest.mark.parametrize(
        "description",
        ["Verify the total", "user should LOGIN first", "then tap 'OK'", "Upload file.pdf"],
    )
    def test_action_verbs_match_whole_words(self, description: str) -> None:
        assert validate_test_case(_case("TC1", description)) == []

    @pytest.mark.parametrize(
        "description",
        ["Verification pending", "Checkout flow", "Typed text appears", ""],
    )
    def test_partial_words_do_not_count(self, description: str) -> None:
        assert validate_test_case(_case("TC1", description)) == [NO_ACTION_VERB]

    def test_flag_order(self) -> None:
        flags = validate_test_case(_case("TC1", "The cart", expected=""))

        assert flags == [MISSING_EXPECTED_RESULT, NO_ACTION_VERB]


class TestDuplicates:
    def test_pairs_are_symmetric_and_sorted(self) -> None:
        rows = [
            _case("TC1", "Click the Save button on the profile page"),
            _case("TC2", "Open the settings menu"),
            _case("TC3", "Click the save button on the profile page."),
            _case("TC4", "click the Save button on the profile page"),
        ]

        duplicates = detect_duplicates(rows)

        assert duplicates == {0: [2, 3], 2: [0, 3], 3: [0, 2]}

    def test_threshold_is_inclusive(self) -> None:
        rows = [_case("TC1", "night"), _case("TC2", "nacht")]

        assert detect_duplicates(rows, threshold=0.25) == {0: [1], 1: [0]}
        assert detect_duplicates(rows, threshold=0.26) == {}

    def test_blank_descriptions_are_similar(self) -> None:
        rows = [_case("TC1", ""), _case("TC2", "  ")]

        assert detect_duplicates(rows) == {0: [1], 1: [0]}


class TestValidateAll:
    def test_flags_and_similarity_annotation(self) -> None:
        rows = [
            _case("TC1", "Click the Save button on the profile page"),
            _case("TC2", "Click the Save button on the profile page!"),
            _case("TC3", "Settings menu", expected=""),
        ]

        validated = validate_all(rows)

        assert validated[0].local_flags == ["Similar to: TC2"]
        assert validated[1].local_flags == ["Similar to: TC1"]
        assert validated[2].local_flags == [MISSING_EXPECTED_RESULT, NO_ACTION_VERB]

    def test_is_idempotent(self) -> None:
        rows = [
            _case("TC1", "Click Save on the profile page"),
            _case("TC2", "Click Save on the profile page"),
            _case("TC3", "The cart", expected=""),
        ]

        once = validate_all(rows)
        twice = validate_all(once)

        assert [r.local_flags for r in twice] == [r.local_flags for r in once]

    def test_stale_flags_are_replaced(self) -> None:
        row = _case("TC1", "Click Save")
        row.local_flags = ["Similar to: TC9", "stale"]

        assert validate_all([row])[0].local_flags == []

    def test_input_rows_are_not_mutated(self) -> None:
        rows = [_case("TC1", "The cart")]

        validated = validate_all(rows)

        assert rows[0].local_flags == []
        assert validated[0] is not rows[0]
        assert validated[0].test_id == "TC1"

    def test_custom_threshold(self) -> None:
        rows = [_case("TC1", "Click save now"), _case("TC2", "Click save later")]

        assert validate_all(rows, similarity_threshold=1.0)[0].local_flags == []
        assert validate_all(rows, similarity_threshold=0.5)[0].local_flags == [
            "Similar to: TC2"
        ]
