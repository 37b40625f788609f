"""Header synonym table for uploaded test-case CSV files.

Every recognised spelling maps onto exactly one of the five canonical fields.
Keys are stored lower-cased with single spaces; use :func:`canonical_field`
rather than indexing the table directly so case and spacing variants resolve.
"""

from __future__ import annotations

TEST_ID = "testId"
DESCRIPTION = "description"
EXPECTED_RESULT = "expectedResult"
PRIORITY = "priority"
MODULE = "module"

CANONICAL_FIELDS: tuple[str, ...] = (TEST_ID, DESCRIPTION, EXPECTED_RESULT, PRIORITY, MODULE)

MANDATORY_FIELDS: tuple[str, ...] = (TEST_ID, DESCRIPTION, EXPECTED_RESULT, PRIORITY)

# Cells that must not be blank on any row; a blank testId is synthesised instead.
REQUIRED_CELL_FIELDS: tuple[str, ...] = (DESCRIPTION, EXPECTED_RESULT, PRIORITY)

# Canonical field -> TestCase attribute name
FIELD_ATTRIBUTES: dict[str, str] = {
    TEST_ID: "test_id",
    DESCRIPTION: "description",
    EXPECTED_RESULT: "expected_result",
    PRIORITY: "priority",
    MODULE: "module",
}

FIELD_LABELS: dict[str, str] = {
    TEST_ID: "Test Case ID",
    DESCRIPTION: "Description",
    EXPECTED_RESULT: "Expected Result",
    PRIORITY: "Priority",
    MODULE: "Module",
}

HEADER_MAP: dict[str, str] = {
    "test case id": TEST_ID,
    "testcaseid": TEST_ID,
    "test_case_id": TEST_ID,
    "testcase id": TEST_ID,
    "tc id": TEST_ID,
    "tcid": TEST_ID,
    "tc_id": TEST_ID,
    "id": TEST_ID,
    "test id": TEST_ID,
    "testid": TEST_ID,
    "test_id": TEST_ID,
    "description": DESCRIPTION,
    "desc": DESCRIPTION,
    "test description": DESCRIPTION,
    "test_description": DESCRIPTION,
    "scenario": DESCRIPTION,
    "test scenario": DESCRIPTION,
    "steps": DESCRIPTION,
    "test steps": DESCRIPTION,
    "expected result": EXPECTED_RESULT,
    "expectedresult": EXPECTED_RESULT,
    "expected_result": EXPECTED_RESULT,
    "expected results": EXPECTED_RESULT,
    "expected": EXPECTED_RESULT,
    "expected outcome": EXPECTED_RESULT,
    "expected behavior": EXPECTED_RESULT,
    "expected behaviour": EXPECTED_RESULT,
    "priority": PRIORITY,
    "prio": PRIORITY,
    "severity": PRIORITY,
    "module": MODULE,
    "module name": MODULE,
    "module_name": MODULE,
    "feature": MODULE,
    "component": MODULE,
    "area": MODULE,
}


def normalise_header(raw: str) -> str:
    """Lower-case a header and collapse any run of whitespace to one space."""
    return " ".join(str(raw).lower().split())


def canonical_field(raw: str) -> str | None:
    """Return the canonical field for a raw header, or None if unrecognised.

    Tries the header as written first, then with ``_`` and ``-`` treated as
    spaces so that ``Expected-Result`` and ``expected_result`` both resolve.
    """
    key = normalise_header(raw)
    if not key:
        return None
    if key in HEADER_MAP:
        return HEADER_MAP[key]
    spaced = normalise_header(key.replace("_", " ").replace("-", " "))
    return HEADER_MAP.get(spaced)
