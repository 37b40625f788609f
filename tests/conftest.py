from __future__ import annotations

import json
import re
import sys
from pathlib import Path
from typing import Any, Callable, Iterable

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.models import TestCase
from src.review.config import PipelineConfig

REVIEW_MARKER = "Product QA Reviewer"
REWRITE_MARKER = "rewriting unclear test cases"
SUMMARY_MARKER = "module quality summary"

_BATCH_ID_RE = re.compile(r'"testId": "([^"]+)"')
_REWRITE_ID_RE = re.compile(r"Test ID: (\S+)")


def batch_ids(user_prompt: str) -> list[str]:
    """Test IDs embedded in a bulk-review user prompt."""
    return _BATCH_ID_RE.findall(user_prompt)


def rewrite_id(user_prompt: str) -> str:
    match = _REWRITE_ID_RE.search(user_prompt)
    assert match, "rewrite prompt carries no test id"
    return match.group(1)


def review_json(
    ids: Iterable[str],
    *,
    status: str = "PASS",
    score: int = 90,
    confidence: int = 95,
    reason: str = "Clear and measurable",
) -> str:
    return json.dumps(
        [
            {
                "testId": test_id,
                "status": status,
                "score": score,
                "reason": reason,
                "confidence": confidence,
            }
            for test_id in ids
        ]
    )


def rewrite_json(test_id: str) -> str:
    return json.dumps(
        {
            "testId": test_id,
            "rewrittenDescription": f"Navigate to the page and verify {test_id}",
            "rewrittenExpected": "The confirmation banner is displayed",
            "improvementReason": "Added a measurable outcome",
        }
    )


def summary_json() -> str:
    return json.dumps(
        {
            "averageScore": 82.5,
            "rewritePercentage": 25,
            "automationReadiness": "high",
            "mainIssues": ["Vague expected results", "Multiple scenarios"],
        }
    )


Handler = Callable[[str, str, str], Any]


class ScriptedProvider:
    """Fake provider that answers from a handler or a fixed script.

    Script items (or handler return values) that are exceptions are raised.
    """

    name = "scripted"

    def __init__(
        self,
        handler: Handler | None = None,
        *,
        script: list[Any] | None = None,
    ) -> None:
        self._handler = handler
        self._script = list(script) if script is not None else None
        self.calls: list[dict[str, str]] = []

    async def generate(
        self,
        system_instruction: str,
        user_prompt: str,
        *,
        model: str,
    ) -> str:
        self.calls.append(
            {"system": system_instruction, "user": user_prompt, "model": model}
        )
        if self._script is not None:
            item = self._script.pop(0)
        else:
            assert self._handler is not None
            item = self._handler(system_instruction, user_prompt, model)
        if isinstance(item, Exception):
            raise item
        return item

    def health_check(self) -> bool:
        return True

    def calls_with(self, marker: str) -> list[dict[str, str]]:
        return [call for call in self.calls if marker in call["system"]]


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def default_handler(system: str, user: str, model: str) -> str:
    """Pass every reviewed row with high confidence."""
    if REVIEW_MARKER in system:
        return review_json(batch_ids(user))
    if REWRITE_MARKER in system:
        return rewrite_json(rewrite_id(user))
    if SUMMARY_MARKER in system:
        return summary_json()
    raise AssertionError(f"unexpected prompt: {system[:60]}")


def make_rows(count: int, *, module: str = "Checkout") -> list[TestCase]:
    return [
        TestCase(
            test_id=f"TC{i + 1:03d}",
            description=f"Click the pay button for order {i + 1}",
            expected_result="Payment confirmation page is displayed",
            priority="High",
            module=module,
        )
        for i in range(count)
    ]


@pytest.fixture
def config() -> PipelineConfig:
    return PipelineConfig(
        batch_size=2,
        primary_model="primary-model",
        fallback_model="fallback-model",
        max_retries=2,
    ).zero_delay()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
