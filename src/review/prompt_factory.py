"""Build reviewer prompts from the pystache templates.

The rubric partial is chosen by name, so the scoring policy used by the bulk
review is configuration rather than code.
"""

from __future__ import annotations

import json
from typing import Sequence

from src.models import TestCase
from src.prompt.render_prompt import DEFAULT_RUBRIC, render_prompts


def build_review_prompts(
    rows: Sequence[TestCase],
    *,
    rubric: str = DEFAULT_RUBRIC,
) -> tuple[str, str]:
    """Return ``(system_prompt, user_prompt)`` for a bulk review batch."""
    context = {
        "test_cases_json": json.dumps(
            [row.review_payload() for row in rows], indent=2, ensure_ascii=False
        ),
    }
    return render_prompts(
        "system_bulk_review.md",
        "user_bulk_review.md",
        context,
        rubric=rubric,
    )


def build_rewrite_prompts(
    test_case: TestCase,
    *,
    rubric: str = DEFAULT_RUBRIC,
) -> tuple[str, str]:
    context = {
        "test_id": test_case.test_id,
        "description": test_case.description,
        "expected_result": test_case.expected_result,
        "priority": test_case.priority,
        "module": test_case.module,
    }
    return render_prompts(
        "system_rewrite.md",
        "user_rewrite.md",
        context,
        rubric=rubric,
    )


def build_summary_prompts(
    rows: Sequence[TestCase],
    *,
    rubric: str = DEFAULT_RUBRIC,
) -> tuple[str, str]:
    context = {
        "results_json": json.dumps(
            [row.summary_payload() for row in rows], indent=2, ensure_ascii=False
        ),
    }
    return render_prompts(
        "system_module_summary.md",
        "user_module_summary.md",
        context,
        rubric=rubric,
    )
