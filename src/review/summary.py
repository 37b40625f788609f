"""Module roll-up of a finished analysis run.

The summary call is best-effort: when it fails for any reason the run simply
has no summary.
"""

from __future__ import annotations

import logging
from typing import Sequence

from src.llm.service import LLMService
from src.models import AIModuleSummary, AIStatus, TestCase

from .config import PipelineConfig
from .prompt_factory import build_summary_prompts

logger = logging.getLogger(__name__)


def pass_count(rows: Sequence[TestCase]) -> int:
    return sum(1 for row in rows if row.ai_status is AIStatus.PASS)


def rewrite_count(rows: Sequence[TestCase]) -> int:
    """Rows that carry a rewrite suggestion."""
    return sum(1 for row in rows if row.rewritten_description)


def average_score(rows: Sequence[TestCase]) -> float | None:
    scores = [row.score for row in rows if row.score is not None]
    if not scores:
        return None
    return round(sum(scores) / len(scores), 1)


class ModuleSummarizer:
    """Ask the primary model for an ``AIModuleSummary`` of scored rows."""

    def __init__(self, llm_service: LLMService, config: PipelineConfig) -> None:
        self.llm_service = llm_service
        self.config = config

    async def summarize(self, rows: Sequence[TestCase]) -> AIModuleSummary | None:
        if not rows:
            return None

        try:
            system_prompt, user_prompt = build_summary_prompts(
                rows, rubric=self.config.rubric
            )
            summary = await self.llm_service.generate_json(
                system_prompt,
                user_prompt,
                model=self.config.primary_model,
                schema=AIModuleSummary,
            )
        except Exception:
            logger.exception("Module summary failed; continuing without one")
            return None

        logger.info(
            "Module summary: average %.1f, %.1f%% rewrites, readiness %s",
            summary.average_score,
            summary.rewrite_percentage,
            summary.automation_readiness.value,
        )
        return summary
