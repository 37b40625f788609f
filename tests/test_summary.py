from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from conftest import SUMMARY_MARKER, ScriptedProvider, default_handler, make_rows, summary_json

from src.llm.provider import LLMProviderError, LLMServerError
from src.llm.service import LLMService
from src.models import AIStatus, AutomationReadiness
from src.review.review_runner import ReviewOrchestrator
from src.review.summary import (
    ModuleSummarizer,
    average_score,
    pass_count,
    rewrite_count,
)


def _summarizer(provider, config) -> ModuleSummarizer:
    return ModuleSummarizer(LLMService(provider, max_retries=0), config)


@pytest.mark.asyncio
async def test_summary_parsed_from_primary_model(config) -> None:
    provider = ScriptedProvider(script=[summary_json()])
    rows = make_rows(2)
    rows[0].score = 90
    rows[0].ai_status = AIStatus.PASS

    summary = await _summarizer(provider, config).summarize(rows)

    assert summary is not None
    assert summary.average_score == 82.5
    assert summary.automation_readiness is AutomationReadiness.HIGH
    assert provider.calls[0]["model"] == "primary-model"
    assert SUMMARY_MARKER in provider.calls[0]["system"]
    assert '"score": 90' in provider.calls[0]["user"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [LLMProviderError("network down"), LLMServerError("503"), "not json", '{"averageScore": 1}'],
)
async def test_summary_failures_are_swallowed(config, response) -> None:
    provider = ScriptedProvider(script=[response])

    assert await _summarizer(provider, config).summarize(make_rows(1)) is None


@pytest.mark.asyncio
async def test_unexpected_errors_are_swallowed(config) -> None:
    provider = ScriptedProvider(script=[RuntimeError("bug")])

    assert await _summarizer(provider, config).summarize(make_rows(1)) is None


@pytest.mark.asyncio
async def test_no_rows_no_call(config) -> None:
    provider = ScriptedProvider(script=[])

    assert await _summarizer(provider, config).summarize([]) is None
    assert provider.calls == []


@pytest.mark.asyncio
async def test_orchestrator_summarize_after_run(config) -> None:
    provider = ScriptedProvider(default_handler)
    orchestrator = ReviewOrchestrator.from_config(config, provider=provider)
    rows = make_rows(3)

    await orchestrator.run(rows)
    summary = await orchestrator.summarize(rows)

    assert summary is not None
    assert summary.main_issues == ["Vague expected results", "Multiple scenarios"]


def test_statistics_helpers() -> None:
    rows = make_rows(4)
    rows[0].ai_status, rows[0].score = AIStatus.PASS, 90
    rows[1].ai_status, rows[1].score = AIStatus.PASS, 81
    rows[2].ai_status, rows[2].score = AIStatus.NEEDS_REWRITE, 40
    rows[2].rewritten_description = "Click Pay and verify the receipt"
    rows[3].ai_status = AIStatus.ERROR

    assert pass_count(rows) == 2
    assert rewrite_count(rows) == 1
    assert average_score(rows) == 70.3
    assert average_score(make_rows(2)) is None
