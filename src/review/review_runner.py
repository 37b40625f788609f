"""Orchestrate the LLM review of test cases with batching, retries and rewrites.

A run works through the rows strictly in sequence:

1. every submitted row is reset to ``ANALYZING`` before any request is sent;
2. rows are chunked into batches and each batch is reviewed by the primary
   model, with a fixed pause between batches;
3. a batch whose call or response fails is degraded to ``ERROR`` rows and
   the run carries on with the next batch;
4. rows reviewed with low confidence are sent one at a time to the fallback
   model for a rewrite suggestion; a failed rewrite is logged and skipped;
5. review and rewrite results are merged back onto the rows by ``testId``.

Only one run may mutate a given row collection at a time; callers serialise
concurrent runs over the same rows.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, List, MutableSequence, Sequence, Union

from src.llm.json_utils import parse_and_validate
from src.llm.provider import LLMParseError, LLMProvider, LLMProviderError, ProviderReporter
from src.llm.provider_registry import create_provider
from src.llm.service import LLMService, Sleeper
from src.models import (
    AIModuleSummary,
    AIReviewResult,
    AIRewriteResult,
    AIStatus,
    ReviewResultsEnvelope,
    TestCase,
)

from .batcher import Batch, count_batches, iter_batches
from .config import PipelineConfig
from .prompt_factory import build_review_prompts, build_rewrite_prompts
from .summary import ModuleSummarizer

logger = logging.getLogger(__name__)

NO_RESULT_COMMENT = "No review result was returned for this test case."

# Bare array, or the array wrapped under a "results" key
ReviewResponse = Union[List[AIReviewResult], ReviewResultsEnvelope]


@dataclass
class BatchProgress:
    """Progress snapshot emitted after each batch completes."""

    batch_index: int
    total_batches: int
    rows_completed: int
    total_rows: int


ProgressCallback = Callable[[BatchProgress], None]


@dataclass
class AnalysisOutcome:
    """Review and rewrite results of one run, keyed by ``test_id``."""

    results: List[AIReviewResult] = field(default_factory=list)
    rewrites: List[AIRewriteResult] = field(default_factory=list)

    def result_map(self) -> dict[str, AIReviewResult]:
        mapping: dict[str, AIReviewResult] = {}
        for result in self.results:
            mapping.setdefault(result.test_id, result)
        return mapping

    def rewrite_map(self) -> dict[str, AIRewriteResult]:
        mapping: dict[str, AIRewriteResult] = {}
        for rewrite in self.rewrites:
            mapping.setdefault(rewrite.test_id, rewrite)
        return mapping

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [r.model_dump(mode="json", by_alias=True) for r in self.results],
            "rewrites": [r.model_dump(mode="json", by_alias=True) for r in self.rewrites],
        }


def _failure_reason(exc: Exception) -> str:
    detail = exc.message if isinstance(exc, LLMParseError) else str(exc)
    return f"AI analysis failed: {detail or type(exc).__name__}"


def apply_results(
    rows: MutableSequence[TestCase],
    outcome: AnalysisOutcome,
) -> MutableSequence[TestCase]:
    """Merge ``outcome`` onto ``rows`` in place and return them.

    A row without a review result ends up ``ERROR``. Rewrite fields are set
    from the matching rewrite, or cleared when there is none.
    """
    results = outcome.result_map()
    rewrites = outcome.rewrite_map()

    for row in rows:
        result = results.get(row.test_id)
        if result is None:
            row.ai_status = AIStatus.ERROR
            row.comment = NO_RESULT_COMMENT
            row.clear_rewrite()
            continue

        row.ai_status = result.status
        row.score = result.score
        row.comment = result.reason
        row.confidence = result.confidence

        rewrite = rewrites.get(row.test_id)
        if rewrite is None:
            row.clear_rewrite()
        else:
            row.rewritten_description = rewrite.rewritten_description
            row.rewritten_expected = rewrite.rewritten_expected
            row.improvement_reason = rewrite.improvement_reason

    return rows


class ReviewOrchestrator:
    """Drive bulk quality scoring of test cases through the reviewer model."""

    def __init__(
        self,
        llm_service: LLMService,
        config: PipelineConfig,
        *,
        sleep: Sleeper | None = None,
    ) -> None:
        self.llm_service = llm_service
        self.config = config.validate()
        self._sleep = sleep or asyncio.sleep
        self.summarizer = ModuleSummarizer(llm_service, config)

    @classmethod
    def from_config(
        cls,
        config: PipelineConfig,
        *,
        provider: LLMProvider | None = None,
        reporter: ProviderReporter | None = None,
        sleep: Sleeper | None = None,
    ) -> "ReviewOrchestrator":
        """Wire the provider, retrying service and orchestrator from ``config``."""
        if provider is None:
            provider = create_provider(
                config.provider,
                api_key=config.api_key,
                temperature=config.temperature,
            )
        service = LLMService(
            provider,
            max_retries=config.max_retries,
            retry_base_delay=config.retry_base_delay,
            sleep=sleep,
            reporter=reporter,
        )
        return cls(service, config, sleep=sleep)

    # ------------------------------------------------------------------ #
    # Public entry points
    # ------------------------------------------------------------------ #

    @staticmethod
    def begin_analysis(rows: Sequence[TestCase]) -> None:
        """Mark every row in-flight and clear its previous reviewer output."""
        for row in rows:
            row.reset_for_analysis()

    async def analyze_batches(
        self,
        rows: Sequence[TestCase],
        *,
        progress: ProgressCallback | None = None,
    ) -> AnalysisOutcome:
        """Review ``rows`` batch by batch and escalate low-confidence rows.

        Rows are moved to ``ANALYZING`` before the first request. The rows
        are not merged; call :func:`apply_results` (or use :meth:`run`).
        """
        self.begin_analysis(rows)

        total_rows = len(rows)
        total_batches = count_batches(total_rows, self.config.batch_size)
        outcome = AnalysisOutcome()
        rows_completed = 0

        logger.info(
            "Reviewing %d test case(s) in %d batch(es) of up to %d",
            total_rows,
            total_batches,
            self.config.batch_size,
        )

        for batch in iter_batches(rows, self.config.batch_size):
            if batch.index > 0:
                await self._sleep(self.config.inter_batch_delay)

            outcome.results.extend(await self._review_batch(batch))

            rows_completed += len(batch.rows)
            if progress is not None:
                progress(
                    BatchProgress(
                        batch_index=batch.index,
                        total_batches=total_batches,
                        rows_completed=rows_completed,
                        total_rows=total_rows,
                    )
                )

        outcome.rewrites.extend(await self._escalate_rewrites(rows, outcome.results))
        return outcome

    async def run(
        self,
        rows: MutableSequence[TestCase],
        *,
        progress: ProgressCallback | None = None,
    ) -> AnalysisOutcome:
        """Analyse ``rows`` and merge the outcome onto them in place."""
        outcome = await self.analyze_batches(rows, progress=progress)
        apply_results(rows, outcome)

        passed = sum(1 for row in rows if row.ai_status is AIStatus.PASS)
        failed = sum(1 for row in rows if row.ai_status is AIStatus.ERROR)
        logger.info(
            "Analysis complete: %d/%d passed, %d error(s), %d rewrite(s)",
            passed,
            len(rows),
            failed,
            len(outcome.rewrites),
        )
        return outcome

    async def reanalyze_row(
        self,
        rows: MutableSequence[TestCase],
        index: int,
    ) -> TestCase:
        """Re-run review (and rewrite escalation) for the single row at ``index``."""
        row = rows[index]
        outcome = await self.analyze_batches([row])
        apply_results([row], outcome)
        return row

    async def rewrite_case(self, test_case: TestCase) -> AIRewriteResult:
        """Request a rewrite for one test case with the fallback model.

        Unlike escalation during a run, failures propagate to the caller.
        """
        system_prompt, user_prompt = build_rewrite_prompts(
            test_case, rubric=self.config.rubric
        )
        text = await self.llm_service.generate(
            system_prompt, user_prompt, model=self.config.fallback_model
        )
        self._maybe_log_response("rewrite", test_case.test_id, text, [test_case.test_id])
        rewrite = parse_and_validate(text, AIRewriteResult)
        if rewrite.test_id != test_case.test_id:
            raise LLMParseError(
                f"Rewrite returned testId {rewrite.test_id!r}, expected {test_case.test_id!r}",
                response_text=text,
            )
        return rewrite

    async def summarize(self, rows: Sequence[TestCase]) -> AIModuleSummary | None:
        return await self.summarizer.summarize(rows)

    def rewrite_candidates(
        self,
        rows: Sequence[TestCase],
        results: Sequence[AIReviewResult],
    ) -> list[TestCase]:
        """Rows whose non-error review fell below the confidence threshold."""
        by_id: dict[str, TestCase] = {}
        for row in rows:
            by_id.setdefault(row.test_id, row)

        candidates: list[TestCase] = []
        seen: set[str] = set()
        for result in results:
            if result.status is AIStatus.ERROR:
                continue
            if result.confidence >= self.config.rewrite_confidence_threshold:
                continue
            if result.test_id in seen or result.test_id not in by_id:
                continue
            seen.add(result.test_id)
            candidates.append(by_id[result.test_id])
        return candidates

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    async def _review_batch(self, batch: Batch) -> list[AIReviewResult]:
        """Review one batch; never raises for model or response failures."""
        logger.info("Batch %d: reviewing %d test case(s)", batch.index, len(batch.rows))

        try:
            system_prompt, user_prompt = build_review_prompts(
                batch.rows, rubric=self.config.rubric
            )
            text = await self.llm_service.generate(
                system_prompt, user_prompt, model=self.config.primary_model
            )
            self._maybe_log_response("review", f"batch-{batch.index}", text, batch.test_ids)
            parsed = parse_and_validate(text, ReviewResponse)
            if isinstance(parsed, ReviewResultsEnvelope):
                parsed = parsed.results
        except LLMProviderError as exc:
            logger.warning("Batch %d failed: %s", batch.index, _failure_reason(exc))
            return self._failed_results(batch, exc)
        except Exception as exc:
            logger.exception("Batch %d failed unexpectedly", batch.index)
            return self._failed_results(batch, exc)

        wanted = set(batch.test_ids)
        results: list[AIReviewResult] = []
        seen: set[str] = set()
        for result in parsed:
            if result.test_id not in wanted:
                logger.warning(
                    "Batch %d: discarding result for unknown testId %r",
                    batch.index,
                    result.test_id,
                )
                continue
            if result.test_id in seen:
                continue
            seen.add(result.test_id)
            results.append(result)

        missing = wanted - seen
        if missing:
            logger.warning(
                "Batch %d: no result for %d test case(s): %s",
                batch.index,
                len(missing),
                ", ".join(sorted(missing)),
            )
        return results

    def _failed_results(self, batch: Batch, exc: Exception) -> list[AIReviewResult]:
        reason = _failure_reason(exc)
        return [AIReviewResult.failed(test_id, reason) for test_id in batch.test_ids]

    async def _escalate_rewrites(
        self,
        rows: Sequence[TestCase],
        results: Sequence[AIReviewResult],
    ) -> list[AIRewriteResult]:
        """Rewrite low-confidence rows one at a time; skip failures."""
        candidates = self.rewrite_candidates(rows, results)
        if not candidates:
            return []

        logger.info("Requesting rewrites for %d low-confidence test case(s)", len(candidates))

        rewrites: list[AIRewriteResult] = []
        for candidate in candidates:
            # Every rewrite call follows another model call
            await self._sleep(self.config.inter_rewrite_delay)
            try:
                rewrites.append(await self.rewrite_case(candidate))
            except LLMProviderError as exc:
                logger.warning("Rewrite failed for %s: %s", candidate.test_id, exc)
            except Exception:
                logger.exception("Rewrite failed for %s", candidate.test_id)
        return rewrites

    def _maybe_log_response(
        self,
        role: str,
        key: object,
        response_text: str,
        test_ids: list[str],
    ) -> None:
        if not self.config.log_raw_responses:
            return

        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%f")
        log_dir = self.config.log_response_dir
        log_file = log_dir / f"{role}.{key}.{timestamp}.json"

        log_data = {
            "timestamp": timestamp,
            "role": role,
            "key": str(key),
            "test_ids": test_ids,
            "response": response_text,
        }

        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            with open(log_file, "w", encoding="utf-8") as f:
                json.dump(log_data, f, indent=2)
        except OSError as e:
            logger.warning("Could not log raw response to %s: %s", log_file, e)
