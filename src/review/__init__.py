"""Review orchestration: batching, model calls, rewrites, summary and storage."""

from __future__ import annotations

from .batcher import Batch, count_batches, iter_batches
from .config import ConfigurationError, PipelineConfig
from .persistence import JsonResultStore, ResultStore
from .review_runner import AnalysisOutcome, BatchProgress, ReviewOrchestrator, apply_results
from .summary import ModuleSummarizer, average_score, pass_count, rewrite_count

__all__ = [
    "Batch",
    "count_batches",
    "iter_batches",
    "ConfigurationError",
    "PipelineConfig",
    "JsonResultStore",
    "ResultStore",
    "AnalysisOutcome",
    "BatchProgress",
    "ReviewOrchestrator",
    "apply_results",
    "ModuleSummarizer",
    "average_score",
    "pass_count",
    "rewrite_count",
]
