"""Command-line interface for the test-case quality pipeline.

Provides ingestion, rule validation and full LLM analysis of a CSV file.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from src.ingest import parse_csv_file
from src.models import CSVParseResult, TestCase
from src.rules import validate_all

from .batcher import count_batches
from .config import ConfigurationError, PipelineConfig
from .persistence import JsonResultStore
from .review_runner import BatchProgress, ReviewOrchestrator
from .summary import average_score, pass_count, rewrite_count

logger = logging.getLogger(__name__)


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Score manual test cases for automation readiness",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check that a CSV can be ingested
  python -m src.review parse cases.csv

  # Ingest and run the local rule checks
  python -m src.review validate cases.csv

  # Full analysis, writing rows and summary to a JSON file
  python -m src.review analyze cases.csv --output results.json

  # Full analysis, saving into a result store
  python -m src.review analyze cases.csv --store data/results --file-id sprint-12

  # Show batching without calling the model
  python -m src.review analyze cases.csv --dry-run

Environment Variables:
  AI_API_KEY                         Gemini API key (GEMINI_API_KEY also accepted)
  AI_MODEL_PRIMARY                   Model used for bulk review and summary
  AI_MODEL_FALLBACK                  Model used for rewrite suggestions
  TCQ_BATCH_SIZE                     Test cases per review call (default: 12)
  TCQ_MAX_RETRIES                    Retries for 429/5xx responses (default: 3)
  TCQ_REWRITE_CONFIDENCE_THRESHOLD   Rewrite rows below this confidence (default: 70)
  TCQ_LOG_RESPONSES                  Set to true/1 to dump raw model responses
  TCQ_LOG_DIR                        Directory for raw response logs
        """,
    )

    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--dotenv",
        type=Path,
        help="Path to .env file for API keys and overrides",
    )

    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to run")

    parse_cmd = subparsers.add_parser("parse", help="Ingest a CSV and report problems")
    parse_cmd.add_argument("file", type=Path, help="CSV file to ingest")

    validate_cmd = subparsers.add_parser(
        "validate", help="Ingest a CSV and run the local rule checks"
    )
    validate_cmd.add_argument("file", type=Path, help="CSV file to ingest")

    analyze_cmd = subparsers.add_parser("analyze", help="Run the full LLM analysis")
    analyze_cmd.add_argument("file", type=Path, help="CSV file to ingest")
    analyze_cmd.add_argument(
        "--output",
        type=Path,
        help="Write analysed rows (and summary) to this JSON file",
    )
    analyze_cmd.add_argument(
        "--store",
        type=Path,
        help="Base directory of a JSON result store",
    )
    analyze_cmd.add_argument(
        "--file-id",
        help="Identifier to save results under (required with --store)",
    )
    analyze_cmd.add_argument(
        "--no-summary",
        action="store_true",
        help="Skip the module summary call",
    )
    analyze_cmd.add_argument(
        "--dry-run",
        action="store_true",
        help="Ingest, validate and batch without calling the model",
    )
    analyze_cmd.add_argument(
        "--batch-size",
        type=int,
        help="Override the number of test cases per review call",
    )

    parsed = parser.parse_args(args)
    if parsed.command == "analyze" and parsed.store and not parsed.file_id:
        parser.error("--file-id is required with --store")
    return parsed


def _ingest(path: Path, config: PipelineConfig) -> CSVParseResult | None:
    """Parse ``path`` and print its diagnostics; None when ingestion failed."""
    try:
        result = parse_csv_file(
            path,
            max_rows=config.max_rows,
            max_file_size_bytes=config.max_file_size_bytes,
        )
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None

    for warning in result.warnings:
        logger.warning(warning)
    for issue in result.cell_issues:
        print(
            f"  Row {issue.row + 1} [{issue.column}] {issue.severity.value}: {issue.message}"
        )

    if not result.ok:
        for error in result.errors:
            print(f"Error: {error}", file=sys.stderr)
        return None

    print(
        f"Parsed {len(result.rows)} test case(s) from {path} "
        f"({result.total_errors()} error(s), {result.total_warnings()} warning(s))"
    )
    return result


def _print_flags(rows: list[TestCase]) -> None:
    flagged = [row for row in rows if row.local_flags]
    print(f"Rule checks: {len(flagged)} of {len(rows)} test case(s) flagged")
    for row in flagged:
        print(f"  {row.test_id}: {'; '.join(row.local_flags)}")


def _print_progress(progress: BatchProgress) -> None:
    print(
        f"  Batch {progress.batch_index + 1}/{progress.total_batches} done "
        f"({progress.rows_completed}/{progress.total_rows} test cases)"
    )


def _print_report(rows: list[TestCase]) -> None:
    avg = average_score(rows)
    print("\n" + "=" * 60)
    print("Summary:")
    print(f"  Total test cases: {len(rows)}")
    print(f"  Passed: {pass_count(rows)}")
    print(f"  Rewrite suggestions: {rewrite_count(rows)}")
    print(f"  Average score: {avg if avg is not None else 'n/a'}")
    print("=" * 60)


async def _analyze(args: argparse.Namespace, config: PipelineConfig, rows: list[TestCase]) -> int:
    orchestrator = ReviewOrchestrator.from_config(config)
    print(f"Using LLM provider: {orchestrator.llm_service.provider_name}")

    await orchestrator.run(rows, progress=_print_progress)

    summary = None
    if not args.no_summary:
        summary = await orchestrator.summarize(rows)

    _print_report(rows)
    if summary is not None:
        print(f"  Automation readiness: {summary.automation_readiness.value}")
        for issue in summary.main_issues:
            print(f"  - {issue}")

    if args.output:
        payload = {
            "rows": [row.to_record() for row in rows],
            "summary": summary.model_dump(mode="json", by_alias=True) if summary else None,
        }
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        print(f"Wrote results to {args.output}")

    if args.store:
        store = JsonResultStore(args.store)
        store.save_rows(args.file_id, rows)
        if summary is not None:
            store.save_summary(args.file_id, summary)
        print(f"Saved results to {store.file_dir(args.file_id)}")

    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Returns:
        Exit code (0 for success, 1 for ingestion or configuration errors)
    """
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = PipelineConfig.from_env(args.dotenv)
        if getattr(args, "batch_size", None) is not None:
            config.batch_size = args.batch_size
            config.validate()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    result = _ingest(args.file, config)
    if result is None:
        return 1
    if args.command == "parse":
        return 0

    rows = validate_all(result.rows, similarity_threshold=config.similarity_threshold)
    _print_flags(rows)
    if args.command == "validate":
        return 0

    if args.dry_run:
        batches = count_batches(len(rows), config.batch_size)
        print(f"Dry run: {len(rows)} test case(s) in {batches} batch(es) of up to {config.batch_size}")
        return 0

    try:
        return asyncio.run(_analyze(args, config, rows))
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        import traceback

        traceback.print_exc()
        return 1
