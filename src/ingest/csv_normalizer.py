"""Parse uploaded test-case CSV files into normalised TestCase rows.

The normaliser maps free-form headers onto the five canonical fields, trims
every cell, synthesises missing test IDs and reports cell-level problems as
:class:`~src.models.CellIssue` diagnostics for the upload preview.

Two classes of problem are distinguished:

* structural problems (missing mandatory column, too many rows, file too
  large, unreadable content) abort ingestion: the result carries ``errors``
  and no rows;
* blank cells are per-row quality signals: the row is still returned and a
  ``CellIssue`` points at the offending cell.
"""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path

from src.models import CellIssue, CSVParseResult, IssueSeverity, TestCase

from .header_map import (
    FIELD_ATTRIBUTES,
    FIELD_LABELS,
    MANDATORY_FIELDS,
    REQUIRED_CELL_FIELDS,
    TEST_ID,
    canonical_field,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROWS = 500
DEFAULT_MAX_FILE_SIZE_BYTES = 5 * 1024 * 1024


class IngestionError(Exception):
    """Raised by :func:`parse_csv_strict` when ingestion fails outright."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors) or "CSV ingestion failed")
        self.errors = list(errors)


def generate_test_id(row_index: int) -> str:
    """Return the synthetic ID for the 0-indexed data row ``row_index``."""
    return f"TC{row_index + 1:03d}"


def _unused_test_id(row_index: int, taken: set[str]) -> str:
    """First synthetic ID at or after ``row_index`` that is not in ``taken``."""
    candidate = row_index
    while generate_test_id(candidate) in taken:
        candidate += 1
    return generate_test_id(candidate)


def parse_csv(
    content: str | bytes,
    *,
    max_rows: int = DEFAULT_MAX_ROWS,
    max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE_BYTES,
) -> CSVParseResult:
    """Parse CSV content with a header row into a :class:`CSVParseResult`.

    Args:
        content: Raw file content. Bytes are decoded as UTF-8 (a leading BOM
            is ignored).
        max_rows: Maximum number of non-empty data rows accepted.
        max_file_size_bytes: Maximum encoded size of the content.

    Returns:
        The parse result. When ``result.errors`` is non-empty ``result.rows``
        is always empty and the caller must not start analysis.
    """
    if isinstance(content, bytes):
        size = len(content)
    else:
        size = len(content.encode("utf-8"))

    if size > max_file_size_bytes:
        message = (
            f"File too large ({size / 1024 / 1024:.1f}MB). "
            f"Maximum size is {max_file_size_bytes / 1024 / 1024:g}MB."
        )
        logger.warning(message)
        return CSVParseResult(errors=[message])

    if isinstance(content, bytes):
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            return CSVParseResult(errors=[f"CSV parsing failed: {exc}"])
    else:
        text = content.lstrip("\ufeff")

    try:
        raw_headers, raw_rows = _read_table(text, max_field_size=max_file_size_bytes)
    except (csv.Error, ValueError) as exc:
        logger.warning("CSV parsing failed: %s", exc)
        return CSVParseResult(errors=[f"CSV parsing failed: {exc}"])

    errors: list[str] = []
    warnings: list[str] = []

    # Map raw headers onto canonical fields; first column wins on collisions
    header_mapping: dict[str, str] = {}
    field_columns: dict[str, str] = {}
    for raw in raw_headers:
        field = canonical_field(raw)
        if field is None:
            warnings.append(f'Unrecognized column "{raw}"; it will be ignored.')
            continue
        if field in field_columns:
            warnings.append(
                f'Column "{raw}" duplicates "{field_columns[field]}" '
                f'for {FIELD_LABELS[field]}; it will be ignored.'
            )
            continue
        header_mapping[raw] = field
        field_columns[field] = raw

    for field in MANDATORY_FIELDS:
        if field not in field_columns:
            errors.append(
                f'Missing mandatory column: "{field}". Please check your CSV headers.'
            )

    if errors:
        for message in errors:
            logger.warning(message)
        return CSVParseResult(errors=errors, warnings=warnings, raw_headers=raw_headers)

    if len(raw_rows) > max_rows:
        message = f"File contains {len(raw_rows)} rows. Maximum allowed is {max_rows}."
        logger.warning(message)
        return CSVParseResult(errors=[message])

    rows: list[TestCase] = []
    cell_issues: list[CellIssue] = []

    id_column = field_columns[TEST_ID]
    # Synthetic IDs must not collide with any ID written in the file
    taken = {raw_row.get(id_column, "").strip() for raw_row in raw_rows}
    taken.discard("")
    seen: set[str] = set()

    for index, raw_row in enumerate(raw_rows):
        values = {
            FIELD_ATTRIBUTES[field]: raw_row.get(column, "").strip()
            for column, field in header_mapping.items()
        }

        given = values.get("test_id")
        if given and given in seen:
            renamed = _unused_test_id(index, taken)
            taken.add(renamed)
            values["test_id"] = renamed
            warnings.append(
                f'Row {index + 1}: Duplicate Test Case ID "{given}", renamed to "{renamed}".'
            )
            cell_issues.append(
                CellIssue(
                    row=index,
                    column=id_column,
                    severity=IssueSeverity.WARNING,
                    message=f'Duplicate Test Case ID "{given}", renamed to "{renamed}"',
                )
            )
        elif not given:
            generated = _unused_test_id(index, taken)
            taken.add(generated)
            values["test_id"] = generated
            warnings.append(
                f'Row {index + 1}: Missing Test Case ID, auto-generated as "{generated}".'
            )
            cell_issues.append(
                CellIssue(
                    row=index,
                    column=id_column,
                    severity=IssueSeverity.WARNING,
                    message=f'Missing Test Case ID, auto-generated as "{generated}"',
                )
            )
        seen.add(values["test_id"])

        for field in REQUIRED_CELL_FIELDS:
            if not values.get(FIELD_ATTRIBUTES[field]):
                cell_issues.append(
                    CellIssue(
                        row=index,
                        column=field_columns[field],
                        severity=IssueSeverity.ERROR,
                        message=f"{FIELD_LABELS[field]} is required",
                    )
                )

        rows.append(TestCase(**values))

    if not rows:
        warnings.append("File contains no data rows.")

    for message in warnings:
        logger.info(message)

    return CSVParseResult(
        rows=rows,
        errors=[],
        warnings=warnings,
        raw_headers=raw_headers,
        raw_rows=raw_rows,
        cell_issues=cell_issues,
    )


def parse_csv_file(
    path: Path,
    *,
    max_rows: int = DEFAULT_MAX_ROWS,
    max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE_BYTES,
) -> CSVParseResult:
    """Read ``path`` and parse it with :func:`parse_csv`.

    Raises:
        FileNotFoundError: If ``path`` doesn't exist
    """
    if not path.exists():
        raise FileNotFoundError(f"CSV file not found: {path}")
    return parse_csv(
        path.read_bytes(),
        max_rows=max_rows,
        max_file_size_bytes=max_file_size_bytes,
    )


def parse_csv_strict(content: str | bytes, **limits: int) -> CSVParseResult:
    """Like :func:`parse_csv` but raise :class:`IngestionError` on fatal errors."""
    result = parse_csv(content, **limits)
    if result.errors:
        raise IngestionError(result.errors)
    return result


def _read_table(
    text: str, *, max_field_size: int = DEFAULT_MAX_FILE_SIZE_BYTES
) -> tuple[list[str], list[dict[str, str]]]:
    """Return trimmed headers and the non-empty data rows of ``text``.

    Rows are keyed by trimmed header. When a header repeats, the first
    column keeps the key. Missing trailing cells read as empty strings and
    surplus cells beyond the header are dropped.
    """
    if not text.strip():
        raise ValueError("file is empty")

    # The csv module rejects cells over 128 KiB unless the limit is raised
    if csv.field_size_limit() < max_field_size:
        csv.field_size_limit(max_field_size)

    reader = csv.reader(io.StringIO(text, newline=""))
    try:
        header_row = next(reader)
    except StopIteration:
        raise ValueError("file is empty")

    headers = [h.strip() for h in header_row]
    if not any(headers):
        raise ValueError("header row is empty")

    rows: list[dict[str, str]] = []
    for record in reader:
        # Skip blank lines and rows made only of delimiters
        if not any(cell.strip() for cell in record):
            continue
        row: dict[str, str] = {}
        for position, header in enumerate(headers):
            if not header or header in row:
                continue
            row[header] = record[position] if position < len(record) else ""
        rows.append(row)

    return [h for h in headers if h], rows
