"""CSV ingestion: header normalisation and cell-level diagnostics."""

from __future__ import annotations

from .csv_normalizer import (
    DEFAULT_MAX_FILE_SIZE_BYTES,
    DEFAULT_MAX_ROWS,
    IngestionError,
    generate_test_id,
    parse_csv,
    parse_csv_file,
    parse_csv_strict,
)
from .header_map import CANONICAL_FIELDS, HEADER_MAP, MANDATORY_FIELDS, canonical_field

__all__ = [
    "DEFAULT_MAX_FILE_SIZE_BYTES",
    "DEFAULT_MAX_ROWS",
    "IngestionError",
    "generate_test_id",
    "parse_csv",
    "parse_csv_file",
    "parse_csv_strict",
    "CANONICAL_FIELDS",
    "HEADER_MAP",
    "MANDATORY_FIELDS",
    "canonical_field",
]
