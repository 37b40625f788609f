"""Chunk test-case rows into fixed-size review batches."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Sequence

from src.models import TestCase


@dataclass
class Batch:
    """A group of rows submitted together in one reviewer call.

    Attributes:
        index: Zero-based batch index within the run
        rows: The TestCase objects in this batch (the caller's instances)
    """

    index: int
    rows: list[TestCase]

    @property
    def test_ids(self) -> list[str]:
        return [row.test_id for row in self.rows]


def count_batches(total_rows: int, batch_size: int) -> int:
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    return math.ceil(total_rows / batch_size) if total_rows else 0


def iter_batches(rows: Sequence[TestCase], batch_size: int) -> Iterator[Batch]:
    """Yield consecutive batches of at most ``batch_size`` rows, in input order."""
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")

    for batch_idx, start_idx in enumerate(range(0, len(rows), batch_size)):
        yield Batch(index=batch_idx, rows=list(rows[start_idx : start_idx + batch_size]))
