"""Models describing the outcome of CSV ingestion."""

from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field

from .enums import IssueSeverity
from .test_case import TestCase


class CellIssue(BaseModel):
    """Diagnostic attached to one raw cell of the uploaded file.

    ``row`` is the 0-indexed position in ``CSVParseResult.raw_rows`` and
    ``column`` is the raw header name as it appeared in the file.
    """

    model_config = ConfigDict(frozen=True)

    row: int = Field(ge=0)
    column: str
    severity: IssueSeverity
    message: str


class CSVParseResult(BaseModel):
    rows: List[TestCase] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    raw_headers: List[str] = Field(default_factory=list)
    raw_rows: List[Dict[str, str]] = Field(default_factory=list)
    cell_issues: List[CellIssue] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when ingestion succeeded and analysis may proceed."""
        return not self.errors

    def cell_errors(self) -> list[CellIssue]:
        return [i for i in self.cell_issues if i.severity is IssueSeverity.ERROR]

    def cell_warnings(self) -> list[CellIssue]:
        return [i for i in self.cell_issues if i.severity is IssueSeverity.WARNING]

    def total_errors(self) -> int:
        return len(self.errors) + len(self.cell_errors())

    def total_warnings(self) -> int:
        return len(self.warnings) + len(self.cell_warnings())
