from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List, Protocol

from pydantic import TypeAdapter

from src.models import AIModuleSummary, TestCase

logger = logging.getLogger(__name__)

ROWS_FILENAME = "rows.json"
SUMMARY_FILENAME = "summary.json"

_ROWS_ADAPTER = TypeAdapter(List[TestCase])


class ResultStore(Protocol):
    """What the pipeline needs from a document store."""

    def save_rows(self, file_id: str, rows: list[TestCase]) -> None: ...

    def load_rows(self, file_id: str) -> list[TestCase]: ...

    def save_summary(self, file_id: str, summary: AIModuleSummary) -> None: ...

    def load_summary(self, file_id: str) -> AIModuleSummary | None: ...


class JsonResultStore:
    """Store rows and summaries as JSON files under ``<base_dir>/<file_id>/``."""

    def __init__(self, base_dir: str | Path):
        self.base_dir = Path(base_dir)

    def file_dir(self, file_id: str) -> Path:
        safe_id = str(file_id).strip().replace("/", "-").replace("\\", "-")
        if not safe_id or safe_id in {".", ".."}:
            raise ValueError(f"Invalid file id: {file_id!r}")
        return self.base_dir / safe_id

    def save_rows(self, file_id: str, rows: list[TestCase]) -> None:
        payload = [row.to_record() for row in rows]
        self._write_json(self.file_dir(file_id) / ROWS_FILENAME, payload)

    def load_rows(self, file_id: str) -> list[TestCase]:
        """Rows saved for ``file_id``; an empty list when nothing was saved."""
        data = self._read_json(self.file_dir(file_id) / ROWS_FILENAME)
        if data is None:
            return []
        return _ROWS_ADAPTER.validate_python(data)

    def save_summary(self, file_id: str, summary: AIModuleSummary) -> None:
        payload = summary.model_dump(mode="json", by_alias=True)
        self._write_json(self.file_dir(file_id) / SUMMARY_FILENAME, payload)

    def load_summary(self, file_id: str) -> AIModuleSummary | None:
        data = self._read_json(self.file_dir(file_id) / SUMMARY_FILENAME)
        if data is None:
            return None
        return AIModuleSummary.model_validate(data)

    def _read_json(self, path: Path) -> Any:
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _write_json(self, path: Path, payload: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)

        # Write atomically
        temp_file = path.with_suffix(".tmp")
        try:
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            temp_file.replace(path)
        except OSError as e:
            logger.error("Error writing to %s: %s", path, e)
            if temp_file.exists():
                temp_file.unlink()
            raise
