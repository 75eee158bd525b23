"""Per-row outcome accumulation for one import run."""

from __future__ import annotations

from threading import Lock
from typing import List

from .domain import BatchImportResult, ImportRowError


def source_row_number(index: int, header_rows: int = 1) -> int:
    """1-based sheet row of the data row at ``index`` (first data row is 2)."""
    return index + 1 + header_rows


class BatchResultAggregator:
    """Collects successes and failures; safe to share between worker threads."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._success = 0
        self._errors: List[ImportRowError] = []

    def record_success(self, row: int) -> None:
        with self._lock:
            self._success += 1

    def record_failure(self, row: int, message: str) -> None:
        with self._lock:
            self._errors.append(ImportRowError(row=row, error=message))

    @property
    def success(self) -> int:
        with self._lock:
            return self._success

    @property
    def failed(self) -> int:
        with self._lock:
            return len(self._errors)

    def result(self) -> BatchImportResult:
        with self._lock:
            errors = sorted(self._errors, key=lambda item: item.row)
            return BatchImportResult(success=self._success, failed=len(errors), errors=errors)


__all__ = ["BatchResultAggregator", "source_row_number"]
