"""Batch runner: feeds rows to the coordinator and collects the report.

With one worker rows run in file order. With more, rows are grouped by the
identities they may touch so two rows that could land on the same person never
run at the same time; groups run on a thread pool and each group keeps file
order.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from .cells import RawRow, SourceRow
from .config import get_settings
from .coordinator import RowTransactionCoordinator, identity_candidate
from .domain import BatchImportResult
from .errors import RowError
from .resolver import IdentityCandidate, IdentityResolver
from .results import BatchResultAggregator, source_row_number
from .stores.base import UnitOfWorkFactory
from .telemetry import emit_event

logger = logging.getLogger(__name__)

BATCH_TIMEOUT_MESSAGE = "batch timeout"

ImportRow = Union[SourceRow, RawRow]


class DisjointSet:
    """Union-find over hashable keys with path compression and union by rank."""

    def __init__(self) -> None:
        self.parent: Dict[Any, Any] = {}
        self.rank: Dict[Any, int] = {}

    def make_set(self, x: Any) -> None:
        if x not in self.parent:
            self.parent[x] = x
            self.rank[x] = 0

    def find(self, x: Any) -> Any:
        if x not in self.parent:
            raise ValueError(f"Element {x} not found in disjoint set")
        root = x
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[x] != root:
            self.parent[x], x = root, self.parent[x]
        return root

    def union(self, x: Any, y: Any) -> bool:
        root_x = self.find(x)
        root_y = self.find(y)
        if root_x == root_y:
            return False
        if self.rank[root_x] < self.rank[root_y]:
            root_x, root_y = root_y, root_x
        self.parent[root_y] = root_x
        if self.rank[root_x] == self.rank[root_y]:
            self.rank[root_x] += 1
        return True


def as_source_rows(rows: Iterable[ImportRow], *, header_rows: int = 1) -> List[SourceRow]:
    """Attach sheet row numbers to bare mappings; SourceRows pass through."""
    numbered: List[SourceRow] = []
    for index, row in enumerate(rows):
        if isinstance(row, SourceRow):
            numbered.append(row)
        else:
            numbered.append(SourceRow(row_number=source_row_number(index, header_rows), values=row))
    return numbered


def _existing_person_keys(
    unit_of_work_factory: UnitOfWorkFactory,
    candidates: Dict[int, IdentityCandidate],
) -> Dict[int, List[str]]:
    """Map each row to the ids of people its phone or email already belongs to."""
    found: Dict[int, List[str]] = {}
    with unit_of_work_factory() as uow:
        for index, candidate in candidates.items():
            keys: List[str] = []
            if candidate.phone:
                person = uow.people.find_by_phone(candidate.phone)
                if person is not None:
                    keys.append(f"person:{person.id}")
            if candidate.email_normalized:
                person = uow.people.find_by_email(candidate.email_normalized)
                if person is not None:
                    keys.append(f"person:{person.id}")
            found[index] = keys
        uow.rollback()
    return found


def partition_rows(
    rows: Sequence[SourceRow],
    unit_of_work_factory: Optional[UnitOfWorkFactory] = None,
) -> List[List[SourceRow]]:
    """Group rows that may resolve to the same person, keeping file order.

    Rows are linked when they share a normalised phone or email, or when their
    keys already belong to the same stored person. Rows whose identity does not
    validate get a group of their own; they fail before touching the store.
    """
    candidates: Dict[int, IdentityCandidate] = {}
    for index, row in enumerate(rows):
        try:
            candidates[index] = identity_candidate(row.values)
        except RowError:
            continue

    existing: Dict[int, List[str]] = {}
    if unit_of_work_factory is not None and candidates:
        existing = _existing_person_keys(unit_of_work_factory, candidates)

    groups = DisjointSet()
    for index in range(len(rows)):
        node = ("row", index)
        groups.make_set(node)
        candidate = candidates.get(index)
        if candidate is None:
            continue
        for key in (*candidate.partition_keys(), *existing.get(index, ())):
            groups.make_set(key)
            groups.union(node, key)

    partitions: Dict[Any, List[SourceRow]] = {}
    for index, row in enumerate(rows):
        partitions.setdefault(groups.find(("row", index)), []).append(row)
    return list(partitions.values())


class _BatchRun:
    def __init__(
        self,
        coordinator: RowTransactionCoordinator,
        aggregator: BatchResultAggregator,
        deadline: Optional[float],
    ) -> None:
        self.coordinator = coordinator
        self.aggregator = aggregator
        self.deadline = deadline

    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def run_rows(self, rows: Iterable[SourceRow]) -> None:
        for row in rows:
            if self.expired():
                self.fail(row.row_number, BATCH_TIMEOUT_MESSAGE)
                continue
            outcome = self.coordinator.process(row.values, row.row_number)
            if outcome.ok:
                self.aggregator.record_success(row.row_number)
            else:
                self.fail(row.row_number, outcome.error or "Unknown error")

    def fail(self, row_number: int, message: str) -> None:
        self.aggregator.record_failure(row_number, message)
        emit_event("import_row_failed", row=row_number, error=message)


def run_import(
    rows: Iterable[ImportRow],
    unit_of_work_factory: UnitOfWorkFactory,
    *,
    resolver: Optional[IdentityResolver] = None,
    max_workers: int = 1,
    timeout: Optional[float] = None,
    header_rows: int = 1,
) -> BatchImportResult:
    """Import every row and return the success/failure report.

    ``timeout`` is a wall-clock budget in seconds for the whole batch; rows not
    yet started when it runs out are reported as failed. A row already in its
    transaction always finishes.
    """
    if max_workers < 1:
        raise ValueError("max_workers must be at least 1")

    source_rows = as_source_rows(rows, header_rows=header_rows)
    started = time.monotonic()
    deadline = started + timeout if timeout is not None else None
    batch = _BatchRun(
        RowTransactionCoordinator(unit_of_work_factory, resolver=resolver),
        BatchResultAggregator(),
        deadline,
    )
    emit_event("import_started", rows=len(source_rows), max_workers=max_workers, timeout=timeout)

    if max_workers == 1 or len(source_rows) < 2:
        batch.run_rows(source_rows)
    else:
        partitions = partition_rows(source_rows, unit_of_work_factory)
        logger.debug("Importing %s rows in %s partitions", len(source_rows), len(partitions))
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="enrollment-import") as executor:
            futures = [executor.submit(batch.run_rows, partition) for partition in partitions]
            for future in futures:
                future.result()

    result = batch.aggregator.result()
    emit_event(
        "import_completed",
        rows=len(source_rows),
        success=result.success,
        failed=result.failed,
        duration_ms=round((time.monotonic() - started) * 1000, 2),
    )
    logger.info("Import finished: %s succeeded, %s failed", result.success, result.failed)
    return result


def run_configured_import(
    rows: Iterable[ImportRow],
    unit_of_work_factory: Optional[UnitOfWorkFactory] = None,
) -> BatchImportResult:
    """Run an import with worker count, timeout and placeholder domain from settings.

    Without an explicit factory the SQLAlchemy store configured by
    ``ENROLLMENT_DATABASE_URL`` is used.
    """
    settings = get_settings()
    if unit_of_work_factory is None:
        from .repositories import sqlalchemy_unit_of_work_factory

        unit_of_work_factory = sqlalchemy_unit_of_work_factory()
    return run_import(
        rows,
        unit_of_work_factory,
        resolver=IdentityResolver(settings.placeholder_email_domain),
        max_workers=settings.import_max_workers,
        timeout=settings.import_timeout_seconds,
        header_rows=settings.import_header_rows,
    )


__all__ = [
    "BATCH_TIMEOUT_MESSAGE",
    "DisjointSet",
    "ImportRow",
    "as_source_rows",
    "partition_rows",
    "run_configured_import",
    "run_import",
]
