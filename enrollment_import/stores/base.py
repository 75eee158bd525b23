"""Protocols for the stores a row writes through.

Every store call of a row happens inside one unit of work. Implementations
must make ``commit`` durable for all writes of the unit and ``rollback``
discard all of them, without touching other units.
"""

from __future__ import annotations

from types import TracebackType
from typing import Any, Callable, Mapping, Optional, Protocol, Type

from ..domain import EnrollmentProfile, Person, SoftwareProgress


class PersonStore(Protocol):
    def find_by_phone(self, phone: str) -> Optional[Person]:  # pragma: no cover - protocol definition
        ...

    def find_by_email(self, email_normalized: str) -> Optional[Person]:  # pragma: no cover
        ...

    def create(self, person: Person) -> Person:  # pragma: no cover
        ...

    def update(self, person_id: str, changes: Mapping[str, Any]) -> Person:  # pragma: no cover
        ...


class ProfileStore(Protocol):
    def find_by_person(self, person_id: str) -> Optional[EnrollmentProfile]:  # pragma: no cover
        ...

    def create(self, profile: EnrollmentProfile) -> EnrollmentProfile:  # pragma: no cover
        ...

    def update(self, profile_id: str, changes: Mapping[str, Any]) -> EnrollmentProfile:  # pragma: no cover
        ...


class ProgressStore(Protocol):
    def find_by_person_and_software(
        self, person_id: str, software_name: str
    ) -> Optional[SoftwareProgress]:  # pragma: no cover
        ...

    def create(self, progress: SoftwareProgress) -> SoftwareProgress:  # pragma: no cover
        ...

    def update(self, progress_id: str, changes: Mapping[str, Any]) -> SoftwareProgress:  # pragma: no cover
        ...


class UnitOfWork(Protocol):
    """Transaction boundary for one row.

    Leaving the context without ``commit`` discards the unit's writes.
    """

    people: PersonStore
    profiles: ProfileStore
    progress: ProgressStore

    def __enter__(self) -> "UnitOfWork":  # pragma: no cover
        ...

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:  # pragma: no cover
        ...

    def commit(self) -> None:  # pragma: no cover
        ...

    def rollback(self) -> None:  # pragma: no cover
        ...


UnitOfWorkFactory = Callable[[], UnitOfWork]

__all__ = ["PersonStore", "ProfileStore", "ProgressStore", "UnitOfWork", "UnitOfWorkFactory"]
