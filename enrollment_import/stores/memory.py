"""Process-local store used by tests and dry runs.

Writes apply immediately under a lock and each unit of work keeps an undo log,
so rolling back one row restores exactly what that row changed.
"""

from __future__ import annotations

import logging
import uuid
from threading import RLock
from types import TracebackType
from typing import Any, Callable, Dict, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel

from ..domain import EnrollmentProfile, Person, SoftwareProgress
from ..errors import DuplicateKeyError, StoreError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _copy(model: ModelT) -> ModelT:
    return model.model_copy(deep=True)


class InMemoryStore:
    """Holds committed and in-flight records for every unit of work."""

    def __init__(self) -> None:
        self.lock = RLock()
        self.people: Dict[str, Person] = {}
        self.profiles: Dict[str, EnrollmentProfile] = {}
        self.progress: Dict[str, SoftwareProgress] = {}

    def unit_of_work(self) -> "InMemoryUnitOfWork":
        return InMemoryUnitOfWork(self)

    def person_by_phone(self, phone: str) -> Optional[Person]:
        with self.lock:
            for person in self.people.values():
                if person.phone == phone:
                    return _copy(person)
        return None

    def person_by_email(self, email_normalized: str) -> Optional[Person]:
        with self.lock:
            for person in self.people.values():
                if person.email_normalized == email_normalized:
                    return _copy(person)
        return None

    def progress_for(self, person_id: str) -> List[SoftwareProgress]:
        with self.lock:
            return [_copy(item) for item in self.progress.values() if item.person_id == person_id]

    def profile_for(self, person_id: str) -> Optional[EnrollmentProfile]:
        with self.lock:
            for profile in self.profiles.values():
                if profile.person_id == person_id:
                    return _copy(profile)
        return None


class _Table:
    def __init__(self, unit: "InMemoryUnitOfWork", records: Dict[str, Any], entity: str) -> None:
        self._unit = unit
        self._records = records
        self._entity = entity

    @property
    def _lock(self) -> RLock:
        return self._unit.store.lock

    def _find(self, predicate: Callable[[Any], bool]) -> Optional[Any]:
        with self._lock:
            for record in self._records.values():
                if predicate(record):
                    return _copy(record)
        return None

    def _insert(self, record: ModelT) -> ModelT:
        self._unit.ensure_open()
        stored = record.model_copy(update={"id": record.id or str(uuid.uuid4())}, deep=True)
        with self._lock:
            if stored.id in self._records:
                raise DuplicateKeyError(self._entity, "id", stored.id)
            self._check_unique(stored)
            self._records[stored.id] = stored
            self._unit.record_undo(lambda: self._records.pop(stored.id, None))
        return _copy(stored)

    def _update(self, record_id: str, changes: Mapping[str, Any]) -> Any:
        self._unit.ensure_open()
        with self._lock:
            current = self._records.get(record_id)
            if current is None:
                raise StoreError(f"{self._entity} {record_id} does not exist")
            updated = current.model_copy(update=dict(changes), deep=True)
            self._check_unique(updated)
            self._records[record_id] = updated
            self._unit.record_undo(lambda: self._records.__setitem__(record_id, current))
        return _copy(updated)

    def _check_unique(self, record: Any) -> None:
        return None


class _PersonTable(_Table):
    def find_by_phone(self, phone: str) -> Optional[Person]:
        return self._find(lambda person: person.phone == phone)

    def find_by_email(self, email_normalized: str) -> Optional[Person]:
        return self._find(lambda person: person.email_normalized == email_normalized)

    def create(self, person: Person) -> Person:
        return self._insert(person)

    def update(self, person_id: str, changes: Mapping[str, Any]) -> Person:
        return self._update(person_id, changes)

    def _check_unique(self, record: Person) -> None:
        for other in self._records.values():
            if other.id == record.id:
                continue
            if record.phone and other.phone == record.phone:
                raise DuplicateKeyError("Person", "phone", record.phone)
            if other.email_normalized == record.email_normalized:
                raise DuplicateKeyError("Person", "email", record.email)


class _ProfileTable(_Table):
    def find_by_person(self, person_id: str) -> Optional[EnrollmentProfile]:
        return self._find(lambda profile: profile.person_id == person_id)

    def create(self, profile: EnrollmentProfile) -> EnrollmentProfile:
        return self._insert(profile)

    def update(self, profile_id: str, changes: Mapping[str, Any]) -> EnrollmentProfile:
        return self._update(profile_id, changes)

    def _check_unique(self, record: EnrollmentProfile) -> None:
        for other in self._records.values():
            if other.id != record.id and other.person_id == record.person_id:
                raise DuplicateKeyError("EnrollmentProfile", "person_id", record.person_id)


class _ProgressTable(_Table):
    def find_by_person_and_software(self, person_id: str, software_name: str) -> Optional[SoftwareProgress]:
        key = software_name.casefold()
        return self._find(
            lambda item: item.person_id == person_id and item.software_name.casefold() == key
        )

    def create(self, progress: SoftwareProgress) -> SoftwareProgress:
        return self._insert(progress)

    def update(self, progress_id: str, changes: Mapping[str, Any]) -> SoftwareProgress:
        return self._update(progress_id, changes)

    def _check_unique(self, record: SoftwareProgress) -> None:
        key = record.software_name.casefold()
        for other in self._records.values():
            if other.id != record.id and other.person_id == record.person_id and other.software_name.casefold() == key:
                raise DuplicateKeyError("SoftwareProgress", "software_name", record.software_name)


class InMemoryUnitOfWork:
    def __init__(self, store: InMemoryStore) -> None:
        self.store = store
        self._undo: List[Callable[[], Any]] = []
        self._closed = False
        self.people = _PersonTable(self, store.people, "Person")
        self.profiles = _ProfileTable(self, store.profiles, "EnrollmentProfile")
        self.progress = _ProgressTable(self, store.progress, "SoftwareProgress")

    def __enter__(self) -> "InMemoryUnitOfWork":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        if not self._closed:
            self.rollback()

    def ensure_open(self) -> None:
        if self._closed:
            raise StoreError("Unit of work is already closed")

    def record_undo(self, action: Callable[[], Any]) -> None:
        self.ensure_open()
        self._undo.append(action)

    def commit(self) -> None:
        self._undo.clear()
        self._closed = True

    def rollback(self) -> None:
        with self.store.lock:
            while self._undo:
                self._undo.pop()()
        self._closed = True
        logger.debug("In-memory unit of work rolled back")


__all__ = ["InMemoryStore", "InMemoryUnitOfWork"]
