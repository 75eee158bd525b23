"""Drives one import row through validation, identity resolution and upserts.

Each row runs inside its own unit of work. A failure at any stage rolls back
everything that row wrote and is reported against the row number; sibling
rows are never affected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from .aliases import resolve_field
from .cells import ABSENT, RawRow, as_text
from .domain import SoftwareProgress
from .enrollment import ProfileFields, extract_profile, merge_document, new_profile, profile_changes
from .errors import InvalidPhoneError, MissingIdentityError, RowError
from .identity import is_valid_phone, normalize_phone
from .resolver import IdentityCandidate, IdentityResolver
from .software import SoftwareEntry, map_software
from .stores.base import UnitOfWork, UnitOfWorkFactory

logger = logging.getLogger(__name__)


class RowState(str, Enum):
    PENDING = "pending"
    VALIDATING = "validating"
    RESOLVING_IDENTITY = "resolving_identity"
    UPSERTING_PROFILE = "upserting_profile"
    UPSERTING_PROGRESS = "upserting_progress"
    COMMITTED = "committed"
    FAILED = "failed"
    ROLLED_BACK = "rolled_back"


@dataclass
class RowOutcome:
    row_number: int
    state: RowState = RowState.PENDING
    history: List[RowState] = field(default_factory=lambda: [RowState.PENDING])
    person_id: Optional[str] = None
    created_person: bool = False
    software_names: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.state is RowState.COMMITTED

    def advance(self, state: RowState) -> None:
        self.state = state
        self.history.append(state)


@dataclass(frozen=True)
class CourseFacts:
    """Row-level course columns copied onto every progress entry."""

    enrollment_date: Optional[date] = None
    course_name: Optional[str] = None
    course_type: Optional[str] = None
    student_status: Optional[str] = None


def identity_candidate(row: RawRow) -> IdentityCandidate:
    """Validate and normalise the identity columns of a row."""
    raw_phone = resolve_field(row, "phone")
    email = as_text(resolve_field(row, "email"))
    if raw_phone is ABSENT and not email:
        raise MissingIdentityError()

    phone: Optional[str] = None
    if raw_phone is not ABSENT:
        phone = normalize_phone(raw_phone)
        if not is_valid_phone(phone):
            raise InvalidPhoneError(as_text(raw_phone))

    return IdentityCandidate(phone=phone, email=email, name=as_text(resolve_field(row, "student_name")))


def _progress_changes(existing: SoftwareProgress, incoming: Dict[str, Any]) -> Dict[str, Any]:
    changes: Dict[str, Any] = {}
    for name, value in incoming.items():
        if value is None:
            continue
        if name == "metadata":
            value = merge_document(existing.metadata or {}, value)
        if value != getattr(existing, name):
            changes[name] = value
    return changes


class RowTransactionCoordinator:
    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        resolver: Optional[IdentityResolver] = None,
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._resolver = resolver or IdentityResolver()

    def process(self, row: RawRow, row_number: int) -> RowOutcome:
        outcome = RowOutcome(row_number=row_number)
        try:
            outcome.advance(RowState.VALIDATING)
            candidate = identity_candidate(row)
            profile = extract_profile(row, phone=candidate.phone, row_number=row_number)
            course = CourseFacts(
                enrollment_date=profile.enrollment_date,
                course_name=as_text(resolve_field(row, "course_name")),
                course_type=as_text(resolve_field(row, "course_type")),
                student_status=as_text(resolve_field(row, "student_status")),
            )
            entries = map_software(row)

            with self._unit_of_work_factory() as uow:
                self._write(uow, outcome, candidate, profile, course, entries)
                uow.commit()
            outcome.advance(RowState.COMMITTED)
        except RowError as exc:
            self._fail(outcome, str(exc))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Error processing row %s", row_number)
            self._fail(outcome, str(exc) or exc.__class__.__name__)
        return outcome

    def _write(
        self,
        uow: UnitOfWork,
        outcome: RowOutcome,
        candidate: IdentityCandidate,
        profile: ProfileFields,
        course: CourseFacts,
        entries: List[SoftwareEntry],
    ) -> None:
        outcome.advance(RowState.RESOLVING_IDENTITY)
        resolution = self._resolver.resolve(uow.people, candidate)
        person_id = resolution.person.id
        assert person_id is not None
        outcome.person_id = person_id
        outcome.created_person = resolution.created

        outcome.advance(RowState.UPSERTING_PROFILE)
        self._upsert_profile(uow, person_id, profile)

        outcome.advance(RowState.UPSERTING_PROGRESS)
        for entry in entries:
            self._upsert_progress(uow, person_id, entry, course)
            outcome.software_names.append(entry.software_name)

    def _upsert_profile(self, uow: UnitOfWork, person_id: str, fields: ProfileFields) -> None:
        existing = uow.profiles.find_by_person(person_id)
        if existing is None:
            uow.profiles.create(new_profile(person_id, fields))
            return
        changes = profile_changes(existing, fields)
        if changes:
            assert existing.id is not None
            uow.profiles.update(existing.id, changes)

    def _upsert_progress(
        self,
        uow: UnitOfWork,
        person_id: str,
        entry: SoftwareEntry,
        course: CourseFacts,
    ) -> None:
        incoming: Dict[str, Any] = {
            "enrollment_date": course.enrollment_date,
            "course_name": course.course_name,
            "course_type": course.course_type,
            "student_status": course.student_status,
            **entry.changes(),
        }
        existing = uow.progress.find_by_person_and_software(person_id, entry.software_name)
        if existing is None:
            payload = {key: value for key, value in incoming.items() if value is not None}
            payload.setdefault("status", "not-started")
            uow.progress.create(
                SoftwareProgress(person_id=person_id, software_name=entry.software_name, **payload)
            )
            return
        changes = _progress_changes(existing, incoming)
        if changes:
            assert existing.id is not None
            uow.progress.update(existing.id, changes)

    def _fail(self, outcome: RowOutcome, message: str) -> None:
        outcome.error = message
        outcome.advance(RowState.FAILED)
        outcome.advance(RowState.ROLLED_BACK)
        logger.info("Row %s failed: %s", outcome.row_number, message)


__all__ = [
    "CourseFacts",
    "RowOutcome",
    "RowState",
    "RowTransactionCoordinator",
    "identity_candidate",
]
