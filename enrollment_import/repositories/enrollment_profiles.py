"""Database-backed enrollment profile repository."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db.models import EnrollmentProfileModel
from ..domain import EnrollmentProfile
from ..errors import DuplicateKeyError, StoreError

_LIST_FIELDS = ("software_list", "finished_batches", "current_batches", "pending_batches")
_UPDATABLE = {"date_of_birth", "address", "enrollment_date", "status", "metadata", *_LIST_FIELDS}


class EnrollmentProfileRepository:
    def find_by_person(self, session: Session, person_id: str) -> Optional[EnrollmentProfile]:
        stmt = select(EnrollmentProfileModel).where(EnrollmentProfileModel.person_id == person_id)
        model = session.execute(stmt).scalar_one_or_none()
        return self._to_domain(model) if model else None

    def create(self, session: Session, profile: EnrollmentProfile) -> EnrollmentProfile:
        model = EnrollmentProfileModel(person_id=profile.person_id)
        if profile.id:
            model.id = profile.id
        self._apply(model, profile.model_dump(exclude={"id", "person_id"}))
        session.add(model)
        self._flush(session, profile.person_id)
        return self._to_domain(model)

    def update(self, session: Session, profile_id: str, changes: Mapping[str, Any]) -> EnrollmentProfile:
        model = session.get(EnrollmentProfileModel, profile_id)
        if model is None:
            raise StoreError(f"EnrollmentProfile {profile_id} does not exist")
        self._apply(model, changes)
        self._flush(session, model.person_id)
        return self._to_domain(model)

    def _apply(self, model: EnrollmentProfileModel, values: Mapping[str, Any]) -> None:
        for field, value in values.items():
            if field not in _UPDATABLE:
                continue
            if field == "metadata":
                model.metadata_payload = dict(value or {})
            elif field in _LIST_FIELDS:
                setattr(model, field, list(value or []))
            else:
                setattr(model, field, value)

    def _flush(self, session: Session, person_id: str) -> None:
        try:
            session.flush()
        except IntegrityError as exc:
            raise DuplicateKeyError("EnrollmentProfile", "person_id", person_id) from exc

    def _to_domain(self, model: EnrollmentProfileModel) -> EnrollmentProfile:
        return EnrollmentProfile(
            id=model.id,
            person_id=model.person_id,
            date_of_birth=model.date_of_birth,
            address=model.address,
            enrollment_date=model.enrollment_date,
            status=model.status or "active",
            software_list=list(model.software_list or []),
            finished_batches=list(model.finished_batches or []),
            current_batches=list(model.current_batches or []),
            pending_batches=list(model.pending_batches or []),
            metadata=dict(model.metadata_payload or {}),
        )


enrollment_profiles = EnrollmentProfileRepository()

__all__ = ["EnrollmentProfileRepository", "enrollment_profiles"]
