"""Database-backed software progress repository."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db.models import SoftwareProgressModel
from ..domain import SoftwareProgress
from ..errors import DuplicateKeyError, StoreError

_UPDATABLE = {
    "software_code",
    "status",
    "enrollment_date",
    "course_name",
    "course_type",
    "student_status",
    "batch_timing",
    "batch_start_date",
    "batch_end_date",
    "faculty_name",
    "schedule",
    "metadata",
}


def _software_key(software_name: str) -> str:
    return software_name.strip().casefold()


class SoftwareProgressRepository:
    def find_by_person_and_software(
        self, session: Session, person_id: str, software_name: str
    ) -> Optional[SoftwareProgress]:
        stmt = select(SoftwareProgressModel).where(
            SoftwareProgressModel.person_id == person_id,
            SoftwareProgressModel.software_key == _software_key(software_name),
        )
        model = session.execute(stmt).scalar_one_or_none()
        return self._to_domain(model) if model else None

    def list_for_person(self, session: Session, person_id: str) -> list[SoftwareProgress]:
        stmt = (
            select(SoftwareProgressModel)
            .where(SoftwareProgressModel.person_id == person_id)
            .order_by(SoftwareProgressModel.software_name.asc())
        )
        return [self._to_domain(model) for model in session.execute(stmt).scalars().all()]

    def create(self, session: Session, progress: SoftwareProgress) -> SoftwareProgress:
        model = SoftwareProgressModel(
            person_id=progress.person_id,
            software_name=progress.software_name,
            software_key=_software_key(progress.software_name),
        )
        if progress.id:
            model.id = progress.id
        self._apply(model, progress.model_dump(exclude={"id", "person_id", "software_name"}))
        session.add(model)
        self._flush(session, progress.software_name)
        return self._to_domain(model)

    def update(self, session: Session, progress_id: str, changes: Mapping[str, Any]) -> SoftwareProgress:
        model = session.get(SoftwareProgressModel, progress_id)
        if model is None:
            raise StoreError(f"SoftwareProgress {progress_id} does not exist")
        self._apply(model, changes)
        self._flush(session, model.software_name)
        return self._to_domain(model)

    def _apply(self, model: SoftwareProgressModel, values: Mapping[str, Any]) -> None:
        for field, value in values.items():
            if field not in _UPDATABLE:
                continue
            if field == "metadata":
                model.metadata_payload = dict(value) if value is not None else None
            else:
                setattr(model, field, value)

    def _flush(self, session: Session, software_name: str) -> None:
        try:
            session.flush()
        except IntegrityError as exc:
            raise DuplicateKeyError("SoftwareProgress", "software_name", software_name) from exc

    def _to_domain(self, model: SoftwareProgressModel) -> SoftwareProgress:
        return SoftwareProgress(
            id=model.id,
            person_id=model.person_id,
            software_name=model.software_name,
            software_code=model.software_code,
            status=model.status or "not-started",
            enrollment_date=model.enrollment_date,
            course_name=model.course_name,
            course_type=model.course_type,
            student_status=model.student_status,
            batch_timing=model.batch_timing,
            batch_start_date=model.batch_start_date,
            batch_end_date=model.batch_end_date,
            faculty_name=model.faculty_name,
            schedule=model.schedule,
            metadata=dict(model.metadata_payload) if model.metadata_payload is not None else None,
        )


software_progress = SoftwareProgressRepository()

__all__ = ["SoftwareProgressRepository", "software_progress"]
