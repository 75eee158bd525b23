"""Database-backed person repository."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db.models import PersonModel
from ..domain import Person
from ..errors import DuplicateKeyError, StoreError

_UPDATABLE = {"name", "email", "email_normalized", "phone", "is_active", "password_hash"}


class PersonRepository:
    def find_by_phone(self, session: Session, phone: str) -> Optional[Person]:
        stmt = select(PersonModel).where(PersonModel.phone == phone)
        model = session.execute(stmt).scalar_one_or_none()
        return self._to_domain(model) if model else None

    def find_by_email(self, session: Session, email_normalized: str) -> Optional[Person]:
        stmt = select(PersonModel).where(PersonModel.email_normalized == email_normalized)
        model = session.execute(stmt).scalar_one_or_none()
        return self._to_domain(model) if model else None

    def create(self, session: Session, person: Person) -> Person:
        model = PersonModel(
            name=person.name,
            email=person.email,
            email_normalized=person.email_normalized,
            phone=person.phone,
            role=person.role,
            is_active=person.is_active,
            password_hash=person.password_hash,
        )
        if person.id:
            model.id = person.id
        session.add(model)
        self._flush(session, person)
        return self._to_domain(model)

    def update(self, session: Session, person_id: str, changes: Mapping[str, Any]) -> Person:
        model = session.get(PersonModel, person_id)
        if model is None:
            raise StoreError(f"Person {person_id} does not exist")
        for field, value in changes.items():
            if field in _UPDATABLE:
                setattr(model, field, value)
        self._flush(session, self._to_domain(model))
        return self._to_domain(model)

    def _flush(self, session: Session, person: Person) -> None:
        try:
            session.flush()
        except IntegrityError as exc:
            key, value = ("phone", person.phone) if "phone" in str(exc.orig) else ("email", person.email)
            raise DuplicateKeyError("Person", key, value) from exc

    def _to_domain(self, model: PersonModel) -> Person:
        return Person(
            id=model.id,
            name=model.name,
            email=model.email,
            email_normalized=model.email_normalized,
            phone=model.phone,
            role=model.role or "student",
            is_active=bool(model.is_active),
            password_hash=model.password_hash or "",
        )


people = PersonRepository()

__all__ = ["PersonRepository", "people"]
