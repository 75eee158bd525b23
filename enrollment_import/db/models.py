"""ORM models backing the enrollment store."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import JSON

from .base import Base, TimestampMixin

JSONType = JSON


class PersonModel(TimestampMixin, Base):
    __tablename__ = "people"
    __table_args__ = (
        Index("ix_people_email_normalized", "email_normalized", unique=True),
        Index("ix_people_phone", "phone", unique=True),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    email_normalized: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(10), nullable=True)
    role: Mapped[str] = mapped_column(String(32), default="student", nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), default="", nullable=False)

    profile: Mapped[Optional["EnrollmentProfileModel"]] = relationship(
        back_populates="person", cascade="all, delete-orphan", uselist=False
    )
    software_progress: Mapped[list["SoftwareProgressModel"]] = relationship(
        back_populates="person", cascade="all, delete-orphan"
    )


class EnrollmentProfileModel(TimestampMixin, Base):
    __tablename__ = "enrollment_profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    person_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("people.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    enrollment_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(16), default="active", nullable=False)
    software_list: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    finished_batches: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    current_batches: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    pending_batches: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    metadata_payload: Mapped[dict] = mapped_column("metadata", JSONType, default=dict, nullable=False)

    person: Mapped[PersonModel] = relationship(back_populates="profile")


class SoftwareProgressModel(TimestampMixin, Base):
    __tablename__ = "software_progress"
    __table_args__ = (
        UniqueConstraint("person_id", "software_key", name="uq_software_progress_person_software"),
        Index("ix_software_progress_person", "person_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    person_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("people.id", ondelete="CASCADE"), nullable=False
    )
    software_name: Mapped[str] = mapped_column(String(128), nullable=False)
    software_key: Mapped[str] = mapped_column(String(128), nullable=False)
    software_code: Mapped[str | None] = mapped_column(String(16), nullable=True)
    status: Mapped[str] = mapped_column(String(16), default="not-started", nullable=False)
    enrollment_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    course_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    course_type: Mapped[str | None] = mapped_column(Text, nullable=True)
    student_status: Mapped[str | None] = mapped_column(Text, nullable=True)
    batch_timing: Mapped[str | None] = mapped_column(Text, nullable=True)
    batch_start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    batch_end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    faculty_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    schedule: Mapped[str | None] = mapped_column(Text, nullable=True)
    metadata_payload: Mapped[dict | None] = mapped_column("metadata", JSONType, nullable=True)

    person: Mapped[PersonModel] = relationship(back_populates="software_progress")


__all__ = [
    "EnrollmentProfileModel",
    "PersonModel",
    "SoftwareProgressModel",
]
