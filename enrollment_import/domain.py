"""Domain models shared by the pipeline, the stores and the HTTP layer."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

ProfileStatus = Literal["active", "inactive", "completed", "cancelled", "on-hold"]
ProgressStatus = Literal["not-started", "in-progress", "finished", "not-applicable"]

PROFILE_STATUSES: tuple[str, ...] = ("active", "inactive", "completed", "cancelled", "on-hold")
PROGRESS_STATUSES: tuple[str, ...] = ("not-started", "in-progress", "finished", "not-applicable")


class Person(BaseModel):
    id: Optional[str] = None
    name: str
    email: str
    email_normalized: str
    phone: Optional[str] = None
    role: str = "student"
    is_active: bool = True
    password_hash: str = ""


class EnrollmentProfile(BaseModel):
    """Enrollment facts owned one-to-one by a person."""

    id: Optional[str] = None
    person_id: str
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    enrollment_date: Optional[date] = None
    status: ProfileStatus = "active"
    software_list: List[str] = Field(default_factory=list)
    finished_batches: List[str] = Field(default_factory=list)
    current_batches: List[str] = Field(default_factory=list)
    pending_batches: List[str] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class SoftwareProgress(BaseModel):
    """Progress of one person on one software, unique per (person, software)."""

    id: Optional[str] = None
    person_id: str
    software_name: str
    software_code: Optional[str] = None
    status: ProgressStatus = "not-started"
    enrollment_date: Optional[date] = None
    course_name: Optional[str] = None
    course_type: Optional[str] = None
    student_status: Optional[str] = None
    batch_timing: Optional[str] = None
    batch_start_date: Optional[date] = None
    batch_end_date: Optional[date] = None
    faculty_name: Optional[str] = None
    schedule: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class ImportRowError(BaseModel):
    row: int
    error: str


class BatchImportResult(BaseModel):
    success: int = 0
    failed: int = 0
    errors: List[ImportRowError] = Field(default_factory=list)


__all__ = [
    "BatchImportResult",
    "EnrollmentProfile",
    "ImportRowError",
    "PROFILE_STATUSES",
    "PROGRESS_STATUSES",
    "Person",
    "ProfileStatus",
    "ProgressStatus",
    "SoftwareProgress",
]
