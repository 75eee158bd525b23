"""Enrollment profile facts extracted from an import row."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from .aliases import resolve_field
from .cells import ABSENT, RawRow, as_bool, as_float, as_text, is_blank
from .dates import format_iso, normalize_date
from .domain import PROFILE_STATUSES, EnrollmentProfile
from .errors import InvalidDateError

logger = logging.getLogger(__name__)

METADATA_KEY = "enrollmentMetadata"

_STATUS_SYNONYMS = {
    "on hold": "on-hold",
    "onhold": "on-hold",
    "hold": "on-hold",
    "canceled": "cancelled",
    "complete": "completed",
    "done": "completed",
}


@dataclass
class ProfileFields:
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    enrollment_date: Optional[date] = None
    status: Optional[str] = None
    software_list: List[str] = field(default_factory=list)
    finished_batches: List[str] = field(default_factory=list)
    current_batches: List[str] = field(default_factory=list)
    pending_batches: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


def split_list(value: Any) -> List[str]:
    """Comma separated cell to a list of trimmed, non-empty names."""
    if is_blank(value):
        return []
    if isinstance(value, (list, tuple)):
        items = [as_text(item) for item in value]
    else:
        items = [part.strip() for part in str(as_text(value)).split(",")]
    return [item for item in items if item]


def profile_status(value: Any) -> Optional[str]:
    text = as_text(value)
    if not text:
        return None
    lowered = text.lower()
    if lowered in PROFILE_STATUSES:
        return lowered
    return _STATUS_SYNONYMS.get(lowered)


def _optional_date(row: RawRow, field_name: str, row_number: int) -> Optional[date]:
    raw = resolve_field(row, field_name)
    if raw is ABSENT:
        return None
    parsed = normalize_date(raw)
    if parsed is None:
        logger.warning("Row %s: could not parse %s from %r", row_number, field_name, raw)
    return parsed


def enrollment_date(row: RawRow) -> Optional[date]:
    """The admission date; a value that is present but unreadable fails the row."""
    raw = resolve_field(row, "enrollment_date")
    if raw is ABSENT:
        return None
    parsed = normalize_date(raw)
    if parsed is None:
        raise InvalidDateError("dateOfAdmission", raw)
    return parsed


def _enrollment_metadata(row: RawRow, admitted: Optional[date], phone: Optional[str], row_number: int) -> Dict[str, Any]:
    def text(name: str) -> Optional[str]:
        return as_text(resolve_field(row, name))

    metadata: Dict[str, Any] = {
        "dateOfAdmission": format_iso(admitted),
        "whatsappNumber": text("whatsapp_number") or phone,
        "localAddress": text("local_address"),
        "permanentAddress": text("permanent_address"),
        "courseName": text("course_name"),
        "totalDeal": as_float(resolve_field(row, "total_deal")),
        "bookingAmount": as_float(resolve_field(row, "booking_amount")),
        "balanceAmount": as_float(resolve_field(row, "balance_amount")),
        "emiPlan": as_bool(resolve_field(row, "emi_plan")),
        "emiPlanDate": format_iso(_optional_date(row, "emi_plan_date", row_number)),
        "complimentarySoftware": text("complimentary_software"),
        "complimentaryGift": text("complimentary_gift"),
        "hasReference": as_bool(resolve_field(row, "has_reference")),
        "referenceDetails": text("reference_details"),
        "counselorName": text("counselor_name"),
        "leadSource": text("lead_source"),
        "walkinDate": format_iso(_optional_date(row, "walkin_date", row_number)),
        "masterFaculty": text("master_faculty"),
    }
    emergency = {
        "number": text("emergency_contact_number"),
        "name": text("emergency_name"),
        "relation": text("emergency_relation"),
    }
    if any(value is not None for value in emergency.values()):
        metadata["emergencyContact"] = emergency
    return metadata


def extract_profile(row: RawRow, *, phone: Optional[str], row_number: int) -> ProfileFields:
    admitted = enrollment_date(row)
    return ProfileFields(
        date_of_birth=_optional_date(row, "date_of_birth", row_number),
        address=as_text(resolve_field(row, "local_address")),
        enrollment_date=admitted,
        status=profile_status(resolve_field(row, "profile_status")),
        software_list=split_list(resolve_field(row, "softwares_included")),
        finished_batches=split_list(resolve_field(row, "finished_batches")),
        current_batches=split_list(resolve_field(row, "current_batches")),
        pending_batches=split_list(resolve_field(row, "pending_batches")),
        metadata={METADATA_KEY: _enrollment_metadata(row, admitted, phone, row_number)},
    )


def merge_document(base: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``incoming`` into a copy of ``base``; None never overwrites."""
    merged = dict(base)
    for key, value in incoming.items():
        if value is None:
            continue
        current = merged.get(key)
        if isinstance(value, dict) and isinstance(current, dict):
            merged[key] = merge_document(current, value)
        elif isinstance(value, dict):
            merged[key] = {k: v for k, v in value.items() if v is not None}
        else:
            merged[key] = value
    return merged


def new_profile(person_id: str, fields: ProfileFields) -> EnrollmentProfile:
    return EnrollmentProfile(
        person_id=person_id,
        date_of_birth=fields.date_of_birth,
        address=fields.address,
        enrollment_date=fields.enrollment_date,
        status=fields.status or "active",  # type: ignore[arg-type]
        software_list=fields.software_list,
        finished_batches=fields.finished_batches,
        current_batches=fields.current_batches,
        pending_batches=fields.pending_batches,
        metadata=merge_document({}, fields.metadata),
    )


def profile_changes(existing: EnrollmentProfile, fields: ProfileFields) -> Dict[str, Any]:
    """Fields of ``existing`` the row actually changes."""
    changes: Dict[str, Any] = {}
    for name in ("date_of_birth", "address", "enrollment_date", "status"):
        value = getattr(fields, name)
        if value is not None and value != getattr(existing, name):
            changes[name] = value
    for name in ("software_list", "finished_batches", "current_batches", "pending_batches"):
        value = getattr(fields, name)
        if value and value != getattr(existing, name):
            changes[name] = value
    metadata = merge_document(existing.metadata, fields.metadata)
    if metadata != existing.metadata:
        changes["metadata"] = metadata
    return changes


__all__ = [
    "METADATA_KEY",
    "ProfileFields",
    "enrollment_date",
    "extract_profile",
    "merge_document",
    "new_profile",
    "profile_changes",
    "profile_status",
    "split_list",
]
