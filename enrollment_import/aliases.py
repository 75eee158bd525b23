"""Header alias table and resolver.

Uploaded sheets spell the same column many ways ("Phone", "phoneNumber",
"NUMBER"). ``FIELD_ALIASES`` lists the accepted spellings for every canonical
field, most canonical spelling first, and ``resolve`` picks the value for one
field out of a raw row.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Sequence, Tuple

from .cells import ABSENT, CellValue, RawRow, is_blank
from .errors import StaticTableError

_RAW_ALIASES: dict[str, Tuple[str, ...]] = {
    # identity
    "phone": ("phone", "Phone", "PHONE", "phoneNumber", "Phone Number", "NUMBER", "number", "Mobile", "mobile"),
    "email": ("email", "Email", "EMAIL", "Email Address"),
    "student_name": ("studentName", "Student Name", "Name", "NAME", "name", "student_name", "Full Name", "fullName"),
    # profile
    "enrollment_date": (
        "dateOfAdmission",
        "Date of Admission",
        "DATE",
        "date",
        "Date",
        "enrollmentDate",
        "Enrollment Date",
    ),
    "date_of_birth": ("dob", "DOB", "dateOfBirth", "Date of Birth"),
    "profile_status": ("profileStatus", "Profile Status", "Enrollment Status"),
    "whatsapp_number": ("whatsappNumber", "WhatsApp Number", "whatsapp"),
    "local_address": ("localAddress", "Local Address", "local_address", "Address"),
    "permanent_address": ("permanentAddress", "Permanent Address", "permanent_address"),
    "softwares_included": ("softwaresIncluded", "Softwares Included", "softwares_included"),
    "finished_batches": ("finishedBatches", "Finished Batches", "finished_batches"),
    "current_batches": ("currentBatches", "Current Batches", "current_batches"),
    "pending_batches": ("pendingBatches", "Pending Batches", "pending_batches"),
    # enrollment metadata
    "total_deal": ("totalDeal", "Total Deal", "total_deal"),
    "booking_amount": ("bookingAmount", "Booking Amount", "booking_amount"),
    "balance_amount": ("balanceAmount", "Balance Amount", "balance_amount"),
    "emi_plan": ("emiPlan", "EMI Plan", "emi_plan"),
    "emi_plan_date": ("emiPlanDate", "EMI Plan Date", "emi_plan_date"),
    "complimentary_software": ("complimentarySoftware", "Complimentary Software"),
    "complimentary_gift": ("complimentaryGift", "Complimentary Gift"),
    "has_reference": ("hasReference", "Has Reference", "has_reference"),
    "reference_details": ("referenceDetails", "Reference Details", "reference_details"),
    "counselor_name": ("counselorName", "Counselor Name", "counselor_name"),
    "lead_source": ("leadSource", "Lead Source", "lead_source"),
    "walkin_date": ("walkinDate", "Walk-in Date", "walkin_date"),
    "master_faculty": ("masterFaculty", "Master Faculty", "master_faculty"),
    "emergency_contact_number": ("emergencyContactNumber", "Emergency Contact Number"),
    "emergency_name": ("emergencyName", "Emergency Name"),
    "emergency_relation": ("emergencyRelation", "Emergency Relation"),
    # course facts shared by every progress entry of the row
    "course_name": ("courseName", "Course Name", "COMMON", "Common", "New COURSE", "New Course"),
    "course_type": ("courseType", "Course Type", "TYPE", "Type", "COURSE", "Course", "Tyoe"),
    "student_status": ("studentStatus", "Student Status", "STATUS", "Status"),
    "batch_timing": ("batchTiming", "Batch Timing", "TIME", "Time", "TIME COMMITMENT", "Time Commitment"),
    "schedule": ("schedule", "Schedule", "MWF/TTS"),
    # 1st software section
    "first_software": ("1st Software", "First Software"),
    "first_software_start_date": ("1st Software START DATE", "1st Software Start Date", "Start Dt", "Start Date"),
    "first_software_end_date": ("1st Software END DATE", "1st Software End Date", "End"),
    "first_software_batch_timing": (
        "1st Software BATCH TIMING",
        "1st Software Batch Timing",
        "Batch Time",
        "1st Software BATCH TIME",
    ),
    "first_software_faculty": ("1st Software FACULTY", "1st Software Faculty", "FACULTY"),
    "first_software_status": ("1st Software CURRENT", "1st Software Current", "CURRENT SOFTARE"),
    # 2nd software section
    "second_software": ("2nd Software", "Second Software"),
    "second_software_start_date": ("2nd Software START DATE", "2nd Software Start Date", "START DATE"),
    "second_software_end_date": ("2nd Software END DATE", "2nd Software End Date", "END DATE"),
    "second_software_batch_timing": (
        "2nd Software BATCH TIMING",
        "2nd Software Batch Timing",
        "BATCH TIME",
        "2nd Software BATCH TIME",
    ),
    "second_software_faculty": ("2nd Software FACULTY", "2nd Software Faculty", "FACULTY"),
    "second_software_status": ("2nd Software CURRENT", "2nd Software Current", "CURRENT SOFTARE"),
    # future batch, kept as progress metadata
    "future_batch_start_date": ("Future Batch START DATE", "Future Batch Start Date"),
    "future_batch_end_date": ("Future Batch END DATE", "Future Batch End Date"),
    "future_batch_time": ("Future Batch BATCH TIME", "Future Batch Batch Time", "BATCH TIME"),
    "future_batch_schedule": ("Future Batch MWF/TTS", "Future Batch Schedule", "MWF/TTS"),
    "future_batch_faculty": ("Future Batch FACULTY", "Future Batch Faculty"),
    "remark": ("REMARK", "Remark"),
    "next_software": ("NEXT SOFTWARE", "Next Software"),
}


def _validate(table: Mapping[str, Sequence[str]]) -> None:
    for field, spellings in table.items():
        if not spellings:
            raise StaticTableError(f"Alias table entry {field!r} has no header spellings")
        if any(not isinstance(spelling, str) or not spelling.strip() for spelling in spellings):
            raise StaticTableError(f"Alias table entry {field!r} contains a blank header spelling")
        if len(set(spellings)) != len(spellings):
            raise StaticTableError(f"Alias table entry {field!r} lists a header spelling twice")


_validate(_RAW_ALIASES)
FIELD_ALIASES: Mapping[str, Tuple[str, ...]] = MappingProxyType(dict(_RAW_ALIASES))


def resolve(row: RawRow, aliases: Sequence[str]) -> CellValue:
    """Return the first populated value among ``aliases``.

    Each alias is tried as an exact header first, then case-insensitively
    against every header of the row, before moving to the next alias.
    Returns ``ABSENT`` when nothing matches or every match is blank.
    """
    for alias in aliases:
        value = row.get(alias, ABSENT)
        if not is_blank(value):
            return value
        lowered = alias.lower()
        for key, candidate in row.items():
            if isinstance(key, str) and key.lower() == lowered and not is_blank(candidate):
                return candidate
    return ABSENT


def _looks_like_name_header(key: str) -> bool:
    lowered = key.lower()
    return (
        ("student" in lowered and "name" in lowered)
        or ("full" in lowered and "name" in lowered)
        or lowered in {"student", "name"}
    )


def resolve_field(row: RawRow, field: str) -> CellValue:
    """Resolve a canonical field using ``FIELD_ALIASES``.

    ``student_name`` additionally scans loosely named headers
    ("Student's Full Name") once the listed spellings miss.
    """
    try:
        aliases = FIELD_ALIASES[field]
    except KeyError:
        return ABSENT
    value = resolve(row, aliases)
    if value is ABSENT and field == "student_name":
        for key, candidate in row.items():
            if isinstance(key, str) and _looks_like_name_header(key) and not is_blank(candidate):
                return candidate
    return value


__all__ = ["FIELD_ALIASES", "resolve", "resolve_field"]
