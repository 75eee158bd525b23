from __future__ import annotations

from datetime import date

import pytest

from enrollment_import.domain import EnrollmentProfile
from enrollment_import.enrollment import (
    METADATA_KEY,
    ProfileFields,
    extract_profile,
    merge_document,
    new_profile,
    profile_changes,
    profile_status,
    split_list,
)
from enrollment_import.errors import InvalidDateError


def test_extract_profile_builds_metadata_document() -> None:
    row = {
        "Phone": "9876543210",
        "Date of Admission": "25/01/2024",
        "DOB": "2001-07-04",
        "Local Address": "12 MG Road",
        "Total Deal": "₹45,000",
        "Booking Amount": 5000,
        "EMI Plan": "Yes",
        "Emergency Name": "Ravi",
        "Softwares Included": "Photoshop, Illustrator, ",
        "Finished Batches": "B-12",
    }
    fields = extract_profile(row, phone="9876543210", row_number=2)

    assert fields.enrollment_date == date(2024, 1, 25)
    assert fields.date_of_birth == date(2001, 7, 4)
    assert fields.address == "12 MG Road"
    assert fields.software_list == ["Photoshop", "Illustrator"]
    assert fields.finished_batches == ["B-12"]
    assert fields.current_batches == []

    metadata = fields.metadata[METADATA_KEY]
    assert metadata["dateOfAdmission"] == "2024-01-25"
    assert metadata["totalDeal"] == 45000.0
    assert metadata["bookingAmount"] == 5000.0
    assert metadata["emiPlan"] is True
    assert metadata["whatsappNumber"] == "9876543210"
    assert metadata["localAddress"] == "12 MG Road"
    assert metadata["emergencyContact"] == {"number": None, "name": "Ravi", "relation": None}


def test_emergency_contact_left_out_when_empty() -> None:
    fields = extract_profile({"Phone": "9876543210"}, phone="9876543210", row_number=2)
    assert "emergencyContact" not in fields.metadata[METADATA_KEY]


def test_unreadable_enrollment_date_fails_with_the_value() -> None:
    with pytest.raises(InvalidDateError) as excinfo:
        extract_profile({"dateOfAdmission": "someday"}, phone=None, row_number=5)
    assert "someday" in str(excinfo.value)


def test_unreadable_birth_date_is_dropped(caplog) -> None:
    fields = extract_profile({"DOB": "someday"}, phone=None, row_number=7)
    assert fields.date_of_birth is None
    assert "Row 7" in caplog.text


def test_status_synonyms() -> None:
    assert profile_status("On Hold") == "on-hold"
    assert profile_status("Canceled") == "cancelled"
    assert profile_status("ACTIVE") == "active"
    assert profile_status("paused") is None


def test_split_list() -> None:
    assert split_list(" A, B ,,C ") == ["A", "B", "C"]
    assert split_list(None) == []


def test_merge_document_never_overwrites_with_null() -> None:
    base = {"a": 1, "nested": {"x": 1, "y": 2}}
    incoming = {"a": None, "b": 2, "nested": {"x": None, "y": 3}, "fresh": {"k": None, "v": 1}}
    assert merge_document(base, incoming) == {
        "a": 1,
        "b": 2,
        "nested": {"x": 1, "y": 3},
        "fresh": {"v": 1},
    }
    assert base == {"a": 1, "nested": {"x": 1, "y": 2}}


def test_new_profile_defaults_to_active() -> None:
    profile = new_profile("person-1", ProfileFields(metadata={METADATA_KEY: {"leadSource": None}}))
    assert profile.status == "active"
    assert profile.metadata == {METADATA_KEY: {}}


def test_profile_changes_only_for_supplied_values() -> None:
    existing = EnrollmentProfile(
        id="profile-1",
        person_id="person-1",
        address="Old Address",
        status="active",
        software_list=["Maya"],
        metadata={METADATA_KEY: {"leadSource": "Walk-in", "totalDeal": 1000.0}},
    )
    fields = ProfileFields(
        address=None,
        status="on-hold",
        software_list=[],
        metadata={METADATA_KEY: {"leadSource": None, "totalDeal": 2000.0}},
    )

    changes = profile_changes(existing, fields)

    assert set(changes) == {"status", "metadata"}
    assert changes["status"] == "on-hold"
    assert changes["metadata"] == {METADATA_KEY: {"leadSource": "Walk-in", "totalDeal": 2000.0}}


def test_profile_changes_empty_for_identical_row() -> None:
    existing = EnrollmentProfile(
        id="profile-1",
        person_id="person-1",
        software_list=["Maya"],
        metadata={METADATA_KEY: {"leadSource": "Walk-in"}},
    )
    fields = ProfileFields(software_list=["Maya"], metadata={METADATA_KEY: {"leadSource": "Walk-in"}})
    assert profile_changes(existing, fields) == {}
