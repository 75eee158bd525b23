from __future__ import annotations

from datetime import date

import pytest

from enrollment_import.software import (
    SOFTWARE_CODES,
    STATUS_TOKENS,
    build_context,
    canonical_software_name,
    map_software,
    status_for_token,
)


def _by_name(entries):
    return {entry.software_name: entry for entry in entries}


def test_code_column_maps_to_canonical_software() -> None:
    entries = map_software({"7": "Finished"})
    assert len(entries) == 1
    entry = entries[0]
    assert entry.software_name == "Illustrator"
    assert entry.software_code == "7"
    assert entry.status == "finished"


def test_unknown_status_token_is_ignored() -> None:
    assert map_software({"7": "maybe"}) == []
    assert map_software({"7": ""}) == []


@pytest.mark.parametrize(
    ("token", "status"),
    [("XX", "not-started"), ("IP", "in-progress"), ("NO", "not-applicable"), ("Finished", "finished")],
)
def test_status_tokens(token: str, status: str) -> None:
    assert status_for_token(token) == status


def test_status_tokens_are_case_sensitive() -> None:
    assert status_for_token("finished") is None
    assert status_for_token("ip") is None
    assert status_for_token(1) is None


def test_static_tables_are_read_only() -> None:
    with pytest.raises(TypeError):
        STATUS_TOKENS["OK"] = "finished"  # type: ignore[index]
    with pytest.raises(TypeError):
        SOFTWARE_CODES["99"] = "Paint"  # type: ignore[index]


def test_named_columns_tolerate_spacing_and_case() -> None:
    entries = _by_name(map_software({"Ar.  MAX + Vray": "XX", "photoshop": "IP"}))
    assert entries["3ds Max"].status == "not-started"
    assert entries["Photoshop"].status == "in-progress"
    assert entries["Photoshop"].software_code is None


def test_code_and_name_column_for_same_software_merge() -> None:
    entries = map_software({"7": "Finished", "ILLUSTRATOR + Indegn": "IP"})
    assert len(entries) == 1
    assert entries[0].software_name == "Illustrator"
    assert entries[0].software_code == "7"
    assert entries[0].status == "in-progress"


def test_declared_section_supplies_batch_facts() -> None:
    row = {
        "6": "IP",
        "1st Software": "Photoshop",
        "1st Software START DATE": "2024-01-10",
        "1st Software END DATE": "10/03/2024",
        "1st Software FACULTY": "Meera",
        "1st Software BATCH TIMING": "10-12",
    }
    entries = map_software(row)
    assert len(entries) == 1
    entry = entries[0]
    assert entry.status == "in-progress"
    assert entry.batch_start_date == date(2024, 1, 10)
    assert entry.batch_end_date == date(2024, 3, 10)
    assert entry.faculty_name == "Meera"
    assert entry.batch_timing == "10-12"


def test_section_pairing_uses_first_five_characters() -> None:
    row = {"6": "IP", "1st Software": "Photography", "1st Software FACULTY": "Ravi"}
    entries = _by_name(map_software(row))

    # "photo" occurs in "Photoshop", so the Photoshop column takes the section facts.
    assert entries["Photoshop"].faculty_name == "Ravi"
    assert entries["Photography"].faculty_name == "Ravi"
    assert entries["Photography"].status is None


def test_first_declared_section_wins() -> None:
    row = {
        "12": "XX",
        "1st Software": "After Effects",
        "1st Software FACULTY": "First",
        "2nd Software": "After Effects Advanced",
        "2nd Software FACULTY": "Second",
    }
    context = build_context(row)
    section = context.section_for("After Effects")
    assert section is context.first
    assert _by_name(map_software(row))["After Effects"].faculty_name == "First"


def test_future_batch_is_kept_as_metadata() -> None:
    row = {
        "7": "XX",
        "Future Batch START DATE": "2024-03-01",
        "Future Batch FACULTY": "Meera",
        "REMARK": "call back",
    }
    entry = map_software(row)[0]
    assert entry.metadata == {
        "futureBatch": {
            "startDate": "2024-03-01",
            "endDate": None,
            "time": None,
            "schedule": None,
            "faculty": "Meera",
            "remark": "call back",
            "nextSoftware": None,
        }
    }


def test_canonical_names_for_declared_software() -> None:
    assert canonical_software_name("  blender ") == "Blender"
    assert canonical_software_name("AFTER EFFECT") == "After Effects"
    assert canonical_software_name("Houdini") == "Houdini"
    assert canonical_software_name("Krita") == "Krita"


def test_padded_status_token_is_not_recognised() -> None:
    assert status_for_token(" Finished ") is None
    assert map_software({"7": "IP "}) == []


def test_declared_software_carries_no_future_batch() -> None:
    row = {
        "1st Software": "Krita",
        "1st Software FACULTY": "Meera",
        "Future Batch FACULTY": "Ravi",
    }
    entry = _by_name(map_software(row))["Krita"]
    assert entry.faculty_name == "Meera"
    assert entry.metadata is None


def test_declared_software_keeps_future_batch_of_its_column() -> None:
    row = {
        "7": "IP",
        "1st Software": "Illustrator",
        "Future Batch FACULTY": "Ravi",
    }
    entry = _by_name(map_software(row))["Illustrator"]
    assert entry.metadata["futureBatch"]["faculty"] == "Ravi"
