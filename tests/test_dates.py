from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from enrollment_import.cells import ABSENT
from enrollment_import.dates import SPREADSHEET_EPOCH, normalize_date


def test_serial_numbers_count_days_from_epoch() -> None:
    assert normalize_date(44000) == SPREADSHEET_EPOCH + timedelta(days=44000)
    assert normalize_date(44000.75) == SPREADSHEET_EPOCH + timedelta(days=44000)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("25/01/2024", date(2024, 1, 25)),
        ("01/25/2024", date(2024, 1, 25)),
        ("03/04/2024", date(2024, 4, 3)),
        ("2024-01-25", date(2024, 1, 25)),
        ("2024-01-25T10:30:00Z", date(2024, 1, 25)),
        ("5 March 2024", date(2024, 3, 5)),
    ],
)
def test_text_dates(raw: str, expected: date) -> None:
    assert normalize_date(raw) == expected


def test_date_objects_pass_through() -> None:
    assert normalize_date(datetime(2024, 1, 2, 10, 0)) == date(2024, 1, 2)
    assert normalize_date(date(2023, 12, 31)) == date(2023, 12, 31)


@pytest.mark.parametrize(
    "raw",
    ["2024-02-30", "31/31/2024", "someday", "", None, ABSENT, True, "Jan", "March 5", "15", "2024"],
)
def test_unreadable_values_give_none(raw) -> None:
    assert normalize_date(raw) is None
