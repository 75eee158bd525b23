from __future__ import annotations

from datetime import datetime
from io import BytesIO
from pathlib import Path

import pytest
from openpyxl import Workbook

from enrollment_import.errors import EmptyWorkbookError, UnreadableWorkbookError
from enrollment_import.workbook import read_path, read_rows, rows_from_matrix


def _xlsx(rows) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    workbook.create_sheet("Ignored").append(["Phone"])
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def test_reads_first_sheet_with_physical_row_numbers() -> None:
    content = _xlsx(
        [
            ["Name", "Phone", "DATE", 7, 12.0],
            ["Asha", 9876543210, datetime(2024, 1, 25), "Finished", None],
            ["  ", "", None, None, None],
            ["Ravi", "9123456780", None, None, "IP"],
        ]
    )

    rows = read_rows(content, "students.xlsx")

    assert [row.row_number for row in rows] == [2, 4]
    first, second = rows
    assert first.values == {
        "Name": "Asha",
        "Phone": 9876543210,
        "DATE": datetime(2024, 1, 25),
        "7": "Finished",
    }
    assert second.values == {"Name": "Ravi", "Phone": "9123456780", "12": "IP"}


def test_format_is_detected_without_a_filename() -> None:
    content = _xlsx([["Phone"], ["9876543210"]])
    assert read_rows(content)[0].values == {"Phone": "9876543210"}


def test_reads_csv() -> None:
    content = "Name,Phone,7\nAsha,9876543210,Finished\n,,\nRavi,9123456780,\n".encode("utf-8")
    rows = read_rows(content, "students.csv")
    assert [row.row_number for row in rows] == [2, 4]
    assert rows[0].values == {"Name": "Asha", "Phone": "9876543210", "7": "Finished"}
    assert rows[1].values == {"Name": "Ravi", "Phone": "9123456780"}


def test_repeated_headers_are_suffixed() -> None:
    rows = rows_from_matrix([["FACULTY", "FACULTY", None], ["Meera", "Ravi", "dropped"]])
    assert rows[0].values == {"FACULTY": "Meera", "FACULTY_1": "Ravi"}


def test_extra_header_rows_move_the_header_down() -> None:
    rows = rows_from_matrix(
        [["Batch report"], ["Name", "Phone"], ["Asha", "9876543210"]],
        header_rows=2,
    )
    assert rows[0].row_number == 3
    assert rows[0].values == {"Name": "Asha", "Phone": "9876543210"}


@pytest.mark.parametrize(
    "content",
    [b"", _xlsx([["Name", "Phone"]]), _xlsx([["Name", "Phone"], [None, None]])],
)
def test_workbook_without_data_rows_is_rejected(content: bytes) -> None:
    with pytest.raises(EmptyWorkbookError):
        read_rows(content, "students.xlsx")


def test_corrupt_workbook_is_rejected() -> None:
    with pytest.raises(UnreadableWorkbookError) as excinfo:
        read_rows(b"definitely not a zip archive", "students.xlsx")
    assert str(excinfo.value).startswith("Failed to parse Excel file")


def test_missing_file_is_unreadable(tmp_path: Path) -> None:
    with pytest.raises(UnreadableWorkbookError):
        read_path(tmp_path / "missing.xlsx")
