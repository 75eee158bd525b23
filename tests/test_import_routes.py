from __future__ import annotations

from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook

from enrollment_import.config import Settings, get_settings
from enrollment_import.import_routes import get_unit_of_work_factory
from enrollment_import.main import app
from enrollment_import.stores.memory import InMemoryStore

XLSX_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _workbook_bytes(rows) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def store():
    store = InMemoryStore()
    app.dependency_overrides[get_unit_of_work_factory] = lambda: store.unit_of_work
    yield store
    app.dependency_overrides.clear()


def test_healthz() -> None:
    client = TestClient(app)
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_upload_returns_import_report(store) -> None:
    content = _workbook_bytes(
        [
            ["Name", "Phone", "Email", 7],
            ["Asha", 9876543210, "asha@example.com", "Finished"],
            ["Broken", 12345, None, "IP"],
            ["Ravi", "9123456780", None, "XX"],
        ]
    )
    client = TestClient(app)

    response = client.post(
        "/api/imports/students",
        files={"file": ("students.xlsx", content, XLSX_TYPE)},
    )

    assert response.status_code == 200
    assert response.json() == {
        "success": 2,
        "failed": 1,
        "errors": [{"row": 3, "error": "Invalid phone number format: 12345"}],
    }
    assert len(store.people) == 2


def test_empty_workbook_is_a_bad_request(store) -> None:
    client = TestClient(app)
    response = client.post(
        "/api/imports/students",
        files={"file": ("students.xlsx", _workbook_bytes([["Name", "Phone"]]), XLSX_TYPE)},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Excel file is empty or has no data rows"


def test_unreadable_upload_is_a_bad_request(store) -> None:
    client = TestClient(app)
    response = client.post(
        "/api/imports/students",
        files={"file": ("students.xlsx", b"not a workbook", XLSX_TYPE)},
    )
    assert response.status_code == 400
    assert response.json()["detail"].startswith("Failed to parse Excel file")


def test_oversized_upload_is_rejected(store) -> None:
    app.dependency_overrides[get_settings] = lambda: Settings(ENROLLMENT_IMPORT_MAX_UPLOAD_BYTES=16)
    client = TestClient(app)
    response = client.post(
        "/api/imports/students",
        files={"file": ("students.csv", b"Phone\n9876543210\n9123456780\n", "text/csv")},
    )
    assert response.status_code == 413
    assert store.people == {}


def test_csv_upload(store) -> None:
    client = TestClient(app)
    response = client.post(
        "/api/imports/students",
        files={"file": ("students.csv", b"Phone,Email\n9876543210,asha@example.com\n", "text/csv")},
    )
    assert response.status_code == 200
    assert response.json()["success"] == 1
    assert store.person_by_email("asha@example.com").phone == "9876543210"
