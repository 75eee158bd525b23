"""The import pipeline against the SQLAlchemy repositories on SQLite."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from enrollment_import.config import get_settings
from enrollment_import.db.base import Base
from enrollment_import.db.models import EnrollmentProfileModel, PersonModel, SoftwareProgressModel
from enrollment_import.db.session import dispose_engine, get_engine, session_scope
from enrollment_import.domain import Person, SoftwareProgress
from enrollment_import.enrollment import METADATA_KEY
from enrollment_import.errors import DuplicateKeyError
from enrollment_import.pipeline import run_configured_import, run_import
from enrollment_import.repositories import (
    SoftwareProgressRepository,
    enrollment_profiles,
    people,
    software_progress,
    sqlalchemy_unit_of_work_factory,
)


@pytest.fixture
def database(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("ENROLLMENT_DATABASE_URL", f"sqlite:///{tmp_path / 'enrollment.db'}")
    get_settings.cache_clear()
    dispose_engine()
    engine = get_engine()
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    yield engine
    dispose_engine()
    get_settings.cache_clear()


def _count(model) -> int:
    with session_scope(commit=False) as session:
        return session.execute(select(func.count()).select_from(model)).scalar_one()


ROWS = [
    {
        "Name": "Asha Rao",
        "Phone": "9876543210",
        "Email": "Asha@Example.com",
        "Date of Admission": "25/01/2024",
        "Total Deal": 45000,
        "7": "Finished",
        "1st Software": "Photoshop",
        "1st Software FACULTY": "Meera",
        "6": "IP",
    },
    {"Name": "Nobody"},
    {"Name": "Ravi Kumar", "Email": "ravi@example.com", "12": "XX"},
]


def test_import_persists_people_profiles_and_progress(database) -> None:
    result = run_import(ROWS, sqlalchemy_unit_of_work_factory())

    assert (result.success, result.failed) == (2, 1)
    assert result.errors[0].row == 3
    assert result.errors[0].error == "Phone number or Email is required"

    with session_scope(commit=False) as session:
        asha = people.find_by_phone(session, "9876543210")
        assert asha is not None
        assert asha.email_normalized == "asha@example.com"
        profile = enrollment_profiles.find_by_person(session, asha.id)
        assert profile.enrollment_date == date(2024, 1, 25)
        assert profile.metadata[METADATA_KEY]["totalDeal"] == 45000.0
        progress = {item.software_name: item for item in software_progress.list_for_person(session, asha.id)}
        assert progress["Illustrator"].status == "finished"
        assert progress["Photoshop"].status == "in-progress"
        assert progress["Photoshop"].faculty_name == "Meera"

        ravi = people.find_by_email(session, "ravi@example.com")
        assert ravi.phone is None
        assert ravi.name == "Ravi Kumar"


def test_second_import_is_idempotent(database) -> None:
    factory = sqlalchemy_unit_of_work_factory()
    run_import(ROWS, factory)
    counts = (_count(PersonModel), _count(EnrollmentProfileModel), _count(SoftwareProgressModel))

    result = run_import(ROWS, factory, max_workers=2)

    assert (result.success, result.failed) == (2, 1)
    assert (_count(PersonModel), _count(EnrollmentProfileModel), _count(SoftwareProgressModel)) == counts


def test_database_error_rolls_back_only_that_row(database, monkeypatch) -> None:
    original_create = SoftwareProgressRepository.create

    def flaky_create(self, session, progress: SoftwareProgress):
        if progress.software_name == "After Effects":
            raise SQLAlchemyError("disk I/O error")
        return original_create(self, session, progress)

    monkeypatch.setattr(SoftwareProgressRepository, "create", flaky_create)

    result = run_import(
        [
            {"Phone": "9000000001", "12": "IP"},
            {"Phone": "9000000002", "7": "IP"},
        ],
        sqlalchemy_unit_of_work_factory(),
    )

    assert result.success == 1
    assert [(error.row, error.error) for error in result.errors] == [(2, "disk I/O error")]
    with session_scope(commit=False) as session:
        assert people.find_by_phone(session, "9000000001") is None
        assert people.find_by_phone(session, "9000000002") is not None
    assert _count(EnrollmentProfileModel) == 1


def test_unique_phone_is_enforced_by_the_database(database) -> None:
    with session_scope() as session:
        people.create(
            session,
            Person(name="Asha", email="asha@example.com", email_normalized="asha@example.com", phone="9876543210"),
        )

    with pytest.raises(DuplicateKeyError) as excinfo:
        with session_scope() as session:
            people.create(
                session,
                Person(name="Copy", email="copy@example.com", email_normalized="copy@example.com", phone="9876543210"),
            )
    assert excinfo.value.key == "phone"
    assert _count(PersonModel) == 1


def test_configured_import_uses_settings(database, monkeypatch) -> None:
    monkeypatch.setenv("ENROLLMENT_PLACEHOLDER_EMAIL_DOMAIN", "import.example.org")
    get_settings.cache_clear()

    result = run_configured_import([{"Phone": "9000000009"}])

    assert result.success == 1
    with session_scope(commit=False) as session:
        person = people.find_by_phone(session, "9000000009")
    assert person.email == "student_9000000009@import.example.org"
