from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import create_engine, inspect
from sqlalchemy.exc import OperationalError

from enrollment_import.config import Settings, get_settings
from scripts import run_migrations as runner


@pytest.fixture
def database_url(tmp_path: Path, monkeypatch) -> str:
    url = f"sqlite:///{tmp_path / 'migrated.sqlite'}"
    monkeypatch.setenv("ENROLLMENT_DATABASE_URL", url)
    get_settings.cache_clear()
    yield url
    get_settings.cache_clear()


def test_import_tables_come_from_the_models() -> None:
    assert set(runner.IMPORT_TABLES) == {"people", "enrollment_profiles", "software_progress"}
    assert runner.IMPORT_TABLES.index("people") < runner.IMPORT_TABLES.index("software_progress")


def test_arguments_default_to_settings() -> None:
    settings = Settings(
        ENROLLMENT_MIGRATION_TIMEOUT_SECONDS=5,
        ENROLLMENT_MIGRATION_POLL_INTERVAL=0.5,
    )
    args = runner.parse_args([], settings)
    assert (args.revision, args.timeout, args.poll_interval) == ("head", 5, 0.5)


def test_alembic_config_escapes_percent_signs() -> None:
    config = runner.alembic_config("postgresql://app:p%40ss@db/enrollment")
    assert config.get_main_option("sqlalchemy.url") == "postgresql://app:p%40ss@db/enrollment"


def test_wait_for_database_gives_up_after_timeout() -> None:
    class UnreachableEngine:
        attempts = 0

        def connect(self):
            self.attempts += 1
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    engine = UnreachableEngine()
    with pytest.raises(runner.SchemaNotReadyError) as excinfo:
        runner.wait_for_database(engine, timeout=0, poll_interval=0)
    assert engine.attempts == 1
    assert "connection refused" in str(excinfo.value)


def test_missing_url_fails_the_run(monkeypatch) -> None:
    monkeypatch.delenv("ENROLLMENT_DATABASE_URL", raising=False)
    get_settings.cache_clear()
    try:
        assert runner.main(["--timeout", "0"]) == runner.EXIT_FAILED
    finally:
        get_settings.cache_clear()


def test_upgrade_creates_the_import_schema(database_url: str) -> None:
    assert runner.main(["--timeout", "2", "--poll-interval", "0.1"]) == runner.EXIT_OK

    engine = create_engine(database_url)
    try:
        assert runner.missing_tables(engine) == []
        progress_columns = {column["name"] for column in inspect(engine).get_columns("software_progress")}
        assert {"software_key", "batch_start_date", "metadata"} <= progress_columns
    finally:
        engine.dispose()


def test_upgrade_that_leaves_tables_out_fails(database_url: str, monkeypatch) -> None:
    monkeypatch.setattr(runner.command, "upgrade", lambda config, revision: None)

    with pytest.raises(runner.SchemaNotReadyError) as excinfo:
        runner.run_migrations(get_settings(), timeout=1, poll_interval=0.1)

    assert "people" in str(excinfo.value)
    assert runner.main(["--timeout", "1"]) == runner.EXIT_FAILED
