from __future__ import annotations

import pytest
from sqlalchemy.pool import StaticPool

from enrollment_import.config import Settings
from enrollment_import.db.session import build_engine, engine_options


@pytest.mark.parametrize("url", ["sqlite://", "sqlite:///:memory:"])
def test_memory_sqlite_shares_one_connection(url: str) -> None:
    options = engine_options(url, Settings())
    assert options["poolclass"] is StaticPool
    assert options["connect_args"] == {"check_same_thread": False}


def test_file_sqlite_is_thread_safe_without_static_pool(tmp_path) -> None:
    options = engine_options(f"sqlite:///{tmp_path / 'students.db'}", Settings())
    assert "poolclass" not in options
    assert options["connect_args"] == {"check_same_thread": False}


def test_server_pool_covers_the_import_workers() -> None:
    settings = Settings(ENROLLMENT_DATABASE_POOL_SIZE=4, ENROLLMENT_IMPORT_MAX_WORKERS=8)
    options = engine_options("postgresql://app@db/enrollment", settings)
    assert options["pool_size"] == 8
    assert options["max_overflow"] == 10


def test_build_engine_requires_a_url() -> None:
    with pytest.raises(RuntimeError):
        build_engine(Settings(ENROLLMENT_DATABASE_URL=None))
