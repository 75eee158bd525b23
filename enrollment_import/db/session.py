"""Engine and session helpers for the relational store.

Imports run rows on worker threads, so every engine built here must be safe
to share across threads; for SQLite that means disabling the same-thread
check and pinning in-memory databases to a single connection.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import URL, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import Settings, get_settings


_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker[Session]] = None


def _is_memory_sqlite(url: URL) -> bool:
    return url.database in (None, "", ":memory:")


def engine_options(database_url: str, settings: Settings) -> Dict[str, Any]:
    url = make_url(database_url)
    options: Dict[str, Any] = {"pool_pre_ping": True}
    if url.get_backend_name() == "sqlite":
        options["connect_args"] = {"check_same_thread": False}
        if _is_memory_sqlite(url):
            options["poolclass"] = StaticPool
    else:
        options["pool_size"] = max(settings.database_pool_size, settings.import_max_workers)
        options["max_overflow"] = settings.database_max_overflow
    return options


def build_engine(settings: Settings) -> Engine:
    if not settings.database_url:
        raise RuntimeError("ENROLLMENT_DATABASE_URL must be configured before using the database.")
    return create_engine(settings.database_url, **engine_options(settings.database_url, settings))


def get_engine() -> Engine:
    global _engine, _session_factory
    if _engine is None:
        _engine = build_engine(get_settings())
        _session_factory = sessionmaker(bind=_engine, autoflush=False, expire_on_commit=False)
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    if _session_factory is None:
        get_engine()
    assert _session_factory is not None
    return _session_factory


@contextmanager
def session_scope(*, commit: bool = True) -> Generator[Session, None, None]:
    session = get_session_factory()()
    try:
        yield session
        if commit:
            session.commit()
    except Exception:  # noqa: BLE001
        session.rollback()
        raise
    finally:
        session.close()


def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


__all__ = [
    "build_engine",
    "dispose_engine",
    "engine_options",
    "get_engine",
    "get_session_factory",
    "session_scope",
]
