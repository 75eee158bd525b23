"""SQLAlchemy unit of work: one session and one transaction per import row."""

from __future__ import annotations

import logging
from functools import partial
from types import TracebackType
from typing import Any, Callable, Optional, Type

from sqlalchemy.orm import Session

from ..db.session import get_session_factory
from .enrollment_profiles import enrollment_profiles
from .people import people
from .software_progress import software_progress

logger = logging.getLogger(__name__)


class _SessionBoundRepository:
    """Exposes a session-taking repository through the session-free store API."""

    def __init__(self, repository: Any, session: Session) -> None:
        self._repository = repository
        self._session = session

    def __getattr__(self, name: str) -> Callable[..., Any]:
        method = getattr(self._repository, name)
        return partial(method, self._session)


class SqlAlchemyUnitOfWork:
    def __init__(self, session_factory: Optional[Callable[[], Session]] = None) -> None:
        self._session_factory = session_factory or get_session_factory()
        self._session: Optional[Session] = None
        self._finished = False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise RuntimeError("Unit of work has not been entered.")
        return self._session

    def __enter__(self) -> "SqlAlchemyUnitOfWork":
        self._session = self._session_factory()
        self._finished = False
        self.people = _SessionBoundRepository(people, self._session)
        self.profiles = _SessionBoundRepository(enrollment_profiles, self._session)
        self.progress = _SessionBoundRepository(software_progress, self._session)
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        try:
            if not self._finished:
                self.rollback()
        finally:
            self.session.close()
            self._session = None

    def commit(self) -> None:
        self.session.commit()
        self._finished = True

    def rollback(self) -> None:
        self.session.rollback()
        self._finished = True
        logger.debug("Rolled back import row transaction")


def sqlalchemy_unit_of_work_factory(
    session_factory: Optional[Callable[[], Session]] = None,
) -> Callable[[], SqlAlchemyUnitOfWork]:
    factory = session_factory or get_session_factory()
    return lambda: SqlAlchemyUnitOfWork(factory)


__all__ = ["SqlAlchemyUnitOfWork", "sqlalchemy_unit_of_work_factory"]
