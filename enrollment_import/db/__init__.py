"""Database utilities for the enrollment import backend."""

from .session import (
    build_engine,
    dispose_engine,
    engine_options,
    get_engine,
    get_session_factory,
    session_scope,
)

__all__ = [
    "build_engine",
    "dispose_engine",
    "engine_options",
    "get_engine",
    "get_session_factory",
    "session_scope",
]
