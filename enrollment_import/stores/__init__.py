"""Store contracts consumed by the import pipeline and their implementations."""

from .base import PersonStore, ProfileStore, ProgressStore, UnitOfWork, UnitOfWorkFactory
from .memory import InMemoryStore, InMemoryUnitOfWork

__all__ = [
    "InMemoryStore",
    "InMemoryUnitOfWork",
    "PersonStore",
    "ProfileStore",
    "ProgressStore",
    "UnitOfWork",
    "UnitOfWorkFactory",
]
