"""SQLAlchemy implementations of the import store contracts."""

from .enrollment_profiles import EnrollmentProfileRepository, enrollment_profiles
from .people import PersonRepository, people
from .software_progress import SoftwareProgressRepository, software_progress
from .unit_of_work import SqlAlchemyUnitOfWork, sqlalchemy_unit_of_work_factory

__all__ = [
    "EnrollmentProfileRepository",
    "PersonRepository",
    "SoftwareProgressRepository",
    "SqlAlchemyUnitOfWork",
    "enrollment_profiles",
    "people",
    "software_progress",
    "sqlalchemy_unit_of_work_factory",
]
