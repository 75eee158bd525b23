from __future__ import annotations

import logging

from enrollment_import.config import Settings
from enrollment_import.logging_config import configure_logging, logging_dict


def test_sql_logging_follows_database_echo() -> None:
    quiet = logging_dict(Settings())
    loud = logging_dict(Settings(ENROLLMENT_DATABASE_ECHO=True, ENROLLMENT_LOG_LEVEL="debug"))

    assert quiet["loggers"]["sqlalchemy.engine"]["level"] == "WARNING"
    assert loud["loggers"]["sqlalchemy.engine"]["level"] == "INFO"
    assert loud["loggers"]["enrollment_import"]["level"] == "DEBUG"
    assert loud["loggers"]["openpyxl"]["level"] == "WARNING"


def test_configure_logging_sets_package_level() -> None:
    configure_logging(Settings(ENROLLMENT_LOG_LEVEL="WARNING"))
    assert logging.getLogger("enrollment_import").level == logging.WARNING
    assert logging.getLogger("enrollment_import.pipeline").getEffectiveLevel() == logging.WARNING
