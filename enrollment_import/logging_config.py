import logging
from logging.config import dictConfig
from typing import Any, Dict, Optional

from .config import Settings, get_settings

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Libraries that log per cell or per upload chunk.
QUIET_LOGGERS = ("openpyxl", "multipart", "python_multipart")


def logging_dict(settings: Settings) -> Dict[str, Any]:
    level = settings.log_level.upper()
    loggers: Dict[str, Any] = {
        "enrollment_import": {"level": level},
        "alembic": {"level": "INFO"},
        # SQL statements go through the logger rather than engine echo.
        "sqlalchemy.engine": {"level": "INFO" if settings.database_echo else "WARNING"},
    }
    for name in QUIET_LOGGERS:
        loggers[name] = {"level": "WARNING"}
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": DEFAULT_LOG_FORMAT},
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
            },
        },
        "loggers": loggers,
        "root": {
            "handlers": ["default"],
            "level": "WARNING",
        },
    }


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Route the service, CLI and migration logs through one handler."""
    settings = settings or get_settings()
    dictConfig(logging_dict(settings))
    logging.getLogger(__name__).debug("Logging configured at %s", settings.log_level.upper())
