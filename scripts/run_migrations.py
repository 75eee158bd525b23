"""Upgrade the enrollment schema and confirm the import tables are in place.

The database URL and the readiness budget come from the service settings, so
the container entrypoint and the import service always agree on the target.
After the upgrade every table the import writes to must exist; a revision
that leaves one out fails the run instead of failing the first upload.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional, Sequence

from alembic import command
from alembic.config import Config
from alembic.util.exc import CommandError
from sqlalchemy import Engine, inspect, text
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from enrollment_import.config import Settings, get_settings
from enrollment_import.db import models  # noqa: F401
from enrollment_import.db.base import Base
from enrollment_import.db.session import build_engine
from enrollment_import.logging_config import configure_logging

LOGGER = logging.getLogger("enrollment_import.migrations")
PROJECT_ROOT = Path(__file__).resolve().parent.parent
IMPORT_TABLES = tuple(table.name for table in Base.metadata.sorted_tables)

EXIT_OK = 0
EXIT_FAILED = 1


class SchemaNotReadyError(RuntimeError):
    pass


def parse_args(argv: Optional[Sequence[str]], settings: Settings) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Upgrade the enrollment import schema.")
    parser.add_argument("--revision", default="head", help="Alembic revision to upgrade to.")
    parser.add_argument(
        "--timeout",
        type=int,
        default=settings.migration_timeout_seconds,
        help="Seconds to wait for the database to accept connections.",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=settings.migration_poll_interval,
        help="Seconds between connection attempts.",
    )
    return parser.parse_args(argv)


def alembic_config(database_url: str) -> Config:
    config = Config(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    # ConfigParser interpolation would eat percent-encoded password characters.
    config.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))
    return config


def wait_for_database(engine: Engine, *, timeout: int, poll_interval: float) -> None:
    deadline = time.monotonic() + timeout
    while True:
        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return
        except OperationalError as exc:
            if time.monotonic() >= deadline:
                raise SchemaNotReadyError(
                    f"Database unreachable after {timeout}s: {exc.orig}"
                ) from exc
            LOGGER.warning("Database not ready yet: %s", exc.orig)
        time.sleep(poll_interval)


def missing_tables(engine: Engine) -> List[str]:
    present = set(inspect(engine).get_table_names())
    return [name for name in IMPORT_TABLES if name not in present]


def run_migrations(
    settings: Settings,
    *,
    revision: str = "head",
    timeout: int,
    poll_interval: float,
) -> None:
    engine = build_engine(settings)
    try:
        wait_for_database(engine, timeout=timeout, poll_interval=poll_interval)
        LOGGER.info("Upgrading enrollment schema to %s", revision)
        command.upgrade(alembic_config(settings.database_url or ""), revision)
        missing = missing_tables(engine)
    finally:
        engine.dispose()
    if missing:
        raise SchemaNotReadyError(f"Import tables missing after upgrade: {', '.join(missing)}")
    LOGGER.info("Schema ready: %s", ", ".join(IMPORT_TABLES))


def main(argv: Optional[Sequence[str]] = None) -> int:
    settings = get_settings()
    configure_logging(settings)
    args = parse_args(argv, settings)
    try:
        run_migrations(
            settings,
            revision=args.revision,
            timeout=args.timeout,
            poll_interval=args.poll_interval,
        )
    except (RuntimeError, CommandError, SQLAlchemyError) as exc:
        LOGGER.error("Migration run failed: %s", exc)
        return EXIT_FAILED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
