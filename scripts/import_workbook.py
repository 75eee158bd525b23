"""Import a student enrollment workbook from disk.

Prints the import report as JSON. Exit status is 0 when every row imported,
1 when some rows failed and 2 when the file could not be imported at all.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from enrollment_import.config import get_settings
from enrollment_import.errors import FatalImportError
from enrollment_import.logging_config import configure_logging
from enrollment_import.pipeline import run_import
from enrollment_import.resolver import IdentityResolver
from enrollment_import.stores.base import UnitOfWorkFactory
from enrollment_import.stores.memory import InMemoryStore
from enrollment_import.workbook import read_path

LOGGER = logging.getLogger("enrollment_import.cli")

EXIT_OK = 0
EXIT_ROW_FAILURES = 1
EXIT_FATAL = 2


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Import students from an xlsx or csv workbook.")
    parser.add_argument("path", type=Path, help="Workbook (.xlsx) or CSV file to import.")
    parser.add_argument(
        "--max-workers",
        type=int,
        default=settings.import_max_workers,
        help=f"Concurrent row workers (default: {settings.import_max_workers}).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=settings.import_timeout_seconds,
        help="Seconds before rows not yet started fail with a batch timeout.",
    )
    parser.add_argument(
        "--header-rows",
        type=int,
        default=settings.import_header_rows,
        help=f"Rows above the data; the last one names the columns (default: {settings.import_header_rows}).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate and map every row against an empty in-memory store without touching the database.",
    )
    return parser.parse_args(argv)


def _unit_of_work_factory(dry_run: bool) -> UnitOfWorkFactory:
    if dry_run:
        return InMemoryStore().unit_of_work
    from enrollment_import.repositories import sqlalchemy_unit_of_work_factory

    return sqlalchemy_unit_of_work_factory()


def main(argv: Optional[list[str]] = None) -> int:
    configure_logging()
    args = parse_args(argv)
    if args.max_workers < 1:
        LOGGER.error("--max-workers must be at least 1")
        return EXIT_FATAL

    try:
        rows = read_path(args.path, header_rows=args.header_rows)
    except FatalImportError as exc:
        LOGGER.error("Cannot import %s: %s", args.path, exc)
        return EXIT_FATAL

    try:
        factory = _unit_of_work_factory(args.dry_run)
    except RuntimeError as exc:
        LOGGER.error("Store is not configured: %s", exc)
        return EXIT_FATAL

    result = run_import(
        rows,
        factory,
        resolver=IdentityResolver(get_settings().placeholder_email_domain),
        max_workers=args.max_workers,
        timeout=args.timeout,
        header_rows=args.header_rows,
    )
    print(json.dumps(result.model_dump(), indent=2))
    return EXIT_OK if result.failed == 0 else EXIT_ROW_FAILURES


if __name__ == "__main__":
    sys.exit(main())
