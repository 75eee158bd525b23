"""Bulk student import endpoint."""

from __future__ import annotations

import logging
from time import perf_counter

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from .config import Settings, get_settings
from .domain import BatchImportResult
from .errors import FatalImportError
from .pipeline import run_import
from .resolver import IdentityResolver
from .stores.base import UnitOfWorkFactory
from .workbook import read_rows

router = APIRouter(prefix="/api/imports", tags=["imports"])
logger = logging.getLogger(__name__)


def get_unit_of_work_factory() -> UnitOfWorkFactory:
    from .repositories import sqlalchemy_unit_of_work_factory

    return sqlalchemy_unit_of_work_factory()


@router.post("/students", response_model=BatchImportResult, status_code=status.HTTP_200_OK)
def import_students(
    file: UploadFile = File(...),
    settings: Settings = Depends(get_settings),
    unit_of_work_factory: UnitOfWorkFactory = Depends(get_unit_of_work_factory),
) -> BatchImportResult:
    limit = settings.import_max_upload_bytes
    content = file.file.read(limit + 1)
    if len(content) > limit:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Upload exceeds the {limit} byte limit.",
        )

    start = perf_counter()
    try:
        rows = read_rows(content, file.filename, header_rows=settings.import_header_rows)
    except FatalImportError as exc:
        logger.warning("Rejected import upload %s: %s", file.filename, exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    result = run_import(
        rows,
        unit_of_work_factory,
        resolver=IdentityResolver(settings.placeholder_email_domain),
        max_workers=settings.import_max_workers,
        timeout=settings.import_timeout_seconds,
        header_rows=settings.import_header_rows,
    )
    logger.info(
        "Imported %s (%s rows) in %.2f ms",
        file.filename,
        len(rows),
        (perf_counter() - start) * 1000,
    )
    return result


__all__ = ["get_unit_of_work_factory", "import_students", "router"]
