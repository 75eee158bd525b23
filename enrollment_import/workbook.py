"""Turns an uploaded workbook or CSV file into numbered raw rows."""

from __future__ import annotations

import csv
import logging
from io import BytesIO, StringIO
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from .cells import SourceRow, header_key, is_blank
from .errors import EmptyWorkbookError, UnreadableWorkbookError

logger = logging.getLogger(__name__)

XLSX_MAGIC = b"PK\x03\x04"
CSV_SUFFIXES = {".csv", ".txt"}


def _header_keys(cells: Sequence[Any]) -> List[Optional[str]]:
    """Row keys for a header row; repeated headers get ``_1``, ``_2`` suffixes."""
    keys: List[Optional[str]] = []
    seen: Dict[str, int] = {}
    for cell in cells:
        key = header_key(cell)
        if key is None:
            keys.append(None)
            continue
        count = seen.get(key, 0)
        seen[key] = count + 1
        keys.append(key if count == 0 else f"{key}_{count}")
    return keys


def rows_from_matrix(matrix: Iterable[Sequence[Any]], *, header_rows: int = 1) -> List[SourceRow]:
    """Build rows from a cell matrix whose last header row names the columns.

    Blank cells are left out of the row so the field reads as absent, and rows
    with no populated cell are skipped without shifting later row numbers.
    """
    keys: Optional[List[Optional[str]]] = None
    rows: List[SourceRow] = []
    for row_number, cells in enumerate(matrix, start=1):
        if row_number < header_rows:
            continue
        if row_number == header_rows:
            keys = _header_keys(cells)
            continue
        assert keys is not None
        values = {
            key: value
            for key, value in zip(keys, cells)
            if key is not None and value is not None and not (isinstance(value, str) and value == "")
        }
        if all(is_blank(value) for value in values.values()):
            continue
        rows.append(SourceRow(row_number=row_number, values=values))

    if keys is None or not any(keys) or not rows:
        raise EmptyWorkbookError()
    return rows


def read_xlsx(content: bytes, *, header_rows: int = 1) -> List[SourceRow]:
    try:
        workbook = load_workbook(BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, ValueError, OSError) as exc:
        raise UnreadableWorkbookError(str(exc) or exc.__class__.__name__) from exc

    try:
        if not workbook.sheetnames:
            raise EmptyWorkbookError()
        sheet = workbook[workbook.sheetnames[0]]
        rows = rows_from_matrix(sheet.iter_rows(values_only=True), header_rows=header_rows)
    finally:
        workbook.close()
    logger.debug("Read %s data rows from sheet %s", len(rows), sheet.title)
    return rows


def read_csv(content: bytes, *, header_rows: int = 1) -> List[SourceRow]:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        text = content.decode("latin-1")
    try:
        dialect = csv.Sniffer().sniff(text[:4096], delimiters=",;\t|")
    except csv.Error:
        dialect = csv.excel
    try:
        matrix = list(csv.reader(StringIO(text), dialect))
    except csv.Error as exc:
        raise UnreadableWorkbookError(str(exc)) from exc
    return rows_from_matrix(matrix, header_rows=header_rows)


def read_rows(content: bytes, filename: Optional[str] = None, *, header_rows: int = 1) -> List[SourceRow]:
    """Read the first sheet of an xlsx workbook, or a CSV file.

    The format follows the file suffix when one is given, otherwise the content.
    """
    if not content:
        raise EmptyWorkbookError()
    suffix = Path(filename).suffix.lower() if filename else ""
    if suffix in CSV_SUFFIXES or (not suffix and not content.startswith(XLSX_MAGIC)):
        return read_csv(content, header_rows=header_rows)
    return read_xlsx(content, header_rows=header_rows)


def read_path(path: Path, *, header_rows: int = 1) -> List[SourceRow]:
    try:
        content = path.read_bytes()
    except OSError as exc:
        raise UnreadableWorkbookError(str(exc)) from exc
    return read_rows(content, path.name, header_rows=header_rows)


__all__ = ["read_csv", "read_path", "read_rows", "read_xlsx", "rows_from_matrix"]
