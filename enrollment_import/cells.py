"""Cell values as they come out of a workbook row.

A raw row maps header strings to a small closed set of cell types. Everything
that reads a row goes through these helpers so type coercion stays in one
place.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping, Optional, Union


class _Absent:
    """Sentinel for a field no header supplied (distinct from ``""``)."""

    _instance: Optional["_Absent"] = None

    def __new__(cls) -> "_Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "ABSENT"


ABSENT = _Absent()

CellValue = Union[_Absent, None, str, int, float, bool, date, datetime]
RawRow = Mapping[str, CellValue]


@dataclass(frozen=True)
class SourceRow:
    """A data row together with its 1-based row number in the source sheet."""

    row_number: int
    values: RawRow


def is_blank(value: Any) -> bool:
    """True for ABSENT, None, empty/whitespace strings and NaN."""
    if value is ABSENT or value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, float) and math.isnan(value):
        return True
    return False


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def as_text(value: Any) -> Optional[str]:
    """Render a cell as trimmed text, or None when blank.

    Integral floats drop their ``.0`` so a phone stored as a number reads back
    the way it was typed.
    """
    if is_blank(value):
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.date().isoformat() if value.time() == datetime.min.time() else value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def as_float(value: Any) -> Optional[float]:
    """Parse an amount cell; commas and currency symbols are tolerated."""
    if is_blank(value):
        return None
    if is_number(value):
        return float(value)
    cleaned = "".join(ch for ch in str(value) if ch.isdigit() or ch in ".-")
    if not cleaned or cleaned in {".", "-", "-."}:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None


def as_bool(value: Any) -> Optional[bool]:
    if is_blank(value):
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"yes", "y", "true", "1"}
    return bool(value)


def header_key(value: Any) -> Optional[str]:
    """Normalise a header cell into a row key (``7.0`` becomes ``"7"``)."""
    text = as_text(value)
    return text or None


__all__ = [
    "ABSENT",
    "CellValue",
    "RawRow",
    "SourceRow",
    "as_bool",
    "as_float",
    "as_text",
    "header_key",
    "is_blank",
    "is_number",
]
