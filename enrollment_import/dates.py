"""Date normalisation for spreadsheet cells.

Cells arrive as already-parsed dates, spreadsheet serial numbers or free text
typed by people in either day-first or month-first order. ``normalize_date``
turns any of them into a ``datetime.date`` or ``None``; it never guesses a
partially wrong date.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime, timedelta
from typing import Any, Optional

from dateutil import parser as dtparser

from .cells import ABSENT, is_number

logger = logging.getLogger(__name__)

# The 1900 leap-year bug of the source format is absorbed by this epoch.
SPREADSHEET_EPOCH = date(1899, 12, 30)

_ISO_PREFIX = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_SLASH_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})")


def _calendar_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _from_serial(value: float) -> Optional[date]:
    if math.isnan(value) or math.isinf(value):
        return None
    try:
        return SPREADSHEET_EPOCH + timedelta(days=math.floor(value))
    except OverflowError:
        return None


def _from_slash(first: int, second: int, year: int) -> Optional[date]:
    if first <= 12 < second:
        return _calendar_date(year, first, second)
    # day-first when the first part exceeds 12 and for ambiguous values
    return _calendar_date(year, second, first)


# Two unrelated fill-in dates; a parse that depends on either is incomplete.
_FILL_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def _from_free_text(text: str) -> Optional[date]:
    try:
        parsed = {dtparser.parse(text, dayfirst=True, default=fill).date() for fill in _FILL_DEFAULTS}
    except (ValueError, OverflowError) as exc:
        logger.debug("Free-form date parse failed for %r: %s", text, exc)
        return None
    if len(parsed) != 1:
        logger.debug("Free-form date %r lacks a day, month or year", text)
        return None
    return parsed.pop()


def normalize_date(value: Any) -> Optional[date]:
    """Return a calendar date for ``value`` or None when it cannot be read.

    Attempts run in a fixed order (date object, serial number, ISO prefix,
    slash-delimited, free text) and the first attempt whose shape matches is
    final, valid or not.
    """
    if value is None or value is ABSENT or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if is_number(value):
        return _from_serial(float(value))
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    iso = _ISO_PREFIX.match(text)
    if iso:
        return _calendar_date(int(iso.group(1)), int(iso.group(2)), int(iso.group(3)))

    slash = _SLASH_DATE.match(text)
    if slash:
        return _from_slash(int(slash.group(1)), int(slash.group(2)), int(slash.group(3)))

    return _from_free_text(text)


def format_iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


__all__ = ["SPREADSHEET_EPOCH", "format_iso", "normalize_date"]
