"""Phone and email canonicalisation used for identity comparison."""

from __future__ import annotations

import re
from typing import Any

from .cells import as_text

PHONE_LENGTH = 10
_NON_DIGITS = re.compile(r"\D")


def normalize_phone(value: Any) -> str:
    """Digits only, trimmed to the trailing ten to drop country prefixes."""
    text = as_text(value)
    if not text:
        return ""
    digits = _NON_DIGITS.sub("", text)
    if len(digits) > PHONE_LENGTH:
        digits = digits[-PHONE_LENGTH:]
    return digits


def is_valid_phone(normalized: str) -> bool:
    return len(normalized) == PHONE_LENGTH and normalized.isdigit()


def normalize_email(value: Any) -> str:
    text = as_text(value)
    return text.lower() if text else ""


def email_local_part(email: str) -> str:
    return email.split("@", 1)[0]


__all__ = [
    "PHONE_LENGTH",
    "email_local_part",
    "is_valid_phone",
    "normalize_email",
    "normalize_phone",
]
