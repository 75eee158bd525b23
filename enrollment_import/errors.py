"""Exception taxonomy for the enrollment import pipeline."""

from __future__ import annotations


class EnrollmentImportError(Exception):
    """Base class for every error raised by the import pipeline."""


class RowError(EnrollmentImportError):
    """A single row cannot be imported; the batch continues."""


class MissingIdentityError(RowError):
    def __init__(self) -> None:
        super().__init__("Phone number or Email is required")


class InvalidPhoneError(RowError):
    def __init__(self, raw_value: object) -> None:
        self.raw_value = raw_value
        super().__init__(f"Invalid phone number format: {raw_value}")


class InvalidDateError(RowError):
    def __init__(self, field: str, raw_value: object) -> None:
        self.field = field
        self.raw_value = raw_value
        super().__init__(
            f"Invalid {field} format: {raw_value}. "
            "Use YYYY-MM-DD, DD/MM/YYYY, MM/DD/YYYY or a spreadsheet date"
        )


class IdentityConflictError(RowError):
    def __init__(self, field: str, value: str) -> None:
        self.field = field
        self.value = value
        super().__init__(f"{field} {value} already belongs to another student")


class StoreError(EnrollmentImportError):
    """Persistence failure raised by a store implementation."""


class DuplicateKeyError(StoreError):
    def __init__(self, entity: str, key: str, value: object) -> None:
        self.entity = entity
        self.key = key
        self.value = value
        super().__init__(f"{entity} with {key}={value!r} already exists")


class FatalImportError(EnrollmentImportError):
    """The whole run is aborted before any row is processed."""


class EmptyWorkbookError(FatalImportError):
    def __init__(self) -> None:
        super().__init__("Excel file is empty or has no data rows")


class UnreadableWorkbookError(FatalImportError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to parse Excel file: {reason}")


class StaticTableError(FatalImportError):
    """A lookup table failed validation while loading."""


__all__ = [
    "DuplicateKeyError",
    "EmptyWorkbookError",
    "EnrollmentImportError",
    "FatalImportError",
    "IdentityConflictError",
    "InvalidDateError",
    "InvalidPhoneError",
    "MissingIdentityError",
    "RowError",
    "StaticTableError",
    "StoreError",
    "UnreadableWorkbookError",
]
