"""Typed error taxonomy for the ledger.

Every error knows its own HTTP status and machine-readable code, so the API
layer renders them with a single exception handler.
"""
from __future__ import annotations

from datetime import date
from typing import Any


class LedgerError(Exception):
    """Base class for all expected ledger failures."""

    status_code = 500
    code = "ledger_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message}


class InvalidInput(LedgerError):
    """Malformed client input — detected before any store call."""

    status_code = 400
    code = "invalid_input"


class InvalidDate(InvalidInput):
    code = "invalid_date"

    def __init__(self, value: Any):
        super().__init__(f"Invalid date {value!r}: expected YYYY-MM-DD")
        self.value = value


class InvalidNutrient(InvalidInput):
    code = "invalid_nutrient"

    def __init__(self, field: str, value: Any):
        super().__init__(f"Invalid value for {field!r}: {value!r} is not a finite number")
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "field": self.field}


class NotFound(LedgerError):
    """The targeted date has no row."""

    status_code = 404
    code = "not_found"

    def __init__(self, day: date):
        super().__init__(f"No entry for {day.isoformat()}")
        self.date = day


class StorageError(LedgerError):
    """Backend failure. The public message never carries driver details."""

    status_code = 500
    code = "storage_error"

    def __init__(self, operation: str):
        super().__init__("Storage temporarily unavailable. Please try again.")
        self.operation = operation


# Body of every 500 raised by something other than a LedgerError
INTERNAL_ERROR_BODY = {
    "error": "internal_error",
    "message": "Something went wrong. Please try again.",
}
