"""Validation of raw schedule rows."""

from schedaudit.validation.validator import (
    EntryValidator,
    ValidationError,
    ValidationErrorType,
    ValidationResult,
)

__all__ = [
    "EntryValidator",
    "ValidationError",
    "ValidationErrorType",
    "ValidationResult",
]
