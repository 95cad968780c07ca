"""Validation of raw schedule rows at the input boundary.

Rows arrive as loosely keyed mappings (CSV rows, JSON objects). This is
the single place where they become ScheduleEntry objects: rows missing
required fields are rejected here with a warning, and the analysis engine
only ever sees complete entries.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from schedaudit.domain.models import ScheduleEntry
from schedaudit.exceptions import InvalidEntryError, NoParseableRowsError

logger = logging.getLogger(__name__)

EXPECTED_HEADER = (
    "Site,Time zone,Team,Agent,Date,Schedule State,Start Time,End Time,Duration,Paid Hours"
)


class ValidationErrorType(Enum):
    """Types of validation errors."""

    MISSING_FIELD = "missing_field"
    NO_DATA = "no_data"


@dataclass
class ValidationError:
    """A single validation error."""

    error_type: ValidationErrorType
    message: str
    row: Optional[int] = None
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [f"[{self.error_type.value}]"]
        if self.row is not None:
            parts.append(f"Row {self.row}:")
        parts.append(self.message)
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Result of validating a batch of rows."""

    is_valid: bool = True
    entries: list[ScheduleEntry] = field(default_factory=list)
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationError] = field(default_factory=list)

    def add_error(self, error: ValidationError) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: ValidationError) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(warning)

    @property
    def rejected_rows(self) -> int:
        return sum(
            1 for w in self.warnings if w.error_type == ValidationErrorType.MISSING_FIELD
        )

    def require_entries(self) -> list[ScheduleEntry]:
        """Return the valid entries.

        Raises:
            NoParseableRowsError: If no row was usable.
        """
        if not self.entries:
            messages = "; ".join(str(e) for e in self.errors) or "No usable rows"
            raise NoParseableRowsError(messages)
        return self.entries


class EntryValidator:
    """Turns raw rows into schedule entries.

    Example:
        >>> validator = EntryValidator()
        >>> result = validator.validate_rows(rows)
        >>> for warning in result.warnings:
        ...     print(warning)
        >>> entries = result.require_entries()
    """

    def validate_rows(self, rows: Iterable[Mapping[str, Any]]) -> ValidationResult:
        """Validate and convert a batch of rows.

        Args:
            rows: Raw rows; row numbers in messages are 1-based.

        Returns:
            ValidationResult holding the converted entries, one warning per
            rejected row and a NO_DATA error when nothing usable remains.
        """
        result = ValidationResult()
        for row_number, row in enumerate(rows, start=1):
            try:
                result.entries.append(ScheduleEntry.from_row(row))
            except InvalidEntryError as e:
                error = self._missing_field_error(e, row_number)
                logger.debug("Rejected %s", error)
                result.add_warning(error)

        if not result.entries:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.NO_DATA,
                    message=(
                        "No usable schedule rows found. Expected a header row "
                        f'"{EXPECTED_HEADER}" and rows with Site, Time zone, Team, '
                        "Agent, Date, Schedule State, Start Time and End Time values"
                    ),
                )
            )
        elif result.warnings:
            logger.warning(
                "Rejected %d of %d rows with missing fields",
                len(result.warnings),
                len(result.warnings) + len(result.entries),
            )
        return result

    @staticmethod
    def _missing_field_error(error: InvalidEntryError, row_number: int) -> ValidationError:
        return ValidationError(
            error_type=ValidationErrorType.MISSING_FIELD,
            message=str(error),
            row=row_number,
            details={"missing_fields": list(error.missing_fields)},
        )
