"""Exception types raised by schedaudit.

The analysis engine itself never lets these escape for a single bad row:
per-row problems are recorded as warnings on the run. Exceptions are
reserved for the input boundary and for configuration mistakes.
"""


class ScheduleAuditError(Exception):
    """Base class for all schedaudit errors."""


class InvalidEntryError(ScheduleAuditError):
    """A raw schedule row is missing one or more required fields."""

    def __init__(self, message: str, missing_fields: tuple[str, ...] = ()):
        super().__init__(message)
        self.missing_fields = missing_fields


class ConversionFailure(ScheduleAuditError):
    """Timezone arithmetic failed for a zone/date pair.

    Raised inside the timezone converter and always caught there.
    """


class StateConfigError(ScheduleAuditError):
    """The canonical state configuration is malformed or inconsistent."""


class NoParseableRowsError(ScheduleAuditError):
    """No usable schedule rows were found in the input."""
