"""Clock, duration, date and time zone parsing."""

from schedaudit.domain.models import minutes_to_time_string
from schedaudit.parsing.time_parser import (
    format_date,
    format_duration,
    is_full_day,
    parse_clock_time,
    parse_clock_time_with_day_offset,
    parse_date,
    parse_duration,
)
from schedaudit.parsing.timezones import (
    DEFAULT_REFERENCE_TIMEZONE,
    TIMEZONE_ALIASES,
    TimezoneConverter,
)

__all__ = [
    "DEFAULT_REFERENCE_TIMEZONE",
    "TIMEZONE_ALIASES",
    "TimezoneConverter",
    "format_date",
    "format_duration",
    "is_full_day",
    "minutes_to_time_string",
    "parse_clock_time",
    "parse_clock_time_with_day_offset",
    "parse_date",
    "parse_duration",
]
