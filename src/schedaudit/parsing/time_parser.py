"""Parsing of schedule clock times, durations and dates.

Schedule exports mix several notations for the same thing: "4:00 PM",
"4:00:00 PM", "400 PM", "+12:30 AM" (next day), "02:00 AM +2". Everything
here is a pure function returning None for input it cannot interpret.
"""

import re
from datetime import date, datetime
from typing import Optional

from schedaudit.domain.models import ParsedTime

FULL_DAY = "FULL DAY"

_CLOCK_RE = re.compile(r"(\d{1,2}):(\d{2})(?::(\d{2}))?\s*(AM|PM)", re.IGNORECASE)
_COMPACT_CLOCK_RE = re.compile(r"\b(\d{1,4})\s*(AM|PM)", re.IGNORECASE)
_PLUS_TIME_RE = re.compile(r"^\+\s*(\d{1,2}:\d{2}.*)$")
_PLUS_DAYS_RE = re.compile(r"^\+\s*(\d+)\s+(.*)$")
_SUFFIX_RE = re.compile(r"^(.+?)\s*\+\s*(\d+)?$")
_DURATION_RE = re.compile(r"(-)?\b(\d+):(\d{2})(?::(\d{2}))?\b")
_US_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2}|\d{4})$")


def is_full_day(text: Optional[str], sentinel: str = FULL_DAY) -> bool:
    """Check whether a raw time value is the all-day sentinel."""
    return bool(text) and text.strip().upper() == sentinel.upper()


def parse_clock_time(text: Optional[str]) -> Optional[int]:
    """Parse a 12-hour clock time into minutes since midnight.

    Accepts "4:00 PM", "12:30:00 AM", "400 PM" and "4 PM". Seconds are
    ignored. The full-day sentinel and blank input return None.

    Args:
        text: Raw time string.

    Returns:
        Minutes in 0..1439, or None if the text is not a valid time.
    """
    if text is None:
        return None
    text = text.strip()
    if not text or is_full_day(text):
        return None

    match = _CLOCK_RE.search(text)
    if match:
        hours = int(match.group(1))
        minutes = int(match.group(2))
        period = match.group(4).upper()
    else:
        match = _COMPACT_CLOCK_RE.search(text)
        if not match:
            return None
        number = int(match.group(1))
        if number < 100:
            hours, minutes = number, 0
        else:
            hours, minutes = divmod(number, 100)
        period = match.group(2).upper()

    if not 1 <= hours <= 12 or minutes > 59:
        return None

    if period == "PM" and hours != 12:
        hours += 12
    elif period == "AM" and hours == 12:
        hours = 0
    return hours * 60 + minutes


def parse_clock_time_with_day_offset(text: Optional[str]) -> ParsedTime:
    """Parse a clock time that may carry a day offset marker.

    Prefix markers: "+12:45 AM" is the next day, "+2 12:45 AM" is two
    days later. Suffix markers: "02:00 AM +" is the next day, "02:00 AM +2"
    two days later. A prefix marker takes precedence; any suffix marker
    after it is stripped and ignored.

    Args:
        text: Raw time string.

    Returns:
        ParsedTime with minutes None when the clock part is unparsable.
    """
    if text is None:
        return ParsedTime(None)
    trimmed = text.strip()
    if not trimmed or is_full_day(trimmed):
        return ParsedTime(None)

    day_offset = 0
    from_prefix = False
    if trimmed.startswith("+"):
        from_prefix = True
        plus_time = _PLUS_TIME_RE.match(trimmed)
        plus_days = _PLUS_DAYS_RE.match(trimmed)
        if plus_time:
            day_offset = 1
            trimmed = plus_time.group(1).strip()
        elif plus_days and parse_clock_time(_strip_suffix(plus_days.group(2))) is not None:
            day_offset = max(int(plus_days.group(1)), 1)
            trimmed = plus_days.group(2).strip()
        else:
            day_offset = 1
            trimmed = trimmed[1:].strip()

    suffix = _SUFFIX_RE.match(trimmed)
    if suffix:
        trimmed = suffix.group(1).strip()
        if not from_prefix:
            count = suffix.group(2)
            day_offset = int(count) if count else 1

    return ParsedTime(parse_clock_time(trimmed), day_offset)


def _strip_suffix(text: str) -> str:
    suffix = _SUFFIX_RE.match(text.strip())
    return suffix.group(1).strip() if suffix else text.strip()


def parse_duration(text: Optional[str]) -> Optional[int]:
    """Parse "H:MM" or "H:MM:SS" (optionally negative) into whole minutes.

    The value may carry surrounding text such as "2:30 hrs".

    Seconds round half-up to the nearest minute; the sign is preserved.

    >>> parse_duration("0:14:30")
    15
    >>> parse_duration("-1:30")
    -90
    """
    if text is None:
        return None
    match = _DURATION_RE.search(text)
    if not match:
        return None
    negative, hours, minutes, seconds = match.groups()
    total_seconds = int(hours) * 3600 + int(minutes) * 60 + int(seconds or 0)
    total = (total_seconds + 30) // 60
    return -total if negative else total


def format_duration(minutes: float) -> str:
    """Format minutes as "H:MM", keeping the sign."""
    sign = "-" if minutes < 0 else ""
    hours, mins = divmod(int(round(abs(minutes))), 60)
    return f"{sign}{hours}:{mins:02d}"


def parse_date(text: Optional[str]) -> Optional[date]:
    """Parse MM/DD/YYYY (two-digit years map to 20YY) or ISO YYYY-MM-DD."""
    if text is None:
        return None
    text = text.strip()
    match = _US_DATE_RE.match(text)
    try:
        if match:
            month, day, year = (int(part) for part in match.groups())
            if year < 100:
                year += 2000
            return date(year, month, day)
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError:
        return None


def format_date(value: date) -> str:
    return value.strftime("%m/%d/%Y")
