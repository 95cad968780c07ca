"""Conversion of local schedule times into the reference timezone.

Source rows carry loosely written zone names ("EST", "Asia_Kolkata",
"America/Mexico_Cit"). They are normalized to IANA identifiers and local
wall-clock minutes are converted to the reference zone with full DST
awareness via ``zoneinfo``. Conversion never raises: when the zone
database cannot serve a request, a seasonal offset table is used, and
as a last resort the time is passed through unchanged.
"""

import logging
from datetime import date, datetime, time, timedelta
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from schedaudit.domain.models import (
    MINUTES_PER_DAY,
    ConvertedTime,
    RunDiagnostics,
    WarningType,
)
from schedaudit.exceptions import ConversionFailure
from schedaudit.parsing.time_parser import parse_date

logger = logging.getLogger(__name__)

DEFAULT_REFERENCE_TIMEZONE = "America/New_York"

TIMEZONE_ALIASES: dict[str, str] = {
    "AMERICA/NEW_YORK": "America/New_York",
    "AMERICA_NEW_YORK": "America/New_York",
    "AMERICA/NEWYORK": "America/New_York",
    "AMERICA_NEWYORK": "America/New_York",
    "EST": "America/New_York",
    "EDT": "America/New_York",
    "EASTERN": "America/New_York",
    "ASIA/KOLKATA": "Asia/Kolkata",
    "ASIA_KOLKATA": "Asia/Kolkata",
    "ASIA/CALCUTTA": "Asia/Kolkata",
    "ASIA_CALCUTTA": "Asia/Kolkata",
    "IST": "Asia/Kolkata",
    "INDIAN STANDARD TIME": "Asia/Kolkata",
    "AMERICA/DENVER": "America/Denver",
    "AMERICA_DENVER": "America/Denver",
    "MST": "America/Denver",
    "MDT": "America/Denver",
    "MOUNTAIN": "America/Denver",
    "AMERICA/MEXICO_CITY": "America/Mexico_City",
    "AMERICA_MEXICO_CITY": "America/Mexico_City",
    "AMERICA/MEXICO_CIT": "America/Mexico_City",
    "AMERICA_MEXICO_CIT": "America/Mexico_City",
    "CST": "America/Mexico_City",
    "CDT": "America/Mexico_City",
    "CENTRAL": "America/Mexico_City",
    "ASIA/TAIPEI": "Asia/Taipei",
    "ASIA_TAIPEI": "Asia/Taipei",
    "TAIWAN": "Asia/Taipei",
    "AMERICA/LOS_ANGELES": "America/Los_Angeles",
    "AMERICA_LOS_ANGELES": "America/Los_Angeles",
    "PST": "America/Los_Angeles",
    "PDT": "America/Los_Angeles",
    "PACIFIC": "America/Los_Angeles",
    "UTC": "UTC",
    "GMT": "UTC",
}

# Standard-time UTC offsets in minutes, used only when zoneinfo fails.
SEASONAL_STANDARD_OFFSETS: dict[str, int] = {
    "America/New_York": -300,
    "America/Chicago": -360,
    "America/Denver": -420,
    "America/Los_Angeles": -480,
    "America/Mexico_City": -360,
    "Asia/Kolkata": 330,
    "Asia/Taipei": 480,
    "Asia/Manila": 480,
    "Europe/London": 0,
    "UTC": 0,
}

# Zones assumed to observe +60 minutes of DST from March through November.
SEASONAL_DST_ZONES = frozenset(
    {
        "America/New_York",
        "America/Chicago",
        "America/Denver",
        "America/Los_Angeles",
        "Europe/London",
    }
)


@lru_cache(maxsize=None)
def _zone(zone_id: str) -> ZoneInfo:
    try:
        return ZoneInfo(zone_id)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConversionFailure(f"Unknown timezone {zone_id!r}") from e


def seasonal_offset(zone_id: str, on_date: date) -> Optional[int]:
    """Approximate UTC offset from the seasonal table, or None if unknown."""
    if zone_id not in SEASONAL_STANDARD_OFFSETS:
        return None
    offset = SEASONAL_STANDARD_OFFSETS[zone_id]
    if zone_id in SEASONAL_DST_ZONES and 3 <= on_date.month <= 11:
        offset += 60
    return offset


class TimezoneConverter:
    """Converts local schedule times to a single reference timezone.

    Attributes:
        reference_timezone: IANA identifier every time is converted into.

    Example:
        >>> converter = TimezoneConverter("America/New_York")
        >>> result = converter.convert_instant(23 * 60 + 30, "Asia/Kolkata", date(2024, 11, 15))
        >>> (result.minutes, result.date)
        (780, datetime.date(2024, 11, 15))
    """

    def __init__(self, reference_timezone: str = DEFAULT_REFERENCE_TIMEZONE):
        self.reference_timezone = reference_timezone
        self._logged: set[tuple] = set()

    def _log_once(self, key: tuple, message: str, *args) -> None:
        # Repeats of the same problem drop to DEBUG.
        level = logging.DEBUG if key in self._logged else logging.WARNING
        self._logged.add(key)
        logger.log(level, message, *args)

    def normalize_alias(
        self,
        raw: Optional[str],
        diagnostics: Optional[RunDiagnostics] = None,
        agent: Optional[str] = None,
    ) -> str:
        """Map a loosely written zone name to an IANA identifier.

        Args:
            raw: Zone name as found in the source row.
            diagnostics: Collector for an UNKNOWN_TIMEZONE warning.
            agent: Agent the row belongs to, for the warning.

        Returns:
            The IANA identifier, or the reference zone if unrecognized.
        """
        normalized = (raw or "").strip()
        alias = TIMEZONE_ALIASES.get(normalized.upper())
        if alias:
            return alias

        if "_" in normalized and "/" not in normalized:
            normalized = normalized.replace("_", "/", 1)
        if "/" in normalized and len(normalized) > 3:
            return normalized

        self._log_once(
            ("alias", raw),
            "Unknown timezone %r, defaulting to %s",
            raw,
            self.reference_timezone,
        )
        if diagnostics is not None:
            diagnostics.add(
                WarningType.UNKNOWN_TIMEZONE,
                f"Unknown timezone {raw!r}, using {self.reference_timezone}",
                agent=agent,
                timezone=raw,
            )
        return self.reference_timezone

    def offset_minutes(self, zone_id: str, on_date: date) -> int:
        """UTC offset in minutes in force at local noon on a date.

        Raises:
            ConversionFailure: If the zone cannot be loaded.
        """
        noon = datetime.combine(on_date, time(12, 0), tzinfo=_zone(zone_id))
        offset = noon.utcoffset()
        if offset is None:
            raise ConversionFailure(f"No UTC offset for {zone_id!r} on {on_date}")
        return int(offset.total_seconds() // 60)

    def today(self) -> date:
        """Today's date in the reference zone."""
        try:
            return datetime.now(_zone(self.reference_timezone)).date()
        except ConversionFailure:
            return date.today()

    def convert_to_reference(
        self,
        minutes: int,
        zone_id: str,
        date_str: str,
        diagnostics: Optional[RunDiagnostics] = None,
        agent: Optional[str] = None,
    ) -> ConvertedTime:
        """Convert local minutes on a MM/DD/YYYY date to the reference zone.

        An unparsable date falls back to today's date in the reference
        zone and records an INVALID_DATE warning.
        """
        on_date = parse_date(date_str)
        if on_date is None:
            on_date = self.today()
            logger.warning("Could not parse date %r, using %s", date_str, on_date)
            if diagnostics is not None:
                diagnostics.add(
                    WarningType.INVALID_DATE,
                    f"Could not parse date {date_str!r}, using {on_date.isoformat()}",
                    agent=agent,
                    date=date_str,
                )
        return self.convert_instant(minutes, zone_id, on_date, diagnostics, agent)

    def convert_instant(
        self,
        minutes: int,
        zone_id: str,
        on_date: date,
        diagnostics: Optional[RunDiagnostics] = None,
        agent: Optional[str] = None,
    ) -> ConvertedTime:
        """Convert local minutes in a zone on a date to the reference zone.

        Non-existent or ambiguous local times around DST transitions are
        resolved with ``fold=0``. The returned date rolls across midnight
        in either direction.

        Args:
            minutes: Local minutes since midnight; may exceed a day.
            zone_id: IANA identifier of the source zone.
            on_date: Local calendar date.
            diagnostics: Collector for a CONVERSION_FAILURE warning.
            agent: Agent the row belongs to, for the warning.

        Returns:
            ConvertedTime in the reference zone.
        """
        if zone_id == self.reference_timezone:
            days, local = divmod(minutes, MINUTES_PER_DAY)
            return ConvertedTime(local, on_date + timedelta(days=days))

        try:
            local = datetime.combine(on_date, time(0, 0)) + timedelta(minutes=minutes)
            local = local.replace(tzinfo=_zone(zone_id))
            reference = local.astimezone(_zone(self.reference_timezone))
        except (ConversionFailure, OverflowError) as e:
            self._log_once(
                ("conversion", zone_id),
                "Timezone conversion failed for %s on %s: %s",
                zone_id,
                on_date,
                e,
            )
            if diagnostics is not None:
                diagnostics.add(
                    WarningType.CONVERSION_FAILURE,
                    f"Conversion from {zone_id} failed, using fallback offsets",
                    agent=agent,
                    timezone=zone_id,
                    date=on_date.isoformat(),
                )
            return self._fallback(minutes, zone_id, on_date)

        return ConvertedTime(
            minutes=reference.hour * 60 + reference.minute,
            date=reference.date(),
            converted=True,
        )

    def _fallback(self, minutes: int, zone_id: str, on_date: date) -> ConvertedTime:
        source_offset = seasonal_offset(zone_id, on_date)
        reference_offset = self._reference_offset(on_date)
        if source_offset is None or reference_offset is None:
            self._log_once(
                ("fallback", zone_id),
                "No fallback offset for %s, keeping local time",
                zone_id,
            )
            days, local = divmod(minutes, MINUTES_PER_DAY)
            return ConvertedTime(local, on_date + timedelta(days=days), degraded=True)

        shifted = minutes - source_offset + reference_offset
        days, local = divmod(shifted, MINUTES_PER_DAY)
        return ConvertedTime(
            minutes=local,
            date=on_date + timedelta(days=days),
            converted=True,
            degraded=True,
        )

    def _reference_offset(self, on_date: date) -> Optional[int]:
        try:
            return self.offset_minutes(self.reference_timezone, on_date)
        except ConversionFailure:
            return seasonal_offset(self.reference_timezone, on_date)
