"""Allocation of schedule entries onto fixed 30-minute buckets.

An entry's start and end are converted into the reference timezone,
optionally clamped to one target calendar day, and its authoritative
source duration is spread proportionally over the buckets it overlaps.

Positions are handled as absolute minutes from midnight of the entry's
reference start date, so spans crossing midnight (or several days via
day offset markers) need no special casing.
"""

import logging
from datetime import date, timedelta
from typing import Optional

from schedaudit.domain.models import (
    MINUTES_PER_DAY,
    AnalysisConfig,
    EntryRecord,
    RunDiagnostics,
    ScheduleEntry,
    TimeBucket,
    WarningType,
    generate_buckets,
)
from schedaudit.parsing.time_parser import (
    is_full_day,
    parse_clock_time_with_day_offset,
    parse_date,
    parse_duration,
)
from schedaudit.parsing.timezones import TimezoneConverter

logger = logging.getLogger(__name__)

FULL_DAY_END_MINUTES = MINUTES_PER_DAY - 1


def overlap_minutes(start: float, end: float, bucket_start: float, bucket_end: float) -> float:
    """Length of the intersection of [start, end) with [bucket_start, bucket_end).

    An ``end`` before ``start`` is treated as crossing midnight.

    >>> overlap_minutes(600, 660, 630, 660)
    30
    >>> overlap_minutes(1410, 30, 0, 30)
    0
    """
    if end < start:
        end += MINUTES_PER_DAY
    return max(0, min(end, bucket_end) - max(start, bucket_start))


class IntervalAllocator:
    """Converts entries to reference time and spreads them over buckets.

    Attributes:
        converter: Timezone converter bound to the reference zone.
        config: Run settings (full-day sentinel, reference zone).
        buckets: The 48 buckets of a day.
    """

    def __init__(
        self,
        converter: Optional[TimezoneConverter] = None,
        config: Optional[AnalysisConfig] = None,
    ):
        self.config = config or AnalysisConfig()
        self.converter = converter or TimezoneConverter(self.config.reference_timezone)
        self.buckets: list[TimeBucket] = generate_buckets()

    def allocate(
        self,
        entry: ScheduleEntry,
        target_date: Optional[date] = None,
        normalized_state: Optional[str] = None,
        diagnostics: Optional[RunDiagnostics] = None,
    ) -> Optional[EntryRecord]:
        """Allocate one entry.

        Args:
            entry: Source schedule entry.
            target_date: Reference-zone day to clamp to, or None to keep
                the whole span (wrapped onto the day's buckets).
            normalized_state: Canonical state name; defaults to the
                trimmed raw label.
            diagnostics: Collector for non-fatal warnings.

        Returns:
            The entry's audit record, or None if its times are unparsable.
            A record whose window misses the target date has no bucket
            allocations; see ``overlaps_target``.
        """
        state = normalized_state or entry.schedule_state.strip()
        zone = self.converter.normalize_alias(entry.timezone, diagnostics, entry.agent)
        sentinel = self.config.full_day_sentinel
        full_day = is_full_day(entry.start_time, sentinel) or is_full_day(
            entry.end_time, sentinel
        )

        if full_day:
            start_date = self._source_date(entry, diagnostics)
            start_pos, end_pos = 0, FULL_DAY_END_MINUTES
            converted = degraded = day_offset_applied = False
        else:
            start = parse_clock_time_with_day_offset(entry.start_time)
            end = parse_clock_time_with_day_offset(entry.end_time)
            if not start.is_parsed or not end.is_parsed:
                logger.debug(
                    "Dropping entry for %s: cannot parse %r - %r",
                    entry.agent,
                    entry.start_time,
                    entry.end_time,
                )
                if diagnostics is not None:
                    diagnostics.add(
                        WarningType.UNPARSABLE_TIME,
                        f"Cannot parse times {entry.start_time!r} - {entry.end_time!r}",
                        agent=entry.agent,
                        start_time=entry.start_time,
                        end_time=entry.end_time,
                    )
                return None

            source_date = self._source_date(entry, diagnostics)
            start_ref = self.converter.convert_instant(
                start.minutes,
                zone,
                source_date + timedelta(days=start.day_offset),
                diagnostics,
                entry.agent,
            )
            # One CONVERSION_FAILURE per entry.
            end_ref = self.converter.convert_instant(
                end.minutes,
                zone,
                source_date + timedelta(days=end.day_offset),
                None if start_ref.degraded else diagnostics,
                entry.agent,
            )
            start_date = start_ref.date
            start_pos = start_ref.minutes
            end_pos = (end_ref.date - start_date).days * MINUTES_PER_DAY + end_ref.minutes
            if end_pos <= start_pos:
                days_behind = (start_pos - end_pos) // MINUTES_PER_DAY + 1
                end_pos += days_behind * MINUTES_PER_DAY
            converted = start_ref.converted or end_ref.converted
            degraded = start_ref.degraded or end_ref.degraded
            day_offset_applied = start.day_offset > 0 or end.day_offset > 0

        span = max(end_pos - start_pos, 1)
        source_duration = parse_duration(entry.duration)
        duration_parsed = source_duration is not None
        if not duration_parsed:
            source_duration = span
        scale = source_duration / span

        if target_date is not None:
            window_base = (target_date - start_date).days * MINUTES_PER_DAY
            clamped_start = max(start_pos, window_base)
            clamped_end = min(end_pos, window_base + FULL_DAY_END_MINUTES)
            was_clamped = clamped_start != start_pos or clamped_end != end_pos
            day_indexes = [window_base // MINUTES_PER_DAY]
        else:
            window_base = 0
            clamped_start, clamped_end = start_pos, end_pos
            was_clamped = False
            day_indexes = range(
                start_pos // MINUTES_PER_DAY, (end_pos - 1) // MINUTES_PER_DAY + 1
            )

        bucket_minutes: dict[int, float] = {}
        if clamped_end > clamped_start:
            for bucket in self.buckets:
                overlap = 0
                for day in day_indexes:
                    offset = day * MINUTES_PER_DAY
                    overlap += overlap_minutes(
                        clamped_start,
                        clamped_end,
                        offset + bucket.start_minutes,
                        offset + bucket.end_minutes,
                    )
                if overlap > 0:
                    bucket_minutes[bucket.index] = overlap * scale
            applied = (
                (clamped_end - clamped_start) * scale if was_clamped else source_duration
            )
        else:
            applied = 0

        return EntryRecord(
            entry=entry,
            normalized_state=state,
            normalized_timezone=zone,
            source_duration_minutes=source_duration,
            source_duration_parsed=duration_parsed,
            reference_start_date=start_date,
            reference_start_minutes=start_pos,
            reference_end_date=start_date + timedelta(days=end_pos // MINUTES_PER_DAY),
            reference_end_minutes=end_pos % MINUTES_PER_DAY,
            reference_span_minutes=span,
            duration_difference=span - source_duration if duration_parsed else 0,
            applied_duration_minutes=applied,
            bucket_minutes=bucket_minutes,
            clamped_start=clamped_start - window_base,
            clamped_end=clamped_end - window_base,
            was_clamped=was_clamped,
            was_timezone_converted=converted,
            day_offset_applied=day_offset_applied,
            conversion_degraded=degraded,
            is_full_day=full_day,
        )

    @staticmethod
    def overlaps_target(record: EntryRecord) -> bool:
        """Whether the record's clamped window is non-empty."""
        return record.overlaps_window

    def _source_date(
        self, entry: ScheduleEntry, diagnostics: Optional[RunDiagnostics]
    ) -> date:
        source_date = parse_date(entry.date)
        if source_date is not None:
            return source_date
        today = self.converter.today()
        logger.warning("Could not parse date %r for %s, using %s", entry.date, entry.agent, today)
        if diagnostics is not None:
            diagnostics.add(
                WarningType.INVALID_DATE,
                f"Could not parse date {entry.date!r}, using {today.isoformat()}",
                agent=entry.agent,
                date=entry.date,
            )
        return today
