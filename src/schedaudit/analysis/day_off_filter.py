"""Exclusion of entries superseded by a full-day absence.

When an agent has a full-day day-off (or time-off) entry, any other
entries for that agent on the same day are stale and must not add break,
meeting or work minutes to the aggregates. The day-off entry itself is
kept.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Hashable, Optional, Sequence

from schedaudit.domain.models import AnalysisConfig, ScheduleEntry
from schedaudit.domain.policies import DayOffPolicy, DefaultDayOffPolicy
from schedaudit.domain.state_config import StateConfig
from schedaudit.parsing.time_parser import (
    is_full_day,
    parse_clock_time_with_day_offset,
    parse_date,
)
from schedaudit.parsing.timezones import TimezoneConverter

logger = logging.getLogger(__name__)


@dataclass
class FilterResult:
    """Outcome of the day-off exclusion.

    Attributes:
        kept: Entries that continue to aggregation, in input order.
        excluded: Entries dropped because of a full-day absence.
        excluded_keys: Agent ids (with a target date) or (agent, date)
            pairs (without one) that were marked off.
    """

    kept: list[ScheduleEntry] = field(default_factory=list)
    excluded: list[ScheduleEntry] = field(default_factory=list)
    excluded_keys: set[Hashable] = field(default_factory=set)


class DayOffExclusionFilter:
    """Two-pass filter removing entries of agents marked off for the day.

    Pass 1 collects every agent (and day) with a full-day entry in the
    day-off family. Pass 2 drops that agent's entries for the day unless
    they are themselves in the day-off family.
    """

    def __init__(
        self,
        state_config: StateConfig,
        converter: Optional[TimezoneConverter] = None,
        policy: Optional[DayOffPolicy] = None,
        config: Optional[AnalysisConfig] = None,
    ):
        self.state_config = state_config
        self.config = config or AnalysisConfig()
        self.converter = converter or TimezoneConverter(self.config.reference_timezone)
        self.policy = policy or DefaultDayOffPolicy()

    def is_day_off_entry(self, entry: ScheduleEntry) -> bool:
        """Check if an entry's canonical state is in the day-off family."""
        name = self.state_config.find_matching_state(entry.schedule_state)
        state = self.state_config.get_state_by_name(name) if name else None
        return self.policy.is_day_off(state, name)

    def is_full_day_entry(self, entry: ScheduleEntry) -> bool:
        sentinel = self.config.full_day_sentinel
        return is_full_day(entry.start_time, sentinel) or is_full_day(entry.end_time, sentinel)

    def filter(
        self, entries: Sequence[ScheduleEntry], target_date: Optional[date] = None
    ) -> FilterResult:
        """Apply both passes to one run's entries.

        Args:
            entries: All entries of the run.
            target_date: Reference date being analyzed, if any.

        Returns:
            FilterResult with kept and excluded entries.
        """
        result = FilterResult()
        day_off = [self.is_day_off_entry(entry) for entry in entries]

        for entry, is_off in zip(entries, day_off):
            if not is_off or not self.is_full_day_entry(entry):
                continue
            entry_date = self.reference_date(entry)
            if entry_date is None:
                continue
            if target_date is not None:
                if entry_date == target_date:
                    result.excluded_keys.add(entry.agent)
            else:
                result.excluded_keys.add((entry.agent, entry_date))

        for entry, is_off in zip(entries, day_off):
            if is_off or not result.excluded_keys:
                result.kept.append(entry)
                continue
            key = (
                entry.agent
                if target_date is not None
                else (entry.agent, self.reference_date(entry))
            )
            if key in result.excluded_keys:
                result.excluded.append(entry)
            else:
                result.kept.append(entry)

        if result.excluded:
            logger.info(
                "Excluded %d entries for %d day-off marker(s)",
                len(result.excluded),
                len(result.excluded_keys),
            )
        return result

    def reference_date(self, entry: ScheduleEntry) -> Optional[date]:
        """Reference-zone calendar date an entry starts on.

        Full-day entries keep their source date. Unparsable dates or
        times give None, so such entries never match an exclusion key.
        """
        source_date = parse_date(entry.date)
        if source_date is None:
            return None
        if self.is_full_day_entry(entry):
            return source_date
        start = parse_clock_time_with_day_offset(entry.start_time)
        if not start.is_parsed:
            return None
        zone = self.converter.normalize_alias(entry.timezone)
        converted = self.converter.convert_instant(
            start.minutes, zone, source_date + timedelta(days=start.day_offset)
        )
        return converted.date
