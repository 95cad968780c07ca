"""Aggregation of schedule entries into an interval report.

The aggregator is the entry point of the analysis engine. It takes one
snapshot of entries and of the state configuration, excludes entries
superseded by a full-day absence, resolves canonical states, allocates
every surviving entry and sums the results per bucket and per state.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from schedaudit.analysis.allocator import IntervalAllocator
from schedaudit.analysis.day_off_filter import DayOffExclusionFilter
from schedaudit.domain.models import (
    AnalysisConfig,
    BucketStateTotals,
    DateRange,
    EntryRecord,
    IntervalReport,
    IntervalSlot,
    ReportMetadata,
    RunDiagnostics,
    ScheduleEntry,
    StateTotals,
)
from schedaudit.domain.policies import DayOffPolicy
from schedaudit.domain.state_config import StateConfig
from schedaudit.parsing.time_parser import parse_date
from schedaudit.parsing.timezones import TimezoneConverter

logger = logging.getLogger(__name__)


@dataclass
class StateBreakdown:
    """Per-state drill-down of processed entries.

    Attributes:
        state_name: Canonical state the breakdown is for.
        records: Matching audit records, in processing order.
        total_source_minutes: Sum of parsed source durations.
        total_applied_minutes: Sum of minutes added to the state total.
    """

    state_name: str
    records: list[EntryRecord] = field(default_factory=list)
    total_source_minutes: float = 0
    total_applied_minutes: float = 0

    @property
    def rows(self) -> int:
        return len(self.records)


class ScheduleAggregator:
    """Builds interval reports from schedule entries.

    Attributes:
        state_config: Canonical state snapshot used when none is passed
            to ``process_schedule_data``.
        config: Run settings.
        day_off_policy: Decides which states mark a day off.
    """

    def __init__(
        self,
        state_config: Optional[StateConfig] = None,
        config: Optional[AnalysisConfig] = None,
        day_off_policy: Optional[DayOffPolicy] = None,
    ):
        self.state_config = state_config or StateConfig.default()
        self.config = config or AnalysisConfig()
        self.day_off_policy = day_off_policy

    def process_schedule_data(
        self,
        entries: Iterable[ScheduleEntry],
        target_date: Optional[date] = None,
        state_config: Optional[StateConfig] = None,
    ) -> IntervalReport:
        """Aggregate one run of entries.

        Args:
            entries: Validated schedule entries.
            target_date: Reference-zone day to report on, or None for all
                entries folded onto one day's buckets.
            state_config: Snapshot overriding the aggregator's own.

        Returns:
            A complete IntervalReport. Rows that cannot be processed are
            counted as skipped and described in the metadata warnings.
        """
        snapshot = tuple(entries)
        config = state_config or self.state_config
        diagnostics = RunDiagnostics()
        converter = TimezoneConverter(self.config.reference_timezone)
        allocator = IntervalAllocator(converter, self.config)
        day_off_filter = DayOffExclusionFilter(
            config, converter, policy=self.day_off_policy, config=self.config
        )

        report = IntervalReport.empty(self.config.reference_timezone)
        filtered = day_off_filter.filter(snapshot, target_date)
        skipped = 0

        for entry in filtered.kept:
            state_name = config.find_matching_state(entry.schedule_state)
            record = allocator.allocate(entry, target_date, state_name, diagnostics)
            if record is None:
                skipped += 1
                continue
            if target_date is not None and not allocator.overlaps_target(record):
                logger.debug(
                    "Skipping %s %r: outside %s", entry.agent, state_name, target_date
                )
                skipped += 1
                continue
            self._accumulate(report, record)

        report.metadata = ReportMetadata(
            total_entries=len(snapshot),
            processed_entries=len(report.processed_entries),
            skipped_entries=skipped,
            excluded_entries=len(filtered.excluded),
            unique_agents=len({r.agent for r in report.processed_entries}),
            unique_states=list(report.state_totals.keys()),
            date_range=self._date_range(snapshot),
            target_date=target_date,
            reference_timezone=self.config.reference_timezone,
            warnings=list(diagnostics.warnings),
        )
        logger.info(
            "Processed %d of %d entries (%d skipped, %d excluded, %d warnings)",
            report.metadata.processed_entries,
            report.metadata.total_entries,
            skipped,
            report.metadata.excluded_entries,
            len(diagnostics.warnings),
        )
        return report

    def _accumulate(self, report: IntervalReport, record: EntryRecord) -> None:
        name = record.normalized_state
        report.state_totals.setdefault(name, StateTotals()).add(
            record.applied_duration_minutes, record.agent
        )
        for index, minutes in record.bucket_minutes.items():
            slot = report.intervals[index]
            slot.states.setdefault(name, BucketStateTotals()).add(minutes, record.agent)
        report.processed_entries.append(record)

    @staticmethod
    def _date_range(entries: tuple[ScheduleEntry, ...]) -> Optional[DateRange]:
        dates = sorted(d for d in (parse_date(e.date) for e in entries) if d is not None)
        if not dates:
            return None
        return DateRange(dates[0], dates[-1])

    @staticmethod
    def filter_by_canonical_states(
        report: IntervalReport, allowed_names: Iterable[str]
    ) -> IntervalReport:
        """Project a report onto a set of canonical states.

        Nothing is recomputed: bucket and state totals outside the allowed
        set are dropped, everything else is shared with the input report.
        Names compare case-insensitively; an empty selection returns the
        report unchanged.
        """
        allowed = {name.strip().lower() for name in allowed_names if name and name.strip()}
        if not allowed:
            return report

        return IntervalReport(
            intervals=[
                IntervalSlot(
                    bucket=slot.bucket,
                    states={
                        name: totals
                        for name, totals in slot.states.items()
                        if name.lower() in allowed
                    },
                )
                for slot in report.intervals
            ],
            state_totals={
                name: totals
                for name, totals in report.state_totals.items()
                if name.lower() in allowed
            },
            processed_entries=report.processed_entries,
            metadata=report.metadata,
        )

    def group_views(
        self, report: IntervalReport, state_config: Optional[StateConfig] = None
    ) -> dict[str, IntervalReport]:
        """One projection per configured group that has states, by group name."""
        config = state_config or self.state_config
        views = {}
        for group in config.get_all_groups():
            names = [state.name for state in config.get_states_by_group(group)]
            if names:
                views[group] = self.filter_by_canonical_states(report, names)
        return views

    @staticmethod
    def build_state_breakdown(report: IntervalReport, state_name: str) -> StateBreakdown:
        """Collect the processed entries attributed to one state."""
        key = state_name.strip().lower()
        breakdown = StateBreakdown(state_name=state_name)
        for record in report.processed_entries:
            if record.normalized_state.lower() != key:
                continue
            breakdown.records.append(record)
            if record.source_duration_parsed:
                breakdown.total_source_minutes += record.source_duration_minutes
            breakdown.total_applied_minutes += record.applied_duration_minutes
        return breakdown
