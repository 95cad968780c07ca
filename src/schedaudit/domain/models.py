"""Domain models for schedule analysis.

This module contains the core data structures used throughout the analysis
engine: raw schedule entries, parsed times, fixed time buckets, per-entry
audit records and the aggregated interval report.
"""

from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum
from typing import Any, Mapping, Optional

from schedaudit.exceptions import InvalidEntryError

BUCKET_MINUTES = 30
MINUTES_PER_DAY = 1440
BUCKETS_PER_DAY = MINUTES_PER_DAY // BUCKET_MINUTES

# Accepted keys for each entry field, checked in order.
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "site": ("site", "Site"),
    "timezone": ("timezone", "Time zone", "Time Zone", "Timezone"),
    "team": ("team", "Team"),
    "agent": ("agent", "Agent"),
    "date": ("date", "Date"),
    "schedule_state": ("schedule_state", "scheduleState", "Schedule State"),
    "start_time": ("start_time", "startTime", "Start Time"),
    "end_time": ("end_time", "endTime", "End Time"),
    "duration": ("duration", "Duration"),
    "paid_hours": ("paid_hours", "paidHours", "Paid Hours"),
}

REQUIRED_FIELDS = (
    "site",
    "timezone",
    "team",
    "agent",
    "date",
    "schedule_state",
    "start_time",
    "end_time",
)


def minutes_to_time_string(minutes: int) -> str:
    """Format minutes since midnight as "H:MM AM/PM"."""
    hours, mins = divmod(minutes % MINUTES_PER_DAY, 60)
    period = "AM" if hours < 12 else "PM"
    return f"{hours % 12 or 12}:{mins:02d} {period}"


def _us_date(value: Optional[date]) -> Optional[str]:
    return value.strftime("%m/%d/%Y") if value else None


@dataclass(frozen=True)
class ScheduleEntry:
    """One row of a schedule export.

    All time and duration fields are kept as the raw strings found in the
    source; parsing happens in the analysis engine so that the audit trail
    can always show what was actually received.

    Attributes:
        site: Site the agent works from.
        timezone: Raw timezone label of the site (e.g. "Asia_Kolkata", "EST").
        team: Team name.
        agent: Agent identifier.
        date: Source calendar date, MM/DD/YYYY.
        schedule_state: Free-text schedule state label.
        start_time: Raw start time (e.g. "4:00 PM", "+12:30 AM", "Full Day").
        end_time: Raw end time.
        duration: Authoritative duration reported by the source ("H:MM[:SS]").
        paid_hours: Paid hours as reported by the source.
    """

    site: str
    timezone: str
    team: str
    agent: str
    date: str
    schedule_state: str
    start_time: str
    end_time: str
    duration: str = ""
    paid_hours: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ScheduleEntry":
        """Build an entry from a loosely keyed row.

        Both export headers ("Time zone", "Schedule State") and camelCase
        keys ("scheduleState") are accepted.

        Raises:
            InvalidEntryError: If a required field is missing or blank.
        """
        values = {}
        for name, aliases in FIELD_ALIASES.items():
            raw = None
            for alias in aliases:
                if alias in row and row[alias] is not None:
                    raw = row[alias]
                    break
            values[name] = str(raw).strip() if raw is not None else ""

        missing = tuple(name for name in REQUIRED_FIELDS if not values[name])
        if missing:
            raise InvalidEntryError(
                f"Missing required field(s): {', '.join(missing)}",
                missing_fields=missing,
            )
        return cls(**values)

    def to_dict(self) -> dict[str, str]:
        """Return the entry using the camelCase keys of the export format."""
        return {
            "site": self.site,
            "timezone": self.timezone,
            "team": self.team,
            "agent": self.agent,
            "date": self.date,
            "scheduleState": self.schedule_state,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "duration": self.duration,
            "paidHours": self.paid_hours,
        }


@dataclass(frozen=True)
class ParsedTime:
    """A clock time with an optional day offset.

    Attributes:
        minutes: Minutes since midnight (0-1439), or None if unparsable.
        day_offset: Number of days after the source date (>= 0).
    """

    minutes: Optional[int]
    day_offset: int = 0

    @property
    def is_parsed(self) -> bool:
        return self.minutes is not None


@dataclass(frozen=True)
class TimeBucket:
    """One fixed 30-minute slot of a calendar day.

    Attributes:
        index: Zero-based index of the bucket within the day.
        slot_minutes: Duration of the bucket in minutes.
    """

    index: int
    slot_minutes: int = BUCKET_MINUTES

    @property
    def start_minutes(self) -> int:
        """Minutes from midnight when this bucket starts."""
        return self.index * self.slot_minutes

    @property
    def end_minutes(self) -> int:
        """Minutes from midnight when this bucket ends (exclusive)."""
        return (self.index + 1) * self.slot_minutes

    @property
    def start_time(self) -> time:
        hours, mins = divmod(self.start_minutes, 60)
        return time(hour=hours, minute=mins)

    @property
    def label(self) -> str:
        """12-hour label of the bucket start, e.g. "1:30 PM"."""
        return minutes_to_time_string(self.start_minutes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "startMinutes": self.start_minutes,
            "endMinutes": self.end_minutes,
            "label": self.label,
        }

    def __repr__(self) -> str:
        return f"TimeBucket({self.index}: {self.label})"


def generate_buckets() -> list[TimeBucket]:
    """Return the 48 buckets that partition a day."""
    return [TimeBucket(index) for index in range(BUCKETS_PER_DAY)]


@dataclass(frozen=True)
class ConvertedTime:
    """A wall-clock time in the reference timezone.

    Attributes:
        minutes: Minutes since midnight in the reference zone.
        date: Calendar date in the reference zone.
        converted: True if a timezone shift was applied.
        degraded: True if a fallback path produced the result.
    """

    minutes: int
    date: date
    converted: bool = False
    degraded: bool = False


class WarningType(Enum):
    """Kinds of non-fatal degradation recorded during a run."""

    UNPARSABLE_TIME = "unparsable_time"
    UNKNOWN_TIMEZONE = "unknown_timezone"
    INVALID_DATE = "invalid_date"
    CONVERSION_FAILURE = "conversion_failure"


@dataclass
class AnalysisWarning:
    """A single non-fatal degradation."""

    warning_type: WarningType
    message: str
    agent: Optional[str] = None
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [f"[{self.warning_type.value}]"]
        if self.agent:
            parts.append(f"Agent {self.agent}:")
        parts.append(self.message)
        return " ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.warning_type.value,
            "message": self.message,
            "agent": self.agent,
            "details": dict(self.details),
        }


@dataclass
class RunDiagnostics:
    """Collects warnings raised while processing one run."""

    warnings: list[AnalysisWarning] = field(default_factory=list)

    def add(
        self,
        warning_type: WarningType,
        message: str,
        agent: Optional[str] = None,
        **details: Any,
    ) -> None:
        self.warnings.append(
            AnalysisWarning(
                warning_type=warning_type,
                message=message,
                agent=agent,
                details=details,
            )
        )

    def count(self, warning_type: WarningType) -> int:
        return sum(1 for w in self.warnings if w.warning_type == warning_type)

    def counts_by_type(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for warning in self.warnings:
            key = warning.warning_type.value
            counts[key] = counts.get(key, 0) + 1
        return counts


@dataclass(frozen=True)
class AnalysisConfig:
    """Run-level settings for the analysis engine.

    Attributes:
        reference_timezone: IANA zone every time is normalized into.
        full_day_sentinel: Raw time value marking an all-day entry.
        large_difference_minutes: Span/duration mismatch above which an
            entry is highlighted in audit output. Never affects totals.
    """

    reference_timezone: str = "America/New_York"
    full_day_sentinel: str = "FULL DAY"
    large_difference_minutes: int = 30


@dataclass
class EntryRecord:
    """Audit record for one processed schedule entry.

    Reference positions are minutes relative to midnight of
    ``reference_start_date``; ``clamped_start``/``clamped_end`` are relative
    to midnight of the target date (or of the start date when no target
    date is active).

    Attributes:
        entry: The raw source entry.
        normalized_state: Canonical state the entry was attributed to.
        normalized_timezone: IANA zone the source times were read in.
        source_duration_minutes: Authoritative duration (or the span if the
            source duration was unparsable).
        source_duration_parsed: Whether the source duration was parsable.
        reference_start_date: Reference-zone date of the start.
        reference_start_minutes: Reference-zone start, minutes since midnight.
        reference_end_date: Reference-zone date of the end.
        reference_end_minutes: Reference-zone end, minutes since midnight.
        reference_span_minutes: Unclamped reference wall-clock span (>= 1).
        duration_difference: Span minus source duration. Diagnostic only.
        applied_duration_minutes: Minutes contributed to the state total.
        bucket_minutes: Bucket index -> minutes allocated to that bucket.
        clamped_start: Start of the allocated window.
        clamped_end: End of the allocated window (exclusive).
        was_clamped: The window was truncated to the target date.
        was_timezone_converted: A timezone shift was applied.
        day_offset_applied: A "+" day offset was present on either time.
        conversion_degraded: A fallback conversion path was used.
        is_full_day: The entry used the full-day sentinel.
    """

    entry: ScheduleEntry
    normalized_state: str
    normalized_timezone: str
    source_duration_minutes: int
    source_duration_parsed: bool
    reference_start_date: date
    reference_start_minutes: int
    reference_end_date: date
    reference_end_minutes: int
    reference_span_minutes: int
    duration_difference: int
    applied_duration_minutes: float
    bucket_minutes: dict[int, float] = field(default_factory=dict)
    clamped_start: int = 0
    clamped_end: int = 0
    was_clamped: bool = False
    was_timezone_converted: bool = False
    day_offset_applied: bool = False
    conversion_degraded: bool = False
    is_full_day: bool = False

    @property
    def agent(self) -> str:
        return self.entry.agent

    @property
    def allocation_scale(self) -> float:
        """Ratio of source duration to reference span."""
        return self.source_duration_minutes / self.reference_span_minutes

    @property
    def allocated_minutes(self) -> float:
        """Total minutes spread over buckets."""
        return sum(self.bucket_minutes.values())

    @property
    def overlaps_window(self) -> bool:
        return self.clamped_end > self.clamped_start

    @property
    def notes(self) -> list[str]:
        notes = []
        if self.was_clamped:
            notes.append("Clamped")
        if self.was_timezone_converted:
            notes.append("TZ Converted")
        if self.day_offset_applied:
            notes.append("Day Offset")
        if self.conversion_degraded:
            notes.append("Degraded")
        return notes

    def has_large_difference(self, threshold: int = 30) -> bool:
        return abs(self.duration_difference) > threshold

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = self.entry.to_dict()
        data.update(
            {
                "normalizedState": self.normalized_state,
                "normalizedTimezone": self.normalized_timezone,
                "durationSourceMinutes": (
                    self.source_duration_minutes if self.source_duration_parsed else None
                ),
                "referenceStartDate": _us_date(self.reference_start_date),
                "referenceStartTime": minutes_to_time_string(self.reference_start_minutes),
                "referenceStartMinutes": self.reference_start_minutes,
                "referenceEndDate": _us_date(self.reference_end_date),
                "referenceEndTime": minutes_to_time_string(self.reference_end_minutes),
                "referenceEndMinutes": self.reference_end_minutes,
                "durationReferenceMinutes": self.reference_span_minutes,
                "durationDifference": self.duration_difference,
                "durationAppliedMinutes": self.applied_duration_minutes,
                "bucketMinutes": {
                    str(index): minutes
                    for index, minutes in sorted(self.bucket_minutes.items())
                },
                "wasClamped": self.was_clamped,
                "wasTimezoneConverted": self.was_timezone_converted,
                "dayOffsetApplied": self.day_offset_applied,
                "conversionDegraded": self.conversion_degraded,
            }
        )
        return data


@dataclass
class StateTotals:
    """Aggregate for one canonical state across the whole run."""

    total_duration: float = 0.0
    agents: set[str] = field(default_factory=set)
    count: int = 0

    @property
    def agent_count(self) -> int:
        return len(self.agents)

    def add(self, minutes: float, agent: str) -> None:
        self.total_duration += minutes
        self.agents.add(agent)
        self.count += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalDuration": self.total_duration,
            "totalAgents": self.agent_count,
            "totalCount": self.count,
        }


@dataclass
class BucketStateTotals:
    """Aggregate for one canonical state within one bucket."""

    total_duration: float = 0.0
    agents: set[str] = field(default_factory=set)

    @property
    def agent_count(self) -> int:
        return len(self.agents)

    def add(self, minutes: float, agent: str) -> None:
        self.total_duration += minutes
        self.agents.add(agent)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalDuration": self.total_duration,
            "agentCount": self.agent_count,
            "agents": sorted(self.agents),
        }


@dataclass
class IntervalSlot:
    """A bucket together with its per-state totals."""

    bucket: TimeBucket
    states: dict[str, BucketStateTotals] = field(default_factory=dict)

    @property
    def total_duration(self) -> float:
        return sum(s.total_duration for s in self.states.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "interval": self.bucket.to_dict(),
            "states": {name: totals.to_dict() for name, totals in self.states.items()},
        }


@dataclass(frozen=True)
class DateRange:
    """Earliest and latest source dates seen in a run."""

    start: date
    end: date

    def to_dict(self) -> dict[str, str]:
        return {"start": _us_date(self.start), "end": _us_date(self.end)}


@dataclass
class ReportMetadata:
    """Run-level counts and context for an IntervalReport."""

    total_entries: int = 0
    processed_entries: int = 0
    skipped_entries: int = 0
    excluded_entries: int = 0
    unique_agents: int = 0
    unique_states: list[str] = field(default_factory=list)
    date_range: Optional[DateRange] = None
    target_date: Optional[date] = None
    reference_timezone: str = "America/New_York"
    warnings: list[AnalysisWarning] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalEntries": self.total_entries,
            "processedEntries": self.processed_entries,
            "skippedEntries": self.skipped_entries,
            "excludedEntries": self.excluded_entries,
            "uniqueAgents": self.unique_agents,
            "uniqueStates": list(self.unique_states),
            "dateRange": self.date_range.to_dict() if self.date_range else None,
            "targetDate": _us_date(self.target_date),
            "referenceTimezone": self.reference_timezone,
            "warnings": [w.to_dict() for w in self.warnings],
        }


@dataclass
class IntervalReport:
    """Complete output of one aggregation run.

    Attributes:
        intervals: One IntervalSlot per bucket, in bucket order.
        state_totals: Canonical state name -> totals, in first-seen order.
        processed_entries: Audit records of every aggregated entry.
        metadata: Counts and run context.
    """

    intervals: list[IntervalSlot]
    state_totals: dict[str, StateTotals] = field(default_factory=dict)
    processed_entries: list[EntryRecord] = field(default_factory=list)
    metadata: ReportMetadata = field(default_factory=ReportMetadata)

    @classmethod
    def empty(cls, reference_timezone: str = "America/New_York") -> "IntervalReport":
        return cls(
            intervals=[IntervalSlot(bucket) for bucket in generate_buckets()],
            metadata=ReportMetadata(reference_timezone=reference_timezone),
        )

    @property
    def state_names(self) -> list[str]:
        return list(self.state_totals.keys())

    @property
    def total_duration(self) -> float:
        return sum(t.total_duration for t in self.state_totals.values())

    def get_interval(self, index: int) -> IntervalSlot:
        return self.intervals[index]

    def get_duration_timeline(self) -> list[float]:
        """Total allocated minutes per bucket across all states."""
        return [slot.total_duration for slot in self.intervals]

    def to_dict(self) -> dict[str, Any]:
        return {
            "intervals": [slot.to_dict() for slot in self.intervals],
            "stateTotals": {
                name: totals.to_dict() for name, totals in self.state_totals.items()
            },
            "processedEntries": [record.to_dict() for record in self.processed_entries],
            "metadata": self.metadata.to_dict(),
        }
