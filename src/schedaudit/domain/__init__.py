"""Domain models, state configuration and matching rules."""

from schedaudit.domain.models import (
    BUCKET_MINUTES,
    BUCKETS_PER_DAY,
    MINUTES_PER_DAY,
    AnalysisConfig,
    AnalysisWarning,
    BucketStateTotals,
    ConvertedTime,
    DateRange,
    EntryRecord,
    IntervalReport,
    IntervalSlot,
    ParsedTime,
    ReportMetadata,
    RunDiagnostics,
    ScheduleEntry,
    StateTotals,
    TimeBucket,
    WarningType,
    generate_buckets,
)
from schedaudit.domain.policies import (
    DayOffPolicy,
    DefaultDayOffPolicy,
    DefaultMatchingPolicy,
    MatchingPolicy,
)
from schedaudit.domain.state_config import (
    DEFAULT_STATES,
    CanonicalState,
    StateConfig,
    auto_assign_group,
)

__all__ = [
    # Constants
    "BUCKET_MINUTES",
    "BUCKETS_PER_DAY",
    "MINUTES_PER_DAY",
    # Models
    "AnalysisConfig",
    "AnalysisWarning",
    "BucketStateTotals",
    "ConvertedTime",
    "DateRange",
    "EntryRecord",
    "IntervalReport",
    "IntervalSlot",
    "ParsedTime",
    "ReportMetadata",
    "RunDiagnostics",
    "ScheduleEntry",
    "StateTotals",
    "TimeBucket",
    "WarningType",
    "generate_buckets",
    # Policies
    "DayOffPolicy",
    "DefaultDayOffPolicy",
    "DefaultMatchingPolicy",
    "MatchingPolicy",
    # State configuration
    "CanonicalState",
    "DEFAULT_STATES",
    "StateConfig",
    "auto_assign_group",
]
