"""Interval allocation, aggregation and schedule comparison."""

from schedaudit.analysis.aggregator import ScheduleAggregator, StateBreakdown
from schedaudit.analysis.allocator import IntervalAllocator, overlap_minutes
from schedaudit.analysis.comparison import (
    IntervalComparison,
    MetricDelta,
    ScheduleComparison,
    compare_schedules,
)
from schedaudit.analysis.day_off_filter import DayOffExclusionFilter, FilterResult

__all__ = [
    "DayOffExclusionFilter",
    "FilterResult",
    "IntervalAllocator",
    "IntervalComparison",
    "MetricDelta",
    "ScheduleAggregator",
    "ScheduleComparison",
    "StateBreakdown",
    "compare_schedules",
    "overlap_minutes",
]
