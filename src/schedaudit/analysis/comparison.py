"""Before/after comparison of two interval reports."""

from dataclasses import dataclass, field
from typing import Any

from schedaudit.domain.models import IntervalReport, TimeBucket


@dataclass(frozen=True)
class MetricDelta:
    """Duration and agent count of one state in both reports."""

    previous_duration: float = 0.0
    updated_duration: float = 0.0
    previous_agents: int = 0
    updated_agents: int = 0

    @property
    def duration_difference(self) -> float:
        return self.updated_duration - self.previous_duration

    @property
    def agent_difference(self) -> int:
        return self.updated_agents - self.previous_agents

    def to_dict(self) -> dict[str, Any]:
        return {
            "previous": {
                "totalDuration": self.previous_duration,
                "agentCount": self.previous_agents,
            },
            "updated": {
                "totalDuration": self.updated_duration,
                "agentCount": self.updated_agents,
            },
            "difference": {
                "duration": self.duration_difference,
                "agentCount": self.agent_difference,
            },
        }


@dataclass
class IntervalComparison:
    bucket: TimeBucket
    states: dict[str, MetricDelta] = field(default_factory=dict)

    @property
    def duration_difference(self) -> float:
        return sum(delta.duration_difference for delta in self.states.values())


@dataclass
class ScheduleComparison:
    """Result of comparing a previous and an updated schedule.

    Attributes:
        intervals: Per-bucket state deltas, in bucket order.
        states: Per-state deltas over the whole run.
        common_states: States with time in both reports.
        unique_to_previous: States with time only in the previous report.
        unique_to_updated: States with time only in the updated report.
    """

    intervals: list[IntervalComparison] = field(default_factory=list)
    states: dict[str, MetricDelta] = field(default_factory=dict)
    common_states: list[str] = field(default_factory=list)
    unique_to_previous: list[str] = field(default_factory=list)
    unique_to_updated: list[str] = field(default_factory=list)
    total_states_previous: int = 0
    total_states_updated: int = 0

    @property
    def total_duration_difference(self) -> float:
        return sum(delta.duration_difference for delta in self.states.values())

    @property
    def total_agent_difference(self) -> int:
        return sum(delta.agent_difference for delta in self.states.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "intervals": [
                {
                    "interval": item.bucket.to_dict(),
                    "states": {name: d.to_dict() for name, d in item.states.items()},
                }
                for item in self.intervals
            ],
            "stateComparisons": {name: d.to_dict() for name, d in self.states.items()},
            "summary": {
                "totalStatesPrevious": self.total_states_previous,
                "totalStatesUpdated": self.total_states_updated,
                "commonStates": list(self.common_states),
                "uniqueToPrevious": list(self.unique_to_previous),
                "uniqueToUpdated": list(self.unique_to_updated),
                "totalDurationDifference": self.total_duration_difference,
                "totalAgentDifference": self.total_agent_difference,
            },
        }


def _state_names(previous: dict, updated: dict) -> list[str]:
    names = list(previous.keys())
    names.extend(name for name in updated.keys() if name not in previous)
    return names


def compare_schedules(previous: IntervalReport, updated: IntervalReport) -> ScheduleComparison:
    """Compare two reports bucket by bucket and state by state.

    Args:
        previous: Report of the earlier schedule.
        updated: Report of the later schedule.

    Returns:
        ScheduleComparison with every state present in either report.
    """
    comparison = ScheduleComparison(
        total_states_previous=len(previous.state_totals),
        total_states_updated=len(updated.state_totals),
    )

    for before, after in zip(previous.intervals, updated.intervals):
        item = IntervalComparison(bucket=before.bucket)
        for name in _state_names(before.states, after.states):
            old = before.states.get(name)
            new = after.states.get(name)
            item.states[name] = MetricDelta(
                previous_duration=old.total_duration if old else 0.0,
                updated_duration=new.total_duration if new else 0.0,
                previous_agents=old.agent_count if old else 0,
                updated_agents=new.agent_count if new else 0,
            )
        comparison.intervals.append(item)

    for name in _state_names(previous.state_totals, updated.state_totals):
        old = previous.state_totals.get(name)
        new = updated.state_totals.get(name)
        delta = MetricDelta(
            previous_duration=old.total_duration if old else 0.0,
            updated_duration=new.total_duration if new else 0.0,
            previous_agents=old.agent_count if old else 0,
            updated_agents=new.agent_count if new else 0,
        )
        comparison.states[name] = delta

        if delta.previous_duration > 0 and delta.updated_duration > 0:
            comparison.common_states.append(name)
        elif delta.previous_duration > 0:
            comparison.unique_to_previous.append(name)
        elif delta.updated_duration > 0:
            comparison.unique_to_updated.append(name)

    return comparison
