"""Tests for before/after schedule comparison."""

from datetime import date

import pytest

from schedaudit.analysis.aggregator import ScheduleAggregator
from schedaudit.analysis.comparison import MetricDelta, compare_schedules
from schedaudit.domain.models import ScheduleEntry


def _entry(agent, state, start, end, duration):
    return ScheduleEntry(
        site="Site 1",
        timezone="EST",
        team="Team A",
        agent=agent,
        date="11/15/2024",
        schedule_state=state,
        start_time=start,
        end_time=end,
        duration=duration,
    )


class TestCompareSchedules:
    """Tests for compare_schedules."""

    @pytest.fixture
    def previous(self):
        entries = [
            _entry("A1", "Break", "10:00 AM", "10:15 AM", "0:15"),
            _entry("A2", "Break", "10:00 AM", "10:15 AM", "0:15"),
            _entry("A3", "Meeting", "2:00 PM", "3:00 PM", "1:00"),
        ]
        return ScheduleAggregator().process_schedule_data(entries, date(2024, 11, 15))

    @pytest.fixture
    def updated(self):
        entries = [
            _entry("A1", "Break", "10:00 AM", "10:15 AM", "0:15"),
            _entry("A2", "Break", "10:00 AM", "10:15 AM", "0:15"),
            _entry("A3", "Break", "10:00 AM", "10:15 AM", "0:15"),
            _entry("A3", "Lunch", "12:00 PM", "12:30 PM", "0:30"),
        ]
        return ScheduleAggregator().process_schedule_data(entries, date(2024, 11, 15))

    def test_state_deltas(self, previous, updated):
        comparison = compare_schedules(previous, updated)
        delta = comparison.states["Break"]

        assert delta.previous_duration == 30
        assert delta.updated_duration == 45
        assert delta.duration_difference == 15
        assert delta.agent_difference == 1

    def test_state_membership(self, previous, updated):
        comparison = compare_schedules(previous, updated)

        assert list(comparison.states) == ["Break", "Meeting", "Lunch"]
        assert comparison.common_states == ["Break"]
        assert comparison.unique_to_previous == ["Meeting"]
        assert comparison.unique_to_updated == ["Lunch"]
        assert comparison.states["Meeting"].duration_difference == -60

    def test_interval_deltas(self, previous, updated):
        comparison = compare_schedules(previous, updated)

        assert len(comparison.intervals) == 48
        assert comparison.intervals[20].states["Break"].duration_difference == 15
        assert comparison.intervals[28].states["Meeting"].updated_duration == 0
        assert comparison.intervals[0].states == {}

    def test_summary(self, previous, updated):
        data = compare_schedules(previous, updated).to_dict()
        summary = data["summary"]

        assert summary["totalStatesPrevious"] == 2
        assert summary["totalStatesUpdated"] == 2
        assert summary["totalDurationDifference"] == -15
        assert data["stateComparisons"]["Lunch"]["difference"] == {
            "duration": 30,
            "agentCount": 1,
        }

    def test_identical_reports(self, previous):
        comparison = compare_schedules(previous, previous)

        assert comparison.total_duration_difference == 0
        assert comparison.unique_to_previous == []
        assert comparison.unique_to_updated == []


class TestMetricDelta:
    """Tests for MetricDelta."""

    def test_defaults(self):
        delta = MetricDelta()
        assert delta.duration_difference == 0
        assert delta.agent_difference == 0

    def test_to_dict(self):
        delta = MetricDelta(10, 25, 1, 3)
        assert delta.to_dict()["difference"] == {"duration": 15, "agentCount": 2}
