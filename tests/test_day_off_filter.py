"""Tests for the day-off exclusion filter."""

from datetime import date

import pytest

from schedaudit.analysis.day_off_filter import DayOffExclusionFilter
from schedaudit.domain.models import ScheduleEntry
from schedaudit.domain.policies import DefaultDayOffPolicy
from schedaudit.domain.state_config import CanonicalState, StateConfig


def _entry(agent, state, start, end, entry_date="11/15/2024", timezone="America/New_York"):
    return ScheduleEntry(
        site="Site 1",
        timezone=timezone,
        team="Team A",
        agent=agent,
        date=entry_date,
        schedule_state=state,
        start_time=start,
        end_time=end,
    )


class TestDayOffExclusionFilter:
    """Tests for DayOffExclusionFilter."""

    @pytest.fixture
    def day_off_filter(self):
        return DayOffExclusionFilter(StateConfig.default())

    @pytest.fixture
    def entries(self):
        return [
            _entry("A1", "Day Off", "FULL DAY", "FULL DAY"),
            _entry("A1", "Break", "10:00 AM", "10:15 AM"),
            _entry("A2", "Break", "10:00 AM", "10:15 AM"),
            _entry("A1", "Meeting", "2:00 PM", "3:00 PM", entry_date="11/16/2024"),
        ]

    def test_day_off_family(self, day_off_filter):
        assert day_off_filter.is_day_off_entry(_entry("A1", "Day Off", "FULL DAY", "FULL DAY"))
        assert day_off_filter.is_day_off_entry(_entry("A1", "Time Off", "FULL DAY", "FULL DAY"))
        assert day_off_filter.is_day_off_entry(_entry("A1", "Vacation", "FULL DAY", "FULL DAY"))
        assert not day_off_filter.is_day_off_entry(_entry("A1", "Break", "FULL DAY", "FULL DAY"))

    def test_full_day_detection(self, day_off_filter):
        assert day_off_filter.is_full_day_entry(_entry("A1", "Day Off", "Full Day", ""))
        assert not day_off_filter.is_full_day_entry(_entry("A1", "Day Off", "9:00 AM", "5:00 PM"))

    def test_target_date_excludes_agent(self, day_off_filter, entries):
        result = day_off_filter.filter(entries, date(2024, 11, 15))

        assert result.excluded_keys == {"A1"}
        assert result.kept == [entries[0], entries[2]]
        assert result.excluded == [entries[1], entries[3]]

    def test_day_off_on_other_date(self, day_off_filter, entries):
        result = day_off_filter.filter(entries, date(2024, 11, 16))

        assert result.excluded_keys == set()
        assert result.kept == entries

    def test_without_target_keys_by_date(self, day_off_filter, entries):
        result = day_off_filter.filter(entries)

        assert result.excluded_keys == {("A1", date(2024, 11, 15))}
        assert result.excluded == [entries[1]]
        assert entries[3] in result.kept

    def test_partial_day_off_does_not_exclude(self, day_off_filter):
        entries = [
            _entry("A1", "PTO", "9:00 AM", "1:00 PM"),
            _entry("A1", "Break", "2:00 PM", "2:15 PM"),
        ]
        result = day_off_filter.filter(entries, date(2024, 11, 15))

        assert result.excluded == []
        assert result.kept == entries

    def test_full_day_non_day_off_does_not_exclude(self, day_off_filter):
        entries = [
            _entry("A1", "Training", "FULL DAY", "FULL DAY"),
            _entry("A1", "Break", "2:00 PM", "2:15 PM"),
        ]
        assert day_off_filter.filter(entries, date(2024, 11, 15)).excluded == []

    def test_reference_date_is_converted(self, day_off_filter):
        """A Kolkata start at 2:00 AM falls on the previous New York day."""
        entry = _entry("A1", "Break", "2:00 AM", "2:15 AM", "11/16/2024", "Asia/Kolkata")
        assert day_off_filter.reference_date(entry) == date(2024, 11, 15)

    def test_reference_date_unparsable(self, day_off_filter):
        assert day_off_filter.reference_date(_entry("A1", "Break", "x", "y")) is None
        assert (
            day_off_filter.reference_date(_entry("A1", "Day Off", "FULL DAY", "", "bad"))
            is None
        )

    def test_configured_group_counts_as_day_off(self):
        config = StateConfig(
            states=(CanonicalState("Holiday", "Other", "DAY OFF"),),
        )
        day_off_filter = DayOffExclusionFilter(config)
        assert day_off_filter.is_day_off_entry(_entry("A1", "Holiday", "FULL DAY", ""))

    def test_custom_policy(self):
        policy = DefaultDayOffPolicy(categories=frozenset(), groups=frozenset(), keywords=())
        day_off_filter = DayOffExclusionFilter(StateConfig.default(), policy=policy)
        assert not day_off_filter.is_day_off_entry(_entry("A1", "Day Off", "FULL DAY", ""))
