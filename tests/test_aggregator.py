"""Tests for schedule aggregation."""

import logging
from datetime import date

import pytest

from schedaudit.analysis.aggregator import ScheduleAggregator
from schedaudit.domain.models import AnalysisConfig, DateRange, ScheduleEntry, WarningType
from schedaudit.domain.state_config import CanonicalState, StateConfig


def _entry(agent, state, start, end, duration="", entry_date="11/15/2024", timezone="EST"):
    return ScheduleEntry(
        site="Site 1",
        timezone=timezone,
        team="Team A",
        agent=agent,
        date=entry_date,
        schedule_state=state,
        start_time=start,
        end_time=end,
        duration=duration,
    )


class TestScheduleAggregator:
    """Tests for ScheduleAggregator.process_schedule_data."""

    @pytest.fixture
    def aggregator(self):
        return ScheduleAggregator()

    @pytest.fixture
    def entries(self):
        return [
            _entry("A1", "Break", "10:00 AM", "10:15 AM", "0:15"),
            _entry("A2", "break - 15 mins", "10:00 AM", "10:15 AM", "0:15"),
            _entry("A3", "Team Meeting", "2:00 PM", "3:00 PM", "1:00"),
            _entry("A1", "Lunch", "12:00 PM", "12:30 PM", "0:30"),
        ]

    def test_state_totals(self, aggregator, entries):
        report = aggregator.process_schedule_data(entries, date(2024, 11, 15))

        assert report.state_names == ["Break", "Meeting", "Lunch"]
        assert report.state_totals["Break"].total_duration == 30
        assert report.state_totals["Break"].agent_count == 2
        assert report.state_totals["Break"].count == 2
        assert report.state_totals["Meeting"].total_duration == 60
        assert report.total_duration == 120

    def test_bucket_totals(self, aggregator, entries):
        report = aggregator.process_schedule_data(entries, date(2024, 11, 15))

        slot = report.get_interval(20)
        assert slot.states["Break"].total_duration == 30
        assert slot.states["Break"].agents == {"A1", "A2"}
        assert report.get_interval(28).states["Meeting"].total_duration == 30
        assert report.get_interval(29).states["Meeting"].total_duration == 30
        assert report.get_interval(0).states == {}
        assert len(report.intervals) == 48

    def test_bucket_sums_match_state_totals(self, aggregator, entries):
        report = aggregator.process_schedule_data(entries, date(2024, 11, 15))
        assert sum(report.get_duration_timeline()) == pytest.approx(report.total_duration)

    def test_metadata(self, aggregator, entries):
        entries.append(_entry("A4", "Break", "10:00 AM", "10:15 AM", "0:15", "11/14/2024"))
        report = aggregator.process_schedule_data(entries, date(2024, 11, 15))
        meta = report.metadata

        assert meta.total_entries == 5
        assert meta.processed_entries == 4
        assert meta.skipped_entries == 1
        assert meta.excluded_entries == 0
        assert meta.unique_agents == 3
        assert meta.unique_states == ["Break", "Meeting", "Lunch"]
        assert meta.date_range == DateRange(date(2024, 11, 14), date(2024, 11, 15))
        assert meta.target_date == date(2024, 11, 15)
        assert meta.reference_timezone == "America/New_York"

    def test_unparsable_rows_are_skipped(self, aggregator, entries):
        entries.append(_entry("A5", "Break", "soon", "later", "0:15"))
        report = aggregator.process_schedule_data(entries, date(2024, 11, 15))

        assert report.metadata.processed_entries == 4
        assert report.metadata.skipped_entries == 1
        assert [w.warning_type for w in report.metadata.warnings] == [
            WarningType.UNPARSABLE_TIME
        ]

    def test_day_off_entries_excluded(self, aggregator, entries):
        entries.append(_entry("A1", "Day Off", "FULL DAY", "FULL DAY", "8:00"))
        report = aggregator.process_schedule_data(entries, date(2024, 11, 15))

        assert report.metadata.excluded_entries == 2
        assert report.state_totals["Break"].agents == {"A2"}
        assert "Lunch" not in report.state_totals
        assert report.state_totals["Time Off"].total_duration == 480

    def test_unmatched_labels_keep_their_name(self, aggregator):
        report = aggregator.process_schedule_data(
            [_entry("A1", " Coaching Session ", "9:00 AM", "9:30 AM", "0:30")],
            date(2024, 11, 15),
        )
        assert report.state_names == ["Coaching Session"]

    def test_without_target_date(self, aggregator):
        entries = [
            _entry("A1", "Work", "11:00 PM", "+1:00 AM", "2:00"),
            _entry("A2", "Work", "9:00 AM", "9:30 AM", "0:30", "11/16/2024"),
        ]
        report = aggregator.process_schedule_data(entries)

        assert report.metadata.target_date is None
        assert report.state_totals["Work"].total_duration == 150
        assert report.get_interval(0).states["Work"].total_duration == 30
        assert report.get_interval(18).states["Work"].total_duration == 30

    def test_timezone_conversion(self, aggregator):
        report = aggregator.process_schedule_data(
            [_entry("A1", "Break", "11:30 PM", "+12:00 AM", "0:30", timezone="Asia_Kolkata")],
            date(2024, 11, 15),
        )
        assert report.get_interval(26).states["Break"].total_duration == 30

    def test_input_is_not_modified(self, aggregator, entries):
        snapshot = list(entries)
        aggregator.process_schedule_data(entries, date(2024, 11, 15))
        assert entries == snapshot

    def test_empty_input(self, aggregator):
        report = aggregator.process_schedule_data([], date(2024, 11, 15))

        assert report.state_totals == {}
        assert report.metadata.total_entries == 0
        assert report.metadata.date_range is None
        assert len(report.intervals) == 48

    def test_state_config_override(self, aggregator, entries):
        config = StateConfig(states=(CanonicalState("Team Meeting", "Meeting"),))
        report = aggregator.process_schedule_data(entries, date(2024, 11, 15), config)

        assert "Team Meeting" in report.state_totals
        assert "break - 15 mins" in report.state_totals

    def test_reference_timezone_setting(self):
        aggregator = ScheduleAggregator(config=AnalysisConfig(reference_timezone="Asia/Kolkata"))
        report = aggregator.process_schedule_data(
            [_entry("A1", "Break", "1:00 PM", "1:30 PM", "0:30")],
            date(2024, 11, 15),
        )

        assert report.metadata.reference_timezone == "Asia/Kolkata"
        # 1:00 PM in New York is 11:30 PM in Kolkata, cut off at 23:59.
        assert report.get_interval(47).states["Break"].total_duration == 29

    def test_repeated_runs_match(self, aggregator):
        entries = [
            _entry("A1", "Break", "10:00 AM", "10:15 AM", "0:15"),
            _entry("A2", "Team Meeting", "11:30 PM", "+12:30 AM", "1:00", timezone="IST"),
            _entry("A3", "Lunch", "1:00 AM", "1:30 AM", "0:30", "11/16/2024", "Asia_Manila"),
            _entry("A4", "Break", "11:45 PM", "+12:15 AM", "0:30", timezone="Asia_Kolkata"),
        ]
        first = aggregator.process_schedule_data(entries, date(2024, 11, 15))
        second = aggregator.process_schedule_data(entries, date(2024, 11, 15))

        assert first.to_dict() == second.to_dict()

    def test_failed_conversion_counted_once_per_entry(self, aggregator):
        report = aggregator.process_schedule_data(
            [
                _entry("A1", "Break", "10:00 AM", "10:30 AM", "0:30", timezone="Mars/Olympus"),
                _entry("A2", "Break", "11:00 AM", "11:30 AM", "0:30", timezone="Mars/Olympus"),
            ],
            date(2024, 11, 15),
        )
        warnings = [w.warning_type for w in report.metadata.warnings]

        assert warnings.count(WarningType.CONVERSION_FAILURE) == 2

    def test_unknown_timezone_logged_once(self, aggregator, caplog):
        caplog.set_level(logging.WARNING, logger="schedaudit")
        report = aggregator.process_schedule_data(
            [
                _entry("A1", "Day Off", "FULL DAY", "FULL DAY", "8:00", timezone="Moonbase"),
                _entry("A1", "Break", "10:00 AM", "10:15 AM", "0:15", timezone="Moonbase"),
                _entry("A2", "Break", "10:00 AM", "10:15 AM", "0:15", timezone="Moonbase"),
            ]
        )
        logged = [
            r for r in caplog.records
            if r.levelno == logging.WARNING and "Unknown timezone" in r.getMessage()
        ]
        warnings = [w.warning_type for w in report.metadata.warnings]

        assert len(logged) == 1
        assert report.metadata.excluded_entries == 1
        assert warnings.count(WarningType.UNKNOWN_TIMEZONE) == 2

    def test_to_dict(self, aggregator, entries):
        data = aggregator.process_schedule_data(entries, date(2024, 11, 15)).to_dict()

        assert data["stateTotals"]["Break"] == {
            "totalDuration": 30,
            "totalAgents": 2,
            "totalCount": 2,
        }
        assert data["metadata"]["targetDate"] == "11/15/2024"
        assert len(data["intervals"]) == 48


class TestReportProjections:
    """Tests for state filtering, group views and breakdowns."""

    @pytest.fixture
    def aggregator(self):
        return ScheduleAggregator()

    @pytest.fixture
    def report(self, aggregator):
        entries = [
            _entry("A1", "Break", "10:00 AM", "10:15 AM", "0:15"),
            _entry("A2", "Break 15", "10:00 AM", "10:15 AM", "0:14:30"),
            _entry("A3", "Meeting", "10:00 AM", "11:00 AM", "1:00"),
            _entry("A1", "Lunch", "12:00 PM", "12:30 PM", "0:30"),
        ]
        return aggregator.process_schedule_data(entries, date(2024, 11, 15))

    def test_filter_by_canonical_states(self, aggregator, report):
        filtered = aggregator.filter_by_canonical_states(report, ["break", "LUNCH"])

        assert filtered.state_names == ["Break", "Lunch"]
        assert set(filtered.get_interval(20).states) == {"Break"}
        assert filtered.metadata is report.metadata
        assert report.state_names == ["Break", "Meeting", "Lunch"]

    def test_filter_with_empty_selection(self, aggregator, report):
        assert aggregator.filter_by_canonical_states(report, []) is report

    def test_group_views(self, aggregator, report):
        views = aggregator.group_views(report)

        assert views["BREAK"].state_names == ["Break", "Lunch"]
        assert views["MEETING, TRAINING and COACHING"].state_names == ["Meeting"]
        assert views["INBOUND ACTIVITY"].state_names == []
        assert "SYSTEM" not in views

    def test_state_breakdown(self, aggregator, report):
        breakdown = aggregator.build_state_breakdown(report, "break")

        assert breakdown.rows == 2
        assert breakdown.total_source_minutes == 30
        assert breakdown.total_applied_minutes == 30
        assert {r.agent for r in breakdown.records} == {"A1", "A2"}
