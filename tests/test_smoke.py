"""Smoke tests for the end-to-end analysis flow."""

import json
import sys
from datetime import date

import pytest

from schedaudit import cli
from schedaudit.analysis.aggregator import ScheduleAggregator
from schedaudit.io.reader import read_schedule_csv
from schedaudit.output.audit_generator import AuditGenerator
from schedaudit.output.pdf_generator import PDFGenerator
from schedaudit.validation.validator import EntryValidator

HEADER = "Site,Time zone,Team,Agent,Date,Schedule State,Start Time,End Time,Duration,Paid Hours"


def _write_export(path, rows):
    path.write_text("\n".join([HEADER] + rows) + "\n", encoding="utf-8")
    return path


class TestSmoke:
    """End-to-end smoke tests for the analysis pipeline."""

    @pytest.fixture
    def export_path(self, tmp_path):
        return _write_export(
            tmp_path / "schedule.csv",
            [
                "Manila,Asia_Manila,Alpha - North,A1,11/16/2024,Break,1:00 AM,1:15 AM,0:15,0:15",
                "Manila,Asia_Manila,Alpha - North,A2,11/16/2024,Break 15 mins,1:00 AM,1:15 AM,0:15,0:15",
                "Pune,IST,Bravo,A3,11/15/2024,Team Meeting,11:30 PM,+12:30 AM,1:00,1:00",
                "Pune,IST,Bravo,A4,11/15/2024,Day Off,FULL DAY,FULL DAY,8:00,8:00",
                "Pune,IST,Bravo,A4,11/15/2024,Break,10:00 AM,10:15 AM,0:15,0:15",
                "Denver,MST,Charlie,A5,11/15/2024,Lunch,soon,later,0:30,0:00",
                "Denver,MST,Charlie,,11/15/2024,Lunch,12:00 PM,12:30 PM,0:30,0:00",
            ],
        )

    @pytest.fixture
    def report(self, export_path):
        result = EntryValidator().validate_rows(read_schedule_csv(export_path))
        return ScheduleAggregator().process_schedule_data(
            result.require_entries(), date(2024, 11, 15)
        )

    def test_pipeline(self, export_path):
        result = EntryValidator().validate_rows(read_schedule_csv(export_path))

        assert len(result.entries) == 6
        assert result.rejected_rows == 1

    def test_report(self, report):
        meta = report.metadata

        assert meta.total_entries == 6
        assert meta.excluded_entries == 1
        assert meta.skipped_entries == 1
        assert meta.processed_entries == 4
        assert report.state_names == ["Break", "Meeting", "Time Off"]
        # Manila 1:00 AM on 11/16 is 12:00 PM on 11/15 in New York.
        assert report.get_interval(24).states["Break"].agent_count == 2
        # Pune 11:30 PM is 1:00 PM in New York.
        assert report.get_interval(26).states["Meeting"].total_duration == 30

    def test_audit_output(self, report, tmp_path):
        path = tmp_path / "audit.txt"
        content = AuditGenerator().generate(report, path)

        assert path.read_text(encoding="utf-8") == content
        assert "SCHEDULE AUDIT - 11/15/2024 (America/New_York)" in content
        assert "Excluded (day off): 1" in content
        assert "unparsable_time: 1" in content
        assert "TZ Converted" in content

    def test_audit_flags_large_differences(self, tmp_path):
        path = _write_export(
            tmp_path / "schedule.csv",
            ["Denver,EST,Charlie,A5,11/15/2024,Meeting,9:00 AM,11:00 AM,1:00,1:00"],
        )
        entries = EntryValidator().validate_rows(read_schedule_csv(path)).require_entries()
        report = ScheduleAggregator().process_schedule_data(entries, date(2024, 11, 15))
        content = AuditGenerator().generate_to_string(report)

        assert "!1:00 (+)" in content
        assert "Entries with |difference| > 30 min: 1" in content

    def test_pdf_output(self, report, tmp_path):
        pytest.importorskip("reportlab")
        path = tmp_path / "report.pdf"
        PDFGenerator().generate(report, path)

        assert path.read_bytes().startswith(b"%PDF")

    def test_pdf_comparison_buffer(self, report):
        pytest.importorskip("reportlab")
        filtered = ScheduleAggregator.filter_by_canonical_states(report, ["Break"])
        buffer = PDFGenerator().generate_to_buffer(filtered, comparison_report=report)

        assert buffer.getvalue().startswith(b"%PDF")


class TestCli:
    """Tests for the command-line entry point."""

    @pytest.fixture
    def export_path(self, tmp_path):
        return _write_export(
            tmp_path / "schedule.csv",
            [
                "Pune,IST,Bravo,A3,11/15/2024,Team Meeting,11:30 PM,+12:30 AM,1:00,1:00",
                "Pune,IST,Bravo,A4,11/15/2024,Break,10:00 PM,10:15 PM,0:15,0:15",
            ],
        )

    def _run(self, monkeypatch, *args):
        monkeypatch.setattr(sys, "argv", ["schedaudit", *args])
        return cli.main()

    def test_analyze_writes_json_and_audit(self, monkeypatch, tmp_path, export_path):
        json_path = tmp_path / "report.json"
        audit_path = tmp_path / "audit.txt"
        code = self._run(
            monkeypatch,
            "analyze",
            str(export_path),
            "--date",
            "11/15/2024",
            "--json",
            str(json_path),
            "--audit",
            str(audit_path),
        )

        assert code == 0
        data = json.loads(json_path.read_text(encoding="utf-8"))
        assert set(data["stateTotals"]) == {"Meeting", "Break"}
        assert audit_path.exists()

    def test_analyze_state_selection(self, monkeypatch, tmp_path, export_path):
        json_path = tmp_path / "report.json"
        code = self._run(
            monkeypatch, "analyze", str(export_path), "--states", "break", "--json", str(json_path)
        )

        assert code == 0
        assert set(json.loads(json_path.read_text(encoding="utf-8"))["stateTotals"]) == {"Break"}

    def test_compare(self, monkeypatch, tmp_path, export_path):
        after = _write_export(
            tmp_path / "after.csv",
            ["Pune,IST,Bravo,A4,11/15/2024,Break,10:00 PM,10:30 PM,0:30,0:30"],
        )
        json_path = tmp_path / "compare.json"
        code = self._run(
            monkeypatch, "compare", str(export_path), str(after), "--json", str(json_path)
        )

        assert code == 0
        summary = json.loads(json_path.read_text(encoding="utf-8"))["summary"]
        assert summary["uniqueToPrevious"] == ["Meeting"]
        assert summary["commonStates"] == ["Break"]

    def test_states(self, monkeypatch, capsys):
        assert self._run(monkeypatch, "states") == 0
        assert "Time Off" in capsys.readouterr().out

    def test_missing_file(self, monkeypatch, tmp_path):
        assert self._run(monkeypatch, "analyze", str(tmp_path / "missing.csv")) == 1

    def test_no_command(self, monkeypatch):
        assert self._run(monkeypatch) == 1

    def test_invalid_date(self, monkeypatch, export_path):
        with pytest.raises(SystemExit):
            self._run(monkeypatch, "analyze", str(export_path), "--date", "someday")
