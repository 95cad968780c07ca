"""Audit text output for interval reports.

This module creates text-based audit output to check:
- How every processed entry was converted, clamped and allocated
- Where the computed span disagrees with the source duration
- Which rows were degraded or skipped, and why
- How allocated minutes are distributed across the day
"""

from collections import Counter
from pathlib import Path
from typing import Union

from schedaudit.domain.models import EntryRecord, IntervalReport
from schedaudit.parsing.time_parser import format_date, format_duration


class AuditGenerator:
    """Generates audit text output for an interval report.

    Creates human-readable text showing:
    - Run metadata and warning counts
    - Per-entry source vs. reference times with notes
    - Per-state totals and an interval histogram

    Attributes:
        large_difference_minutes: Span/duration mismatch above which an
            entry is marked with "!".
    """

    def __init__(self, large_difference_minutes: int = 30):
        self.large_difference_minutes = large_difference_minutes

    def generate(self, report: IntervalReport, output_path: Union[str, Path]) -> str:
        """Generate audit text output and save to file.

        Args:
            report: The report to audit.
            output_path: Path to save the text file.

        Returns:
            The generated text content.
        """
        content = self._generate_content(report)
        Path(output_path).write_text(content, encoding="utf-8")
        return content

    def generate_to_string(self, report: IntervalReport) -> str:
        """Generate audit text output and return as string."""
        return self._generate_content(report)

    def _generate_content(self, report: IntervalReport) -> str:
        """Generate the full audit content."""
        meta = report.metadata
        lines = []

        # Header
        lines.append("=" * 120)
        scope = format_date(meta.target_date) if meta.target_date else "all dates"
        lines.append(f"SCHEDULE AUDIT - {scope} ({meta.reference_timezone})")
        lines.append("=" * 120)
        lines.append("")

        # Basic stats
        lines.append(f"Total Entries: {meta.total_entries}")
        lines.append(f"Processed: {meta.processed_entries}")
        lines.append(f"Skipped: {meta.skipped_entries}")
        lines.append(f"Excluded (day off): {meta.excluded_entries}")
        lines.append(f"Unique Agents: {meta.unique_agents}")
        if meta.date_range:
            lines.append(
                f"Source Dates: {format_date(meta.date_range.start)} - "
                f"{format_date(meta.date_range.end)}"
            )
        lines.append("")

        # Per-entry audit table
        lines.append("-" * 120)
        lines.append("PROCESSED ENTRIES (source vs. reference time)")
        lines.append("-" * 120)
        lines.append(
            f"{'Agent':<16} {'State':<18} {'Source':<24} {'Reference':<34} "
            f"{'Src':>6} {'Ref':>6} {'Diff':>8}  Notes"
        )
        lines.append("-" * 120)
        for record in report.processed_entries:
            lines.append(self._format_record(record))

        large = [
            r
            for r in report.processed_entries
            if r.has_large_difference(self.large_difference_minutes)
        ]
        lines.append("")
        lines.append(
            f"Entries with |difference| > {self.large_difference_minutes} min: {len(large)}"
        )
        lines.append("")

        # State totals
        lines.append("-" * 120)
        lines.append("STATE TOTALS")
        lines.append("-" * 120)
        for name, totals in report.state_totals.items():
            lines.append(
                f"{name[:30]:<30} {format_duration(totals.total_duration):>8}  "
                f"{totals.agent_count:>4} agents  {totals.count:>4} entries"
            )
        lines.append("")

        # Warnings
        lines.append("-" * 120)
        lines.append("WARNINGS")
        lines.append("-" * 120)
        if meta.warnings:
            counts = Counter(w.warning_type.value for w in meta.warnings)
            for warning_type, count in sorted(counts.items()):
                lines.append(f"  {warning_type}: {count}")
            lines.append("")
            for warning in meta.warnings:
                lines.append(f"  {warning}")
        else:
            lines.append("  none")
        lines.append("")

        # Interval histogram
        lines.append("-" * 120)
        lines.append("MINUTES PER INTERVAL")
        lines.append("-" * 120)
        timeline = report.get_duration_timeline()
        peak = max(timeline) if timeline else 0
        for slot, minutes in zip(report.intervals, timeline):
            if minutes <= 0:
                lines.append(f"{slot.bucket.label:>8}: .")
                continue
            width = max(1, round(60 * minutes / peak)) if peak else 0
            lines.append(f"{slot.bucket.label:>8}: {'#' * width} ({minutes:.0f})")

        lines.append("")
        lines.append("=" * 120)
        lines.append("END OF AUDIT OUTPUT")
        lines.append("=" * 120)

        return "\n".join(lines)

    def _format_record(self, record: EntryRecord) -> str:
        entry = record.entry
        data = record.to_dict()
        source = f"{entry.date} {entry.start_time}-{entry.end_time}"
        reference = (
            f"{data['referenceStartDate']} {data['referenceStartTime']}-"
            f"{data['referenceEndTime']}"
        )
        source_minutes = (
            format_duration(record.source_duration_minutes)
            if record.source_duration_parsed
            else "-"
        )
        difference = record.duration_difference
        diff_text = f"{format_duration(abs(difference))} ({'-' if difference < 0 else '+'})"
        if record.has_large_difference(self.large_difference_minutes):
            diff_text = "!" + diff_text
        notes = ", ".join(record.notes) or "-"
        return (
            f"{entry.agent[:16]:<16} {record.normalized_state[:18]:<18} {source[:24]:<24} "
            f"{reference[:34]:<34} {source_minutes:>6} "
            f"{format_duration(record.reference_span_minutes):>6} {diff_text:>8}  {notes}"
        )
