"""PDF generation for interval reports.

This module creates printable PDF reports showing:
- Per-interval minutes and agent counts for every state
- Before/after columns with deltas when two reports are compared
- State totals and a duration-by-interval chart
"""

from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from schedaudit.domain.models import IntervalReport, IntervalSlot
from schedaudit.parsing.time_parser import format_date, format_duration

# Cycled per state, in report order (RGB tuples, 0-1 scale)
STATE_COLORS = [
    (0.4, 0.7, 0.4),  # Green
    (0.4, 0.4, 0.8),  # Blue
    (0.8, 0.6, 0.2),  # Orange
    (0.7, 0.4, 0.7),  # Purple
    (0.6, 0.6, 0.6),  # Gray
    (1.0, 0.9, 0.5),  # Yellow
    (0.9, 0.7, 0.7),  # Pink
]
HEADER_FILL = (0.9, 0.9, 0.9)
INCREASE_COLOR = (0.1, 0.5, 0.1)
DECREASE_COLOR = (0.7, 0.1, 0.1)


def _load_reportlab():
    try:
        from reportlab.lib.pagesizes import landscape, letter
        from reportlab.pdfgen import canvas
    except ImportError:
        raise ImportError(
            "reportlab is required for PDF generation. "
            "Install with: pip install reportlab"
        )
    return canvas, landscape(letter)


class PDFGenerator:
    """Generates printable PDF interval reports.

    With a single report every state gets one column of
    "minutes (agents)" per interval. With a comparison report each state
    gets previous, updated and delta columns.

    Example:
        >>> generator = PDFGenerator()
        >>> generator.generate(report, "intervals.pdf")
        >>> generator.generate(before, "compare.pdf", comparison_report=after)
    """

    def __init__(
        self,
        page_width: float = 792,  # Letter landscape width (11")
        page_height: float = 612,  # Letter landscape height (8.5")
        margin: float = 36,  # 0.5 inch margins
        row_height: float = 9.5,
    ):
        self.page_width = page_width
        self.page_height = page_height
        self.margin = margin
        self.row_height = row_height

    def generate(
        self,
        report: IntervalReport,
        output_path: Union[str, Path],
        comparison_report: Optional[IntervalReport] = None,
        title: str = "Interval Report",
        include_summary: bool = True,
    ) -> None:
        """Generate a PDF report and save it to a file.

        Args:
            report: The report to render (the "previous" side when comparing).
            output_path: Path to save the PDF.
            comparison_report: Optional "updated" report to compare against.
            title: Title printed on every page.
            include_summary: Whether to include the summary page.
        """
        canvas, pagesize = _load_reportlab()
        c = canvas.Canvas(str(output_path), pagesize=pagesize)
        self._render(c, report, comparison_report, title, include_summary)
        c.save()

    def generate_to_buffer(
        self,
        report: IntervalReport,
        comparison_report: Optional[IntervalReport] = None,
        title: str = "Interval Report",
        include_summary: bool = True,
    ) -> BytesIO:
        """Generate a PDF report and return it as a bytes buffer."""
        canvas, pagesize = _load_reportlab()
        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=pagesize)
        self._render(c, report, comparison_report, title, include_summary)
        c.save()
        buffer.seek(0)
        return buffer

    def _render(
        self,
        c,
        report: IntervalReport,
        comparison_report: Optional[IntervalReport],
        title: str,
        include_summary: bool,
    ) -> None:
        state_names = list(report.state_names)
        if comparison_report is not None:
            state_names.extend(
                n for n in comparison_report.state_names if n not in report.state_totals
            )

        self._draw_interval_pages(c, report, comparison_report, state_names, title)
        if include_summary:
            self._draw_summary_page(c, report, comparison_report, state_names, title)

    def _draw_interval_pages(
        self,
        c,
        report: IntervalReport,
        comparison_report: Optional[IntervalReport],
        state_names: list[str],
        title: str,
    ) -> None:
        """Draw the interval table, splitting states across pages."""
        label_width = 60
        cells_per_state = 3 if comparison_report is not None else 1
        cell_width = 58 if comparison_report is not None else 90
        usable_width = self.page_width - 2 * self.margin - label_width
        states_per_page = max(1, int(usable_width // (cell_width * cells_per_state)))

        chunks = [
            state_names[i : i + states_per_page]
            for i in range(0, len(state_names), states_per_page)
        ] or [[]]

        for page_num, chunk in enumerate(chunks, start=1):
            self._draw_header(c, report, title)
            y = self.page_height - self.margin - 60

            # Column headers
            c.setFillColorRGB(*HEADER_FILL)
            c.rect(self.margin, y - 3, self.page_width - 2 * self.margin, 2 * self.row_height + 2, fill=1, stroke=0)
            c.setFillColorRGB(0, 0, 0)
            c.setFont("Helvetica-Bold", 7)
            c.drawString(self.margin + 2, y + self.row_height, "Interval")
            x = self.margin + label_width
            for name in chunk:
                span = cell_width * cells_per_state
                c.drawCentredString(x + span / 2, y + self.row_height, name[:28])
                if comparison_report is not None:
                    c.setFont("Helvetica", 6)
                    for offset, label in enumerate(("Previous", "Updated", "Delta")):
                        c.drawCentredString(x + cell_width * (offset + 0.5), y, label)
                    c.setFont("Helvetica-Bold", 7)
                x += span

            # One row per bucket
            c.setFont("Helvetica", 7)
            for index, slot in enumerate(report.intervals):
                y -= self.row_height
                if index % 2 == 1:
                    c.setFillColorRGB(0.97, 0.97, 0.97)
                    c.rect(self.margin, y - 2, self.page_width - 2 * self.margin, self.row_height, fill=1, stroke=0)
                    c.setFillColorRGB(0, 0, 0)
                c.drawString(self.margin + 2, y, slot.bucket.label)

                updated = (
                    comparison_report.intervals[index]
                    if comparison_report is not None
                    else None
                )
                x = self.margin + label_width
                for name in chunk:
                    if updated is None:
                        c.drawCentredString(x + cell_width / 2, y, self._cell_text(slot, name))
                    else:
                        self._draw_comparison_cells(c, slot, updated, name, x, y, cell_width)
                    x += cell_width * cells_per_state

            c.setFont("Helvetica", 9)
            c.drawCentredString(
                self.page_width / 2,
                self.margin - 10,
                f"Page {page_num} of {len(chunks)}",
            )
            c.showPage()

    @staticmethod
    def _cell_text(slot: IntervalSlot, state_name: str) -> str:
        totals = slot.states.get(state_name)
        if totals is None:
            return "-"
        return f"{totals.total_duration:.0f}m ({totals.agent_count})"

    def _draw_comparison_cells(
        self,
        c,
        previous: IntervalSlot,
        updated: IntervalSlot,
        state_name: str,
        x: float,
        y: float,
        cell_width: float,
    ) -> None:
        before = previous.states.get(state_name)
        after = updated.states.get(state_name)
        before_minutes = before.total_duration if before else 0.0
        after_minutes = after.total_duration if after else 0.0
        delta = after_minutes - before_minutes

        c.drawCentredString(x + cell_width * 0.5, y, self._cell_text(previous, state_name))
        c.drawCentredString(x + cell_width * 1.5, y, self._cell_text(updated, state_name))
        if round(delta) != 0:
            c.setFillColorRGB(*(INCREASE_COLOR if delta > 0 else DECREASE_COLOR))
            c.drawCentredString(x + cell_width * 2.5, y, f"{delta:+.0f}m")
            c.setFillColorRGB(0, 0, 0)

    def _draw_header(self, c, report: IntervalReport, title: str) -> None:
        """Draw page header with title and run context."""
        meta = report.metadata
        c.setFont("Helvetica-Bold", 16)
        c.drawString(self.margin, self.page_height - self.margin - 20, title)

        if meta.target_date is not None:
            scope = f"Date: {meta.target_date.strftime('%A, %B %d, %Y')}"
        elif meta.date_range is not None:
            scope = (
                f"Dates: {format_date(meta.date_range.start)} - "
                f"{format_date(meta.date_range.end)}"
            )
        else:
            scope = "Dates: none"

        c.setFont("Helvetica", 10)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 35,
            f"{scope}    Times in {meta.reference_timezone}    "
            f"Agents: {meta.unique_agents}    Entries: {meta.processed_entries}",
        )

    def _draw_summary_page(
        self,
        c,
        report: IntervalReport,
        comparison_report: Optional[IntervalReport],
        state_names: list[str],
        title: str,
    ) -> None:
        """Draw summary page with state totals and the duration chart."""
        meta = report.metadata
        c.setFont("Helvetica-Bold", 16)
        c.drawString(self.margin, self.page_height - self.margin - 20, f"{title} - Summary")

        y = self.page_height - self.margin - 50
        c.setFont("Helvetica-Bold", 12)
        c.drawString(self.margin, y, "Overview")
        y -= 18

        c.setFont("Helvetica", 10)
        stats = [
            f"Entries: {meta.total_entries} total, {meta.processed_entries} processed, "
            f"{meta.skipped_entries} skipped, {meta.excluded_entries} excluded (day off)",
            f"Unique Agents: {meta.unique_agents}",
            f"Total Duration: {format_duration(report.total_duration)}",
            f"Warnings: {len(meta.warnings)}",
        ]
        if comparison_report is not None:
            difference = comparison_report.total_duration - report.total_duration
            stats.append(
                f"Updated Total Duration: {format_duration(comparison_report.total_duration)} "
                f"({'+' if difference >= 0 else ''}{format_duration(difference)})"
            )
        for stat in stats:
            c.drawString(self.margin + 20, y, stat)
            y -= 14

        y -= 10
        c.setFont("Helvetica-Bold", 12)
        c.drawString(self.margin, y, "State Totals")
        y -= 16

        c.setFont("Helvetica", 9)
        for i, name in enumerate(state_names[:14]):
            totals = report.state_totals.get(name)
            minutes = totals.total_duration if totals else 0.0
            agents = totals.agent_count if totals else 0
            line = f"{name[:32]}: {format_duration(minutes)} ({agents} agents)"
            if comparison_report is not None:
                updated = comparison_report.state_totals.get(name)
                after = updated.total_duration if updated else 0.0
                line += f"  ->  {format_duration(after)} ({after - minutes:+.0f}m)"

            c.setFillColorRGB(*STATE_COLORS[i % len(STATE_COLORS)])
            c.rect(self.margin + 20, y - 2, 10, 10, fill=1, stroke=1)
            c.setFillColorRGB(0, 0, 0)
            c.drawString(self.margin + 35, y, line)
            y -= 14
        if len(state_names) > 14:
            c.drawString(self.margin + 35, y, f"... and {len(state_names) - 14} more")

        chart_x = self.page_width / 2 + 20
        chart_width = self.page_width - chart_x - self.margin - 10
        c.setFont("Helvetica-Bold", 12)
        c.drawString(chart_x, self.page_height - self.margin - 50, "Minutes per Interval")
        self._draw_duration_chart(
            c,
            report.get_duration_timeline(),
            chart_x,
            self.page_height - self.margin - 230,
            chart_width,
            160,
        )
        c.showPage()

    def _draw_duration_chart(
        self,
        c,
        timeline: list[float],
        x: float,
        y: float,
        width: float,
        height: float,
    ) -> None:
        """Draw a simple bar chart of allocated minutes per bucket."""
        if not timeline:
            return

        max_minutes = max(timeline) or 1
        bar_width = width / len(timeline)

        # Draw axes
        c.setStrokeColorRGB(0, 0, 0)
        c.setLineWidth(1)
        c.line(x, y, x, y + height)  # Y axis
        c.line(x, y, x + width, y)  # X axis

        c.setFillColorRGB(0.4, 0.6, 0.8)
        for i, minutes in enumerate(timeline):
            bar_height = (minutes / max_minutes) * height if minutes > 0 else 0
            c.rect(x + i * bar_width, y, bar_width - 1, bar_height, fill=1, stroke=0)

        # Y axis labels
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica", 7)
        c.drawRightString(x - 5, y, "0")
        c.drawRightString(x - 5, y + height - 5, f"{max_minutes:.0f}")

        # X axis labels every 3 hours
        for index in range(0, len(timeline) + 1, 6):
            label_x = x + index * bar_width
            c.drawCentredString(label_x, y - 12, f"{(index // 2) % 24:02d}")
