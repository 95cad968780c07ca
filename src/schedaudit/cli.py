"""Command-line interface for the schedaudit interval analysis tool."""

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Optional

from schedaudit.analysis.aggregator import ScheduleAggregator
from schedaudit.analysis.comparison import compare_schedules
from schedaudit.domain.models import AnalysisConfig, IntervalReport, ScheduleEntry
from schedaudit.domain.state_config import StateConfig
from schedaudit.exceptions import ConversionFailure, ScheduleAuditError
from schedaudit.io.reader import read_schedule_csv
from schedaudit.output.audit_generator import AuditGenerator
from schedaudit.output.pdf_generator import PDFGenerator
from schedaudit.parsing.time_parser import format_date, format_duration, parse_date
from schedaudit.parsing.timezones import DEFAULT_REFERENCE_TIMEZONE, TimezoneConverter
from schedaudit.validation.validator import EntryValidator

logger = logging.getLogger(__name__)


def load_state_config(path: Optional[str]) -> StateConfig:
    """Load the state configuration file, or the defaults if none is given."""
    if path:
        return StateConfig.from_file(path)
    return StateConfig.default()


def load_entries(path: str) -> list[ScheduleEntry]:
    """Read and validate a schedule CSV file."""
    rows = read_schedule_csv(path)
    result = EntryValidator().validate_rows(rows)
    if result.warnings:
        print(f"  {Path(path).name}: skipped {len(result.warnings)} incomplete rows")
        for warning in result.warnings[:5]:
            print(f"    - {warning}")
        if len(result.warnings) > 5:
            print(f"    ... and {len(result.warnings) - 5} more")
    return result.require_entries()


def select_states(
    aggregator: ScheduleAggregator,
    report: IntervalReport,
    states: Optional[str],
    group: Optional[str],
) -> IntervalReport:
    """Apply the --states and --group projections."""
    if states:
        names = [name.strip() for name in states.split(",")]
        report = aggregator.filter_by_canonical_states(report, names)
    if group:
        names = [s.name for s in aggregator.state_config.get_states_by_group(group)]
        if not names:
            raise ScheduleAuditError(f'No configured states in group "{group}"')
        report = aggregator.filter_by_canonical_states(report, names)
    return report


def print_report(report: IntervalReport, label: str) -> None:
    """Print a short summary of a report."""
    meta = report.metadata
    print(f"\n{label}")
    print(
        f"  Entries: {meta.processed_entries} processed, {meta.skipped_entries} skipped, "
        f"{meta.excluded_entries} excluded (day off) of {meta.total_entries}"
    )
    print(f"  Agents: {meta.unique_agents}")
    if meta.date_range:
        print(
            f"  Source dates: {format_date(meta.date_range.start)} - "
            f"{format_date(meta.date_range.end)}"
        )
    print(f"  Reference timezone: {meta.reference_timezone}")
    print(f"  Total duration: {format_duration(report.total_duration)}")

    print("\n  State totals:")
    for name, totals in report.state_totals.items():
        print(
            f"    {name:<30} {format_duration(totals.total_duration):>8}  "
            f"({totals.agent_count} agents, {totals.count} entries)"
        )

    if meta.warnings:
        print(f"\n  Warnings: {len(meta.warnings)}")
        for warning in meta.warnings[:5]:
            print(f"    - {warning}")
        if len(meta.warnings) > 5:
            print(f"    ... and {len(meta.warnings) - 5} more warnings")


def write_json(data: dict, output_path: str) -> None:
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    print(f"\nJSON written to {output_path}")


def run_analyze(args: argparse.Namespace, target_date: Optional[date]) -> int:
    """Analyze a single schedule file."""
    state_config = load_state_config(args.config)
    config = AnalysisConfig(reference_timezone=args.reference_tz)
    aggregator = ScheduleAggregator(state_config, config)

    print(f"Analyzing {args.file}...")
    entries = load_entries(args.file)
    report = aggregator.process_schedule_data(entries, target_date)
    report = select_states(aggregator, report, args.states, args.group)

    print_report(report, f"Interval report for {args.file}")

    if args.audit:
        AuditGenerator(config.large_difference_minutes).generate(report, args.audit)
        print(f"\nAudit written to {args.audit}")
    if args.pdf:
        print(f"\nGenerating PDF: {args.pdf}")
        PDFGenerator().generate(report, args.pdf, title=f"Interval Report - {Path(args.file).name}")
        print("  PDF created successfully!")
    if args.json:
        write_json(report.to_dict(), args.json)
    return 0


def run_compare(args: argparse.Namespace, target_date: Optional[date]) -> int:
    """Compare a previous and an updated schedule file."""
    state_config = load_state_config(args.config)
    config = AnalysisConfig(reference_timezone=args.reference_tz)
    aggregator = ScheduleAggregator(state_config, config)

    print(f"Comparing {args.before} -> {args.after}...")
    before = aggregator.process_schedule_data(load_entries(args.before), target_date)
    after = aggregator.process_schedule_data(load_entries(args.after), target_date)
    before = select_states(aggregator, before, args.states, args.group)
    after = select_states(aggregator, after, args.states, args.group)

    comparison = compare_schedules(before, after)

    print_report(before, f"Previous: {args.before}")
    print_report(after, f"Updated: {args.after}")

    print("\nDifferences by state:")
    for name, delta in comparison.states.items():
        sign = "+" if delta.duration_difference >= 0 else ""
        print(
            f"  {name:<30} {sign}{format_duration(delta.duration_difference):>8}  "
            f"agents {delta.agent_difference:+d}"
        )
    if comparison.unique_to_previous:
        print(f"  Only in previous: {', '.join(comparison.unique_to_previous)}")
    if comparison.unique_to_updated:
        print(f"  Only in updated: {', '.join(comparison.unique_to_updated)}")

    if args.audit:
        generator = AuditGenerator(config.large_difference_minutes)
        before_text = generator.generate_to_string(before)
        after_text = generator.generate_to_string(after)
        Path(args.audit).write_text(
            f"PREVIOUS: {args.before}\n{before_text}\n\nUPDATED: {args.after}\n{after_text}\n",
            encoding="utf-8",
        )
        print(f"\nAudit written to {args.audit}")
    if args.pdf:
        print(f"\nGenerating PDF: {args.pdf}")
        PDFGenerator().generate(before, args.pdf, comparison_report=after, title="Schedule Comparison")
        print("  PDF created successfully!")
    if args.json:
        write_json(comparison.to_dict(), args.json)
    return 0


def run_states(args: argparse.Namespace) -> int:
    """List the configured canonical states and groups."""
    state_config = load_state_config(args.config)
    if args.json:
        write_json(state_config.to_dict(), args.json)
        return 0

    print(f"Configured states ({len(state_config.states)}):")
    for state in state_config.get_all_states():
        paid = "paid" if state.is_paid else "unpaid"
        print(f"  {state.name:<24} {state.category:<16} {state.group or '-':<32} {paid}")

    print(f"\nGroups ({len(state_config.get_all_groups())}):")
    for group in state_config.get_all_groups():
        names = [s.name for s in state_config.get_states_by_group(group)]
        print(f"  {group:<32} {', '.join(names) if names else '-'}")
    return 0


def main() -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="schedaudit - Schedule Interval Analysis Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s analyze schedule.csv                      Summarize all entries
  %(prog)s analyze schedule.csv --date 11/16/2024    Report one reference day
  %(prog)s analyze schedule.csv --states Break,Lunch Only break states
  %(prog)s analyze schedule.csv --pdf report.pdf     Generate PDF output
  %(prog)s analyze schedule.csv --audit audit.txt    Write the entry audit

  %(prog)s compare before.csv after.csv --date 11/16/2024 --pdf diff.pdf

  %(prog)s states --config states.json              List configured states
        """,
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config", "-c",
        type=str,
        help="State configuration JSON file (default: built-in states)",
    )
    common.add_argument(
        "--json", "-j",
        type=str,
        help="Write the result as JSON to this file",
    )

    report_options = argparse.ArgumentParser(add_help=False)
    report_options.add_argument(
        "--date", "-d",
        type=str,
        help="Reference date to report on (MM/DD/YYYY or YYYY-MM-DD)",
    )
    report_options.add_argument(
        "--reference-tz", "-z",
        type=str,
        default=DEFAULT_REFERENCE_TIMEZONE,
        help=f"Reference timezone (default: {DEFAULT_REFERENCE_TIMEZONE})",
    )
    report_options.add_argument(
        "--states", "-s",
        type=str,
        help="Comma-separated canonical states to keep",
    )
    report_options.add_argument(
        "--group", "-g",
        type=str,
        help="Keep only the states of one configured group",
    )
    report_options.add_argument(
        "--pdf", "-p",
        type=str,
        help="Output PDF file path",
    )
    report_options.add_argument(
        "--audit", "-a",
        type=str,
        help="Output audit text file path",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    analyze_parser = subparsers.add_parser(
        "analyze",
        parents=[common, report_options],
        help="Analyze one schedule export",
    )
    analyze_parser.add_argument("file", help="Schedule CSV file")

    compare_parser = subparsers.add_parser(
        "compare",
        parents=[common, report_options],
        help="Compare a previous and an updated schedule export",
    )
    compare_parser.add_argument("before", help="Previous schedule CSV file")
    compare_parser.add_argument("after", help="Updated schedule CSV file")

    subparsers.add_parser(
        "states",
        parents=[common],
        help="List configured states and groups",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    target_date = None
    if getattr(args, "date", None):
        target_date = parse_date(args.date)
        if target_date is None:
            parser.error(f"invalid --date {args.date!r}")
    if getattr(args, "reference_tz", None):
        try:
            TimezoneConverter(args.reference_tz).offset_minutes(args.reference_tz, date.today())
        except ConversionFailure:
            parser.error(f"unknown --reference-tz {args.reference_tz!r}")

    try:
        if args.command == "analyze":
            return run_analyze(args, target_date)
        elif args.command == "compare":
            return run_compare(args, target_date)
        elif args.command == "states":
            return run_states(args)
        else:
            parser.print_help()
            return 1
    except (ScheduleAuditError, FileNotFoundError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
