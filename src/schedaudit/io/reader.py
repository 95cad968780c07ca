"""Read schedule export CSV files into raw row dicts.

Exports often start with a few report-title lines before the real header
and end with per-agent or per-team total rows. Both are skipped here;
field-level validation is left to ``EntryValidator``.
"""

import csv
import logging
from pathlib import Path
from typing import Optional, Union

from schedaudit.exceptions import NoParseableRowsError

logger = logging.getLogger(__name__)

STANDARD_COLUMNS = (
    "Site",
    "Time zone",
    "Team",
    "Agent",
    "Date",
    "Schedule State",
    "Start Time",
    "End Time",
    "Duration",
    "Paid Hours",
)

_HEADER_KEYWORDS = (
    "site",
    "time zone",
    "timezone",
    "team",
    "agent",
    "date",
    "schedule state",
    "schedulestate",
)

_COLUMN_LOOKUP = {name.lower(): name for name in STANDARD_COLUMNS}
_COLUMN_LOOKUP.update({"timezone": "Time zone", "schedulestate": "Schedule State"})


def read_schedule_csv(path: Union[str, Path]) -> list[dict[str, str]]:
    """Read a schedule export into rows keyed by the standard column names.

    Args:
        path: CSV file path.

    Returns:
        One dict per data row, cells trimmed. Rows with a blank schedule
        state and total rows are dropped.

    Raises:
        FileNotFoundError: If the file does not exist.
        NoParseableRowsError: If no header row can be found.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Schedule file not found: {path}")

    with open(path, newline="", encoding="utf-8-sig") as f:
        raw_rows = [[cell.strip() for cell in row] for row in csv.reader(f)]

    header_index = _find_header(raw_rows)
    if header_index is None:
        raise NoParseableRowsError(f"Could not find header row in {path}")

    header = [_COLUMN_LOOKUP.get(cell.lower(), cell) for cell in raw_rows[header_index]]
    rows = []
    for raw in raw_rows[header_index + 1 :]:
        if not any(raw):
            continue
        row = {column: raw[i] if i < len(raw) else "" for i, column in enumerate(header)}
        state = row.get("Schedule State", "")
        if not state or is_total_row(state):
            continue
        if "Team" in row:
            row["Team"] = extract_team_name(row["Team"])
        rows.append(row)

    logger.info("Read %d rows from %s", len(rows), path)
    return rows


def _find_header(rows: list[list[str]]) -> Optional[int]:
    for index, row in enumerate(rows):
        if not row:
            continue
        matches = sum(1 for cell in row if cell.lower() in _HEADER_KEYWORDS)
        if row[0].lower() == "site" or matches >= 3:
            return index
    return None


def is_total_row(state: str) -> bool:
    """Check for summary rows such as "Total for Agent"."""
    upper = state.strip().upper()
    return (
        "TOTAL FOR AGENT" in upper
        or "TOTAL FOR TEAM" in upper
        or upper == "TOTAL"
        or upper.startswith("TOTAL ")
    )


def extract_team_name(team: str) -> str:
    """Keep the part of a team cell before the first "-"."""
    return team.split("-", 1)[0].strip()
