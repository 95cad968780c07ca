"""Schedule export readers."""

from schedaudit.io.reader import extract_team_name, is_total_row, read_schedule_csv

__all__ = [
    "extract_team_name",
    "is_total_row",
    "read_schedule_csv",
]
