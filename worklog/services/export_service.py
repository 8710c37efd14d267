from __future__ import annotations

import csv
import io
from datetime import date, datetime, tzinfo
from typing import Iterable, Optional, Sequence

from worklog.core.local_time import as_utc
from worklog.schemas.report import ReportRow

CSV_CONTENT_TYPE = "text/csv; charset=utf-8"

CSV_HEADERS = (
    "Date",
    "Start Time",
    "End Time",
    "Duration",
    "Worker",
    "Project",
    "Task",
    "Notes",
)

MISSING = "-"


def _local(value: datetime, tz: Optional[tzinfo]) -> datetime:
    value = as_utc(value)
    return value.astimezone(tz) if tz is not None else value


def format_date(value: datetime, tz: Optional[tzinfo] = None) -> str:
    local = _local(value, tz)
    return f"{local.day:02d}/{local.month:02d}/{local.year:04d}"


def format_time(value: Optional[datetime], tz: Optional[tzinfo] = None) -> str:
    if value is None:
        return MISSING
    local = _local(value, tz)
    return f"{local.hour:02d}:{local.minute:02d}"


def format_duration(minutes: Optional[int]) -> str:
    # zero-length entries render like running ones
    if not minutes:
        return MISSING
    hours, mins = divmod(int(minutes), 60)
    return f"{hours}h {mins}m"


def _row_fields(row: ReportRow, tz: Optional[tzinfo]) -> list[str]:
    return [
        format_date(row.start_time, tz),
        format_time(row.start_time, tz),
        format_time(row.end_time, tz),
        format_duration(row.duration),
        row.user.display_name,
        row.project.name,
        row.task.name,
        row.notes or "",
    ]


def rows_to_csv(
    rows: Iterable[ReportRow],
    *,
    headers: Sequence[str] = CSV_HEADERS,
    tz: Optional[tzinfo] = None,
) -> bytes:
    """
    Serialize report rows, header line first.

    Data fields are always double-quoted; quotes inside a field are doubled.
    Lines are joined with "\\n" and the blob carries no trailing newline.
    """
    if len(headers) != len(CSV_HEADERS):
        raise ValueError(f"Expected {len(CSV_HEADERS)} CSV headers, got {len(headers)}")

    buffer = io.StringIO()
    header_writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    row_writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")

    header_writer.writerow(headers)
    for row in rows:
        row_writer.writerow(_row_fields(row, tz))

    return buffer.getvalue().rstrip("\n").encode("utf-8")


def export_filename(today: date) -> str:
    return f"reporte_{today.isoformat()}.csv"
