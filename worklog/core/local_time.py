import os
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def display_timezone() -> ZoneInfo:
    name = os.getenv("DISPLAY_TIMEZONE", "UTC")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown DISPLAY_TIMEZONE: {name}") from exc


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Naive datetimes are treated as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def local_midnight(day: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)


def day_window(start_day: date, end_day: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    # end_day is inclusive; returns [start 00:00, (end + 1) 00:00) in UTC
    return local_midnight(start_day, tz), local_midnight(end_day + timedelta(days=1), tz)
