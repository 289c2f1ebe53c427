"""
Date helpers.

All analytics bucket by UTC calendar day; naive datetimes are read as UTC.
"""

from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Union

SECONDS_PER_DAY = 24 * 60 * 60


def to_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now(now: Optional[datetime] = None) -> datetime:
    """Caller-supplied reference time, or the current UTC time."""
    return to_utc(now) if now is not None else datetime.now(timezone.utc)


def utc_date(value: datetime) -> date:
    return to_utc(value).date()


def parse_timestamp(value: Union[str, int, float, datetime]) -> datetime:
    """
    Parse ISO strings ("2024-06-01T10:00:00Z"), Hostaway strings
    ("2024-06-01 10:00:00") or epoch seconds into an aware UTC datetime.

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid timestamp: {value!r}")

    text = value.strip().replace(" ", "T", 1)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return to_utc(datetime.fromisoformat(text))


def format_timestamp(value: datetime) -> str:
    """ISO 8601 with a trailing Z."""
    return to_utc(value).isoformat().replace("+00:00", "Z")


def days_between(start: datetime, end: datetime) -> float:
    """Fractional days from start to end."""
    return (to_utc(end) - to_utc(start)).total_seconds() / SECONDS_PER_DAY


def date_range(end: date, window_days: int) -> List[str]:
    """YYYY-MM-DD strings for the window_days days ending on end (inclusive), oldest first."""
    dates = []
    current = end - timedelta(days=window_days - 1)
    while current <= end:
        dates.append(current.strftime("%Y-%m-%d"))
        current += timedelta(days=1)
    return dates
