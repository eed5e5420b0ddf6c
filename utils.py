"""Utility functions for time strings, date keys and month navigation."""

from __future__ import annotations

import re
from datetime import date
from calendar import monthrange

DATE_KEY_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
MONTH_FILE_PATTERN = re.compile(r"^(\d{4})-(\d{2})\.txt$")


def _component(part: str) -> int:
    try:
        value = int(part)
    except ValueError:
        return 0
    return value if value > 0 else 0


def parse_time_to_seconds(value: str) -> int:
    """Convert 'H:M:S' to seconds. Missing or malformed components count as 0."""
    if not value:
        return 0
    parts = value.split(":")
    hours, minutes, seconds = (parts + ["", "", ""])[:3]
    return _component(hours) * 3600 + _component(minutes) * 60 + _component(seconds)


def format_seconds_to_clock(total: int) -> str:
    """Format a duration in seconds as HH:MM:SS (hours may exceed 24)."""
    total = max(0, int(total))
    hours = total // 3600
    minutes = (total % 3600) // 60
    seconds = total % 60
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def normalize_clock(value: str) -> str:
    """Pad a partial entry like '9:5' to '09:05:00'. Empty stays empty."""
    value = value.strip()
    if not value:
        return ""
    parts = value.split(":")
    padded = [(p.strip() or "00").zfill(2) for p in (parts + ["", "", ""])[:3]]
    return ":".join(padded)


def date_key(d: date) -> str:
    return d.isoformat()


def is_date_key(key: str) -> bool:
    """True only for real dates written exactly as YYYY-MM-DD."""
    if not isinstance(key, str) or not DATE_KEY_PATTERN.fullmatch(key):
        return False
    try:
        date.fromisoformat(key)
    except ValueError:
        return False
    return True


def month_key(year: int, month: int) -> str:
    return f"{year}-{month:02d}"


def month_days(year: int, month: int) -> list[date]:
    """All calendar days of a month, leap years included."""
    last_day = monthrange(year, month)[1]
    return [date(year, month, day) for day in range(1, last_day + 1)]


def prev_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def next_month(year: int, month: int) -> tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def parse_month_filename(name: str) -> tuple[int, int] | None:
    """Return (year, month) for names like '2026-03.txt', else None."""
    match = MONTH_FILE_PATTERN.match(name)
    if not match:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        return None
    return year, month
