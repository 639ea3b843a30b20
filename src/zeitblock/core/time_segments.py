"""Wall-clock time arithmetic for segments within a single day."""

from __future__ import annotations

import re
from datetime import datetime, time

MINUTES_PER_DAY = 24 * 60

TIME_FORMAT = "%H:%M"
DATE_FORMAT = "%d.%m.%Y"

# Accepts "9:05", "09:05" and "09.05".
_TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3])[:.]([0-5]\d)$")

_WEEKDAYS = ("Montag", "Dienstag", "Mittwoch", "Donnerstag", "Freitag", "Samstag", "Sonntag")


def parse_time(value: str) -> time:
    """Parse an ``HH:MM`` (or ``HH.MM``) string into a minute-precision time."""
    text = (value or "").strip()
    if not text:
        raise ValueError("Empty time string")
    match = _TIME_PATTERN.match(text)
    if match is None:
        raise ValueError(f"Invalid time format: {value!r}")
    return time(hour=int(match.group(1)), minute=int(match.group(2)))


def format_time(value: time | None) -> str:
    return value.strftime(TIME_FORMAT) if value is not None else ""


def format_date(value) -> str:
    return value.strftime(DATE_FORMAT) if value is not None else ""


def format_date_title(value) -> str:
    return f"{_WEEKDAYS[value.weekday()]}, {format_date(value)}"


def format_duration(minutes: int) -> str:
    if minutes < 0:
        return "-" + format_duration(-minutes)
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def truncate_to_minute(value: datetime | time) -> time:
    """Drop seconds so boundary comparisons stay exact."""
    if isinstance(value, datetime):
        value = value.time()
    return time(hour=value.hour, minute=value.minute)


def minute_of_day(value: time) -> int:
    return value.hour * 60 + value.minute


def from_minute_of_day(minutes: int) -> time:
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"Minute offset {minutes} falls outside the day")
    hours, mins = divmod(minutes, 60)
    return time(hour=hours, minute=mins)


def signed_minutes(start: time, end: time) -> int:
    """Return ``end - start`` in minutes; negative when ``end`` lies before ``start``."""
    return minute_of_day(end) - minute_of_day(start)


def minutes_between(start: time | None, end: time | None) -> int:
    if start is None or end is None:
        return 0
    return max(0, signed_minutes(start, end))


def add_minutes(value: time, minutes: int) -> time:
    """Shift ``value`` by ``minutes``; raises ``ValueError`` when leaving the day."""
    return from_minute_of_day(minute_of_day(value) + minutes)


def subtract_minutes(value: time, minutes: int) -> time:
    return add_minutes(value, -minutes)


def chunk_minutes(total: int, cap: int) -> list[int]:
    """Split ``total`` minutes into consecutive pieces of at most ``cap`` minutes."""
    if cap <= 0:
        raise ValueError("cap must be positive")
    pieces: list[int] = []
    remaining = total
    while remaining > 0:
        piece = min(remaining, cap)
        pieces.append(piece)
        remaining -= piece
    return pieces

