"""Helpers shared by the reconciler and the block splitter."""

from __future__ import annotations

from datetime import date, time
from typing import Iterable

from .exceptions import InvariantViolationError
from .models import MAX_BLOCK_MINUTES, ChangeSet, Segment
from .time_segments import MINUTES_PER_DAY, add_minutes, chunk_minutes, format_time


def order_segments(segments: Iterable[Segment]) -> list[Segment]:
    """Order by start; an open segment sorts after a closed one starting at the same minute."""
    return sorted(segments, key=lambda segment: (segment.start, segment.end is None))


def iteration_cap(count: int) -> int:
    """Upper bound on fixed-point passes over ``count`` segments.

    Every fix leaves the pairs to its left consistent, so each pass moves the
    first faulty pair strictly to the right. The sequence can grow to at most
    ``count`` segments plus one break per gap plus one extra break per
    ``MAX_BLOCK_MINUTES`` of the day, which bounds the number of fixing passes.
    """
    return 2 * count + MINUTES_PER_DAY // MAX_BLOCK_MINUTES + 1


def offset_time(value: time, minutes: int, *, context: str) -> time:
    try:
        return add_minutes(value, minutes)
    except ValueError as exc:
        raise InvariantViolationError(
            f"{context}: {format_time(value)} shifted by {minutes} minutes leaves the day"
        ) from exc


def checked_duration(segment: Segment) -> int:
    duration = segment.duration_minutes
    if duration < 0:
        raise InvariantViolationError(f"Segment {segment.describe()} has a negative duration")
    return duration


def build_breaks(
    day: date,
    start: time,
    minutes: int,
    label: str,
    changes: ChangeSet,
) -> list[Segment]:
    """Create capped break segments covering ``minutes`` from ``start`` and record their inserts."""
    breaks: list[Segment] = []
    cursor = start
    for piece in chunk_minutes(minutes, MAX_BLOCK_MINUTES):
        end = offset_time(cursor, piece, context="Break segment")
        breaks.append(changes.insert(Segment.synthetic_break(day, cursor, end, label)))
        cursor = end
    return breaks
