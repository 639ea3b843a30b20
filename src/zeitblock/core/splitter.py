"""Maximum block duration enforcement for individual segments."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from .exceptions import InvariantViolationError
from .models import MAX_BLOCK_MINUTES, SPLIT_BREAK_LABEL, ChangeSet, Segment
from .sequence import build_breaks, checked_duration, iteration_cap, offset_time
from .time_segments import format_time

LOGGER = logging.getLogger("zeitblock.splitter")


@dataclass(frozen=True, slots=True)
class SplitResult:
    segments: tuple[Segment, ...]
    head: Segment | None = None
    breaks: tuple[Segment, ...] = ()
    reanchored: tuple[Segment, ...] = ()
    remainder_minutes: int = 0

    @property
    def split(self) -> bool:
        return self.head is not None


def split_if_over_long(segments: Sequence[Segment], index: int, changes: ChangeSet) -> SplitResult:
    """Cap the segment at ``index`` to ``MAX_BLOCK_MINUTES``.

    The cut-off remainder becomes break time only when the following segment
    is already full; otherwise the following segments move up behind the
    truncated one. Every following closed segment keeps its own duration.
    """
    ordered = list(segments)
    segment = ordered[index]
    duration = checked_duration(segment)
    if segment.end is None or duration <= MAX_BLOCK_MINUTES:
        return SplitResult(segments=tuple(ordered))

    head_end = offset_time(segment.start, MAX_BLOCK_MINUTES, context="Block split")
    head = changes.update(segment.with_times(segment.start, head_end))
    ordered[index] = head
    remainder = duration - MAX_BLOCK_MINUTES

    breaks: list[Segment] = []
    following = ordered[index + 1] if index + 1 < len(ordered) else None
    if (
        following is not None
        and following.end is not None
        and checked_duration(following) >= MAX_BLOCK_MINUTES
    ):
        breaks = build_breaks(head.day, head_end, remainder, SPLIT_BREAK_LABEL, changes)
        ordered[index + 1 : index + 1] = breaks

    reanchored = reanchor_following(ordered, index + 1 + len(breaks), changes)

    LOGGER.info(
        "Segment capped at maximum block duration",
        extra={
            "event": "split_segment",
            "segment_id": segment.segment_id,
            "start": format_time(segment.start),
            "old_end": format_time(segment.end),
            "new_end": format_time(head_end),
            "remainder_minutes": remainder,
            "breaks": len(breaks),
            "reanchored": len(reanchored),
        },
    )
    return SplitResult(
        segments=tuple(ordered),
        head=head,
        breaks=tuple(breaks),
        reanchored=tuple(reanchored),
        remainder_minutes=remainder,
    )


def reanchor_following(ordered: list[Segment], start_index: int, changes: ChangeSet) -> list[Segment]:
    """Chain closed segments from ``start_index`` onto their predecessor, keeping durations."""
    moved: list[Segment] = []
    for position in range(max(start_index, 1), len(ordered)):
        previous = ordered[position - 1]
        current = ordered[position]
        if previous.end is None or current.end is None:
            continue
        if current.start == previous.end:
            continue
        duration = checked_duration(current)
        new_end = offset_time(previous.end, duration, context="Re-anchoring")
        updated = changes.update(current.with_times(previous.end, new_end))
        ordered[position] = updated
        moved.append(updated)
    return moved


def enforce_cap(segments: Sequence[Segment], changes: ChangeSet) -> tuple[tuple[Segment, ...], list[SplitResult]]:
    """Split every closed segment above the cap, left to right."""
    current = tuple(segments)
    results: list[SplitResult] = []
    cap = iteration_cap(len(current))
    for _ in range(cap):
        index = _first_over_long(current)
        if index is None:
            return current, results
        result = split_if_over_long(current, index, changes)
        current = result.segments
        results.append(result)
    raise InvariantViolationError(f"Cap enforcement did not settle within {cap} splits")


def _first_over_long(segments: Sequence[Segment]) -> int | None:
    for index, segment in enumerate(segments):
        if segment.end is not None and checked_duration(segment) > MAX_BLOCK_MINUTES:
            return index
    return None
