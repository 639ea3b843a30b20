"""Restores contiguity across a day's segment sequence.

Each pass walks consecutive ``(previous, current)`` pairs and fixes the first
boundary that does not line up: a gap is filled with automatic break segments,
an overlap is resolved by moving ``current`` forward while keeping its
duration. ``reconcile`` repeats passes until one finds nothing to fix, bounded
by :func:`~zeitblock.core.sequence.iteration_cap`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from .exceptions import InvariantViolationError
from .models import AUTO_BREAK_LABEL, ChangeSet, Segment
from .sequence import build_breaks, checked_duration, iteration_cap, offset_time, order_segments
from .time_segments import format_time, signed_minutes

LOGGER = logging.getLogger("zeitblock.reconciler")


@dataclass(frozen=True, slots=True)
class PassOutcome:
    segments: tuple[Segment, ...]
    fixed_at: int | None = None

    @property
    def changed(self) -> bool:
        return self.fixed_at is not None


@dataclass(frozen=True, slots=True)
class Reconciliation:
    segments: tuple[Segment, ...]
    changes: ChangeSet
    passes: int

    @property
    def changed(self) -> bool:
        return bool(self.changes)


def reconcile_pass(segments: Sequence[Segment], changes: ChangeSet, start_index: int = 1) -> PassOutcome:
    """Fix the first gap or overlap at or after pair ``start_index``."""
    ordered = list(segments)
    for index in range(max(start_index, 1), len(ordered)):
        previous = ordered[index - 1]
        current = ordered[index]
        if previous.end is None:
            raise InvariantViolationError(f"Open segment {previous.describe()} is followed by {current.describe()}")
        difference = signed_minutes(previous.end, current.start)
        if difference == 0:
            continue

        if difference > 0:
            breaks = build_breaks(current.day, previous.end, difference, AUTO_BREAK_LABEL, changes)
            ordered[index:index] = breaks
            LOGGER.info(
                "Gap filled with breaks",
                extra={
                    "event": "reconcile_gap_filled",
                    "gap_start": format_time(previous.end),
                    "gap_end": format_time(current.start),
                    "minutes": difference,
                    "breaks": len(breaks),
                },
            )
            return PassOutcome(tuple(ordered), index)

        new_start = previous.end
        new_end = (
            offset_time(current.end, -difference, context="Overlap correction")
            if current.end is not None
            else None
        )
        shifted = changes.update(current.with_times(new_start, new_end))
        ordered[index] = shifted
        LOGGER.info(
            "Overlap corrected",
            extra={
                "event": "reconcile_overlap_shifted",
                "segment_id": current.segment_id,
                "old_start": format_time(current.start),
                "new_start": format_time(new_start),
                "minutes": -difference,
            },
        )
        return PassOutcome(tuple(ordered), index)

    return PassOutcome(tuple(ordered))


def reconcile(segments: Sequence[Segment], changes: ChangeSet | None = None) -> Reconciliation:
    """Run passes until the sequence is contiguous and return it with the writes it needs."""
    changes = changes if changes is not None else ChangeSet()
    current = tuple(order_segments(segments))
    for segment in current:
        checked_duration(segment)
    for segment in current[:-1]:
        if segment.is_open:
            raise InvariantViolationError(f"Only the last segment may be open, found {segment.describe()}")

    cap = iteration_cap(len(current))
    resume_at = 1
    for passes in range(1, cap + 1):
        outcome = reconcile_pass(current, changes, resume_at)
        current = outcome.segments
        if not outcome.changed:
            LOGGER.debug(
                "Reconciliation reached a fixed point",
                extra={"event": "reconcile_done", "passes": passes, "changes": len(changes)},
            )
            return Reconciliation(segments=current, changes=changes, passes=passes)
        resume_at = outcome.fixed_at

    LOGGER.error(
        "Reconciliation did not converge",
        extra={"event": "reconcile_cap_exceeded", "cap": cap, "segments": len(current)},
    )
    raise InvariantViolationError(f"Reconciliation did not converge within {cap} passes")


def find_discontinuities(segments: Sequence[Segment]) -> list[tuple[Segment, Segment, int]]:
    """Return ``(previous, current, minutes)`` for every boundary that is not contiguous."""
    ordered = order_segments(segments)
    issues: list[tuple[Segment, Segment, int]] = []
    for previous, current in zip(ordered, ordered[1:]):
        if previous.end is None:
            continue
        difference = signed_minutes(previous.end, current.start)
        if difference:
            issues.append((previous, current, difference))
    return issues
