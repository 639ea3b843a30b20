"""Read-only access to the recorded segments and blocks of past days."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from .models import ConsolidatedBlock, DayStatistics, Segment
from .reconciler import find_discontinuities
from .sequence import order_segments
from .store import SegmentStore

LOGGER = logging.getLogger("zeitblock.history")


@dataclass(frozen=True, slots=True)
class DayHistory:
    day: date
    segments: tuple[Segment, ...]
    blocks: tuple[ConsolidatedBlock, ...]
    statistics: DayStatistics
    discontinuities: int = 0

    @property
    def completed(self) -> bool:
        return bool(self.blocks)

    @property
    def is_empty(self) -> bool:
        return not self.segments and not self.blocks


def load_history(store: SegmentStore, day: date) -> DayHistory:
    """Read ``day`` as stored; nothing is reconciled or written back."""
    segments = tuple(order_segments(store.segments_for_date(day)))
    blocks = tuple(store.blocks_for_date(day))
    issues = find_discontinuities(segments)
    if issues:
        LOGGER.warning(
            "Stored day is not contiguous",
            extra={"event": "history_discontinuities", "day": day.isoformat(), "count": len(issues)},
        )
    LOGGER.debug(
        "History loaded",
        extra={"event": "history_loaded", "day": day.isoformat(), "segments": len(segments), "blocks": len(blocks)},
    )
    return DayHistory(
        day=day,
        segments=segments,
        blocks=blocks,
        statistics=DayStatistics.from_segments(segments),
        discontinuities=len(issues),
    )


def available_dates(store: SegmentStore, *, before: date | None = None) -> list[date]:
    """Days with recorded segments, newest first, optionally only those before ``before``."""
    days = store.dates_with_segments()
    if before is not None:
        days = [day for day in days if day < before]
    return sorted(days, reverse=True)
