"""Persistence contract consumed by the reconciliation engine."""

from __future__ import annotations

from datetime import date
from typing import Protocol

from .models import ConsolidatedBlock, Segment


class SegmentStore(Protocol):
    """Durable storage for segments and consolidated blocks.

    Implementations raise ``PersistenceError`` on failure. Callers must not
    assume the store enforces any sequence invariant.
    """

    def insert_segment(self, segment: Segment) -> int:
        """Persist a new segment and return its assigned id."""

    def update_segment(self, segment: Segment) -> None:
        ...

    def delete_segment(self, segment_id: int) -> None:
        ...

    def segments_for_date(self, day: date) -> list[Segment]:
        """Return the day's segments ordered by start time."""

    def active_segment(self) -> Segment | None:
        ...

    def dates_with_segments(self) -> list[date]:
        """Return every day that has at least one segment, oldest first."""

    def insert_consolidated_block(self, block: ConsolidatedBlock) -> int:
        ...

    def blocks_for_date(self, day: date) -> list[ConsolidatedBlock]:
        ...

    def delete_blocks_for_date(self, day: date) -> int:
        """Remove every block of ``day`` and return how many were removed."""
