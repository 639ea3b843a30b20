from __future__ import annotations

import os
from datetime import date, time

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from zeitblock.core.exceptions import PersistenceError
from zeitblock.core.models import ConsolidatedBlock, Segment

DAY = date(2024, 3, 4)
_READ_CALLS = ("segments_for_date", "blocks_for_date", "active_segment", "dates_with_segments")


def t(text: str) -> time:
    hours, minutes = text.split(":")
    return time(int(hours), int(minutes))


def seg(start: str, end: str | None, label: str = "Dev", segment_id: int = 0) -> Segment:
    return Segment.create(DAY, t(start), t(end) if end else None, label, segment_id=segment_id)


class FakeSegmentStore:
    """In-memory store recording every call; ``fail_on`` names methods that raise."""

    def __init__(self, segments: list[Segment] | None = None) -> None:
        self.segments: dict[int, Segment] = {}
        self.blocks: dict[int, ConsolidatedBlock] = {}
        self.calls: list[tuple[str, object]] = []
        self.fail_on: set[str] = set()
        self._next_segment_id = 1
        self._next_block_id = 1
        for segment in segments or []:
            self.add(segment)

    def add(self, segment: Segment) -> Segment:
        stored = segment.with_id(self._next_segment_id)
        self._next_segment_id += 1
        self.segments[stored.segment_id] = stored
        return stored

    def write_calls(self) -> list[tuple[str, object]]:
        return [call for call in self.calls if call[0] not in _READ_CALLS]

    def _record(self, name: str, argument: object = None) -> None:
        self.calls.append((name, argument))
        if name in self.fail_on:
            raise PersistenceError(f"{name} failed")

    # Store protocol ---------------------------------------------------
    def insert_segment(self, segment: Segment) -> int:
        self._record("insert_segment", segment)
        return self.add(segment).segment_id

    def update_segment(self, segment: Segment) -> None:
        self._record("update_segment", segment)
        if segment.segment_id not in self.segments:
            raise PersistenceError(f"Segment {segment.segment_id} does not exist")
        self.segments[segment.segment_id] = segment

    def delete_segment(self, segment_id: int) -> None:
        self._record("delete_segment", segment_id)
        if self.segments.pop(segment_id, None) is None:
            raise PersistenceError(f"Segment {segment_id} does not exist")

    def segments_for_date(self, day: date) -> list[Segment]:
        self._record("segments_for_date", day)
        found = [segment for segment in self.segments.values() if segment.day == day]
        return sorted(found, key=lambda segment: (segment.start, segment.end is None))

    def active_segment(self) -> Segment | None:
        self._record("active_segment")
        running = [segment for segment in self.segments.values() if segment.is_open]
        return running[0] if running else None

    def dates_with_segments(self) -> list[date]:
        self._record("dates_with_segments")
        return sorted({segment.day for segment in self.segments.values()})

    def insert_consolidated_block(self, block: ConsolidatedBlock) -> int:
        self._record("insert_consolidated_block", block)
        block_id = self._next_block_id
        self._next_block_id += 1
        self.blocks[block_id] = block.with_id(block_id)
        return block_id

    def blocks_for_date(self, day: date) -> list[ConsolidatedBlock]:
        self._record("blocks_for_date", day)
        return sorted(
            (block for block in self.blocks.values() if block.day == day),
            key=lambda block: (block.start, block.end, block.label),
        )

    def delete_blocks_for_date(self, day: date) -> int:
        self._record("delete_blocks_for_date", day)
        doomed = [block_id for block_id, block in self.blocks.items() if block.day == day]
        for block_id in doomed:
            del self.blocks[block_id]
        return len(doomed)


@pytest.fixture
def store() -> FakeSegmentStore:
    return FakeSegmentStore()


@pytest.fixture
def app_dir(tmp_path, monkeypatch):
    from zeitblock.core import paths

    monkeypatch.setenv("APPDATA", str(tmp_path / "roaming"))
    paths.set_app_data_directory(tmp_path / "data")
    yield tmp_path / "data"
    paths.set_app_data_directory(None)


@pytest.fixture(scope="session")
def qapp():
    from PySide6.QtWidgets import QApplication

    app = QApplication.instance() or QApplication([])
    yield app
