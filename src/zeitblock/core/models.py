"""Domain models for Zeitblock."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, time
from enum import Enum
from typing import Any, Iterable, Iterator

from .time_segments import format_duration, format_time, signed_minutes

MAX_BLOCK_MINUTES = 120

AUTO_BREAK_LABEL = "Pause (automatisch eingefügt)"
SPLIT_BREAK_LABEL = "Pause (automatisch)"
PART_SUFFIX = " (Teil {number})"

_BREAK_SUBSTRINGS = ("pause", "mittagspause", "kaffeepause")
_BREAK_EXACT = frozenset({"break"})


def normalize_label(label: str | None) -> str:
    """Grouping identity of a label: trimmed and case-folded."""
    return (label or "").strip().lower()


def is_break_label(label: str | None) -> bool:
    text = normalize_label(label)
    if not text:
        return False
    return text in _BREAK_EXACT or any(keyword in text for keyword in _BREAK_SUBSTRINGS)


@dataclass(frozen=True, slots=True)
class Segment:
    """One recorded interval of activity; ``end`` is ``None`` while it runs."""

    day: date
    start: time
    end: time | None = None
    label: str = ""
    is_break: bool = False
    segment_id: int = 0

    @classmethod
    def create(
        cls,
        day: date,
        start: time,
        end: time | None = None,
        label: str = "",
        *,
        segment_id: int = 0,
    ) -> "Segment":
        return cls(
            day=day,
            start=start,
            end=end,
            label=label,
            is_break=is_break_label(label),
            segment_id=segment_id,
        )

    @classmethod
    def synthetic_break(cls, day: date, start: time, end: time, label: str = AUTO_BREAK_LABEL) -> "Segment":
        return cls(day=day, start=start, end=end, label=label, is_break=True)

    @property
    def is_open(self) -> bool:
        return self.end is None

    @property
    def is_saved(self) -> bool:
        return self.segment_id > 0

    @property
    def is_provisional(self) -> bool:
        return self.segment_id < 0

    @property
    def duration_minutes(self) -> int:
        """Signed minutes between start and end; zero while the segment is open."""
        if self.end is None:
            return 0
        return signed_minutes(self.start, self.end)

    @property
    def formatted_duration(self) -> str:
        return format_duration(self.duration_minutes)

    @property
    def normalized_label(self) -> str:
        return normalize_label(self.label)

    @property
    def has_label(self) -> bool:
        return bool(self.normalized_label)

    def with_label(self, label: str) -> "Segment":
        return replace(self, label=label, is_break=is_break_label(label))

    def with_times(self, start: time, end: time | None) -> "Segment":
        return replace(self, start=start, end=end)

    def with_id(self, segment_id: int) -> "Segment":
        return replace(self, segment_id=segment_id)

    def describe(self) -> str:
        return f"{format_time(self.start)}-{format_time(self.end) or '...'} {self.label!r}"

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "id": self.segment_id,
            "date": self.day.isoformat(),
            "start": format_time(self.start),
            "end": format_time(self.end) if self.end is not None else None,
            "label": self.label,
            "is_break": self.is_break,
        }

    @classmethod
    def from_json_dict(cls, payload: dict[str, Any]) -> "Segment":
        end_value = payload.get("end")
        return cls(
            day=date.fromisoformat(str(payload["date"])),
            start=time.fromisoformat(str(payload["start"])),
            end=time.fromisoformat(str(end_value)) if end_value else None,
            label=str(payload.get("label") or ""),
            is_break=bool(payload.get("is_break", False)),
            segment_id=int(payload.get("id") or 0),
        )


@dataclass(frozen=True, slots=True)
class ConsolidatedBlock:
    """Read-only reporting interval produced by a consolidation run."""

    day: date
    start: time
    end: time
    label: str
    duration_minutes: int
    block_id: int = 0

    @property
    def formatted_duration(self) -> str:
        return format_duration(self.duration_minutes)

    def with_id(self, block_id: int) -> "ConsolidatedBlock":
        return replace(self, block_id=block_id)

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "id": self.block_id,
            "date": self.day.isoformat(),
            "start": format_time(self.start),
            "end": format_time(self.end),
            "label": self.label,
            "duration_minutes": self.duration_minutes,
        }

    @classmethod
    def from_json_dict(cls, payload: dict[str, Any]) -> "ConsolidatedBlock":
        return cls(
            day=date.fromisoformat(str(payload["date"])),
            start=time.fromisoformat(str(payload["start"])),
            end=time.fromisoformat(str(payload["end"])),
            label=str(payload.get("label") or ""),
            duration_minutes=int(payload["duration_minutes"]),
            block_id=int(payload.get("id") or 0),
        )


class ChangeKind(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True, slots=True)
class Change:
    kind: ChangeKind
    segment: Segment


@dataclass(slots=True)
class ChangeSet:
    """Ordered store writes produced by one engine run.

    Segments inserted during the run carry negative provisional ids until the
    caller persists them; later writes to a provisional segment are folded into
    its pending insert.
    """

    changes: list[Change] = field(default_factory=list)
    next_provisional_id: int = -1

    def __len__(self) -> int:
        return len(self.changes)

    def __bool__(self) -> bool:
        return bool(self.changes)

    def __iter__(self) -> Iterator[Change]:
        return iter(self.changes)

    def insert(self, segment: Segment) -> Segment:
        if segment.segment_id == 0:
            segment = segment.with_id(self.next_provisional_id)
            self.next_provisional_id -= 1
        self.changes.append(Change(ChangeKind.INSERT, segment))
        return segment

    def update(self, segment: Segment) -> Segment:
        if segment.segment_id == 0:
            raise ValueError("Cannot update a segment that was never inserted")
        for index, change in enumerate(self.changes):
            if change.segment.segment_id != segment.segment_id:
                continue
            if change.kind is ChangeKind.DELETE:
                raise ValueError(f"Segment {segment.segment_id} was already deleted")
            self.changes[index] = Change(change.kind, segment)
            return segment
        self.changes.append(Change(ChangeKind.UPDATE, segment))
        return segment

    def delete(self, segment: Segment) -> None:
        pending = [change for change in self.changes if change.segment.segment_id == segment.segment_id]
        self.changes = [change for change in self.changes if change.segment.segment_id != segment.segment_id]
        if segment.is_provisional and any(change.kind is ChangeKind.INSERT for change in pending):
            return
        self.changes.append(Change(ChangeKind.DELETE, segment))

    @property
    def inserts(self) -> list[Segment]:
        return [change.segment for change in self.changes if change.kind is ChangeKind.INSERT]

    @property
    def updates(self) -> list[Segment]:
        return [change.segment for change in self.changes if change.kind is ChangeKind.UPDATE]

    @property
    def deletes(self) -> list[Segment]:
        return [change.segment for change in self.changes if change.kind is ChangeKind.DELETE]


@dataclass(frozen=True, slots=True)
class DayStatistics:
    total_minutes: int
    net_minutes: int
    break_minutes: int

    @classmethod
    def from_segments(cls, segments: Iterable[Segment]) -> "DayStatistics":
        """Sum closed segments; break time is subtracted from the net figure."""
        total = 0
        breaks = 0
        for segment in segments:
            if segment.is_open:
                continue
            minutes = max(0, segment.duration_minutes)
            total += minutes
            if segment.is_break:
                breaks += minutes
        return cls(total_minutes=total, net_minutes=total - breaks, break_minutes=breaks)

    @property
    def pretty_total(self) -> str:
        return format_duration(self.total_minutes)

    @property
    def pretty_net(self) -> str:
        return format_duration(self.net_minutes)

    @property
    def pretty_breaks(self) -> str:
        return format_duration(self.break_minutes)
