"""Field-level access to segments for editing and display."""

from __future__ import annotations

from enum import Enum

from .models import Segment
from .time_segments import format_time


class SegmentField(Enum):
    START = "start"
    END = "end"
    DURATION = "duration"
    LABEL = "label"

    @property
    def header(self) -> str:
        return _HEADERS[self]


_HEADERS = {
    SegmentField.START: "Startzeit",
    SegmentField.END: "Endzeit",
    SegmentField.DURATION: "Dauer",
    SegmentField.LABEL: "Beschreibung",
}


def display_value(segment: Segment, field: SegmentField) -> str:
    if field is SegmentField.START:
        return format_time(segment.start)
    if field is SegmentField.END:
        return format_time(segment.end)
    if field is SegmentField.DURATION:
        return segment.formatted_duration if not segment.is_open else ""
    if field is SegmentField.LABEL:
        return segment.label
    raise ValueError(f"Unsupported field: {field}")


def read_only_reason(segment: Segment, field: SegmentField, *, locked: bool = False) -> str | None:
    """Return why ``field`` of ``segment`` cannot be edited, or ``None`` when it can."""
    if locked:
        return "Der Tag ist abgeschlossen. Heben Sie den Abschluss auf, um Änderungen vorzunehmen."
    if field is SegmentField.DURATION:
        return "Die Dauer wird berechnet und kann nicht bearbeitet werden."
    if segment.is_open and field is not SegmentField.LABEL:
        return "Bei laufenden Aktivitäten kann nur die Beschreibung bearbeitet werden."
    return None


def is_editable(segment: Segment, field: SegmentField, *, locked: bool = False) -> bool:
    return read_only_reason(segment, field, locked=locked) is None
