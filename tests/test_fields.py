from __future__ import annotations

from conftest import seg
from zeitblock.core.fields import SegmentField, display_value, is_editable, read_only_reason


def test_display_values():
    closed = seg("09:00", "10:30", "Dev", 1)
    running = seg("10:30", None, "Mail", 2)

    assert display_value(closed, SegmentField.START) == "09:00"
    assert display_value(closed, SegmentField.END) == "10:30"
    assert display_value(closed, SegmentField.DURATION) == "01:30"
    assert display_value(closed, SegmentField.LABEL) == "Dev"
    assert display_value(running, SegmentField.END) == ""
    assert display_value(running, SegmentField.DURATION) == ""


def test_duration_is_never_editable():
    assert not is_editable(seg("09:00", "10:00"), SegmentField.DURATION)


def test_running_segment_allows_only_label_edits():
    running = seg("10:30", None, "Mail", 2)

    assert is_editable(running, SegmentField.LABEL)
    assert not is_editable(running, SegmentField.START)
    assert not is_editable(running, SegmentField.END)


def test_completed_day_locks_every_field():
    closed = seg("09:00", "10:00", "Dev", 1)

    for field in SegmentField:
        assert read_only_reason(closed, field, locked=True) is not None
    assert read_only_reason(closed, SegmentField.START) is None


def test_headers_are_german():
    assert [field.header for field in SegmentField] == ["Startzeit", "Endzeit", "Dauer", "Beschreibung"]
