from __future__ import annotations

import pytest

from conftest import DAY, seg, t
from zeitblock.core.exceptions import InvariantViolationError
from zeitblock.core.models import AUTO_BREAK_LABEL, ChangeKind, ChangeSet, Segment
from zeitblock.core.reconciler import find_discontinuities, reconcile, reconcile_pass
from zeitblock.core.sequence import iteration_cap


def _assert_contiguous(segments):
    closed = [segment for segment in segments if segment.end is not None]
    for previous, current in zip(segments, segments[1:]):
        if previous.end is not None:
            assert previous.end == current.start
    assert all(segment.duration_minutes <= 120 for segment in closed)


def test_contiguous_day_is_left_unchanged():
    segments = [seg("09:00", "10:30", "Dev", 1), seg("10:30", "11:00", "Meeting", 2)]

    result = reconcile(segments)

    assert list(result.segments) == segments
    assert not result.changes
    assert result.passes == 1


def test_gap_is_filled_with_an_automatic_break():
    segments = [seg("09:00", "10:00", "Dev", 1), seg("10:30", "11:00", "Dev", 2)]

    result = reconcile(segments)

    assert len(result.segments) == 3
    inserted = result.segments[1]
    assert (inserted.start, inserted.end) == (t("10:00"), t("10:30"))
    assert inserted.label == AUTO_BREAK_LABEL
    assert inserted.is_break
    assert [change.kind for change in result.changes] == [ChangeKind.INSERT]
    assert result.changes.inserts == [inserted]
    assert inserted.is_provisional


def test_long_gap_is_filled_with_capped_breaks():
    segments = [seg("08:00", "09:00", "Dev", 1), seg("13:10", "14:00", "Dev", 2)]

    result = reconcile(segments)

    breaks = [segment for segment in result.segments if segment.is_break]
    assert [segment.duration_minutes for segment in breaks] == [120, 120, 10]
    assert breaks[0].start == t("09:00")
    assert breaks[-1].end == t("13:10")
    _assert_contiguous(result.segments)


def test_overlap_moves_the_later_segment_and_keeps_its_duration():
    segments = [seg("09:00", "10:00", "Dev", 1), seg("09:45", "10:15", "Review", 2)]

    result = reconcile(segments)

    moved = result.segments[1]
    assert (moved.start, moved.end) == (t("10:00"), t("10:30"))
    assert result.changes.updates == [moved]


def test_overlap_cascades_through_following_segments():
    segments = [
        seg("09:00", "10:00", "A", 1),
        seg("09:30", "10:00", "B", 2),
        seg("10:00", "10:30", "C", 3),
        seg("10:30", None, "D", 4),
    ]

    result = reconcile(segments)

    assert [(s.label, s.start, s.end) for s in result.segments] == [
        ("A", t("09:00"), t("10:00")),
        ("B", t("10:00"), t("10:30")),
        ("C", t("10:30"), t("11:00")),
        ("D", t("11:00"), None),
    ]
    assert [segment.segment_id for segment in result.changes.updates] == [2, 3, 4]


def test_unsorted_input_is_ordered_with_open_segment_last():
    segments = [seg("10:00", None, "Open", 3), seg("09:00", "10:00", "Dev", 1)]

    result = reconcile(segments)

    assert [segment.segment_id for segment in result.segments] == [1, 3]
    assert not result.changes


def test_reconciliation_is_idempotent():
    segments = [seg("09:00", "10:00", "Dev", 1), seg("10:45", "11:00", "Dev", 2), seg("10:50", "11:20", "X", 3)]

    first = reconcile(segments)
    second = reconcile(first.segments)

    assert not second.changes
    assert second.segments == first.segments
    _assert_contiguous(first.segments)
    assert find_discontinuities(first.segments) == []


def test_single_pass_fixes_only_the_first_faulty_pair():
    segments = [seg("09:00", "09:30", "A", 1), seg("10:00", "10:30", "B", 2), seg("11:00", "11:30", "C", 3)]
    changes = ChangeSet()

    outcome = reconcile_pass(segments, changes)

    assert outcome.changed
    assert outcome.fixed_at == 1
    assert len(changes) == 1
    assert len(find_discontinuities(outcome.segments)) == 1


def test_negative_duration_is_an_invariant_violation():
    broken = Segment(day=DAY, start=t("10:00"), end=t("09:00"), label="Dev", segment_id=1)

    with pytest.raises(InvariantViolationError):
        reconcile([broken])


def test_shift_past_midnight_is_an_invariant_violation():
    segments = [seg("22:00", "23:50", "A", 1), seg("23:00", "23:55", "B", 2)]

    with pytest.raises(InvariantViolationError):
        reconcile(segments)


def test_iteration_cap_grows_with_the_sequence():
    assert iteration_cap(0) == 13
    assert iteration_cap(5) == 23


def test_open_segment_before_a_later_segment_is_an_invariant_violation():
    segments = [seg("09:00", None, "Open", 1), seg("10:00", "11:00", "Dev", 2)]

    with pytest.raises(InvariantViolationError):
        reconcile(segments)


def test_single_pass_rejects_an_open_segment_in_the_middle():
    segments = [seg("09:00", "10:00", "Dev", 1), seg("10:00", None, "Open", 2), seg("10:30", "11:00", "Dev", 3)]

    with pytest.raises(InvariantViolationError):
        reconcile_pass(segments, ChangeSet())
