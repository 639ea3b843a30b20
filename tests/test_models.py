from __future__ import annotations

import pytest

from conftest import DAY, seg, t
from zeitblock.core.models import ChangeKind, ChangeSet, ConsolidatedBlock, Segment, is_break_label


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("Pause", True),
        ("Mittagspause", True),
        ("kurze Kaffeepause", True),
        ("break", True),
        (" Break ", True),
        ("Breakfast meeting", False),
        ("Dev", False),
        ("", False),
    ],
)
def test_break_detection(label, expected):
    assert is_break_label(label) is expected


def test_relabeling_rederives_the_break_flag():
    segment = seg("09:00", "10:00", "Dev", 1)

    assert segment.with_label("Mittagspause").is_break
    assert not segment.with_label("Mittagspause").with_label("Dev").is_break


def test_segment_json_round_trip_keeps_open_end():
    segment = seg("09:00", None, "Dev", 7)

    restored = Segment.from_json_dict(segment.to_json_dict())

    assert restored == segment
    assert restored.is_open
    assert restored.duration_minutes == 0


def test_block_json_round_trip():
    block = ConsolidatedBlock(DAY, t("09:00"), t("11:00"), "Dev (Teil 1)", 120, block_id=3)

    assert ConsolidatedBlock.from_json_dict(block.to_json_dict()) == block
    assert block.formatted_duration == "02:00"


def test_changeset_assigns_provisional_ids_and_folds_updates():
    changes = ChangeSet()

    first = changes.insert(Segment.synthetic_break(DAY, t("10:00"), t("10:30")))
    second = changes.insert(Segment.synthetic_break(DAY, t("10:30"), t("11:00")))
    changes.update(first.with_times(t("10:05"), t("10:35")))

    assert (first.segment_id, second.segment_id) == (-1, -2)
    assert [change.kind for change in changes] == [ChangeKind.INSERT, ChangeKind.INSERT]
    assert changes.inserts[0].start == t("10:05")


def test_changeset_update_then_delete_of_saved_segment():
    changes = ChangeSet()
    saved = seg("09:00", "10:00", "Dev", 4)

    changes.update(saved.with_label("Review"))
    changes.delete(saved)

    assert [(change.kind, change.segment.segment_id) for change in changes] == [(ChangeKind.DELETE, 4)]
    with pytest.raises(ValueError):
        changes.update(saved)


def test_deleting_a_pending_insert_drops_it():
    changes = ChangeSet()
    pending = changes.insert(Segment.synthetic_break(DAY, t("10:00"), t("10:30")))

    changes.delete(pending)

    assert not changes


def test_changeset_rejects_updates_of_unsaved_segments():
    with pytest.raises(ValueError):
        ChangeSet().update(seg("09:00", "10:00"))
