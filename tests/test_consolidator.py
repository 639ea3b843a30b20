from __future__ import annotations

from conftest import seg, t
from zeitblock.core.consolidator import consolidate


def test_same_label_segments_are_merged_and_split_into_parts():
    segments = [seg("09:00", "10:00", "Dev"), seg("10:00", "11:30", "Dev"), seg("11:30", "12:00", "Pause")]

    blocks = consolidate(segments)

    assert [(b.label, b.start, b.end, b.duration_minutes) for b in blocks] == [
        ("Dev (Teil 1)", t("09:00"), t("11:00"), 120),
        ("Dev (Teil 2)", t("11:00"), t("11:30"), 30),
    ]


def test_labels_are_grouped_case_and_whitespace_insensitively():
    segments = [seg("09:00", "09:30", "Meeting"), seg("10:00", "10:15", "  meeting ")]

    blocks = consolidate(segments)

    assert len(blocks) == 1
    assert blocks[0].label == "Meeting"
    assert blocks[0].duration_minutes == 45
    assert (blocks[0].start, blocks[0].end) == (t("09:00"), t("09:45"))


def test_unlabeled_open_and_break_segments_are_excluded():
    segments = [
        seg("08:00", "09:00", ""),
        seg("09:00", "09:30", "Dev"),
        seg("09:30", "10:00", "Mittagspause"),
        seg("10:00", None, "Dev"),
    ]

    blocks = consolidate(segments)

    assert [(b.label, b.duration_minutes) for b in blocks] == [("Dev", 30)]


def test_blocks_are_sorted_by_start_and_consolidation_is_repeatable():
    segments = [seg("09:00", "10:00", "Support"), seg("08:00", "09:00", "Admin"), seg("10:00", "10:30", "Admin")]

    first = consolidate(segments)
    second = consolidate(list(segments))

    assert first == second
    assert [b.label for b in first] == ["Admin", "Support"]
    assert first[0].duration_minutes == 90


def test_exactly_two_hours_gets_no_part_number():
    blocks = consolidate([seg("09:00", "10:00", "Dev"), seg("12:00", "13:00", "dev")])

    assert [(b.label, b.start, b.end) for b in blocks] == [("Dev", t("09:00"), t("11:00"))]
