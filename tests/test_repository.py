from __future__ import annotations

import json
from datetime import date

import pytest

from conftest import DAY, seg, t
from zeitblock.core.exceptions import PersistenceError
from zeitblock.core.models import ConsolidatedBlock, Segment
from zeitblock.core.repository import SegmentRepository
from zeitblock.core.session import DaySession


@pytest.fixture
def repository(tmp_path) -> SegmentRepository:
    return SegmentRepository(tmp_path / "store.json")


def test_insert_assigns_increasing_ids_and_sorts_by_start(repository):
    late = repository.insert_segment(seg("10:00", "11:00", "B"))
    early = repository.insert_segment(seg("09:00", "10:00", "A"))

    assert (late, early) == (1, 2)
    assert [segment.label for segment in repository.segments_for_date(DAY)] == ["A", "B"]
    assert repository.segments_for_date(date(2024, 3, 5)) == []


def test_update_and_delete(repository):
    segment_id = repository.insert_segment(seg("09:00", "10:00", "Dev"))
    stored = repository.segments_for_date(DAY)[0]

    repository.update_segment(stored.with_label("Review"))
    assert repository.segments_for_date(DAY)[0].label == "Review"

    repository.delete_segment(segment_id)
    assert repository.segments_for_date(DAY) == []


def test_missing_segments_raise_persistence_errors(repository):
    with pytest.raises(PersistenceError):
        repository.update_segment(seg("09:00", "10:00", "Dev", 99))
    with pytest.raises(PersistenceError):
        repository.update_segment(seg("09:00", "10:00", "Dev"))
    with pytest.raises(PersistenceError):
        repository.delete_segment(99)


def test_active_segment_and_dates(repository):
    repository.insert_segment(seg("09:00", "10:00", "Dev"))
    repository.insert_segment(Segment.create(date(2024, 3, 5), t("08:00")))

    active = repository.active_segment()

    assert active is not None and active.day == date(2024, 3, 5)
    assert repository.dates_with_segments() == [DAY, date(2024, 3, 5)]


def test_blocks_are_replaced_per_day(repository):
    block = ConsolidatedBlock(DAY, t("09:00"), t("10:00"), "Dev", 60)
    other = ConsolidatedBlock(date(2024, 3, 5), t("09:00"), t("10:00"), "Dev", 60)
    repository.insert_consolidated_block(block)
    repository.insert_consolidated_block(other)

    assert [b.block_id for b in repository.blocks_for_date(DAY)] == [1]
    assert repository.delete_blocks_for_date(DAY) == 1
    assert repository.blocks_for_date(DAY) == []
    assert len(repository.blocks_for_date(date(2024, 3, 5))) == 1


def test_document_survives_reopen(tmp_path):
    path = tmp_path / "store.json"
    SegmentRepository(path).insert_segment(seg("09:00", None, "Dev"))

    reopened = SegmentRepository(path)
    payload = json.loads(path.read_text(encoding="utf-8"))

    assert reopened.segments_for_date(DAY)[0].is_open
    assert payload["next_segment_id"] == 2
    assert payload["segments"][0]["end"] is None


def test_malformed_document_raises(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(PersistenceError):
        SegmentRepository(path).segments_for_date(DAY)


def test_session_runs_against_the_json_store(repository):
    repository.insert_segment(seg("09:00", "10:00", "Dev"))
    repository.insert_segment(seg("10:30", "11:00", "Mail"))

    session = DaySession(repository, DAY)
    assert session.load().ok
    assert session.complete_day().ok

    assert [segment.label for segment in repository.segments_for_date(DAY)][1] == "Pause (automatisch eingefügt)"
    assert [block.label for block in repository.blocks_for_date(DAY)] == ["Dev", "Mail"]
