"""One day of tracked segments and the user actions that change it.

``DaySession`` is the boundary of a single user action. Every action
validates its input before touching the store, runs the engine on an
in-memory snapshot to compute the complete set of writes, applies them in
order and only then replaces the snapshot. Domain errors never escape: they
are logged and turned into an :class:`ActionResult` carrying a German message
for the user.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Callable, Iterable, Sequence

from .consolidator import consolidate
from .exceptions import InvariantViolationError, PersistenceError, ValidationError, ZeitblockError
from .fields import SegmentField, read_only_reason
from .label_index import LabelIndex
from .models import MAX_BLOCK_MINUTES, ChangeKind, ChangeSet, ConsolidatedBlock, DayStatistics, Segment
from .reconciler import reconcile
from .sequence import offset_time, order_segments
from .splitter import enforce_cap, reanchor_following, split_if_over_long
from .store import SegmentStore
from .time_segments import (
    MINUTES_PER_DAY,
    add_minutes,
    format_date,
    format_time,
    minute_of_day,
    parse_time,
    signed_minutes,
    truncate_to_minute,
)

LOGGER = logging.getLogger("zeitblock.session")

DEFAULT_WARNING_LEAD_MINUTES = 10


@dataclass(frozen=True, slots=True)
class ActionResult:
    ok: bool
    message: str = ""
    error: ZeitblockError | None = None
    segment: Segment | None = None
    changes: int = 0

    @classmethod
    def success(cls, message: str = "", *, segment: Segment | None = None, changes: int = 0) -> "ActionResult":
        return cls(ok=True, message=message, segment=segment, changes=changes)

    @classmethod
    def failure(cls, message: str, error: ZeitblockError) -> "ActionResult":
        return cls(ok=False, message=message, error=error)


class ActiveStatus(Enum):
    IDLE = "idle"
    OK = "ok"
    WARNING = "warning"
    CAPPED = "capped"


@dataclass(frozen=True, slots=True)
class ActiveCheck:
    status: ActiveStatus
    segment: Segment | None = None
    elapsed_minutes: int = 0
    remaining_minutes: int = 0
    result: ActionResult | None = None

    @property
    def message(self) -> str:
        if self.status is ActiveStatus.WARNING:
            return (
                f"Die aktuelle Aktivität läuft seit {self.elapsed_minutes} Minuten. "
                f"In {self.remaining_minutes} Minuten wird sie automatisch beendet."
            )
        if self.status is ActiveStatus.CAPPED:
            if self.result is not None and not self.result.ok:
                return self.result.message
            return (
                f"Die Aktivität wurde nach {MAX_BLOCK_MINUTES // 60} Stunden automatisch beendet. "
                "Bitte starten Sie bei Bedarf eine neue Aktivität."
            )
        return ""


class DaySession:
    def __init__(
        self,
        store: SegmentStore,
        day: date,
        *,
        labels: LabelIndex | None = None,
        clock: Callable[[], datetime] | None = None,
        warning_lead_minutes: int = DEFAULT_WARNING_LEAD_MINUTES,
    ) -> None:
        self._store = store
        self._day = day
        self._labels = labels
        self._clock = clock or datetime.now
        self._warning_lead_minutes = warning_lead_minutes
        self._segments: tuple[Segment, ...] = ()
        self._blocks: tuple[ConsolidatedBlock, ...] = ()
        self._completed = False

    # ------------------------------------------------------------------
    # State
    @property
    def day(self) -> date:
        return self._day

    @property
    def snapshot(self) -> tuple[Segment, ...]:
        return self._segments

    @property
    def blocks(self) -> tuple[ConsolidatedBlock, ...]:
        return self._blocks

    @property
    def day_completed(self) -> bool:
        return self._completed

    @property
    def active_segment(self) -> Segment | None:
        for segment in self._segments:
            if segment.is_open:
                return segment
        return None

    def segment_at(self, row: int) -> Segment:
        return self._segments[row]

    def missing_label_rows(self) -> list[int]:
        """1-based rows of segments without a description."""
        return [row for row, segment in enumerate(self._segments, start=1) if not segment.has_label]

    def statistics(self) -> DayStatistics:
        return DayStatistics.from_segments(self._segments)

    # ------------------------------------------------------------------
    # Actions
    def load(self) -> ActionResult:
        return self._perform("load", self._load)

    def start_activity(self, now: datetime | time | None = None) -> ActionResult:
        return self._perform("start_activity", lambda: self._start(self._current_time(now)))

    def stop_activity(self, now: datetime | time | None = None) -> ActionResult:
        return self._perform("stop_activity", lambda: self._stop(self._current_time(now)))

    def edit_field(self, segment_id: int, field: SegmentField, text: str) -> ActionResult:
        return self._perform("edit_field", lambda: self._edit(segment_id, field, text))

    def delete_segment(self, segment_id: int) -> ActionResult:
        return self._perform("delete_segment", lambda: self._delete(segment_id))

    def complete_day(self) -> ActionResult:
        return self._perform("complete_day", self._complete)

    def undo_completion(self) -> ActionResult:
        return self._perform("undo_completion", self._undo_completion)

    def check_active(self, now: datetime | time | None = None) -> ActiveCheck:
        """Report how long the open segment has been running and close it at the cap."""
        active = self.active_segment
        if active is None:
            return ActiveCheck(ActiveStatus.IDLE)

        current = self._current_time(now)
        elapsed = max(0, signed_minutes(active.start, current))
        if elapsed >= MAX_BLOCK_MINUTES:
            LOGGER.info(
                "Open segment reached the maximum duration",
                extra={"event": "session_active_capped", "segment_id": active.segment_id, "elapsed": elapsed},
            )
            result = self._perform("cap_active", lambda: self._close_active(active, capped=True))
            return ActiveCheck(
                ActiveStatus.CAPPED,
                segment=result.segment or active,
                elapsed_minutes=elapsed,
                result=result,
            )

        remaining = MAX_BLOCK_MINUTES - elapsed
        if remaining <= self._warning_lead_minutes:
            return ActiveCheck(ActiveStatus.WARNING, active, elapsed, remaining)
        return ActiveCheck(ActiveStatus.OK, active, elapsed, remaining)

    # ------------------------------------------------------------------
    # Action bodies
    def _load(self) -> ActionResult:
        notes: list[str] = []
        stale = self._close_stale_running()
        if stale is not None:
            notes.append(stale)
        self._read_from_store()
        if self._completed:
            return ActionResult.success(" ".join(notes))
        changes = ChangeSet()
        settled = self._settle(self._segments, changes)
        if not changes:
            self._segments = settled
            return ActionResult.success(" ".join(notes))
        self._commit(settled, changes)
        notes.append("Lücken und Überschneidungen wurden korrigiert.")
        return ActionResult.success(" ".join(notes), changes=len(changes))

    def _start(self, now: time) -> ActionResult:
        self._ensure_unlocked()
        if self.active_segment is not None:
            raise ValidationError("Es läuft bereits eine Aktivität.")
        start = self._next_start_time(now)
        changes = ChangeSet()
        started = changes.insert(Segment.create(self._day, start))
        settled = self._settle([*self._segments, started], changes)
        self._commit(settled, changes)
        return ActionResult.success(
            f"Aktivität um {format_time(start)} gestartet.",
            segment=self.active_segment,
            changes=len(changes),
        )

    def _stop(self, now: time) -> ActionResult:
        active = self.active_segment
        if active is None:
            raise ValidationError("Es läuft keine Aktivität.")
        if now <= active.start:
            raise ValidationError("Die Endzeit muss nach der Startzeit liegen.")
        return self._close_active(active, end=now)

    def _close_active(self, active: Segment, *, end: time | None = None, capped: bool = False) -> ActionResult:
        if capped:
            end = offset_time(active.start, MAX_BLOCK_MINUTES, context="Maximum duration")
        changes = ChangeSet()
        closed = changes.update(active.with_times(active.start, end))
        settled = self._settle(_replace_segment(self._segments, closed), changes)
        self._commit(settled, changes)
        segment = self._find(closed.segment_id)
        return ActionResult.success(
            f"Aktivität um {format_time(segment.end)} beendet.",
            segment=segment,
            changes=len(changes),
        )

    def _edit(self, segment_id: int, field: SegmentField, text: str) -> ActionResult:
        segment = self._find(segment_id)
        reason = read_only_reason(segment, field, locked=self._completed)
        if reason:
            raise ValidationError(reason)

        if field is SegmentField.LABEL:
            return self._edit_label(segment, text)

        try:
            value = parse_time(text)
        except ValueError as exc:
            raise ValidationError("Ungültiges Zeitformat. Bitte HH:MM verwenden.") from exc
        start, end = (value, segment.end) if field is SegmentField.START else (segment.start, value)
        if end is None or end <= start:
            raise ValidationError("Die Endzeit muss nach der Startzeit liegen.")
        if (start, end) == (segment.start, segment.end):
            return ActionResult.success(segment=segment)

        changes = ChangeSet()
        edited = changes.update(segment.with_times(start, end))
        ordered = order_segments(_replace_segment(self._segments, edited))
        index = _index_of(ordered, edited.segment_id)
        split = False
        if edited.duration_minutes > MAX_BLOCK_MINUTES:
            ordered = list(split_if_over_long(ordered, index, changes).segments)
            split = True
        elif field is SegmentField.END:
            reanchor_following(ordered, index + 1, changes)

        settled = self._settle(ordered, changes)
        self._commit(settled, changes)
        message = "Eintrag aktualisiert."
        if split:
            message = f"Eintrag wurde auf {MAX_BLOCK_MINUTES // 60} Stunden begrenzt."
        return ActionResult.success(message, segment=self._find(segment_id), changes=len(changes))

    def _edit_label(self, segment: Segment, text: str) -> ActionResult:
        label = (text or "").strip()
        if label == segment.label:
            return ActionResult.success(segment=segment)
        changes = ChangeSet()
        updated = changes.update(segment.with_label(label))
        self._commit(_replace_segment(self._segments, updated), changes)
        self._record_label(label)
        return ActionResult.success("Beschreibung aktualisiert.", segment=updated, changes=len(changes))

    def _delete(self, segment_id: int) -> ActionResult:
        self._ensure_unlocked()
        segment = self._find(segment_id)
        if segment.is_open:
            raise ValidationError("Laufende Aktivitäten können nicht gelöscht werden. Bitte zuerst stoppen.")
        changes = ChangeSet()
        changes.delete(segment)
        remaining = [item for item in self._segments if item.segment_id != segment_id]
        settled = self._settle(remaining, changes)
        self._commit(settled, changes)
        return ActionResult.success("Eintrag gelöscht.", changes=len(changes))

    def _complete(self) -> ActionResult:
        if self._completed:
            raise ValidationError("Der Tag ist bereits abgeschlossen.")
        if self.active_segment is not None:
            raise ValidationError("Bitte stoppen Sie zuerst die laufende Aktivität.")
        if not self._segments:
            raise ValidationError("Für diesen Tag sind keine Einträge vorhanden.")
        missing = self.missing_label_rows()
        if missing:
            rows = ", ".join(str(row) for row in missing)
            raise ValidationError(f"Folgende Zeilen haben keine Beschreibung: {rows}")

        blocks = consolidate(self._segments)
        if not blocks:
            raise ValidationError("Es gibt keine Arbeitszeiten zum Abschließen.")

        removed = self._store.delete_blocks_for_date(self._day)
        try:
            stored = [block.with_id(self._store.insert_consolidated_block(block)) for block in blocks]
        except PersistenceError:
            # Stored blocks mark the day completed, so a partial set must not survive.
            self._discard_partial_blocks()
            raise
        self._blocks = tuple(stored)
        self._completed = True
        LOGGER.info(
            "Day completed",
            extra={"event": "session_day_completed", "day": self._day.isoformat(), "blocks": len(stored), "replaced": removed},
        )
        return ActionResult.success(f"Tag abgeschlossen: {len(stored)} Blöcke erstellt.", changes=len(stored))

    def _undo_completion(self) -> ActionResult:
        if not self._completed:
            raise ValidationError("Der Tag ist nicht abgeschlossen.")
        removed = self._store.delete_blocks_for_date(self._day)
        self._blocks = ()
        self._completed = False
        LOGGER.info(
            "Day completion removed",
            extra={"event": "session_day_reopened", "day": self._day.isoformat(), "blocks": removed},
        )
        return ActionResult.success("Abschluss aufgehoben. Einträge können wieder bearbeitet werden.")

    # ------------------------------------------------------------------
    # Helpers
    def _perform(self, action: str, operation: Callable[[], ActionResult]) -> ActionResult:
        try:
            return operation()
        except ValidationError as exc:
            LOGGER.info(
                "Action rejected",
                extra={"event": "session_action_rejected", "action": action, "reason": str(exc)},
            )
            return ActionResult.failure(str(exc), exc)
        except PersistenceError as exc:
            LOGGER.error(
                "Action failed while saving",
                exc_info=True,
                extra={"event": "session_persistence_failed", "action": action},
            )
            self._resync()
            return ActionResult.failure(f"Die Änderungen konnten nicht gespeichert werden: {exc}", exc)
        except InvariantViolationError as exc:
            LOGGER.error(
                "Sequence could not be repaired",
                exc_info=True,
                extra={"event": "session_invariant_violation", "action": action},
            )
            return ActionResult.failure(f"Die Zeitfolge konnte nicht korrigiert werden: {exc}", exc)

    def _read_from_store(self) -> None:
        segments = self._store.segments_for_date(self._day)
        blocks = self._store.blocks_for_date(self._day)
        self._segments = tuple(order_segments(segments))
        self._blocks = tuple(blocks)
        self._completed = bool(blocks)

    def _close_stale_running(self) -> str | None:
        """Close a segment left running on an earlier day at most 120 minutes after its start."""
        running = self._store.active_segment()
        if running is None or running.day >= self._day:
            return None
        limit = min(MAX_BLOCK_MINUTES, MINUTES_PER_DAY - 1 - minute_of_day(running.start))
        if limit <= 0:
            self._store.delete_segment(running.segment_id)
            LOGGER.warning(
                "Discarded segment left running at end of an earlier day",
                extra={"event": "session_stale_running_discarded", "day": running.day.isoformat()},
            )
            return f"Die laufende Aktivität vom {format_date(running.day)} wurde verworfen."
        closed = running.with_times(running.start, add_minutes(running.start, limit))
        self._store.update_segment(closed)
        LOGGER.warning(
            "Closed segment left running on an earlier day",
            extra={
                "event": "session_stale_running_closed",
                "day": running.day.isoformat(),
                "segment_id": running.segment_id,
                "end": format_time(closed.end),
            },
        )
        return f"Die laufende Aktivität vom {format_date(running.day)} wurde um {format_time(closed.end)} beendet."

    def _discard_partial_blocks(self) -> None:
        try:
            self._store.delete_blocks_for_date(self._day)
        except PersistenceError:
            LOGGER.exception(
                "Unable to remove partially stored blocks",
                extra={"event": "session_block_rollback_failed", "day": self._day.isoformat()},
            )

    def _resync(self) -> None:
        try:
            self._read_from_store()
        except PersistenceError:
            LOGGER.exception("Unable to reload day after failure", extra={"event": "session_resync_failed"})

    def _settle(self, segments: Iterable[Segment], changes: ChangeSet) -> tuple[Segment, ...]:
        reconciled = reconcile(list(segments), changes).segments
        capped, splits = enforce_cap(reconciled, changes)
        if splits:
            capped = reconcile(capped, changes).segments
        return capped

    def _commit(self, segments: Sequence[Segment], changes: ChangeSet) -> None:
        assigned: dict[int, int] = {}
        for change in changes:
            segment = change.segment
            if change.kind is ChangeKind.INSERT:
                assigned[segment.segment_id] = self._store.insert_segment(segment.with_id(0))
            elif change.kind is ChangeKind.UPDATE:
                self._store.update_segment(segment)
            else:
                self._store.delete_segment(segment.segment_id)

        resolved = [
            segment.with_id(assigned[segment.segment_id]) if segment.is_provisional else segment
            for segment in segments
        ]
        self._segments = tuple(order_segments(resolved))
        if changes:
            LOGGER.info(
                "Changes saved",
                extra={
                    "event": "session_changes_saved",
                    "day": self._day.isoformat(),
                    "inserted": len(changes.inserts),
                    "updated": len(changes.updates),
                    "deleted": len(changes.deletes),
                },
            )

    def _record_label(self, label: str) -> None:
        if self._labels is None or not label:
            return
        try:
            self._labels.record_usage(label)
        except PersistenceError:
            LOGGER.warning("Label usage not recorded", exc_info=True, extra={"event": "label_usage_failed"})

    def _find(self, segment_id: int) -> Segment:
        for segment in self._segments:
            if segment.segment_id == segment_id:
                return segment
        raise ValidationError("Der Eintrag wurde nicht gefunden.")

    def _ensure_unlocked(self) -> None:
        if self._completed:
            raise ValidationError(
                "Der Tag ist abgeschlossen. Heben Sie den Abschluss auf, um Änderungen vorzunehmen."
            )

    def _next_start_time(self, now: time) -> time:
        """The end of the latest segment when it is closed, otherwise ``now``."""
        if not self._segments:
            return now
        latest = max(self._segments, key=lambda segment: segment.start)
        return latest.end if latest.end is not None else now

    def _current_time(self, value: datetime | time | None) -> time:
        return truncate_to_minute(value if value is not None else self._clock())


def _replace_segment(segments: Iterable[Segment], updated: Segment) -> list[Segment]:
    return [updated if segment.segment_id == updated.segment_id else segment for segment in segments]


def _index_of(segments: Sequence[Segment], segment_id: int) -> int:
    for index, segment in enumerate(segments):
        if segment.segment_id == segment_id:
            return index
    raise ValueError(f"Segment {segment_id} not in sequence")
