"""JSON-file implementation of the segment store."""

from __future__ import annotations

import contextlib
import json
import logging
import os
from datetime import date
from pathlib import Path
from typing import Any, Iterator, Optional

import portalocker

from .exceptions import PersistenceError
from .models import ConsolidatedBlock, Segment
from .paths import store_path

SCHEMA_VERSION = 1


def _empty_payload() -> dict[str, Any]:
    return {
        "version": SCHEMA_VERSION,
        "next_segment_id": 1,
        "next_block_id": 1,
        "segments": [],
        "blocks": [],
    }


class SegmentRepository:
    """Handles durable persistence of segments and consolidated blocks.

    The whole store is one JSON document. Reads take a shared lock; every
    write takes an exclusive lock, rewrites the document and fsyncs it.
    """

    def __init__(
        self,
        path: Path | None = None,
        logger: logging.Logger | None = None,
        lock_timeout: float = 10.0,
    ) -> None:
        self._path = Path(path) if path is not None else store_path()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock_timeout = lock_timeout
        self._logger = logger or logging.getLogger("zeitblock.repository")
        self._ensure_file()

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Segments
    def insert_segment(self, segment: Segment) -> int:
        with self._transaction("segment_insert") as payload:
            segment_id = int(payload["next_segment_id"])
            payload["next_segment_id"] = segment_id + 1
            payload["segments"].append(segment.with_id(segment_id).to_json_dict())
        self._logger.info(
            "Segment inserted",
            extra={"event": "segment_insert", "segment_id": segment_id, "segment": segment.describe()},
        )
        return segment_id

    def update_segment(self, segment: Segment) -> None:
        if not segment.is_saved:
            raise PersistenceError(f"Segment has no stored id: {segment.describe()}")
        with self._transaction("segment_update") as payload:
            for index, item in enumerate(payload["segments"]):
                if int(item.get("id") or 0) == segment.segment_id:
                    payload["segments"][index] = segment.to_json_dict()
                    break
            else:
                raise PersistenceError(f"Segment {segment.segment_id} does not exist")
        self._logger.info(
            "Segment updated",
            extra={"event": "segment_update", "segment_id": segment.segment_id, "segment": segment.describe()},
        )

    def delete_segment(self, segment_id: int) -> None:
        with self._transaction("segment_delete") as payload:
            remaining = [item for item in payload["segments"] if int(item.get("id") or 0) != segment_id]
            if len(remaining) == len(payload["segments"]):
                raise PersistenceError(f"Segment {segment_id} does not exist")
            payload["segments"] = remaining
        self._logger.info("Segment deleted", extra={"event": "segment_delete", "segment_id": segment_id})

    def segments_for_date(self, day: date) -> list[Segment]:
        self._logger.debug("Loading segments", extra={"event": "segments_load", "day": day.isoformat()})
        segments = [segment for segment in self._load_segments() if segment.day == day]
        return sorted(segments, key=lambda segment: (segment.start, segment.end is None, segment.segment_id))

    def active_segment(self) -> Optional[Segment]:
        running = [segment for segment in self._load_segments() if segment.is_open]
        if not running:
            return None
        return max(running, key=lambda segment: (segment.day, segment.start))

    def dates_with_segments(self) -> list[date]:
        return sorted({segment.day for segment in self._load_segments()})

    # ------------------------------------------------------------------
    # Consolidated blocks
    def insert_consolidated_block(self, block: ConsolidatedBlock) -> int:
        with self._transaction("block_insert") as payload:
            block_id = int(payload["next_block_id"])
            payload["next_block_id"] = block_id + 1
            payload["blocks"].append(block.with_id(block_id).to_json_dict())
        self._logger.debug("Block inserted", extra={"event": "block_insert", "block_id": block_id})
        return block_id

    def blocks_for_date(self, day: date) -> list[ConsolidatedBlock]:
        payload = self._read_payload()
        blocks: list[ConsolidatedBlock] = []
        for index, item in enumerate(payload["blocks"]):
            try:
                block = ConsolidatedBlock.from_json_dict(item)
            except (KeyError, TypeError, ValueError):
                self._logger.exception(
                    "Skipping malformed block",
                    extra={"event": "block_skip_invalid", "item_index": index},
                )
                continue
            if block.day == day:
                blocks.append(block)
        return sorted(blocks, key=lambda block: (block.start, block.end, block.label))

    def delete_blocks_for_date(self, day: date) -> int:
        key = day.isoformat()
        with self._transaction("blocks_delete") as payload:
            before = len(payload["blocks"])
            payload["blocks"] = [item for item in payload["blocks"] if item.get("date") != key]
            removed = before - len(payload["blocks"])
        self._logger.info(
            "Blocks deleted",
            extra={"event": "blocks_delete", "day": key, "count": removed},
        )
        return removed

    # ------------------------------------------------------------------
    # Internal helpers
    def _ensure_file(self) -> None:
        if not self._path.exists() or self._path.stat().st_size == 0:
            self._logger.debug(
                "Creating store file",
                extra={"event": "store_file_init", "path": str(self._path)},
            )
            self._path.write_text(json.dumps(_empty_payload(), indent=2), encoding="utf-8")

    def _load_segments(self) -> list[Segment]:
        payload = self._read_payload()
        segments: list[Segment] = []
        for index, item in enumerate(payload["segments"]):
            try:
                segments.append(Segment.from_json_dict(item))
            except (KeyError, TypeError, ValueError):
                self._logger.exception(
                    "Skipping malformed segment",
                    extra={"event": "segment_skip_invalid", "item_index": index},
                )
        return segments

    def _read_payload(self) -> dict[str, Any]:
        try:
            with portalocker.Lock(
                self._path,
                mode="r",
                timeout=self._lock_timeout,
                flags=portalocker.LockFlags.SHARED,
                encoding="utf-8",
            ) as locked_file:
                return _parse_payload(locked_file.read())
        except FileNotFoundError:
            self._ensure_file()
            return _empty_payload()
        except PersistenceError:
            raise
        except Exception as exc:
            self._logger.exception("Failed reading store file", extra={"event": "store_read_failed"})
            raise PersistenceError("Unable to read segments") from exc

    @contextlib.contextmanager
    def _transaction(self, event: str) -> Iterator[dict[str, Any]]:
        self._ensure_file()
        try:
            with portalocker.Lock(
                self._path,
                mode="r+",
                timeout=self._lock_timeout,
                flags=portalocker.LockFlags.EXCLUSIVE,
                encoding="utf-8",
            ) as locked_file:
                locked_file.seek(0)
                payload = _parse_payload(locked_file.read())
                yield payload
                serialized = json.dumps(payload, ensure_ascii=False, indent=2)
                locked_file.seek(0)
                locked_file.truncate()
                locked_file.write(serialized)
                locked_file.flush()
                os.fsync(locked_file.fileno())
        except PersistenceError:
            raise
        except Exception as exc:
            self._logger.exception("Store write failed", extra={"event": f"{event}_failed"})
            raise PersistenceError("Unable to persist changes") from exc


def _parse_payload(text: str) -> dict[str, Any]:
    if not text.strip():
        return _empty_payload()
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise PersistenceError("Store file is malformed") from exc
    if not isinstance(payload, dict):
        raise PersistenceError("Store file has an unexpected structure")
    merged = _empty_payload()
    merged.update(payload)
    return merged
