"""Usage index of activity labels used for input suggestions."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

import portalocker

from .exceptions import PersistenceError
from .paths import labels_path

LOGGER = logging.getLogger("zeitblock.labels")

DEFAULT_SUGGESTION_LIMIT = 10


@dataclass(slots=True)
class LabelUsage:
    label: str
    usage_count: int
    last_used: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "usage_count": self.usage_count,
            "last_used": self.last_used.isoformat(timespec="seconds"),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "LabelUsage":
        return cls(
            label=str(payload["label"]),
            usage_count=max(1, int(payload.get("usage_count") or 1)),
            last_used=datetime.fromisoformat(str(payload["last_used"])),
        )


class LabelIndex:
    """Counts how often each label was used; identity is case-insensitive."""

    def __init__(
        self,
        path: Path | None = None,
        lock_timeout: float = 10.0,
        logger: logging.Logger | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._path = Path(path) if path is not None else labels_path()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        if not self._path.exists():
            self._path.write_text("[]", encoding="utf-8")
        self._lock_timeout = lock_timeout
        self._logger = logger or LOGGER
        self._clock = clock

    # ------------------------------------------------------------------
    def record_usage(self, label: str) -> None:
        normalized = _normalize(label)
        if not normalized:
            return
        now = self._clock()
        usages = self._load()
        for usage in usages:
            if usage.label.lower() == normalized.lower():
                usage.usage_count += 1
                usage.last_used = now
                break
        else:
            usages.append(LabelUsage(label=normalized, usage_count=1, last_used=now))
        self._save(usages)

    def suggestions(self, prefix: str = "", limit: int = DEFAULT_SUGGESTION_LIMIT) -> list[str]:
        if limit <= 0:
            limit = DEFAULT_SUGGESTION_LIMIT
        needle = _normalize(prefix).lower()
        matches = [usage for usage in self._load() if usage.label.lower().startswith(needle)]
        matches.sort(key=lambda usage: (-usage.usage_count, -usage.last_used.timestamp(), usage.label.lower()))
        return [usage.label for usage in matches[:limit]]

    def usages(self) -> list[LabelUsage]:
        return self._load()

    # ------------------------------------------------------------------
    def _load(self) -> list[LabelUsage]:
        try:
            with portalocker.Lock(
                self._path,
                mode="r",
                timeout=self._lock_timeout,
                flags=portalocker.LockFlags.SHARED,
                encoding="utf-8",
            ) as locked_file:
                try:
                    data = json.load(locked_file)
                except json.JSONDecodeError:
                    self._logger.warning("Label index malformed; starting empty")
                    data = []
        except FileNotFoundError:
            self._path.write_text("[]", encoding="utf-8")
            return []
        except Exception as exc:
            self._logger.exception("Unable to read label index")
            raise PersistenceError("Unable to read label index") from exc

        usages: list[LabelUsage] = []
        seen: set[str] = set()
        for item in data if isinstance(data, list) else []:
            if not isinstance(item, dict):
                continue
            try:
                usage = LabelUsage.from_dict(item)
            except (KeyError, TypeError, ValueError):
                continue
            key = usage.label.lower()
            if not usage.label or key in seen:
                continue
            seen.add(key)
            usages.append(usage)
        return usages

    def _save(self, usages: list[LabelUsage]) -> None:
        try:
            with portalocker.Lock(
                self._path,
                mode="w",
                timeout=self._lock_timeout,
                flags=portalocker.LockFlags.EXCLUSIVE,
                encoding="utf-8",
            ) as locked_file:
                json.dump([usage.to_dict() for usage in usages], locked_file, ensure_ascii=False, indent=2)
                locked_file.flush()
        except Exception as exc:
            self._logger.exception("Unable to save label index")
            raise PersistenceError("Unable to save label index") from exc


def _normalize(value: str | None) -> str:
    return (value or "").strip()
