"""Settings management for Zeitblock."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable

from croniter import croniter

from .exceptions import SettingsError
from .models import MAX_BLOCK_MINUTES
from .paths import default_app_data_dir, exports_dir, settings_path

DEFAULT_MONITOR_CRON = "* * * * *"
DEFAULT_WARNING_LEAD_MINUTES = 10
MIN_WINDOW_OPACITY = 0.3


@dataclass(slots=True)
class Settings:
    app_data_path: str = field(default_factory=lambda: str(default_app_data_dir()))
    monitor_cron: str = DEFAULT_MONITOR_CRON
    warning_lead_minutes: int = DEFAULT_WARNING_LEAD_MINUTES
    always_on_top: bool = False
    window_opacity: float = 1.0
    export_path: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Settings":
        if not isinstance(payload, dict):
            raise SettingsError("Settings payload must be an object")
        settings = cls(
            app_data_path=str(payload.get("app_data_path") or default_app_data_dir()).strip(),
            monitor_cron=str(payload.get("monitor_cron") or DEFAULT_MONITOR_CRON).strip(),
            warning_lead_minutes=int(payload.get("warning_lead_minutes", DEFAULT_WARNING_LEAD_MINUTES)),
            always_on_top=bool(payload.get("always_on_top", False)),
            window_opacity=float(payload.get("window_opacity", 1.0)),
            export_path=str(payload.get("export_path") or "").strip(),
        )
        validate_settings(settings)
        return settings

    def resolved_export_dir(self) -> Path:
        if self.export_path:
            return Path(self.export_path).expanduser()
        return exports_dir()


def validate_settings(settings: Settings) -> None:
    _validate_cron(settings.monitor_cron)
    if not 0 <= settings.warning_lead_minutes < MAX_BLOCK_MINUTES:
        raise SettingsError(f"Warning lead must be between 0 and {MAX_BLOCK_MINUTES - 1} minutes")
    if not MIN_WINDOW_OPACITY <= settings.window_opacity <= 1.0:
        raise SettingsError(f"Window opacity must be between {MIN_WINDOW_OPACITY} and 1.0")
    if not settings.app_data_path:
        raise SettingsError("App data path must not be empty")


class SettingsManager:
    def __init__(self, path: Path | None = None, logger: logging.Logger | None = None) -> None:
        self._path = Path(path) if path is not None else settings_path()
        self._logger = logger or logging.getLogger("zeitblock.settings")

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Settings:
        if not self._path.exists():
            self._logger.info(
                "Settings file missing; using defaults",
                extra={"event": "settings_load_default", "path": str(self._path)},
            )
            return Settings()

        try:
            with self._path.open("r", encoding="utf-8") as infile:
                payload = json.load(infile)
        except json.JSONDecodeError as exc:
            self._logger.exception(
                "Invalid JSON in settings file",
                extra={"event": "settings_load_invalid_json"},
            )
            raise SettingsError("Settings file is malformed") from exc
        except OSError as exc:
            self._logger.exception("Unexpected error loading settings")
            raise SettingsError("Unable to load settings") from exc

        try:
            settings = Settings.from_dict(payload)
        except SettingsError:
            raise
        except (TypeError, ValueError) as exc:
            self._logger.exception(
                "Settings payload invalid",
                extra={"event": "settings_load_invalid_payload"},
            )
            raise SettingsError("Settings payload is invalid") from exc

        self._logger.info(
            "Settings loaded successfully",
            extra={"event": "settings_loaded", **settings.to_dict()},
        )
        return settings

    def save(self, settings: Settings) -> None:
        validate_settings(settings)
        self._logger.info("Saving settings", extra={"event": "settings_save", **settings.to_dict()})

        self._path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self._path.with_suffix(".tmp")
        try:
            with temp_path.open("w", encoding="utf-8") as outfile:
                json.dump(settings.to_dict(), outfile, indent=2)
                outfile.flush()
                os.fsync(outfile.fileno())
            temp_path.replace(self._path)
        except OSError as exc:
            self._logger.exception("Failed to save settings")
            raise SettingsError("Unable to save settings") from exc

    def update(self, transform: Callable[[Settings], Settings]) -> Settings:
        current = self.load()
        updated = transform(current)
        self.save(updated)
        return updated


def _validate_cron(expression: str) -> None:
    if not croniter.is_valid(expression):
        raise SettingsError(f"Invalid cron expression: {expression}")
