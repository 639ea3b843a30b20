"""Filesystem path utilities for Zeitblock."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

APP_NAME = "zeitblock"
STORE_FILENAME = "zeitblock.json"
LABELS_FILENAME = "labels.json"
SETTINGS_FILENAME = "settings.json"
LOG_FILENAME = "zeitblock.log"
EXPORTS_DIRNAME = "exports"

_DATA_DIR_OVERRIDE: Path | None = None


def _roaming_root() -> Path:
    """Return the user's roaming application data directory."""
    appdata = os.environ.get("APPDATA")
    if appdata:
        return Path(appdata)
    # Fallback for non-Windows or missing APPDATA
    return Path.home() / "AppData" / "Roaming"


def default_app_data_dir() -> Path:
    return _roaming_root() / APP_NAME


def set_app_data_directory(path: Path | str | None) -> Path:
    global _DATA_DIR_OVERRIDE
    _DATA_DIR_OVERRIDE = Path(path).expanduser() if path else None
    app_data_dir.cache_clear()
    return app_data_dir()


@lru_cache(maxsize=1)
def app_data_dir() -> Path:
    """Return the base application data directory, ensuring it exists."""
    base = _DATA_DIR_OVERRIDE or default_app_data_dir()
    base.mkdir(parents=True, exist_ok=True)
    return base


def settings_path() -> Path:
    return default_app_data_dir() / SETTINGS_FILENAME


def store_path() -> Path:
    return app_data_dir() / STORE_FILENAME


def labels_path() -> Path:
    return app_data_dir() / LABELS_FILENAME


def log_path() -> Path:
    return app_data_dir() / LOG_FILENAME


def exports_dir() -> Path:
    path = app_data_dir() / EXPORTS_DIRNAME
    path.mkdir(parents=True, exist_ok=True)
    return path


def ensure_app_structure() -> None:
    """Proactively create the directory structure the app relies on."""
    app_data_dir()
    exports_dir()
