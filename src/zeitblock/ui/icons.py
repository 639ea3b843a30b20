"""QtAwesome icons for the main window actions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

import qtawesome as qta  # type: ignore[import]
from PySide6.QtGui import QIcon

START_ICON_NAMES: tuple[str, ...] = ("fa5s.play", "fa6s.play", "mdi.play")
STOP_ICON_NAMES: tuple[str, ...] = ("fa5s.stop", "fa6s.stop", "mdi.stop")
TRASH_ICON_NAMES: tuple[str, ...] = ("fa5s.trash", "fa5s.trash-alt", "fa6s.trash", "mdi.trash-can")
COMPLETE_ICON_NAMES: tuple[str, ...] = ("fa5s.check-double", "fa6s.check-double", "mdi.check-all")
UNDO_ICON_NAMES: tuple[str, ...] = ("fa5s.undo", "fa6s.rotate-left", "mdi.undo")
EXPORT_ICON_NAMES: tuple[str, ...] = ("fa5s.file-export", "fa6s.file-export", "mdi.export")
CLOCK_ICON_NAMES: tuple[str, ...] = ("fa5s.clock", "fa6s.clock", "mdi.clock-outline")
HISTORY_ICON_NAMES: tuple[str, ...] = ("fa5s.history", "fa6s.clock-rotate-left", "mdi.history")


@dataclass(frozen=True)
class IconColor:
    normal: str
    active: str


_LOGGER = logging.getLogger("zeitblock.ui.icons")

_PALETTE: dict[str, IconColor] = {
    "accent": IconColor(normal="#0f172a", active="#1d4ed8"),
    "danger": IconColor(normal="#1f2937", active="#ef4444"),
    "control": IconColor(normal="#1f2937", active="#2563eb"),
    "success": IconColor(normal="#166534", active="#22c55e"),
}


def _resolve_colors(role: str) -> IconColor:
    colors = _PALETTE.get(role)
    if colors is None:
        _LOGGER.warning("Unknown icon role '%s'; falling back to accent", role)
        return _PALETTE["accent"]
    return colors


def _qtawesome_icon(names: Iterable[str], size: int, role: str) -> QIcon:
    """Return the first renderable QtAwesome icon from ``names``."""

    colors = _resolve_colors(role)
    last_error: Exception | None = None
    for name in names:
        try:
            icon = qta.icon(name, color=colors.normal, color_active=colors.active)
        except Exception as exc:  # pragma: no cover - glyph names differ between font versions
            last_error = exc
            continue
        pixmap = icon.pixmap(size, size)
        if not pixmap.isNull():
            return QIcon(pixmap)

    message = f"QtAwesome icon lookup failed for {tuple(names)}"
    if last_error is not None:
        raise RuntimeError(message) from last_error
    raise RuntimeError(message)


def start_icon(size: int = 20) -> QIcon:
    return _qtawesome_icon(START_ICON_NAMES, size, role="success")


def stop_icon(size: int = 20) -> QIcon:
    return _qtawesome_icon(STOP_ICON_NAMES, size, role="danger")


def trash_icon(size: int = 20) -> QIcon:
    return _qtawesome_icon(TRASH_ICON_NAMES, size, role="danger")


def complete_icon(size: int = 20) -> QIcon:
    return _qtawesome_icon(COMPLETE_ICON_NAMES, size, role="accent")


def undo_icon(size: int = 20) -> QIcon:
    return _qtawesome_icon(UNDO_ICON_NAMES, size, role="control")


def export_icon(size: int = 20) -> QIcon:
    return _qtawesome_icon(EXPORT_ICON_NAMES, size, role="control")


def history_icon(size: int = 20) -> QIcon:
    return _qtawesome_icon(HISTORY_ICON_NAMES, size, role="control")


def app_icon(size: int = 64) -> QIcon:
    """Window icon; the clock glyph stands in for a bundled image."""
    return _qtawesome_icon(CLOCK_ICON_NAMES, size, role="accent")
