"""Read-only view of the segments and blocks recorded on an earlier day."""

from __future__ import annotations

import logging
from datetime import date, timedelta

from PySide6.QtCore import QAbstractTableModel, QDate, QModelIndex, Qt
from PySide6.QtWidgets import (
    QAbstractItemView,
    QComboBox,
    QDateEdit,
    QDialog,
    QDialogButtonBox,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QTableView,
    QTabWidget,
    QVBoxLayout,
    QWidget,
)

from ..core.exceptions import PersistenceError
from ..core.fields import SegmentField, display_value
from ..core.history import DayHistory, available_dates, load_history
from ..core.models import Segment
from ..core.store import SegmentStore
from ..core.time_segments import format_date, format_date_title
from .blocks_model import BlocksTableModel
from .icons import history_icon
from .segments_model import COLUMNS

LOGGER = logging.getLogger("zeitblock.ui.history")


class HistorySegmentsModel(QAbstractTableModel):
    def __init__(self) -> None:
        super().__init__()
        self._rows: list[Segment] = []

    def rowCount(self, parent: QModelIndex | None = None) -> int:  # type: ignore[override]
        if parent and parent.isValid():
            return 0
        return len(self._rows)

    def columnCount(self, parent: QModelIndex | None = None) -> int:  # type: ignore[override]
        return len(COLUMNS)

    def data(self, index: QModelIndex, role: int = Qt.DisplayRole):  # type: ignore[override]
        if not index.isValid() or not (0 <= index.row() < len(self._rows)):
            return None
        segment = self._rows[index.row()]
        field = COLUMNS[index.column()]
        if role == Qt.DisplayRole:
            if field is SegmentField.END and segment.is_open:
                return "läuft"
            return display_value(segment, field)
        if role == Qt.TextAlignmentRole and field is not SegmentField.LABEL:
            return int(Qt.AlignCenter | Qt.AlignVCenter)
        return None

    def headerData(self, section: int, orientation: Qt.Orientation, role: int = Qt.DisplayRole):  # type: ignore[override]
        if role != Qt.DisplayRole:
            return None
        if orientation == Qt.Horizontal and 0 <= section < len(COLUMNS):
            return COLUMNS[section].header
        if orientation == Qt.Vertical:
            return str(section + 1)
        return None

    def flags(self, index: QModelIndex):  # type: ignore[override]
        return Qt.ItemIsSelectable | Qt.ItemIsEnabled

    def update_segments(self, segments: list[Segment]) -> None:
        self.beginResetModel()
        self._rows = list(segments)
        self.endResetModel()


class HistoryDialog(QDialog):
    """Browse past days without changing them."""

    def __init__(self, store: SegmentStore, today: date, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setWindowIcon(history_icon())
        self.resize(680, 480)

        self._store = store
        self._today = today
        self._history: DayHistory | None = None

        self._segments_model = HistorySegmentsModel()
        self._blocks_model = BlocksTableModel()
        self._build_ui()

        self._populate_dates()
        initial = self._dates[0] if self._dates else today - timedelta(days=1)
        self._date_edit.setDate(QDate(initial.year, initial.month, initial.day))
        self._date_edit.dateChanged.connect(self._on_date_changed)
        self._day_combo.activated.connect(self._on_day_picked)
        self.load_day(initial)

    @property
    def history(self) -> DayHistory | None:
        return self._history

    # ------------------------------------------------------------------
    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(16, 16, 16, 16)
        layout.setSpacing(12)

        picker = QHBoxLayout()
        picker.setSpacing(8)
        picker.addWidget(QLabel("Datum:", self))
        self._date_edit = QDateEdit(self)
        self._date_edit.setCalendarPopup(True)
        self._date_edit.setDisplayFormat("dd.MM.yyyy")
        picker.addWidget(self._date_edit)
        picker.addSpacing(16)
        picker.addWidget(QLabel("Tage mit Einträgen:", self))
        self._day_combo = QComboBox(self)
        picker.addWidget(self._day_combo, 1)
        layout.addLayout(picker)

        self._segments_table = self._read_only_table(self._segments_model)
        segments_header = self._segments_table.horizontalHeader()
        for column, field in enumerate(COLUMNS):
            mode = QHeaderView.Stretch if field is SegmentField.LABEL else QHeaderView.ResizeToContents
            segments_header.setSectionResizeMode(column, mode)

        self._blocks_table = self._read_only_table(self._blocks_model)
        blocks_header = self._blocks_table.horizontalHeader()
        blocks_header.setSectionResizeMode(QHeaderView.ResizeToContents)
        blocks_header.setSectionResizeMode(3, QHeaderView.Stretch)

        self._tabs = QTabWidget(self)
        self._tabs.setDocumentMode(True)
        self._tabs.addTab(self._segments_table, "Zeiterfassung")
        self._tabs.addTab(self._blocks_table, "Abschluss")
        layout.addWidget(self._tabs, 1)

        self._stats_label = QLabel("Gesamtzeit: --:-- | Nettozeit: --:-- | Pausen: --:--", self)
        self._status_label = QLabel("", self)
        layout.addWidget(self._stats_label)
        layout.addWidget(self._status_label)

        buttons = QDialogButtonBox(QDialogButtonBox.Close, Qt.Horizontal, self)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def _read_only_table(self, model: QAbstractTableModel) -> QTableView:
        table = QTableView(self)
        table.setModel(model)
        table.setSelectionBehavior(QAbstractItemView.SelectRows)
        table.setEditTriggers(QAbstractItemView.NoEditTriggers)
        table.setAlternatingRowColors(True)
        return table

    def _populate_dates(self) -> None:
        try:
            self._dates = available_dates(self._store, before=self._today)
        except PersistenceError:
            LOGGER.exception("Unable to list recorded days", extra={"event": "history_dates_failed"})
            self._dates = []
        self._day_combo.clear()
        for day in self._dates:
            self._day_combo.addItem(format_date(day))
        self._day_combo.setEnabled(bool(self._dates))

    # ------------------------------------------------------------------
    def load_day(self, day: date) -> DayHistory | None:
        self.setWindowTitle(f"Historische Zeiterfassung - {format_date_title(day)}")
        try:
            history = load_history(self._store, day)
        except PersistenceError as exc:
            LOGGER.exception("Unable to load history", extra={"event": "history_load_failed", "day": day.isoformat()})
            self._history = None
            self._segments_model.update_segments([])
            self._blocks_model.update_blocks([])
            self._status_label.setText(f"Daten konnten nicht geladen werden: {exc}")
            return None

        self._history = history
        self._segments_model.update_segments(list(history.segments))
        self._blocks_model.update_blocks(list(history.blocks))
        stats = history.statistics
        self._stats_label.setText(
            f"Gesamtzeit: {stats.pretty_total} | Nettozeit: {stats.pretty_net} | Pausen: {stats.pretty_breaks}"
        )
        self._status_label.setText(self._status_text(history))
        if history.completed and not history.segments:
            self._tabs.setCurrentIndex(1)
        return history

    def _status_text(self, history: DayHistory) -> str:
        if history.is_empty:
            return f"Für den {format_date(history.day)} sind keine Einträge vorhanden."
        text = f"{len(history.segments)} Einträge"
        text += f", {len(history.blocks)} Blöcke (abgeschlossen)" if history.completed else ", nicht abgeschlossen"
        if history.discontinuities:
            text += f", {history.discontinuities} Lücken oder Überschneidungen"
        return text

    def _on_date_changed(self, value: QDate) -> None:
        self.load_day(value.toPython())

    def _on_day_picked(self, row: int) -> None:
        if 0 <= row < len(self._dates):
            day = self._dates[row]
            self._date_edit.setDate(QDate(day.year, day.month, day.day))
