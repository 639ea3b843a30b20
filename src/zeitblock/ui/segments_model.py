"""Table model for the editable segments of one day."""

from __future__ import annotations

from PySide6.QtCore import QAbstractTableModel, QModelIndex, Qt, Signal
from PySide6.QtGui import QColor

from ..core.fields import SegmentField, display_value, is_editable
from ..core.session import ActionResult, DaySession

COLUMNS: tuple[SegmentField, ...] = (
    SegmentField.START,
    SegmentField.END,
    SegmentField.DURATION,
    SegmentField.LABEL,
)

_BREAK_BACKGROUND = QColor("#f1f5f9")
_RUNNING_BACKGROUND = QColor("#dcfce7")


class SegmentsTableModel(QAbstractTableModel):
    """Presents ``DaySession.snapshot``; edits go through the session."""

    action_finished = Signal(object)

    def __init__(self, session: DaySession) -> None:
        super().__init__()
        self._session = session

    @property
    def session(self) -> DaySession:
        return self._session

    # ------------------------------------------------------------------
    def rowCount(self, parent: QModelIndex | None = None) -> int:  # type: ignore[override]
        if parent and parent.isValid():
            return 0
        return len(self._session.snapshot)

    def columnCount(self, parent: QModelIndex | None = None) -> int:  # type: ignore[override]
        return len(COLUMNS)

    def data(self, index: QModelIndex, role: int = Qt.DisplayRole):  # type: ignore[override]
        if not index.isValid() or not (0 <= index.row() < self.rowCount()):
            return None
        segment = self._session.segment_at(index.row())
        field = COLUMNS[index.column()]

        if role in (Qt.DisplayRole, Qt.EditRole):
            if role == Qt.DisplayRole and field is SegmentField.END and segment.is_open:
                return "läuft"
            return display_value(segment, field)
        if role == Qt.BackgroundRole:
            if segment.is_open:
                return _RUNNING_BACKGROUND
            if segment.is_break:
                return _BREAK_BACKGROUND
        if role == Qt.TextAlignmentRole and field is not SegmentField.LABEL:
            return int(Qt.AlignCenter | Qt.AlignVCenter)
        if role == Qt.ToolTipRole and field is SegmentField.LABEL and segment.is_break:
            return "Pause"
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
        base = super().flags(index)
        if not index.isValid():
            return base
        segment = self._session.segment_at(index.row())
        if is_editable(segment, COLUMNS[index.column()], locked=self._session.day_completed):
            return base | Qt.ItemIsEditable
        return base

    def setData(self, index: QModelIndex, value, role: int = Qt.EditRole):  # type: ignore[override]
        if role != Qt.EditRole or not index.isValid():
            return False
        segment = self._session.segment_at(index.row())
        result = self._session.edit_field(segment.segment_id, COLUMNS[index.column()], str(value or ""))
        # Edits may insert, move or re-anchor other rows.
        self.refresh()
        self.action_finished.emit(result)
        return result.ok

    # ------------------------------------------------------------------
    def refresh(self) -> None:
        self.beginResetModel()
        self.endResetModel()

    def run(self, result: ActionResult) -> ActionResult:
        """Refresh after a session action triggered elsewhere and announce its result."""
        self.refresh()
        self.action_finished.emit(result)
        return result

    def segment_id_for_row(self, row: int) -> int | None:
        if 0 <= row < self.rowCount():
            return self._session.segment_at(row).segment_id
        return None
