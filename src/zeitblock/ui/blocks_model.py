"""Table model for the consolidated blocks of a completed day."""

from __future__ import annotations

from typing import List

from PySide6.QtCore import QAbstractTableModel, QModelIndex, Qt

from ..core.models import ConsolidatedBlock
from ..core.time_segments import format_time


class BlocksTableModel(QAbstractTableModel):
    HEADERS = ("Startzeit", "Endzeit", "Dauer", "Beschreibung")

    def __init__(self) -> None:
        super().__init__()
        self._rows: List[ConsolidatedBlock] = []

    # ------------------------------------------------------------------
    def rowCount(self, parent: QModelIndex | None = None) -> int:  # type: ignore[override]
        if parent and parent.isValid():
            return 0
        return len(self._rows)

    def columnCount(self, parent: QModelIndex | None = None) -> int:  # type: ignore[override]
        return len(self.HEADERS)

    def data(self, index: QModelIndex, role: int = Qt.DisplayRole):  # type: ignore[override]
        if not index.isValid() or not (0 <= index.row() < len(self._rows)):
            return None
        block = self._rows[index.row()]

        if role == Qt.DisplayRole:
            column = index.column()
            if column == 0:
                return format_time(block.start)
            if column == 1:
                return format_time(block.end)
            if column == 2:
                return block.formatted_duration
            if column == 3:
                return block.label
        if role == Qt.TextAlignmentRole and index.column() != 3:
            return int(Qt.AlignCenter | Qt.AlignVCenter)
        return None

    def headerData(self, section: int, orientation: Qt.Orientation, role: int = Qt.DisplayRole):  # type: ignore[override]
        if role != Qt.DisplayRole:
            return None
        if orientation == Qt.Horizontal and 0 <= section < len(self.HEADERS):
            return self.HEADERS[section]
        return None

    def flags(self, index: QModelIndex):  # type: ignore[override]
        return Qt.ItemIsSelectable | Qt.ItemIsEnabled

    # ------------------------------------------------------------------
    def update_blocks(self, blocks: List[ConsolidatedBlock]) -> None:
        self.beginResetModel()
        self._rows = list(blocks)
        self.endResetModel()

    def total_minutes(self) -> int:
        return sum(block.duration_minutes for block in self._rows)
