"""Main window: segment table, day completion and statistics."""

from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtCore import QStringListModel, Qt
from PySide6.QtWidgets import (
    QAbstractItemView,
    QCompleter,
    QFileDialog,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QLineEdit,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QSizePolicy,
    QStatusBar,
    QStyledItemDelegate,
    QTableView,
    QTabWidget,
    QVBoxLayout,
    QWidget,
)

from ..core.exceptions import PersistenceError
from ..core.exporter import export_blocks_csv, export_excel, export_segments_csv
from ..core.fields import SegmentField
from ..core.label_index import LabelIndex
from ..core.session import ActionResult, ActiveStatus, DaySession
from ..core.settings import Settings
from ..core.store import SegmentStore
from ..core.time_segments import format_date_title
from .blocks_model import BlocksTableModel
from .history_dialog import HistoryDialog
from .icons import app_icon, complete_icon, export_icon, history_icon, start_icon, stop_icon, trash_icon, undo_icon
from .segments_model import COLUMNS, SegmentsTableModel

LOGGER = logging.getLogger("zeitblock.ui.main")


class LabelDelegate(QStyledItemDelegate):
    """Line editor with suggestions from previously used labels."""

    def __init__(self, labels: LabelIndex | None, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._labels = labels

    def createEditor(self, parent: QWidget, option, index):  # type: ignore[override]
        editor = QLineEdit(parent)
        if self._labels is not None:
            try:
                suggestions = self._labels.suggestions(limit=50)
            except PersistenceError:
                LOGGER.warning("Label suggestions unavailable", exc_info=True)
                suggestions = []
            completer = QCompleter(QStringListModel(suggestions, editor), editor)
            completer.setCaseSensitivity(Qt.CaseInsensitive)
            completer.setFilterMode(Qt.MatchStartsWith)
            editor.setCompleter(completer)
        return editor


class MainWindow(QMainWindow):
    def __init__(
        self,
        session: DaySession,
        settings: Settings,
        labels: LabelIndex | None = None,
        store: SegmentStore | None = None,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle(f"Zeitblock - {format_date_title(session.day)}")
        self.resize(720, 520)
        self.setWindowIcon(app_icon())

        self._session = session
        self._settings = settings
        self._labels = labels
        self._store = store
        self._warned_segment_id: int | None = None

        self._segments_model = SegmentsTableModel(session)
        self._blocks_model = BlocksTableModel()

        self._build_ui()
        self._segments_model.action_finished.connect(self._on_action_finished)
        self.apply_settings(settings)
        self._refresh()

    # ------------------------------------------------------------------
    def _build_ui(self) -> None:
        central = QWidget(self)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(16, 16, 16, 16)
        layout.setSpacing(12)

        layout.addWidget(self._build_controls_bar())

        self._table = QTableView(self)
        self._table.setModel(self._segments_model)
        self._table.setSelectionBehavior(QAbstractItemView.SelectRows)
        self._table.setSelectionMode(QAbstractItemView.SingleSelection)
        self._table.setAlternatingRowColors(True)
        self._table.setEditTriggers(
            QAbstractItemView.DoubleClicked
            | QAbstractItemView.SelectedClicked
            | QAbstractItemView.EditKeyPressed
        )
        header = self._table.horizontalHeader()
        for column, field in enumerate(COLUMNS):
            mode = QHeaderView.Stretch if field is SegmentField.LABEL else QHeaderView.ResizeToContents
            header.setSectionResizeMode(column, mode)
        self._table.setItemDelegateForColumn(
            COLUMNS.index(SegmentField.LABEL),
            LabelDelegate(self._labels, self._table),
        )

        self._blocks_table = QTableView(self)
        self._blocks_table.setModel(self._blocks_model)
        self._blocks_table.setSelectionBehavior(QAbstractItemView.SelectRows)
        self._blocks_table.setAlternatingRowColors(True)
        blocks_header = self._blocks_table.horizontalHeader()
        blocks_header.setSectionResizeMode(QHeaderView.ResizeToContents)
        blocks_header.setSectionResizeMode(3, QHeaderView.Stretch)

        self._tabs = QTabWidget(self)
        self._tabs.setDocumentMode(True)
        self._tabs.addTab(self._table, "Zeiterfassung")
        self._tabs.addTab(self._blocks_table, "Abschluss")
        layout.addWidget(self._tabs, 1)

        stats_layout = QHBoxLayout()
        stats_layout.setSpacing(16)
        self._total_label = QLabel(self)
        self._net_label = QLabel(self)
        self._breaks_label = QLabel(self)
        for label in (self._total_label, self._net_label, self._breaks_label):
            stats_layout.addWidget(label)
        stats_layout.addStretch(1)
        layout.addLayout(stats_layout)

        self.setCentralWidget(central)

        status = QStatusBar(self)
        self.setStatusBar(status)
        self._state_label = QLabel("", self)
        self._state_label.setAlignment(Qt.AlignRight | Qt.AlignVCenter)
        self._state_label.setSizePolicy(QSizePolicy.Maximum, QSizePolicy.Preferred)
        status.addPermanentWidget(self._state_label)

    def _build_controls_bar(self) -> QWidget:
        container = QWidget(self)
        container.setSizePolicy(QSizePolicy.Preferred, QSizePolicy.Fixed)
        layout = QHBoxLayout(container)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(8)

        self._start_button = QPushButton(start_icon(), "Start", container)
        self._start_button.clicked.connect(self._start_activity)
        self._stop_button = QPushButton(stop_icon(), "Stopp", container)
        self._stop_button.clicked.connect(self._stop_activity)
        self._delete_button = QPushButton(trash_icon(), "Löschen", container)
        self._delete_button.clicked.connect(self._delete_selected)
        self._complete_button = QPushButton(complete_icon(), "Tag abschließen", container)
        self._complete_button.clicked.connect(self._complete_day)
        self._undo_button = QPushButton(undo_icon(), "Abschluss aufheben", container)
        self._undo_button.clicked.connect(self._undo_completion)
        self._export_button = QPushButton(export_icon(), "Exportieren", container)
        self._export_button.clicked.connect(self._export)
        self._history_button = QPushButton(history_icon(), "Verlauf", container)
        self._history_button.setEnabled(self._store is not None)
        self._history_button.clicked.connect(self._show_history)

        for button in (self._start_button, self._stop_button, self._delete_button):
            layout.addWidget(button)
        layout.addStretch(1)
        for button in (self._complete_button, self._undo_button, self._export_button, self._history_button):
            layout.addWidget(button)
        return container

    # ------------------------------------------------------------------
    def apply_settings(self, settings: Settings) -> None:
        self._settings = settings
        self.setWindowFlag(Qt.WindowStaysOnTopHint, settings.always_on_top)
        self.setWindowOpacity(settings.window_opacity)

    def handle_check_due(self, _due=None) -> None:
        check = self._session.check_active()
        if check.status is ActiveStatus.CAPPED:
            self._warned_segment_id = None
            self._refresh()
            if check.result is not None and not check.result.ok:
                QMessageBox.critical(self, "Fehler", check.message)
            else:
                QMessageBox.information(self, "Maximale Dauer erreicht", check.message)
            return
        if check.status is ActiveStatus.WARNING and check.segment is not None:
            self.statusBar().showMessage(check.message, 10000)
            if self._warned_segment_id != check.segment.segment_id:
                self._warned_segment_id = check.segment.segment_id
                QMessageBox.warning(self, "Aktivität läuft lange", check.message)

    # ------------------------------------------------------------------
    def _start_activity(self) -> None:
        self._segments_model.run(self._session.start_activity())

    def _stop_activity(self) -> None:
        self._warned_segment_id = None
        self._segments_model.run(self._session.stop_activity())

    def _delete_selected(self) -> None:
        index = self._table.currentIndex()
        segment_id = self._segments_model.segment_id_for_row(index.row()) if index.isValid() else None
        if segment_id is None:
            self.statusBar().showMessage("Bitte wählen Sie einen Eintrag aus.", 4000)
            return
        answer = QMessageBox.question(self, "Eintrag löschen", "Soll der ausgewählte Eintrag gelöscht werden?")
        if answer != QMessageBox.Yes:
            return
        self._segments_model.run(self._session.delete_segment(segment_id))

    def _complete_day(self) -> None:
        result = self._segments_model.run(self._session.complete_day())
        if result.ok:
            self._tabs.setCurrentIndex(1)

    def _undo_completion(self) -> None:
        answer = QMessageBox.question(
            self,
            "Abschluss aufheben",
            "Die zusammengefassten Blöcke werden gelöscht. Fortfahren?",
        )
        if answer != QMessageBox.Yes:
            return
        result = self._segments_model.run(self._session.undo_completion())
        if result.ok:
            self._tabs.setCurrentIndex(0)

    def _export(self) -> None:
        target_dir = self._settings.resolved_export_dir()
        suggested = target_dir / f"zeitblock_{self._session.day.isoformat()}.csv"
        filename, _selected = QFileDialog.getSaveFileName(
            self,
            "Exportieren",
            str(suggested),
            "CSV (*.csv);;Excel (*.xlsx)",
        )
        if not filename:
            return
        path = Path(filename)
        try:
            if path.suffix.lower() == ".xlsx":
                export_excel(self._session.snapshot, self._session.blocks, path)
            else:
                export_segments_csv(self._session.snapshot, path)
                if self._session.blocks:
                    export_blocks_csv(self._session.blocks, path.with_name(f"{path.stem}_bloecke.csv"))
        except (OSError, ImportError) as exc:
            LOGGER.exception("Export failed", extra={"event": "export_failed", "path": str(path)})
            QMessageBox.critical(self, "Export fehlgeschlagen", str(exc))
            return
        self.statusBar().showMessage(f"Exportiert nach {path}", 6000)

    def _show_history(self) -> None:
        if self._store is None:
            return
        dialog = HistoryDialog(self._store, self._session.day, self)
        dialog.exec()

    # ------------------------------------------------------------------
    def _on_action_finished(self, result: ActionResult) -> None:
        self._refresh()
        if result.ok:
            if result.message:
                self.statusBar().showMessage(result.message, 5000)
            return
        QMessageBox.warning(self, "Hinweis", result.message)

    def _refresh(self) -> None:
        session = self._session
        self._blocks_model.update_blocks(list(session.blocks))
        stats = session.statistics()
        self._total_label.setText(f"Gesamt: {stats.pretty_total}")
        self._net_label.setText(f"Netto: {stats.pretty_net}")
        self._breaks_label.setText(f"Pausen: {stats.pretty_breaks}")

        running = session.active_segment is not None
        completed = session.day_completed
        self._start_button.setEnabled(not running and not completed)
        self._stop_button.setEnabled(running)
        self._delete_button.setEnabled(not completed)
        self._complete_button.setEnabled(not completed and not running and bool(session.snapshot))
        self._undo_button.setEnabled(completed)
        self._state_label.setText("Abgeschlossen" if completed else ("Läuft" if running else "Bereit"))
