"""Application controller wiring all services together."""

from __future__ import annotations

import logging
import sys
from datetime import date
from pathlib import Path

from PySide6.QtWidgets import QApplication, QMessageBox  # type: ignore[import]

from .core.activity_monitor import ActivityMonitor
from .core.exception_logging import install_global_exception_logger, uninstall_global_exception_logger
from .core.exceptions import PersistenceError, SettingsError
from .core.label_index import LabelIndex
from .core.logging_config import configure_logging
from .core.paths import ensure_app_structure, set_app_data_directory
from .core.repository import SegmentRepository
from .core.session import DaySession
from .core.settings import Settings, SettingsManager
from .ui.icons import app_icon
from .ui.main_window import MainWindow

LOGGER = logging.getLogger("zeitblock.app")


class ApplicationController:
    def __init__(self, app: QApplication) -> None:
        self._app = app
        self._startup_aborted = False
        self._monitor: ActivityMonitor | None = None
        self._main_window: MainWindow | None = None
        self._settings_manager = SettingsManager()
        try:
            self._settings = self._settings_manager.load()
        except SettingsError as exc:
            LOGGER.exception("Failed to load settings; using defaults")
            QMessageBox.warning(None, "Einstellungen", str(exc))
            self._settings = Settings()

        set_app_data_directory(Path(self._settings.app_data_path).expanduser())
        ensure_app_structure()
        configure_logging()
        install_global_exception_logger()

        try:
            self._repository = SegmentRepository()
            self._labels = LabelIndex()
        except PersistenceError as exc:
            LOGGER.exception("Unable to open data files")
            QMessageBox.critical(None, "Daten nicht lesbar", str(exc))
            self._startup_aborted = True
            return

        self._session = DaySession(
            self._repository,
            date.today(),
            labels=self._labels,
            warning_lead_minutes=self._settings.warning_lead_minutes,
        )
        loaded = self._session.load()
        if not loaded.ok:
            QMessageBox.critical(None, "Daten nicht lesbar", loaded.message)
            self._startup_aborted = True
            return

        self._main_window = MainWindow(self._session, self._settings, labels=self._labels, store=self._repository)
        self._app.setWindowIcon(app_icon())
        if loaded.message:
            self._main_window.statusBar().showMessage(loaded.message, 8000)

        self._monitor = ActivityMonitor(self._settings.monitor_cron, parent=self._main_window)
        self._monitor.check_due.connect(self._main_window.handle_check_due)
        self._monitor.start()
        self._main_window.show()
        # A segment left running past the cap while the app was closed is closed right away.
        self._main_window.handle_check_due()

    @property
    def startup_aborted(self) -> bool:
        return self._startup_aborted


def run_app(argv: list[str] | None = None) -> int:
    qt_args = argv if argv is not None else sys.argv
    app = QApplication(qt_args)
    app.setApplicationName("Zeitblock")
    controller = ApplicationController(app)
    if controller.startup_aborted:
        return 1
    try:
        return app.exec()
    finally:
        uninstall_global_exception_logger()
