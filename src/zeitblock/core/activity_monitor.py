"""Cron-driven timer that asks for a duration check of the running activity."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from croniter import croniter
from PySide6.QtCore import QObject, QTimer, Signal

from .exceptions import SettingsError


class ActivityMonitor(QObject):
    """Emits ``check_due`` at every fire time of a cron expression.

    Fire times that passed while the event loop was blocked are coalesced
    into a single emission carrying the latest due time.
    """

    check_due: Signal = Signal(datetime)
    schedule_changed: Signal = Signal(str)

    def __init__(
        self,
        cron_expression: str,
        parent: Optional[QObject] = None,
        logger: Optional[logging.Logger] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        super().__init__(parent)
        self._logger = logger or logging.getLogger("zeitblock.monitor")
        self._clock = clock
        self._cron_expression = cron_expression
        self._cron_iter = self._build_croniter(cron_expression, clock())
        self._next_fire: Optional[datetime] = None
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._on_timeout)

    # ------------------------------------------------------------------
    def start(self) -> None:
        if self._timer.isActive():
            return
        self._logger.info(
            "Activity monitor starting",
            extra={"event": "monitor_start", "cron": self._cron_expression},
        )
        self._schedule_next(initial=True)

    def stop(self) -> None:
        if self._timer.isActive():
            self._logger.info("Activity monitor stopping", extra={"event": "monitor_stop"})
            self._timer.stop()
        self._next_fire = None

    def update_cron(self, cron_expression: str) -> None:
        if cron_expression == self._cron_expression:
            return
        cron_iter = self._build_croniter(cron_expression, self._clock())
        self._logger.info(
            "Updating monitor cron",
            extra={
                "event": "monitor_cron_update",
                "old_cron": self._cron_expression,
                "new_cron": cron_expression,
            },
        )
        self._cron_expression = cron_expression
        self._cron_iter = cron_iter
        self._next_fire = None
        self.schedule_changed.emit(cron_expression)
        was_active = self._timer.isActive()
        self._timer.stop()
        if was_active:
            self._schedule_next(initial=True)

    @property
    def is_running(self) -> bool:
        return self._timer.isActive()

    @property
    def next_fire_time(self) -> Optional[datetime]:
        return self._next_fire

    @property
    def cron_expression(self) -> str:
        return self._cron_expression

    # ------------------------------------------------------------------
    def _on_timeout(self) -> None:
        now = self._clock()
        latest_due: Optional[datetime] = None
        while self._next_fire is not None and self._next_fire <= now:
            latest_due = self._next_fire
            self._next_fire = self._cron_iter.get_next(datetime)

        if latest_due is None:
            self._logger.debug(
                "Timer fired early; rescheduling",
                extra={"event": "monitor_reschedule_early"},
            )
        else:
            self._logger.debug(
                "Activity check due",
                extra={"event": "monitor_check_due", "due": latest_due.isoformat()},
            )
            self.check_due.emit(latest_due)

        self._schedule_next(initial=False)

    def _schedule_next(self, initial: bool) -> None:
        if self._next_fire is None:
            self._next_fire = self._cron_iter.get_next(datetime)

        delay = self._next_fire - self._clock()
        if delay <= timedelta(milliseconds=0):
            delay_ms = 1000
        else:
            delay_ms = int(delay.total_seconds() * 1000)
        self._timer.start(delay_ms)
        self._logger.debug(
            "Monitor %s next check",
            "initialized" if initial else "updated",
            extra={
                "event": "monitor_next_fire",
                "fire_at": self._next_fire.isoformat(),
                "delay_ms": delay_ms,
            },
        )

    def _build_croniter(self, cron_expression: str, base: datetime) -> croniter:
        if not croniter.is_valid(cron_expression):
            self._logger.error(
                "Invalid cron expression",
                extra={"event": "monitor_invalid_cron", "cron": cron_expression},
            )
            raise SettingsError(f"Invalid cron expression: {cron_expression}")
        return croniter(cron_expression, base)
