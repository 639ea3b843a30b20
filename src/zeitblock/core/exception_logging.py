"""Route uncaught exceptions through the application logger."""

from __future__ import annotations

import logging
import sys
from types import TracebackType
from typing import Optional, Type

_LOGGER = logging.getLogger("zeitblock.exceptions")
_INSTALLED = False
_PREVIOUS_SYS_HOOK = None


def _log_exception(exc_type: Type[BaseException], exc_value: BaseException, exc_traceback: Optional[TracebackType]) -> None:
    _LOGGER.critical("Unhandled exception", exc_info=(exc_type, exc_value, exc_traceback))


def install_global_exception_logger() -> None:
    """Log uncaught exceptions before handing them to the previous hook."""

    global _INSTALLED, _PREVIOUS_SYS_HOOK
    if _INSTALLED:
        return

    _PREVIOUS_SYS_HOOK = sys.excepthook

    def _handle_exception(exc_type: Type[BaseException], exc_value: BaseException, exc_traceback: Optional[TracebackType]) -> None:
        if not issubclass(exc_type, KeyboardInterrupt):
            _log_exception(exc_type, exc_value, exc_traceback)
        if _PREVIOUS_SYS_HOOK not in (None, _handle_exception):
            _PREVIOUS_SYS_HOOK(exc_type, exc_value, exc_traceback)
        else:
            sys.__excepthook__(exc_type, exc_value, exc_traceback)

    sys.excepthook = _handle_exception
    _INSTALLED = True


def uninstall_global_exception_logger() -> None:
    global _INSTALLED, _PREVIOUS_SYS_HOOK
    if not _INSTALLED:
        return
    sys.excepthook = _PREVIOUS_SYS_HOOK or sys.__excepthook__
    _PREVIOUS_SYS_HOOK = None
    _INSTALLED = False
