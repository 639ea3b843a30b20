from __future__ import annotations

import logging
import sys

from zeitblock.core.exception_logging import install_global_exception_logger, uninstall_global_exception_logger


def test_uncaught_exceptions_are_logged(caplog, monkeypatch):
    previous_calls = []
    monkeypatch.setattr(sys, "excepthook", lambda *args: previous_calls.append(args))

    install_global_exception_logger()
    try:
        error = RuntimeError("boom")
        with caplog.at_level(logging.CRITICAL, logger="zeitblock.exceptions"):
            sys.excepthook(RuntimeError, error, None)
    finally:
        uninstall_global_exception_logger()

    assert "Unhandled exception" in caplog.text
    assert len(previous_calls) == 1
    assert sys.excepthook is not None
