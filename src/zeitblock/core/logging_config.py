"""Application-wide logging configuration."""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable

from .paths import ensure_app_structure, log_path

ROOT_LOGGER_NAME = "zeitblock"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(message)s"
DEFAULT_LOG_LEVEL = logging.INFO
LEVEL_ENV_VAR = "ZEITBLOCK_LOG_LEVEL"

_LOGGER_INITIALIZED = False


class EventFormatter(logging.Formatter):
    """Append the structured ``event`` field to the message when a record carries one."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        event = getattr(record, "event", None)
        if event and "\n" not in message:
            return f"{message} event={event}"
        return message


def _resolve_level(level: int | str | None) -> int | str:
    override = os.environ.get(LEVEL_ENV_VAR)
    if override:
        return override.strip().upper()
    return level if level else DEFAULT_LOG_LEVEL


def _build_handlers(path: Path) -> list[logging.Handler]:
    file_handler = RotatingFileHandler(path, maxBytes=5_000_000, backupCount=5, encoding="utf-8", delay=True)
    file_handler.setFormatter(EventFormatter(LOG_FORMAT))
    return [file_handler]


def configure_logging(
    level: int | str | None = DEFAULT_LOG_LEVEL,
    extra_handlers: Iterable[logging.Handler] | None = None,
    *,
    path: Path | None = None,
) -> logging.Logger:
    """Configure the shared ``zeitblock`` logger once and return it."""
    global _LOGGER_INITIALIZED
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    resolved = _resolve_level(level)
    if _LOGGER_INITIALIZED:
        logger.setLevel(resolved)
        return logger

    if path is None:
        ensure_app_structure()
        path = log_path()

    logger.setLevel(resolved)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handlers = _build_handlers(path)
    if extra_handlers:
        handlers.extend(extra_handlers)
    for handler in handlers:
        logger.addHandler(handler)

    logging.captureWarnings(True)

    _LOGGER_INITIALIZED = True
    logger.info("Logging initialized", extra={"event": "logging_configured", "level": resolved, "path": str(path)})
    return logger


def reset_logging() -> None:
    """Close and detach every handler so the next ``configure_logging`` starts fresh."""
    global _LOGGER_INITIALIZED
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        try:
            handler.close()
        finally:
            logger.removeHandler(handler)
    logger.propagate = True
    _LOGGER_INITIALIZED = False
