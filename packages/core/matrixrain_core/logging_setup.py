"""JSON-lines file logging and crash hooks.

Nothing here may write to the terminal while the animation owns it, so the
console handler is opt-in and only used by non-animating commands.
"""

from __future__ import annotations

import faulthandler
import json
import logging
import logging.handlers
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Any

from .config import config_root


_LOGGER_NAME = "matrixrain"
_LOG_FILE = "matrixrain.log"
# Attributes passed through ``extra=`` that end up in the JSON record.
_EXTRA_FIELDS = ("event", "crash_id", "ticks", "exit_reason", "width", "height")

_fault_file: IO[str] | None = None
_hooks_installed = False


def log_dir() -> Path:
    path = config_root() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts_utc": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for field in _EXTRA_FIELDS:
            if hasattr(record, field):
                payload[field] = getattr(record, field)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)


def configure_logging(keep_files: int = 7, console: bool = False, level: str = "INFO") -> logging.Logger:
    """Attach the rotating JSON file handler once per process; later calls only adjust the level."""
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    if logger.handlers:
        return logger

    logger.propagate = False
    handler = logging.handlers.TimedRotatingFileHandler(
        filename=str(log_dir() / _LOG_FILE),
        when="midnight",
        backupCount=max(2, keep_files),
        encoding="utf-8",
    )
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    if console:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        logger.addHandler(stream_handler)

    logger.debug("logging configured", extra={"event": "logging_configured"})
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    if name:
        return logging.getLogger(f"{_LOGGER_NAME}.{name}")
    return logging.getLogger(_LOGGER_NAME)


def _enable_fault_handler(logger: logging.Logger) -> None:
    global _fault_file
    if _fault_file is None:
        _fault_file = (log_dir() / "fault.log").open("a", encoding="utf-8")
    faulthandler.enable(file=_fault_file)
    logger.debug("fault handler enabled", extra={"event": "fault_handler_enabled"})


def install_crash_hooks() -> None:
    """Log uncaught exceptions with a crash id and dump native faults to ``fault.log``.

    Ctrl+C is passed straight to the previous hook. Safe to call repeatedly.
    """
    global _hooks_installed
    if _hooks_installed:
        return
    logger = get_logger()
    previous = sys.excepthook

    def _log_uncaught(exc_type, exc_value, exc_tb) -> None:
        if not issubclass(exc_type, KeyboardInterrupt):
            crash_id = uuid.uuid4().hex[:12]
            logger.critical(
                "uncaught exception crash_id=%s",
                crash_id,
                exc_info=(exc_type, exc_value, exc_tb),
                extra={"event": "uncaught_exception", "crash_id": crash_id},
            )
        previous(exc_type, exc_value, exc_tb)

    sys.excepthook = _log_uncaught
    _enable_fault_handler(logger)
    _hooks_installed = True
