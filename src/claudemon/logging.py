"""Structured JSON logging for claudemon.

Writes JSONL to .claudemon/claudemon.log with rotation (5MB, 3 backups).
Scan results and scheduler transitions additionally go to
.claudemon/activity.log through the ``claudemon.activity`` logger.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

_LOG_FILENAME = "claudemon.log"
_ACTIVITY_LOG_FILENAME = "activity.log"
ACTIVITY_LOGGER_NAME = "claudemon.activity"
_setup_lock = threading.Lock()
_MAX_BYTES = 5 * 1024 * 1024  # 5MB
_BACKUP_COUNT = 3


class _JsonFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if hasattr(record, "event"):
            entry["event"] = record.event
        if hasattr(record, "details"):
            entry["details"] = record.details
        if hasattr(record, "duration_ms"):
            entry["duration_ms"] = record.duration_ms
        if hasattr(record, "error"):
            entry["error"] = record.error
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = str(record.exc_info[1])
        return json.dumps(entry, default=str)


def _attach_rotating_handler(logger: logging.Logger, log_path: Path) -> logging.Logger:
    target_filename = os.path.abspath(str(log_path))

    with _setup_lock:
        for h in logger.handlers[:]:
            if not isinstance(h, RotatingFileHandler):
                continue
            if h.baseFilename == target_filename:
                return logger
            # Different path, so remove the stale handler to avoid leaks / duplicates.
            logger.removeHandler(h)
            h.close()

        handler = RotatingFileHandler(
            str(log_path),
            maxBytes=_MAX_BYTES,
            backupCount=_BACKUP_COUNT,
        )
        handler.setFormatter(_JsonFormatter())
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger


def setup_logging(monitor_dir: Path) -> logging.Logger:
    """Set up structured JSON logging to .claudemon/claudemon.log.

    Returns a logger that writes JSONL with rotation.
    """
    return _attach_rotating_handler(logging.getLogger("claudemon"), monitor_dir / _LOG_FILENAME)


def setup_activity_log(monitor_dir: Path) -> logging.Logger:
    """Route the activity sink to its own .claudemon/activity.log.

    The activity logger stops propagating once it has a dedicated file, so
    activity entries are not duplicated into claudemon.log.
    """
    logger = _attach_rotating_handler(logging.getLogger(ACTIVITY_LOGGER_NAME), monitor_dir / _ACTIVITY_LOG_FILENAME)
    logger.propagate = False
    return logger
