"""Activity sink for scan results and scheduler transitions.

Separate from the database: every snapshot handed to the ingestion
pipeline is reported here, including zero-change snapshots that the
skip-empty policy keeps out of storage.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from claudemon.logging import ACTIVITY_LOGGER_NAME

logger = logging.getLogger(__name__)

SCHEDULER_EVENTS = frozenset({"started", "stopped", "run_succeeded", "run_failed", "run_skipped"})


class ActivityLog:
    """Writes audit entries to the ``claudemon.activity`` logger."""

    def __init__(self, logger_name: str = ACTIVITY_LOGGER_NAME) -> None:
        self._logger = logging.getLogger(logger_name)

    def _emit(self, level: int, msg: str, event: str, details: dict[str, Any]) -> None:
        try:
            self._logger.log(level, msg, extra={"event": event, "details": details})
        except Exception:
            # A broken sink must not break ingestion or scheduling.
            logger.debug("Activity sink write failed for %s", event, exc_info=True)

    def scan_result(self, snapshot: Mapping[str, Any], *, stored: bool) -> None:
        """Record one snapshot, stored or not."""
        changes = snapshot.get("filesWithChange") or []
        change_count = len(changes) if isinstance(changes, list) else 0
        details = {
            "scan_time": snapshot.get("scanTime"),
            "projects": snapshot.get("projectsScanned", 0),
            "files_unchanged": snapshot.get("filesNoChange", 0),
            "changes": change_count,
            "duration_ms": snapshot.get("scanDurationMs", 0),
            "stored": stored,
        }
        if change_count:
            msg = f"Scan completed with {change_count} change(s)"
        else:
            msg = (
                f"Scan completed: {details['projects']} projects, "
                f"{details['files_unchanged']} files unchanged, {details['duration_ms']}ms"
            )
        self._emit(logging.INFO, msg, "scan_result", details)

    def scheduler_event(self, event: str, **details: Any) -> None:
        """Record a scheduler transition (see ``SCHEDULER_EVENTS``)."""
        level = logging.ERROR if event == "run_failed" else logging.INFO
        self._emit(level, f"Scheduler: {event}", f"scheduler.{event}", details)
