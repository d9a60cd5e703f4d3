"""Periodic driver for the external scanning process.

``ScanScheduler`` is owned by whoever constructs it (the HTTP app's
lifespan or the ``run-scan`` CLI command). It runs on the asyncio event
loop: a timer task triggers executions every ``interval_ms``, and
``run_now()`` triggers one on demand. At most one execution is in flight
at a time; overlapping triggers are rejected, not queued.

The change count scraped from the scanner's stdout is advisory. The
stored count comes from the ingestion pipeline when the scanner posts
its snapshot.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from pathlib import Path

from claudemon.activity import ActivityLog
from claudemon.config import DEFAULT_SCAN_INTERVAL_MS, DEFAULT_SCAN_TIMEOUT_SECONDS
from claudemon.db_base import _now_iso, _to_iso
from claudemon.errors import ExternalProcessError
from claudemon.runner import ProcessRunner, SubprocessRunner
from claudemon.types.api import RunResult, RunStatus, SchedulerStatus
from claudemon.types.core import ISOTimestamp

logger = logging.getLogger(__name__)

_CHANGES_RE = re.compile(r"Files with changes:\s*(\d+)")


def parse_change_count(stdout: str) -> int:
    """Best-effort change count from scanner output; 0 when absent."""
    match = _CHANGES_RE.search(stdout or "")
    return int(match.group(1)) if match else 0


class ScanScheduler:
    def __init__(
        self,
        command: Sequence[str],
        *,
        cwd: str | Path,
        runner: ProcessRunner | None = None,
        interval_ms: int = DEFAULT_SCAN_INTERVAL_MS,
        timeout: float = DEFAULT_SCAN_TIMEOUT_SECONDS,
        activity: ActivityLog | None = None,
    ) -> None:
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        self.command = list(command)
        self.cwd = Path(cwd)
        self.interval_ms = interval_ms
        self.timeout = timeout
        self._runner: ProcessRunner = runner or SubprocessRunner()
        self._activity = activity or ActivityLog()

        self._timer: asyncio.Task[None] | None = None
        self._executions: set[asyncio.Task[RunResult]] = set()
        self._scanning = False

        self.last_run: str | None = None
        self.last_run_duration_ms: int | None = None
        self.last_run_status: RunStatus | None = None
        self.last_run_changes = 0
        self.next_run: str | None = None
        self.run_count = 0
        self.error_count = 0

    @property
    def running(self) -> bool:
        return self._timer is not None

    @property
    def scanning(self) -> bool:
        return self._scanning

    # -- Lifecycle -------------------------------------------------------------

    def start(self) -> bool:
        """Run a scan now and then every ``interval_ms``.

        Must be called from inside a running event loop. Returns False if
        the scheduler was already started.
        """
        if self._timer is not None:
            logger.warning("Scheduler already running")
            return False
        loop = asyncio.get_running_loop()
        self._activity.scheduler_event("started", interval_ms=self.interval_ms)
        self._spawn_execution()
        self._timer = loop.create_task(self._tick_forever())
        self._update_next_run()
        return True

    def stop(self) -> bool:
        """Cancel the timer. An execution already in flight keeps going.

        Returns False if the scheduler was not running.
        """
        if self._timer is None:
            return False
        self._timer.cancel()
        self._timer = None
        self._update_next_run()
        self._activity.scheduler_event("stopped")
        return True

    async def aclose(self) -> None:
        """Stop the timer and wait for any in-flight execution to finish."""
        self.stop()
        if self._executions:
            await asyncio.gather(*self._executions, return_exceptions=True)

    async def run_now(self) -> RunResult:
        """Trigger one execution outside the schedule and wait for it."""
        logger.info("Manual scan triggered")
        return await self._execute()

    def get_status(self) -> SchedulerStatus:
        return {
            "running": self.running,
            "scanning": self._scanning,
            "interval_ms": self.interval_ms,
            "last_run": ISOTimestamp(self.last_run) if self.last_run else None,
            "last_run_duration_ms": self.last_run_duration_ms,
            "last_run_status": self.last_run_status,
            "last_run_changes": self.last_run_changes,
            "next_run": ISOTimestamp(self.next_run) if self.next_run else None,
            "run_count": self.run_count,
            "error_count": self.error_count,
        }

    # -- Internals -------------------------------------------------------------

    async def _tick_forever(self) -> None:
        # Executions run as separate tasks so a slow scan never delays the next tick.
        while True:
            await asyncio.sleep(self.interval_ms / 1000)
            self._spawn_execution()

    def _spawn_execution(self) -> None:
        task = asyncio.get_running_loop().create_task(self._execute())
        self._executions.add(task)
        task.add_done_callback(self._executions.discard)

    def _update_next_run(self) -> None:
        if self._timer is not None:
            self.next_run = _to_iso(datetime.now(UTC) + timedelta(milliseconds=self.interval_ms))
        else:
            self.next_run = None

    async def _execute(self) -> RunResult:
        if self._scanning:
            logger.warning("Scan already in progress, skipping")
            self._activity.scheduler_event("run_skipped", reason="already_running")
            return {"skipped": True, "reason": "already_running"}

        self._scanning = True
        self.run_count += 1
        started = time.monotonic()
        try:
            try:
                result = await self._runner.run(self.command, cwd=self.cwd, timeout=self.timeout)
                if not result.ok:
                    detail = result.stderr.strip() or result.stdout.strip()
                    raise ExternalProcessError(f"Scan command exited with code {result.returncode}: {detail}")
            except ExternalProcessError as exc:
                return self._record_failure(str(exc), started)
            except Exception as exc:
                logger.exception("Unexpected error running scan command")
                return self._record_failure(f"{type(exc).__name__}: {exc}", started)

            duration_ms = self._finish(started, "success")
            self.last_run_changes = parse_change_count(result.stdout)
            logger.debug("Scan completed in %dms with %d change(s)", duration_ms, self.last_run_changes)
            self._activity.scheduler_event("run_succeeded", duration_ms=duration_ms, changes=self.last_run_changes)
            return {
                "skipped": False,
                "success": True,
                "duration_ms": duration_ms,
                "changes": self.last_run_changes,
                "output": result.stdout,
            }
        finally:
            self._scanning = False

    def _finish(self, started: float, status: RunStatus) -> int:
        duration_ms = int((time.monotonic() - started) * 1000)
        self.last_run = _now_iso()
        self.last_run_duration_ms = duration_ms
        self.last_run_status = status
        self._update_next_run()
        return duration_ms

    def _record_failure(self, error: str, started: float) -> RunResult:
        self.error_count += 1
        duration_ms = self._finish(started, "error")
        logger.error("Scan failed: %s", error)
        self._activity.scheduler_event("run_failed", error=error, duration_ms=duration_ms)
        return {"skipped": False, "success": False, "error": error, "duration_ms": duration_ms}
