"""HTTP API for claudemon.

Single-installation server: module-level ``_db``, ``_scheduler`` and
``_config`` are set at startup (or by test fixtures) and injected into
route handlers via ``Depends``. Routers per concern live in
``claudemon.dashboard_routes`` and are mounted under ``/api/v1``.

Usage:
    claudemon serve                    # Listens on 127.0.0.1:3000
    claudemon serve --port 9000        # Custom port
    claudemon serve --no-scheduler     # Do not auto-start scans
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from claudemon.activity import ActivityLog
from claudemon.config import DB_FILENAME, MonitorConfig, find_monitor_root, read_config
from claudemon.core import MonitorDB
from claudemon.logging import setup_activity_log, setup_logging
from claudemon.scheduler import ScanScheduler

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

# ---------------------------------------------------------------------------
# Module-level state: set by main() or test fixtures
# ---------------------------------------------------------------------------

_db: MonitorDB | None = None
_scheduler: ScanScheduler | None = None
_config: MonitorConfig | None = None


def _get_db() -> MonitorDB:
    """Return the active database connection."""
    from fastapi import HTTPException

    if _db is None:
        raise HTTPException(status_code=503, detail="Database not initialized")
    return _db


def _get_scheduler() -> ScanScheduler | None:
    """Return the scheduler, or None when no scan command is configured."""
    return _scheduler


def _get_config() -> MonitorConfig:
    return _config if _config is not None else MonitorConfig()


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app() -> Any:
    """Create the FastAPI application with all API routers.

    The lifespan starts the scheduler when ``auto_start_scheduler`` is set
    and, on shutdown, stops it and waits for an in-flight scan.
    """
    import contextlib
    from collections.abc import AsyncIterator

    from fastapi import FastAPI
    from fastapi.responses import JSONResponse

    from claudemon import __version__
    from claudemon.dashboard_routes import files, scans, scheduler, stats

    @contextlib.asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
        if _scheduler is not None and _get_config().auto_start_scheduler:
            _scheduler.start()
        try:
            yield
        finally:
            if _scheduler is not None:
                await _scheduler.aclose()

    app = FastAPI(title="claudemon", version=__version__, docs_url=None, redoc_url=None, lifespan=_lifespan)

    for module in (scans, files, scheduler, stats):
        app.include_router(module.create_router(), prefix=API_PREFIX)

    @app.get("/api/health")
    async def api_health() -> JSONResponse:
        return JSONResponse(
            {
                "status": "ok",
                "version": __version__,
                "scheduler": _scheduler.get_status() if _scheduler is not None else None,
            }
        )

    return app


def build_scheduler(config: MonitorConfig, monitor_dir: Path, activity: ActivityLog) -> ScanScheduler | None:
    """Construct the scheduler from config, or None without a scan command."""
    if not config.scan_command:
        logger.warning("No scan_command configured; scheduler disabled")
        return None
    return ScanScheduler(
        config.scan_command,
        cwd=monitor_dir.parent,
        interval_ms=config.scan_interval_ms,
        timeout=config.scan_timeout_seconds,
        activity=activity,
    )


def main(port: int | None = None, *, host: str | None = None, auto_start: bool | None = None) -> None:
    """Start the API server for the installation found from the cwd."""
    import dataclasses

    import uvicorn

    global _db, _scheduler, _config

    monitor_dir = find_monitor_root()
    setup_logging(monitor_dir)
    setup_activity_log(monitor_dir)
    config = read_config(monitor_dir)
    if auto_start is not None:
        config = dataclasses.replace(config, auto_start_scheduler=auto_start)
    _config = config

    activity = ActivityLog()
    _db = MonitorDB(
        monitor_dir / DB_FILENAME,
        skip_empty_scans=config.skip_empty_scans,
        activity=activity,
        check_same_thread=False,
    )
    _db.initialize()
    _scheduler = build_scheduler(config, monitor_dir, activity)

    app = create_app()
    bind_host = host or config.host
    bind_port = port or config.port
    print(f"claudemon API: http://{bind_host}:{bind_port}{API_PREFIX}")
    try:
        uvicorn.run(app, host=bind_host, port=bind_port, log_level="warning")
    finally:
        _db.close()
