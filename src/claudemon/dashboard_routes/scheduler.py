"""Scheduler control route handlers."""

from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse

from claudemon.dashboard_routes.common import _error_response
from claudemon.scheduler import ScanScheduler


def create_router() -> Any:
    """Build the APIRouter for scheduler status and control.

    start and stop are idempotent: calling them in the matching state
    succeeds with ``changed: false``.
    """
    from fastapi import APIRouter, Depends

    from claudemon.dashboard import _get_scheduler

    router = APIRouter()

    def _unavailable() -> JSONResponse:
        return _error_response("No scan command configured", "SCHEDULER_UNAVAILABLE", 503)

    @router.get("/scheduler/status")
    async def api_scheduler_status(scheduler: ScanScheduler | None = Depends(_get_scheduler)) -> JSONResponse:
        if scheduler is None:
            return _unavailable()
        return JSONResponse(scheduler.get_status())

    @router.post("/scheduler/start")
    async def api_scheduler_start(scheduler: ScanScheduler | None = Depends(_get_scheduler)) -> JSONResponse:
        if scheduler is None:
            return _unavailable()
        changed = scheduler.start()
        return JSONResponse(
            {
                "success": True,
                "changed": changed,
                "message": "Scheduler started" if changed else "Scheduler already running",
                "status": scheduler.get_status(),
            }
        )

    @router.post("/scheduler/stop")
    async def api_scheduler_stop(scheduler: ScanScheduler | None = Depends(_get_scheduler)) -> JSONResponse:
        if scheduler is None:
            return _unavailable()
        changed = scheduler.stop()
        return JSONResponse(
            {
                "success": True,
                "changed": changed,
                "message": "Scheduler stopped" if changed else "Scheduler not running",
                "status": scheduler.get_status(),
            }
        )

    @router.post("/scheduler/run")
    async def api_scheduler_run(scheduler: ScanScheduler | None = Depends(_get_scheduler)) -> JSONResponse:
        """Trigger a scan now and wait for it. Skipped if one is in flight."""
        if scheduler is None:
            return _unavailable()
        result = await scheduler.run_now()
        return JSONResponse({"success": True, "result": result, "status": scheduler.get_status()})

    return router
