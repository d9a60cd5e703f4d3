"""Statistics route handlers."""

from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse
from starlette.requests import Request

from claudemon.core import MonitorDB
from claudemon.dashboard_routes.common import _error_response, _safe_int
from claudemon.errors import ValidationError


def create_router() -> Any:
    """Build the APIRouter for stats, trends and recent activity.

    Out-of-range ``days`` and ``hours`` are clamped, not rejected.
    """
    from fastapi import APIRouter, Depends

    from claudemon import stats
    from claudemon.dashboard import _get_db

    router = APIRouter()

    @router.get("/stats")
    async def api_stats(request: Request, db: MonitorDB = Depends(_get_db)) -> JSONResponse:
        period = request.query_params.get("period", "day")
        try:
            result = stats.get_stats(db, period)
        except ValidationError as e:
            return _error_response(str(e), "VALIDATION_ERROR", 400, {"param": "period", "value": period})
        return JSONResponse(result, headers={"Cache-Control": "no-cache"})

    @router.get("/stats/trends")
    async def api_trends(request: Request, db: MonitorDB = Depends(_get_db)) -> JSONResponse:
        params = request.query_params
        days = _safe_int(params.get("days", "7"), "days")
        if isinstance(days, JSONResponse):
            return days
        granularity = params.get("granularity", "hour")
        try:
            result = stats.get_trends(db, days, granularity)
        except ValidationError as e:
            return _error_response(str(e), "VALIDATION_ERROR", 400, {"param": "granularity", "value": granularity})
        return JSONResponse(result)

    @router.get("/stats/recent")
    async def api_recent(request: Request, db: MonitorDB = Depends(_get_db)) -> JSONResponse:
        hours = _safe_int(request.query_params.get("hours", "24"), "hours")
        if isinstance(hours, JSONResponse):
            return hours
        return JSONResponse(stats.get_recent_activity(db, hours))

    return router
