"""Scan ingestion and scan history route handlers."""

from __future__ import annotations

import logging
from typing import Any

from fastapi.responses import JSONResponse
from starlette.requests import Request

from claudemon.core import MonitorDB
from claudemon.dashboard_routes.common import (
    _error_response,
    _get_bool_param,
    _parse_json_body,
    _parse_pagination,
    _safe_int,
)
from claudemon.errors import StorageError, ValidationError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Router factory
# ---------------------------------------------------------------------------


def create_router() -> Any:
    """Build the APIRouter for scan endpoints.

    NOTE: All handlers are async despite doing synchronous SQLite I/O. This
    serializes DB access on the event loop thread, so the shared connection
    is never used from a thread pool.

    ``/scans/by-date/{day}`` is registered before ``/scans/{scan_id}``.
    """
    from fastapi import APIRouter, Depends

    from claudemon.dashboard import _get_config, _get_db

    router = APIRouter()

    @router.post("/scans")
    async def api_create_scan(request: Request, db: MonitorDB = Depends(_get_db)) -> JSONResponse:
        """Ingest one scanner snapshot. 201 when stored, 200 when skipped."""
        body = await _parse_json_body(request)
        if isinstance(body, JSONResponse):
            return body
        try:
            result = db.create_scan(body)
        except ValidationError as e:
            return _error_response(str(e), "VALIDATION_ERROR", 400)
        except StorageError as e:
            return _error_response(str(e), "STORAGE_ERROR", 500)
        if result["stored"]:
            return JSONResponse(
                {**result, "message": f"Scan recorded with {result['files_processed']} file change(s)"},
                status_code=201,
            )
        return JSONResponse(
            {**result, "message": f"Scan acknowledged but not stored ({result['reason']})"},
            status_code=200,
        )

    @router.get("/scans")
    async def api_list_scans(request: Request, db: MonitorDB = Depends(_get_db)) -> JSONResponse:
        """List scans newest first, filterable by date range and has_changes."""
        params = request.query_params
        config = _get_config()
        pagination = _parse_pagination(params, config.default_page_size, config.max_page_size)
        if isinstance(pagination, JSONResponse):
            return pagination
        limit, offset = pagination
        has_changes = _get_bool_param(params, "has_changes", None)
        if isinstance(has_changes, JSONResponse):
            return has_changes
        try:
            result = db.list_scans_paginated(
                limit=limit,
                offset=offset,
                start_date=params.get("start_date"),
                end_date=params.get("end_date"),
                has_changes=has_changes,
            )
        except ValidationError as e:
            return _error_response(str(e), "VALIDATION_ERROR", 400)
        return JSONResponse(result, headers={"Cache-Control": "no-cache"})

    @router.get("/scans/by-date/{day}")
    async def api_scans_by_date(day: str, db: MonitorDB = Depends(_get_db)) -> JSONResponse:
        """All scans on one UTC calendar day (MM-DD-YY or YYYY-MM-DD)."""
        try:
            scans = db.get_scans_by_date(day)
        except ValidationError as e:
            return _error_response(str(e), "VALIDATION_ERROR", 400, {"param": "date", "value": day})
        return JSONResponse(scans)

    @router.get("/scans/{scan_id}")
    async def api_get_scan(scan_id: str, db: MonitorDB = Depends(_get_db)) -> JSONResponse:
        """Get one scan with all its file changes."""
        parsed = _safe_int(scan_id, "scan_id", min_value=1)
        if isinstance(parsed, JSONResponse):
            return parsed
        scan = db.get_scan(parsed)
        if scan is None:
            return _error_response(f"Scan not found: {scan_id}", "NOT_FOUND", 404)
        return JSONResponse(scan)

    return router
