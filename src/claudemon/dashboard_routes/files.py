"""Tracked-file and project route handlers."""

from __future__ import annotations

import logging
from typing import Any

from fastapi.responses import JSONResponse
from starlette.requests import Request

from claudemon.core import MonitorDB
from claudemon.dashboard_routes.common import (
    _error_response,
    _get_bool_param,
    _parse_pagination,
    _safe_int,
)
from claudemon.errors import ValidationError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Router factory
# ---------------------------------------------------------------------------


def create_router() -> Any:
    """Build the APIRouter for tracked-file and project endpoints.

    Route order matters: ``/files/search`` must be registered before
    ``/files/{file_id}`` so FastAPI matches the literal path first.
    """
    from fastapi import APIRouter, Depends

    from claudemon.dashboard import _get_config, _get_db

    router = APIRouter()

    @router.get("/files")
    async def api_list_files(request: Request, db: MonitorDB = Depends(_get_db)) -> JSONResponse:
        """List tracked files, most recently seen first."""
        params = request.query_params
        config = _get_config()
        pagination = _parse_pagination(params, config.default_page_size, config.max_page_size)
        if isinstance(pagination, JSONResponse):
            return pagination
        limit, offset = pagination
        project_id: int | None = None
        if "project_id" in params:
            parsed = _safe_int(params["project_id"], "project_id", min_value=1)
            if isinstance(parsed, JSONResponse):
                return parsed
            project_id = parsed
        include_deleted = _get_bool_param(params, "include_deleted", False)
        if isinstance(include_deleted, JSONResponse):
            return include_deleted
        result = db.list_files_paginated(
            limit=limit,
            offset=offset,
            project_id=project_id,
            include_deleted=bool(include_deleted),
        )
        return JSONResponse(result, headers={"Cache-Control": "no-cache"})

    @router.get("/files/search")
    async def api_search_files(request: Request, db: MonitorDB = Depends(_get_db)) -> JSONResponse:
        """Substring search over tracked file paths and names."""
        params = request.query_params
        config = _get_config()
        limit = _safe_int(params.get("limit", str(config.default_page_size)), "limit", min_value=1)
        if isinstance(limit, JSONResponse):
            return limit
        try:
            files = db.search_files(params.get("q", ""), limit=min(limit, config.max_page_size))
        except ValidationError as e:
            return _error_response(str(e), "VALIDATION_ERROR", 400, {"param": "q"})
        return JSONResponse([f.to_dict() for f in files])

    @router.get("/files/{file_id}")
    async def api_get_file(file_id: str, db: MonitorDB = Depends(_get_db)) -> JSONResponse:
        parsed = _safe_int(file_id, "file_id", min_value=1)
        if isinstance(parsed, JSONResponse):
            return parsed
        tracked = db.get_file(parsed)
        if tracked is None:
            return _error_response(f"File not found: {file_id}", "NOT_FOUND", 404)
        return JSONResponse(tracked.to_dict())

    @router.get("/files/{file_id}/history")
    async def api_file_history(file_id: str, request: Request, db: MonitorDB = Depends(_get_db)) -> JSONResponse:
        """Change history for one file, newest first."""
        parsed = _safe_int(file_id, "file_id", min_value=1)
        if isinstance(parsed, JSONResponse):
            return parsed
        config = _get_config()
        limit = _safe_int(request.query_params.get("limit", str(config.default_page_size)), "limit", min_value=1)
        if isinstance(limit, JSONResponse):
            return limit
        history = db.get_file_history(parsed, limit=min(limit, config.max_page_size))
        if history is None:
            return _error_response(f"File not found: {file_id}", "NOT_FOUND", 404)
        return JSONResponse(history)

    @router.get("/projects")
    async def api_list_projects(db: MonitorDB = Depends(_get_db)) -> JSONResponse:
        return JSONResponse(db.list_projects())

    return router
