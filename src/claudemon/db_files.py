"""FilesMixin: the tracked-file registry.

One row per distinct path ever observed. ``current_size_bytes`` and
``is_deleted`` always mirror the most recently ingested change for the
path; rows are retained after deletion so history stays joinable.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from claudemon.db_base import DBMixinProtocol, _escape_like, _load_attributes
from claudemon.db_projects import derive_filename
from claudemon.errors import ValidationError

if TYPE_CHECKING:
    from claudemon.core import TrackedFile
    from claudemon.types.api import FileHistory, FileHistoryEntry
    from claudemon.types.core import PaginatedResult

logger = logging.getLogger(__name__)

MIN_SEARCH_LENGTH = 2

_FILE_SELECT = "SELECT tf.*, p.name AS project_name FROM tracked_files tf LEFT JOIN projects p ON p.id = tf.project_id"


class FilesMixin(DBMixinProtocol):
    """Tracked-file registry: upsert from the change stream, plus read queries."""

    def _build_tracked_file(self, row: Any) -> TrackedFile:
        from claudemon.core import TrackedFile

        keys = row.keys()
        return TrackedFile(
            id=row["id"],
            path=row["path"],
            filename=row["filename"],
            project_id=row["project_id"],
            project_name=row["project_name"] if "project_name" in keys else None,
            current_size_bytes=row["current_size_bytes"],
            is_deleted=bool(row["is_deleted"]),
            first_seen_at=row["first_seen_at"],
            last_seen_at=row["last_seen_at"],
        )

    # -- Registry upsert -----------------------------------------------------

    def upsert_tracked_file(
        self,
        change: Mapping[str, Any],
        scan_time_iso: str,
        *,
        project_id: int | None = None,
    ) -> int:
        """Insert or update the current-state row for ``change["path"]``.

        Does not commit: the caller owns the transaction so the registry and
        the change history are written atomically. An unseen path starts
        with ``first_seen_at = last_seen_at = scan_time_iso``; a known path
        has its size, deletion flag and ``last_seen_at`` overwritten, so the
        latest ingested change always wins. Returns the row id.
        """
        path = change["path"]
        self.conn.execute(
            "INSERT INTO tracked_files "
            "(path, filename, project_id, current_size_bytes, is_deleted, first_seen_at, last_seen_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?) "
            "ON CONFLICT(path) DO UPDATE SET "
            "current_size_bytes = excluded.current_size_bytes, "
            "is_deleted = excluded.is_deleted, "
            "last_seen_at = excluded.last_seen_at, "
            "project_id = COALESCE(excluded.project_id, tracked_files.project_id)",
            (
                path,
                derive_filename(path),
                project_id,
                change["size_bytes"],
                int(change["status"] == "DELETED"),
                scan_time_iso,
                scan_time_iso,
            ),
        )
        row = self.conn.execute("SELECT id FROM tracked_files WHERE path = ?", (path,)).fetchone()
        file_id: int = row["id"]
        return file_id

    # -- Reads ---------------------------------------------------------------

    def get_file(self, file_id: int) -> TrackedFile | None:
        """Get a tracked file by ID. Returns None if not found."""
        row = self.conn.execute(f"{_FILE_SELECT} WHERE tf.id = ?", (file_id,)).fetchone()
        if row is None:
            return None
        return self._build_tracked_file(row)

    def get_file_by_path(self, path: str) -> TrackedFile | None:
        row = self.conn.execute(f"{_FILE_SELECT} WHERE tf.path = ?", (path,)).fetchone()
        if row is None:
            return None
        return self._build_tracked_file(row)

    def list_files_paginated(
        self,
        *,
        limit: int = 50,
        offset: int = 0,
        project_id: int | None = None,
        include_deleted: bool = False,
    ) -> PaginatedResult:
        """List tracked files, most recently seen first.

        Returns ``{results, total, limit, offset, has_more}``. Deleted files
        are hidden unless *include_deleted* is set.
        """
        clauses: list[str] = []
        params: list[Any] = []
        if project_id is not None:
            clauses.append("tf.project_id = ?")
            params.append(project_id)
        if not include_deleted:
            clauses.append("tf.is_deleted = 0")

        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""

        total: int = self.conn.execute(
            f"SELECT COUNT(*) FROM tracked_files tf{where}",
            params,
        ).fetchone()[0]

        rows = self.conn.execute(
            f"{_FILE_SELECT}{where} ORDER BY tf.last_seen_at DESC, tf.id DESC LIMIT ? OFFSET ?",
            [*params, limit, offset],
        ).fetchall()

        return {
            "results": [dict(self._build_tracked_file(r).to_dict()) for r in rows],
            "total": total,
            "limit": limit,
            "offset": offset,
            "has_more": (offset + limit) < total,
        }

    def search_files(self, query: str, *, limit: int = 50) -> list[TrackedFile]:
        """Substring match against path or filename, most recently seen first."""
        query = (query or "").strip()
        if len(query) < MIN_SEARCH_LENGTH:
            raise ValidationError(f"Search query must be at least {MIN_SEARCH_LENGTH} characters")
        pattern = f"%{_escape_like(query)}%"
        rows = self.conn.execute(
            f"{_FILE_SELECT} WHERE tf.path LIKE ? ESCAPE '\\' OR tf.filename LIKE ? ESCAPE '\\' "
            "ORDER BY tf.last_seen_at DESC, tf.id DESC LIMIT ?",
            (pattern, pattern, limit),
        ).fetchall()
        return [self._build_tracked_file(r) for r in rows]

    def get_file_history(self, file_id: int, *, limit: int = 50) -> FileHistory | None:
        """Return ``{file, history}`` with the newest change first, or None."""
        tracked = self.get_file(file_id)
        if tracked is None:
            return None
        rows = self.conn.execute(
            "SELECT fc.*, s.scan_time, s.scan_time_iso FROM file_changes fc "
            "JOIN scans s ON s.id = fc.scan_id "
            "WHERE fc.tracked_file_id = ? "
            "ORDER BY fc.id DESC LIMIT ?",
            (file_id, limit),
        ).fetchall()
        history: list[FileHistoryEntry] = [
            {
                "scan_id": r["scan_id"],
                "scan_time": r["scan_time"],
                "scan_time_iso": r["scan_time_iso"],
                "status": r["status"],
                "size_bytes": r["size_bytes"],
                "delta_size_bytes": r["delta_size_bytes"],
                "attributes": _load_attributes(r["attributes"]),
                "last_modified": r["last_modified"],
            }
            for r in rows
        ]
        return {"file": tracked.to_dict(), "history": history}
