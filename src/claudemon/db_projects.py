"""ProjectsMixin: lazily created project roots.

A project is the directory a tracked file belongs to. Ingestion registers
projects as a side effect of observing files; backfill tooling may also
register them explicitly through ``upsert_project``.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

from claudemon.db_base import DBMixinProtocol, _now_iso
from claudemon.errors import StorageError

if TYPE_CHECKING:
    from claudemon.core import Project
    from claudemon.types.api import ProjectSummary

logger = logging.getLogger(__name__)

_SEP_RE = re.compile(r"[/\\]")
CLAUDE_DIR_NAME = ".claude"


def split_path(path: str) -> list[str]:
    """Split on both POSIX and Windows separators."""
    return _SEP_RE.split(path)


def derive_filename(path: str) -> str:
    """Final path segment, regardless of separator style."""
    return split_path(path)[-1]


def derive_project_root(path: str) -> tuple[str, str, bool] | None:
    """Return ``(root, name, has_claude_folder)`` for a file path.

    The root is the prefix before a ``.claude`` directory segment when one
    exists, otherwise the file's parent directory. Returns None for paths
    with no usable directory part.
    """
    parts = split_path(path)
    dirs = parts[:-1]
    lowered = [p.lower() for p in dirs]
    if CLAUDE_DIR_NAME in lowered:
        root_parts = dirs[: lowered.index(CLAUDE_DIR_NAME)]
        has_claude = True
    else:
        root_parts = dirs
        has_claude = False
    name = next((p for p in reversed(root_parts) if p), "")
    if not name:
        return None
    sep = "\\" if "\\" in path and "/" not in path else "/"
    return sep.join(root_parts), name, has_claude


class ProjectsMixin(DBMixinProtocol):
    """Project registry. Rows are created or touched, never deleted."""

    def _build_project(self, row: Any) -> Project:
        from claudemon.core import Project

        return Project(
            id=row["id"],
            path=row["path"],
            name=row["name"],
            has_claude_folder=bool(row["has_claude_folder"]),
            first_seen_at=row["first_seen_at"],
            last_seen_at=row["last_seen_at"],
        )

    def _upsert_project_row(self, path: str, name: str, has_claude_folder: bool, seen_at: str) -> int:
        """Insert or touch a project row without committing. Returns its id.

        ``has_claude_folder`` only ever turns on.
        """
        self.conn.execute(
            "INSERT INTO projects (path, name, has_claude_folder, first_seen_at, last_seen_at) "
            "VALUES (?, ?, ?, ?, ?) "
            "ON CONFLICT(path) DO UPDATE SET "
            "last_seen_at = excluded.last_seen_at, "
            "has_claude_folder = MAX(projects.has_claude_folder, excluded.has_claude_folder)",
            (path, name, int(has_claude_folder), seen_at, seen_at),
        )
        row = self.conn.execute("SELECT id FROM projects WHERE path = ?", (path,)).fetchone()
        project_id: int = row["id"]
        return project_id

    def _project_for_file(self, file_path: str, seen_at: str) -> int | None:
        """Resolve (creating if needed) the project owning *file_path*."""
        derived = derive_project_root(file_path)
        if derived is None:
            return None
        root, name, has_claude = derived
        return self._upsert_project_row(root, name, has_claude, seen_at)

    def upsert_project(
        self,
        path: str,
        *,
        name: str | None = None,
        has_claude_folder: bool = False,
        seen_at: str | None = None,
    ) -> Project:
        """Register a project root or refresh its last-seen time, then commit."""
        if not isinstance(path, str) or not path.strip():
            raise ValueError("Project path cannot be empty")
        name = name or next((p for p in reversed(split_path(path)) if p), path)
        try:
            project_id = self._upsert_project_row(path, name, has_claude_folder, seen_at or _now_iso())
            self.conn.commit()
        except Exception:
            if self.conn.in_transaction:
                self.conn.rollback()
            raise
        project = self.get_project(project_id)
        if project is None:
            raise StorageError(f"Project {path!r} was not stored")
        return project

    def get_project(self, project_id: int) -> Project | None:
        """Get a project by ID. Returns None if not found."""
        row = self.conn.execute("SELECT * FROM projects WHERE id = ?", (project_id,)).fetchone()
        if row is None:
            return None
        return self._build_project(row)

    def list_projects(self) -> list[ProjectSummary]:
        """All projects with their tracked-file counts, by name."""
        rows = self.conn.execute(
            "SELECT p.*, "
            "(SELECT COUNT(*) FROM tracked_files tf WHERE tf.project_id = p.id) AS file_count "
            "FROM projects p ORDER BY p.name ASC, p.id ASC"
        ).fetchall()
        results: list[ProjectSummary] = []
        for r in rows:
            summary: ProjectSummary = {**self._build_project(r).to_dict(), "file_count": r["file_count"]}  # type: ignore[typeddict-item]
            results.append(summary)
        return results
