"""Core database operations for the scan monitor.

Single source of truth for all SQLite operations. The HTTP API, the CLI,
and the scheduler wiring all import from this module. Direct SQLite with
WAL mode; readers never block the ingestion writer.

Covers projects, the tracked-file registry, scan ingestion, and the scan /
change-history queries. Aggregate statistics live in ``claudemon.stats``.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path

from claudemon.activity import ActivityLog
from claudemon.config import DB_FILENAME, find_monitor_root, read_config
from claudemon.db_files import FilesMixin
from claudemon.db_projects import ProjectsMixin
from claudemon.db_scans import ScansMixin
from claudemon.db_schema import CURRENT_SCHEMA_VERSION, SCHEMA_SQL
from claudemon.types.core import (
    FileChangeDict,
    ISOTimestamp,
    ProjectDict,
    ScanDict,
    TrackedFileDict,
)

logger = logging.getLogger(__name__)

VALID_CHANGE_STATUSES = frozenset({"NEW", "MODIFIED", "DELETED"})


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass
class Project:
    id: int
    path: str
    name: str
    has_claude_folder: bool = False
    first_seen_at: str = ""
    last_seen_at: str = ""

    def to_dict(self) -> ProjectDict:
        return {
            "id": self.id,
            "path": self.path,
            "name": self.name,
            "has_claude_folder": self.has_claude_folder,
            "first_seen_at": ISOTimestamp(self.first_seen_at),
            "last_seen_at": ISOTimestamp(self.last_seen_at),
        }


@dataclass
class TrackedFile:
    id: int
    path: str
    filename: str
    project_id: int | None = None
    project_name: str | None = None
    current_size_bytes: int = 0
    is_deleted: bool = False
    first_seen_at: str = ""
    last_seen_at: str = ""

    def to_dict(self) -> TrackedFileDict:
        return {
            "id": self.id,
            "path": self.path,
            "filename": self.filename,
            "project_id": self.project_id,
            "project_name": self.project_name,
            "current_size_bytes": self.current_size_bytes,
            "is_deleted": self.is_deleted,
            "first_seen_at": ISOTimestamp(self.first_seen_at),
            "last_seen_at": ISOTimestamp(self.last_seen_at),
        }


@dataclass
class Scan:
    id: int
    scan_time: str
    scan_time_iso: str
    scan_duration_ms: int = 0
    projects_scanned: int = 0
    projects_missing_claude: int = 0
    files_no_change: int = 0
    files_with_change_count: int = 0

    def to_dict(self) -> ScanDict:
        return {
            "id": self.id,
            "scan_time": self.scan_time,
            "scan_time_iso": ISOTimestamp(self.scan_time_iso),
            "scan_duration_ms": self.scan_duration_ms,
            "projects_scanned": self.projects_scanned,
            "projects_missing_claude": self.projects_missing_claude,
            "files_no_change": self.files_no_change,
            "files_with_change_count": self.files_with_change_count,
        }


@dataclass
class FileChange:
    id: int
    scan_id: int
    path: str
    status: str
    size_bytes: int = 0
    delta_size_bytes: int | None = None
    attributes: list[str] = field(default_factory=list)
    last_modified: str | None = None
    last_modified_iso: str | None = None

    def to_dict(self) -> FileChangeDict:
        return {
            "id": self.id,
            "scan_id": self.scan_id,
            "path": self.path,
            "size_bytes": self.size_bytes,
            "delta_size_bytes": self.delta_size_bytes,
            "status": self.status,
            "attributes": self.attributes,
            "last_modified": self.last_modified,
            "last_modified_iso": ISOTimestamp(self.last_modified_iso) if self.last_modified_iso else None,
        }


# ---------------------------------------------------------------------------
# MonitorDB: the core
# ---------------------------------------------------------------------------


class MonitorDB(ProjectsMixin, FilesMixin, ScansMixin):
    """Direct SQLite operations. Importable by the API, CLI, and scheduler."""

    def __init__(
        self,
        db_path: str | Path,
        *,
        skip_empty_scans: bool = True,
        activity: ActivityLog | None = None,
        check_same_thread: bool = True,
    ) -> None:
        self.db_path = Path(db_path)
        self.skip_empty_scans = skip_empty_scans
        self.activity = activity or ActivityLog()
        self._conn: sqlite3.Connection | None = None
        self._check_same_thread = check_same_thread

    @classmethod
    def from_project(cls, project_path: Path | None = None) -> MonitorDB:
        """Create a MonitorDB by discovering .claudemon/ from project_path (or cwd)."""
        monitor_dir = find_monitor_root(project_path)
        config = read_config(monitor_dir)
        db = cls(monitor_dir / DB_FILENAME, skip_empty_scans=config.skip_empty_scans)
        db.initialize()
        return db

    def __enter__(self) -> MonitorDB:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(
                str(self.db_path),
                isolation_level="DEFERRED",
                check_same_thread=self._check_same_thread,
            )
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA foreign_keys=ON")
            self._conn.execute("PRAGMA busy_timeout=5000")
        return self._conn

    def initialize(self) -> None:
        """Create tables if the database is new.

        A fresh database (user_version == 0) gets the full schema and is
        stamped with CURRENT_SCHEMA_VERSION. A database written by a newer
        claudemon is refused rather than silently misread.
        """
        current_version = self.get_schema_version()
        if current_version == 0:
            self.conn.executescript(SCHEMA_SQL)
            self.conn.execute(f"PRAGMA user_version = {CURRENT_SCHEMA_VERSION}")
        elif current_version > CURRENT_SCHEMA_VERSION:
            msg = (
                f"Database {self.db_path} has schema version {current_version}, "
                f"newer than supported version {CURRENT_SCHEMA_VERSION}"
            )
            raise RuntimeError(msg)
        self.conn.commit()

    def get_schema_version(self) -> int:
        """Return the current schema version from PRAGMA user_version."""
        result: int = self.conn.execute("PRAGMA user_version").fetchone()[0]
        return result

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

