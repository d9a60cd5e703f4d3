"""Database schema definitions for the claudemon store.

Contains the canonical SQL schema and the current schema version constant.
"""

from __future__ import annotations

SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS projects (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    path              TEXT NOT NULL UNIQUE,
    name              TEXT NOT NULL,
    has_claude_folder BOOLEAN NOT NULL DEFAULT 0,
    first_seen_at     TEXT NOT NULL,
    last_seen_at      TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS tracked_files (
    id                 INTEGER PRIMARY KEY AUTOINCREMENT,
    path               TEXT NOT NULL UNIQUE,
    filename           TEXT NOT NULL,
    project_id         INTEGER REFERENCES projects(id),
    current_size_bytes INTEGER NOT NULL DEFAULT 0,
    is_deleted         BOOLEAN NOT NULL DEFAULT 0,
    first_seen_at      TEXT NOT NULL,
    last_seen_at       TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_tracked_files_project ON tracked_files(project_id);
CREATE INDEX IF NOT EXISTS idx_tracked_files_last_seen ON tracked_files(last_seen_at);

CREATE TABLE IF NOT EXISTS scans (
    id                      INTEGER PRIMARY KEY AUTOINCREMENT,
    scan_time               TEXT NOT NULL,
    scan_time_iso           TEXT NOT NULL,
    scan_duration_ms        INTEGER NOT NULL DEFAULT 0,
    projects_scanned        INTEGER NOT NULL DEFAULT 0,
    projects_missing_claude INTEGER NOT NULL DEFAULT 0,
    files_no_change         INTEGER NOT NULL DEFAULT 0,
    files_with_change_count INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_scans_time ON scans(scan_time_iso);

CREATE TABLE IF NOT EXISTS file_changes (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    scan_id           INTEGER NOT NULL REFERENCES scans(id),
    tracked_file_id   INTEGER NOT NULL REFERENCES tracked_files(id),
    path              TEXT NOT NULL,
    size_bytes        INTEGER NOT NULL DEFAULT 0,
    delta_size_bytes  INTEGER,
    status            TEXT NOT NULL,
    attributes        TEXT NOT NULL DEFAULT '[]',
    last_modified     TEXT,
    last_modified_iso TEXT,
    CHECK (status IN ('NEW', 'MODIFIED', 'DELETED'))
);

CREATE INDEX IF NOT EXISTS idx_file_changes_scan ON file_changes(scan_id);
CREATE INDEX IF NOT EXISTS idx_file_changes_file ON file_changes(tracked_file_id);
CREATE INDEX IF NOT EXISTS idx_file_changes_path ON file_changes(path);
"""

CURRENT_SCHEMA_VERSION = 1
