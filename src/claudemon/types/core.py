"""Foundational TypedDicts for dataclass to_dict() returns."""

from __future__ import annotations

from typing import Any, NewType, TypedDict

ISOTimestamp = NewType("ISOTimestamp", str)


class PaginatedResult(TypedDict):
    """Envelope returned by paginated query methods."""

    results: list[dict[str, Any]]
    total: int
    limit: int
    offset: int
    has_more: bool


class ProjectDict(TypedDict):
    id: int
    path: str
    name: str
    has_claude_folder: bool
    first_seen_at: ISOTimestamp
    last_seen_at: ISOTimestamp


class TrackedFileDict(TypedDict):
    id: int
    path: str
    filename: str
    project_id: int | None
    project_name: str | None
    current_size_bytes: int
    is_deleted: bool
    first_seen_at: ISOTimestamp
    last_seen_at: ISOTimestamp


class ScanDict(TypedDict):
    id: int
    scan_time: str
    scan_time_iso: ISOTimestamp
    scan_duration_ms: int
    projects_scanned: int
    projects_missing_claude: int
    files_no_change: int
    files_with_change_count: int


class FileChangeDict(TypedDict):
    id: int
    scan_id: int
    path: str
    size_bytes: int
    delta_size_bytes: int | None
    status: str
    attributes: list[str]
    last_modified: str | None
    last_modified_iso: ISOTimestamp | None
