"""TypedDicts for ingestion, scheduler, and statistics return shapes."""

from __future__ import annotations

from typing import Literal, NotRequired, TypedDict

from claudemon.types.core import FileChangeDict, ISOTimestamp, ScanDict, TrackedFileDict

# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


class StoredScanResult(TypedDict):
    """``create_scan()`` result when the snapshot was persisted."""

    stored: Literal[True]
    scan_id: int
    files_processed: int


class SkippedScanResult(TypedDict):
    """``create_scan()`` result when the skip-empty policy applied."""

    stored: Literal[False]
    reason: str
    scan_time: str
    files_tracked: int


# ---------------------------------------------------------------------------
# Query surfaces
# ---------------------------------------------------------------------------


class ScanSummary(ScanDict):
    """Scan row enriched with per-status change counts for list views."""

    new_count: int
    modified_count: int
    deleted_count: int


class ScanDetail(ScanDict):
    """Scan row with its change rows, as returned by ``get_scan()``."""

    changes: list[FileChangeDict]


class FileHistoryEntry(TypedDict):
    scan_id: int
    scan_time: str
    scan_time_iso: ISOTimestamp
    status: str
    size_bytes: int
    delta_size_bytes: int | None
    attributes: list[str]
    last_modified: str | None


class FileHistory(TypedDict):
    """Shape returned by ``get_file_history()``."""

    file: TrackedFileDict
    history: list[FileHistoryEntry]


class ProjectSummary(TypedDict):
    """Shape of each entry returned by ``list_projects()``."""

    id: int
    path: str
    name: str
    has_claude_folder: bool
    first_seen_at: ISOTimestamp
    last_seen_at: ISOTimestamp
    file_count: int


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------

RunStatus = Literal["success", "error"]


class SchedulerStatus(TypedDict):
    """Shape returned by ``ScanScheduler.get_status()``."""

    running: bool
    scanning: bool
    interval_ms: int
    last_run: ISOTimestamp | None
    last_run_duration_ms: int | None
    last_run_status: RunStatus | None
    last_run_changes: int
    next_run: ISOTimestamp | None
    run_count: int
    error_count: int


class RunResult(TypedDict):
    """Outcome of one scheduler trigger (timer tick or manual run)."""

    skipped: bool
    reason: NotRequired[str]
    success: NotRequired[bool]
    duration_ms: NotRequired[int]
    changes: NotRequired[int]
    error: NotRequired[str]
    output: NotRequired[str]


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


class ChangesByStatus(TypedDict):
    NEW: int
    MODIFIED: int
    DELETED: int


class ActiveFile(TypedDict):
    path: str
    change_count: int
    last_change: ISOTimestamp


class StatsResult(TypedDict):
    """Shape returned by ``stats.get_stats()``."""

    period: str
    total_scans: int
    total_changes: int
    total_files_tracked: int
    active_files: int
    total_projects: int
    projects_missing_claude: int
    changes_by_status: ChangesByStatus
    most_active_files: list[ActiveFile]


class TrendPoint(TypedDict):
    timestamp: ISOTimestamp
    scans: int
    changes: int


class TrendsResult(TypedDict):
    """Shape returned by ``stats.get_trends()``."""

    granularity: str
    days: int
    data: list[TrendPoint]


class LastScanRef(TypedDict):
    scan_time: str
    scan_time_iso: ISOTimestamp


class RecentActivity(TypedDict):
    """Shape returned by ``stats.get_recent_activity()``."""

    hours: int
    recent_scans: int
    recent_changes: int
    last_scan: LastScanRef | None
