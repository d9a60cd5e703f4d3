"""Windowed statistics over stored scan history.

Read-only queries for dashboards: period summaries, time-bucketed trends
and a recent-activity window. Separate module from core, operates on
MonitorDB without mutating it.

Every function accepts an optional ``now`` so windows can be pinned.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from claudemon.core import VALID_CHANGE_STATUSES, MonitorDB
from claudemon.db_base import _to_iso
from claudemon.errors import ValidationError
from claudemon.types.api import (
    ActiveFile,
    ChangesByStatus,
    RecentActivity,
    StatsResult,
    TrendPoint,
    TrendsResult,
)
from claudemon.types.core import ISOTimestamp

PERIODS: dict[str, timedelta | None] = {
    "day": timedelta(hours=24),
    "week": timedelta(days=7),
    "month": timedelta(days=30),
    "all": None,
}

GRANULARITIES = {
    "hour": "%Y-%m-%dT%H:00:00.000Z",
    "day": "%Y-%m-%dT00:00:00.000Z",
}

MAX_TREND_DAYS = 90
MAX_RECENT_HOURS = 168
TOP_FILES_LIMIT = 10


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(int(value), high))


def _window_start(now: datetime | None, span: timedelta) -> str:
    return _to_iso((now or datetime.now(UTC)) - span)


def get_stats(db: MonitorDB, period: str = "day", *, now: datetime | None = None) -> StatsResult:
    """Summary for one lookback period (``day``, ``week``, ``month``, ``all``).

    Scan, change, status and most-active counts are restricted to the
    window; file and project counts are lifetime totals.
    """
    if period not in PERIODS:
        raise ValidationError(f"Invalid period {period!r}. Must be one of: {', '.join(PERIODS)}")
    span = PERIODS[period]
    scan_filter = ""
    params: list[str] = []
    if span is not None:
        scan_filter = " WHERE s.scan_time_iso >= ?"
        params.append(_window_start(now, span))

    conn = db.conn
    total_scans: int = conn.execute(f"SELECT COUNT(*) FROM scans s{scan_filter}", params).fetchone()[0]

    by_status: ChangesByStatus = {"NEW": 0, "MODIFIED": 0, "DELETED": 0}
    status_rows = conn.execute(
        f"SELECT fc.status, COUNT(*) AS cnt FROM file_changes fc JOIN scans s ON s.id = fc.scan_id{scan_filter} "
        "GROUP BY fc.status",
        params,
    ).fetchall()
    for row in status_rows:
        if row["status"] in VALID_CHANGE_STATUSES:
            by_status[row["status"]] = row["cnt"]  # type: ignore[literal-required]

    top_rows = conn.execute(
        "SELECT fc.path, COUNT(*) AS change_count, MAX(s.scan_time_iso) AS last_change "
        f"FROM file_changes fc JOIN scans s ON s.id = fc.scan_id{scan_filter} "
        "GROUP BY fc.path ORDER BY change_count DESC, fc.path ASC LIMIT ?",
        [*params, TOP_FILES_LIMIT],
    ).fetchall()
    most_active: list[ActiveFile] = [
        {"path": r["path"], "change_count": r["change_count"], "last_change": ISOTimestamp(r["last_change"])}
        for r in top_rows
    ]

    files = conn.execute(
        "SELECT COUNT(*) AS total, COALESCE(SUM(CASE WHEN is_deleted = 0 THEN 1 ELSE 0 END), 0) AS active "
        "FROM tracked_files"
    ).fetchone()
    projects = conn.execute(
        "SELECT COUNT(*) AS total, COALESCE(SUM(CASE WHEN has_claude_folder = 0 THEN 1 ELSE 0 END), 0) AS missing "
        "FROM projects"
    ).fetchone()

    return {
        "period": period,
        "total_scans": total_scans,
        "total_changes": sum(by_status.values()),
        "total_files_tracked": files["total"],
        "active_files": files["active"],
        "total_projects": projects["total"],
        "projects_missing_claude": projects["missing"],
        "changes_by_status": by_status,
        "most_active_files": most_active,
    }


def get_trends(
    db: MonitorDB,
    days: int = 7,
    granularity: str = "hour",
    *,
    now: datetime | None = None,
) -> TrendsResult:
    """Scan and change counts per hour or day bucket over the last *days*.

    *days* is clamped to 1..90. Buckets are aligned to the UTC hour or day
    and only non-empty buckets are returned, oldest first.
    """
    if granularity not in GRANULARITIES:
        raise ValidationError(f"Invalid granularity {granularity!r}. Must be one of: {', '.join(GRANULARITIES)}")
    days = _clamp(days, 1, MAX_TREND_DAYS)
    rows = db.conn.execute(
        "SELECT strftime(?, scan_time_iso) AS bucket, COUNT(*) AS scans, "
        "SUM(files_with_change_count) AS changes "
        "FROM scans WHERE scan_time_iso >= ? "
        "GROUP BY bucket ORDER BY bucket ASC",
        (GRANULARITIES[granularity], _window_start(now, timedelta(days=days))),
    ).fetchall()
    data: list[TrendPoint] = [
        {"timestamp": ISOTimestamp(r["bucket"]), "scans": r["scans"], "changes": r["changes"] or 0}
        for r in rows
        if r["bucket"] is not None
    ]
    return {"granularity": granularity, "days": days, "data": data}


def get_recent_activity(db: MonitorDB, hours: int = 24, *, now: datetime | None = None) -> RecentActivity:
    """Scan count, change count and latest scan within the last *hours* (1..168)."""
    hours = _clamp(hours, 1, MAX_RECENT_HOURS)
    since = _window_start(now, timedelta(hours=hours))
    conn = db.conn
    totals = conn.execute(
        "SELECT COUNT(*) AS scans, COALESCE(SUM(files_with_change_count), 0) AS changes "
        "FROM scans WHERE scan_time_iso >= ?",
        (since,),
    ).fetchone()
    last = conn.execute(
        "SELECT scan_time, scan_time_iso FROM scans WHERE scan_time_iso >= ? "
        "ORDER BY scan_time_iso DESC, id DESC LIMIT 1",
        (since,),
    ).fetchone()
    return {
        "hours": hours,
        "recent_scans": totals["scans"],
        "recent_changes": totals["changes"],
        "last_scan": (
            {"scan_time": last["scan_time"], "scan_time_iso": ISOTimestamp(last["scan_time_iso"])}
            if last is not None
            else None
        ),
    }
