"""Tests for windowed statistics, trends and recent activity."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from claudemon.core import MonitorDB
from claudemon.errors import ValidationError
from claudemon.stats import get_recent_activity, get_stats, get_trends
from tests._db_factory import insert_scan

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def history_db(db: MonitorDB) -> MonitorDB:
    # 40 days ago, 3 days ago, 2 hours ago
    insert_scan(db, "2025-04-22T12:00:00.000Z", [("/old/a.md", "NEW")])
    insert_scan(db, "2025-05-29T12:00:00.000Z", [("/p/a.md", "NEW"), ("/p/b.md", "NEW")])
    insert_scan(db, "2025-06-01T10:00:00.000Z", [("/p/a.md", "MODIFIED"), ("/p/b.md", "DELETED")])
    return db


class TestGetStats:
    def test_all_time(self, history_db: MonitorDB) -> None:
        stats = get_stats(history_db, "all", now=NOW)
        assert stats["period"] == "all"
        assert stats["total_scans"] == 3
        assert stats["total_changes"] == 5
        assert stats["changes_by_status"] == {"NEW": 3, "MODIFIED": 1, "DELETED": 1}

    def test_day_window(self, history_db: MonitorDB) -> None:
        stats = get_stats(history_db, "day", now=NOW)
        assert stats["total_scans"] == 1
        assert stats["changes_by_status"] == {"NEW": 0, "MODIFIED": 1, "DELETED": 1}
        assert stats["total_changes"] == 2

    def test_week_window(self, history_db: MonitorDB) -> None:
        stats = get_stats(history_db, "week", now=NOW)
        assert stats["total_scans"] == 2
        assert stats["total_changes"] == 4

    def test_month_excludes_older(self, history_db: MonitorDB) -> None:
        stats = get_stats(history_db, "month", now=NOW)
        assert stats["total_scans"] == 2

    def test_file_counts_are_lifetime(self, history_db: MonitorDB) -> None:
        stats = get_stats(history_db, "day", now=NOW)
        assert stats["total_files_tracked"] == 3
        assert stats["active_files"] == 2

    def test_most_active_files(self, history_db: MonitorDB) -> None:
        stats = get_stats(history_db, "all", now=NOW)
        top = stats["most_active_files"]
        assert [(f["path"], f["change_count"]) for f in top] == [("/p/a.md", 2), ("/p/b.md", 2), ("/old/a.md", 1)]
        assert top[0]["last_change"] == "2025-06-01T10:00:00.000Z"

    def test_most_active_capped_at_ten(self, db: MonitorDB) -> None:
        insert_scan(db, "2025-06-01T10:00:00.000Z", [(f"/p/f{i:02d}.md", "NEW") for i in range(15)])
        stats = get_stats(db, "all", now=NOW)
        assert len(stats["most_active_files"]) == 10
        assert stats["most_active_files"][0]["path"] == "/p/f00.md"

    def test_empty_database(self, db: MonitorDB) -> None:
        stats = get_stats(db, now=NOW)
        assert stats["period"] == "day"
        assert stats["total_scans"] == 0
        assert stats["total_changes"] == 0
        assert stats["most_active_files"] == []
        assert stats["total_projects"] == 0

    def test_invalid_period(self, db: MonitorDB) -> None:
        with pytest.raises(ValidationError, match="period"):
            get_stats(db, "year")


class TestGetTrends:
    def test_hour_buckets(self, db: MonitorDB) -> None:
        insert_scan(db, "2025-06-01T10:15:00.000Z", [("/p/a.md", "NEW")])
        insert_scan(db, "2025-06-01T10:45:00.000Z", [("/p/a.md", "MODIFIED"), ("/p/b.md", "NEW")])
        trends = get_trends(db, 1, "hour", now=NOW)
        assert trends["data"] == [{"timestamp": "2025-06-01T10:00:00.000Z", "scans": 2, "changes": 3}]

    def test_day_buckets_oldest_first(self, history_db: MonitorDB) -> None:
        trends = get_trends(history_db, 7, "day", now=NOW)
        assert [p["timestamp"] for p in trends["data"]] == [
            "2025-05-29T00:00:00.000Z",
            "2025-06-01T00:00:00.000Z",
        ]
        assert trends["granularity"] == "day"

    def test_days_clamped(self, history_db: MonitorDB) -> None:
        assert get_trends(history_db, 500, now=NOW)["days"] == 90
        assert get_trends(history_db, 0, now=NOW)["days"] == 1
        assert len(get_trends(history_db, 500, now=NOW)["data"]) == 3

    def test_invalid_granularity(self, db: MonitorDB) -> None:
        with pytest.raises(ValidationError, match="granularity"):
            get_trends(db, 7, "minute")

    def test_empty(self, db: MonitorDB) -> None:
        assert get_trends(db, now=NOW)["data"] == []

    def test_defaults_to_hourly_week(self, db: MonitorDB) -> None:
        trends = get_trends(db, now=NOW)
        assert trends["granularity"] == "hour"
        assert trends["days"] == 7


class TestRecentActivity:
    def test_window(self, history_db: MonitorDB) -> None:
        recent = get_recent_activity(history_db, 24, now=NOW)
        assert recent["recent_scans"] == 1
        assert recent["recent_changes"] == 2
        assert recent["last_scan"] is not None
        assert recent["last_scan"]["scan_time_iso"] == "2025-06-01T10:00:00.000Z"

    def test_no_scans_in_window(self, history_db: MonitorDB) -> None:
        recent = get_recent_activity(history_db, 1, now=NOW)
        assert recent == {"hours": 1, "recent_scans": 0, "recent_changes": 0, "last_scan": None}

    def test_hours_clamped(self, history_db: MonitorDB) -> None:
        recent = get_recent_activity(history_db, 10_000, now=NOW)
        assert recent["hours"] == 168
        assert recent["recent_scans"] == 2
        assert get_recent_activity(history_db, -5, now=NOW)["hours"] == 1
