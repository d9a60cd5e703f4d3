"""Tests for the tracked-file registry read queries."""

from __future__ import annotations

import pytest

from claudemon.core import MonitorDB
from claudemon.errors import ValidationError
from tests._db_factory import insert_scan, make_change, make_snapshot


@pytest.fixture
def files_db(db: MonitorDB) -> MonitorDB:
    """Three files across two projects; one deleted."""
    db.create_scan(
        make_snapshot(
            [
                make_change("/home/dev/alpha/.claude/settings.json", status="NEW"),
                make_change("/home/dev/alpha/.claude/commands/review.md", status="NEW"),
            ],
            scan_time="1/1/26 9:00 AM",
        )
    )
    db.create_scan(
        make_snapshot(
            [make_change("/home/dev/beta/CLAUDE.md", status="NEW")],
            scan_time="1/2/26 9:00 AM",
        )
    )
    db.create_scan(
        make_snapshot(
            [make_change("/home/dev/alpha/.claude/commands/review.md", size=0, status="DELETED")],
            scan_time="1/3/26 9:00 AM",
        )
    )
    return db


class TestGetFile:
    def test_get_by_id(self, files_db: MonitorDB) -> None:
        by_path = files_db.get_file_by_path("/home/dev/beta/CLAUDE.md")
        assert by_path is not None
        by_id = files_db.get_file(by_path.id)
        assert by_id == by_path
        assert by_id.filename == "CLAUDE.md"
        assert by_id.project_name == "beta"

    def test_missing_id_returns_none(self, db: MonitorDB) -> None:
        assert db.get_file(12345) is None

    def test_missing_path_returns_none(self, db: MonitorDB) -> None:
        assert db.get_file_by_path("/nope") is None

    def test_to_dict_shape(self, files_db: MonitorDB) -> None:
        tracked = files_db.get_file_by_path("/home/dev/beta/CLAUDE.md")
        assert tracked is not None
        d = tracked.to_dict()
        assert set(d) == {
            "id",
            "path",
            "filename",
            "project_id",
            "project_name",
            "current_size_bytes",
            "is_deleted",
            "first_seen_at",
            "last_seen_at",
        }


class TestListFilesPaginated:
    def test_hides_deleted_by_default(self, files_db: MonitorDB) -> None:
        page = files_db.list_files_paginated()
        paths = {f["path"] for f in page["results"]}
        assert "/home/dev/alpha/.claude/commands/review.md" not in paths
        assert page["total"] == 2

    def test_include_deleted(self, files_db: MonitorDB) -> None:
        page = files_db.list_files_paginated(include_deleted=True)
        assert page["total"] == 3

    def test_most_recently_seen_first(self, files_db: MonitorDB) -> None:
        page = files_db.list_files_paginated(include_deleted=True)
        assert page["results"][0]["path"] == "/home/dev/alpha/.claude/commands/review.md"
        seen = [f["last_seen_at"] for f in page["results"]]
        assert seen == sorted(seen, reverse=True)

    def test_pagination_envelope(self, files_db: MonitorDB) -> None:
        page = files_db.list_files_paginated(limit=2, offset=0, include_deleted=True)
        assert len(page["results"]) == 2
        assert page["limit"] == 2
        assert page["offset"] == 0
        assert page["has_more"] is True
        last = files_db.list_files_paginated(limit=2, offset=2, include_deleted=True)
        assert len(last["results"]) == 1
        assert last["has_more"] is False

    def test_filter_by_project(self, files_db: MonitorDB) -> None:
        beta = next(p for p in files_db.list_projects() if p["name"] == "beta")
        page = files_db.list_files_paginated(project_id=beta["id"])
        assert [f["path"] for f in page["results"]] == ["/home/dev/beta/CLAUDE.md"]

    def test_empty(self, db: MonitorDB) -> None:
        page = db.list_files_paginated()
        assert page == {"results": [], "total": 0, "limit": 50, "offset": 0, "has_more": False}


class TestSearchFiles:
    def test_substring_of_path(self, files_db: MonitorDB) -> None:
        results = files_db.search_files("alpha")
        assert {f.path for f in results} == {
            "/home/dev/alpha/.claude/settings.json",
            "/home/dev/alpha/.claude/commands/review.md",
        }

    def test_matches_filename(self, files_db: MonitorDB) -> None:
        results = files_db.search_files("CLAUDE.md")
        assert [f.path for f in results] == ["/home/dev/beta/CLAUDE.md"]

    def test_includes_deleted_files(self, files_db: MonitorDB) -> None:
        results = files_db.search_files("review")
        assert len(results) == 1
        assert results[0].is_deleted is True

    def test_query_too_short(self, files_db: MonitorDB) -> None:
        with pytest.raises(ValidationError, match="at least 2"):
            files_db.search_files("a")

    def test_blank_query(self, files_db: MonitorDB) -> None:
        with pytest.raises(ValidationError):
            files_db.search_files("   ")

    def test_like_wildcards_are_literal(self, db: MonitorDB) -> None:
        db.create_scan(make_snapshot([make_change("/p/100%_done.md"), make_change("/p/other.md")]))
        assert [f.path for f in db.search_files("%_")] == ["/p/100%_done.md"]
        assert db.search_files("_d_") == []

    def test_limit(self, db: MonitorDB) -> None:
        db.create_scan(make_snapshot([make_change(f"/p/file{i}.md") for i in range(5)]))
        assert len(db.search_files("file", limit=3)) == 3


class TestFileHistory:
    def test_newest_first(self, files_db: MonitorDB) -> None:
        tracked = files_db.get_file_by_path("/home/dev/alpha/.claude/commands/review.md")
        assert tracked is not None
        result = files_db.get_file_history(tracked.id)
        assert result is not None
        assert result["file"]["path"] == tracked.path
        assert [h["status"] for h in result["history"]] == ["DELETED", "NEW"]
        assert result["history"][0]["scan_time"] == "1/3/26 9:00 AM"

    def test_limit(self, db: MonitorDB) -> None:
        for i in range(4):
            insert_scan(db, f"2025-06-0{i + 1}T00:00:00.000Z", [("/p/a.md", "MODIFIED")])
        tracked = db.get_file_by_path("/p/a.md")
        assert tracked is not None
        result = db.get_file_history(tracked.id, limit=2)
        assert result is not None
        assert [h["scan_time_iso"] for h in result["history"]] == [
            "2025-06-04T00:00:00.000Z",
            "2025-06-03T00:00:00.000Z",
        ]

    def test_missing_file(self, db: MonitorDB) -> None:
        assert db.get_file_history(999) is None
