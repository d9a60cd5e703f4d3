"""Tests for the activity sink."""

from __future__ import annotations

import logging

import pytest

from claudemon.activity import ActivityLog
from tests._db_factory import make_change, make_snapshot


@pytest.fixture
def activity_caplog(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    caplog.set_level(logging.INFO, logger="tests.activity_sink")
    return caplog


class TestScanResult:
    def test_changes_message(self, activity_caplog: pytest.LogCaptureFixture) -> None:
        snapshot = make_snapshot([make_change(), make_change("/p/other.md")])
        ActivityLog("tests.activity_sink").scan_result(snapshot, stored=True)
        record = activity_caplog.records[-1]
        assert record.getMessage() == "Scan completed with 2 change(s)"
        assert record.event == "scan_result"  # type: ignore[attr-defined]
        assert record.details["stored"] is True  # type: ignore[attr-defined]
        assert record.details["changes"] == 2  # type: ignore[attr-defined]

    def test_no_change_message(self, activity_caplog: pytest.LogCaptureFixture) -> None:
        snapshot = make_snapshot([], scanDurationMs=812)
        ActivityLog("tests.activity_sink").scan_result(snapshot, stored=False)
        record = activity_caplog.records[-1]
        assert record.getMessage() == "Scan completed: 3 projects, 42 files unchanged, 812ms"
        assert record.details["stored"] is False  # type: ignore[attr-defined]

    def test_malformed_changes_counted_as_zero(self, activity_caplog: pytest.LogCaptureFixture) -> None:
        ActivityLog("tests.activity_sink").scan_result({"filesWithChange": "oops"}, stored=False)
        assert activity_caplog.records[-1].details["changes"] == 0  # type: ignore[attr-defined]


class TestSchedulerEvent:
    def test_failure_logged_as_error(self, activity_caplog: pytest.LogCaptureFixture) -> None:
        ActivityLog("tests.activity_sink").scheduler_event("run_failed", error="boom")
        record = activity_caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.event == "scheduler.run_failed"  # type: ignore[attr-defined]
        assert record.details == {"error": "boom"}  # type: ignore[attr-defined]

    def test_info_for_transitions(self, activity_caplog: pytest.LogCaptureFixture) -> None:
        ActivityLog("tests.activity_sink").scheduler_event("stopped")
        assert activity_caplog.records[-1].levelno == logging.INFO

    def test_broken_sink_does_not_raise(self, monkeypatch: pytest.MonkeyPatch) -> None:
        log = ActivityLog("tests.activity_sink")

        def explode(*args: object, **kwargs: object) -> None:
            raise OSError("disk full")

        monkeypatch.setattr(log._logger, "log", explode)
        log.scheduler_event("started")
        log.scan_result(make_snapshot(), stored=True)
