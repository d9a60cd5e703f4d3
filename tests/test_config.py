"""Tests for config.json loading, environment overrides and discovery."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from claudemon.config import (
    CONFIG_FILENAME,
    DEFAULT_SCAN_INTERVAL_MS,
    MONITOR_DIR_NAME,
    MonitorConfig,
    config_from_mapping,
    find_monitor_root,
    read_config,
    write_config,
)


class TestReadConfig:
    def test_defaults_when_missing(self, tmp_path: Path) -> None:
        config = read_config(tmp_path, environ={})
        assert config == MonitorConfig()
        assert config.scan_interval_ms == DEFAULT_SCAN_INTERVAL_MS
        assert config.skip_empty_scans is True

    def test_round_trip(self, tmp_path: Path) -> None:
        write_config(tmp_path, MonitorConfig(scan_interval_ms=1000, scan_command=["scan", "--all"], port=8080))
        config = read_config(tmp_path, environ={})
        assert config.scan_interval_ms == 1000
        assert config.scan_command == ["scan", "--all"]
        assert config.port == 8080

    def test_corrupt_file_uses_defaults(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("{not json")
        config = read_config(tmp_path, environ={})
        assert config == MonitorConfig()
        assert "Failed to read" in caplog.text

    def test_non_object_uses_defaults(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("[1, 2]")
        assert read_config(tmp_path, environ={}) == MonitorConfig()

    def test_invalid_value_keeps_default(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text(json.dumps({"scan_interval_ms": "soon", "port": 9000}))
        config = read_config(tmp_path, environ={})
        assert config.scan_interval_ms == DEFAULT_SCAN_INTERVAL_MS
        assert config.port == 9000

    def test_unknown_keys_ignored(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text(json.dumps({"colour": "blue"}))
        assert read_config(tmp_path, environ={}) == MonitorConfig()


class TestEnvironmentOverrides:
    def test_env_wins_over_file(self, tmp_path: Path) -> None:
        write_config(tmp_path, MonitorConfig(scan_interval_ms=1000))
        config = read_config(tmp_path, environ={"SCAN_INTERVAL_MS": "2500"})
        assert config.scan_interval_ms == 2500

    @pytest.mark.parametrize(("raw", "expected"), [("false", False), ("0", False), ("YES", True), ("on", True)])
    def test_boolean_values(self, tmp_path: Path, raw: str, expected: bool) -> None:
        config = read_config(tmp_path, environ={"SKIP_EMPTY_SCANS": raw})
        assert config.skip_empty_scans is expected

    def test_bad_boolean_ignored(self, tmp_path: Path) -> None:
        config = read_config(tmp_path, environ={"AUTO_START_SCHEDULER": "maybe"})
        assert config.auto_start_scheduler is True

    def test_port_and_host(self, tmp_path: Path) -> None:
        config = read_config(tmp_path, environ={"PORT": "4000", "HOST": "0.0.0.0"})
        assert (config.port, config.host) == (4000, "0.0.0.0")

    def test_empty_env_value_ignored(self, tmp_path: Path) -> None:
        config = read_config(tmp_path, environ={"PORT": ""})
        assert config.port == MonitorConfig().port

    def test_no_monitor_dir(self) -> None:
        config = read_config(None, environ={"PORT": "4000"})
        assert config.port == 4000


class TestConfigFromMapping:
    def test_negative_interval_rejected(self) -> None:
        assert config_from_mapping({"scan_interval_ms": -5}).scan_interval_ms == DEFAULT_SCAN_INTERVAL_MS

    def test_scan_command_must_be_string_list(self) -> None:
        assert config_from_mapping({"scan_command": "scan --all"}).scan_command == []

    def test_timeout_float(self) -> None:
        assert config_from_mapping({"scan_timeout_seconds": 30}).scan_timeout_seconds == 30.0

    def test_default_page_size_clamped(self) -> None:
        config = config_from_mapping({"default_page_size": 500, "max_page_size": 200})
        assert config.default_page_size == 200


class TestFindMonitorRoot:
    def test_finds_in_parent(self, tmp_path: Path) -> None:
        (tmp_path / MONITOR_DIR_NAME).mkdir()
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_monitor_root(nested) == (tmp_path / MONITOR_DIR_NAME).resolve()

    def test_missing_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match=MONITOR_DIR_NAME):
            find_monitor_root(tmp_path)
