"""Shared pytest fixtures for claudemon tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from claudemon.config import DB_FILENAME, MONITOR_DIR_NAME, MonitorConfig, write_config
from claudemon.core import MonitorDB
from claudemon.logging import ACTIVITY_LOGGER_NAME
from tests._db_factory import make_db


@pytest.fixture
def db(tmp_path: Path) -> Generator[MonitorDB, None, None]:
    """Fresh MonitorDB for each test."""
    d = make_db(tmp_path)
    yield d
    d.close()


@pytest.fixture
def monitor_project(tmp_path: Path) -> Path:
    """A tmp directory set up as a claudemon installation (.claudemon/ with config + db).

    Returns the installation root (parent of .claudemon/).
    """
    monitor_dir = tmp_path / MONITOR_DIR_NAME
    monitor_dir.mkdir()
    write_config(monitor_dir, MonitorConfig())

    d = MonitorDB(monitor_dir / DB_FILENAME)
    d.initialize()
    d.close()
    return tmp_path


@pytest.fixture
def cli_runner() -> CliRunner:
    """Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _reset_claudemon_loggers() -> Generator[None, None, None]:
    """Detach file handlers added by setup_logging()/setup_activity_log()."""
    yield
    for name in ("claudemon", ACTIVITY_LOGGER_NAME):
        logger = logging.getLogger(name)
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            handler.close()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)
