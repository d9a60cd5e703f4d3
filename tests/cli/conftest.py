"""Fixtures for CLI interface tests."""

from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from claudemon.cli import cli


@pytest.fixture
def cli_in_project(tmp_path: Path, cli_runner: CliRunner) -> Generator[tuple[CliRunner, Path], None, None]:
    """Initialize a claudemon installation in tmp_path and return (runner, root)."""
    original_cwd = os.getcwd()
    os.chdir(str(tmp_path))
    result = cli_runner.invoke(cli, ["init"])
    assert result.exit_code == 0
    yield cli_runner, tmp_path
    os.chdir(original_cwd)


@pytest.fixture
def cli_outside_project(tmp_path: Path, cli_runner: CliRunner) -> Generator[CliRunner, None, None]:
    """Run from an empty directory with no .claudemon/ anywhere above it."""
    original_cwd = os.getcwd()
    empty = tmp_path / "empty"
    empty.mkdir()
    os.chdir(str(empty))
    yield cli_runner
    os.chdir(original_cwd)
