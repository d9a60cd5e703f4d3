"""Shared CLI helpers.

Provides ``get_db()`` and the JSON/error echo helpers so that ``cli.py``
and the ``cli_commands/*.py`` modules can use them without circular
imports.
"""

from __future__ import annotations

import json as json_mod
import sys
from pathlib import Path
from typing import Any, NoReturn

import click

from claudemon.config import DB_FILENAME, MONITOR_DIR_NAME, find_monitor_root, read_config
from claudemon.core import MonitorDB
from claudemon.logging import setup_activity_log, setup_logging


def get_monitor_dir() -> Path:
    """Discover .claudemon/ from the cwd and route logs into it.

    Exits with a hint if no .claudemon/ is found.
    """
    try:
        monitor_dir = find_monitor_root()
    except FileNotFoundError:
        click.echo(f"No {MONITOR_DIR_NAME}/ found. Run 'claudemon init' first.", err=True)
        sys.exit(1)
    setup_logging(monitor_dir)
    setup_activity_log(monitor_dir)
    return monitor_dir


def get_db() -> MonitorDB:
    """Discover .claudemon/ and return an initialized MonitorDB."""
    monitor_dir = get_monitor_dir()
    config = read_config(monitor_dir)
    db = MonitorDB(monitor_dir / DB_FILENAME, skip_empty_scans=config.skip_empty_scans)
    db.initialize()
    return db


def echo_json(data: Any) -> None:
    click.echo(json_mod.dumps(data, indent=2, default=str))


def fail(message: str, *, as_json: bool) -> NoReturn:
    """Report an error in the requested format and exit 1."""
    if as_json:
        click.echo(json_mod.dumps({"error": message}))
    else:
        click.echo(f"Error: {message}", err=True)
    sys.exit(1)
