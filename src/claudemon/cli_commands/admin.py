"""CLI commands for setup, serving and one-shot scan execution."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click

from claudemon.cli_common import echo_json, get_monitor_dir
from claudemon.config import DB_FILENAME, MONITOR_DIR_NAME, MonitorConfig, read_config, write_config
from claudemon.core import MonitorDB
from claudemon.runner import validate_command
from claudemon.scheduler import ScanScheduler


@click.command()
@click.option("--scan-command", default=None, help="Scanner command line, e.g. 'pwsh -File Monitor.ps1'")
@click.option("--interval-ms", default=None, type=click.IntRange(min=1), help="Scan interval in milliseconds")
def init(scan_command: str | None, interval_ms: int | None) -> None:
    """Initialize .claudemon/ in the current directory."""
    import shlex

    cwd = Path.cwd()
    monitor_dir = cwd / MONITOR_DIR_NAME

    if monitor_dir.exists():
        click.echo(f"{MONITOR_DIR_NAME}/ already exists in {cwd}")
        # Still ensure DB is initialized
        with MonitorDB(monitor_dir / DB_FILENAME) as db:
            db.initialize()
        return

    config = MonitorConfig()
    if scan_command:
        config.scan_command = shlex.split(scan_command)
    if interval_ms is not None:
        config.scan_interval_ms = interval_ms

    monitor_dir.mkdir()
    write_config(monitor_dir, config)
    with MonitorDB(monitor_dir / DB_FILENAME) as db:
        db.initialize()

    click.echo(f"Initialized {MONITOR_DIR_NAME}/ in {cwd}")
    click.echo(f"  Database: {monitor_dir / DB_FILENAME}")
    if config.scan_command:
        click.echo(f"  Scan command: {' '.join(config.scan_command)}")
        problem = validate_command(config.scan_command, cwd=cwd)
        if problem:
            click.echo(f"  Warning: {problem}", err=True)
    else:
        click.echo("  Scan command: (none; set scan_command in config.json to enable the scheduler)")
    click.echo("\nNext: claudemon serve")


@click.command()
@click.option("--port", default=None, type=int, help="Server port (default from config, 3000)")
@click.option("--host", default=None, help="Bind address (default from config, 127.0.0.1)")
@click.option("--no-scheduler", is_flag=True, help="Do not start the scan scheduler on boot")
def serve(port: int | None, host: str | None, no_scheduler: bool) -> None:
    """Run the HTTP API (and the scan scheduler)."""
    from claudemon.dashboard import main as dashboard_main

    get_monitor_dir()
    dashboard_main(port=port, host=host, auto_start=False if no_scheduler else None)


@click.command("run-scan")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def run_scan(as_json: bool) -> None:
    """Run the configured scan command once and report the outcome."""
    monitor_dir = get_monitor_dir()
    config = read_config(monitor_dir)
    if not config.scan_command:
        click.echo("No scan_command configured in config.json", err=True)
        sys.exit(1)

    scheduler = ScanScheduler(
        config.scan_command,
        cwd=monitor_dir.parent,
        interval_ms=config.scan_interval_ms,
        timeout=config.scan_timeout_seconds,
    )
    result = asyncio.run(scheduler.run_now())

    if as_json:
        echo_json({"result": result, "status": scheduler.get_status()})
    elif result.get("success"):
        click.echo(f"Scan succeeded in {result['duration_ms']}ms ({result['changes']} change(s) reported)")
    else:
        click.echo(f"Scan failed after {result.get('duration_ms', 0)}ms: {result.get('error')}", err=True)
    if not result.get("success"):
        sys.exit(1)


def register(cli: click.Group) -> None:
    """Register admin commands with the CLI group."""
    cli.add_command(init)
    cli.add_command(serve)
    cli.add_command(run_scan)
