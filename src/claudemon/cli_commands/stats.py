"""CLI commands for statistics, trends and recent activity."""

from __future__ import annotations

import click

from claudemon import stats as stats_mod
from claudemon.cli_common import echo_json, get_db


@click.command()
@click.option(
    "--period",
    default="day",
    type=click.Choice(sorted(stats_mod.PERIODS)),
    help="Lookback window (default day)",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def stats(period: str, as_json: bool) -> None:
    """Show aggregate scan statistics."""
    with get_db() as db:
        result = stats_mod.get_stats(db, period)
    if as_json:
        echo_json(result)
        return
    by_status = result["changes_by_status"]
    click.echo(f"Period: {result['period']}")
    click.echo(f"  Scans: {result['total_scans']}")
    click.echo(
        f"  Changes: {result['total_changes']} "
        f"(new {by_status['NEW']}, modified {by_status['MODIFIED']}, deleted {by_status['DELETED']})"
    )
    click.echo(f"  Files: {result['total_files_tracked']} tracked, {result['active_files']} active")
    click.echo(f"  Projects: {result['total_projects']} ({result['projects_missing_claude']} without .claude)")
    if result["most_active_files"]:
        click.echo("\nMost active files:")
        for f in result["most_active_files"]:
            click.echo(f"  {f['change_count']:>4}  {f['path']}")


@click.command()
@click.option("--days", default=7, type=int, help="Days to look back, 1-90 (default 7)")
@click.option(
    "--granularity",
    default="hour",
    type=click.Choice(sorted(stats_mod.GRANULARITIES)),
    help="Bucket width (default hour)",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def trends(days: int, granularity: str, as_json: bool) -> None:
    """Show scans and changes per time bucket."""
    with get_db() as db:
        result = stats_mod.get_trends(db, days, granularity)
    if as_json:
        echo_json(result)
        return
    for point in result["data"]:
        click.echo(f"{point['timestamp']}  scans {point['scans']:>4}  changes {point['changes']:>5}")
    if not result["data"]:
        click.echo(f"No scans in the last {result['days']} day(s)")


@click.command()
@click.option("--hours", default=24, type=int, help="Hours to look back, 1-168 (default 24)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def recent(hours: int, as_json: bool) -> None:
    """Summarize scan activity over the last few hours."""
    with get_db() as db:
        result = stats_mod.get_recent_activity(db, hours)
    if as_json:
        echo_json(result)
        return
    click.echo(f"Last {result['hours']}h: {result['recent_scans']} scans, {result['recent_changes']} changes")
    last = result["last_scan"]
    click.echo(f"  Latest scan: {last['scan_time_iso'] if last else 'none'}")


def register(cli: click.Group) -> None:
    """Register stats commands with the CLI group."""
    cli.add_command(stats)
    cli.add_command(trends)
    cli.add_command(recent)
