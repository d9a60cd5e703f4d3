"""CLI commands for scan ingestion and scan history."""

from __future__ import annotations

import json as json_mod
import sys
from typing import TextIO

import click

from claudemon.cli_common import echo_json, fail, get_db
from claudemon.errors import StorageError, ValidationError


@click.command()
@click.argument("source", type=click.File("r"))
@click.option("--keep-empty", is_flag=True, help="Store the scan even if it has no changes")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def ingest(source: TextIO, keep_empty: bool, as_json: bool) -> None:
    """Ingest one scan snapshot from SOURCE (a JSON file, or - for stdin)."""
    try:
        snapshot = json_mod.load(source)
    except json_mod.JSONDecodeError as e:
        fail(f"Invalid JSON: {e}", as_json=as_json)

    with get_db() as db:
        try:
            result = db.create_scan(snapshot, skip_empty=False if keep_empty else None)
        except (ValidationError, StorageError) as e:
            fail(str(e), as_json=as_json)

    if as_json:
        echo_json(result)
    elif result["stored"]:
        click.echo(f"Stored scan {result['scan_id']} ({result['files_processed']} file change(s))")
    else:
        click.echo(f"Scan acknowledged but not stored ({result['reason']}, {result['files_tracked']} files tracked)")


@click.command("scans")
@click.option("--limit", default=20, type=click.IntRange(min=1), help="Max results (default 20)")
@click.option("--offset", default=0, type=click.IntRange(min=0), help="Skip first N results")
@click.option("--since", "start_date", default=None, help="Only scans on/after this date (YYYY-MM-DD)")
@click.option("--until", "end_date", default=None, help="Only scans on/before this date (YYYY-MM-DD)")
@click.option("--has-changes/--no-changes", default=None, help="Filter by whether the scan had changes")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_scans(
    limit: int,
    offset: int,
    start_date: str | None,
    end_date: str | None,
    has_changes: bool | None,
    as_json: bool,
) -> None:
    """List stored scans, newest first."""
    with get_db() as db:
        try:
            page = db.list_scans_paginated(
                limit=limit,
                offset=offset,
                start_date=start_date,
                end_date=end_date,
                has_changes=has_changes,
            )
        except ValidationError as e:
            fail(str(e), as_json=as_json)

    if as_json:
        echo_json(page)
        return
    for s in page["results"]:
        click.echo(
            f"#{s['id']:<6} {s['scan_time_iso']}  "
            f"+{s['new_count']} ~{s['modified_count']} -{s['deleted_count']}  "
            f"({s['scan_duration_ms']}ms)"
        )
    click.echo(f"\n{len(page['results'])} of {page['total']} scans")


@click.command("scan")
@click.argument("scan_id", type=int)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def show_scan(scan_id: int, as_json: bool) -> None:
    """Show one scan with its file changes."""
    with get_db() as db:
        scan = db.get_scan(scan_id)
    if scan is None:
        if as_json:
            click.echo(json_mod.dumps({"error": f"Not found: {scan_id}"}))
        else:
            click.echo(f"Not found: {scan_id}", err=True)
        sys.exit(1)
    if as_json:
        echo_json(scan)
        return
    click.echo(f"Scan #{scan['id']}  {scan['scan_time']}  ({scan['scan_time_iso']})")
    click.echo(
        f"  Projects: {scan['projects_scanned']} scanned, {scan['projects_missing_claude']} missing .claude"
    )
    click.echo(f"  Files: {scan['files_with_change_count']} changed, {scan['files_no_change']} unchanged")
    for c in scan["changes"]:
        delta = c["delta_size_bytes"]
        delta_str = f" ({delta:+d})" if delta is not None else ""
        click.echo(f"  {c['status']:<8} {c['path']}  {c['size_bytes']}B{delta_str}")


def register(cli: click.Group) -> None:
    """Register scan commands with the CLI group."""
    cli.add_command(ingest)
    cli.add_command(list_scans)
    cli.add_command(show_scan)
