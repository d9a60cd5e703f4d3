"""CLI commands for tracked files and projects."""

from __future__ import annotations

import json as json_mod
import sys

import click

from claudemon.cli_common import echo_json, fail, get_db
from claudemon.errors import ValidationError


def _file_line(f: dict[str, object]) -> str:
    flag = " [deleted]" if f["is_deleted"] else ""
    return f"#{f['id']:<6} {f['path']}  {f['current_size_bytes']}B  last seen {f['last_seen_at']}{flag}"


@click.command("files")
@click.option("--limit", default=50, type=click.IntRange(min=1), help="Max results (default 50)")
@click.option("--offset", default=0, type=click.IntRange(min=0), help="Skip first N results")
@click.option("--project", "project_id", default=None, type=int, help="Only files in this project ID")
@click.option("--include-deleted", is_flag=True, help="Include files whose last change was a deletion")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_files(limit: int, offset: int, project_id: int | None, include_deleted: bool, as_json: bool) -> None:
    """List tracked files, most recently seen first."""
    with get_db() as db:
        page = db.list_files_paginated(
            limit=limit,
            offset=offset,
            project_id=project_id,
            include_deleted=include_deleted,
        )
    if as_json:
        echo_json(page)
        return
    for f in page["results"]:
        click.echo(_file_line(f))
    click.echo(f"\n{len(page['results'])} of {page['total']} files")


@click.command()
@click.argument("query")
@click.option("--limit", default=50, type=click.IntRange(min=1), help="Max results (default 50)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def search(query: str, limit: int, as_json: bool) -> None:
    """Search tracked files by path or filename substring."""
    with get_db() as db:
        try:
            results = db.search_files(query, limit=limit)
        except ValidationError as e:
            fail(str(e), as_json=as_json)
    if as_json:
        echo_json([f.to_dict() for f in results])
        return
    for f in results:
        click.echo(_file_line(dict(f.to_dict())))
    click.echo(f"\n{len(results)} results")


@click.command()
@click.argument("file_id", type=int)
@click.option("--limit", default=50, type=click.IntRange(min=1), help="Max entries (default 50)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def history(file_id: int, limit: int, as_json: bool) -> None:
    """Show the change history for one tracked file."""
    with get_db() as db:
        result = db.get_file_history(file_id, limit=limit)
    if result is None:
        if as_json:
            click.echo(json_mod.dumps({"error": f"Not found: {file_id}"}))
        else:
            click.echo(f"Not found: {file_id}", err=True)
        sys.exit(1)
    if as_json:
        echo_json(result)
        return
    click.echo(result["file"]["path"])
    for h in result["history"]:
        click.echo(f"  {h['scan_time_iso']}  {h['status']:<8} {h['size_bytes']}B  (scan #{h['scan_id']})")


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def projects(as_json: bool) -> None:
    """List projects with their tracked-file counts."""
    with get_db() as db:
        rows = db.list_projects()
    if as_json:
        echo_json(rows)
        return
    for p in rows:
        marker = "" if p["has_claude_folder"] else "  (no .claude)"
        click.echo(f"#{p['id']:<4} {p['name']:<24} {p['file_count']:>4} files  {p['path']}{marker}")


def register(cli: click.Group) -> None:
    """Register file commands with the CLI group."""
    cli.add_command(list_files)
    cli.add_command(search)
    cli.add_command(history)
    cli.add_command(projects)
