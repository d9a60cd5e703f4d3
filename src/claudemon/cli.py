"""CLI for claudemon.

Convention-based: discovers .claudemon/ by walking up from cwd.

Usage:
    claudemon init                       # Initialize .claudemon/ in cwd
    claudemon serve                      # Run the HTTP API and scheduler
    claudemon ingest scan.json           # Ingest one snapshot (- for stdin)
    claudemon scans --has-changes        # List stored scans
    claudemon scan <id>                  # Show one scan with its changes
    claudemon files --project <id>       # List tracked files
    claudemon search "CLAUDE.md"         # Search tracked files
    claudemon history <id>               # Change history for one file
    claudemon projects                   # List projects
    claudemon stats --period week        # Aggregate statistics
    claudemon trends --days 14           # Scan/change trend buckets
    claudemon recent --hours 6           # Recent activity summary
    claudemon run-scan                   # Run the scan command once
"""

from __future__ import annotations

import click

from claudemon import __version__
from claudemon.cli_commands import admin, files, scans, stats


@click.group()
@click.version_option(version=__version__, prog_name="claudemon")
def cli() -> None:
    """Claudemon: scan history recorder for Claude project files."""


admin.register(cli)
scans.register(cli)
files.register(cli)
stats.register(cli)


if __name__ == "__main__":
    cli()
