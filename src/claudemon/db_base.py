"""Shared utilities, types, and Protocol for DB mixins."""

from __future__ import annotations

import json
import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from claudemon.activity import ActivityLog


def _to_iso(dt: datetime) -> str:
    """Render an aware datetime as ``YYYY-MM-DDTHH:MM:SS.sssZ`` in UTC.

    Fixed width and UTC-only, so stored instants sort lexically.
    """
    utc = dt.astimezone(UTC)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def _now_iso() -> str:
    return _to_iso(datetime.now(UTC))


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class DBMixinProtocol(Protocol):
    """Shared attributes and methods that DB mixins access via self.

    Mixins inherit this Protocol so mypy can type-check self.conn and
    friends without ``type: ignore`` on every call. Actual implementations
    are provided by MonitorDB at composition time.
    """

    db_path: Path
    skip_empty_scans: bool
    activity: ActivityLog
    _conn: sqlite3.Connection | None

    @property
    def conn(self) -> sqlite3.Connection: ...


def _load_attributes(raw: str | None) -> list[str]:
    """Decode a stored attributes column, tolerating corrupt values."""
    try:
        parsed = json.loads(raw) if raw else []
    except (json.JSONDecodeError, TypeError):
        return []
    return [str(a) for a in parsed] if isinstance(parsed, list) else []
