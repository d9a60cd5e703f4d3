"""ScansMixin: scan ingestion and scan history queries."""

from __future__ import annotations

import json
import logging
import math
import re
import sqlite3
from collections.abc import Mapping
from datetime import UTC, date, datetime, timedelta
from typing import TYPE_CHECKING, Any

from claudemon.db_base import DBMixinProtocol, _load_attributes, _to_iso
from claudemon.errors import StorageError, ValidationError
from claudemon.timestamps import normalize_scan_time, scan_time_to_iso

if TYPE_CHECKING:
    from claudemon.core import FileChange, Scan
    from claudemon.types.api import ScanDetail, ScanSummary, SkippedScanResult, StoredScanResult
    from claudemon.types.core import PaginatedResult

logger = logging.getLogger(__name__)

_COUNT_FIELDS = ("scanDurationMs", "projectsScanned", "projectsMissingClaude", "filesNoChange")

SQLITE_INT_MIN = -(2**63)
SQLITE_INT_MAX = 2**63 - 1

_US_DATE_RE = re.compile(r"^(\d{2})-(\d{2})-(\d{2})$")
_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def _int_value(value: Any, label: str, *, nullable: bool = False) -> int | None:
    if value is None:
        if nullable:
            return None
        return 0
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ValidationError(f"{label} must be a number, got {type(value).__name__}")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError(f"{label} must be a finite number, got {value!r}")
    result = int(value)
    if not SQLITE_INT_MIN <= result <= SQLITE_INT_MAX:
        raise ValidationError(f"{label} is out of range: {result}")
    return result


def _validate_change(i: int, raw: Any) -> dict[str, Any]:
    """Check one ``filesWithChange`` entry and return it in storage shape."""
    from claudemon.core import VALID_CHANGE_STATUSES

    if not isinstance(raw, Mapping):
        raise ValidationError(f"filesWithChange[{i}] must be an object, got {type(raw).__name__}")
    path = raw.get("path")
    if not isinstance(path, str) or not path.strip():
        raise ValidationError(f"filesWithChange[{i}] is missing required key 'path'")
    status = raw.get("status")
    if not isinstance(status, str):
        raise ValidationError(f"filesWithChange[{i}] is missing required key 'status'")
    status = status.strip().upper()
    if status not in VALID_CHANGE_STATUSES:
        valid = ", ".join(sorted(VALID_CHANGE_STATUSES))
        raise ValidationError(f"filesWithChange[{i}] status {raw['status']!r} is not one of: {valid}")
    attributes = raw.get("attributes")
    if attributes is None:
        attributes = []
    if not isinstance(attributes, list) or not all(isinstance(a, str) for a in attributes):
        raise ValidationError(f"filesWithChange[{i}] attributes must be a list of strings")
    last_modified = raw.get("lastModified")
    if last_modified is not None and not isinstance(last_modified, str):
        raise ValidationError(f"filesWithChange[{i}] lastModified must be a string or null")
    return {
        "path": path,
        "size_bytes": _int_value(raw.get("sizeBytes"), f"filesWithChange[{i}] sizeBytes"),
        "delta_size_bytes": _int_value(raw.get("deltaSizeBytes"), f"filesWithChange[{i}] deltaSizeBytes", nullable=True),
        "status": status,
        "attributes": attributes,
        "last_modified": last_modified,
    }


def _parse_day(value: str) -> date:
    """Parse ``MM-DD-YY`` or ``YYYY-MM-DD`` into a calendar date."""
    value = (value or "").strip()
    try:
        if m := _US_DATE_RE.match(value):
            month, day, yy = (int(g) for g in m.groups())
            return date(2000 + yy, month, day)
        if m := _ISO_DATE_RE.match(value):
            year, month, day = (int(g) for g in m.groups())
            return date(year, month, day)
    except ValueError:
        pass
    raise ValidationError(f"Invalid date {value!r}. Use MM-DD-YY or YYYY-MM-DD")


def _day_start_iso(day: date) -> str:
    return _to_iso(datetime(day.year, day.month, day.day, tzinfo=UTC))


def _range_bound(value: str, label: str, *, end: bool) -> tuple[str, str]:
    """Turn a date-range filter into ``(operator, iso)``.

    A bare date covers its whole UTC day, so an end date becomes an
    exclusive bound at the following midnight.
    """
    if _ISO_DATE_RE.match(value.strip()) or _US_DATE_RE.match(value.strip()):
        day = _parse_day(value)
        if end:
            return "<", _day_start_iso(day + timedelta(days=1))
        return ">=", _day_start_iso(day)
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"Invalid {label} {value!r}. Use an ISO date or timestamp") from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return ("<=" if end else ">="), _to_iso(parsed)


class ScansMixin(DBMixinProtocol):
    """Scan ingestion pipeline and scan queries.

    Relies on ProjectsMixin and FilesMixin for the registry side of
    ingestion; all three are composed into MonitorDB.
    """

    if TYPE_CHECKING:

        def _project_for_file(self, file_path: str, seen_at: str) -> int | None: ...
        def upsert_tracked_file(
            self,
            change: Mapping[str, Any],
            scan_time_iso: str,
            *,
            project_id: int | None = None,
        ) -> int: ...

    def _build_scan(self, row: Any) -> Scan:
        from claudemon.core import Scan

        return Scan(
            id=row["id"],
            scan_time=row["scan_time"],
            scan_time_iso=row["scan_time_iso"],
            scan_duration_ms=row["scan_duration_ms"],
            projects_scanned=row["projects_scanned"],
            projects_missing_claude=row["projects_missing_claude"],
            files_no_change=row["files_no_change"],
            files_with_change_count=row["files_with_change_count"],
        )

    def _build_file_change(self, row: Any) -> FileChange:
        from claudemon.core import FileChange

        return FileChange(
            id=row["id"],
            scan_id=row["scan_id"],
            path=row["path"],
            status=row["status"],
            size_bytes=row["size_bytes"],
            delta_size_bytes=row["delta_size_bytes"],
            attributes=_load_attributes(row["attributes"]),
            last_modified=row["last_modified"],
            last_modified_iso=row["last_modified_iso"],
        )

    # -- Ingestion -----------------------------------------------------------

    def create_scan(
        self,
        snapshot: Mapping[str, Any],
        *,
        skip_empty: bool | None = None,
    ) -> StoredScanResult | SkippedScanResult:
        """Normalize and persist one scanner snapshot.

        The whole snapshot is validated before anything is written. An
        unparseable ``scanTime`` falls back to the current instant. When
        there are no changed files and the skip-empty policy applies
        (*skip_empty*, defaulting to the configured policy) nothing is
        stored. Otherwise the scan row, every change row and the matching
        registry updates are written in one transaction, in input order.

        Every snapshot is reported to the activity sink, stored or not.

        Raises ValidationError for malformed input and StorageError when the
        transaction fails; in both cases nothing is persisted.
        """
        if not isinstance(snapshot, Mapping):
            raise ValidationError(f"Scan snapshot must be an object, got {type(snapshot).__name__}")
        scan_time = snapshot.get("scanTime")
        if not isinstance(scan_time, str) or not scan_time.strip():
            raise ValidationError("Scan snapshot is missing required key 'scanTime'")
        counts = {key: _int_value(snapshot.get(key), key) for key in _COUNT_FIELDS}
        raw_changes = snapshot.get("filesWithChange")
        if raw_changes is None:
            raw_changes = []
        if not isinstance(raw_changes, list):
            raise ValidationError(f"filesWithChange must be a list, got {type(raw_changes).__name__}")
        changes = [_validate_change(i, c) for i, c in enumerate(raw_changes)]

        scan_time_iso = normalize_scan_time(scan_time)

        if skip_empty is None:
            skip_empty = self.skip_empty_scans
        if not changes and skip_empty:
            self.activity.scan_result(snapshot, stored=False)
            return {
                "stored": False,
                "reason": "no_changes",
                "scan_time": scan_time,
                "files_tracked": counts["filesNoChange"] or 0,
            }

        try:
            cursor = self.conn.execute(
                "INSERT INTO scans (scan_time, scan_time_iso, scan_duration_ms, projects_scanned, "
                "projects_missing_claude, files_no_change, files_with_change_count) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    scan_time,
                    scan_time_iso,
                    counts["scanDurationMs"],
                    counts["projectsScanned"],
                    counts["projectsMissingClaude"],
                    counts["filesNoChange"],
                    len(changes),
                ),
            )
            scan_id = cursor.lastrowid
            if scan_id is None:
                raise StorageError("Failed to store scan: no row id returned")

            for change in changes:
                project_id = self._project_for_file(change["path"], scan_time_iso)
                file_id = self.upsert_tracked_file(change, scan_time_iso, project_id=project_id)
                self.conn.execute(
                    "INSERT INTO file_changes (scan_id, tracked_file_id, path, size_bytes, "
                    "delta_size_bytes, status, attributes, last_modified, last_modified_iso) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        scan_id,
                        file_id,
                        change["path"],
                        change["size_bytes"],
                        change["delta_size_bytes"],
                        change["status"],
                        json.dumps(change["attributes"]),
                        change["last_modified"],
                        scan_time_to_iso(change["last_modified"]),
                    ),
                )

            self.conn.commit()
        except sqlite3.Error as exc:
            if self.conn.in_transaction:
                self.conn.rollback()
            logger.error("Scan ingestion rolled back: %s", exc)
            self.activity.scan_result(snapshot, stored=False)
            raise StorageError(f"Failed to store scan: {exc}") from exc
        except Exception:
            if self.conn.in_transaction:
                self.conn.rollback()
            self.activity.scan_result(snapshot, stored=False)
            raise

        logger.info("Stored scan %d with %d change(s)", scan_id, len(changes))
        self.activity.scan_result(snapshot, stored=True)
        return {"stored": True, "scan_id": scan_id, "files_processed": len(changes)}

    # -- Queries -------------------------------------------------------------

    def _changes_for_scan(self, scan_id: int) -> list[FileChange]:
        rows = self.conn.execute(
            "SELECT * FROM file_changes WHERE scan_id = ? ORDER BY id",
            (scan_id,),
        ).fetchall()
        return [self._build_file_change(r) for r in rows]

    def _scan_detail(self, row: Any) -> ScanDetail:
        detail: dict[str, Any] = dict(self._build_scan(row).to_dict())
        detail["changes"] = [c.to_dict() for c in self._changes_for_scan(row["id"])]
        return detail  # type: ignore[return-value]

    def get_scan(self, scan_id: int) -> ScanDetail | None:
        """Fetch one scan with its changes in ingestion order. None if absent."""
        row = self.conn.execute("SELECT * FROM scans WHERE id = ?", (scan_id,)).fetchone()
        if row is None:
            return None
        return self._scan_detail(row)

    def get_scans_by_date(self, day: str) -> list[ScanDetail]:
        """All scans on one UTC calendar day, oldest first, with changes.

        *day* is ``MM-DD-YY`` or ``YYYY-MM-DD``.
        """
        parsed = _parse_day(day)
        rows = self.conn.execute(
            "SELECT * FROM scans WHERE scan_time_iso >= ? AND scan_time_iso < ? ORDER BY scan_time_iso ASC, id ASC",
            (_day_start_iso(parsed), _day_start_iso(parsed + timedelta(days=1))),
        ).fetchall()
        return [self._scan_detail(r) for r in rows]

    def list_scans_paginated(
        self,
        *,
        limit: int = 50,
        offset: int = 0,
        start_date: str | None = None,
        end_date: str | None = None,
        has_changes: bool | None = None,
    ) -> PaginatedResult:
        """List scans newest first with per-status change counts.

        Returns ``{results, total, limit, offset, has_more}``.
        """
        clauses: list[str] = []
        params: list[Any] = []
        if start_date:
            op, bound = _range_bound(start_date, "start_date", end=False)
            clauses.append(f"s.scan_time_iso {op} ?")
            params.append(bound)
        if end_date:
            op, bound = _range_bound(end_date, "end_date", end=True)
            clauses.append(f"s.scan_time_iso {op} ?")
            params.append(bound)
        if has_changes is True:
            clauses.append("s.files_with_change_count > 0")
        elif has_changes is False:
            clauses.append("s.files_with_change_count = 0")

        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""

        total: int = self.conn.execute(f"SELECT COUNT(*) FROM scans s{where}", params).fetchone()[0]

        status_cols = ", ".join(
            f"(SELECT COUNT(*) FROM file_changes fc WHERE fc.scan_id = s.id AND fc.status = '{status}') AS {col}"
            for status, col in (("NEW", "new_count"), ("MODIFIED", "modified_count"), ("DELETED", "deleted_count"))
        )
        rows = self.conn.execute(
            f"SELECT s.*, {status_cols} FROM scans s{where} ORDER BY s.scan_time_iso DESC, s.id DESC LIMIT ? OFFSET ?",
            [*params, limit, offset],
        ).fetchall()

        results = []
        for r in rows:
            summary: ScanSummary = {  # type: ignore[typeddict-item]
                **self._build_scan(r).to_dict(),
                "new_count": r["new_count"],
                "modified_count": r["modified_count"],
                "deleted_count": r["deleted_count"],
            }
            results.append(dict(summary))

        return {
            "results": results,
            "total": total,
            "limit": limit,
            "offset": offset,
            "has_more": (offset + limit) < total,
        }
