"""Scanner timestamp normalization.

The external scanner reports times as ``M/d/yy h:mm tt`` in the host's
local time (e.g. ``1/3/26 12:09 AM``). These helpers turn that into the
canonical stored instant.

The conversion goes through the platform's local-time rules. Wall-clock
times that fall into a DST gap or overlap are resolved however the
platform resolves them; no attempt is made to disambiguate.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime

from claudemon.db_base import _now_iso, _to_iso

logger = logging.getLogger(__name__)

_SCAN_TIME_RE = re.compile(
    r"^(\d{1,2})/(\d{1,2})/(\d{2})\s+(\d{1,2}):(\d{2})\s+(AM|PM)$",
    re.IGNORECASE,
)


def parse_scan_time(value: str | None) -> datetime | None:
    """Parse a scanner timestamp into an aware local datetime.

    Two-digit years are read as 2000+yy. Returns None when the string does
    not match the format or names an impossible date.
    """
    if not value or not isinstance(value, str):
        return None
    match = _SCAN_TIME_RE.match(value.strip())
    if match is None:
        return None
    month, day, yy, hour, minute = (int(g) for g in match.groups()[:5])
    period = match.group(6).upper()
    if not 1 <= hour <= 12:
        return None
    # 12 AM is midnight, 12 PM is noon
    if period == "PM" and hour != 12:
        hour += 12
    elif period == "AM" and hour == 12:
        hour = 0
    try:
        naive = datetime(2000 + yy, month, day, hour, minute)
    except ValueError:
        return None
    return naive.astimezone()


def scan_time_to_iso(value: str | None) -> str | None:
    """Convert a scanner timestamp to a stored ISO instant, or None."""
    parsed = parse_scan_time(value)
    return _to_iso(parsed) if parsed is not None else None


def normalize_scan_time(value: str | None) -> str:
    """Like :func:`scan_time_to_iso`, but falls back to the current instant."""
    iso = scan_time_to_iso(value)
    if iso is None:
        logger.warning("Unparseable scan time %r, using current time", value)
        return _now_iso()
    return iso
