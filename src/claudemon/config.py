"""Project configuration and convention-based discovery.

Each monitored installation has a ``.claudemon/`` directory containing
``claudemon.db`` (SQLite), ``config.json`` (scheduler and API options),
and the log files. A handful of options may be overridden from the
environment, using the variable names of the original deployment.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

MONITOR_DIR_NAME = ".claudemon"
DB_FILENAME = "claudemon.db"
CONFIG_FILENAME = "config.json"

DEFAULT_SCAN_INTERVAL_MS = 5 * 60 * 1000
DEFAULT_SCAN_TIMEOUT_SECONDS = 120.0
DEFAULT_PORT = 3000

_BOOL_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_BOOL_FALSE_VALUES = frozenset({"0", "false", "no", "off"})

# env var -> config field
_ENV_OVERRIDES = {
    "SCAN_INTERVAL_MS": "scan_interval_ms",
    "SKIP_EMPTY_SCANS": "skip_empty_scans",
    "AUTO_START_SCHEDULER": "auto_start_scheduler",
    "PORT": "port",
    "HOST": "host",
}


@dataclass
class MonitorConfig:
    scan_interval_ms: int = DEFAULT_SCAN_INTERVAL_MS
    skip_empty_scans: bool = True
    auto_start_scheduler: bool = True
    default_page_size: int = 50
    max_page_size: int = 100
    scan_command: list[str] = field(default_factory=list)
    scan_timeout_seconds: float = DEFAULT_SCAN_TIMEOUT_SECONDS
    port: int = DEFAULT_PORT
    host: str = "127.0.0.1"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def find_monitor_root(start: Path | None = None) -> Path:
    """Walk up from start (default cwd) looking for .claudemon/ directory.

    Returns the .claudemon/ directory path (not the project root).
    """
    current = (start or Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        candidate = parent / MONITOR_DIR_NAME
        if candidate.is_dir():
            return candidate
    msg = f"No {MONITOR_DIR_NAME}/ directory found in {current} or any parent"
    raise FileNotFoundError(msg)


def _coerce(name: str, raw: Any, default: Any) -> Any:
    """Coerce *raw* to the type of *default*. Raises ValueError on mismatch."""
    if isinstance(default, bool):
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, str):
            value = raw.strip().lower()
            if value in _BOOL_TRUE_VALUES:
                return True
            if value in _BOOL_FALSE_VALUES:
                return False
        raise ValueError(f"{name} must be a boolean, got {raw!r}")
    if isinstance(default, int):
        if isinstance(raw, bool):
            raise ValueError(f"{name} must be an integer, got {raw!r}")
        try:
            result = int(raw)
        except (TypeError, ValueError):
            raise ValueError(f"{name} must be an integer, got {raw!r}") from None
        if result < 1:
            raise ValueError(f"{name} must be positive, got {result}")
        return result
    if isinstance(default, float):
        if isinstance(raw, bool):
            raise ValueError(f"{name} must be a number, got {raw!r}")
        try:
            result_f = float(raw)
        except (TypeError, ValueError):
            raise ValueError(f"{name} must be a number, got {raw!r}") from None
        if result_f <= 0:
            raise ValueError(f"{name} must be positive, got {result_f}")
        return result_f
    if isinstance(default, list):
        if isinstance(raw, list) and all(isinstance(t, str) for t in raw):
            return list(raw)
        raise ValueError(f"{name} must be a list of strings")
    if not isinstance(raw, str):
        raise ValueError(f"{name} must be a string, got {raw!r}")
    return raw


def config_from_mapping(data: Mapping[str, Any], base: MonitorConfig | None = None) -> MonitorConfig:
    """Build a MonitorConfig from *data*, keeping *base* values for bad or missing keys."""
    config = base or MonitorConfig()
    for f in fields(MonitorConfig):
        if f.name not in data:
            continue
        default = getattr(config, f.name)
        try:
            setattr(config, f.name, _coerce(f.name, data[f.name], default))
        except ValueError as exc:
            logger.warning("Ignoring invalid config value: %s", exc)
    if config.default_page_size > config.max_page_size:
        logger.warning(
            "default_page_size %d exceeds max_page_size %d; clamping",
            config.default_page_size,
            config.max_page_size,
        )
        config.default_page_size = config.max_page_size
    return config


def read_config(monitor_dir: Path | None, *, environ: Mapping[str, str] | None = None) -> MonitorConfig:
    """Read .claudemon/config.json and apply environment overrides.

    Returns defaults if the file is missing or corrupt.
    """
    config = MonitorConfig()
    if monitor_dir is not None:
        config_path = monitor_dir / CONFIG_FILENAME
        if config_path.exists():
            try:
                data = json.loads(config_path.read_text())
            except (json.JSONDecodeError, OSError) as exc:
                logger.warning("Failed to read %s, using defaults: %s", config_path, exc)
                data = {}
            if isinstance(data, dict):
                config = config_from_mapping(data, config)
            else:
                logger.warning("%s is not a JSON object, using defaults", config_path)

    env = os.environ if environ is None else environ
    overrides = {name: env[var] for var, name in _ENV_OVERRIDES.items() if env.get(var)}
    if overrides:
        config = config_from_mapping(overrides, config)
    return config


def write_config(monitor_dir: Path, config: MonitorConfig | Mapping[str, Any]) -> None:
    """Write .claudemon/config.json."""
    data = config.to_dict() if isinstance(config, MonitorConfig) else dict(config)
    config_path = monitor_dir / CONFIG_FILENAME
    config_path.write_text(json.dumps(data, indent=2) + "\n")
