"""Claudemon: scan history recorder and scheduler for Claude project files."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("claudemon")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from claudemon.core import FileChange, MonitorDB, Project, Scan, TrackedFile

__all__ = ["FileChange", "MonitorDB", "Project", "Scan", "TrackedFile", "__version__"]
