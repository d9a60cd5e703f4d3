"""Exception types shared by the ingestion pipeline, registry, and scheduler."""

from __future__ import annotations


class MonitorError(Exception):
    """Base class for claudemon errors."""


class ValidationError(MonitorError, ValueError):
    """Malformed input rejected before any storage access."""


class StorageError(MonitorError):
    """A storage transaction failed and was rolled back."""


class ExternalProcessError(MonitorError):
    """The external scanning process could not be run to completion.

    ``timed_out`` is set when the process was killed for exceeding its
    time budget.
    """

    def __init__(self, message: str, *, timed_out: bool = False) -> None:
        super().__init__(message)
        self.timed_out = timed_out
