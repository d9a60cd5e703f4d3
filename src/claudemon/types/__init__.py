# IMPORT CONSTRAINT: types/ modules must only import from typing, stdlib, and each other.
# NEVER import from core.py, db_base.py, or any mixin; this prevents circular imports.
"""Typed return-value contracts for claudemon core and API layers."""

from __future__ import annotations

from claudemon.types.core import (
    FileChangeDict,
    ISOTimestamp,
    PaginatedResult,
    ProjectDict,
    ScanDict,
    TrackedFileDict,
)

__all__ = [
    "FileChangeDict",
    "ISOTimestamp",
    "PaginatedResult",
    "ProjectDict",
    "ScanDict",
    "TrackedFileDict",
]
