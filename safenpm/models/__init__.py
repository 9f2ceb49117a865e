"""
Unified data model exports for safenpm.

This module re-exports all core data models to provide a stable and
convenient public API. Users can import models directly from
``safenpm.models`` instead of individual submodules.

Example:
    >>> from safenpm.models import PackageMetadata, ResolutionRequest
"""

from __future__ import annotations

from safenpm.models.metadata import PackageMetadata, parse_timestamp
from safenpm.models.resolution import (
    ResolutionOutcome,
    ResolutionReport,
    ResolutionRequest,
    ResolutionStatus,
)

__all__ = [
    "PackageMetadata",
    "parse_timestamp",
    "ResolutionRequest",
    "ResolutionOutcome",
    "ResolutionReport",
    "ResolutionStatus",
]
