"""Shared fixtures for safenpm tests.

Registry documents are built relative to a fixed reference instant so
that age arithmetic in resolver tests is exact and repeatable.
"""

from __future__ import annotations

import json
from pathlib import Path
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Mapping, Optional

import pytest

from safenpm.utils.version_utils import highest_version

#: Reference "now" for deterministic age calculations.
REFERENCE_NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def iso_days_ago(days: float, now: Optional[datetime] = None) -> str:
    """Return an npm-style ISO timestamp ``days`` before ``now``."""
    instant = (now or REFERENCE_NOW) - timedelta(days=days)
    return instant.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_document(
    name: str,
    version_ages: Mapping[str, Optional[float]],
    *,
    now: Optional[datetime] = None,
    latest: Optional[str] = None,
) -> Dict[str, Any]:
    """Build a registry document.

    ``version_ages`` maps version to age in days; ``None`` leaves the
    version without a publish time. ``latest`` defaults to the highest
    version.
    """
    time: Dict[str, str] = {
        "created": iso_days_ago(1000, now),
        "modified": iso_days_ago(1, now),
    }
    versions: Dict[str, Any] = {}
    for version, age in version_ages.items():
        versions[version] = {"name": name, "version": version}
        if age is not None:
            time[version] = iso_days_ago(age, now)

    tag = latest if latest is not None else highest_version(version_ages) or "0.0.0"
    return {"name": name, "versions": versions, "time": time, "dist-tags": {"latest": tag}}


@pytest.fixture
def reference_now() -> datetime:
    """Fixed reference instant used by :func:`registry_document`."""
    return REFERENCE_NOW


@pytest.fixture
def registry_document() -> Callable[..., Dict[str, Any]]:
    """Factory for registry documents aged relative to ``REFERENCE_NOW``."""
    return build_document


@pytest.fixture
def live_registry_document() -> Callable[..., Dict[str, Any]]:
    """Factory for registry documents aged relative to the real clock."""

    def factory(name: str, version_ages: Mapping[str, Optional[float]], **kwargs: Any):
        return build_document(
            name, version_ages, now=datetime.now(timezone.utc), **kwargs
        )

    return factory


@pytest.fixture
def write_fixture(tmp_path: Path) -> Callable[[Mapping[str, Any]], Path]:
    """Write a registry fixture file and return its path."""

    def writer(packages: Mapping[str, Any]) -> Path:
        path = tmp_path / "registry.json"
        path.write_text(json.dumps(packages, indent=2), encoding="utf-8")
        return path

    return writer
