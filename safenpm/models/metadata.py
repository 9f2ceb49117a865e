"""
Registry metadata model for safenpm.

This module defines :class:`PackageMetadata`, the immutable snapshot of a
package's registry document that the resolver works from, and the helper
that turns registry timestamps into aware datetimes.
"""

from __future__ import annotations

from datetime import datetime, timezone
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from safenpm.constants import LATEST_TAG, TIME_PSEUDO_KEYS


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 registry timestamp into an aware UTC datetime.

    A trailing ``Z`` designator is accepted and naive timestamps are taken
    to be UTC.

    Args:
        value: Raw value from the registry ``time`` object.

    Returns:
        The parsed datetime, or ``None`` when ``value`` is missing or is
        not a valid timestamp.

    Example::

        >>> parse_timestamp("2024-01-02T03:04:05.678Z")
        datetime.datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=datetime.timezone.utc)
        >>> parse_timestamp("yesterday") is None
        True
    """
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _section(document: Mapping[str, Any], key: str) -> Dict[str, Any]:
    """Return ``document[key]`` as a dict, treating absence as empty."""
    value = document.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(
            f"Registry field '{key}' must be an object, got {type(value).__name__}"
        )
    return dict(value)


@dataclass(frozen=True)
class PackageMetadata:
    """Immutable snapshot of one package's registry document.

    Fetched once per resolution request and never shared between
    requests.

    Attributes:
        name: Package name as requested (scoped names keep their ``@``).
        versions: Version string to opaque per-version record. Only key
            existence matters.
        publish_times: Version string (plus the ``created`` and
            ``modified`` pseudo-keys) to ISO-8601 timestamp.
        dist_tags: Tag name (e.g. ``latest``) to version string.
    """

    name: str
    versions: Dict[str, Any] = field(default_factory=dict)
    publish_times: Dict[str, Any] = field(default_factory=dict)
    dist_tags: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_document(cls, name: str, document: Mapping[str, Any]) -> "PackageMetadata":
        """Build metadata from a registry-shaped JSON document.

        Missing ``versions``, ``time`` or ``dist-tags`` sections are read
        as empty.

        Raises:
            ValueError: A section is present but is not a JSON object.
        """
        return cls(
            name=name,
            versions=_section(document, "versions"),
            publish_times=_section(document, "time"),
            dist_tags=_section(document, "dist-tags"),
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def candidate_versions(self) -> List[str]:
        """Return every published version key, without the time pseudo-keys."""
        return [v for v in self.versions if v not in TIME_PSEUDO_KEYS]

    def published_at(self, version: str) -> Optional[datetime]:
        """Return when ``version`` was published, or ``None`` if unknown."""
        return parse_timestamp(self.publish_times.get(version))

    @property
    def latest_tag(self) -> Optional[str]:
        """Version named by the ``latest`` dist-tag, if any."""
        value = self.dist_tags.get(LATEST_TAG)
        return value if isinstance(value, str) else None

    def __str__(self) -> str:
        return f"{self.name} ({len(self.candidate_versions())} versions)"
