"""Registry metadata sources for safenpm.

The resolver needs one capability: *fetch the metadata document for a
package name*. :class:`MetadataSource` defines it and two interchangeable
implementations provide it:

- :class:`RegistryMetadataSource` queries a live npm registry over HTTP.
- :class:`FixtureMetadataSource` answers from a JSON file whose top-level
  keys are package names, making resolution deterministic and
  network-free.

Both raise :class:`~safenpm.exceptions.NotFoundError` for unknown names
and :class:`~safenpm.exceptions.TransportError` when a document cannot be
obtained or decoded. :func:`create_metadata_source` picks the backend from
configuration so that nothing else in safenpm branches on it.

Typical usage::

    async with HTTPClient(timeout=10) as http:
        source = create_metadata_source(http_client=http)
        metadata = await source.fetch_metadata("@types/node", DEFAULT_REGISTRY)
        print(metadata.latest_tag)
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from pathlib import Path
from urllib.parse import quote
from typing import Any, Dict, Optional, Union

from safenpm.constants import DEFAULT_REGISTRY, FIXTURES_ENV_VAR
from safenpm.exceptions import (
    FileOperationError,
    NotFoundError,
    TransportError,
)
from safenpm.models.metadata import PackageMetadata
from safenpm.utils.filesystem import read_json_file
from safenpm.utils.http import HTTPClient
from safenpm.utils.logger import get_logger

logger = get_logger("registry")

__all__ = [
    "MetadataSource",
    "RegistryMetadataSource",
    "FixtureMetadataSource",
    "create_metadata_source",
    "encode_package_name",
    "package_url",
]


# ---------------------------------------------------------------------------
# URL helpers
# ---------------------------------------------------------------------------


def encode_package_name(name: str) -> str:
    """Encode a package name as a single registry path segment.

    Scoped names keep their leading ``@`` but the ``/`` separating scope
    and name is percent-encoded, as the npm registry expects.

    Example::

        >>> encode_package_name("@types/node")
        '@types%2Fnode'
        >>> encode_package_name("lodash")
        'lodash'
    """
    return quote(name, safe="@")


def package_url(registry: str, name: str) -> str:
    """Return the metadata document URL for ``name`` on ``registry``."""
    base = (registry or DEFAULT_REGISTRY).rstrip("/")
    return f"{base}/{encode_package_name(name)}"


# ---------------------------------------------------------------------------
# Capability
# ---------------------------------------------------------------------------


class MetadataSource(ABC):
    """Fetches a :class:`PackageMetadata` snapshot for a package name."""

    @abstractmethod
    async def fetch_metadata(self, name: str, registry: str) -> PackageMetadata:
        """Return metadata for ``name``.

        Args:
            name: Package name, scoped or not.
            registry: Registry endpoint the request targets. Backends that
                do not talk to a registry ignore it.

        Raises:
            NotFoundError: The source has no record for ``name``.
            TransportError: The document could not be fetched or decoded.
        """
        raise NotImplementedError


# ---------------------------------------------------------------------------
# Live registry backend
# ---------------------------------------------------------------------------


class RegistryMetadataSource(MetadataSource):
    """Metadata source backed by an npm-compatible registry.

    Issues ``GET {registry}/{encoded-name}`` through a shared
    :class:`HTTPClient`, which owns the connection pool, the per-request
    timeout and the concurrency limit. Nothing is cached: every call
    performs a fresh fetch.

    Args:
        http_client: Open :class:`HTTPClient` used for every request.
    """

    def __init__(self, http_client: HTTPClient) -> None:
        self.http_client = http_client

    async def fetch_metadata(self, name: str, registry: str) -> PackageMetadata:
        url = package_url(registry, name)
        logger.debug("Fetching metadata for %s from %s", name, url)

        try:
            document = await self.http_client.get_json(url)
        except NotFoundError as exc:
            raise NotFoundError(
                f"Package '{name}' not found in registry",
                package_name=name,
                details={"url": url},
            ) from exc
        except TransportError as exc:
            raise TransportError(
                f"Failed to fetch metadata for '{name}': {exc.message}",
                package_name=name,
                url=exc.url or url,
                status_code=exc.status_code,
                response_body=exc.response_body,
            ) from exc

        return _to_metadata(name, document, origin=url)


# ---------------------------------------------------------------------------
# Fixture backend
# ---------------------------------------------------------------------------


class FixtureMetadataSource(MetadataSource):
    """Metadata source backed by a JSON fixture file.

    The file maps package names to registry-shaped documents::

        {
          "alpha": {
            "versions": {"1.0.0": {}},
            "time": {"1.0.0": "2024-01-01T00:00:00.000Z"},
            "dist-tags": {"latest": "1.0.0"}
          }
        }

    The file is read lazily on first lookup and kept for the lifetime of
    the source instance.

    Args:
        path: Location of the fixture file.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._documents: Optional[Dict[str, Any]] = None

    def _load(self) -> Dict[str, Any]:
        if self._documents is None:
            try:
                self._documents = read_json_file(self.path)
            except FileOperationError as exc:
                raise TransportError(
                    f"Cannot load registry fixture {self.path}: {exc.message}",
                ) from exc
            logger.debug(
                "Loaded %d package(s) from fixture %s",
                len(self._documents),
                self.path,
            )
        return self._documents

    async def fetch_metadata(self, name: str, registry: str) -> PackageMetadata:
        documents = self._load()

        if name not in documents:
            raise NotFoundError(
                f"Package '{name}' not found in registry",
                package_name=name,
                details={"fixture": str(self.path)},
            )

        document = documents[name]
        if not isinstance(document, dict):
            raise TransportError(
                f"Fixture entry for '{name}' is not an object",
                package_name=name,
            )

        return _to_metadata(name, document, origin=str(self.path))


# ---------------------------------------------------------------------------
# Backend selection
# ---------------------------------------------------------------------------


def create_metadata_source(
    *,
    http_client: Optional[HTTPClient] = None,
    fixtures: Optional[Union[str, Path]] = None,
) -> MetadataSource:
    """Choose the metadata backend from configuration.

    A fixture path, given explicitly or through the ``SAFE_NPM_FIXTURES``
    environment variable, selects :class:`FixtureMetadataSource`;
    otherwise the live registry is used.

    Raises:
        ValueError: The live backend is selected but no HTTP client was
            supplied.
    """
    fixture_path = fixtures or os.environ.get(FIXTURES_ENV_VAR) or None
    if fixture_path:
        logger.info("Using registry fixture %s", fixture_path)
        return FixtureMetadataSource(fixture_path)

    if http_client is None:
        raise ValueError("http_client is required for the live registry backend")
    return RegistryMetadataSource(http_client)


def _to_metadata(name: str, document: Dict[str, Any], *, origin: str) -> PackageMetadata:
    """Convert a raw document, mapping shape errors to :class:`TransportError`."""
    try:
        return PackageMetadata.from_document(name, document)
    except ValueError as exc:
        raise TransportError(
            f"Malformed metadata for '{name}': {exc}",
            package_name=name,
            url=origin,
        ) from exc
