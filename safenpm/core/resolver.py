"""Safe version resolution for safenpm.

This module turns a package name, a range, registry metadata and an age
cutoff into a concrete version. It is the only part of safenpm with real
decision logic; everything around it is I/O.

The algorithm for one package (:func:`resolve_safe_version`):

1. Fetch the metadata snapshot from the :class:`MetadataSource`.
2. Take every published version key (the ``created`` / ``modified``
   pseudo-keys never count) that parses as semver.
3. Narrow by range: ``latest`` selects exactly the ``latest`` dist-tag;
   anything else is an npm range (pre-releases only match when the range
   names one on the same ``major.minor.patch``).
4. Unless age checks are ignored, keep only versions whose publish time
   is known and is **at or before** the cutoff. A version published
   exactly at the cutoff is old enough.
5. Return the highest survivor, or ``None`` when nothing qualifies.

:class:`VersionResolver` runs many of these concurrently and never lets
one package's failure affect another's result.

Typical usage::

    cutoff = compute_cutoff(90)
    async with HTTPClient() as http:
        resolver = VersionResolver(create_metadata_source(http_client=http))
        report = await resolver.resolve_all(
            {"react": "^18.0.0", "@types/node": "latest"},
            cutoff_date=cutoff,
        )
    print(report.resolved)
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, List, Mapping, Optional

from safenpm.constants import DEFAULT_REGISTRY
from safenpm.core.registry import MetadataSource
from safenpm.exceptions import SafeNpmError
from safenpm.models.metadata import PackageMetadata
from safenpm.models.resolution import (
    ResolutionOutcome,
    ResolutionReport,
    ResolutionRequest,
)
from safenpm.utils.logger import get_logger
from safenpm.utils.version_utils import (
    highest_version,
    is_latest_tag,
    parse_range,
    parse_semver,
)

logger = get_logger("resolver")

__all__ = [
    "VersionResolver",
    "compute_cutoff",
    "resolve_safe_version",
    "select_version",
]


def compute_cutoff(min_age_days: float, now: Optional[datetime] = None) -> datetime:
    """Return the newest publish time a version may have to be installed.

    Args:
        min_age_days: Minimum age in days. Fractions are allowed.
        now: Reference instant; defaults to the current UTC time. Naive
            values are taken as UTC.

    Raises:
        ValueError: ``min_age_days`` is negative.

    Example::

        >>> compute_cutoff(90, now=datetime(2024, 4, 1, tzinfo=timezone.utc))
        datetime.datetime(2024, 1, 2, 0, 0, tzinfo=datetime.timezone.utc)
    """
    if min_age_days < 0:
        raise ValueError(f"min_age_days must be non-negative, got {min_age_days}")

    reference = now or datetime.now(timezone.utc)
    if reference.tzinfo is None:
        reference = reference.replace(tzinfo=timezone.utc)
    return reference - timedelta(days=min_age_days)


def select_version(
    metadata: PackageMetadata,
    range_spec: str,
    cutoff_date: datetime,
    *,
    ignore_age: bool = False,
) -> Optional[str]:
    """Pick the highest version of ``metadata`` allowed by range and age.

    This is the pure half of :func:`resolve_safe_version`; it performs no
    I/O.

    Raises:
        InvalidRangeError: ``range_spec`` is neither ``latest`` nor a
            valid npm range.
    """
    candidates = [v for v in metadata.candidate_versions() if parse_semver(v)]

    if is_latest_tag(range_spec):
        tagged = metadata.latest_tag
        in_range = [tagged] if tagged and tagged in candidates else []
        if not in_range:
            logger.debug(
                "%s: latest tag %r is not a published version", metadata.name, tagged
            )
    else:
        spec = parse_range(range_spec, package_name=metadata.name)
        in_range = [v for v in candidates if spec.match(parse_semver(v))]

    if not in_range:
        logger.debug("%s: no versions match range %r", metadata.name, range_spec)
        return None

    if ignore_age:
        eligible = in_range
    else:
        eligible = [
            v for v in in_range if _old_enough(metadata, v, cutoff_date)
        ]

    chosen = highest_version(eligible)
    logger.debug(
        "%s@%s: %d in range, %d old enough, chose %s",
        metadata.name,
        range_spec,
        len(in_range),
        len(eligible),
        chosen,
    )
    return chosen


def _old_enough(metadata: PackageMetadata, version: str, cutoff_date: datetime) -> bool:
    published = metadata.published_at(version)
    if published is None:
        logger.debug(
            "%s@%s has no usable publish time; treating as too new",
            metadata.name,
            version,
        )
        return False
    return published <= cutoff_date


async def resolve_safe_version(
    request: ResolutionRequest,
    source: MetadataSource,
) -> Optional[str]:
    """Resolve one request to a concrete version.

    Returns:
        The chosen version, or ``None`` when no published version meets
        both the range and the age requirement.

    Raises:
        NotFoundError: The package is unknown to ``source``.
        TransportError: Metadata could not be fetched or decoded.
        InvalidRangeError: The range is not valid npm syntax.
    """
    metadata = await source.fetch_metadata(request.name, request.registry)
    return select_version(
        metadata,
        request.range,
        request.cutoff_date,
        ignore_age=request.ignore_age,
    )


class VersionResolver:
    """Resolve many packages concurrently against one metadata source.

    Holds no state between calls beyond the source itself.

    Args:
        source: Backend used for every metadata lookup.
    """

    def __init__(self, source: MetadataSource) -> None:
        if source is None:
            raise TypeError("source must not be None; pass a MetadataSource")
        self.source = source

    async def resolve(self, request: ResolutionRequest) -> ResolutionOutcome:
        """Resolve one request into an outcome without raising.

        safenpm errors become ``error`` outcomes carrying the error
        message. Anything else is logged with its traceback and reported
        as an unexpected error.
        """
        try:
            version = await resolve_safe_version(request, self.source)
        except SafeNpmError as exc:
            logger.info("Could not resolve %s@%s: %s", request.name, request.range, exc)
            return ResolutionOutcome.error(
                request.name,
                request.range,
                exc.message,
                ignored_age=request.ignore_age,
            )
        except Exception as exc:
            logger.exception("Unexpected error resolving %s", request.name)
            return ResolutionOutcome.error(
                request.name,
                request.range,
                f"Unexpected error: {exc}",
                ignored_age=request.ignore_age,
            )

        if version is None:
            return ResolutionOutcome.no_match(
                request.name, request.range, ignored_age=request.ignore_age
            )
        return ResolutionOutcome.resolved(
            request.name, request.range, version, ignored_age=request.ignore_age
        )

    async def resolve_requests(
        self,
        requests: Iterable[ResolutionRequest],
    ) -> List[ResolutionOutcome]:
        """Resolve requests concurrently, returning outcomes in input order."""
        request_list = list(requests)
        results = await asyncio.gather(
            *(self.resolve(req) for req in request_list),
            return_exceptions=True,
        )
        return self._process_results(request_list, results)

    async def resolve_all(
        self,
        dependencies: Mapping[str, str],
        *,
        cutoff_date: datetime,
        registry: str = DEFAULT_REGISTRY,
        ignore: Iterable[str] = (),
    ) -> ResolutionReport:
        """Resolve a name to range mapping into a :class:`ResolutionReport`.

        Args:
            dependencies: Package name to range, in the order the report
                should use.
            cutoff_date: Newest acceptable publish time.
            registry: Registry endpoint for every request.
            ignore: Names whose age check is skipped.
        """
        ignore_set = set(ignore)
        requests = [
            ResolutionRequest(
                name=name,
                range=range_spec,
                cutoff_date=cutoff_date,
                registry=registry,
                ignore_age=name in ignore_set,
            )
            for name, range_spec in dependencies.items()
        ]

        logger.info(
            "Resolving %d package(s) with cutoff %s",
            len(requests),
            cutoff_date.isoformat(),
        )
        outcomes = await self.resolve_requests(requests)
        return ResolutionReport(outcomes=outcomes, cutoff_date=cutoff_date)

    @staticmethod
    def _process_results(
        requests: List[ResolutionRequest],
        results: List[Any],
    ) -> List[ResolutionOutcome]:
        """Convert :func:`asyncio.gather` results into outcomes.

        :meth:`resolve` already converts ordinary exceptions, so anything
        left here is a cancellation-level failure of a single task.
        """
        outcomes: List[ResolutionOutcome] = []

        for request, result in zip(requests, results):
            if isinstance(result, BaseException):
                logger.error("Resolution task for %s failed: %r", request.name, result)
                outcomes.append(
                    ResolutionOutcome.error(
                        request.name,
                        request.range,
                        f"Unexpected error: {result!r}",
                        ignored_age=request.ignore_age,
                    )
                )
            else:
                outcomes.append(result)

        return outcomes
