"""
Version comparison utilities for safenpm.

This module wraps :mod:`semantic_version` with the npm flavour of
semantic versioning: strict ``MAJOR.MINOR.PATCH[-PRE][+BUILD]`` version
strings and npm range expressions (``^``, ``~``, hyphen ranges,
x-ranges and ``||`` unions).
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

import semantic_version

from safenpm.constants import LATEST_TAG
from safenpm.exceptions import InvalidRangeError

_OPERATOR_GAP = re.compile(r"(<=|>=|<|>|=|\^|~)\s+")
_TILDE_ALIAS = re.compile(r"~>")


def parse_semver(value: str) -> Optional[semantic_version.Version]:
    """Parse a version string, returning ``None`` when it is not semver.

    Examples:
        >>> parse_semver("1.2.3")
        Version('1.2.3')
        >>> parse_semver("1.2") is None
        True
    """
    try:
        return semantic_version.Version(value)
    except (TypeError, ValueError):
        return None


def sort_versions(values: Iterable[str], *, reverse: bool = False) -> List[str]:
    """Sort version strings by semver precedence, dropping invalid ones."""
    parsed = [(v, parse_semver(v)) for v in values]
    valid = [(v, p) for v, p in parsed if p is not None]
    valid.sort(key=lambda item: item[1], reverse=reverse)
    return [v for v, _ in valid]


def highest_version(values: Iterable[str]) -> Optional[str]:
    """Return the highest valid semver string in ``values``, or ``None``."""
    ordered = sort_versions(values, reverse=True)
    return ordered[0] if ordered else None


def is_latest_tag(expression: str) -> bool:
    """Return True when ``expression`` requests the ``latest`` dist-tag.

    Tags are case-sensitive, so ``LATEST`` is not the same tag.
    """
    return expression.strip() == LATEST_TAG


def parse_range(
    expression: str,
    *,
    package_name: Optional[str] = None,
) -> semantic_version.NpmSpec:
    """Parse an npm range expression.

    An empty expression matches every release, as with npm. Whitespace
    between an operator and its version (``>= 1.2.0``) is accepted, and
    the ``~>`` alias is read as ``~``.

    Raises:
        InvalidRangeError: The expression is not valid npm range syntax.
    """
    normalized = _TILDE_ALIAS.sub("~", " ".join(expression.split()))
    normalized = _OPERATOR_GAP.sub(r"\1", normalized)
    try:
        return semantic_version.NpmSpec(normalized)
    except ValueError as exc:
        raise InvalidRangeError(
            f"Invalid semver range '{expression}'",
            range_spec=expression,
            package_name=package_name,
        ) from exc
