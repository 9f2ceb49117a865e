"""package.json and package-spec handling for safenpm.

Dependencies reach the resolver either as command-line specs
(``name@range``) or from a project's ``package.json``. This module turns
both into ordered ``name -> range`` mappings, and writes resolved
versions back as ``overrides`` for the overrides install strategy.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple, Union

from safenpm.constants import LATEST_TAG
from safenpm.exceptions import FileOperationError, ManifestError
from safenpm.utils.filesystem import read_json_file, write_json_file
from safenpm.utils.logger import get_logger

logger = get_logger("manifest")

__all__ = [
    "parse_package_spec",
    "collect_from_args",
    "collect_from_package_json",
    "build_ignore_set",
    "apply_overrides",
]


def parse_package_spec(spec: str) -> Tuple[str, str]:
    """Split ``name@range`` into its parts.

    Scoped names keep their leading ``@``. A missing or empty range means
    ``latest``.

    Raises:
        ManifestError: ``spec`` is empty.

    Example::

        >>> parse_package_spec("react@^18.2.0")
        ('react', '^18.2.0')
        >>> parse_package_spec("@types/node")
        ('@types/node', 'latest')
        >>> parse_package_spec("@babel/core@7.x")
        ('@babel/core', '7.x')
    """
    text = spec.strip() if spec else ""
    if not text:
        raise ManifestError("Empty package spec provided")

    if text.startswith("@"):
        at_index = text.find("@", 1)
        if at_index == -1:
            return text, LATEST_TAG
        return text[:at_index], text[at_index + 1 :] or LATEST_TAG

    last_at = text.rfind("@")
    if last_at > 0:
        return text[:last_at], text[last_at + 1 :] or LATEST_TAG

    return text, LATEST_TAG


def collect_from_args(specs: Iterable[str]) -> Dict[str, str]:
    """Build a name to range mapping from command-line specs.

    A later spec for the same name replaces an earlier one.
    """
    dependencies: Dict[str, str] = {}
    for spec in specs:
        name, range_spec = parse_package_spec(spec)
        dependencies[name] = range_spec
    return dependencies


def _load_manifest(path: Path) -> Dict[str, Any]:
    if not path.is_file():
        raise ManifestError(
            f"No {path.name} found in {path.parent}",
            file_path=str(path),
        )
    try:
        return read_json_file(path)
    except FileOperationError as exc:
        raise ManifestError(
            f"Cannot read {path.name}: {exc.message}",
            file_path=str(path),
        ) from exc


def _dependency_table(manifest: Mapping[str, Any], key: str, path: Path) -> Dict[str, str]:
    table = manifest.get(key) or {}
    if not isinstance(table, dict):
        raise ManifestError(f"'{key}' must be an object", file_path=str(path))
    return {str(name): str(range_spec) for name, range_spec in table.items()}


def collect_from_package_json(
    path: Union[str, Path],
    *,
    dev_only: bool = False,
    prod_only: bool = False,
) -> Dict[str, str]:
    """Read dependencies from a ``package.json``.

    ``devDependencies`` are collected first and ``dependencies`` second,
    so a name listed in both takes its range from ``dependencies``.

    Args:
        path: Location of ``package.json``.
        dev_only: Only read ``devDependencies``.
        prod_only: Only read ``dependencies``.

    Raises:
        ManifestError: Both filters are set, or the file is missing or
            malformed.
    """
    if dev_only and prod_only:
        raise ManifestError("--dev and --prod-only cannot be used together.")

    manifest_path = Path(path)
    manifest = _load_manifest(manifest_path)
    dependencies: Dict[str, str] = {}

    if not prod_only:
        dependencies.update(_dependency_table(manifest, "devDependencies", manifest_path))

    if not dev_only:
        dependencies.update(_dependency_table(manifest, "dependencies", manifest_path))

    logger.debug("Collected %d dependencies from %s", len(dependencies), manifest_path)
    return dependencies


def build_ignore_set(value: Optional[Union[str, Iterable[str]]]) -> FrozenSet[str]:
    """Parse the ignore list into a set of package names.

    Accepts a comma-separated string or an iterable of such strings.
    Surrounding whitespace is trimmed and empty entries are dropped.

    Example::

        >>> sorted(build_ignore_set(" react, ,lodash "))
        ['lodash', 'react']
    """
    if not value:
        return frozenset()

    chunks = [value] if isinstance(value, str) else list(value)
    names = (token.strip() for chunk in chunks for token in chunk.split(","))
    return frozenset(name for name in names if name)


def apply_overrides(
    path: Union[str, Path],
    resolved: Mapping[str, str],
    package_manager: str,
) -> Dict[str, Any]:
    """Merge resolved versions into the manifest's overrides and save it.

    npm reads top-level ``overrides``; pnpm reads ``pnpm.overrides``.
    Existing entries for other packages and unrelated keys are kept.

    Returns:
        The manifest as written.

    Raises:
        ManifestError: The manifest is missing or malformed.
        FileOperationError: The manifest could not be written.
    """
    manifest_path = Path(path)
    manifest = _load_manifest(manifest_path)
    overrides = dict(resolved)

    if package_manager == "npm":
        existing = manifest.get("overrides")
        merged = dict(existing) if isinstance(existing, dict) else {}
        merged.update(overrides)
        manifest["overrides"] = merged
    else:
        pnpm_config = manifest.get("pnpm")
        pnpm_config = dict(pnpm_config) if isinstance(pnpm_config, dict) else {}
        existing = pnpm_config.get("overrides")
        merged = dict(existing) if isinstance(existing, dict) else {}
        merged.update(overrides)
        pnpm_config["overrides"] = merged
        manifest["pnpm"] = pnpm_config

    write_json_file(manifest_path, manifest)
    logger.info("Wrote %d override(s) to %s", len(overrides), manifest_path)
    return manifest
