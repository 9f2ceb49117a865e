"""
Core functionality exports for safenpm.

This module provides convenient access to the core subsystems of safenpm.
Importing from here keeps user-facing imports clean and stable:

    from safenpm.core import VersionResolver, create_metadata_source
"""

from __future__ import annotations

from safenpm.core.registry import (
    FixtureMetadataSource,
    MetadataSource,
    RegistryMetadataSource,
    create_metadata_source,
)
from safenpm.core.resolver import (
    VersionResolver,
    compute_cutoff,
    resolve_safe_version,
    select_version,
)
from safenpm.core.manifest import (
    apply_overrides,
    build_ignore_set,
    collect_from_args,
    collect_from_package_json,
    parse_package_spec,
)
from safenpm.core.installer import (
    build_install_command,
    detect_cli_defaults,
    normalize_package_manager,
    normalize_strategy,
    run_install,
)

__all__ = [
    "MetadataSource",
    "RegistryMetadataSource",
    "FixtureMetadataSource",
    "create_metadata_source",
    "VersionResolver",
    "compute_cutoff",
    "resolve_safe_version",
    "select_version",
    "parse_package_spec",
    "collect_from_args",
    "collect_from_package_json",
    "build_ignore_set",
    "apply_overrides",
    "build_install_command",
    "detect_cli_defaults",
    "normalize_package_manager",
    "normalize_strategy",
    "run_install",
]
