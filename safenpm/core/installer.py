"""Installation strategies for safenpm.

Once versions are resolved they are handed to npm or pnpm in one of two
ways:

- ``direct``: pass ``name@version`` arguments to ``npm install`` /
  ``pnpm add``.
- ``overrides``: pin the versions in ``package.json`` (``overrides`` for
  npm, ``pnpm.overrides`` for pnpm) and run a plain install.

Command construction is kept pure (:func:`build_install_command`) so it
can be inspected in dry runs and tests; :func:`run_install` performs the
side effects.
"""

from __future__ import annotations

import os
import shlex
import subprocess
from pathlib import Path
from typing import List, Mapping, Optional, Tuple, Union

from safenpm.constants import (
    DEFAULT_PACKAGE_MANAGER,
    INSTALL_STRATEGIES,
    PACKAGE_JSON,
    PACKAGE_MANAGERS,
)
from safenpm.core.manifest import apply_overrides
from safenpm.exceptions import ConfigError, InstallError, ManifestError
from safenpm.utils.logger import get_logger

logger = get_logger("installer")

__all__ = [
    "build_install_command",
    "detect_cli_defaults",
    "format_command",
    "normalize_package_manager",
    "normalize_strategy",
    "run_install",
]


def normalize_package_manager(value: Optional[str]) -> str:
    """Return ``npm`` or ``pnpm`` for ``value``, ignoring case and spaces.

    Raises:
        ConfigError: ``value`` names another package manager.
    """
    normalized = str(value or "").strip().lower()
    if normalized in PACKAGE_MANAGERS:
        return normalized
    raise ConfigError(f"Unsupported package manager: {value}", option="package_manager")


def normalize_strategy(value: Optional[str]) -> str:
    """Return a known install strategy for ``value``.

    Raises:
        ConfigError: ``value`` is not a known strategy.
    """
    normalized = str(value or "").strip().lower()
    if normalized in INSTALL_STRATEGIES:
        return normalized
    raise ConfigError(f"Unknown strategy: {value}", option="strategy")


def detect_cli_defaults(argv0: Optional[str]) -> Tuple[str, str]:
    """Infer the program name and default package manager.

    The same entry point is installed as ``safe-npm`` and ``safe-pnpm``;
    the name it was invoked under picks the default package manager.

    Returns:
        ``(cli_name, package_manager)``.
    """
    invoked = os.path.basename(argv0 or "")
    if "safe-pnpm" in invoked:
        return "safe-pnpm", "pnpm"
    return "safe-npm", DEFAULT_PACKAGE_MANAGER


def build_install_command(
    strategy: str,
    package_manager: str,
    resolved: Mapping[str, str],
    registry: str,
) -> List[str]:
    """Return the package manager command line for a strategy.

    Example::

        >>> build_install_command("direct", "pnpm", {"react": "18.2.0"}, "https://r.example")
        ['pnpm', 'add', 'react@18.2.0', '--registry', 'https://r.example']
        >>> build_install_command("overrides", "npm", {"react": "18.2.0"}, "https://r.example")
        ['npm', 'install', '--registry', 'https://r.example']
    """
    strategy = normalize_strategy(strategy)
    package_manager = normalize_package_manager(package_manager)

    if strategy == "direct":
        verb = "install" if package_manager == "npm" else "add"
        packages = [f"{name}@{version}" for name, version in resolved.items()]
        return [package_manager, verb, *packages, "--registry", registry]

    return [package_manager, "install", "--registry", registry]


def format_command(command: List[str]) -> str:
    """Render a command list as a shell-quoted string for display."""
    return " ".join(shlex.quote(part) for part in command)


def run_install(
    strategy: str,
    package_manager: str,
    resolved: Mapping[str, str],
    registry: str,
    *,
    cwd: Optional[Union[str, Path]] = None,
) -> int:
    """Apply a strategy and run the package manager.

    For ``overrides`` the ``package.json`` in ``cwd`` is updated before
    the install runs. Output is not captured: the package manager writes
    straight to the terminal.

    Returns:
        The package manager's exit status.

    Raises:
        ManifestError: ``overrides`` was requested without a package.json.
        InstallError: The package manager executable could not be started.
    """
    workdir = Path(cwd) if cwd is not None else Path.cwd()
    strategy = normalize_strategy(strategy)
    package_manager = normalize_package_manager(package_manager)

    if strategy == "overrides":
        manifest_path = workdir / PACKAGE_JSON
        if not manifest_path.is_file():
            raise ManifestError(
                "Cannot use overrides strategy without a package.json "
                "in the current directory.",
                file_path=str(manifest_path),
            )
        apply_overrides(manifest_path, resolved, package_manager)

    command = build_install_command(strategy, package_manager, resolved, registry)
    display = format_command(command)
    logger.info("Running: %s", display)

    try:
        completed = subprocess.run(command, cwd=str(workdir), check=False)
    except FileNotFoundError as exc:
        raise InstallError(
            f"{package_manager} executable not found on PATH",
            command=display,
        ) from exc
    except OSError as exc:
        raise InstallError(
            f"Failed to start {package_manager}: {exc}",
            command=display,
        ) from exc

    if completed.returncode != 0:
        logger.warning("%s exited with status %d", package_manager, completed.returncode)
    return completed.returncode
