"""Configuration file loader for safenpm.

Handles discovery, loading, parsing, and validation of configuration files.
Supports two formats:

- ``safenpm.toml``: settings under the ``[safenpm]`` table
- ``pyproject.toml``: settings under the ``[tool.safenpm]`` table

Discovery order:

1. Explicit path from ``--config`` or ``SAFE_NPM_CONFIG``
2. ``safenpm.toml`` in the current directory
3. ``pyproject.toml`` with a ``[tool.safenpm]`` section

Configuration precedence: defaults < config file < environment < CLI args.

Typical usage::

    config = load_config()  # Auto-discover
    config = load_config(Path("custom.toml"))  # Explicit path

Example (``safenpm.toml``)::

    [safenpm]
    min_age_days = 30
    registry = "https://registry.npmjs.org"
    ignore = ["typescript"]
    strict = true
"""

from __future__ import annotations

import tomli as tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

from safenpm.exceptions import ConfigError
from safenpm.utils.logger import get_logger
from safenpm.constants import (
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_MIN_AGE_DAYS,
    DEFAULT_REGISTRY,
    DEFAULT_STRATEGY,
    DEFAULT_TIMEOUT,
    INSTALL_STRATEGIES,
    PACKAGE_MANAGERS,
)

logger = get_logger("config")

CONFIG_FILE_NAME = "safenpm.toml"


@dataclass
class SafeNpmConfig:
    """Parsed and validated safenpm configuration.

    All fields have defaults, so empty config files are valid.

    Attributes:
        min_age_days: Minimum publish age in days before a version is
            installed.
        registry: Registry endpoint queried for metadata and passed to the
            package manager.
        package_manager: ``npm`` or ``pnpm``; ``None`` lets the program
            name decide.
        strategy: ``direct`` or ``overrides``.
        ignore: Package names whose age check is skipped.
        strict: Exit with an error when any dependency cannot be resolved.
        timeout: Per-request registry timeout in seconds.
        max_concurrency: Registry requests allowed in flight at once.
        fixtures: JSON fixture replacing the live registry.
        source_path: Path to loaded config file, or ``None`` if using defaults.
    """

    min_age_days: float = DEFAULT_MIN_AGE_DAYS
    registry: str = DEFAULT_REGISTRY
    package_manager: Optional[str] = None
    strategy: str = DEFAULT_STRATEGY
    ignore: List[str] = field(default_factory=list)
    strict: bool = False
    timeout: float = DEFAULT_TIMEOUT
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    fixtures: Optional[str] = None

    # Metadata (not a user-facing option)
    source_path: Optional[Path] = field(default=None, repr=False)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary for debug logging.

        Excludes ``source_path`` metadata.
        """
        return {
            "min_age_days": self.min_age_days,
            "registry": self.registry,
            "package_manager": self.package_manager,
            "strategy": self.strategy,
            "ignore": list(self.ignore),
            "strict": self.strict,
            "timeout": self.timeout,
            "max_concurrency": self.max_concurrency,
            "fixtures": self.fixtures,
        }


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file to load.

    Args:
        explicit_path: Explicit config path. If provided, must exist.

    Returns:
        Resolved path to config file, or ``None`` if not found.

    Raises:
        ConfigError: Explicit path provided but does not exist.
    """
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    cwd = Path.cwd()

    safenpm_toml = cwd / CONFIG_FILE_NAME
    if safenpm_toml.is_file():
        logger.debug("Found %s: %s", CONFIG_FILE_NAME, safenpm_toml)
        return safenpm_toml

    pyproject_toml = cwd / "pyproject.toml"
    if pyproject_toml.is_file() and _pyproject_has_safenpm_section(pyproject_toml):
        logger.debug("Found [tool.safenpm] in pyproject.toml: %s", pyproject_toml)
        return pyproject_toml

    logger.debug("No configuration file found")
    return None


def _pyproject_has_safenpm_section(path: Path) -> bool:
    """Check if pyproject.toml contains a [tool.safenpm] section.

    Parse errors are treated as "no section" so discovery falls back to
    defaults.
    """
    try:
        raw = _read_toml(path)
    except ConfigError:
        return False
    return "safenpm" in raw.get("tool", {})


def load_config(config_path: Optional[Path] = None) -> SafeNpmConfig:
    """Load and validate safenpm configuration.

    Args:
        config_path: Explicit path to config file. If ``None``, uses
            auto-discovery (see :func:`discover_config_file`).

    Returns:
        Validated :class:`SafeNpmConfig` with values from file or defaults.

    Raises:
        ConfigError: File cannot be parsed, has unknown keys, or invalid values.
    """
    resolved = discover_config_file(config_path)

    if resolved is None:
        logger.debug("No config file found, using defaults")
        return SafeNpmConfig()

    logger.info("Loading configuration from %s", resolved)
    raw = _read_toml(resolved)

    if resolved.name == "pyproject.toml":
        section = raw.get("tool", {}).get("safenpm", {})
    else:
        section = raw.get("safenpm", {})

    if not section:
        logger.debug("Config file found but no safenpm section, using defaults")
        return SafeNpmConfig(source_path=resolved)

    config = _parse_section(section, config_path=str(resolved))
    config.source_path = resolved

    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    """Read and parse a TOML file.

    Raises:
        ConfigError: File cannot be read or is not valid TOML.
    """
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_section(
    section: Dict[str, Any],
    *,
    config_path: str,
) -> SafeNpmConfig:
    """Parse and validate the ``[safenpm]`` / ``[tool.safenpm]`` table.

    Rejects unknown keys, type mismatches and out-of-range values.
    """
    config = SafeNpmConfig()

    known = {
        "min_age_days",
        "registry",
        "package_manager",
        "strategy",
        "ignore",
        "strict",
        "timeout",
        "max_concurrency",
        "fixtures",
    }

    unknown = set(section.keys()) - known
    if unknown:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown))}",
            config_path=config_path,
        )

    def fail(option: str, message: str) -> ConfigError:
        return ConfigError(message, config_path=config_path, option=option)

    if "min_age_days" in section:
        val = section["min_age_days"]
        if not _is_number(val) or val < 0:
            raise fail("min_age_days", f"min_age_days must be a non-negative number, got {val!r}")
        config.min_age_days = val

    if "registry" in section:
        val = section["registry"]
        if not isinstance(val, str) or not val.strip():
            raise fail("registry", "registry must be a non-empty string")
        config.registry = val.strip()

    if "package_manager" in section:
        val = section["package_manager"]
        if not isinstance(val, str) or val.strip().lower() not in PACKAGE_MANAGERS:
            raise fail(
                "package_manager",
                f"package_manager must be one of {', '.join(PACKAGE_MANAGERS)}, got {val!r}",
            )
        config.package_manager = val.strip().lower()

    if "strategy" in section:
        val = section["strategy"]
        if not isinstance(val, str) or val.strip().lower() not in INSTALL_STRATEGIES:
            raise fail(
                "strategy",
                f"strategy must be one of {', '.join(INSTALL_STRATEGIES)}, got {val!r}",
            )
        config.strategy = val.strip().lower()

    if "ignore" in section:
        val = section["ignore"]
        if not isinstance(val, list) or not all(isinstance(v, str) for v in val):
            raise fail("ignore", "ignore must be a list of package names")
        config.ignore = [v.strip() for v in val if v.strip()]

    if "strict" in section:
        val = section["strict"]
        if not isinstance(val, bool):
            raise fail("strict", f"strict must be a boolean, got {type(val).__name__}")
        config.strict = val

    if "timeout" in section:
        val = section["timeout"]
        if not _is_number(val) or val <= 0:
            raise fail("timeout", f"timeout must be a positive number, got {val!r}")
        config.timeout = val

    if "max_concurrency" in section:
        val = section["max_concurrency"]
        if not isinstance(val, int) or isinstance(val, bool) or val < 1:
            raise fail(
                "max_concurrency",
                f"max_concurrency must be a positive integer, got {val!r}",
            )
        config.max_concurrency = val

    if "fixtures" in section:
        val = section["fixtures"]
        if not isinstance(val, str) or not val.strip():
            raise fail("fixtures", "fixtures must be a non-empty path string")
        config.fixtures = val.strip()

    return config
