"""
Centralized constants for safenpm.

This module defines immutable configuration values used across safenpm,
including registry endpoints, network settings, resolution defaults, and
logging formats. All values are intended to be treated as read-only.
"""

from typing import Final, FrozenSet, Tuple

# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------

#: HTTP User-Agent template used for outbound requests.
USER_AGENT_TEMPLATE: Final[str] = (
    "safenpm/{version} (+https://github.com/safenpm/safenpm)"
)

# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

#: Public npm registry queried when no other registry is configured.
DEFAULT_REGISTRY: Final[str] = "https://registry.npmjs.org"

#: Environment variable naming a JSON fixture that replaces the live registry.
FIXTURES_ENV_VAR: Final[str] = "SAFE_NPM_FIXTURES"

#: Environment variable naming an explicit configuration file.
CONFIG_ENV_VAR: Final[str] = "SAFE_NPM_CONFIG"

#: Keys of the registry ``time`` object that are not versions.
TIME_PSEUDO_KEYS: Final[FrozenSet[str]] = frozenset({"created", "modified"})

#: Range literal that selects the ``latest`` dist-tag.
LATEST_TAG: Final[str] = "latest"

# ---------------------------------------------------------------------------
# Resolution defaults
# ---------------------------------------------------------------------------

#: Minimum publish age, in days, a version needs before it is installed.
DEFAULT_MIN_AGE_DAYS: Final[float] = 90

#: Reason reported when no published version satisfies range and age.
NO_MATCH_REASON: Final[str] = "No version satisfies the range and age requirement"

# ---------------------------------------------------------------------------
# Package managers and strategies
# ---------------------------------------------------------------------------

#: Package managers safenpm can drive.
PACKAGE_MANAGERS: Final[Tuple[str, ...]] = ("npm", "pnpm")

#: Default package manager when the program name gives no hint.
DEFAULT_PACKAGE_MANAGER: Final[str] = "npm"

#: Ways of handing resolved versions to the package manager.
INSTALL_STRATEGIES: Final[Tuple[str, ...]] = ("direct", "overrides")

#: Default installation strategy.
DEFAULT_STRATEGY: Final[str] = "direct"

#: Manifest file read for dependencies and written by the overrides strategy.
PACKAGE_JSON: Final[str] = "package.json"

# ---------------------------------------------------------------------------
# HTTP configuration
# ---------------------------------------------------------------------------

#: Default network timeout in seconds.
DEFAULT_TIMEOUT: Final[float] = 30

#: Default number of registry requests allowed in flight at once.
DEFAULT_MAX_CONCURRENCY: Final[int] = 10

# ---------------------------------------------------------------------------
# Security constraints
# ---------------------------------------------------------------------------

#: Maximum allowed file size (in bytes) when reading manifests and fixtures.
MAX_FILE_SIZE: Final[int] = 50 * 1024 * 1024  # 50 MB

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
