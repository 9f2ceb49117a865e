"""
safenpm: install npm dependencies with a minimum publish age

safenpm resolves each requested npm package to the newest version that
both satisfies its semver range and has been public for a minimum number
of days, then hands the pinned set to npm or pnpm. Waiting out a release
window gives the ecosystem time to spot and unpublish compromised or
broken versions before they reach your lockfile.

Features include:
    • npm semver ranges, including ``latest``
    • Per-package age-check overrides
    • Live registry or JSON fixture metadata backends
    • Direct install or package.json ``overrides`` strategies
    • npm and pnpm support
"""

from __future__ import annotations

from safenpm.__version__ import __version__

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "safenpm Contributors"
__license__ = "Apache-2.0"
__description__ = "Install npm/pnpm dependencies with a minimum publish age."

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    "__version__",
]
