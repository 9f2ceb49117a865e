"""Single source of truth for the safenpm version.

Read by the ``--version`` flag and the registry User-Agent.
"""

from __future__ import annotations

__version__ = "0.2.0"
