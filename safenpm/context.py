"""
Shared context object for safenpm CLI commands.

This module defines the global Click context used to share configuration
and runtime options across CLI subcommands.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from safenpm.config import SafeNpmConfig


class SafeNpmContext:
    """Global context object for safenpm CLI commands.

    An instance of this class is created once per CLI invocation and
    passed to commands using Click's context mechanism.

    Attributes:
        config_path: Path to the safenpm configuration file, if any.
        config: Loaded configuration (defaults when no file was found).
        verbose: Verbosity level (0=WARNING, 1=INFO, 2+=DEBUG).
        color: Whether colored terminal output is enabled.
        cli_name: Name the program was invoked as.
        default_package_manager: Package manager implied by ``cli_name``.
    """

    __slots__ = (
        "config_path",
        "config",
        "verbose",
        "color",
        "cli_name",
        "default_package_manager",
    )

    def __init__(self) -> None:
        self.config_path: Optional[Path] = None
        self.config: SafeNpmConfig = SafeNpmConfig()
        self.verbose: int = 0
        self.color: bool = True
        self.cli_name: str = "safe-npm"
        self.default_package_manager: str = "npm"


#: Click decorator for injecting :class:`SafeNpmContext` into commands.
pass_context = click.make_pass_decorator(SafeNpmContext, ensure=True)
