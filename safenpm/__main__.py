"""
Executable module for safenpm.

Running:
    python -m safenpm

is equivalent to:
    safe-npm

This module simply forwards execution to the CLI entrypoint defined in
`safenpm.cli`.
"""

from __future__ import annotations

import sys


def _print_startup_error(exc: ImportError) -> None:
    """Explain on stderr why the CLI could not be loaded."""
    sys.stderr.write("safenpm CLI could not be loaded.\n")
    sys.stderr.write(f"Python version : {sys.version}\n")
    try:
        from safenpm.__version__ import __version__

        sys.stderr.write(f"safenpm version: {__version__}\n")
    except ImportError:
        sys.stderr.write("safenpm version: <unknown>\n")
    sys.stderr.write(f"ImportError: {exc}\n")


def main() -> int:
    """
    Main entrypoint when executing `python -m safenpm`.

    Returns:
        Exit code returned by the CLI.
    """
    try:
        # Import lazily so dependencies are only loaded during CLI use
        from safenpm.cli import main as cli_main
    except ImportError as exc:
        _print_startup_error(exc)
        return 1

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
