"""
Command-line interface for safenpm.

This module provides the main CLI entry point and handles global options,
configuration loading, and command registration. The same entry point is
installed as ``safe-npm`` and ``safe-pnpm``; the invoked name selects the
default package manager.
"""

from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import List, Optional, Set

import click

from safenpm.config import load_config
from safenpm.constants import CONFIG_ENV_VAR
from safenpm.__version__ import __version__
from safenpm.context import SafeNpmContext
from safenpm.core.installer import detect_cli_defaults
from safenpm.exceptions import ConfigError, SafeNpmError
from safenpm.utils.logger import get_logger, setup_logging
from safenpm.utils.console import print_error, print_warning, reconfigure_console

logger = get_logger("cli")


class DefaultCommandGroup(click.Group):
    """Click group that falls back to a default subcommand.

    Arguments that do not start with a registered command name are routed to
    ``default_command``, so ``safe-npm react@^18`` behaves like
    ``safe-npm install react@^18`` and a bare ``safe-npm`` runs an install.
    Group options (``--config``, ``-v``, ``--no-color``) are still consumed
    by the group when they come first.
    """

    def __init__(self, *args, default_command: str = "install", **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.default_command = default_command

    def parse_args(self, ctx: click.Context, args: List[str]) -> List[str]:
        args = list(args)
        index = self._group_options_end(ctx, args)
        if index >= len(args) or self.get_command(ctx, args[index]) is None:
            args.insert(index, self.default_command)
        return super().parse_args(ctx, args)

    def _group_options_end(self, ctx: click.Context, args: List[str]) -> int:
        """Return the index of the first argument the group does not own."""
        flags: Set[str] = set()
        valued: Set[str] = set()
        for param in self.get_params(ctx):
            if not isinstance(param, click.Option):
                continue
            names = [*param.opts, *param.secondary_opts]
            if param.is_flag or param.count:
                flags.update(names)
            else:
                valued.update(names)

        index = 0
        while index < len(args):
            arg = args[index]
            if arg == "-" or not arg.startswith("-"):
                break
            name = arg.split("=", 1)[0]
            if name in valued:
                index += 1 if "=" in arg else 2
            elif name in flags:
                index += 1
            elif not arg.startswith("--") and arg[:2] in valued:
                # -cpath
                index += 1
            elif not arg.startswith("--") and all(f"-{c}" in flags for c in arg[1:]):
                # -vv
                index += 1
            else:
                break
        return min(index, len(args))


@click.group(
    cls=DefaultCommandGroup,
    default_command="install",
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file.",
    envvar=CONFIG_ENV_VAR,
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (can be repeated: -v, -vv).",
)
@click.option(
    "--color/--no-color",
    default=True,
    help="Enable or disable colored output.",
    envvar="SAFE_NPM_COLOR",
)
@click.version_option(
    version=__version__,
    prog_name="safenpm",
    message="%(prog)s %(version)s",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: int,
    color: bool,
) -> None:
    """safenpm: install npm/pnpm dependencies with a minimum publish age.

    \b
    Available commands:
      safe-npm install             Resolve aged versions and install them
                                   (default when no command is given)

    \b
    Examples:
      safe-npm react@^18 lodash
      safe-npm install react@^18 lodash
      safe-npm install --dry-run --min-age-days 30
      safe-pnpm install --strategy overrides

    Use ``safe-npm COMMAND --help`` for command-specific options.
    """
    _configure_logging(verbose)

    # Respect NO_COLOR for downstream libraries
    if color:
        os.environ.pop("NO_COLOR", None)
    else:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console()

    try:
        loaded_config = load_config(config)
    except ConfigError as exc:
        print_error(str(exc))
        raise SystemExit(1) from exc

    cli_name, default_manager = detect_cli_defaults(sys.argv[0] if sys.argv else None)

    safenpm_ctx = SafeNpmContext()
    safenpm_ctx.config_path = config or loaded_config.source_path
    safenpm_ctx.config = loaded_config
    safenpm_ctx.color = color
    safenpm_ctx.verbose = verbose
    safenpm_ctx.cli_name = cli_name
    safenpm_ctx.default_package_manager = default_manager
    ctx.obj = safenpm_ctx

    logger.debug("safenpm v%s invoked as %s", __version__, cli_name)
    logger.debug("Config path: %s", safenpm_ctx.config_path)
    if loaded_config.source_path:
        logger.debug("Loaded configuration: %s", loaded_config.to_log_dict())
    logger.debug("Verbosity: %s | Color: %s", verbose, color)


def _configure_logging(verbose: int) -> None:
    """Configure logging level based on verbosity flags."""
    if verbose <= 0:
        level = logging.WARNING
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    setup_logging(level=level, verbose=verbose > 1)
    logger.debug("Logging initialized at %s level", logging.getLevelName(level))


from safenpm.commands.install import install  # noqa: E402

cli.add_command(install)


def main() -> int:
    """Main entry point for the safenpm CLI.

    Returns:
        Exit code:
            0   Success
            1   Unhandled or application error
            2   Usage error (Click)
            130 Interrupted by user (Ctrl+C)
    """
    try:
        result = cli(standalone_mode=False)
        return result if isinstance(result, int) else 0

    except click.exceptions.Abort:
        print_warning("\nOperation cancelled by user")
        return 130

    except click.ClickException as exc:
        exc.show()
        return exc.exit_code

    except SafeNpmError as exc:
        print_error(str(exc))
        logger.debug(
            "SafeNpmError details: %s",
            exc.details or "<none>",
            exc_info=True,
        )
        return 1

    except KeyboardInterrupt:
        print_warning("\nOperation cancelled by user")
        return 130

    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.exception("Unhandled exception in CLI")
        return 1


if __name__ == "__main__":
    sys.exit(main())
