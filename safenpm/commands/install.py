"""Install command implementation for safenpm.

Resolves every requested dependency to the newest version that is both
inside its range and at least ``--min-age-days`` old, reports what could
not be resolved, and hands the rest to npm or pnpm.

Dependencies come from the command line (``name@range`` specs) or, when
none are given, from ``package.json`` in the current directory.

Typical usage::

    # Install the newest 90-day-old react 18 and lodash
    $ safe-npm install react@^18 lodash

    # Show what would be installed from package.json, without installing
    $ safe-npm install --dry-run

    # Pin through pnpm.overrides instead of `pnpm add`
    $ safe-pnpm install --strategy overrides

    # Fail the build when anything cannot be resolved safely
    $ safe-npm install --strict --min-age-days 30
"""

from __future__ import annotations

import os
import sys
import json
import click
import asyncio
from pathlib import Path
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple
from rich.markup import escape

from safenpm.config import SafeNpmConfig
from safenpm.constants import (
    FIXTURES_ENV_VAR,
    INSTALL_STRATEGIES,
    PACKAGE_JSON,
    PACKAGE_MANAGERS,
)
from safenpm.context import SafeNpmContext, pass_context
from safenpm.core import (
    VersionResolver,
    build_ignore_set,
    build_install_command,
    collect_from_args,
    collect_from_package_json,
    compute_cutoff,
    create_metadata_source,
    normalize_package_manager,
    run_install,
)
from safenpm.core.installer import format_command
from safenpm.exceptions import SafeNpmError
from safenpm.models import ResolutionReport
from safenpm.utils import (
    HTTPClient,
    colorize_status,
    get_logger,
    print_error,
    print_info,
    print_table,
)

logger = get_logger("commands.install")

OUTPUT_FORMATS: Tuple[str, ...] = ("simple", "table", "json")


@click.command()
@click.argument("packages", nargs=-1)
@click.option(
    "--min-age-days",
    type=float,
    default=None,
    envvar="SAFE_NPM_MIN_AGE_DAYS",
    help="Minimum publish age in days.  [default: 90]",
)
@click.option(
    "--registry",
    default=None,
    envvar="SAFE_NPM_REGISTRY",
    help="npm registry to query.",
)
@click.option(
    "--package-manager",
    type=click.Choice(PACKAGE_MANAGERS, case_sensitive=False),
    default=None,
    help="Package manager to run.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show planned versions without installing.",
)
@click.option(
    "--strict/--no-strict",
    default=None,
    help="Exit with an error when a dependency cannot be resolved.",
)
@click.option(
    "--dev",
    "dev_only",
    is_flag=True,
    help="Only target devDependencies from package.json.",
)
@click.option(
    "--prod-only",
    is_flag=True,
    help="Only target dependencies from package.json.",
)
@click.option(
    "--ignore",
    default=None,
    help="Comma-separated packages that bypass the age check.",
)
@click.option(
    "--strategy",
    type=click.Choice(INSTALL_STRATEGIES, case_sensitive=False),
    default=None,
    help="How resolved versions are handed to the package manager.",
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(OUTPUT_FORMATS, case_sensitive=False),
    default="simple",
    help="Output format for the resolution report.",
)
@pass_context
def install(
    ctx: SafeNpmContext,
    packages: Tuple[str, ...],
    min_age_days: Optional[float],
    registry: Optional[str],
    package_manager: Optional[str],
    dry_run: bool,
    strict: Optional[bool],
    dev_only: bool,
    prod_only: bool,
    ignore: Optional[str],
    strategy: Optional[str],
    output_format: str,
) -> None:
    """Install dependencies pinned to versions old enough to trust.

    PACKAGES are ``name`` or ``name@range`` specs. Without PACKAGES the
    dependencies of ./package.json are used.

    \b
    Exits:
      0  everything requested was handled
      1  a dependency failed under --strict, or invalid usage
      N  the package manager's own exit status
    """
    config = ctx.config

    age = config.min_age_days if min_age_days is None else min_age_days
    if age < 0:
        print_error("--min-age-days must be a non-negative number")
        sys.exit(1)

    if dev_only and prod_only:
        print_error("--dev and --prod-only cannot be used together.")
        sys.exit(1)

    strict_mode = config.strict if strict is None else strict
    registry_url = registry or config.registry
    manager = normalize_package_manager(
        package_manager or config.package_manager or ctx.default_package_manager
    )
    install_strategy = (strategy or config.strategy).lower()
    ignore_set = build_ignore_set(ignore) if ignore is not None else build_ignore_set(config.ignore)
    output_format = output_format.lower()
    human = output_format != "json"

    try:
        if packages:
            dependencies = collect_from_args(packages)
        else:
            dependencies = collect_from_package_json(
                Path.cwd() / PACKAGE_JSON,
                dev_only=dev_only,
                prod_only=prod_only,
            )
    except SafeNpmError as e:
        print_error(e.message)
        sys.exit(1)

    if not dependencies:
        if human:
            print_info("No dependencies to process.")
        sys.exit(0)

    cutoff = compute_cutoff(age)
    if human:
        print_info(
            f"Using minimum age of {age:g} days (cutoff {_format_instant(cutoff)})."
        )

    report = asyncio.run(
        _resolve_async(
            dependencies,
            cutoff_date=cutoff,
            registry=registry_url,
            ignore=ignore_set,
            config=config,
        )
    )

    if not human:
        _display_json(report, manager, install_strategy, registry_url, dry_run)
    elif output_format == "table":
        _display_table(report)
    else:
        _display_failures(report)

    if report.has_failures and strict_mode:
        sys.exit(1)

    resolved = report.resolved
    if not resolved:
        if human:
            print_info("\nNo dependencies qualified for installation.")
        sys.exit(0)

    if output_format == "simple":
        _display_resolved(resolved, ignore_set)

    if dry_run:
        if human:
            print_info("\nDry run enabled. No changes were made.")
        sys.exit(0)

    if human:
        command = build_install_command(install_strategy, manager, resolved, registry_url)
        if install_strategy == "overrides":
            print_info(f"\nUpdating {PACKAGE_JSON} overrides. Running: {format_command(command)}")
        else:
            print_info(f"\nRunning: {format_command(command)}")

    try:
        returncode = run_install(install_strategy, manager, resolved, registry_url)
    except SafeNpmError as e:
        print_error(e.message)
        sys.exit(1)

    sys.exit(returncode)


# ---------------------------------------------------------------------------
# Async orchestration
# ---------------------------------------------------------------------------


async def _resolve_async(
    dependencies: Mapping[str, str],
    *,
    cutoff_date: datetime,
    registry: str,
    ignore: FrozenSet[str],
    config: SafeNpmConfig,
) -> ResolutionReport:
    """Resolve every dependency against the configured metadata backend.

    A fixture file (``fixtures`` config key or ``SAFE_NPM_FIXTURES``)
    replaces the registry entirely, so no HTTP client is opened for it.
    """
    fixtures = config.fixtures or os.environ.get(FIXTURES_ENV_VAR)

    if fixtures:
        resolver = VersionResolver(create_metadata_source(fixtures=fixtures))
        return await resolver.resolve_all(
            dependencies, cutoff_date=cutoff_date, registry=registry, ignore=ignore
        )

    async with HTTPClient(
        timeout=config.timeout,
        max_concurrency=config.max_concurrency,
    ) as http:
        resolver = VersionResolver(create_metadata_source(http_client=http))
        return await resolver.resolve_all(
            dependencies, cutoff_date=cutoff_date, registry=registry, ignore=ignore
        )


# ---------------------------------------------------------------------------
# Display renderers
# ---------------------------------------------------------------------------


def _format_instant(value: datetime) -> str:
    """Render an instant as UTC ISO-8601 with millisecond precision."""
    utc = value.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _display_failures(report: ResolutionReport) -> None:
    """Print the failure list in the simple line format."""
    if not report.failures:
        return

    print_info("\nDependencies that could not be resolved safely:")
    for failure in report.failures:
        print_info(f"  - {failure.name}@{failure.range}: {failure.reason}")


def _display_resolved(resolved: Mapping[str, str], ignore_set: FrozenSet[str]) -> None:
    """Print the versions about to be installed, one per line."""
    print_info("\nSafe versions to install:")
    for name, version in resolved.items():
        label = " (ignored)" if name in ignore_set else ""
        print_info(f"  {name}@{version}{label}")


def _display_table(report: ResolutionReport) -> None:
    """Render every outcome as a Rich table."""
    rows = [
        {
            "Status": colorize_status(outcome.status.value),
            "Package": escape(outcome.name),
            "Range": escape(outcome.range),
            "Version": escape(outcome.version) if outcome.version else "[dim]-[/dim]",
            "Age Check": "[dim]ignored[/dim]" if outcome.ignored_age else "enforced",
            "Reason": escape(outcome.reason) if outcome.reason else "[dim]-[/dim]",
        }
        for outcome in report.outcomes
    ]

    column_styles: Dict[str, Dict[str, Any]] = {
        "Status": {"justify": "center", "no_wrap": True},
        "Package": {"style": "bold cyan", "no_wrap": True},
        "Range": {"justify": "center", "style": "dim"},
        "Version": {"justify": "center", "style": "bold green"},
        "Age Check": {"justify": "center"},
        "Reason": {"justify": "left", "no_wrap": False},
    }

    caption = (
        f"cutoff {_format_instant(report.cutoff_date)}" if report.cutoff_date else None
    )
    print_table(
        rows,
        title="Safe Versions",
        caption=caption,
        column_styles=column_styles,
    )


def _display_json(
    report: ResolutionReport,
    package_manager: str,
    strategy: str,
    registry: str,
    dry_run: bool,
) -> None:
    """Print the report as JSON for machine consumption."""
    data = report.to_json()
    data.update(
        {
            "registry": registry,
            "package_manager": package_manager,
            "strategy": strategy,
            "dry_run": dry_run,
        }
    )
    click.echo(json.dumps(data, indent=2))
