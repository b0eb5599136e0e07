"""``lockwright lock [PROJECT_DIR]``: resolve a project and write its lockfile.

Loads ``lockwright.yaml``, reuses the versions of an existing lockfile as
preferences, resolves against the configured registry and writes a
deterministic ``lockwright.lock``.

Exit Codes:
    0   - Lockfile written (or, with ``--locked``, already up to date).
    1   - Resolution failed, or ``--locked`` and the lockfile would change.
    2   - The manifest or options are invalid.
    3   - The registry could not be reached.
    130 - Cancelled or timed out.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click

from lockwright.cli.output import (
    console,
    print_failure,
    print_lockfile_diff,
    print_resolution_summary,
)
from lockwright.core.dependency import (
    PrereleaseMode,
    ResolutionStrategy,
    Resolver,
    Solution,
)
from lockwright.core.lockfile import LOCKFILE_NAME, Lockfile
from lockwright.exceptions import (
    Cancelled,
    ConfigError,
    LockfileError,
    RegistryError,
    ResolutionFailed,
)
from lockwright.project import ProjectManifest
from lockwright.registry import RegistryClient, open_registry

logger = logging.getLogger(__name__)

EXIT_FAILED = 1
EXIT_CONFIG = 2
EXIT_REGISTRY = 3
EXIT_CANCELLED = 130


async def _resolve(registry: RegistryClient, resolver: Resolver) -> Solution:
    async with registry:
        return await resolver.resolve()


def _previous_lockfile(path: Path) -> Lockfile | None:
    if not path.exists():
        return None
    try:
        return Lockfile.read(path)
    except LockfileError as exc:
        logger.warning("Ignoring unreadable lockfile %s: %s", path, exc)
        return None


@click.command("lock")
@click.argument(
    "project_dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
@click.option(
    "--strategy",
    type=click.Choice([s.value for s in ResolutionStrategy]),
    default=None,
    help="Version selection strategy (default: from manifest, else highest).",
)
@click.option(
    "--prerelease",
    type=click.Choice([m.value for m in PrereleaseMode]),
    default=None,
    help="Pre-release handling (default: from manifest, else if-necessary).",
)
@click.option(
    "--index",
    envvar="LOCKWRIGHT_INDEX",
    default=None,
    help="JSON API base URL or path to a YAML index.",
)
@click.option(
    "--concurrency",
    envvar="LOCKWRIGHT_CONCURRENCY",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum registry requests in flight.",
)
@click.option(
    "--timeout",
    envvar="LOCKWRIGHT_TIMEOUT",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Give up after this many seconds.",
)
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"Output path for the lockfile (default: <PROJECT_DIR>/{LOCKFILE_NAME}).",
)
@click.option(
    "--locked",
    is_flag=True,
    help="Fail instead of writing if the lockfile would change.",
)
@click.option(
    "--timestamp",
    is_flag=True,
    help="Record a generated-at timestamp in the lockfile.",
)
def lock_command(
    project_dir: Path,
    strategy: str | None,
    prerelease: str | None,
    index: str | None,
    concurrency: int | None,
    timeout: float | None,
    output: Path | None,
    locked: bool,
    timestamp: bool,
) -> None:
    """Resolve PROJECT_DIR's dependencies and write lockwright.lock.

    Exit code 0 on success, 1 on resolution failure, 2 on configuration
    errors, 3 on registry errors, 130 when cancelled.
    """
    try:
        manifest = ProjectManifest.load(project_dir)
        if strategy is not None:
            manifest.strategy = ResolutionStrategy(strategy)
        if prerelease is not None:
            manifest.prerelease = PrereleaseMode(prerelease)
        if concurrency is not None:
            manifest.concurrency = concurrency
        if timeout is not None:
            manifest.timeout = timeout
        environment = manifest.target_environment()
        registry = open_registry(index or manifest.index)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_CONFIG)

    out_path = output or project_dir / LOCKFILE_NAME
    previous = _previous_lockfile(out_path)
    if locked and (
        previous is None or not previous.is_fresh(manifest.record(), manifest.requires_python)
    ):
        click.echo(f"{out_path} is missing or out of date; run `lockwright lock`.", err=True)
        sys.exit(EXIT_FAILED)
    settings = manifest.settings(previous.preferences() if previous else None)

    resolver = Resolver(
        registry,
        manifest.dependencies,
        overrides=manifest.overrides,
        constraints=manifest.constraints,
        environment=environment,
        settings=settings,
        project_name=manifest.name,
    )

    try:
        solution = asyncio.run(_resolve(registry, resolver))
    except ResolutionFailed as exc:
        print_failure(exc.explanation, exc.packages)
        sys.exit(EXIT_FAILED)
    except Cancelled as exc:
        click.echo(f"Cancelled: {exc}", err=True)
        sys.exit(EXIT_CANCELLED)
    except RegistryError as exc:
        click.echo(f"Registry error: {exc}", err=True)
        sys.exit(EXIT_REGISTRY)

    lockfile = Lockfile.from_solution(
        solution,
        requirements=manifest.dependencies,
        overrides=manifest.overrides,
        constraints=manifest.constraints,
        settings=settings,
        requires_python=manifest.requires_python,
        include_timestamp=timestamp,
    )

    if locked:
        assert previous is not None
        if previous.to_dict() != _without_timestamp(lockfile, previous):
            click.echo(f"{out_path} needs to be updated; run `lockwright lock`.", err=True)
            sys.exit(EXIT_FAILED)
        console.print(f"[green]{out_path} is up to date.[/green]")
        sys.exit(0)

    lockfile.write(out_path)
    print_resolution_summary(lockfile, solution.attempted_solutions)
    if previous is not None:
        print_lockfile_diff(previous.diff(lockfile))
    click.echo(f"\nLockfile written to: {out_path}")
    sys.exit(0)


def _without_timestamp(lockfile: Lockfile, previous: Lockfile) -> dict:
    """The new lockfile's content, carrying over the previous timestamp."""
    data = lockfile.to_dict()
    data.pop("generated-at", None)
    if previous.metadata.generated_at is not None:
        data["generated-at"] = previous.metadata.generated_at
    return data
