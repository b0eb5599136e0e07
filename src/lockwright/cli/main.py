"""Lockwright CLI: resolve dependencies and manage lockfiles.

Entry point for the ``lockwright`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    lock  - Resolve a project's manifest and write lockwright.lock.
    show  - Print and validate an existing lockfile.

Usage::

    lockwright lock                         # Lock the current directory
    lockwright lock ./my-app --strategy lowest
    lockwright lock --locked                # CI: fail if the lockfile is stale
    lockwright -vv lock --index ./index.yaml
    lockwright show ./my-app/lockwright.lock
"""

from __future__ import annotations

import click

from lockwright import __version__
from lockwright.cli.lock import lock_command
from lockwright.cli.output import configure_logging
from lockwright.cli.show_cmd import show_command


@click.group()
@click.version_option(version=__version__, prog_name="lockwright")
@click.option(
    "--verbose", "-v",
    count=True,
    help="Increase log output (-v for info, -vv for debug).",
)
def cli(verbose: int) -> None:
    """Lockwright: PubGrub dependency resolution and reproducible lockfiles.

    Resolve a project's requirements against a package registry, explain
    conflicts when no solution exists, and write a deterministic lockfile.
    """
    configure_logging(verbose)


# Register all subcommands
cli.add_command(lock_command)
cli.add_command(show_command)
