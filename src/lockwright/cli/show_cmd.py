"""``lockwright show [LOCKFILE]``: display and validate a lockfile.

Exit Codes:
    0 - The lockfile is internally consistent.
    1 - The lockfile has validation errors.
    2 - The lockfile could not be read.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from lockwright.cli.output import print_lockfile, print_validation_errors
from lockwright.core.lockfile import LOCKFILE_NAME, Lockfile
from lockwright.exceptions import LockfileError


@click.command("show")
@click.argument(
    "lockfile_path",
    type=click.Path(dir_okay=True, path_type=Path),
    default=LOCKFILE_NAME,
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
def show_command(lockfile_path: Path, output_format: str) -> None:
    """Print LOCKFILE's packages and check it for consistency.

    LOCKFILE may also be a project directory containing lockwright.lock.
    """
    if lockfile_path.is_dir():
        lockfile_path = lockfile_path / LOCKFILE_NAME
    try:
        lockfile = Lockfile.read(lockfile_path)
    except LockfileError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    errors = lockfile.validate()
    if output_format == "json":
        click.echo(json.dumps(
            {"lockfile": lockfile.to_dict(), "errors": errors},
            indent=2,
        ))
    else:
        print_lockfile(lockfile)
        print_validation_errors(errors)
    sys.exit(1 if errors else 0)
