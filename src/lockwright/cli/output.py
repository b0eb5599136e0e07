"""Rich output formatting helpers for the Lockwright CLI.

Provides consistent terminal output for resolution summaries, failure
explanations, lockfile contents, lockfile diffs and validation errors.
"""

from __future__ import annotations

import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from lockwright.core.lockfile import Lockfile

console = Console()
err_console = Console(stderr=True)

_VERBOSITY_LEVELS = {0: logging.WARNING, 1: logging.INFO}


def configure_logging(verbosity: int) -> None:
    """Route ``lockwright`` logs to stderr through Rich.

    Args:
        verbosity: 0 for warnings only, 1 for info, 2 or more for debug.
    """
    level = _VERBOSITY_LEVELS.get(verbosity, logging.DEBUG)
    handler = RichHandler(console=err_console, show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger = logging.getLogger("lockwright")
    logger.handlers[:] = [handler]
    logger.setLevel(level)
    logger.propagate = False


def print_resolution_summary(lockfile: Lockfile, attempted_solutions: int = 1) -> None:
    """Print the packages a successful resolution selected."""
    console.print(
        Panel("[bold green]Resolution successful[/bold green]",
              title="Dependency Resolution")
    )
    if not lockfile.package_count:
        console.print("[dim]No packages to resolve.[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Package", style="bold")
    table.add_column("Version")
    table.add_column("Dependencies", justify="right")
    table.add_column("Hashes", justify="right", style="dim")
    for package in lockfile.packages:
        table.add_row(
            package.name,
            package.version,
            str(len(package.dependencies)),
            str(len(package.hashes)),
        )
    console.print(table)
    console.print(
        f"[bold]{lockfile.package_count}[/bold] packages resolved"
        f" | {attempted_solutions} attempted solution(s)"
    )


def print_failure(explanation: str, packages: set[str]) -> None:
    """Print the explanation of a failed resolution."""
    console.print(
        Panel("[bold red]Resolution failed[/bold red]", title="Dependency Resolution")
    )
    console.print(Text(explanation))
    if packages:
        console.print(f"\n[dim]Packages involved: {', '.join(sorted(packages))}[/dim]")


def print_lockfile_diff(diff: dict[str, Any]) -> None:
    """Print what changed relative to the previous lockfile."""
    if not (diff["added"] or diff["removed"] or diff["changed"]):
        console.print("[dim]Lockfile unchanged.[/dim]")
        return
    for name in diff["added"]:
        console.print(f"  [green]+ {name}[/green]")
    for name in diff["removed"]:
        console.print(f"  [red]- {name}[/red]")
    for change in diff["changed"]:
        if change["field"] == "version":
            console.print(
                f"  [yellow]~ {change['name']} {change['old']} -> {change['new']}[/yellow]"
            )
        else:
            console.print(f"  [yellow]~ {change['name']} ({change['field']})[/yellow]")


def print_lockfile(lockfile: Lockfile) -> None:
    """Print lockfile settings and the locked packages."""
    meta = lockfile.metadata
    header = Text.assemble(
        ("Strategy: ", "bold"), (meta.strategy, ""),
        ("  Pre-releases: ", "bold"), (meta.prerelease, ""),
        ("  Python: ", "bold"), (meta.environment.get("python_full_version", "?"), "dim"),
    )
    console.print(Panel(header, title="Lockfile"))

    table = Table(show_header=True, header_style="bold")
    table.add_column("Package", style="bold")
    table.add_column("Version")
    table.add_column("Source", style="dim")
    table.add_column("Dependencies")
    for package in lockfile.packages:
        deps = ", ".join(
            f"{d.name}{d.specifier}" for d in package.dependencies
        )
        table.add_row(package.name, package.version, package.source, deps or "-")
    console.print(table)


def print_validation_errors(errors: list[str]) -> None:
    if not errors:
        console.print("[green]Lockfile is consistent.[/green]")
        return
    console.print(f"[bold red]{len(errors)} validation error(s):[/bold red]")
    for error in errors:
        console.print(f"  [red]- {error}[/red]")
