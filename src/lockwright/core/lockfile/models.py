"""Lockfile data models: LockedPackage, LockedDependency and LockfileMetadata.

Defines the core data structures of the ``lockwright.lock`` format. These
are pure data holders with no business logic, making them safe to import
without circular-dependency concerns.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

# ---------------------------------------------------------------------------
# Hash format: "sha256:<64-hex-characters>"
# ---------------------------------------------------------------------------

_HASH_RE = re.compile(r"^sha256:[0-9a-f]{64}$")

# Marker variables recorded in the lockfile. Kernel release and build
# strings are left out so the file does not change between machines that
# resolve identically.
RECORDED_ENVIRONMENT: tuple[str, ...] = (
    "implementation_name",
    "os_name",
    "platform_machine",
    "platform_python_implementation",
    "platform_system",
    "python_full_version",
    "python_version",
    "sys_platform",
)


# ---------------------------------------------------------------------------
# LockedDependency: one declared dependency of a locked package
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LockedDependency:
    """A dependency as the registry declares it.

    Attributes:
        name: Normalized package name.
        specifier: Version specifier text; empty for "any version".
        marker: Environment marker, or None when unconditional.
        extras: Requested extras, normalized and sorted.
    """

    name: str
    specifier: str = ""
    marker: str | None = None
    extras: tuple[str, ...] = ()

    def sort_key(self) -> tuple[str, str, str, str]:
        return (self.name, self.specifier, ",".join(self.extras), self.marker or "")

    def to_dict(self) -> dict[str, Any]:
        entry: dict[str, Any] = {"name": self.name, "specifier": self.specifier}
        if self.extras:
            entry["extras"] = list(self.extras)
        if self.marker:
            entry["marker"] = self.marker
        return entry


# ---------------------------------------------------------------------------
# LockedPackage: a single entry in the lockfile
# ---------------------------------------------------------------------------


@dataclass
class LockedPackage:
    """A single package entry in the lockfile.

    Attributes:
        name: Normalized package name (e.g., "charset-normalizer").
        version: Resolved version (e.g., "3.3.2").
        source: Registry locator the package was resolved from.
        dependencies: Declared dependencies, sorted by name then specifier.
        hashes: Artifact digests in "sha256:<hex>" format, sorted.
    """

    name: str
    version: str
    source: str = ""
    dependencies: list[LockedDependency] = field(default_factory=list)
    hashes: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "source": self.source,
            "dependencies": [
                d.to_dict() for d in sorted(self.dependencies, key=LockedDependency.sort_key)
            ],
            "hashes": sorted(self.hashes),
        }


# ---------------------------------------------------------------------------
# LockfileMetadata: top-level metadata section
# ---------------------------------------------------------------------------


@dataclass
class LockfileMetadata:
    """Everything in the lockfile besides the package entries.

    Attributes:
        requires_python: The project's ``requires-python``, if declared.
        strategy: Resolution strategy that produced the lockfile.
        prerelease: Pre-release mode that produced the lockfile.
        environment: Marker values the resolution was evaluated against.
        manifest: The project's requirements, overrides and constraints as
            strings, used to tell whether the lockfile is still fresh.
        generated_at: ISO-8601 timestamp, only when explicitly requested.
    """

    requires_python: str | None = None
    strategy: str = "highest"
    prerelease: str = "if-necessary"
    environment: dict[str, str] = field(default_factory=dict)
    manifest: dict[str, list[str]] = field(
        default_factory=lambda: {"requirements": [], "overrides": [], "constraints": []}
    )
    generated_at: str | None = None
