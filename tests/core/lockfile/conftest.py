"""Shared helpers for lockfile tests."""

from __future__ import annotations

from lockwright.core.lockfile import (
    LockedDependency,
    LockedPackage,
    Lockfile,
    LockfileMetadata,
)

HASH_A = "sha256:" + "a" * 64
HASH_B = "sha256:" + "b" * 64

LINUX = {
    "python_full_version": "3.11.4",
    "python_version": "3.11",
    "sys_platform": "linux",
    "os_name": "posix",
}


def make_locked_package(
    name: str = "idna",
    version: str = "3.7",
    dependencies: list[str | tuple[str, str] | tuple[str, str, str]] | None = None,
    hashes: list[str] | None = None,
    source: str = "registry+memory",
) -> LockedPackage:
    """Convenience factory; dependencies are names or (name, specifier[, marker])."""
    deps = []
    for dep in dependencies or []:
        if isinstance(dep, str):
            deps.append(LockedDependency(name=dep))
        else:
            deps.append(LockedDependency(*dep))
    return LockedPackage(
        name=name,
        version=version,
        source=source,
        dependencies=deps,
        hashes=hashes if hashes is not None else [HASH_A],
    )


def make_lockfile(*packages: LockedPackage, **metadata) -> Lockfile:
    """Build a Lockfile with a Linux environment and the given packages."""
    metadata.setdefault("environment", dict(LINUX))
    lf = Lockfile(LockfileMetadata(**metadata))
    for package in packages:
        lf.add_package(package)
    return lf
