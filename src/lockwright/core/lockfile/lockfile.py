"""Lockfile core class: package management and serialization.

The ``Lockfile`` class is the central data structure representing a
``lockwright.lock`` file. It provides:

- **Package management:** add, get, count, and list packages.
- **Serialization:** deterministic ``to_dict``, ``to_json``, and ``write``.
- **Metadata:** resolution settings, environment and manifest record.

Determinism guarantee: ``to_json()`` output depends only on the locked
content. Package entries are sorted by name, dependency lists and hashes
are sorted, keys are emitted in a fixed order and no timestamp is written
unless one was explicitly requested. Resolving the same inputs twice
therefore produces byte-identical files.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from lockwright.core.lockfile.models import LockedPackage, LockfileMetadata

LOCKFILE_NAME = "lockwright.lock"


class Lockfile:
    """The resolved state of a project, ready to be persisted.

    Example::

        lf = Lockfile()
        lf.add_package(LockedPackage(name="idna", version="3.7"))
        lf.write(Path("lockwright.lock"))
    """

    LOCKFILE_VERSION: int = 1

    def __init__(self, metadata: LockfileMetadata | None = None) -> None:
        self._packages: dict[str, LockedPackage] = {}
        self._metadata = metadata or LockfileMetadata()
        self._version = self.LOCKFILE_VERSION

    # -- Package management -------------------------------------------------

    def add_package(self, package: LockedPackage) -> None:
        """Add a locked package, replacing any entry with the same name."""
        self._packages[package.name] = package

    def get_package(self, name: str) -> LockedPackage | None:
        return self._packages.get(name)

    @property
    def package_count(self) -> int:
        return len(self._packages)

    @property
    def package_names(self) -> list[str]:
        """Sorted list of all package names in the lockfile."""
        return sorted(self._packages)

    @property
    def packages(self) -> list[LockedPackage]:
        return [self._packages[name] for name in self.package_names]

    @property
    def format_version(self) -> int:
        return self._version

    # -- Serialization ------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dict whose key order is the on-disk order."""
        meta = self._metadata
        data: dict[str, Any] = {
            "version": self._version,
            "requires-python": meta.requires_python,
            "resolution": {"strategy": meta.strategy, "prerelease": meta.prerelease},
            "environment": dict(sorted(meta.environment.items())),
            "manifest": {
                key: sorted(meta.manifest.get(key, []))
                for key in ("requirements", "overrides", "constraints")
            },
            "package": [p.to_dict() for p in self.packages],
        }
        if meta.generated_at is not None:
            data["generated-at"] = meta.generated_at
        return data

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON text, with a trailing newline."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False) + "\n"

    def write(self, path: Path) -> None:
        """Write the lockfile to disk, creating parent directories as needed."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json(), encoding="utf-8")

    # -- Metadata access ----------------------------------------------------

    @property
    def metadata(self) -> LockfileMetadata:
        return self._metadata

    @metadata.setter
    def metadata(self, value: LockfileMetadata) -> None:
        self._metadata = value
