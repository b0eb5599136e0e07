"""In-memory registry, optionally loaded from a YAML index file.

Used for offline resolution and throughout the test suite. A YAML index
looks like::

    source: registry+file:///srv/index
    packages:
      httpx:
        "0.27.0":
          requires: ["certifi", "httpcore==1.*", "idna"]
          requires-python: ">=3.8"
          hashes: ["sha256:..."]
      certifi:
        "2024.2.2": {}
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml

from lockwright.core.dependency.requirement import Requirement, normalize_name
from lockwright.core.versions import Version
from lockwright.exceptions import (
    ConfigError,
    InvalidRequirement,
    InvalidVersion,
    MetadataUnavailable,
    PackageNotFound,
)
from lockwright.registry.base import PackageMetadata, RegistryClient

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "registry+memory"


class InMemoryRegistry(RegistryClient):
    """A dict-backed registry.

    Args:
        source: Locator recorded for packages that do not set their own.
    """

    def __init__(self, source: str = DEFAULT_SOURCE) -> None:
        self.source = source
        self._packages: dict[str, dict[Version, PackageMetadata]] = {}
        self._unavailable: dict[tuple[str, Version], str] = {}
        self.calls: list[tuple[str, ...]] = []

    @property
    def registry_name(self) -> str:
        return "memory"

    # -- Population -----------------------------------------------------------

    def add(
        self,
        name: str,
        version: str | Version,
        requires: Iterable[str | Requirement] = (),
        *,
        hashes: Iterable[str] = (),
        requires_python: str | None = None,
        source: str | None = None,
    ) -> PackageMetadata:
        """Publish one package version."""
        canonical = normalize_name(name)
        parsed = Version.parse(version)
        metadata = PackageMetadata(
            name=canonical,
            version=parsed,
            requirements=tuple(
                r if isinstance(r, Requirement) else Requirement.parse(r) for r in requires
            ),
            source=source or self.source,
            hashes=tuple(sorted(hashes)),
            requires_python=requires_python,
        )
        self._packages.setdefault(canonical, {})[parsed] = metadata
        return metadata

    def mark_unavailable(self, name: str, version: str | Version, reason: str = "") -> None:
        """Make metadata for one published version fail to load."""
        self._unavailable[(normalize_name(name), Version.parse(version))] = reason

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> InMemoryRegistry:
        """Build a registry from a parsed index document.

        Raises:
            ConfigError: If the document is malformed.
        """
        if not isinstance(data, Mapping):
            raise ConfigError("Registry index must be a mapping")
        registry = cls(source=str(data.get("source", DEFAULT_SOURCE)))
        packages = data.get("packages") or {}
        if not isinstance(packages, Mapping):
            raise ConfigError("'packages' in the registry index must be a mapping")

        for name, releases in packages.items():
            if not isinstance(releases, Mapping):
                raise ConfigError(f"Releases of {name!r} must be a mapping")
            for version, entry in releases.items():
                if not isinstance(version, str):
                    raise ConfigError(
                        f"Version {version!r} of {name} must be a string; quote it in YAML"
                    )
                entry = entry or {}
                if not isinstance(entry, Mapping):
                    raise ConfigError(f"Entry for {name} {version} must be a mapping")
                try:
                    registry.add(
                        str(name),
                        str(version),
                        entry.get("requires") or (),
                        hashes=entry.get("hashes") or (),
                        requires_python=entry.get("requires-python"),
                        source=entry.get("source"),
                    )
                except (InvalidRequirement, InvalidVersion) as exc:
                    raise ConfigError(f"Invalid registry entry {name} {version}: {exc}") from exc
        return registry

    @classmethod
    def from_yaml(cls, path: str | Path) -> InMemoryRegistry:
        """Load a registry index from a YAML file."""
        path = Path(path)
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigError(f"Cannot read registry index {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in registry index {path}: {exc}") from exc
        logger.debug("Loaded registry index from %s", path)
        return cls.from_dict(data or {})

    # -- RegistryClient -------------------------------------------------------

    async def list_versions(self, name: str) -> list[Version]:
        self.calls.append(("list_versions", name))
        releases = self._packages.get(normalize_name(name))
        if releases is None:
            raise PackageNotFound(name)
        return list(releases)

    async def get_metadata(self, name: str, version: Version) -> PackageMetadata:
        self.calls.append(("get_metadata", name, str(version)))
        canonical = normalize_name(name)
        if (canonical, version) in self._unavailable:
            raise MetadataUnavailable(name, version, self._unavailable[(canonical, version)])
        try:
            return self._packages[canonical][version]
        except KeyError:
            raise MetadataUnavailable(name, version, "not published") from None
