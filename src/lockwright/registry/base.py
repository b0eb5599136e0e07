"""Base classes and data models for package registries.

Defines the ``RegistryClient`` abstract base class that every registry
backend (in-memory index, PyPI JSON API) implements, along with the
``PackageMetadata`` model the resolver consumes.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from lockwright.core.versions import Version

if TYPE_CHECKING:
    from lockwright.core.dependency.requirement import Requirement

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PackageMetadata:
    """Everything the resolver needs to know about one package version.

    Attributes:
        name: Normalized package name.
        version: The version this metadata describes.
        requirements: Declared dependencies, markers included.
        source: Registry locator recorded in the lockfile.
        hashes: Artifact digests, ``sha256:<hex>``.
        requires_python: The version's Python requirement, if it declares one.
    """

    name: str
    version: Version
    requirements: tuple[Requirement, ...] = ()
    source: str = ""
    hashes: tuple[str, ...] = ()
    requires_python: str | None = None


# ---------------------------------------------------------------------------
# Abstract registry client
# ---------------------------------------------------------------------------


class RegistryClient(ABC):
    """Abstract base class for package registries.

    Subclasses implement ``list_versions`` and ``get_metadata``. Both are
    coroutines: the resolver issues many of them concurrently through a
    ``MetadataFetcher``.

    Errors:
        ``PackageNotFound`` and ``MetadataUnavailable`` describe problems
        with a particular package and become part of the resolution
        problem. Any other ``RegistryError`` aborts the run.
    """

    @property
    @abstractmethod
    def registry_name(self) -> str:
        """Human-readable name of this registry (e.g. 'PyPI')."""

    @abstractmethod
    async def list_versions(self, name: str) -> list[Version]:
        """Return every published version of *name*, in any order.

        Raises:
            PackageNotFound: If the registry does not know *name*.
        """

    @abstractmethod
    async def get_metadata(self, name: str, version: Version) -> PackageMetadata:
        """Return the metadata for one version of *name*.

        Raises:
            MetadataUnavailable: If it cannot be retrieved or parsed.
        """

    async def get_dependencies(self, name: str, version: Version) -> list[Requirement]:
        """Return the declared requirements of one version of *name*."""
        metadata = await self.get_metadata(name, version)
        return list(metadata.requirements)

    async def aclose(self) -> None:
        """Release any resources held by the client."""

    async def __aenter__(self) -> RegistryClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
