"""Package registries the resolver reads from.

Provides the abstract ``RegistryClient`` and concrete backends for an
in-memory (YAML) index and the PyPI JSON API, plus the per-run
``MetadataFetcher`` that de-duplicates and bounds concurrent requests.

Public API::

    from lockwright.registry import InMemoryRegistry, PyPIRegistry, open_registry
"""

from __future__ import annotations

from pathlib import Path

from lockwright.registry.base import PackageMetadata, RegistryClient
from lockwright.registry.fetcher import MetadataFetcher
from lockwright.registry.memory import InMemoryRegistry
from lockwright.registry.pypi import PYPI_JSON_API, PyPIRegistry


def open_registry(index: str | None = None, *, timeout: float | None = None) -> RegistryClient:
    """Open the registry an index locator points to.

    A path to an existing ``.yaml``/``.yml`` file is loaded as an in-memory
    index; anything else is treated as a JSON API base URL (PyPI by default).
    """
    if index and Path(index).suffix in (".yaml", ".yml") and Path(index).is_file():
        return InMemoryRegistry.from_yaml(index)
    if timeout is not None:
        return PyPIRegistry(index or PYPI_JSON_API, timeout=timeout)
    return PyPIRegistry(index or PYPI_JSON_API)


__all__ = [
    "InMemoryRegistry",
    "MetadataFetcher",
    "PackageMetadata",
    "PyPIRegistry",
    "RegistryClient",
    "open_registry",
]
