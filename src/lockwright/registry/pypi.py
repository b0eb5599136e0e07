"""PyPI registry client backed by the JSON API.

Version lists come from ``/pypi/<name>/json``, per-version metadata from
``/pypi/<name>/<version>/json``. Releases whose files are all yanked, or
which have no files at all, are not offered as candidates. Version strings
that are not valid PEP 440 are skipped.

Usage::

    async with PyPIRegistry() as registry:
        versions = await registry.list_versions("httpx")
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from lockwright.core.dependency.requirement import Requirement, normalize_name
from lockwright.core.versions import Version
from lockwright.exceptions import (
    InvalidRequirement,
    InvalidVersion,
    MetadataUnavailable,
    PackageNotFound,
)
from lockwright.registry.base import PackageMetadata, RegistryClient
from lockwright.registry.http_client import (
    DEFAULT_RETRIES,
    DEFAULT_TIMEOUT,
    create_client,
    fetch_json,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

PYPI_JSON_API: str = "https://pypi.org/pypi"


# ---------------------------------------------------------------------------
# PyPI registry
# ---------------------------------------------------------------------------


class PyPIRegistry(RegistryClient):
    """Registry client for the Python Package Index (or a JSON API mirror).

    Args:
        index_url: Base URL of the JSON API.
        client: An existing ``httpx.AsyncClient``; one is created (and later
            closed) when omitted.
        timeout: Request timeout for a created client, in seconds.
        retries: Retries for transport errors and 5xx responses.
    """

    def __init__(
        self,
        index_url: str = PYPI_JSON_API,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        retries: int = DEFAULT_RETRIES,
    ) -> None:
        self.index_url = index_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or create_client(timeout=timeout)
        self._retries = retries

    @property
    def registry_name(self) -> str:
        return "PyPI"

    @property
    def source(self) -> str:
        return f"registry+{self.index_url}"

    async def list_versions(self, name: str) -> list[Version]:
        data = await fetch_json(
            self._client, f"{self.index_url}/{name}/json", retries=self._retries
        )
        if data is None:
            raise PackageNotFound(name)

        versions: list[Version] = []
        for text, files in (data.get("releases") or {}).items():
            if not files or all(f.get("yanked", False) for f in files):
                continue
            try:
                versions.append(Version(text))
            except InvalidVersion:
                logger.debug("Skipping invalid version %r of %s", text, name)
        return versions

    async def get_metadata(self, name: str, version: Version) -> PackageMetadata:
        data = await fetch_json(
            self._client, f"{self.index_url}/{name}/{version}/json", retries=self._retries
        )
        if data is None:
            raise MetadataUnavailable(name, version, "release not found")
        info: dict[str, Any] = data.get("info") or {}

        requirements: list[Requirement] = []
        for line in info.get("requires_dist") or []:
            try:
                requirements.append(Requirement.parse(line))
            except InvalidRequirement as exc:
                raise MetadataUnavailable(name, version, str(exc)) from exc

        return PackageMetadata(
            name=normalize_name(name),
            version=version,
            requirements=tuple(requirements),
            source=self.source,
            hashes=_hashes(data.get("urls") or []),
            requires_python=info.get("requires_python") or None,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _hashes(files: list[dict[str, Any]]) -> tuple[str, ...]:
    """Collect ``sha256:<hex>`` digests of a release's files."""
    digests = {
        f"sha256:{f['digests']['sha256']}"
        for f in files
        if (f.get("digests") or {}).get("sha256")
    }
    return tuple(sorted(digests))
