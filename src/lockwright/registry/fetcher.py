"""Concurrent, de-duplicated metadata fetching for one resolution run.

The resolver asks for version lists and metadata as it goes, and prefetches
what it expects to need next. ``MetadataFetcher`` turns each distinct
request into a single ``asyncio.Task`` that every caller awaits, so a
package is never fetched twice in a run, while an ``asyncio.Semaphore``
keeps the number of requests in flight within the configured limit.

Example::

    async with MetadataFetcher(registry, concurrency=8) as fetcher:
        fetcher.prefetch_versions("httpx")
        versions = await fetcher.versions("httpx")
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, TypeVar

from lockwright.core.versions import Version
from lockwright.registry.base import PackageMetadata, RegistryClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CONCURRENCY: int = 8


class MetadataFetcher:
    """Per-run cache of registry requests.

    Args:
        client: The registry to query.
        concurrency: Upper bound on registry requests in flight.

    Raises:
        ValueError: If *concurrency* is less than 1.
    """

    def __init__(self, client: RegistryClient, concurrency: int = DEFAULT_CONCURRENCY) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._client = client
        self._semaphore = asyncio.Semaphore(concurrency)
        self._versions: dict[str, asyncio.Task[list[Version]]] = {}
        self._metadata: dict[tuple[str, Version], asyncio.Task[PackageMetadata]] = {}
        self.in_flight = 0
        self.peak_in_flight = 0

    # -- Public API ---------------------------------------------------------

    def prefetch_versions(self, name: str) -> None:
        """Start fetching the version list of *name* without waiting for it."""
        self._versions_task(name)

    def prefetch_metadata(self, name: str, version: Version) -> None:
        """Start fetching metadata for one version without waiting for it."""
        self._metadata_task(name, version)

    async def versions(self, name: str) -> list[Version]:
        """All versions of *name*, ascending. Raises ``PackageNotFound``."""
        return await self._versions_task(name)

    async def metadata(self, name: str, version: Version) -> PackageMetadata:
        """Metadata of one version. Raises ``MetadataUnavailable``."""
        return await self._metadata_task(name, version)

    @property
    def request_count(self) -> int:
        return len(self._versions) + len(self._metadata)

    async def close(self) -> None:
        """Cancel outstanding requests and wait for them to finish."""
        tasks = [*self._versions.values(), *self._metadata.values()]
        pending = [t for t in tasks if not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            logger.debug("Cancelled %d outstanding registry requests", len(pending))
        # Also retrieves exceptions from tasks nobody awaited.
        await asyncio.gather(*tasks, return_exceptions=True)

    async def __aenter__(self) -> MetadataFetcher:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # -- Internals ----------------------------------------------------------

    def _versions_task(self, name: str) -> asyncio.Task[list[Version]]:
        task = self._versions.get(name)
        if task is None:
            task = asyncio.ensure_future(
                self._guarded(self._sorted_versions, name)
            )
            self._versions[name] = task
        return task

    def _metadata_task(self, name: str, version: Version) -> asyncio.Task[PackageMetadata]:
        key = (name, version)
        task = self._metadata.get(key)
        if task is None:
            task = asyncio.ensure_future(
                self._guarded(self._client.get_metadata, name, version)
            )
            self._metadata[key] = task
        return task

    async def _sorted_versions(self, name: str) -> list[Version]:
        return sorted(set(await self._client.list_versions(name)))

    async def _guarded(self, fn: Callable[..., Awaitable[T]], *args: Any) -> T:
        async with self._semaphore:
            self.in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
            logger.debug("Fetching %s%r", fn.__name__, args)
            try:
                return await fn(*args)
            finally:
                self.in_flight -= 1
