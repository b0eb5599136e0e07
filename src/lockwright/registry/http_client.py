"""Shared async HTTP client utilities for registry clients.

Provides a thin wrapper around ``httpx.AsyncClient`` with standardised
timeouts, user-agent headers, retries and error handling, so every HTTP
registry behaves the same way and can be tested with a mock transport.

A 404 is reported as ``None`` so callers can map it to the right
"not found" error. Other failures are retried and finally raised as
``RegistryError``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from lockwright import __version__
from lockwright.exceptions import RegistryError

logger = logging.getLogger(__name__)

# Timeout for all registry HTTP requests (seconds).
DEFAULT_TIMEOUT: float = 30.0

# Retries after the first attempt for transport errors and 5xx responses.
DEFAULT_RETRIES: int = 2

# User-Agent sent with every request.
USER_AGENT: str = f"lockwright/{__version__}"

# Base delay between retries (seconds); doubled on every attempt.
_BACKOFF: float = 0.5


def create_client(
    *,
    timeout: float = DEFAULT_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Build the ``httpx.AsyncClient`` registry clients share."""
    return httpx.AsyncClient(
        timeout=timeout,
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        follow_redirects=True,
        transport=transport,
    )


async def fetch_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    retries: int = DEFAULT_RETRIES,
) -> dict[str, Any] | None:
    """Fetch a URL and parse the response as a JSON object.

    Args:
        client: The client to send the request with.
        url: The URL to fetch.
        retries: How many times to retry transport errors and 5xx responses.

    Returns:
        The parsed JSON object, or None if the server answered 404.

    Raises:
        RegistryError: On other HTTP errors, exhausted retries or invalid JSON.
    """
    attempt = 0
    while True:
        try:
            resp = await client.get(url)
            if resp.status_code == 404:
                logger.debug("404 from %s", url)
                return None
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status < 500 or attempt >= retries:
                raise RegistryError(f"HTTP {status} from {url}") from exc
            reason = f"HTTP {status}"
        except httpx.TransportError as exc:
            if attempt >= retries:
                raise RegistryError(f"Request to {url} failed: {exc}") from exc
            reason = str(exc) or type(exc).__name__
        except ValueError as exc:
            raise RegistryError(f"Invalid JSON from {url}") from exc
        else:
            if not isinstance(data, dict):
                raise RegistryError(f"Unexpected JSON document from {url}")
            return data

        attempt += 1
        logger.warning(
            "Retrying %s after %s (attempt %d/%d)", url, reason, attempt, retries
        )
        await asyncio.sleep(_BACKOFF * 2 ** (attempt - 1))
