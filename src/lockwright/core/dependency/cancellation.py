"""Cooperative cancellation for resolution runs."""

from __future__ import annotations

import threading
import time

from lockwright.exceptions import Cancelled


class CancellationToken:
    """A flag the resolver checks between state transitions.

    ``cancel()`` may be called from any thread. A token created with a
    *timeout* also trips once that many seconds have passed.

    Example::

        token = CancellationToken(timeout=30)
        solution = await Resolver(registry, requirements).resolve(cancellation=token)
    """

    def __init__(self, timeout: float | None = None) -> None:
        if timeout is not None and timeout <= 0:
            raise ValueError("timeout must be positive")
        self._event = threading.Event()
        self._timeout = timeout
        self._deadline = None if timeout is None else time.monotonic() + timeout

    def cancel(self) -> None:
        self._event.set()

    @property
    def timed_out(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def cancelled(self) -> bool:
        return self._event.is_set() or self.timed_out

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise Cancelled("resolution was cancelled")
        if self.timed_out:
            raise Cancelled(f"resolution timed out after {self._timeout:g}s")
