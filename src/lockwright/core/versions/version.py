"""Package versions with a total order.

Version strings are parsed and normalized by ``packaging.version`` (PEP 440),
so ``1.0.0-ALPHA1`` and ``1.0.0a1`` are the same version. On top of that this
module defines the ordering the resolver works with:

- trailing zeros in the release segment are not significant
  (``1.0 == 1.0.0``);
- pre-releases and dev releases sort below the final release of the same
  numeric prefix (``1.0.dev0 < 1.0a1 < 1.0rc1 < 1.0``);
- post-releases sort above it (``1.0 < 1.0.post1``);
- a local segment sorts below the public version it decorates
  (``1.0+abc < 1.0``), and local versions of the same public version are
  ordered by their local segment.
"""

from __future__ import annotations

from typing import Any

from packaging.version import InvalidVersion as _PackagingInvalidVersion
from packaging.version import Version as _PackagingVersion

from lockwright.exceptions import InvalidVersion

# Pre-release rank: dev-only releases, then a/b/rc, then no pre-release at all.
_PRE_DEV_ONLY = 0
_PRE_TAGGED = 1
_PRE_NONE = 2


def _sort_key(parsed: _PackagingVersion) -> tuple[Any, ...]:
    release = list(parsed.release)
    while len(release) > 1 and release[-1] == 0:
        release.pop()

    if parsed.pre is None and parsed.post is None and parsed.dev is not None:
        pre: tuple[Any, ...] = (_PRE_DEV_ONLY, "", 0)
    elif parsed.pre is not None:
        pre = (_PRE_TAGGED, parsed.pre[0], parsed.pre[1])
    else:
        pre = (_PRE_NONE, "", 0)

    post = -1 if parsed.post is None else parsed.post
    dev = (1, 0) if parsed.dev is None else (0, parsed.dev)

    if parsed.local is None:
        local: tuple[Any, ...] = (1, ())
    else:
        parts = tuple(
            (1, int(part), "") if part.isdigit() else (0, 0, part)
            for part in parsed.local.split(".")
        )
        local = (0, parts)

    return (parsed.epoch, tuple(release), pre, post, dev, local)


class Version:
    """An immutable, hashable, totally ordered package version.

    Example::

        >>> Version("1.0.0") == Version("1.0")
        True
        >>> Version("2.0rc1") < Version("2.0")
        True
    """

    __slots__ = ("_parsed", "_key")

    def __init__(self, text: str) -> None:
        if not isinstance(text, str):
            raise InvalidVersion(f"Invalid version: {text!r}")
        try:
            parsed = _PackagingVersion(text.strip())
        except _PackagingInvalidVersion as exc:
            raise InvalidVersion(f"Invalid version: {text!r}") from exc
        self._parsed = parsed
        self._key = _sort_key(parsed)

    @classmethod
    def parse(cls, text: str | Version) -> Version:
        """Return *text* as a ``Version``, passing existing instances through."""
        if isinstance(text, Version):
            return text
        return cls(text)

    # -- Segments -----------------------------------------------------------

    @property
    def epoch(self) -> int:
        return self._parsed.epoch

    @property
    def release(self) -> tuple[int, ...]:
        return self._parsed.release

    @property
    def local(self) -> str | None:
        return self._parsed.local

    @property
    def public(self) -> str:
        """The version without its local segment."""
        return self._parsed.public

    @property
    def is_prerelease(self) -> bool:
        """True for alpha/beta/rc and dev releases."""
        return self._parsed.is_prerelease

    # -- Comparison ---------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key == other._key

    def __lt__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key < other._key

    def __le__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key <= other._key

    def __gt__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key > other._key

    def __ge__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key >= other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def __str__(self) -> str:
        return str(self._parsed)

    def __repr__(self) -> str:
        return f"Version({str(self)!r})"


def release_floor(epoch: int, release: tuple[int, ...]) -> Version:
    """Return the lowest version whose release starts with *release*.

    That is the ``.dev0`` of the release itself, e.g. ``1.2`` -> ``1.2.dev0``.
    """
    text = ".".join(str(part) for part in release) + ".dev0"
    if epoch:
        text = f"{epoch}!{text}"
    return Version(text)


def bump_release(release: tuple[int, ...]) -> tuple[int, ...]:
    """Increment the last component of a release prefix: ``(1, 2)`` -> ``(1, 3)``."""
    if not release:
        raise InvalidVersion("cannot bump an empty release segment")
    return release[:-1] + (release[-1] + 1,)
