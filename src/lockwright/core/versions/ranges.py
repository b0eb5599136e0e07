"""Version sets as unions of disjoint ranges.

A ``VersionSet`` is the value the resolver reasons about: every requirement,
term and incompatibility carries one. It is kept in a normalized form at all
times -- ranges sorted, non-empty, non-overlapping and non-adjacent -- so two
sets describing the same versions compare equal and hash alike.

The operations form a Boolean algebra over the version order:

- ``union`` and ``intersection`` are associative and commutative;
- ``complement`` satisfies De Morgan's laws;
- ``a.intersection(a.complement())`` is ``VersionSet.empty()`` and
  ``a.union(a.complement())`` is ``VersionSet.any()``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from lockwright.core.versions.version import Version


# ---------------------------------------------------------------------------
# Range: one contiguous interval of versions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Range:
    """A contiguous interval of versions.

    ``None`` for ``lower`` or ``upper`` means unbounded on that side; the
    matching ``*_inclusive`` flag is then always False.
    """

    lower: Version | None = None
    upper: Version | None = None
    lower_inclusive: bool = False
    upper_inclusive: bool = False

    def __post_init__(self) -> None:
        if self.lower is None and self.lower_inclusive:
            object.__setattr__(self, "lower_inclusive", False)
        if self.upper is None and self.upper_inclusive:
            object.__setattr__(self, "upper_inclusive", False)

    @property
    def is_empty(self) -> bool:
        if self.lower is None or self.upper is None:
            return False
        if self.lower > self.upper:
            return True
        if self.lower == self.upper:
            return not (self.lower_inclusive and self.upper_inclusive)
        return False

    @property
    def is_point(self) -> bool:
        return (
            self.lower is not None
            and self.lower == self.upper
            and self.lower_inclusive
            and self.upper_inclusive
        )

    def contains(self, version: Version) -> bool:
        if self.lower is not None:
            if version < self.lower or (version == self.lower and not self.lower_inclusive):
                return False
        if self.upper is not None:
            if version > self.upper or (version == self.upper and not self.upper_inclusive):
                return False
        return True

    def intersect(self, other: Range) -> Range:
        lower = max(self, other, key=_lower_key)
        upper = min(self, other, key=_upper_key)
        return Range(lower.lower, upper.upper, lower.lower_inclusive, upper.upper_inclusive)

    def __str__(self) -> str:
        if self.lower is None and self.upper is None:
            return "*"
        if self.is_point:
            return f"=={self.lower}"
        parts = []
        if self.lower is not None:
            parts.append(f"{'>=' if self.lower_inclusive else '>'}{self.lower}")
        if self.upper is not None:
            parts.append(f"{'<=' if self.upper_inclusive else '<'}{self.upper}")
        return ",".join(parts)


def _lower_key(r: Range) -> tuple[Any, ...]:
    if r.lower is None:
        return (0,)
    return (1, r.lower, 0 if r.lower_inclusive else 1)


def _upper_key(r: Range) -> tuple[Any, ...]:
    if r.upper is None:
        return (2,)
    return (1, r.upper, 1 if r.upper_inclusive else 0)


def _touches(left: Range, right: Range) -> bool:
    """Whether *right* (which starts no earlier than *left*) overlaps or abuts *left*."""
    if left.upper is None or right.lower is None:
        return True
    if right.lower < left.upper:
        return True
    if right.lower == left.upper:
        return left.upper_inclusive or right.lower_inclusive
    return False


def _normalize(ranges: Iterable[Range]) -> tuple[Range, ...]:
    pending = sorted((r for r in ranges if not r.is_empty), key=_lower_key)
    merged: list[Range] = []
    for current in pending:
        if merged and _touches(merged[-1], current):
            previous = merged[-1]
            upper = max(previous, current, key=_upper_key)
            merged[-1] = Range(
                previous.lower,
                upper.upper,
                previous.lower_inclusive,
                upper.upper_inclusive,
            )
        else:
            merged.append(current)
    return tuple(merged)


# ---------------------------------------------------------------------------
# VersionSet
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VersionSet:
    """An immutable set of versions in minimal disjoint-range form.

    Build instances through the classmethods (``any``, ``empty``, ``exact``,
    ``at_least`` ...) or ``lockwright.core.versions.parse_version_set``; the
    constructor expects already-normalized ranges.
    """

    ranges: tuple[Range, ...] = ()

    # -- Constructors -------------------------------------------------------

    @classmethod
    def from_ranges(cls, ranges: Iterable[Range]) -> VersionSet:
        return cls(_normalize(ranges))

    @classmethod
    def any(cls) -> VersionSet:
        return cls((Range(),))

    @classmethod
    def empty(cls) -> VersionSet:
        return cls(())

    @classmethod
    def exact(cls, version: Version) -> VersionSet:
        return cls((Range(version, version, True, True),))

    @classmethod
    def at_least(cls, version: Version) -> VersionSet:
        return cls((Range(lower=version, lower_inclusive=True),))

    @classmethod
    def greater_than(cls, version: Version) -> VersionSet:
        return cls((Range(lower=version),))

    @classmethod
    def at_most(cls, version: Version) -> VersionSet:
        return cls((Range(upper=version, upper_inclusive=True),))

    @classmethod
    def less_than(cls, version: Version) -> VersionSet:
        return cls((Range(upper=version),))

    @classmethod
    def between(cls, lower: Version, upper: Version) -> VersionSet:
        """The half-open interval ``[lower, upper)``."""
        return cls.from_ranges([Range(lower, upper, True, False)])

    # -- Predicates ---------------------------------------------------------

    @property
    def is_empty(self) -> bool:
        return not self.ranges

    @property
    def is_any(self) -> bool:
        return len(self.ranges) == 1 and self.ranges[0] == Range()

    def contains(self, version: Version) -> bool:
        return any(r.contains(version) for r in self.ranges)

    __contains__ = contains

    def is_subset(self, other: VersionSet) -> bool:
        return self.difference(other).is_empty

    def is_disjoint(self, other: VersionSet) -> bool:
        return self.intersection(other).is_empty

    def filter(self, versions: Iterable[Version]) -> list[Version]:
        """Return the members of *versions* that lie in this set, order preserved."""
        return [v for v in versions if self.contains(v)]

    # -- Algebra ------------------------------------------------------------

    def intersection(self, other: VersionSet) -> VersionSet:
        if self.is_any:
            return other
        if other.is_any:
            return self
        return VersionSet.from_ranges(
            a.intersect(b) for a in self.ranges for b in other.ranges
        )

    def union(self, other: VersionSet) -> VersionSet:
        return VersionSet.from_ranges(self.ranges + other.ranges)

    def complement(self) -> VersionSet:
        if self.is_empty:
            return VersionSet.any()

        gaps: list[Range] = []
        first = self.ranges[0]
        if first.lower is not None:
            gaps.append(Range(upper=first.lower, upper_inclusive=not first.lower_inclusive))

        for left, right in zip(self.ranges, self.ranges[1:]):
            gaps.append(
                Range(
                    left.upper,
                    right.lower,
                    not left.upper_inclusive,
                    not right.lower_inclusive,
                )
            )

        last = self.ranges[-1]
        if last.upper is not None:
            gaps.append(Range(lower=last.upper, lower_inclusive=not last.upper_inclusive))

        return VersionSet.from_ranges(gaps)

    def difference(self, other: VersionSet) -> VersionSet:
        return self.intersection(other.complement())

    # -- Rendering ----------------------------------------------------------

    def __str__(self) -> str:
        if self.is_empty:
            return "<empty>"
        if self.is_any:
            return "*"
        excluded = self.complement()
        if all(r.is_point for r in excluded.ranges):
            return ",".join(f"!={r.lower}" for r in excluded.ranges)
        return " || ".join(str(r) for r in self.ranges)

    def __repr__(self) -> str:
        return f"VersionSet({str(self)!r})"
