"""Incompatibilities: sets of terms that must not all hold at once.

Every fact the resolver knows is an incompatibility. External ones come
from the problem itself (a dependency, a package missing from the
registry, a version that needs another Python). Derived ones are learned
during conflict resolution and keep pointers to the two incompatibilities
they were derived from, so the whole derivation of a failure can be walked
and explained.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

from lockwright.core.dependency.term import ROOT, Term
from lockwright.core.versions import VersionSet


# ---------------------------------------------------------------------------
# Causes
# ---------------------------------------------------------------------------


class Cause:
    """Why an incompatibility holds."""


@dataclass(frozen=True)
class RootCause(Cause):
    """The root project must be selected."""


@dataclass(frozen=True)
class DependencyCause(Cause):
    """A package version depends on another package."""


@dataclass(frozen=True)
class SelfDependencyCause(Cause):
    """A package version depends on a range of its own package that excludes it."""

    requirement: str


@dataclass(frozen=True)
class NoVersionsCause(Cause):
    """The registry has no candidate versions in the forbidden set."""


@dataclass(frozen=True)
class PackageNotFoundCause(Cause):
    """The registry has no record of the package at all."""


@dataclass(frozen=True)
class UnavailableCause(Cause):
    """Metadata for a package version could not be retrieved or parsed."""

    reason: str = ""


@dataclass(frozen=True)
class RequiresPythonCause(Cause):
    """A package version does not support the target Python."""

    requires_python: str
    python_version: str


@dataclass(frozen=True)
class ConstraintCause(Cause):
    """A constraint leaves no acceptable versions for a dependency."""

    requirement: str
    constraint: str


@dataclass(frozen=True, eq=False)
class ConflictCause(Cause):
    """Derived by resolving *conflict* against *other*."""

    conflict: Incompatibility
    other: Incompatibility


# ---------------------------------------------------------------------------
# Incompatibility
# ---------------------------------------------------------------------------


class Incompatibility:
    """A set of terms that are not all allowed to be true.

    Terms on the same package are merged by intersection, and a positive
    root term is dropped from derived incompatibilities since the root is
    always selected. Instances compare by identity.
    """

    def __init__(self, terms: Iterable[Term], cause: Cause) -> None:
        terms = list(terms)

        if (
            isinstance(cause, ConflictCause)
            and len(terms) != 1
            and any(t.positive and t.is_root for t in terms)
        ):
            terms = [t for t in terms if not (t.positive and t.is_root)]

        if len(terms) > 2 or (len(terms) == 2 and terms[0].package == terms[1].package):
            merged: dict[str, Term] = {}
            for term in terms:
                existing = merged.get(term.package)
                merged[term.package] = term if existing is None else existing.intersect(term)
            terms = list(merged.values())

        self.terms: list[Term] = terms
        self.cause = cause

    @property
    def is_derived(self) -> bool:
        return isinstance(self.cause, ConflictCause)

    def is_failure(self) -> bool:
        """True when this incompatibility rules out the root itself."""
        return not self.terms or (len(self.terms) == 1 and self.terms[0].is_root)

    def external(self) -> Iterator[Incompatibility]:
        """Yield every non-derived incompatibility this one rests on."""
        if isinstance(self.cause, ConflictCause):
            yield from self.cause.conflict.external()
            yield from self.cause.other.external()
        else:
            yield self

    def packages_in_derivation(self) -> set[str]:
        """Names of all packages mentioned anywhere in the derivation."""
        names: set[str] = set()
        seen: set[int] = set()
        stack: list[Incompatibility] = [self]
        while stack:
            current = stack.pop()
            if id(current) in seen:
                continue
            seen.add(id(current))
            names.update(t.package for t in current.terms if not t.is_root)
            if isinstance(current.cause, ConflictCause):
                stack.extend((current.cause.conflict, current.cause.other))
        return names

    # -- Rendering ----------------------------------------------------------

    def describe(self, root_label: str = "the project") -> str:
        """Render this incompatibility as an English statement."""
        cause = self.cause
        terms = self.terms

        def term(t: Term) -> str:
            return describe_term(t, root_label)

        if isinstance(cause, DependencyCause):
            depender, dependee = terms
            return f"{term(depender)} depends on {term(dependee.inverse)}"
        if isinstance(cause, SelfDependencyCause):
            return f"{term(terms[0])} depends on {cause.requirement}, which it does not satisfy"
        if isinstance(cause, NoVersionsCause):
            t = terms[0]
            if t.versions.is_any:
                return f"no versions of {t.package} are available"
            return f"no versions of {term(t)} are available"
        if isinstance(cause, PackageNotFoundCause):
            return f"{terms[0].package} does not exist in the registry"
        if isinstance(cause, UnavailableCause):
            text = f"the metadata for {term(terms[0])} is unavailable"
            return f"{text} ({cause.reason})" if cause.reason else text
        if isinstance(cause, RequiresPythonCause):
            return (
                f"{term(terms[0])} requires Python {cause.requires_python}"
                f" but the target is Python {cause.python_version}"
            )
        if isinstance(cause, ConstraintCause):
            return (
                f"{term(terms[0])} depends on {cause.requirement},"
                f" which the constraint {cause.constraint} excludes"
            )
        if isinstance(cause, RootCause):
            return f"{root_label} is required"

        if self.is_failure():
            return "version solving failed"
        if len(terms) == 1:
            only = terms[0]
            if only.positive:
                return f"{term(only)} is forbidden"
            return f"{term(only.inverse)} is required"

        positive = [t for t in terms if t.positive]
        negative = [t for t in terms if not t.positive]
        if len(positive) == 1 and len(negative) == 1:
            return f"{term(positive[0])} requires {term(negative[0].inverse)}"
        if not negative:
            if len(positive) == 2:
                return f"{term(positive[0])} is incompatible with {term(positive[1])}"
            return f"one of {' or '.join(term(t) for t in positive)} must be false"
        if not positive:
            return f"one of {' or '.join(term(t.inverse) for t in negative)} must be true"
        return (
            f"if {' and '.join(term(t) for t in positive)}"
            f" then {' or '.join(term(t.inverse) for t in negative)}"
        )

    def __str__(self) -> str:
        return self.describe()

    def __repr__(self) -> str:
        terms = ", ".join(str(t) for t in self.terms)
        return f"<Incompatibility {{{terms}}} cause={type(self.cause).__name__}>"


def describe_term(term: Term, root_label: str = "the project") -> str:
    """Render a term for humans: ``foo 1.2``, ``foo>=1.0`` or ``not foo``."""
    if term.is_root:
        text = root_label
    elif term.versions.is_any:
        text = term.package
    elif len(term.versions.ranges) == 1 and term.versions.ranges[0].is_point:
        text = f"{term.package} {term.versions.ranges[0].lower}"
    else:
        text = f"{term.package}{term.versions}"
    return text if term.positive else f"not {text}"


def no_versions(package: str, versions: VersionSet) -> Incompatibility:
    return Incompatibility([Term(package, versions)], NoVersionsCause())
