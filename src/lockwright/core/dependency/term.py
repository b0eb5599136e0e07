"""Terms: signed statements about the version of a single package.

A positive term ``foo >=1.0`` says "some version of foo in >=1.0 is
selected". A negative term ``not foo >=1.0`` says "no version of foo in
>=1.0 is selected", which also holds when foo is not selected at all.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from lockwright.core.versions import VersionSet

# Name of the synthetic package standing for the project being locked. It
# cannot collide with a real package because "<" is not a valid name character.
ROOT = "<root>"


class Relation(Enum):
    """How one term relates to another."""

    SATISFIED = "satisfied"
    CONTRADICTED = "contradicted"
    INCONCLUSIVE = "inconclusive"


@dataclass(frozen=True)
class Term:
    package: str
    versions: VersionSet
    positive: bool = True

    @property
    def inverse(self) -> Term:
        return Term(self.package, self.versions, not self.positive)

    @property
    def is_root(self) -> bool:
        return self.package == ROOT

    def relation(self, other: Term) -> Relation:
        """Relate this term, taken as known to be true, to *other*.

        SATISFIED means *other* must then hold as well, CONTRADICTED that it
        cannot hold, INCONCLUSIVE that it could go either way.
        """
        mine, theirs = self.versions, other.versions
        if self.positive:
            if other.positive:
                if mine.is_subset(theirs):
                    return Relation.SATISFIED
                if mine.is_disjoint(theirs):
                    return Relation.CONTRADICTED
            else:
                if mine.is_disjoint(theirs):
                    return Relation.SATISFIED
                if mine.is_subset(theirs):
                    return Relation.CONTRADICTED
        else:
            if other.positive:
                if theirs.is_subset(mine):
                    return Relation.CONTRADICTED
            elif theirs.is_subset(mine):
                return Relation.SATISFIED
        return Relation.INCONCLUSIVE

    def satisfies(self, other: Term) -> bool:
        return self.package == other.package and self.relation(other) is Relation.SATISFIED

    def intersect(self, other: Term) -> Term:
        """The term that holds exactly when both terms hold."""
        if self.package != other.package:
            raise ValueError(f"cannot intersect terms for {self.package} and {other.package}")
        if self.positive and other.positive:
            return Term(self.package, self.versions.intersection(other.versions))
        if self.positive:
            return Term(self.package, self.versions.difference(other.versions))
        if other.positive:
            return Term(self.package, other.versions.difference(self.versions))
        return Term(self.package, self.versions.union(other.versions), positive=False)

    def difference(self, other: Term) -> Term:
        """The term that holds when this term holds and *other* does not."""
        return self.intersect(other.inverse)

    def __str__(self) -> str:
        text = self.package if self.versions.is_any else f"{self.package}{self.versions}"
        return text if self.positive else f"not {text}"
