"""The partial solution: an ordered log of decisions and derivations."""

from __future__ import annotations

from dataclasses import dataclass

from lockwright.core.dependency.incompatibility import Incompatibility
from lockwright.core.dependency.term import Relation, Term
from lockwright.core.versions import Version, VersionSet


@dataclass(frozen=True)
class Assignment:
    """A term added to the partial solution.

    Decisions (``cause is None``) select one version of a package; derivations
    are terms implied by an incompatibility given the earlier assignments.
    """

    term: Term
    decision_level: int
    index: int
    cause: Incompatibility | None = None

    @property
    def is_decision(self) -> bool:
        return self.cause is None


class PartialSolution:
    """Assignments made so far, with per-package summaries.

    For each package the intersection of all its assignments is kept, in
    ``_positive`` once any positive assignment exists and in ``_negative``
    otherwise, so relation queries do not have to replay the log.
    """

    def __init__(self) -> None:
        self._assignments: list[Assignment] = []
        self._decisions: dict[str, Version] = {}
        self._positive: dict[str, Term] = {}
        self._negative: dict[str, Term] = {}
        self._backtracking = False
        self.attempted_solutions = 1

    @property
    def decisions(self) -> dict[str, Version]:
        return dict(self._decisions)

    @property
    def decision_level(self) -> int:
        return len(self._decisions)

    def unsatisfied(self) -> list[Term]:
        """Positive terms for packages that do not have a decision yet."""
        return [
            term for name, term in self._positive.items() if name not in self._decisions
        ]

    def decide(self, package: str, version: Version) -> None:
        if self._backtracking:
            self.attempted_solutions += 1
            self._backtracking = False
        self._decisions[package] = version
        self._assign(
            Assignment(
                Term(package, VersionSet.exact(version)),
                self.decision_level,
                len(self._assignments),
            )
        )

    def derive(self, term: Term, cause: Incompatibility) -> None:
        self._assign(
            Assignment(term, self.decision_level, len(self._assignments), cause)
        )

    def _assign(self, assignment: Assignment) -> None:
        self._assignments.append(assignment)
        self._register(assignment)

    def _register(self, assignment: Assignment) -> None:
        term = assignment.term
        name = term.package

        positive = self._positive.get(name)
        if positive is not None:
            self._positive[name] = positive.intersect(term)
            return

        negative = self._negative.pop(name, None)
        combined = term if negative is None else negative.intersect(term)
        if combined.positive:
            self._positive[name] = combined
        else:
            self._negative[name] = combined

    def backtrack(self, decision_level: int) -> None:
        """Drop every assignment made above *decision_level*."""
        self._backtracking = True

        removed: set[str] = set()
        while self._assignments and self._assignments[-1].decision_level > decision_level:
            assignment = self._assignments.pop()
            removed.add(assignment.term.package)
            if assignment.is_decision:
                del self._decisions[assignment.term.package]

        for name in removed:
            self._positive.pop(name, None)
            self._negative.pop(name, None)

        for assignment in self._assignments:
            if assignment.term.package in removed:
                self._register(assignment)

    def relation(self, term: Term) -> Relation:
        summary = self._positive.get(term.package) or self._negative.get(term.package)
        if summary is None:
            return Relation.INCONCLUSIVE
        return summary.relation(term)

    def satisfies(self, term: Term) -> bool:
        return self.relation(term) is Relation.SATISFIED

    def satisfier(self, term: Term) -> Assignment:
        """Return the earliest assignment after which *term* is satisfied."""
        accumulated: Term | None = None
        for assignment in self._assignments:
            if assignment.term.package != term.package:
                continue
            if accumulated is None:
                accumulated = assignment.term
            else:
                accumulated = accumulated.intersect(assignment.term)
            if accumulated.satisfies(term):
                return assignment
        raise RuntimeError(f"no assignment satisfies {term}")
