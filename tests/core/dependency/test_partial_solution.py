"""Tests for the partial solution log."""

from __future__ import annotations

import pytest

from lockwright.core.dependency import Incompatibility, Term
from lockwright.core.dependency.incompatibility import DependencyCause
from lockwright.core.dependency.partial_solution import PartialSolution
from lockwright.core.dependency.term import ROOT, Relation
from lockwright.core.versions import Version, VersionSet, parse_version_set


def pos(package: str, spec: str = "*") -> Term:
    return Term(package, parse_version_set(spec))


@pytest.fixture
def cause() -> Incompatibility:
    return Incompatibility([pos(ROOT), Term("a", VersionSet.any(), False)], DependencyCause())


class TestPartialSolution:
    def test_decisions_raise_level(self) -> None:
        ps = PartialSolution()
        assert ps.decision_level == 0
        ps.decide(ROOT, Version("0"))
        ps.decide("a", Version("1.0"))
        assert ps.decision_level == 2
        assert ps.decisions == {ROOT: Version("0"), "a": Version("1.0")}

    def test_unsatisfied_lists_undecided_positive_terms(self, cause) -> None:
        ps = PartialSolution()
        ps.derive(pos("a", ">=1"), cause)
        ps.derive(Term("b", parse_version_set("<2"), False), cause)
        assert ps.unsatisfied() == [pos("a", ">=1")]
        ps.decide("a", Version("1.5"))
        assert ps.unsatisfied() == []

    def test_relation_uses_accumulated_terms(self, cause) -> None:
        ps = PartialSolution()
        ps.derive(pos("a", ">=1"), cause)
        ps.derive(pos("a", "<2"), cause)
        assert ps.relation(pos("a", ">=1,<3")) is Relation.SATISFIED
        assert ps.relation(pos("a", ">=2")) is Relation.CONTRADICTED
        assert ps.relation(pos("b")) is Relation.INCONCLUSIVE
        assert ps.satisfies(pos("a"))

    def test_negative_then_positive(self, cause) -> None:
        ps = PartialSolution()
        ps.derive(Term("a", parse_version_set(">=2"), False), cause)
        ps.derive(pos("a", ">=1"), cause)
        assert ps.unsatisfied() == [pos("a", ">=1,<2")]

    def test_satisfier_finds_earliest_assignment(self, cause) -> None:
        ps = PartialSolution()
        ps.derive(pos("a", ">=1"), cause)
        ps.decide("b", Version("1"))
        ps.derive(pos("a", "<2"), cause)
        satisfier = ps.satisfier(pos("a", ">=1,<2"))
        assert satisfier.index == 2
        assert satisfier.decision_level == 1
        assert not satisfier.is_decision
        assert ps.satisfier(pos("a")).index == 0

    def test_satisfier_missing(self) -> None:
        with pytest.raises(RuntimeError):
            PartialSolution().satisfier(pos("a"))

    def test_backtrack(self, cause) -> None:
        ps = PartialSolution()
        ps.decide(ROOT, Version("0"))
        ps.derive(pos("a", ">=1"), cause)
        ps.decide("a", Version("2"))
        ps.derive(pos("b", "<1"), cause)
        ps.backtrack(1)
        assert ps.decisions == {ROOT: Version("0")}
        assert ps.unsatisfied() == [pos("a", ">=1")]
        assert ps.relation(pos("b")) is Relation.INCONCLUSIVE

    def test_attempted_solutions_counts_new_tries(self, cause) -> None:
        ps = PartialSolution()
        ps.decide(ROOT, Version("0"))
        ps.decide("a", Version("2"))
        assert ps.attempted_solutions == 1
        ps.backtrack(1)
        ps.decide("a", Version("1"))
        assert ps.attempted_solutions == 2
