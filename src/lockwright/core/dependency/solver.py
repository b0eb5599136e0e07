"""PubGrub dependency resolution.

The resolver searches for one version of every package reachable from the
project's requirements such that every active requirement is satisfied.
It follows the PubGrub algorithm (Weizenbaum, 2018):

1. **Propagating**: derive every term forced by the known incompatibilities
   given the current partial solution (unit propagation).
2. **Searching**: pick the undecided package with the fewest remaining
   candidates, choose a version for it and record its dependencies as new
   incompatibilities.
3. **Backtracking**: when an incompatibility is fully satisfied, learn its
   root cause by resolving it against the incompatibilities that caused
   the conflicting assignments, then unwind the partial solution to the
   point where the learned incompatibility forces a new derivation.

The run ends **Solved** when every required package has a decision, or
**Failed** with ``ResolutionFailed`` once the root itself is ruled out.
Registry I/O is issued concurrently through a ``MetadataFetcher``, but the
solver only consumes results in its own order, so the outcome does not
depend on which request finishes first.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Iterable

from lockwright.core.dependency.cancellation import CancellationToken
from lockwright.core.dependency.environment import TargetEnvironment
from lockwright.core.dependency.incompatibility import (
    ConflictCause,
    ConstraintCause,
    DependencyCause,
    Incompatibility,
    PackageNotFoundCause,
    RequiresPythonCause,
    RootCause,
    SelfDependencyCause,
    UnavailableCause,
    no_versions,
)
from lockwright.core.dependency.overrides import RequirementTransform
from lockwright.core.dependency.partial_solution import PartialSolution
from lockwright.core.dependency.report import explain
from lockwright.core.dependency.requirement import Requirement
from lockwright.core.dependency.settings import (
    PrereleaseMode,
    ResolutionSettings,
    ResolutionStrategy,
)
from lockwright.core.dependency.solution import ResolvedPackage, Solution
from lockwright.core.dependency.term import ROOT, Relation, Term
from lockwright.core.versions import Version, VersionSet, parse_version_set
from lockwright.exceptions import (
    Cancelled,
    EmptyIntersection,
    InvalidRange,
    MetadataUnavailable,
    PackageNotFound,
    ResolutionFailed,
)
from lockwright.registry.base import PackageMetadata, RegistryClient
from lockwright.registry.fetcher import MetadataFetcher

logger = logging.getLogger(__name__)

# Returned by _propagate_incompatibility when every term is satisfied.
_CONFLICT = object()


class SolverState(str, Enum):
    SEARCHING = "searching"
    PROPAGATING = "propagating"
    BACKTRACKING = "backtracking"
    SOLVED = "solved"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Resolver: public entry point
# ---------------------------------------------------------------------------


class Resolver:
    """Resolve a project's requirements against a registry.

    A ``Resolver`` holds the inputs of a resolution and can be run any
    number of times; each run gets its own partial solution and fetch cache.

    Args:
        registry: Where versions and metadata come from.
        requirements: The project's direct requirements.
        overrides: Requirements replacing every requirement on their package.
        constraints: Requirements narrowing every requirement on their package.
        environment: Marker environment; defaults to the running interpreter.
        settings: Strategy, pre-release mode, concurrency, timeout, preferences.
        project_name: Used in failure explanations instead of "the project".

    Example::

        resolver = Resolver(registry, [Requirement.parse("httpx>=0.27")])
        solution = await resolver.resolve()
        solution["httpx"].version
    """

    def __init__(
        self,
        registry: RegistryClient,
        requirements: Iterable[Requirement],
        *,
        overrides: Iterable[Requirement] = (),
        constraints: Iterable[Requirement] = (),
        environment: TargetEnvironment | None = None,
        settings: ResolutionSettings | None = None,
        project_name: str | None = None,
    ) -> None:
        self.registry = registry
        self.requirements = list(requirements)
        self.environment = environment or TargetEnvironment.current()
        self.settings = settings or ResolutionSettings()
        self.transform = RequirementTransform(overrides, constraints, self.environment)
        self.project_name = project_name

    async def resolve(self, cancellation: CancellationToken | None = None) -> Solution:
        """Run one resolution.

        Raises:
            ResolutionFailed: If no solution exists.
            Cancelled: If *cancellation* trips or the configured timeout passes.
            RegistryError: On registry transport failures.
        """
        fetcher = MetadataFetcher(self.registry, self.settings.concurrency)
        solver = _Solver(self, fetcher, cancellation)
        timeout = self.settings.timeout
        try:
            if timeout is None:
                return await solver.solve()
            try:
                return await asyncio.wait_for(solver.solve(), timeout)
            except asyncio.TimeoutError as exc:
                raise Cancelled(f"resolution timed out after {timeout:g}s") from exc
        finally:
            await fetcher.close()

    def resolve_sync(self, cancellation: CancellationToken | None = None) -> Solution:
        """Blocking wrapper around ``resolve`` for callers without an event loop."""
        return asyncio.run(self.resolve(cancellation))


# ---------------------------------------------------------------------------
# _Solver: the state of one run
# ---------------------------------------------------------------------------


class _Solver:
    def __init__(
        self,
        resolver: Resolver,
        fetcher: MetadataFetcher,
        cancellation: CancellationToken | None,
    ) -> None:
        self._fetcher = fetcher
        self._cancellation = cancellation
        self._settings = resolver.settings
        self._environment = resolver.environment
        self._transform = resolver.transform
        self._label = resolver.project_name or "the project"

        self._root_requirements = [
            r for r in resolver.requirements if r.evaluate(self._environment)
        ]
        self._direct = {r.name for r in self._root_requirements}
        self._incompatibilities: dict[str, list[Incompatibility]] = {}
        self._solution = PartialSolution()
        self._metadata: dict[tuple[str, Version], PackageMetadata] = {}
        self.state = SolverState.SEARCHING

    def _check_cancelled(self) -> None:
        if self._cancellation is not None:
            self._cancellation.raise_if_cancelled()

    def _transition(self, state: SolverState) -> None:
        self._check_cancelled()
        self._set_state(state)

    def _set_state(self, state: SolverState) -> None:
        if state is not self.state:
            logger.debug("Solver %s -> %s", self.state.value, state.value)
        self.state = state

    async def solve(self) -> Solution:
        for requirement in self._root_requirements:
            self._fetcher.prefetch_versions(requirement.name)

        self._add_incompatibility(
            Incompatibility([Term(ROOT, VersionSet.any(), positive=False)], RootCause())
        )

        next_package: str | None = ROOT
        while next_package is not None:
            self._transition(SolverState.PROPAGATING)
            self._propagate(next_package)
            self._transition(SolverState.SEARCHING)
            next_package = await self._choose_package_version()

        self._set_state(SolverState.SOLVED)
        solution = self._build_solution()
        logger.info(
            "Resolved %d packages after %d attempted solution(s)",
            len(solution),
            self._solution.attempted_solutions,
        )
        return solution

    # -- Unit propagation -----------------------------------------------------

    def _propagate(self, package: str) -> None:
        changed = [package]
        while changed:
            name = changed.pop(0)
            for incompatibility in reversed(self._incompatibilities.get(name, [])):
                result = self._propagate_incompatibility(incompatibility)
                if result is _CONFLICT:
                    root_cause = self._resolve_conflict(incompatibility)
                    changed.clear()
                    result = self._propagate_incompatibility(root_cause)
                    if isinstance(result, str):
                        changed.append(result)
                    break
                if isinstance(result, str) and result not in changed:
                    changed.append(result)

    def _propagate_incompatibility(self, incompatibility: Incompatibility) -> object:
        """Derive the inverse of the one term not yet satisfied, if any.

        Returns the package of the derived term, ``None`` when nothing can be
        derived, or ``_CONFLICT`` when every term is already satisfied.
        """
        unsatisfied: Term | None = None
        for term in incompatibility.terms:
            relation = self._solution.relation(term)
            if relation is Relation.CONTRADICTED:
                return None
            if relation is Relation.INCONCLUSIVE:
                if unsatisfied is not None:
                    return None
                unsatisfied = term

        if unsatisfied is None:
            return _CONFLICT

        logger.debug("Derived %s from %r", unsatisfied.inverse, incompatibility)
        self._solution.derive(unsatisfied.inverse, incompatibility)
        return unsatisfied.package

    # -- Conflict resolution --------------------------------------------------

    def _resolve_conflict(self, incompatibility: Incompatibility) -> Incompatibility:
        self._set_state(SolverState.BACKTRACKING)
        logger.debug("Conflict: %s", incompatibility.describe(self._label))

        new_incompatibility = False
        while not incompatibility.is_failure():
            most_recent_term: Term | None = None
            most_recent_satisfier = None
            difference: Term | None = None
            previous_satisfier_level = 1

            for term in incompatibility.terms:
                satisfier = self._solution.satisfier(term)
                if most_recent_satisfier is None:
                    most_recent_term, most_recent_satisfier = term, satisfier
                elif most_recent_satisfier.index < satisfier.index:
                    previous_satisfier_level = max(
                        previous_satisfier_level, most_recent_satisfier.decision_level
                    )
                    most_recent_term, most_recent_satisfier = term, satisfier
                    difference = None
                else:
                    previous_satisfier_level = max(
                        previous_satisfier_level, satisfier.decision_level
                    )

                if most_recent_term is term:
                    # The part of the satisfier not covered by the term must
                    # be carried into the learned incompatibility.
                    difference = most_recent_satisfier.term.difference(most_recent_term)
                    if difference.versions.is_empty:
                        difference = None
                    else:
                        previous_satisfier_level = max(
                            previous_satisfier_level,
                            self._solution.satisfier(difference.inverse).decision_level,
                        )

            assert most_recent_satisfier is not None and most_recent_term is not None

            if (
                previous_satisfier_level < most_recent_satisfier.decision_level
                or most_recent_satisfier.cause is None
            ):
                logger.debug(
                    "Backtracking to decision level %d", previous_satisfier_level
                )
                self._solution.backtrack(previous_satisfier_level)
                if new_incompatibility:
                    self._add_incompatibility(incompatibility)
                return incompatibility

            cause = most_recent_satisfier.cause
            new_terms = [t for t in incompatibility.terms if t is not most_recent_term]
            new_terms.extend(t for t in cause.terms if t.package != most_recent_satisfier.term.package)
            if difference is not None:
                new_terms.append(difference.inverse)

            incompatibility = Incompatibility(new_terms, ConflictCause(incompatibility, cause))
            new_incompatibility = True
            logger.debug("Learned: %s", incompatibility.describe(self._label))

        self._set_state(SolverState.FAILED)
        raise ResolutionFailed(incompatibility, explain(incompatibility, self._label))

    # -- Decision making ------------------------------------------------------

    async def _choose_package_version(self) -> str | None:
        unsatisfied = sorted(self._solution.unsatisfied(), key=lambda t: t.package)
        if not unsatisfied:
            return None

        for term in unsatisfied:
            if not term.is_root:
                self._fetcher.prefetch_versions(term.package)

        candidates: dict[str, list[Version]] = {}
        for term in unsatisfied:
            if term.is_root:
                candidates[term.package] = [Version("0")]
                continue
            try:
                available = await self._fetcher.versions(term.package)
            except PackageNotFound:
                logger.debug("Package %s not found in the registry", term.package)
                self._add_incompatibility(
                    Incompatibility([Term(term.package, VersionSet.any())], PackageNotFoundCause())
                )
                return term.package
            candidates[term.package] = self._candidates(term, available)

        # Start on the metadata each package will most likely be decided with.
        for name, allowed in candidates.items():
            if name != ROOT and allowed:
                self._fetcher.prefetch_metadata(name, self._pick_version(name, allowed))

        term = min(unsatisfied, key=lambda t: (len(candidates[t.package]), t.package))
        package = term.package
        allowed = candidates[package]
        if not allowed:
            logger.debug("No versions of %s match %s", package, term.versions)
            self._add_incompatibility(no_versions(package, term.versions))
            return package

        version = self._pick_version(package, allowed)

        if term.is_root:
            requirements = self._root_requirements
        else:
            try:
                metadata = await self._fetcher.metadata(package, version)
            except MetadataUnavailable as exc:
                logger.debug("Metadata for %s %s unavailable: %s", package, version, exc)
                self._add_incompatibility(
                    Incompatibility(
                        [Term(package, VersionSet.exact(version))],
                        UnavailableCause(exc.reason),
                    )
                )
                return package
            self._metadata[(package, version)] = metadata

            python_conflict = self._requires_python_incompatibility(metadata)
            if python_conflict is not None:
                self._add_incompatibility(python_conflict)
                return package
            requirements = [r for r in metadata.requirements if r.evaluate(self._environment)]

        conflict = False
        for requirement in requirements:
            if requirement.name == package:
                incompatibility = self._self_incompatibility(version, requirement)
                if incompatibility is None:
                    continue
            else:
                self._fetcher.prefetch_versions(requirement.name)
                incompatibility = self._dependency_incompatibility(package, version, requirement)
            self._add_incompatibility(incompatibility)
            conflict = conflict or all(
                t.package == package or self._solution.satisfies(t)
                for t in incompatibility.terms
            )

        if not conflict:
            logger.debug("Selecting %s %s", package, version)
            self._solution.decide(package, version)
        return package

    def _candidates(self, term: Term, available: list[Version]) -> list[Version]:
        allowed = term.versions.filter(available)
        mode = self._settings.prerelease
        if mode is PrereleaseMode.ALLOW:
            return allowed
        finals = [v for v in allowed if not v.is_prerelease]
        if mode is PrereleaseMode.DISALLOW or finals:
            return finals
        return allowed

    def _pick_version(self, package: str, allowed: list[Version]) -> Version:
        preferred = self._settings.preferences.get(package)
        if preferred is not None and preferred in allowed:
            return preferred
        strategy = self._settings.strategy
        if strategy is ResolutionStrategy.LOWEST or (
            strategy is ResolutionStrategy.LOWEST_DIRECT and package in self._direct
        ):
            return allowed[0]
        return allowed[-1]

    def _requires_python_incompatibility(
        self, metadata: PackageMetadata
    ) -> Incompatibility | None:
        python = self._environment.python_version
        if not metadata.requires_python or python is None:
            return None
        try:
            supported = parse_version_set(metadata.requires_python)
        except InvalidRange:
            logger.warning(
                "Ignoring unparseable requires-python %r of %s %s",
                metadata.requires_python,
                metadata.name,
                metadata.version,
            )
            return None
        if python in supported:
            return None
        logger.debug(
            "%s %s requires Python %s", metadata.name, metadata.version, metadata.requires_python
        )
        return Incompatibility(
            [Term(metadata.name, VersionSet.exact(metadata.version))],
            RequiresPythonCause(metadata.requires_python, str(python)),
        )

    def _dependency_incompatibility(
        self, package: str, version: Version, requirement: Requirement
    ) -> Incompatibility:
        if package == ROOT:
            depender = Term(ROOT, VersionSet.any())
        else:
            depender = Term(package, VersionSet.exact(version))

        try:
            effective = self._transform.apply(requirement)
        except EmptyIntersection as exc:
            return Incompatibility(
                [depender],
                ConstraintCause(str(requirement), f"{requirement.name}{exc.constraint}"),
            )
        return Incompatibility(
            [depender, Term(effective.name, effective.versions, positive=False)],
            DependencyCause(),
        )

    def _self_incompatibility(
        self, version: Version, requirement: Requirement
    ) -> Incompatibility | None:
        """Forbid *version* when its requirement on its own package excludes it."""
        try:
            effective = self._transform.apply(requirement)
        except EmptyIntersection:
            return self._dependency_incompatibility(requirement.name, version, requirement)
        if version in effective.versions:
            return None
        return Incompatibility(
            [Term(requirement.name, VersionSet.exact(version))],
            SelfDependencyCause(f"{effective.name}{effective.versions}"),
        )

    def _add_incompatibility(self, incompatibility: Incompatibility) -> None:
        logger.debug("Fact: %s", incompatibility.describe(self._label))
        for term in incompatibility.terms:
            self._incompatibilities.setdefault(term.package, []).append(incompatibility)

    # -- Result ---------------------------------------------------------------

    def _build_solution(self) -> Solution:
        packages = []
        for name, version in self._solution.decisions.items():
            if name == ROOT:
                continue
            metadata = self._metadata[(name, version)]
            packages.append(
                ResolvedPackage(
                    name=name,
                    version=version,
                    source=metadata.source,
                    dependencies=tuple(metadata.requirements),
                    hashes=tuple(sorted(set(metadata.hashes))),
                )
            )
        return Solution(
            packages,
            environment=self._environment,
            attempted_solutions=self._solution.attempted_solutions,
        )
