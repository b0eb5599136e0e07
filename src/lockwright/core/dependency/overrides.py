"""Overrides and constraints applied to requirements before solving.

- An **override** replaces the version set of every requirement on its
  package, wherever that requirement comes from. Several overrides on the
  same package combine by union.
- A **constraint** narrows every requirement on its package by
  intersection. Several constraints on the same package combine by
  intersection.

Neither adds a requirement on its own: a package that nothing depends on
stays out of the solution even if it is overridden or constrained. Entries
whose marker is false in the target environment are ignored. Overrides
take precedence, so a constraint on an overridden package has no effect.
"""

from __future__ import annotations

import logging
from typing import Iterable

from lockwright.core.dependency.environment import TargetEnvironment
from lockwright.core.dependency.requirement import Requirement
from lockwright.core.versions import VersionSet
from lockwright.exceptions import EmptyIntersection

logger = logging.getLogger(__name__)


class RequirementTransform:
    """Rewrite requirements according to overrides and constraints.

    Args:
        overrides: Requirements whose version sets replace others'.
        constraints: Requirements whose version sets narrow others'.
        environment: Environment for evaluating override/constraint markers.
    """

    def __init__(
        self,
        overrides: Iterable[Requirement] = (),
        constraints: Iterable[Requirement] = (),
        environment: TargetEnvironment | None = None,
    ) -> None:
        env = environment or TargetEnvironment.current()
        self._overrides: dict[str, VersionSet] = {}
        self._constraints: dict[str, VersionSet] = {}

        for override in overrides:
            if not override.evaluate(env):
                logger.debug("Ignoring override %s: marker is false", override)
                continue
            current = self._overrides.get(override.name, VersionSet.empty())
            self._overrides[override.name] = current.union(override.versions)

        for constraint in constraints:
            if not constraint.evaluate(env):
                logger.debug("Ignoring constraint %s: marker is false", constraint)
                continue
            current = self._constraints.get(constraint.name, VersionSet.any())
            self._constraints[constraint.name] = current.intersection(constraint.versions)

    def override_for(self, name: str) -> VersionSet | None:
        return self._overrides.get(name)

    def constraint_for(self, name: str) -> VersionSet | None:
        return self._constraints.get(name)

    def apply(self, requirement: Requirement) -> Requirement:
        """Return *requirement* with overrides and constraints applied.

        Raises:
            EmptyIntersection: If a constraint leaves no acceptable versions.
        """
        override = self._overrides.get(requirement.name)
        if override is not None:
            return requirement.with_versions(override)

        constraint = self._constraints.get(requirement.name)
        if constraint is None:
            return requirement
        narrowed = requirement.versions.intersection(constraint)
        if narrowed.is_empty:
            raise EmptyIntersection(requirement, constraint)
        return requirement.with_versions(narrowed)

    def __bool__(self) -> bool:
        return bool(self._overrides or self._constraints)
