"""The result of a successful resolution."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

from lockwright.core.dependency.environment import TargetEnvironment
from lockwright.core.dependency.requirement import Requirement
from lockwright.core.versions import Version


@dataclass(frozen=True)
class ResolvedPackage:
    """One selected package version together with its registry metadata.

    Attributes:
        name: Normalized package name.
        version: The selected version.
        source: Where the package comes from (registry locator).
        dependencies: Requirements the registry declares for this version,
            markers included, exactly as published.
        hashes: Artifact digests, ``sha256:<hex>``, sorted.
    """

    name: str
    version: Version
    source: str = ""
    dependencies: tuple[Requirement, ...] = ()
    hashes: tuple[str, ...] = ()

    def active_dependencies(self, environment: TargetEnvironment) -> list[Requirement]:
        return [d for d in self.dependencies if d.evaluate(environment)]


class Solution(Mapping[str, ResolvedPackage]):
    """An immutable mapping of package name to ``ResolvedPackage``.

    Iteration order is sorted by name. The root project is not included.
    """

    def __init__(
        self,
        packages: Iterable[ResolvedPackage],
        environment: TargetEnvironment | None = None,
        attempted_solutions: int = 1,
    ) -> None:
        ordered = sorted(packages, key=lambda p: p.name)
        self._packages = MappingProxyType({p.name: p for p in ordered})
        self.environment = environment or TargetEnvironment.current()
        self.attempted_solutions = attempted_solutions

    def __getitem__(self, name: str) -> ResolvedPackage:
        return self._packages[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._packages)

    def __len__(self) -> int:
        return len(self._packages)

    def versions(self) -> dict[str, Version]:
        return {name: p.version for name, p in self._packages.items()}

    def unsatisfied(
        self,
        requirements: Iterable[Requirement] = (),
        overridden: Mapping[str, object] | None = None,
    ) -> list[str]:
        """Check that the solution is closed under its dependencies.

        Every active requirement, from *requirements* (the root's) and from
        each selected package, must name a selected package whose version it
        allows. Packages in *overridden* are only checked for presence, since
        an override replaces what their dependents asked for.

        Returns:
            Human-readable descriptions of each violation; empty when closed.
        """
        overridden = overridden or {}
        problems: list[str] = []
        sources: list[tuple[str, Requirement]] = [
            ("the project", r) for r in requirements if r.evaluate(self.environment)
        ]
        for package in self._packages.values():
            sources.extend(
                (f"{package.name} {package.version}", r)
                for r in package.active_dependencies(self.environment)
            )

        for requirer, requirement in sources:
            selected = self._packages.get(requirement.name)
            if selected is None:
                problems.append(f"{requirer} requires {requirement} but it is not selected")
            elif requirement.name not in overridden and selected.version not in requirement.versions:
                problems.append(
                    f"{requirer} requires {requirement} but {selected.version} is selected"
                )
        return problems

    def __repr__(self) -> str:
        inner = ", ".join(f"{n}=={p.version}" for n, p in self._packages.items())
        return f"Solution({inner})"
