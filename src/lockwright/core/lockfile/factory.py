"""Lockfile factory: constructing lockfiles from resolution results.

``from_solution`` builds a ``Lockfile`` directly from the ``Solution`` a
``Resolver`` produced. This is the primary entry point in the normal
workflow::

    solution = await Resolver(registry, requirements, settings=settings).resolve()
    lockfile = Lockfile.from_solution(solution, requirements=requirements, settings=settings)
    lockfile.write(Path("lockwright.lock"))
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable

from lockwright.core.dependency.requirement import Requirement
from lockwright.core.dependency.settings import ResolutionSettings
from lockwright.core.dependency.solution import Solution
from lockwright.core.lockfile.models import (
    RECORDED_ENVIRONMENT,
    LockedDependency,
    LockedPackage,
    LockfileMetadata,
)


def manifest_record(
    requirements: Iterable[Requirement] = (),
    overrides: Iterable[Requirement] = (),
    constraints: Iterable[Requirement] = (),
) -> dict[str, list[str]]:
    """The manifest section a lockfile records for freshness checks."""
    return {
        "requirements": sorted(str(r) for r in requirements),
        "overrides": sorted(str(r) for r in overrides),
        "constraints": sorted(str(r) for r in constraints),
    }


def _from_solution(
    cls: type,
    solution: Solution,
    *,
    requirements: Iterable[Requirement] = (),
    overrides: Iterable[Requirement] = (),
    constraints: Iterable[Requirement] = (),
    settings: ResolutionSettings | None = None,
    requires_python: str | None = None,
    include_timestamp: bool = False,
) -> Any:
    """Create a lockfile from a resolved ``Solution``.

    Args:
        solution: The resolution result.
        requirements: The project's direct requirements.
        overrides: Overrides the resolution ran with.
        constraints: Constraints the resolution ran with.
        settings: Settings the resolution ran with; defaults if omitted.
        requires_python: The project's ``requires-python``.
        include_timestamp: Record a ``generated-at`` timestamp. Off by
            default so identical resolutions produce identical files.

    Returns:
        A new ``Lockfile`` populated from the solution.
    """
    settings = settings or ResolutionSettings()
    environment = solution.environment.as_dict()
    metadata = LockfileMetadata(
        requires_python=requires_python,
        strategy=settings.strategy.value,
        prerelease=settings.prerelease.value,
        environment={k: environment[k] for k in RECORDED_ENVIRONMENT if k in environment},
        manifest=manifest_record(requirements, overrides, constraints),
        generated_at=(
            datetime.now(timezone.utc).replace(microsecond=0).isoformat()
            if include_timestamp
            else None
        ),
    )

    lf = cls(metadata)
    for name, resolved in solution.items():
        lf.add_package(
            LockedPackage(
                name=name,
                version=str(resolved.version),
                source=resolved.source,
                dependencies=sorted(
                    (
                        LockedDependency(
                            name=r.name,
                            specifier=r.specifier,
                            marker=r.marker,
                            extras=r.extras,
                        )
                        for r in resolved.dependencies
                    ),
                    key=LockedDependency.sort_key,
                ),
                hashes=sorted(resolved.hashes),
            )
        )
    return lf
