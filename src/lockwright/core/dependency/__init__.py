"""Requirements and PubGrub dependency resolution.

This package turns a project's requirements into a ``Solution``: one version
of every reachable package such that every active requirement holds, or a
``ResolutionFailed`` explaining why none exists.

Public API::

    from lockwright.core.dependency import Requirement, Resolver

    resolver = Resolver(registry, [Requirement.parse("httpx>=0.27")])
    solution = resolver.resolve_sync()
"""

from lockwright.core.dependency.cancellation import CancellationToken
from lockwright.core.dependency.environment import TargetEnvironment
from lockwright.core.dependency.incompatibility import Incompatibility
from lockwright.core.dependency.overrides import RequirementTransform
from lockwright.core.dependency.report import explain
from lockwright.core.dependency.requirement import Requirement, normalize_name
from lockwright.core.dependency.settings import (
    PrereleaseMode,
    ResolutionSettings,
    ResolutionStrategy,
)
from lockwright.core.dependency.solution import ResolvedPackage, Solution
from lockwright.core.dependency.solver import Resolver
from lockwright.core.dependency.term import Term

__all__ = [
    "CancellationToken",
    "Incompatibility",
    "PrereleaseMode",
    "Requirement",
    "RequirementTransform",
    "ResolutionSettings",
    "ResolutionStrategy",
    "ResolvedPackage",
    "Resolver",
    "Solution",
    "TargetEnvironment",
    "Term",
    "explain",
    "normalize_name",
]
