"""Builders shared across the test suite."""

from __future__ import annotations

from typing import Iterable, Mapping

from lockwright.core.dependency import (
    Requirement,
    ResolutionSettings,
    Resolver,
    Solution,
    TargetEnvironment,
)
from lockwright.registry import InMemoryRegistry


def build_registry(packages: Mapping[str, Mapping[str, Iterable[str]]]) -> InMemoryRegistry:
    """Build an in-memory registry from ``{name: {version: [requires...]}}``."""
    registry = InMemoryRegistry()
    for name, releases in packages.items():
        for version, requires in releases.items():
            registry.add(name, version, requires)
    return registry


def requirements(*lines: str) -> list[Requirement]:
    return [Requirement.parse(line) for line in lines]


def resolve(
    registry: InMemoryRegistry,
    *lines: str,
    overrides: Iterable[str] = (),
    constraints: Iterable[str] = (),
    environment: TargetEnvironment | None = None,
    project_name: str | None = None,
    **settings,
) -> Solution:
    """Resolve *lines* against *registry* synchronously."""
    resolver = Resolver(
        registry,
        requirements(*lines),
        overrides=requirements(*overrides),
        constraints=requirements(*constraints),
        environment=environment or linux_environment(),
        settings=ResolutionSettings(**settings),
        project_name=project_name,
    )
    return resolver.resolve_sync()


def versions_of(solution: Solution) -> dict[str, str]:
    return {name: str(version) for name, version in solution.versions().items()}


def linux_environment(**overrides: str) -> TargetEnvironment:
    values = {
        "python_full_version": "3.11.4",
        "sys_platform": "linux",
        "platform_system": "Linux",
        "os_name": "posix",
        "implementation_name": "cpython",
        "platform_python_implementation": "CPython",
        "platform_machine": "x86_64",
    }
    values.update(overrides)
    return TargetEnvironment.current(**values)
