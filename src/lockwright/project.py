"""Project manifest (``lockwright.yaml``) loading.

A manifest declares what to lock and how::

    name: my-app
    version: "1.0"
    requires-python: ">=3.9"
    dependencies:
      - httpx>=0.27
      - rich
    overrides:
      - idna==3.6
    constraints:
      - certifi<2025
    resolution: highest          # highest | lowest | lowest-direct
    prerelease: if-necessary     # if-necessary | allow | disallow
    environment:
      python_full_version: "3.11.4"
      sys_platform: linux
    index: https://pypi.org/pypi # or a path to a YAML index
    concurrency: 8
    timeout: 120

Every key is optional. Invalid manifests raise ``ConfigError``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from lockwright.core.dependency.environment import TargetEnvironment
from lockwright.core.dependency.requirement import Requirement, normalize_name
from lockwright.core.dependency.settings import (
    PrereleaseMode,
    ResolutionSettings,
    ResolutionStrategy,
)
from lockwright.core.lockfile import manifest_record
from lockwright.core.versions import Version, parse_version_set
from lockwright.exceptions import (
    ConfigError,
    InvalidRange,
    InvalidRequirement,
    InvalidVersion,
)

logger = logging.getLogger(__name__)

MANIFEST_NAME = "lockwright.yaml"

_KNOWN_KEYS = frozenset({
    "name",
    "version",
    "requires-python",
    "dependencies",
    "overrides",
    "constraints",
    "resolution",
    "prerelease",
    "environment",
    "index",
    "concurrency",
    "timeout",
})


@dataclass
class ProjectManifest:
    """A parsed ``lockwright.yaml``."""

    name: str | None = None
    version: str = "0"
    requires_python: str | None = None
    dependencies: list[Requirement] = field(default_factory=list)
    overrides: list[Requirement] = field(default_factory=list)
    constraints: list[Requirement] = field(default_factory=list)
    strategy: ResolutionStrategy = ResolutionStrategy.HIGHEST
    prerelease: PrereleaseMode = PrereleaseMode.IF_NECESSARY
    environment: dict[str, str] = field(default_factory=dict)
    index: str | None = None
    concurrency: int = 8
    timeout: float | None = None
    path: Path | None = None

    # -- Loading --------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], path: Path | None = None) -> ProjectManifest:
        """Build a manifest from parsed YAML.

        Raises:
            ConfigError: On unknown keys, wrong types or invalid values.
        """
        if not isinstance(data, Mapping):
            raise ConfigError("Manifest must be a mapping")
        unknown = sorted(set(data) - _KNOWN_KEYS)
        if unknown:
            raise ConfigError(f"Unknown manifest keys: {', '.join(unknown)}")

        name = data.get("name")
        if name is not None:
            try:
                name = normalize_name(str(name))
            except InvalidRequirement as exc:
                raise ConfigError(f"Invalid project name: {exc}") from exc

        version = str(data.get("version", "0"))
        try:
            Version(version)
        except InvalidVersion as exc:
            raise ConfigError(f"Invalid project version {version!r}") from exc

        requires_python = data.get("requires-python")
        if requires_python is not None:
            requires_python = str(requires_python)
            try:
                parse_version_set(requires_python)
            except InvalidRange as exc:
                raise ConfigError(f"Invalid requires-python: {exc}") from exc

        try:
            strategy = ResolutionStrategy(data.get("resolution", "highest"))
            prerelease = PrereleaseMode(data.get("prerelease", "if-necessary"))
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc

        environment = data.get("environment") or {}
        if not isinstance(environment, Mapping):
            raise ConfigError("'environment' must be a mapping of marker names to values")

        return cls(
            name=name,
            version=version,
            requires_python=requires_python,
            dependencies=_requirements(data, "dependencies"),
            overrides=_requirements(data, "overrides"),
            constraints=_requirements(data, "constraints"),
            strategy=strategy,
            prerelease=prerelease,
            environment={str(k): str(v) for k, v in environment.items()},
            index=data.get("index"),
            concurrency=_positive(data, "concurrency", int, 8),
            timeout=_positive(data, "timeout", float, None),
            path=path,
        )

    @classmethod
    def load(cls, path: str | Path) -> ProjectManifest:
        """Load a manifest file, or ``lockwright.yaml`` inside a directory."""
        path = Path(path)
        if path.is_dir():
            path = path / MANIFEST_NAME
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigError(f"Cannot read manifest {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
        logger.debug("Loaded manifest %s", path)
        return cls.from_dict(data or {}, path=path)

    # -- Derived values -------------------------------------------------------

    def target_environment(self) -> TargetEnvironment:
        """The marker environment to resolve for."""
        try:
            environment = TargetEnvironment.current(**self.environment)
        except InvalidVersion as exc:
            raise ConfigError(f"Invalid environment: {exc}") from exc
        python = environment.python_version
        if self.requires_python and python is not None:
            if python not in parse_version_set(self.requires_python):
                logger.warning(
                    "Target Python %s does not satisfy requires-python %s",
                    python,
                    self.requires_python,
                )
        return environment

    def settings(self, preferences: Mapping[str, Version] | None = None) -> ResolutionSettings:
        return ResolutionSettings(
            strategy=self.strategy,
            prerelease=self.prerelease,
            concurrency=self.concurrency,
            timeout=self.timeout,
            preferences=dict(preferences or {}),
        )

    def record(self) -> dict[str, list[str]]:
        """The manifest section a lockfile stores for freshness checks."""
        return manifest_record(self.dependencies, self.overrides, self.constraints)


def _requirements(data: Mapping[str, Any], key: str) -> list[Requirement]:
    raw = data.get(key) or []
    if isinstance(raw, str) or not isinstance(raw, list):
        raise ConfigError(f"'{key}' must be a list of requirement strings")
    result = []
    for item in raw:
        try:
            result.append(Requirement.parse(str(item)))
        except InvalidRequirement as exc:
            raise ConfigError(f"Invalid entry in '{key}': {exc}") from exc
    return result


def _positive(data: Mapping[str, Any], key: str, kind: type, default: Any) -> Any:
    value = data.get(key)
    if value is None:
        return default
    try:
        converted = kind(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"'{key}' must be a number, got {value!r}") from exc
    if converted <= 0:
        raise ConfigError(f"'{key}' must be positive, got {value!r}")
    return converted
