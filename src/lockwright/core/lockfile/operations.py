"""Lockfile operations: deserialization, validation, diffing and reuse.

This module extends the ``Lockfile`` class (defined in ``lockfile.py``) with
classmethods and instance methods for:

- **Deserialization:** ``from_dict``, ``from_json``, ``read`` (disk).
- **Validation:** internal consistency checks (dependencies, hashes, format).
- **Diffing:** structured comparison of two lockfiles.
- **Reuse:** ``to_solution``, ``preferences`` and ``is_fresh`` for the next
  resolution run.

These are attached to the ``Lockfile`` class at import time (in
``__init__.py``) to keep each source file focused while presenting a single
unified API to callers.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

from lockwright.core.dependency.environment import TargetEnvironment
from lockwright.core.dependency.requirement import Requirement
from lockwright.core.dependency.solution import ResolvedPackage, Solution
from lockwright.core.lockfile.models import (
    _HASH_RE,
    LockedDependency,
    LockedPackage,
    LockfileMetadata,
)
from lockwright.core.versions import Version, parse_version_set
from lockwright.exceptions import (
    ConfigError,
    InvalidRange,
    InvalidRequirement,
    InvalidVersion,
    LockfileError,
)

_MANIFEST_KEYS = ("requirements", "overrides", "constraints")


def _from_dict(cls: type, data: dict[str, Any]) -> Any:
    """Deserialize a lockfile from a dict (parsed JSON).

    Raises:
        LockfileError: If the document does not have the lockfile shape.
    """
    if not isinstance(data, dict):
        raise LockfileError("Lockfile must be a JSON object")

    resolution = data.get("resolution") or {}
    manifest = data.get("manifest") or {}
    lf = cls(
        LockfileMetadata(
            requires_python=data.get("requires-python"),
            strategy=resolution.get("strategy", "highest"),
            prerelease=resolution.get("prerelease", "if-necessary"),
            environment={str(k): str(v) for k, v in (data.get("environment") or {}).items()},
            manifest={key: list(manifest.get(key) or []) for key in _MANIFEST_KEYS},
            generated_at=data.get("generated-at"),
        )
    )
    lf._version = data.get("version")

    entries = data.get("package", [])
    if not isinstance(entries, list):
        raise LockfileError("'package' must be a list of entries")
    for entry in entries:
        if not isinstance(entry, dict) or "name" not in entry:
            raise LockfileError(f"Malformed package entry: {entry!r}")
        dependencies = []
        for dep in entry.get("dependencies", []):
            if not isinstance(dep, dict) or "name" not in dep:
                raise LockfileError(f"Malformed dependency of {entry['name']}: {dep!r}")
            extras = dep.get("extras", [])
            if not isinstance(extras, list):
                raise LockfileError(f"Malformed extras of {entry['name']}: {extras!r}")
            dependencies.append(
                LockedDependency(
                    name=dep["name"],
                    specifier=dep.get("specifier", ""),
                    marker=dep.get("marker"),
                    extras=tuple(sorted(str(e) for e in extras)),
                )
            )
        lf.add_package(
            LockedPackage(
                name=entry["name"],
                version=str(entry.get("version", "")),
                source=entry.get("source", ""),
                dependencies=dependencies,
                hashes=list(entry.get("hashes", [])),
            )
        )
    return lf


def _from_json(cls: type, json_str: str) -> Any:
    """Deserialize from a JSON string.

    Raises:
        LockfileError: If the string is not valid JSON.
    """
    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as exc:
        raise LockfileError(f"Lockfile is not valid JSON: {exc}") from exc
    return cls.from_dict(data)


def _read(cls: type, path: Path) -> Any:
    """Read a lockfile from disk.

    Raises:
        LockfileError: If the file cannot be read or parsed.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise LockfileError(f"Cannot read lockfile {path}: {exc}") from exc
    return cls.from_json(text)


def _environment(self: Any) -> TargetEnvironment:
    try:
        return TargetEnvironment.current(**self._metadata.environment)
    except (ConfigError, InvalidVersion) as exc:
        raise LockfileError(f"Invalid recorded environment: {exc}") from exc


def _overridden(self: Any) -> set[str]:
    names = set()
    for line in self._metadata.manifest.get("overrides", []):
        try:
            names.add(Requirement.parse(line).name)
        except InvalidRequirement:
            continue
    return names


def _validate(self: Any) -> list[str]:
    """Validate the lockfile for internal consistency.

    Performs the following checks:

    1. **Format version:** the file was written in a format this version
       understands.
    2. **Version validity:** every package has a non-empty, valid version.
    3. **Hash format:** every hash matches ``sha256:<64-hex-chars>``.
    4. **Dependency completeness:** every dependency that applies in the
       recorded environment names a locked package whose version satisfies
       the dependency's specifier. Overridden packages are only checked for
       presence.

    Returns:
        List of validation error messages. Empty means the lockfile is valid.
    """
    errors: list[str] = []

    # 1. Format version
    if self._version != self.LOCKFILE_VERSION:
        errors.append(
            f"Unsupported lockfile version {self._version!r}"
            f" (expected {self.LOCKFILE_VERSION})"
        )

    # 2. Version validity
    versions: dict[str, Version] = {}
    for name, package in self._packages.items():
        if not package.version:
            errors.append(f"Package {name!r} has empty version string")
            continue
        try:
            versions[name] = Version(package.version)
        except InvalidVersion:
            errors.append(f"Package {name!r} has invalid version {package.version!r}")

    # 3. Hash format
    for name, package in self._packages.items():
        for digest in package.hashes:
            if not _HASH_RE.match(digest):
                errors.append(f"Package {name!r} has invalid hash format: {digest!r}")

    # 4. Dependency completeness
    try:
        environment = _environment(self)
    except LockfileError as exc:
        errors.append(str(exc))
        return errors
    overridden = _overridden(self)
    for name, package in self._packages.items():
        for dep in package.dependencies:
            try:
                if not environment.evaluate(dep.marker):
                    continue
                allowed = parse_version_set(dep.specifier)
            except (InvalidRequirement, InvalidRange) as exc:
                errors.append(f"Package {name!r} has an invalid dependency {dep.name!r}: {exc}")
                continue
            if dep.name not in self._packages:
                errors.append(
                    f"Package {name!r} depends on {dep.name!r} which is not in the lockfile"
                )
            elif dep.name in versions and dep.name not in overridden:
                if versions[dep.name] not in allowed:
                    errors.append(
                        f"Package {name!r} requires {dep.name}{dep.specifier} but"
                        f" {versions[dep.name]} is locked"
                    )

    return errors


def _diff(self: Any, other: Any) -> dict[str, Any]:
    """Compare two lockfiles and return differences.

    - **added**: Packages present in ``other`` but not in ``self``.
    - **removed**: Packages present in ``self`` but not in ``other``.
    - **changed**: Packages present in both but with a different version,
      source or hashes.

    Args:
        other: The lockfile to compare against (typically the newer one).

    Returns:
        Dict with keys 'added', 'removed', 'changed'.
    """
    self_names = set(self._packages)
    other_names = set(other._packages)

    changes: list[dict[str, Any]] = []
    for name in sorted(self_names & other_names):
        old = self._packages[name]
        new = other._packages[name]
        for field_name in ("version", "source"):
            if getattr(old, field_name) != getattr(new, field_name):
                changes.append({
                    "name": name,
                    "field": field_name,
                    "old": getattr(old, field_name),
                    "new": getattr(new, field_name),
                })
        if sorted(old.hashes) != sorted(new.hashes):
            changes.append({
                "name": name,
                "field": "hashes",
                "old": sorted(old.hashes),
                "new": sorted(new.hashes),
            })

    return {
        "added": sorted(other_names - self_names),
        "removed": sorted(self_names - other_names),
        "changed": changes,
    }


def _preferences(self: Any) -> dict[str, Version]:
    """Locked versions, to be tried first by the next resolution."""
    preferences: dict[str, Version] = {}
    for name, package in self._packages.items():
        try:
            preferences[name] = Version(package.version)
        except InvalidVersion:
            continue
    return preferences


def _to_solution(self: Any) -> Solution:
    """Rebuild the ``Solution`` this lockfile was written from.

    Raises:
        LockfileError: If an entry cannot be interpreted.
    """
    packages = []
    for package in self.packages:
        try:
            dependencies = tuple(
                Requirement(
                    name=dep.name,
                    versions=parse_version_set(dep.specifier),
                    specifier=dep.specifier,
                    extras=dep.extras,
                    marker=dep.marker,
                )
                for dep in sorted(package.dependencies, key=LockedDependency.sort_key)
            )
            version = Version(package.version)
        except (InvalidRange, InvalidVersion) as exc:
            raise LockfileError(f"Invalid entry for {package.name!r}: {exc}") from exc
        packages.append(
            ResolvedPackage(
                name=package.name,
                version=version,
                source=package.source,
                dependencies=dependencies,
                hashes=tuple(sorted(package.hashes)),
            )
        )
    return Solution(packages, environment=_environment(self))


def _is_fresh(
    self: Any,
    manifest: Mapping[str, list[str]],
    requires_python: str | None = None,
) -> bool:
    """Whether the lockfile was produced from exactly this manifest."""
    recorded = self._metadata.manifest
    return self._metadata.requires_python == requires_python and all(
        sorted(recorded.get(key, [])) == sorted(manifest.get(key, []))
        for key in _MANIFEST_KEYS
    )
