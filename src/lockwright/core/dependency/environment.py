"""The fixed target environment a resolution run evaluates markers against.

Environment predicates on requirements are PEP 508 markers
(``sys_platform == "win32"``, ``python_version < "3.11"``). They are
evaluated once per run against a single ``TargetEnvironment``, which
defaults to the running interpreter and can be overridden attribute by
attribute from the project manifest.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from packaging.markers import InvalidMarker, Marker, default_environment

from lockwright.core.versions import Version
from lockwright.exceptions import ConfigError, InvalidRequirement

# Marker variables a manifest may override.
MARKER_NAMES: frozenset[str] = frozenset({
    "implementation_name",
    "implementation_version",
    "os_name",
    "platform_machine",
    "platform_python_implementation",
    "platform_release",
    "platform_system",
    "platform_version",
    "python_full_version",
    "python_version",
    "sys_platform",
})


def parse_marker(text: str) -> Marker:
    """Parse a marker expression, raising ``InvalidRequirement`` on bad input."""
    try:
        return Marker(text)
    except InvalidMarker as exc:
        raise InvalidRequirement(f"Invalid environment marker: {text!r}") from exc


@dataclass(frozen=True)
class TargetEnvironment:
    """An immutable mapping of marker variable names to values."""

    values: tuple[tuple[str, str], ...]

    @classmethod
    def current(cls, **overrides: str) -> TargetEnvironment:
        """Describe the running interpreter, with *overrides* applied on top."""
        base = {k: v for k, v in default_environment().items() if k in MARKER_NAMES}
        if "python_full_version" in overrides and "python_version" not in overrides:
            del base["python_version"]
        return cls.from_mapping({**base, **overrides})

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> TargetEnvironment:
        unknown = sorted(set(values) - MARKER_NAMES)
        if unknown:
            raise ConfigError(f"Unknown environment marker names: {', '.join(unknown)}")
        merged = dict(values)
        # Keep python_version consistent when only the full version is given.
        if "python_full_version" in merged and "python_version" not in merged:
            release = Version(str(merged["python_full_version"])).release
            merged["python_version"] = ".".join(str(p) for p in release[:2])
        return cls(tuple(sorted((k, str(v)) for k, v in merged.items())))

    def as_dict(self) -> dict[str, str]:
        return dict(self.values)

    def get(self, name: str, default: str | None = None) -> str | None:
        return self.as_dict().get(name, default)

    @property
    def python_version(self) -> Version | None:
        """The interpreter version requires-python checks are made against."""
        full = self.get("python_full_version") or self.get("python_version")
        if full is None:
            return None
        return Version(full)

    def evaluate(self, marker: str | Marker | None, extras: Iterable[str] = ()) -> bool:
        """Evaluate *marker* in this environment.

        Markers referring to ``extra`` hold only when one of *extras* matches;
        with no extras requested, ``extra == "..."`` markers are false.
        """
        if marker is None:
            return True
        parsed = marker if isinstance(marker, Marker) else parse_marker(marker)
        env = self.as_dict()
        for extra in tuple(extras) or ("",):
            if parsed.evaluate({**env, "extra": extra}):
                return True
        return False
