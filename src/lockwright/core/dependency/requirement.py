"""Requirements: a package name plus the versions that satisfy it.

A requirement string follows the shape of PEP 508 without URL references::

    name [ "[" extras "]" ] [ specifier ] [ ";" marker ]

e.g. ``httpcore>=1.0,<2`` or ``colorama ; sys_platform == "win32"``.
Specifiers may also be wrapped in parentheses (``idna (>=2.8)``), which is
how older registry metadata writes them.

Package names are compared in their normalized form (PEP 503): lowercase,
with runs of ``-``, ``_`` and ``.`` collapsed to a single ``-``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace

from packaging.utils import canonicalize_name

from lockwright.core.dependency.environment import TargetEnvironment, parse_marker
from lockwright.core.versions import VersionSet, parse_version_set
from lockwright.exceptions import InvalidRange, InvalidRequirement

_NAME_RE = re.compile(r"^([A-Z0-9]|[A-Z0-9][A-Z0-9._-]*[A-Z0-9])$", re.IGNORECASE)

_REQUIREMENT_RE = re.compile(
    r"^\s*(?P<name>[A-Za-z0-9][A-Za-z0-9._-]*)\s*"
    r"(?:\[(?P<extras>[^\]]*)\])?\s*"
    r"(?P<spec>[^;]*?)\s*"
    r"(?:;\s*(?P<marker>.*?))?\s*$"
)


def normalize_name(name: str) -> str:
    """Validate *name* and return its normalized form.

    Raises:
        InvalidRequirement: If *name* is not a valid package name.
    """
    stripped = name.strip()
    if not _NAME_RE.match(stripped):
        raise InvalidRequirement(f"Invalid package name: {name!r}")
    return canonicalize_name(stripped)


def _normalize_specifier(text: str) -> str:
    alternatives = []
    for alternative in text.split("||"):
        clauses = [re.sub(r"\s+", "", clause) for clause in alternative.split(",")]
        alternatives.append(",".join(clauses))
    return " || ".join(alternatives)


@dataclass(frozen=True)
class Requirement:
    """One declared dependency.

    Attributes:
        name: Normalized package name.
        versions: The set of versions that satisfy the requirement.
        specifier: The specifier as written (whitespace normalized), or the
            rendering of ``versions`` when it was rewritten by an override or
            constraint. Empty when any version is acceptable.
        extras: Requested extras, normalized and sorted. Carried through to
            the lockfile but not expanded into further requirements.
        marker: Environment marker source, or None when unconditional.
    """

    name: str
    versions: VersionSet
    specifier: str = ""
    extras: tuple[str, ...] = ()
    marker: str | None = None

    @classmethod
    def parse(cls, text: str) -> Requirement:
        """Parse a requirement string.

        Raises:
            InvalidRequirement: For malformed names, specifiers or markers.
        """
        if "@" in text.split(";", 1)[0]:
            raise InvalidRequirement(f"URL requirements are not supported: {text!r}")
        m = _REQUIREMENT_RE.match(text)
        if not m:
            raise InvalidRequirement(f"Invalid requirement: {text!r}")

        name = normalize_name(m.group("name"))

        extras: tuple[str, ...] = ()
        if m.group("extras") is not None:
            extras = tuple(sorted(
                normalize_name(e) for e in m.group("extras").split(",") if e.strip()
            ))

        spec = m.group("spec").strip()
        if spec.startswith("(") and spec.endswith(")"):
            spec = spec[1:-1].strip()
        try:
            versions = parse_version_set(spec)
        except InvalidRange as exc:
            raise InvalidRequirement(f"Invalid requirement {text!r}: {exc}") from exc

        marker = m.group("marker")
        if marker is not None:
            marker = marker.strip()
            if not marker:
                raise InvalidRequirement(f"Empty environment marker in {text!r}")
            marker = str(parse_marker(marker))

        return cls(
            name=name,
            versions=versions,
            specifier="" if spec in ("", "*") else _normalize_specifier(spec),
            extras=extras,
            marker=marker,
        )

    def evaluate(self, environment: TargetEnvironment) -> bool:
        """Whether this requirement applies in *environment*."""
        return environment.evaluate(self.marker)

    def with_versions(self, versions: VersionSet) -> Requirement:
        """Return a copy constrained to *versions* instead."""
        if versions == self.versions:
            return self
        return replace(
            self,
            versions=versions,
            specifier="" if versions.is_any else str(versions),
        )

    def __str__(self) -> str:
        text = self.name
        if self.extras:
            text += f"[{','.join(self.extras)}]"
        text += self.specifier
        if self.marker:
            text += f" ; {self.marker}"
        return text
