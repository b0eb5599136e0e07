"""Lockwright exception hierarchy.

All public exceptions inherit from LockwrightError, giving callers a single
base class to catch when they want to handle any Lockwright-specific failure
without swallowing unrelated errors.

Only registry transport failures and cancellation escape a resolution run as
distinct terminal errors. Everything else that goes wrong while solving is
turned into an incompatibility and reported through ``ResolutionFailed``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lockwright.core.dependency.incompatibility import Incompatibility


class LockwrightError(Exception):
    """Base exception for all Lockwright errors."""


class InvalidVersion(LockwrightError, ValueError):
    """Raised when a version string cannot be parsed."""


class InvalidRange(LockwrightError, ValueError):
    """Raised when a version specifier cannot be parsed into a version set."""


class InvalidRequirement(LockwrightError, ValueError):
    """Raised when a requirement string is malformed.

    Covers invalid package names, unbalanced extras brackets and
    environment markers that ``packaging`` refuses to parse.
    """


class EmptyIntersection(LockwrightError):
    """Raised when a constraint narrows a requirement to the empty set.

    The resolver converts this into an incompatibility, so it surfaces to
    users as an ordinary conflict rather than as a separate failure.
    """

    def __init__(self, requirement: object, constraint: object) -> None:
        self.requirement = requirement
        self.constraint = constraint
        super().__init__(
            f"constraint {constraint} leaves no versions for requirement {requirement}"
        )


class RegistryError(LockwrightError):
    """Raised when the package registry cannot be reached or misbehaves.

    Transport-level failures are fatal for a resolution run; the resolver
    never retries them itself.
    """


class PackageNotFound(RegistryError):
    """Raised when the registry has no record of a package."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"package {name!r} was not found in the registry")


class MetadataUnavailable(RegistryError):
    """Raised when metadata for one version of a package cannot be retrieved."""

    def __init__(self, name: str, version: object, reason: str = "") -> None:
        self.name = name
        self.version = version
        self.reason = reason
        message = f"metadata for {name} {version} is unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ResolutionFailed(LockwrightError):
    """Raised when the root requirements cannot be satisfied.

    Carries the terminal incompatibility, whose cause chain is the full
    derivation of the failure, and a rendered human-readable explanation.
    """

    def __init__(self, incompatibility: Incompatibility, explanation: str) -> None:
        self.incompatibility = incompatibility
        self.explanation = explanation
        super().__init__(explanation)

    @property
    def packages(self) -> set[str]:
        """Names of every package mentioned in the derivation chain."""
        return self.incompatibility.packages_in_derivation()


class Cancelled(LockwrightError):
    """Raised when a resolution run is aborted from outside or times out."""


class LockfileError(LockwrightError):
    """Raised for lockfile parsing or consistency failures."""


class ConfigError(LockwrightError):
    """Raised when a project manifest or CLI configuration is invalid."""
