"""Knobs for one resolution run."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from lockwright.core.versions import Version


class ResolutionStrategy(str, Enum):
    """Which candidate version to try first."""

    HIGHEST = "highest"
    LOWEST = "lowest"
    # Lowest for the project's own requirements, highest for everything else.
    LOWEST_DIRECT = "lowest-direct"


class PrereleaseMode(str, Enum):
    """When pre-release versions are candidates."""

    IF_NECESSARY = "if-necessary"
    ALLOW = "allow"
    DISALLOW = "disallow"


@dataclass
class ResolutionSettings:
    """Settings for a ``Resolver``.

    Attributes:
        strategy: Version selection strategy.
        prerelease: Pre-release handling.
        concurrency: Maximum registry requests in flight.
        timeout: Seconds after which the run is cancelled, or None.
        preferences: Versions to try first (usually from a prior lockfile).
            They are hints only and never make a resolution fail.
    """

    strategy: ResolutionStrategy = ResolutionStrategy.HIGHEST
    prerelease: PrereleaseMode = PrereleaseMode.IF_NECESSARY
    concurrency: int = 8
    timeout: float | None = None
    preferences: dict[str, Version] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.strategy = ResolutionStrategy(self.strategy)
        self.prerelease = PrereleaseMode(self.prerelease)
        if self.concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be positive")
