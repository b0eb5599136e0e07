"""Version & constraint model.

Pure value types: ``Version`` (total order), ``Range`` and ``VersionSet``
(set algebra over versions) and the specifier grammar that produces them.
Nothing in this package performs I/O.
"""

from lockwright.core.versions.ranges import Range, VersionSet
from lockwright.core.versions.specifiers import parse_version_set
from lockwright.core.versions.version import Version

__all__ = [
    "Range",
    "Version",
    "VersionSet",
    "parse_version_set",
]
