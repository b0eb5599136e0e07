"""Lockfile: reproducible, reviewable resolution results.

This package implements the ``lockwright.lock`` format. The lockfile captures
the exact resolved state of a project: every package at its resolved
version, with its source, declared dependencies and artifact hashes, plus
the settings, environment and manifest the resolution ran with.

The package is split into focused submodules:

- ``models``: Data classes (``LockedPackage``, ``LockedDependency``,
  ``LockfileMetadata``).
- ``lockfile``: The ``Lockfile`` class with package management and
  serialization.
- ``operations``: Deserialization (``from_dict``, ``from_json``, ``read``),
  validation, diffing and reuse (``to_solution``, ``preferences``,
  ``is_fresh``).
- ``factory``: The ``from_solution`` factory method for constructing
  lockfiles from resolver output.
"""

# Re-export data models
from lockwright.core.lockfile.models import (
    RECORDED_ENVIRONMENT,
    LockedDependency,
    LockedPackage,
    LockfileMetadata,
)

# Re-export the Lockfile class
from lockwright.core.lockfile.lockfile import LOCKFILE_NAME, Lockfile

# Attach operations to Lockfile as methods/classmethods
from lockwright.core.lockfile import operations as _ops
from lockwright.core.lockfile import factory as _factory
from lockwright.core.lockfile.factory import manifest_record

Lockfile.from_dict = classmethod(_ops._from_dict)
Lockfile.from_json = classmethod(_ops._from_json)
Lockfile.read = classmethod(_ops._read)
Lockfile.validate = _ops._validate
Lockfile.diff = _ops._diff
Lockfile.preferences = _ops._preferences
Lockfile.to_solution = _ops._to_solution
Lockfile.is_fresh = _ops._is_fresh
Lockfile.from_solution = classmethod(_factory._from_solution)

__all__ = [
    "LOCKFILE_NAME",
    "LockedDependency",
    "LockedPackage",
    "Lockfile",
    "LockfileMetadata",
    "RECORDED_ENVIRONMENT",
    "manifest_record",
]
