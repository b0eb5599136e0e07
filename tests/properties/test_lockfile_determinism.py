"""Property-based tests for lockfile determinism and round-trip fidelity.

Verifies that lockfile serialization is:
- Deterministic: the same packages give the same JSON whatever the order
  they were added in.
- Round-trip safe: to_json -> from_json -> to_json is the identity.
- Reusable: a lockfile rebuilt into a Solution writes the same file again.
"""
from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st

from lockwright.core.lockfile import LockedDependency, LockedPackage, Lockfile, LockfileMetadata


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

package_names = st.text(
    alphabet=st.sampled_from("abcdefghijklmnopqrstuvwxyz-"),
    min_size=3,
    max_size=20,
).filter(lambda s: not s.startswith("-") and not s.endswith("-") and "--" not in s)

versions = st.from_regex(r"(0|[1-9][0-9]?)\.(0|[1-9][0-9]?)\.(0|[1-9][0-9]?)", fullmatch=True)

hashes = st.from_regex(r"sha256:[0-9a-f]{64}", fullmatch=True)

dependencies = st.builds(
    LockedDependency,
    name=package_names,
    specifier=st.sampled_from(["", ">=1.0", "<2", "==1.*", ">=1.0,<2.0"]),
    marker=st.sampled_from([None, 'sys_platform == "win32"', 'python_version < "3.12"']),
)

locked_packages = st.builds(
    LockedPackage,
    name=package_names,
    version=versions,
    source=st.sampled_from(["registry+memory", "registry+https://pypi.org/pypi"]),
    dependencies=st.lists(dependencies, max_size=4),
    hashes=st.lists(hashes, max_size=3, unique=True),
)

package_lists = st.lists(locked_packages, min_size=1, max_size=8, unique_by=lambda p: p.name)

ENVIRONMENT = {"python_full_version": "3.11.4", "sys_platform": "linux"}


def _lockfile(packages: list[LockedPackage]) -> Lockfile:
    lf = Lockfile(LockfileMetadata(environment=dict(ENVIRONMENT)))
    for package in packages:
        lf.add_package(package)
    return lf


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


@given(packages=package_lists, order=st.randoms())
@settings(max_examples=60)
def test_insertion_order_irrelevant(packages: list[LockedPackage], order) -> None:
    shuffled = list(packages)
    order.shuffle(shuffled)
    assert _lockfile(packages).to_json() == _lockfile(shuffled).to_json()


@given(packages=package_lists)
@settings(max_examples=60)
def test_json_round_trip(packages: list[LockedPackage]) -> None:
    text = _lockfile(packages).to_json()
    assert Lockfile.from_json(text).to_json() == text


@given(packages=package_lists)
@settings(max_examples=60)
def test_no_timestamp_by_default(packages: list[LockedPackage]) -> None:
    assert "generated-at" not in _lockfile(packages).to_json()


@given(packages=package_lists)
@settings(max_examples=40)
def test_rebuilt_solution_writes_same_file(packages: list[LockedPackage]) -> None:
    lf = _lockfile(packages)
    again = Lockfile.from_solution(lf.to_solution())
    assert again.to_dict()["package"] == lf.to_dict()["package"]
