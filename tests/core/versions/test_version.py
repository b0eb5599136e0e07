"""Tests for Version parsing and ordering."""

from __future__ import annotations

import pytest

from lockwright.core.versions import Version
from lockwright.core.versions.version import bump_release, release_floor
from lockwright.exceptions import InvalidVersion


class TestParsing:
    def test_normalizes_spelling(self) -> None:
        assert str(Version("1.0.0-ALPHA1")) == "1.0.0a1"
        assert Version("1.0.0-ALPHA1") == Version("1.0.0a1")

    def test_epoch_and_local(self) -> None:
        v = Version("2!1.4+ubuntu.1")
        assert v.epoch == 2
        assert v.release == (1, 4)
        assert v.local == "ubuntu.1"
        assert v.public == "2!1.4"

    @pytest.mark.parametrize("text", ["", "not-a-version", "1.0-", "1..0"])
    def test_invalid(self, text: str) -> None:
        with pytest.raises(InvalidVersion):
            Version(text)

    def test_non_string_rejected(self) -> None:
        with pytest.raises(InvalidVersion):
            Version(1.0)  # type: ignore[arg-type]

    def test_invalid_version_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            Version("nope")

    def test_parse_passes_instances_through(self) -> None:
        v = Version("1.2")
        assert Version.parse(v) is v
        assert Version.parse("1.2") == v


class TestOrdering:
    def test_trailing_zeros_are_insignificant(self) -> None:
        assert Version("1.0") == Version("1.0.0")
        assert hash(Version("1")) == hash(Version("1.0.0"))

    def test_release_precedence(self) -> None:
        ordered = ["1.0.dev0", "1.0a1", "1.0b2", "1.0rc1", "1.0", "1.0.post1", "1.1"]
        versions = [Version(v) for v in ordered]
        assert sorted(reversed(versions)) == versions

    def test_dev_of_prerelease_sorts_before_it(self) -> None:
        assert Version("1.0a1.dev0") < Version("1.0a1")

    def test_post_dev_sorts_between_final_and_post(self) -> None:
        assert Version("1.0") < Version("1.0.post1.dev0") < Version("1.0.post1")

    def test_numeric_not_lexicographic(self) -> None:
        assert Version("1.10") > Version("1.9")

    def test_epoch_dominates(self) -> None:
        assert Version("1!0.1") > Version("2024.1")

    def test_local_sorts_below_public(self) -> None:
        assert Version("1.0+abc") < Version("1.0")
        assert Version("1.0+abc") > Version("1.0rc1")

    def test_local_segments_compare_numerically(self) -> None:
        assert Version("1.0+2") < Version("1.0+10")
        assert Version("1.0+abc") < Version("1.0+1")

    def test_total_order_operators(self) -> None:
        a, b = Version("1.0"), Version("2.0")
        assert a < b and a <= b and b > a and b >= a and a != b

    def test_not_comparable_with_strings(self) -> None:
        assert Version("1.0") != "1.0"
        with pytest.raises(TypeError):
            Version("1.0") < "2.0"  # noqa: B015

    def test_is_prerelease(self) -> None:
        assert Version("1.0rc1").is_prerelease
        assert Version("1.0.dev3").is_prerelease
        assert not Version("1.0.post1").is_prerelease


class TestHelpers:
    def test_release_floor(self) -> None:
        assert release_floor(0, (1, 2)) == Version("1.2.dev0")
        assert release_floor(1, (3,)) == Version("1!3.dev0")

    def test_release_floor_is_below_prereleases(self) -> None:
        floor = release_floor(0, (2,))
        assert floor < Version("2.0a1") < Version("2.0")
        assert floor > Version("1.99.post5")

    def test_bump_release(self) -> None:
        assert bump_release((1, 2)) == (1, 3)
        assert bump_release((0,)) == (1,)

    def test_bump_empty_release(self) -> None:
        with pytest.raises(InvalidVersion):
            bump_release(())
