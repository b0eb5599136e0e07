"""Tests for the PubGrub resolver on successful resolutions."""

from __future__ import annotations

import asyncio
import logging

import pytest

from lockwright.core.dependency import Requirement, ResolutionSettings, Resolver
from lockwright.core.versions import Version
from lockwright.registry import InMemoryRegistry

from tests.helpers import build_registry, linux_environment, requirements, resolve, versions_of


class TestBasicResolution:
    def test_empty_requirements(self, httpx_index) -> None:
        solution = resolve(httpx_index)
        assert len(solution) == 0
        assert solution.attempted_solutions == 1

    def test_httpx_tree_highest(self, httpx_index) -> None:
        solution = resolve(httpx_index, "httpx>=0.26")
        assert versions_of(solution) == {
            "certifi": "2024.2.2",
            "h11": "0.14.0",
            "httpcore": "1.0.5",
            "httpx": "0.27.0",
            "idna": "3.7",
            "sniffio": "1.3.1",
        }
        assert solution.unsatisfied(requirements("httpx>=0.26")) == []

    def test_solution_is_sorted_by_name(self, httpx_index) -> None:
        solution = resolve(httpx_index, "sniffio", "certifi", "idna")
        assert list(solution) == ["certifi", "idna", "sniffio"]

    def test_records_metadata(self) -> None:
        registry = InMemoryRegistry(source="registry+test")
        registry.add("a", "1.0", ["b>=1"], hashes=["sha256:" + "a" * 64])
        registry.add("b", "1.0")
        solution = resolve(registry, "a")
        assert solution["a"].source == "registry+test"
        assert solution["a"].hashes == ("sha256:" + "a" * 64,)
        assert solution["a"].dependencies == (Requirement.parse("b>=1"),)

    def test_names_are_normalized(self) -> None:
        registry = build_registry({"Foo_Bar": {"1.0": []}})
        assert versions_of(resolve(registry, "foo.bar")) == {"foo-bar": "1.0"}

    def test_self_dependency_satisfied_by_own_version(self) -> None:
        registry = build_registry({"a": {"1.0": ["a>=1"]}})
        solution = resolve(registry, "a")
        assert versions_of(solution) == {"a": "1.0"}
        assert solution.unsatisfied(requirements("a")) == []

    def test_self_dependency_excluding_own_version(self) -> None:
        registry = build_registry({"a": {"1.0": [], "2.0": ["a<2"]}})
        solution = resolve(registry, "a")
        assert versions_of(solution) == {"a": "1.0"}
        assert solution.unsatisfied(requirements("a")) == []

    def test_dependency_cycle(self) -> None:
        registry = build_registry({
            "a": {"1.0": ["b"]},
            "b": {"1.0": ["a==1.0"]},
        })
        assert versions_of(resolve(registry, "a")) == {"a": "1.0", "b": "1.0"}


class TestBacktracking:
    def test_avoids_conflict_while_deciding(self) -> None:
        registry = build_registry({
            "foo": {"1.0.0": [], "1.1.0": ["bar^2.0.0"]},
            "bar": {"1.0.0": [], "1.1.0": [], "2.0.0": []},
        })
        solution = resolve(registry, "foo^1.0.0", "bar^1.0.0")
        assert versions_of(solution) == {"foo": "1.0.0", "bar": "1.1.0"}

    def test_conflict_resolution_backjumps(self) -> None:
        registry = build_registry({
            "foo": {"1.0.0": [], "2.0.0": ["bar^1.0.0"]},
            "bar": {"1.0.0": ["foo^1.0.0"]},
        })
        solution = resolve(registry, "foo>=1.0.0")
        assert versions_of(solution) == {"foo": "1.0.0"}
        assert solution.attempted_solutions == 2

    def test_diamond_picks_compatible_versions(self) -> None:
        registry = build_registry({
            "a": {"1.0": ["shared>=1,<2"], "2.0": ["shared>=2"]},
            "b": {"1.0": ["shared<2"]},
            "shared": {"1.0": [], "1.5": [], "2.0": []},
        })
        solution = resolve(registry, "a", "b")
        assert versions_of(solution) == {"a": "1.0", "b": "1.0", "shared": "1.5"}

    def test_missing_transitive_package_is_avoided(self) -> None:
        registry = build_registry({"a": {"1.0": [], "2.0": ["ghost"]}})
        assert versions_of(resolve(registry, "a")) == {"a": "1.0"}

    def test_unavailable_metadata_is_avoided(self) -> None:
        registry = build_registry({"a": {"1.0": [], "2.0": []}})
        registry.mark_unavailable("a", "2.0", "corrupt")
        assert versions_of(resolve(registry, "a")) == {"a": "1.0"}

    def test_requires_python_is_respected(self) -> None:
        registry = InMemoryRegistry()
        registry.add("a", "1.0", requires_python=">=3.8")
        registry.add("a", "2.0", requires_python=">=3.12")
        assert versions_of(resolve(registry, "a")) == {"a": "1.0"}
        newer = linux_environment(python_full_version="3.12.2")
        assert versions_of(resolve(registry, "a", environment=newer)) == {"a": "2.0"}

    def test_unparseable_requires_python_is_ignored(self, caplog) -> None:
        registry = InMemoryRegistry()
        registry.add("a", "1.0", requires_python="three point eight")
        with caplog.at_level("WARNING", logger="lockwright"):
            assert versions_of(resolve(registry, "a")) == {"a": "1.0"}
        assert "unparseable requires-python" in caplog.text


class TestMarkers:
    def test_root_requirement_with_false_marker(self, httpx_index) -> None:
        solution = resolve(httpx_index, "idna", "certifi ; sys_platform == 'win32'")
        assert versions_of(solution) == {"idna": "3.7"}

    def test_dependency_with_false_marker(self) -> None:
        registry = build_registry({
            "a": {"1.0": ["colorama ; os_name == 'nt'", "b"]},
            "b": {"1.0": []},
        })
        solution = resolve(registry, "a")
        assert versions_of(solution) == {"a": "1.0", "b": "1.0"}
        assert len(solution["a"].dependencies) == 2
        assert solution.unsatisfied() == []

    def test_environment_selects_dependencies(self) -> None:
        registry = build_registry({
            "a": {"1.0": ["colorama ; os_name == 'nt'"]},
            "colorama": {"0.4.6": []},
        })
        windows = linux_environment(os_name="nt", sys_platform="win32")
        assert versions_of(resolve(registry, "a", environment=windows)) == {
            "a": "1.0",
            "colorama": "0.4.6",
        }


class TestOverridesAndConstraints:
    def test_override_replaces_transitive_requirement(self) -> None:
        registry = build_registry({
            "a": {"1.0": ["b<2"]},
            "b": {"1.0": [], "3.0": []},
        })
        solution = resolve(registry, "a", overrides=["b==3.0"])
        assert versions_of(solution) == {"a": "1.0", "b": "3.0"}
        assert solution.unsatisfied(overridden={"b": True}) == []
        assert solution.unsatisfied() != []

    def test_override_does_not_add_requirement(self) -> None:
        registry = build_registry({"a": {"1.0": []}, "b": {"1.0": []}})
        assert versions_of(resolve(registry, "a", overrides=["b==1.0"])) == {"a": "1.0"}

    def test_constraint_narrows(self, httpx_index) -> None:
        solution = resolve(httpx_index, "httpx", constraints=["idna<3.7", "h11<0.14"])
        assert solution["idna"].version == Version("3.6")
        assert solution["h11"].version == Version("0.13.0")

    def test_constraint_alone_adds_nothing(self, httpx_index) -> None:
        assert versions_of(resolve(httpx_index, "idna", constraints=["certifi<2024"])) == {
            "idna": "3.7"
        }


class TestDeterminism:
    def test_same_inputs_same_solution(self, httpx_index) -> None:
        first = resolve(httpx_index, "httpx")
        second = resolve(httpx_index, "httpx")
        assert versions_of(first) == versions_of(second)

    def test_concurrency_does_not_change_result(self, httpx_index) -> None:
        serial = resolve(httpx_index, "httpx", concurrency=1)
        parallel = resolve(httpx_index, "httpx", concurrency=16)
        assert versions_of(serial) == versions_of(parallel)

    def test_resolver_can_run_twice(self, httpx_index) -> None:
        resolver = Resolver(
            httpx_index, requirements("httpx"), environment=linux_environment()
        )
        first = asyncio.run(resolver.resolve())
        second = resolver.resolve_sync()
        assert first.versions() == second.versions()

    def test_each_request_made_once(self, httpx_index) -> None:
        resolve(httpx_index, "httpx")
        calls = httpx_index.calls
        assert len(calls) == len(set(calls))

    def test_metadata_prefetched_for_pending_packages(self) -> None:
        registry = build_registry({
            "a": {"1.0": ["c"]},
            "b": {"1.0": []},
            "c": {"1.0": []},
        })
        resolve(registry, "a", "b")
        calls = registry.calls
        # b's metadata is requested while a is being decided, before a's
        # dependencies are even listed.
        assert calls.index(("get_metadata", "b", "1.0")) < calls.index(("list_versions", "c"))

    def test_state_transitions_logged(self, httpx_index, caplog) -> None:
        with caplog.at_level(logging.DEBUG, logger="lockwright.core.dependency.solver"):
            resolve(httpx_index, "idna")
        messages = [r.getMessage() for r in caplog.records]
        assert "Solver searching -> propagating" in messages
        assert messages.count("Solver searching -> solved") == 1


class TestSettings:
    def test_invalid_concurrency(self) -> None:
        with pytest.raises(ValueError):
            ResolutionSettings(concurrency=0)

    def test_invalid_timeout(self) -> None:
        with pytest.raises(ValueError):
            ResolutionSettings(timeout=0)

    def test_string_values_are_coerced(self) -> None:
        settings = ResolutionSettings(strategy="lowest-direct", prerelease="allow")
        assert settings.strategy.value == "lowest-direct"
        assert settings.prerelease.value == "allow"

    def test_unknown_strategy(self) -> None:
        with pytest.raises(ValueError):
            ResolutionSettings(strategy="newest")
