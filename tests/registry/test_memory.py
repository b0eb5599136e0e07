"""Tests for the in-memory registry and its YAML index format."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from lockwright.core.versions import Version
from lockwright.exceptions import ConfigError, MetadataUnavailable, PackageNotFound
from lockwright.registry import InMemoryRegistry, open_registry


INDEX_YAML = """\
source: registry+file:///srv/index
packages:
  httpx:
    "0.27.0":
      requires: ["certifi", "httpcore==1.*"]
      requires-python: ">=3.8"
      hashes: ["sha256:{digest}"]
  certifi:
    "2024.2.2": {{}}
  httpcore:
    "1.0.5":
""".format(digest="c" * 64)


class TestPopulation:
    def test_add_normalizes_name(self) -> None:
        registry = InMemoryRegistry()
        metadata = registry.add("Typing_Extensions", "4.12.2")
        assert metadata.name == "typing-extensions"
        versions = asyncio.run(registry.list_versions("typing-extensions"))
        assert versions == [Version("4.12.2")]

    def test_add_parses_requirements(self) -> None:
        registry = InMemoryRegistry()
        metadata = registry.add("httpx", "0.27.0", ["idna", "sniffio>=1 ; python_version >= '3.7'"])
        assert [str(r) for r in metadata.requirements] == [
            "idna",
            'sniffio>=1 ; python_version >= "3.7"',
        ]
        assert metadata.source == "registry+memory"

    def test_hashes_sorted(self) -> None:
        registry = InMemoryRegistry()
        metadata = registry.add("idna", "3.7", hashes=["sha256:" + "b" * 64, "sha256:" + "a" * 64])
        assert metadata.hashes[0].endswith("a" * 64)

    def test_get_dependencies(self) -> None:
        registry = InMemoryRegistry()
        registry.add("httpcore", "1.0.5", ["certifi", "h11>=0.13,<0.15"])
        deps = asyncio.run(registry.get_dependencies("httpcore", Version("1.0.5")))
        assert [d.name for d in deps] == ["certifi", "h11"]


class TestErrors:
    def test_unknown_package(self) -> None:
        with pytest.raises(PackageNotFound) as exc_info:
            asyncio.run(InMemoryRegistry().list_versions("ghost"))
        assert exc_info.value.name == "ghost"

    def test_unpublished_version(self) -> None:
        registry = InMemoryRegistry()
        registry.add("idna", "3.7")
        with pytest.raises(MetadataUnavailable, match="not published"):
            asyncio.run(registry.get_metadata("idna", Version("9.9")))

    def test_marked_unavailable(self) -> None:
        registry = InMemoryRegistry()
        registry.add("idna", "3.7")
        registry.mark_unavailable("idna", "3.7", "corrupt METADATA")
        with pytest.raises(MetadataUnavailable, match="corrupt METADATA"):
            asyncio.run(registry.get_metadata("idna", Version("3.7")))

    def test_calls_recorded(self) -> None:
        registry = InMemoryRegistry()
        registry.add("idna", "3.7")
        asyncio.run(registry.list_versions("idna"))
        asyncio.run(registry.get_metadata("idna", Version("3.7")))
        assert registry.calls == [("list_versions", "idna"), ("get_metadata", "idna", "3.7")]


class TestIndexFiles:
    def test_from_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "index.yaml"
        path.write_text(INDEX_YAML)
        registry = InMemoryRegistry.from_yaml(path)
        metadata = asyncio.run(registry.get_metadata("httpx", Version("0.27.0")))
        assert metadata.source == "registry+file:///srv/index"
        assert metadata.requires_python == ">=3.8"
        assert metadata.hashes == ("sha256:" + "c" * 64,)
        assert asyncio.run(registry.list_versions("httpcore")) == [Version("1.0.5")]

    def test_open_registry_picks_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "index.yml"
        path.write_text(INDEX_YAML)
        assert isinstance(open_registry(str(path)), InMemoryRegistry)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Cannot read registry index"):
            InMemoryRegistry.from_yaml(tmp_path / "missing.yaml")

    def test_unquoted_version_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "index.yaml"
        path.write_text("packages:\n  a:\n    1.10: {}\n")
        with pytest.raises(ConfigError, match="quote it in YAML"):
            InMemoryRegistry.from_yaml(path)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "index.yaml"
        path.write_text("packages: [unclosed")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            InMemoryRegistry.from_yaml(path)

    @pytest.mark.parametrize(
        "document, message",
        [
            (["not", "a", "mapping"], "must be a mapping"),
            ({"packages": ["idna"]}, "'packages'"),
            ({"packages": {"idna": ["3.7"]}}, "Releases of 'idna'"),
            ({"packages": {"idna": {"3.7": "oops"}}}, "Entry for idna 3.7"),
            ({"packages": {"idna": {"three": {}}}}, "Invalid registry entry"),
            ({"packages": {"a": {"1.0": {"requires": ["b>="]}}}}, "Invalid registry entry"),
            ({"packages": {"a": {1.1: {}}}}, "Version 1.1 of a must be a string"),
            ({"packages": {"a": {2: {}}}}, "Version 2 of a must be a string"),
        ],
    )
    def test_malformed_documents(self, document, message: str) -> None:
        with pytest.raises(ConfigError, match=message):
            InMemoryRegistry.from_dict(document)
