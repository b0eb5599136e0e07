"""Shared fixtures for CLI tests.

Provides a YAML registry index on disk and helpers for writing a
``lockwright.yaml`` manifest that resolves against it, so every command
runs offline.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml
from click.testing import CliRunner

HASH = "sha256:" + "d" * 64

INDEX: dict[str, Any] = {
    "source": "registry+file:///srv/index",
    "packages": {
        "httpx": {
            "0.26.0": {"requires": ["certifi", "httpcore==1.*", "idna", "sniffio"]},
            "0.27.0": {
                "requires": ["certifi", "httpcore==1.*", "idna", "sniffio"],
                "requires-python": ">=3.8",
                "hashes": [HASH],
            },
        },
        "httpcore": {
            "1.0.0": {"requires": ["certifi", "h11>=0.13,<0.15"]},
            "1.0.5": {"requires": ["certifi", "h11>=0.13,<0.15"]},
        },
        "h11": {"0.13.0": {}, "0.14.0": {}},
        "certifi": {"2023.7.22": {}, "2024.2.2": {}},
        "idna": {"3.4": {}, "3.6": {}},
        "sniffio": {"1.3.0": {}, "1.3.1": {}},
    },
}


def write_index(path: Path, data: dict[str, Any] = INDEX) -> Path:
    path.write_text(yaml.safe_dump(data, sort_keys=False))
    return path


def write_manifest(project_dir: Path, **data: Any) -> Path:
    """Write ``lockwright.yaml`` with a fixed Linux target environment."""
    data.setdefault("environment", {
        "python_full_version": "3.11.4",
        "sys_platform": "linux",
        "os_name": "posix",
    })
    path = project_dir / "lockwright.yaml"
    path.write_text(yaml.safe_dump(data, sort_keys=False))
    return path


@pytest.fixture
def runner() -> CliRunner:
    """Create a Click CliRunner for invoking commands."""
    return CliRunner()


@pytest.fixture
def index_file(tmp_path: Path) -> Path:
    """A YAML registry index with the httpx dependency tree."""
    return write_index(tmp_path / "index.yaml")


@pytest.fixture
def httpx_project(project_dir: Path, index_file: Path) -> Path:
    """A project that depends on httpx, resolved against ``index_file``."""
    write_manifest(
        project_dir,
        name="demo",
        dependencies=["httpx"],
        index=str(index_file),
    )
    return project_dir
