"""Shared fixtures for lockwright tests."""

import logging
import pathlib

import pytest

from lockwright.core.dependency import TargetEnvironment

from .helpers import build_registry, linux_environment


@pytest.fixture
def environment() -> TargetEnvironment:
    """A fixed Linux / CPython 3.11 target, independent of the test runner."""
    return linux_environment()


@pytest.fixture
def httpx_index():
    """The httpx dependency tree at a handful of published versions."""
    return build_registry({
        "httpx": {
            "0.26.0": ["certifi", "httpcore==1.*", "idna", "sniffio"],
            "0.27.0": ["certifi", "httpcore==1.*", "idna", "sniffio"],
        },
        "httpcore": {
            "1.0.0": ["certifi", "h11>=0.13,<0.15"],
            "1.0.5": ["certifi", "h11>=0.13,<0.15"],
        },
        "h11": {"0.13.0": [], "0.14.0": []},
        "certifi": {"2023.7.22": [], "2024.2.2": []},
        "idna": {"3.4": [], "3.6": [], "3.7": []},
        "sniffio": {"1.3.0": [], "1.3.1": []},
    })


@pytest.fixture
def project_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """Create a temporary directory for a project manifest."""
    directory = tmp_path / "project"
    directory.mkdir()
    return directory


@pytest.fixture(autouse=True)
def _reset_lockwright_logger():
    """Undo ``configure_logging`` so caplog sees records in every test."""
    yield
    logger = logging.getLogger("lockwright")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
