"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from macup.adapters.mock import MockBackend
from macup.adapters.registry import BackendRegistry
from macup.core.models.section import Section


@pytest.fixture
def registry() -> BackendRegistry:
    """An empty registry; tests register the mocks they need."""
    return BackendRegistry()


@pytest.fixture
def brew() -> MockBackend:
    return MockBackend(backend_name="brew")


@pytest.fixture
def write_config(tmp_path: Path):
    """Write a macup.yml into tmp_path and return its path."""

    def _write(content: str) -> Path:
        path = tmp_path / "macup.yml"
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_section():
    """Build a Section whose backend defaults to its name."""

    def _make(
        name: str,
        items: list[str] | None = None,
        backend: str | None = None,
        depends_on: list[str] | None = None,
    ) -> Section:
        return Section(
            name=name,
            backend=backend or name,
            items=items or [],
            depends_on=depends_on or [],
        )

    return _make
