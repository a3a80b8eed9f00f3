"""
Pytest configuration and fixtures for replaymock tests.

This module provides shared fixtures used across unit and integration
tests. Async code under test is driven with asyncio.run.
"""

import asyncio
import io
import json
import tempfile
from pathlib import Path
from typing import Any, Callable, Generator

import pytest
from rich.console import Console

from replaymock.config import MockConfig
from replaymock.permissions import PermissionQuery
from replaymock.registry import MockRegistry
from replaymock.schema import MockMode, TestContext


class Adder:
    """Object with an async method to mock; counts real calls."""

    def __init__(self) -> None:
        self.real_calls = 0

    async def add(self, a: int, b: int) -> int:
        self.real_calls += 1
        await asyncio.sleep(0)
        return a + b

    async def fail(self) -> None:
        self.real_calls += 1
        await asyncio.sleep(0)
        raise ValueError("boom")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def ctx(temp_dir: Path) -> TestContext:
    """A top-level test context whose test file lives in temp_dir."""
    return TestContext(name="t", origin=temp_dir / "test_sample.py")


@pytest.fixture
def fixture_path(temp_dir: Path) -> Path:
    """Default fixture file path for ctx."""
    return temp_dir / "__mocks__" / "test_sample.py.mock.json"


@pytest.fixture
def write_fixtures(fixture_path: Path) -> Callable[[dict[str, Any]], Path]:
    """Write a fixture mapping to the default fixture file path."""

    def write(mapping: dict[str, Any]) -> Path:
        fixture_path.parent.mkdir(parents=True, exist_ok=True)
        fixture_path.write_text(json.dumps(mapping), encoding="utf-8")
        return fixture_path

    return write


@pytest.fixture
def output() -> io.StringIO:
    """Buffer capturing registry console output."""
    return io.StringIO()


@pytest.fixture
def make_registry(output: io.StringIO) -> Callable[..., MockRegistry]:
    """Create registries with a given default mode and captured output."""

    def make(
        mode: MockMode = MockMode.REPLAY,
        permissions: PermissionQuery | None = None,
    ) -> MockRegistry:
        return MockRegistry(
            config=MockConfig(mode=mode),
            console=Console(file=output, width=200, color_system=None),
            permissions=permissions,
        )

    return make


@pytest.fixture
def adder() -> Adder:
    """A fresh Adder."""
    return Adder()
