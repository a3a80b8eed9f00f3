"""
Schema definitions for replaymock.

This module defines the data types shared by the harness:
- MockMode: Whether calls are replayed from fixtures or recorded
- FixtureRecord: One recorded call, as stored in a fixture file
- Conversion/MockOptions: Per-mock behavior supplied by the caller
- TestContext: The test hierarchy a mock is created in

Design Decisions:
    - Records are pydantic models so fixture files are validated on load
    - Options hold callables, so they are plain dataclasses
    - Records are immutable (frozen=True); only the in-memory queues change
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


# =============================================================================
# Enums
# =============================================================================


class MockMode(str, Enum):
    """Mode of a mock."""

    REPLAY = "replay"
    UPDATE = "update"


# =============================================================================
# Fixture Models
# =============================================================================


class FixtureRecord(BaseModel):
    """
    A single recorded call.

    Attributes:
        input: Converted call arguments, as JSON values
        output: Converted return value, as a JSON value
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    input: list[Any] = Field(
        default_factory=list,
        description="Converted call arguments",
    )
    output: Any = Field(
        default=None,
        description="Converted return value",
    )


# Fixture files hold one mapping from fixture key to recorded calls.
FixtureMapping = dict[str, list[FixtureRecord]]

fixture_mapping_adapter: TypeAdapter[FixtureMapping] = TypeAdapter(FixtureMapping)


# =============================================================================
# Options
# =============================================================================


@dataclass
class Conversion:
    """
    Conversions applied around the mocked function.

    Each function may be sync or async. Conversions must not consume values
    the real function still needs; clone streamed values before reading them.

    Attributes:
        input_convert: Maps call arguments to the stored input list
        output_convert: Maps the real return value to the stored output
        output_revert: Maps a stored output back to what the caller receives
    """

    input_convert: Callable[..., Any] | None = None
    output_convert: Callable[[Any], Any] | None = None
    output_revert: Callable[[Any], Any] | None = None


@dataclass
class MockOptions:
    """
    Options for a single mock.

    Attributes:
        dir: Fixture directory, relative to the test file's directory.
            Ignored when path is given.
        mode: Overrides the configured mode for this mock
        name: Fixture key to use instead of the generated one
        path: Fixture file path, relative to the test file's directory
        conversion: Input and output conversions
    """

    dir: str | None = None
    mode: MockMode | None = None
    name: str | None = None
    path: str | Path | None = None
    conversion: Conversion | None = None


# =============================================================================
# Test Context
# =============================================================================


@dataclass
class TestContext:
    """
    A node in the test hierarchy.

    Attributes:
        name: Name of this test or step
        origin: Path of the test file
        parent: Enclosing test, or None for a top-level test
    """

    __test__ = False

    name: str
    origin: Path
    parent: TestContext | None = None

    def step(self, name: str) -> TestContext:
        """Create a child context for a nested step."""
        return TestContext(name=name, origin=self.origin, parent=self)

    def breadcrumb(self) -> list[str]:
        """Names from the outermost test down to this one."""
        names = [self.name]
        node = self.parent
        while node is not None:
            names.insert(0, node.name)
            node = node.parent
        return names
