"""
replaymock - Record and replay async calls in tests.

Tests mock an async method once. Run with --update, the mock calls the real
method and records every call into a fixture file next to the test. Run
normally, the mock answers from the fixture file and never calls the real
method, failing on any call that was not recorded and on any recorded call
that was not made.

Example usage:
    $ pytest --update        # record fixtures
    $ pytest                 # replay them
    $ replaymock show tests/__mocks__/test_client.py.mock.json
"""

__version__ = "0.1.0"
__author__ = "replaymock Contributors"

from replaymock.errors import (
    FixtureNotFoundError,
    FixturePermissionError,
    MockError,
    ReplayMockError,
)
from replaymock.mock import MockedFunction, mock
from replaymock.registry import MockRegistry, default_registry
from replaymock.schema import Conversion, FixtureRecord, MockMode, MockOptions, TestContext

__all__ = [
    "__version__",
    "__author__",
    "Conversion",
    "FixtureNotFoundError",
    "FixturePermissionError",
    "FixtureRecord",
    "MockError",
    "MockMode",
    "MockOptions",
    "MockRegistry",
    "MockedFunction",
    "ReplayMockError",
    "TestContext",
    "default_registry",
    "mock",
]
