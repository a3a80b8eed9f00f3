"""
pytest plugin for replaymock.

Registered through the pytest11 entry point. It adds:

    --update            Record fixtures with real calls instead of replaying
    mock_registry       Session registry; fixture files are written when the
                        session ends
    mock_context        TestContext for the running test
    replay_mock         Factory creating mocks bound to the running test;
                        mocks left active are restored after the test

Example:
    async def test_add(replay_mock):
        add = replay_mock(calculator, "add")
        assert await calculator.add(2, 4) == 6
"""

from typing import Any, Callable, Generator

import pytest

from replaymock.config import resolve_config
from replaymock.errors import MockError
from replaymock.mock import MockedFunction, mock
from replaymock.registry import MockRegistry
from replaymock.schema import MockMode, MockOptions, TestContext

_REGISTRY_KEY = pytest.StashKey[MockRegistry]()


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("replaymock")
    group.addoption(
        "--update",
        action="store_true",
        default=False,
        help="Record mock fixtures with real calls instead of replaying them.",
    )


def pytest_configure(config: pytest.Config) -> None:
    mock_config = resolve_config(argv=[])
    if config.getoption("update"):
        mock_config = mock_config.model_copy(update={"mode": MockMode.UPDATE})
    config.stash[_REGISTRY_KEY] = MockRegistry(config=mock_config)


def pytest_unconfigure(config: pytest.Config) -> None:
    registry = config.stash.get(_REGISTRY_KEY, None)
    if registry is not None:
        registry.flush_all()


def context_from_node(node: pytest.Item) -> TestContext:
    """
    Build a TestContext from a pytest item.

    The chain covers the nodes inside the test module (classes and the test
    function). The module itself is represented by the fixture file.
    """
    names: list[str] = []
    current: Any = node
    while current is not None and not isinstance(current, (pytest.Module, pytest.Session)):
        names.insert(0, current.name)
        current = current.parent

    context: TestContext | None = None
    for name in names:
        context = TestContext(name=name, origin=node.path, parent=context)
    if context is None:
        context = TestContext(name=node.name, origin=node.path)
    return context


def restore_all(mocks: list[MockedFunction]) -> None:
    """
    Restore every mock not yet restored, newest first.

    All originals are put back before a failed check is reported.

    Raises:
        MockError: The first check that failed
    """
    errors: list[MockError] = []
    for mocked in reversed(mocks):
        if mocked.restored:
            continue
        try:
            mocked.restore()
        except MockError as e:
            errors.append(e)
    if errors:
        raise errors[0]


@pytest.fixture(scope="session")
def mock_registry(pytestconfig: pytest.Config) -> MockRegistry:
    """Registry shared by all mocks of the session."""
    return pytestconfig.stash[_REGISTRY_KEY]


@pytest.fixture
def mock_context(request: pytest.FixtureRequest) -> TestContext:
    """TestContext of the running test."""
    return context_from_node(request.node)


@pytest.fixture
def replay_mock(
    mock_context: TestContext,
    mock_registry: MockRegistry,
) -> Generator[Callable[..., MockedFunction], None, None]:
    """
    Factory for mocks bound to the running test.

    Mocks the test did not restore are restored after it, and their checks
    (no calls made, unmatched calls) fail the test.
    """
    created: list[MockedFunction] = []

    def factory(
        target: Any,
        attribute: str,
        options: MockOptions | None = None,
    ) -> MockedFunction:
        mocked = mock(mock_context, target, attribute, options, registry=mock_registry)
        created.append(mocked)
        return mocked

    yield factory

    restore_all(created)
