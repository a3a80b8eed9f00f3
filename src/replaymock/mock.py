"""
Record and replay mocks for async functions.

mock() replaces an async method on an object with a MockedFunction. The
mock works in one of two modes, fixed when it is created:

    replay  Calls are answered from a fixture file. The real function is
            never called. A call with no recorded match fails.
    update  Calls go to the real function and are recorded. The fixture
            file is rewritten when the session ends.

Tests run in replay mode by default and in update mode with --update, so
recorded fixtures are committed next to the tests and refreshed on demand.

Example:
    async def test_fetch(mock_context):
        with mock(mock_context, client, "fetch") as fetch:
            assert await client.fetch("users") == {"count": 2}

The mock is also callable directly, so it can be passed to the code under
test instead of being reached through the patched attribute.

Methods can be mocked on an instance or on its class. A method mocked on a
class is bound like the original: the real function receives the instance,
and the stored input leaves it out.
"""

import copy
import inspect
from types import MethodType
from typing import Any, Callable
from unittest.mock import patch

from replaymock.errors import (
    AlreadyRestoredError,
    MockConflictError,
    MockRestoredError,
    NoCallsMadeError,
    UnmatchedCallsError,
)
from replaymock.naming import BREADCRUMB_SEPARATOR
from replaymock.registry import MockRegistry, MockState, default_registry
from replaymock.schema import Conversion, MockMode, MockOptions, TestContext
from replaymock.serialize import canonicalize, serialize

KWARGS_KEY = "**kwargs"


async def _resolve(value: Any) -> Any:
    """Await a value if a conversion returned an awaitable."""
    if inspect.isawaitable(value):
        return await value
    return value


def default_input(*args: Any, **kwargs: Any) -> list[Any]:
    """Stored input of a call: its positional arguments, then keywords if any."""
    if kwargs:
        return [*args, {KWARGS_KEY: kwargs}]
    return list(args)


class Stub:
    """
    Replaces an attribute on an object until restored.

    Attributes:
        target: Object holding the attribute
        attribute: Name of the replaced attribute
        original: Value of the attribute before it was replaced
    """

    def __init__(self, target: Any, attribute: str, fake: Any) -> None:
        self.target = target
        self.attribute = attribute
        self.original = getattr(target, attribute)
        self._patcher = patch.object(target, attribute, fake)
        self._patcher.start()
        self._restored = False

    @property
    def restored(self) -> bool:
        return self._restored

    def restore(self) -> None:
        self._patcher.stop()
        self._restored = True


class MockedFunction:
    """
    An async function that records or replays calls to the original.

    Attributes:
        mode: Replay or update, fixed at creation
        original: The function being mocked
        context: Test the mock belongs to
        attribute: Name of the mocked attribute
        options: Mock options
        registry: Registry that owns the mock's state
    """

    def __init__(
        self,
        context: TestContext,
        target: Any,
        attribute: str,
        options: MockOptions,
        registry: MockRegistry,
    ) -> None:
        current = getattr(target, attribute)
        if isinstance(current, MockedFunction) and not current.restored:
            raise MockConflictError(name=current.name, attribute=attribute)

        self.context = context
        self.attribute = attribute
        self.options = options
        self.registry = registry
        self.mode = registry.mode_for(options)
        self.conversion = options.conversion or Conversion()
        self._state: MockState | None = None
        self._errored = False
        # Plain functions on a class bind to instances; static and class
        # methods come out of the class already resolved.
        self._binds_instance = isinstance(target, type) and inspect.isfunction(
            inspect.getattr_static(target, attribute)
        )
        self._stub = Stub(target, attribute, self)
        self.original: Callable[..., Any] = self._stub.original

    def __get__(self, instance: Any, owner: Any = None) -> Any:
        if instance is None or not self._binds_instance:
            return self
        return MethodType(self._call_bound, instance)

    @property
    def restored(self) -> bool:
        """Whether the original function has been put back."""
        return self._stub.restored

    @property
    def name(self) -> str:
        """
        Fixture key once the mock has been called.

        Before the first call the occurrence index is not known yet, so the
        test breadcrumb and attribute are reported instead.
        """
        if self._state is not None:
            return self._state.name
        if self.options.name:
            return self.options.name
        return BREADCRUMB_SEPARATOR.join([*self.context.breadcrumb(), self.attribute])

    @property
    def calls(self) -> list[Any]:
        """Calls made through this mock, as FixtureRecords."""
        return list(self._state.calls) if self._state is not None else []

    def _load(self) -> MockState:
        if self._state is None:
            self._state = self.registry.load(
                self.context, self.original, self.attribute, self.options
            )
        return self._state

    async def _convert_input(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> list[Any]:
        convert = self.conversion.input_convert or default_input
        converted = await _resolve(convert(*args, **kwargs))
        return canonicalize(list(converted))

    async def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return await self._invoke(None, args, kwargs)

    async def _call_bound(self, instance: Any, *args: Any, **kwargs: Any) -> Any:
        return await self._invoke(instance, args, kwargs)

    async def _invoke(self, instance: Any, args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
        if self.restored:
            raise MockRestoredError(name=self.name)
        try:
            state = self._load()
            call_input = await self._convert_input(args, kwargs)
            if self.mode == MockMode.REPLAY:
                # Fixture records are shared with the store; callers get a copy.
                output = copy.deepcopy(self.registry.replay(state, call_input).output)
            else:
                call_args = args if instance is None else (instance, *args)
                result = await _resolve(self.original(*call_args, **kwargs))
                output = result
                if self.conversion.output_convert is not None:
                    output = await _resolve(self.conversion.output_convert(result))
                self.registry.update(state, call_input, canonicalize(output))
            if self.conversion.output_revert is not None:
                output = await _resolve(self.conversion.output_revert(output))
            return output
        except Exception:
            self._errored = True
            raise

    def restore(self) -> None:
        """
        Put the original function back and check the calls made.

        Raises:
            AlreadyRestoredError: If the mock was already restored
            NoCallsMadeError: If the mock was never called
            UnmatchedCallsError: In replay mode, if recorded calls were left
                unreplayed
        """
        if self.restored:
            raise AlreadyRestoredError(name=self.name)
        self._stub.restore()
        if self._errored:
            return
        if self._state is None:
            raise NoCallsMadeError(name=self.name)
        if self.mode == MockMode.REPLAY and self._state.remaining:
            raise UnmatchedCallsError(
                name=self._state.name,
                unmatched=[
                    f"{self.attribute}({serialize(record.input)})"
                    for record in self._state.remaining
                ],
            )

    def __enter__(self) -> "MockedFunction":
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        if exc_type is not None:
            # The body's exception propagates; only put the original back.
            if not self.restored:
                self._errored = True
                self._stub.restore()
            return
        self.restore()

    def __repr__(self) -> str:
        return (
            f"MockedFunction(name={self.name!r}, mode={self.mode.value!r}, "
            f"restored={self.restored})"
        )


def mock(
    context: TestContext,
    target: Any,
    attribute: str,
    options: MockOptions | None = None,
    *,
    registry: MockRegistry | None = None,
) -> MockedFunction:
    """
    Mock an async method with recorded calls.

    Args:
        context: Test the mock is created in; names its fixture key and
            locates its fixture file
        target: Object holding the method
        attribute: Name of the method
        options: Mode, naming, location and conversion overrides
        registry: Registry to use (defaults to the process registry)

    Returns:
        The installed MockedFunction. Use it as a context manager, or call
        restore() when the test is done with it.

    Raises:
        MockConflictError: If the attribute is already mocked
    """
    return MockedFunction(
        context,
        target,
        attribute,
        options or MockOptions(),
        registry if registry is not None else default_registry(),
    )
