"""
Fixture key and path resolution.

Every mock needs a fixture key that is the same on every run, without the
test author naming it. The key is built from the test hierarchy and the
mocked attribute:

    "test_client > fetch users > send 1"

The trailing number separates different functions mocked under the same
attribute in one test. Mocking the same function again (for example after
restoring it) reuses its number, so the key stays stable.
"""

from pathlib import Path
from typing import Any, Callable

from replaymock.config import MockConfig
from replaymock.schema import MockOptions, TestContext

BREADCRUMB_SEPARATOR = " > "


def function_identity(func: Callable[..., Any]) -> tuple[Any, Any]:
    """
    Identity of a function, stable across attribute lookups.

    Bound methods are created anew on every attribute access, so they are
    identified by their underlying function and the object they bind.
    """
    return (getattr(func, "__func__", func), getattr(func, "__self__", None))


def _same_identity(a: tuple[Any, Any], b: tuple[Any, Any]) -> bool:
    return a[0] is b[0] and a[1] is b[1]


def occurrence_index(
    identities: dict[str, list[tuple[Any, Any]]],
    breadcrumb: str,
    identity: tuple[Any, Any],
) -> int:
    """
    Number of a function under a breadcrumb, starting from 1.

    Functions already seen under the breadcrumb keep their number; a new
    function gets the next one.
    """
    seen = identities.setdefault(breadcrumb, [])
    for index, other in enumerate(seen, start=1):
        if _same_identity(other, identity):
            return index
    seen.append(identity)
    return len(seen)


def resolve_name(
    context: TestContext,
    attribute: str,
    func: Callable[..., Any],
    options: MockOptions,
    identities: dict[str, list[tuple[Any, Any]]],
) -> str:
    """
    Fixture key for a mock.

    Args:
        context: Test the mock was created in
        attribute: Name of the mocked attribute
        func: The original function being mocked
        options: Mock options; options.name is used verbatim if set
        identities: Identity table of the fixture store

    Returns:
        The fixture key
    """
    if options.name:
        return options.name
    breadcrumb = BREADCRUMB_SEPARATOR.join([*context.breadcrumb(), attribute])
    index = occurrence_index(identities, breadcrumb, function_identity(func))
    return f"{breadcrumb} {index}"


def resolve_path(
    context: TestContext,
    options: MockOptions,
    config: MockConfig,
) -> Path:
    """
    Fixture file path for a mock.

    Relative paths are resolved against the directory of the test file.
    An explicit options.path wins over options.dir, which wins over the
    configured mocks directory.
    """
    test_file = Path(context.origin)
    base = test_file.parent
    if options.path:
        return (base / options.path).resolve()
    directory = options.dir or config.mocks_dir
    return (base / directory / f"{test_file.name}{config.suffix}").resolve()
