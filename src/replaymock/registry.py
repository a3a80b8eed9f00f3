"""
Mock registry for replaymock.

The MockRegistry owns every fixture store and mock state of a test session.
Mocks created during the session load their recorded calls through it, and
the registry writes all updated fixture files once, when the session ends.
Writing at the end lets many tests share one fixture file and lets the
registry drop records of tests that no longer exist.

Ownership:
    The pytest plugin creates one registry per session and flushes it from
    pytest_unconfigure. Code outside pytest uses default_registry(), which
    is created on first use and flushed by a single atexit hook.

Example:
    registry = MockRegistry()
    mocked = mock(context, client, "send", registry=registry)
    ...
    report = registry.flush_all()
"""

import atexit
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from rich.console import Console
from rich.markup import escape

from replaymock.config import MockConfig, resolve_config
from replaymock.errors import NoMatchingCallError
from replaymock.naming import resolve_name, resolve_path
from replaymock.permissions import FilesystemPermissions, PermissionQuery, require_write
from replaymock.schema import FixtureRecord, MockMode, MockOptions, TestContext
from replaymock.serialize import serialize
from replaymock.store import FixtureStoreLoader, render_fixtures, write_atomic


# =============================================================================
# State
# =============================================================================


@dataclass
class MockState:
    """
    Calls of one fixture key during this run.

    Attributes:
        name: Fixture key
        path: Fixture file the key belongs to
        mode: Mode of the mock that owns this state
        recorded: Calls stored in the fixture file at load time
        remaining: Recorded calls not yet replayed
        calls: Calls made during this run
    """

    name: str
    path: Path
    mode: MockMode
    recorded: list[FixtureRecord] = field(default_factory=list)
    remaining: list[FixtureRecord] = field(default_factory=list)
    calls: list[FixtureRecord] = field(default_factory=list)

    def final_records(self) -> list[FixtureRecord]:
        """Records to write for this key when its fixture file is rewritten."""
        if self.mode == MockMode.UPDATE:
            return list(self.calls)
        return list(self.recorded)


@dataclass
class FlushReport:
    """
    Outcome of writing fixture files.

    Attributes:
        written: Fixture files that were rewritten
        added: Keys that did not exist before
        changed: Keys whose records changed
        removed: Keys dropped because no test used them
    """

    written: list[Path] = field(default_factory=list)
    added: list[str] = field(default_factory=list)
    changed: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    @property
    def updated(self) -> list[str]:
        """Keys that were added or changed."""
        return [*self.added, *self.changed]


# =============================================================================
# Registry
# =============================================================================


class MockRegistry:
    """
    Owns fixture stores and mock states for a test session.

    Attributes:
        config: Session configuration (default mode, fixture locations)
        console: Rich console for the flush summary
        permissions: Write permission query used before recording
    """

    def __init__(
        self,
        config: MockConfig | None = None,
        console: Console | None = None,
        permissions: PermissionQuery | None = None,
    ) -> None:
        self.config = config if config is not None else MockConfig()
        self.console = console if console is not None else Console()
        self.permissions = permissions if permissions is not None else FilesystemPermissions()
        self._loader = FixtureStoreLoader()
        self._states: dict[Path, dict[str, MockState]] = {}
        self._flushed = False

    def mode_for(self, options: MockOptions) -> MockMode:
        """Mode of a mock: its own option, else the session default."""
        return options.mode if options.mode is not None else self.config.mode

    def states(self) -> list[MockState]:
        """All mock states, grouped by fixture file."""
        return [state for by_name in self._states.values() for state in by_name.values()]

    def load(
        self,
        context: TestContext,
        func: Callable[..., Any],
        attribute: str,
        options: MockOptions,
    ) -> MockState:
        """
        Create the state for a mock, loading its fixture file if needed.

        A state loaded again under the same key replaces the previous one;
        the new state starts from the records in the file.

        Args:
            context: Test the mock belongs to
            func: Original function being mocked
            attribute: Name of the mocked attribute
            options: Mock options

        Returns:
            A fresh MockState

        Raises:
            FixtureNotFoundError: If the fixture file is missing in replay mode
            FixturePermissionError: If the fixture file cannot be written in
                update mode
        """
        mode = self.mode_for(options)
        path = resolve_path(context, options, self.config)
        if mode == MockMode.UPDATE:
            require_write(self.permissions, path)
        store = self._loader.load(path, mode)
        name = resolve_name(context, attribute, func, options, store.identities)
        recorded = store.get(name)
        state = MockState(
            name=name,
            path=path,
            mode=mode,
            recorded=recorded,
            remaining=list(recorded),
        )
        self._states.setdefault(path, {})[name] = state
        return state

    def replay(self, state: MockState, call_input: list[Any]) -> FixtureRecord:
        """
        Take the first remaining record whose input matches.

        The search and removal run without yielding to the event loop, so
        concurrent calls cannot take the same record.

        Raises:
            NoMatchingCallError: If no remaining record matches the input
        """
        signature = serialize(call_input)
        for index, record in enumerate(state.remaining):
            if serialize(record.input) == signature:
                del state.remaining[index]
                state.calls.append(record)
                return record
        raise NoMatchingCallError(name=state.name, input=signature)

    def update(self, state: MockState, call_input: list[Any], output: Any) -> FixtureRecord:
        """Append a call made against the real function."""
        record = FixtureRecord(input=call_input, output=output)
        state.calls.append(record)
        return record

    def flush_all(self) -> FlushReport:
        """
        Rewrite every fixture file that has a mock in update mode.

        Each file is regenerated from the mocks used this run. Keys in the
        old file that no mock used are dropped. Runs once; later calls
        return an empty report.

        Returns:
            FlushReport listing written files and added, changed and
            removed keys

        Raises:
            FixturePermissionError: If a fixture file cannot be written
        """
        report = FlushReport()
        if self._flushed:
            return report
        self._flushed = True

        for path, by_name in self._states.items():
            if not any(state.mode == MockMode.UPDATE for state in by_name.values()):
                continue
            require_write(self.permissions, path)
            store = self._loader.load(path, MockMode.UPDATE)

            records = {name: state.final_records() for name, state in sorted(by_name.items())}
            for name, calls in records.items():
                if name not in store.records:
                    report.added.append(name)
                elif _records_text(store.records[name]) != _records_text(calls):
                    report.changed.append(name)
            report.removed.extend(name for name in store.records if name not in by_name)

            write_atomic(path, render_fixtures(records))
            report.written.append(path)

        self._print_report(report)
        return report

    # Alias matching the lifecycle name used by test runner integrations.
    teardown = flush_all

    def _print_report(self, report: FlushReport) -> None:
        updated = report.updated
        if updated:
            noun = "mock" if len(updated) == 1 else "mocks"
            self.console.print(f"\n[bold green] > {len(updated)} {noun} updated.[/bold green]")
            for name in updated:
                self.console.print(f"[green]   • {escape(name)}[/green]", highlight=False)
        if report.removed:
            noun = "mock" if len(report.removed) == 1 else "mocks"
            self.console.print(f"\n[bold red] > {len(report.removed)} {noun} removed.[/bold red]")
            for name in report.removed:
                self.console.print(f"[red]   • {escape(name)}[/red]", highlight=False)


def _records_text(records: list[FixtureRecord]) -> str:
    return serialize([record.model_dump(mode="json") for record in records])


# =============================================================================
# Process-wide default
# =============================================================================

_default_registry: MockRegistry | None = None
_exit_hook_registered = False


def default_registry() -> MockRegistry:
    """
    Registry for mocks created without an explicit one.

    Created on first use from the process configuration. Its fixture files
    are written when the process exits.
    """
    global _default_registry, _exit_hook_registered
    if _default_registry is None:
        _default_registry = MockRegistry(config=resolve_config())
    if not _exit_hook_registered:
        atexit.register(_flush_default_registry)
        _exit_hook_registered = True
    return _default_registry


def _flush_default_registry() -> None:
    if _default_registry is not None:
        _default_registry.flush_all()
