"""
Fixture file storage.

A fixture file is a JSON object mapping each fixture key to the list of
calls recorded for it:

    {
      "test_fetch > send 1": [
        {"input": [...], "output": ...}
      ]
    }

Files are loaded at most once per path by a FixtureStoreLoader and are
rewritten whole, never patched in place.
"""

import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from replaymock.errors import FixtureFormatError, FixtureNotFoundError
from replaymock.schema import FixtureMapping, FixtureRecord, MockMode, fixture_mapping_adapter
from replaymock.serialize import render


@dataclass
class FixtureStore:
    """
    The records of one fixture file, as loaded at the start of the run.

    Attributes:
        path: Resolved path of the fixture file
        records: Recorded calls by fixture key
        existed: Whether the file existed when it was loaded
        identities: Function identities seen per breadcrumb, in first-seen
            order; used to number fixture keys
    """

    path: Path
    records: FixtureMapping = field(default_factory=dict)
    existed: bool = False
    identities: dict[str, list[Any]] = field(default_factory=dict)

    def get(self, name: str) -> list[FixtureRecord]:
        """Recorded calls for a key, empty if there are none."""
        return list(self.records.get(name, []))


def parse_fixtures(text: str, path: Path) -> FixtureMapping:
    """
    Parse fixture file text.

    Raises:
        FixtureFormatError: If the text is not a valid fixture mapping
    """
    try:
        data = json.loads(text)
        return fixture_mapping_adapter.validate_python(data)
    except (json.JSONDecodeError, ValidationError) as e:
        raise FixtureFormatError(path=str(path), underlying_error=str(e)) from e


def read_fixtures(path: Path) -> FixtureMapping:
    """Read and parse a fixture file."""
    return parse_fixtures(Path(path).read_text(encoding="utf-8"), Path(path))


def render_fixtures(records: dict[str, list[FixtureRecord]]) -> str:
    """Render a fixture mapping as canonical file text."""
    return render({
        name: [record.model_dump(mode="json") for record in calls]
        for name, calls in records.items()
    })


def write_atomic(path: Path, text: str) -> None:
    """
    Write text to a file in one step.

    The text goes to a temporary file in the same directory, which then
    replaces the target, so readers never see a partial file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class FixtureStoreLoader:
    """
    Loads fixture files, once per path.

    Usage:
        loader = FixtureStoreLoader()
        store = loader.load(path, MockMode.REPLAY)
        records = store.get("test_add > add 1")
    """

    def __init__(self) -> None:
        self._stores: dict[Path, FixtureStore] = {}

    def __contains__(self, path: Path) -> bool:
        return Path(path) in self._stores

    def stores(self) -> list[FixtureStore]:
        """All stores loaded so far, in load order."""
        return list(self._stores.values())

    def load(self, path: Path, mode: MockMode) -> FixtureStore:
        """
        Return the store for a path, reading the file on first access.

        Args:
            path: Resolved fixture file path
            mode: Mode of the mock requesting the store

        Returns:
            The cached or newly loaded FixtureStore

        Raises:
            FixtureNotFoundError: If the file is missing in replay mode
            FixtureFormatError: If the file cannot be parsed
        """
        path = Path(path)
        store = self._stores.get(path)
        if store is not None:
            # Bootstrapped by an update-mode mock; there is nothing to replay.
            if mode == MockMode.REPLAY and not store.existed:
                raise FixtureNotFoundError(path=str(path))
            return store

        try:
            records = read_fixtures(path)
            existed = True
        except FileNotFoundError:
            if mode == MockMode.REPLAY:
                raise FixtureNotFoundError(path=str(path)) from None
            records = {}
            existed = False

        store = FixtureStore(path=path, records=records, existed=existed)
        self._stores[path] = store
        return store
