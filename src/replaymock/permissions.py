"""
Permission checks for fixture writes.

Recording fixtures writes files next to the tests. The check runs before a
mock starts recording, so a read-only checkout fails on the first call
rather than after the whole test session has run.
"""

import os
from pathlib import Path
from typing import Protocol

from replaymock.errors import FixturePermissionError


class PermissionQuery(Protocol):
    """Answers whether a path may be written."""

    def can_write(self, path: Path) -> bool: ...


class FilesystemPermissions:
    """Checks write access with os.access on the nearest existing ancestor."""

    def can_write(self, path: Path) -> bool:
        target = Path(path)
        if target.exists():
            return os.access(target, os.W_OK)
        for parent in target.parents:
            if parent.exists():
                return os.access(parent, os.W_OK | os.X_OK)
        return False


class DenyWrites:
    """Denies every write. Used to run a session with fixtures read-only."""

    def can_write(self, path: Path) -> bool:
        return False


def require_write(permissions: PermissionQuery, path: Path) -> None:
    """
    Raise unless the path may be written.

    Raises:
        FixturePermissionError: If the permission query denies the write
    """
    if not permissions.can_write(path):
        raise FixturePermissionError(path=str(path))
