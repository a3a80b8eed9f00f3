"""
Exception hierarchy for replaymock.

All replaymock exceptions inherit from ReplayMockError, allowing callers to
catch every harness-specific failure with a single except clause.

Exception Categories:
    - MockError: Contract violations visible to the test (double restore,
      no calls made, unmatched or unexpected calls, conflicting mocks)
    - FixtureError: Fixture file missing or unreadable (a MockError)
    - FixturePermissionError: Fixture write attempted without access

Exceptions raised by the mocked function itself, or by user supplied
conversions, are never wrapped. They propagate to the caller unchanged.
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# Mock contract errors: 1xxx
ERROR_MOCK = 1000
ERROR_MOCK_ALREADY_RESTORED = 1001
ERROR_MOCK_NO_CALLS = 1002
ERROR_MOCK_UNMATCHED_CALLS = 1003
ERROR_MOCK_NO_MATCHING_CALL = 1004
ERROR_MOCK_CONFLICT = 1005
ERROR_MOCK_RESTORED = 1006

# Fixture errors: 2xxx
ERROR_FIXTURE_NOT_FOUND = 2001
ERROR_FIXTURE_FORMAT = 2002

# Permission errors: 3xxx
ERROR_PERMISSION_WRITE = 3001


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class ReplayMockError(Exception):
    """
    Base exception for all replaymock errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# Mock Errors
# =============================================================================


@dataclass
class MockError(ReplayMockError):
    """
    Raised when a mock is used in a way that breaks its contract.

    Attributes:
        name: Fixture key of the mock, when known
    """

    name: str = ""

    def __post_init__(self) -> None:
        if self.code == 0:
            self.code = ERROR_MOCK
        if self.name:
            self.context["name"] = self.name


@dataclass
class AlreadyRestoredError(MockError):
    """Raised when restore() is called on a mock that was already restored."""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Mock already restored: {self.name}"
        if self.code == 0:
            self.code = ERROR_MOCK_ALREADY_RESTORED
        super().__post_init__()


@dataclass
class MockRestoredError(MockError):
    """Raised when a restored mock is called again."""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Mock called after restore: {self.name}"
        if self.code == 0:
            self.code = ERROR_MOCK_RESTORED
        super().__post_init__()


@dataclass
class NoCallsMadeError(MockError):
    """Raised on restore when the mock was never called."""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"No calls made: {self.name}"
        if self.code == 0:
            self.code = ERROR_MOCK_NO_CALLS
        if not self.suggestion:
            self.suggestion = "Remove the mock or call the mocked function"
        super().__post_init__()


@dataclass
class UnmatchedCallsError(MockError):
    """
    Raised on restore when recorded calls were never replayed.

    Attributes:
        unmatched: Serialized inputs of the calls left in the queue
    """

    unmatched: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.message:
            listing = ", ".join(self.unmatched)
            self.message = (
                f"Unmatched calls for {self.name} "
                f"({len(self.unmatched)}): {listing}"
            )
        if self.code == 0:
            self.code = ERROR_MOCK_UNMATCHED_CALLS
        if not self.suggestion:
            self.suggestion = "Rerun the tests with --update to record the current calls"
        super().__post_init__()
        self.context["unmatched"] = self.unmatched


@dataclass
class NoMatchingCallError(MockError):
    """
    Raised in replay mode when no recorded call matches the input.

    Attributes:
        input: Serialized input of the call
    """

    input: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"No matching call found for {self.name}: {self.input}"
        if self.code == 0:
            self.code = ERROR_MOCK_NO_MATCHING_CALL
        if not self.suggestion:
            self.suggestion = "Rerun the tests with --update to record this call"
        super().__post_init__()
        self.context["input"] = self.input


@dataclass
class MockConflictError(MockError):
    """Raised when mocking an attribute that is already mocked."""

    attribute: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Attribute already mocked: {self.attribute}"
        if self.code == 0:
            self.code = ERROR_MOCK_CONFLICT
        if not self.suggestion:
            self.suggestion = "Restore the existing mock before mocking it again"
        super().__post_init__()
        self.context["attribute"] = self.attribute


# =============================================================================
# Fixture Errors
# =============================================================================


@dataclass
class FixtureError(MockError):
    """
    Base class for fixture file errors.

    Attributes:
        path: Path of the fixture file
    """

    path: str = ""

    def __post_init__(self) -> None:
        super().__post_init__()
        self.context["path"] = self.path


@dataclass
class FixtureNotFoundError(FixtureError):
    """Raised in replay mode when the fixture file does not exist."""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"No mock found: {self.path}"
        if self.code == 0:
            self.code = ERROR_FIXTURE_NOT_FOUND
        if not self.suggestion:
            self.suggestion = "Run the tests with --update to record the fixture file"
        super().__post_init__()


@dataclass
class FixtureFormatError(FixtureError):
    """Raised when a fixture file cannot be parsed."""

    underlying_error: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Invalid fixture file {self.path}: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_FIXTURE_FORMAT
        if not self.suggestion:
            self.suggestion = "Delete the file and rerun the tests with --update"
        super().__post_init__()
        self.context["underlying_error"] = self.underlying_error


# =============================================================================
# Permission Errors
# =============================================================================


@dataclass
class FixturePermissionError(ReplayMockError):
    """Raised when a fixture file must be written but the path is not writable."""

    path: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Write access denied: {self.path}"
        if self.code == 0:
            self.code = ERROR_PERMISSION_WRITE
        if not self.suggestion:
            self.suggestion = (
                f"Make {self.path} writable to record with --update, "
                "or run without --update to replay"
            )
        self.context["path"] = self.path
