"""
Canonical serialization for fixture matching and storage.

The same rules produce the key used to match a call against recorded ones
and the text written to fixture files, so a recorded call always matches
the call that produced it:

- Object keys are sorted; non-string keys are stringified
- Tuples and lists become lists, sets become sorted lists
- Dataclasses and pydantic models are converted to plain dicts
- Nesting depth and string length are unbounded
"""

import json
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any, Mapping


def canonicalize(value: Any) -> Any:
    """
    Convert a value to plain JSON data.

    Args:
        value: Any value passed to or returned from a mocked function

    Returns:
        Equivalent value built only from dict, list, str, int, float,
        bool and None
    """
    if not isinstance(value, type):
        if is_dataclass(value):
            value = asdict(value)
        elif callable(getattr(value, "model_dump", None)):
            value = value.model_dump(mode="json")

    if isinstance(value, Enum):
        return canonicalize(value.value)
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Mapping):
        return {str(k): canonicalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [canonicalize(item) for item in value]
    if isinstance(value, (set, frozenset)):
        items = [canonicalize(item) for item in value]
        return sorted(items, key=serialize)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def serialize(value: Any) -> str:
    """Serialize a value to compact canonical JSON text."""
    return json.dumps(
        canonicalize(value),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def render(value: Any) -> str:
    """Serialize a value to indented canonical JSON text for a fixture file."""
    text = json.dumps(
        canonicalize(value),
        sort_keys=True,
        indent=2,
        ensure_ascii=False,
    )
    return text + "\n"
