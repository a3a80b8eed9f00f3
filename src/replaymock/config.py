"""
Configuration for replaymock.

Settings are resolved in this order, later sources winning:
    1. Defaults (replay mode, "__mocks__" directory, ".mock.json" suffix)
    2. An optional YAML file (replaymock.yaml)
    3. The REPLAYMOCK_MODE environment variable
    4. The --update / -u flag on the command line
Per-mock MockOptions still take priority over all of these.
"""

import os
import sys
from pathlib import Path
from typing import Mapping, Sequence

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from replaymock.schema import MockMode

UPDATE_FLAGS = ("--update", "-u")
MODE_ENV_VAR = "REPLAYMOCK_MODE"
DEFAULT_CONFIG_FILE = "replaymock.yaml"


class MockConfig(BaseModel):
    """
    Settings shared by every mock in a registry.

    Attributes:
        mode: Default mode for mocks that do not set one
        mocks_dir: Fixture directory, relative to each test file
        suffix: Appended to the test file name to name its fixture file
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    mode: MockMode = Field(
        default=MockMode.REPLAY,
        description="Default mock mode",
    )
    mocks_dir: str = Field(
        default="__mocks__",
        description="Fixture directory, relative to the test file",
        min_length=1,
    )
    suffix: str = Field(
        default=".mock.json",
        description="Fixture file name suffix",
        min_length=1,
    )

    @field_validator("mocks_dir")
    @classmethod
    def validate_mocks_dir(cls, v: str) -> str:
        """Fixture directories are relative to the test file."""
        if Path(v).is_absolute():
            msg = f"mocks_dir must be relative: {v}"
            raise ValueError(msg)
        return v


def mode_from_args(argv: Sequence[str]) -> MockMode | None:
    """Return UPDATE if an update flag is present in argv."""
    if any(arg in UPDATE_FLAGS for arg in argv):
        return MockMode.UPDATE
    return None


def mode_from_env(environ: Mapping[str, str]) -> MockMode | None:
    """Return the mode named by REPLAYMOCK_MODE, if set."""
    value = environ.get(MODE_ENV_VAR, "").strip().lower()
    if not value:
        return None
    return MockMode(value)


def load_config(path: Path | str) -> MockConfig:
    """
    Load configuration from a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Validated MockConfig
    """
    path = Path(path)
    with path.open() as f:
        data = yaml.safe_load(f)

    return MockConfig.model_validate(data or {})


def resolve_config(
    argv: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
    config_path: Path | str | None = None,
) -> MockConfig:
    """
    Build the effective configuration for this process.

    Args:
        argv: Command line arguments (defaults to sys.argv)
        environ: Environment variables (defaults to os.environ)
        config_path: YAML file to read; replaymock.yaml in the working
            directory is used when present and no path is given

    Returns:
        MockConfig with file, environment and flag overrides applied
    """
    argv = sys.argv if argv is None else argv
    environ = os.environ if environ is None else environ

    if config_path is None and Path(DEFAULT_CONFIG_FILE).is_file():
        config_path = DEFAULT_CONFIG_FILE
    config = load_config(config_path) if config_path is not None else MockConfig()

    mode = mode_from_args(argv) or mode_from_env(environ)
    if mode is not None:
        config = config.model_copy(update={"mode": mode})
    return config
