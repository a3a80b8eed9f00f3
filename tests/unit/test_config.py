"""
Unit tests for configuration.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from replaymock.config import (
    MockConfig,
    load_config,
    mode_from_args,
    mode_from_env,
    resolve_config,
)
from replaymock.schema import MockMode


class TestModeSources:
    """Tests for reading the mode from flags and environment."""

    @pytest.mark.parametrize("flag", ["--update", "-u"])
    def test_update_flag(self, flag: str) -> None:
        assert mode_from_args(["pytest", flag]) == MockMode.UPDATE

    def test_no_flag(self) -> None:
        assert mode_from_args(["pytest", "-x"]) is None

    def test_env(self) -> None:
        assert mode_from_env({"REPLAYMOCK_MODE": "Update"}) == MockMode.UPDATE
        assert mode_from_env({"REPLAYMOCK_MODE": "replay"}) == MockMode.REPLAY
        assert mode_from_env({}) is None

    def test_env_invalid(self) -> None:
        with pytest.raises(ValueError):
            mode_from_env({"REPLAYMOCK_MODE": "record"})


class TestMockConfig:
    """Tests for MockConfig."""

    def test_defaults(self) -> None:
        config = MockConfig()
        assert config.mode == MockMode.REPLAY
        assert config.mocks_dir == "__mocks__"
        assert config.suffix == ".mock.json"

    def test_absolute_dir_rejected(self) -> None:
        with pytest.raises(ValidationError):
            MockConfig(mocks_dir="/abs")

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(ValidationError):
            MockConfig.model_validate({"modes": "update"})


class TestLoadConfig:
    """Tests for YAML configuration files."""

    def test_load_yaml(self, temp_dir: Path) -> None:
        path = temp_dir / "replaymock.yaml"
        path.write_text("mode: update\nmocks_dir: fixtures\n")
        config = load_config(path)
        assert config.mode == MockMode.UPDATE
        assert config.mocks_dir == "fixtures"
        assert config.suffix == ".mock.json"

    def test_empty_yaml(self, temp_dir: Path) -> None:
        path = temp_dir / "replaymock.yaml"
        path.write_text("")
        assert load_config(path) == MockConfig()


class TestResolveConfig:
    """Tests for combining configuration sources."""

    def test_flag_overrides_file_and_env(self, temp_dir: Path) -> None:
        path = temp_dir / "replaymock.yaml"
        path.write_text("mode: replay\nsuffix: .rec.json\n")
        config = resolve_config(
            argv=["pytest", "--update"],
            environ={"REPLAYMOCK_MODE": "replay"},
            config_path=path,
        )
        assert config.mode == MockMode.UPDATE
        assert config.suffix == ".rec.json"

    def test_env_overrides_file(self, temp_dir: Path) -> None:
        path = temp_dir / "replaymock.yaml"
        path.write_text("mode: replay\n")
        config = resolve_config(argv=[], environ={"REPLAYMOCK_MODE": "update"}, config_path=path)
        assert config.mode == MockMode.UPDATE

    def test_default_file_in_working_directory(self, temp_dir: Path, monkeypatch) -> None:
        (temp_dir / "replaymock.yaml").write_text("mocks_dir: recorded\n")
        monkeypatch.chdir(temp_dir)
        assert resolve_config(argv=[], environ={}).mocks_dir == "recorded"

    def test_defaults_without_sources(self, temp_dir: Path, monkeypatch) -> None:
        monkeypatch.chdir(temp_dir)
        assert resolve_config(argv=[], environ={}) == MockConfig()
