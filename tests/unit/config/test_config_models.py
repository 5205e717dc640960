"""Unit tests for the configuration models."""

from pathlib import Path

import pytest

from kgb.config import (
    Config,
    ConfigLoadError,
    ConfigValidationError,
    LogFormat,
    LogLevel,
)
from kgb.utils import get_default_derived_data_dir, get_kgb_commands_file


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "KGB_RETRY__MAX_ATTEMPTS",
        "KGB_RETRY__DELAY",
        "KGB_WATCH__ROOT",
        "KGB_LOGGING__LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_default_values(self) -> None:
        config = Config()

        assert config.retry.max_attempts == 12
        assert config.retry.delay == 5.0
        assert config.watch.latency == 1.0
        assert config.watch.backfill is True
        assert config.tools.result_tool == ("xcrun", "xcresulttool")
        assert config.tools.decompress == ("gunzip", "-c")
        assert config.logging.level is LogLevel.INFO
        assert config.logging.format is LogFormat.JSON

    def test_from_empty_dict_matches_defaults(self) -> None:
        assert Config.from_dict({}) == Config()

    def test_default_paths(self) -> None:
        config = Config()

        assert config.watch_root == get_default_derived_data_dir()
        assert config.commands_file == get_kgb_commands_file()

    def test_configured_paths_expand_user(self) -> None:
        config = Config.from_dict(
            {"watch": {"root": "~/dd"}, "storage": {"commands_file": "~/kgb.json"}}
        )

        assert config.watch_root == Path.home() / "dd"
        assert config.commands_file == Path.home() / "kgb.json"


class TestValidation:
    def test_rejects_zero_attempts(self) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            _ = Config.from_dict({"retry": {"max_attempts": 0}}, source="test.toml")

        error = exc_info.value
        assert error.key == "retry.max_attempts"
        assert error.value == 0
        assert error.source == "test.toml"

    def test_rejects_empty_tool_command(self) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            _ = Config.from_dict({"tools": {"result_tool": []}})

        assert exc_info.value.key == "tools.result_tool"

    def test_rejects_unknown_log_level(self) -> None:
        with pytest.raises(ConfigValidationError):
            _ = Config.from_dict({"logging": {"level": "verbose"}})

    def test_log_level_is_case_insensitive(self) -> None:
        config = Config.from_dict({"logging": {"level": "DEBUG", "format": "Text"}})

        assert config.logging.level is LogLevel.DEBUG
        assert config.logging.format is LogFormat.TEXT

    def test_unknown_keys_are_ignored(self) -> None:
        config = Config.from_dict({"retry": {"jitter": True}, "ui": {"menu_bar": True}})

        assert config == Config()

    def test_config_is_frozen(self) -> None:
        config = Config()

        with pytest.raises(ValueError, match="frozen"):
            config.retry.delay = 1.0  # pyright: ignore[reportAttributeAccessIssue]


class TestLoad:
    def test_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        _ = path.write_text('[tools]\nresult_tool = ["xcresulttool"]\ntimeout = 5\n')

        config = Config.from_file(path)

        assert config.tools.result_tool == ("xcresulttool",)
        assert config.tools.timeout == 5.0

    def test_precedence_file_env_cli(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = tmp_path / "config.toml"
        _ = path.write_text(
            "[retry]\nmax_attempts = 3\ndelay = 1.0\n\n[watch]\nroot = \"/from/file\"\n"
        )
        monkeypatch.setenv("KGB_RETRY__DELAY", "2.5")
        monkeypatch.setenv("KGB_WATCH__ROOT", "/from/env")

        config = Config.load(config_path=path, cli_overrides={"watch": {"root": "/from/cli"}})

        assert config.retry.max_attempts == 3
        assert config.retry.delay == 2.5
        assert config.watch.root == "/from/cli"

    def test_env_can_be_excluded(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("KGB_RETRY__MAX_ATTEMPTS", "2")

        config = Config.load(config_path=tmp_path / "absent.toml", include_env=False)

        assert config.retry.max_attempts == 12

    def test_missing_file_is_skipped(self, tmp_path: Path) -> None:
        config = Config.load(config_path=tmp_path / "absent.toml", include_env=False)

        assert config == Config()

    def test_invalid_file(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        _ = path.write_text("retry = [")

        with pytest.raises(ConfigLoadError):
            _ = Config.load(config_path=path)
