# pyright: reportExplicitAny=false, reportAny=false
"""Configuration models.

Each TOML section maps to a frozen Pydantic model; unknown keys are ignored
so older config files keep loading.
"""

from enum import StrEnum
from pathlib import Path
from typing import Any, ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from kgb.derived_data._access import resolve_watch_root
from kgb.exceptions import ConfigValidationError
from kgb.utils._paths import get_kgb_commands_file, get_user_config_path

from ._defaults import DEFAULT_CONFIG
from ._loader import deep_merge, parse_env_vars, read_toml_file


class LogLevel(StrEnum):
    """Log level threshold values, most verbose first."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class WatchConfig(BaseModel):
    """Watcher configuration section.

    Attributes:
        root: DerivedData directory to watch; empty selects the default.
        latency: Seconds filesystem changes are grouped for.
        backfill: Whether to pick up today's result bundles at startup.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    root: str = ""
    latency: float = Field(default=1.0, gt=0)
    backfill: bool = True


class RetryConfig(BaseModel):
    """Extraction retry configuration section.

    Attributes:
        max_attempts: Attempts before a pending extraction is marked failed.
        delay: Seconds to wait before each attempt.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    max_attempts: int = Field(default=12, ge=1)
    delay: float = Field(default=5.0, ge=0)


class ToolsConfig(BaseModel):
    """External tool configuration section.

    Attributes:
        result_tool: Command prefix for querying result bundles.
        decompress: Command prefix for decompressing build logs to stdout.
        timeout: Seconds an external tool may run.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    result_tool: tuple[str, ...] = Field(
        default=("xcrun", "xcresulttool"), min_length=1
    )
    decompress: tuple[str, ...] = Field(default=("gunzip", "-c"), min_length=1)
    timeout: float = Field(default=30.0, gt=0)


class StorageConfig(BaseModel):
    """Storage configuration section.

    Attributes:
        commands_file: Path of the persisted command list; empty selects the
            default under the user data directory.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    commands_file: str = ""


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to the log file (empty selects the default log file).
        max_bytes: Size at which the log file is rotated; 0 disables rotation.
        backup_count: Rotated log files to keep.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.JSON
    file: str = ""
    max_bytes: int = Field(default=5_242_880, ge=0)
    backup_count: int = Field(default=3, ge=0)

    @field_validator("level", "format", mode="before")
    @classmethod
    def _lowercase(cls, value: object) -> object:
        return value.lower() if isinstance(value, str) else value


class Config(BaseModel):
    """Typed, immutable KGB configuration.

    Use the factory methods rather than the constructor: they merge the
    built-in defaults with the other sources and turn validation failures
    into ConfigValidationError.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    watch: WatchConfig = WatchConfig()
    retry: RetryConfig = RetryConfig()
    tools: ToolsConfig = ToolsConfig()
    storage: StorageConfig = StorageConfig()
    logging: LoggingConfig = LoggingConfig()

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, source: str | None = None) -> Self:
        """Create configuration from a dictionary merged over the defaults.

        Args:
            data: Configuration values.
            source: Where the values came from, for error messages.

        Raises:
            ConfigValidationError: If a value is invalid.
        """
        merged = deep_merge(DEFAULT_CONFIG, data)
        try:
            return cls.model_validate(merged)
        except ValidationError as e:
            error = e.errors()[0]
            key = ".".join(str(part) for part in error.get("loc", ()))
            msg = f"Invalid configuration value for '{key}'"
            raise ConfigValidationError(
                msg,
                key=key,
                value=error.get("input"),
                expected=str(error.get("msg", "valid value")),
                source=source,
            ) from e

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Load configuration from a single TOML file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigLoadError: If the file cannot be parsed.
            ConfigValidationError: If a value is invalid.
        """
        return cls.from_dict(read_toml_file(path), source=str(path))

    @classmethod
    def load(
        cls,
        *,
        config_path: Path | None = None,
        include_env: bool = True,
        cli_overrides: dict[str, Any] | None = None,
    ) -> Self:
        """Load merged configuration from all sources.

        Sources are merged in precedence order: defaults, user config file,
        environment variables (``KGB_<SECTION>__<KEY>``), CLI overrides.

        Args:
            config_path: Config file to read. Defaults to the user config file,
                which is skipped if it does not exist.
            include_env: Include environment variables as a source.
            cli_overrides: Nested dict of CLI argument overrides.

        Raises:
            ConfigLoadError: If the config file cannot be parsed.
            ConfigValidationError: If the merged config is invalid.
        """
        merged: dict[str, Any] = {}

        path = config_path if config_path is not None else get_user_config_path()
        if path.is_file():
            merged = deep_merge(merged, read_toml_file(path))
        if include_env:
            merged = deep_merge(merged, parse_env_vars())
        if cli_overrides:
            merged = deep_merge(merged, cli_overrides)

        return cls.from_dict(merged)

    @property
    def watch_root(self) -> Path:
        """Return the DerivedData directory to watch, with ``~`` expanded."""
        return resolve_watch_root(self.watch.root)

    @property
    def commands_file(self) -> Path:
        """Return the path of the persisted command list."""
        if not self.storage.commands_file:
            return get_kgb_commands_file()
        return Path(self.storage.commands_file).expanduser()
