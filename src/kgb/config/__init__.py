"""KGB configuration.

Loading, validation and typed access to configuration values.

Example:
    >>> from kgb.config import Config
    >>> config = Config.load()
    >>> config.retry.max_attempts
    12
"""

from kgb.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
)

from ._defaults import DEFAULT_CONFIG
from ._load import safe_load_config
from ._loader import (
    ENV_PREFIX,
    deep_merge,
    parse_env_vars,
    parse_string_value,
    read_toml_file,
    set_nested_key,
)
from ._models import (
    Config,
    LogFormat,
    LoggingConfig,
    LogLevel,
    RetryConfig,
    StorageConfig,
    ToolsConfig,
    WatchConfig,
)

__all__ = [
    "DEFAULT_CONFIG",
    "ENV_PREFIX",
    "Config",
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "RetryConfig",
    "StorageConfig",
    "ToolsConfig",
    "WatchConfig",
    "deep_merge",
    "parse_env_vars",
    "parse_string_value",
    "read_toml_file",
    "safe_load_config",
    "set_nested_key",
]
