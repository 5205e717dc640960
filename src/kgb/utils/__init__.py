"""Shared utilities for KGB."""

from ._exec import DEFAULT_TIMEOUT, ProcessToolRunner, ToolResult, ToolRunner
from ._json import load_json, load_json_file
from ._logging import create_logger, get_default_logger, resolve_log_level
from ._paths import (
    abbreviate_home,
    get_default_derived_data_dir,
    get_kgb_commands_file,
    get_kgb_data_dir,
    get_kgb_log_file,
    get_user_config_path,
)

__all__ = [
    "DEFAULT_TIMEOUT",
    "ProcessToolRunner",
    "ToolResult",
    "ToolRunner",
    "abbreviate_home",
    "create_logger",
    "get_default_derived_data_dir",
    "get_default_logger",
    "get_kgb_commands_file",
    "get_kgb_data_dir",
    "get_kgb_log_file",
    "get_user_config_path",
    "load_json",
    "load_json_file",
    "resolve_log_level",
]
