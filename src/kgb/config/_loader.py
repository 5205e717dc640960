# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""TOML configuration file loading and merging."""

import json
import os
import tomllib
from pathlib import Path
from typing import Any

from kgb.exceptions import ConfigLoadError

ENV_PREFIX = "KGB_"


def read_toml_file(path: Path) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Read and parse a TOML file.

    Args:
        path: Path to the TOML file.

    Returns:
        Parsed TOML content as dictionary.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file cannot be parsed.
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Failed to parse TOML file: {e}"
        raise ConfigLoadError(
            msg,
            path=path,
            # Position attributes only exist on Python 3.14+
            line=getattr(e, "lineno", None),
            column=getattr(e, "colno", None),
        ) from e


def deep_merge(
    base: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    override: dict[str, Any],  # pyright: ignore[reportExplicitAny]
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Deep merge two configuration dictionaries.

    Merges `override` into `base`, returning a new dictionary. Neither input
    is modified.

    Merge rules:
        - Dictionaries are recursively merged
        - Arrays are replaced entirely (no element-wise merge)
        - Scalars are replaced with override value
        - Missing keys in override preserve base values
    """
    result: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]

    for key in base.keys() | override.keys():
        if key not in override:
            result[key] = copy_value(base[key])
        elif key not in base:
            result[key] = copy_value(override[key])
        elif isinstance(base[key], dict) and isinstance(override[key], dict):
            result[key] = deep_merge(base[key], override[key])
        else:
            result[key] = copy_value(override[key])

    return result


def copy_value(value: Any) -> Any:  # pyright: ignore[reportExplicitAny]
    """Return a copy of a configuration value with nested dicts and lists copied."""
    if isinstance(value, dict):
        return {k: copy_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [copy_value(item) for item in value]
    return value


def parse_string_value(value: str) -> Any:  # pyright: ignore[reportExplicitAny]
    """Parse a string value with automatic type inference.

    Precedence: boolean (true/false), integer, float (with a decimal
    point), JSON array or object, then the string itself.

    Examples:
        >>> parse_string_value("true")
        True
        >>> parse_string_value("12")
        12
        >>> parse_string_value('["xcrun", "xcresulttool"]')
        ['xcrun', 'xcresulttool']
    """
    lower_value = value.lower()
    if lower_value in ("true", "false"):
        return lower_value == "true"

    if "." not in value:
        try:
            return int(value)
        except ValueError:
            pass
    else:
        try:
            return float(value)
        except ValueError:
            pass

    if (value.startswith("[") and value.endswith("]")) or (
        value.startswith("{") and value.endswith("}")
    ):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            pass

    return value


def set_nested_key(
    d: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    key_path: str,
    value: Any,  # pyright: ignore[reportExplicitAny]
) -> None:
    """Set a value at a dotted key path, creating intermediate dicts.

    Example:
        >>> d = {}
        >>> set_nested_key(d, "retry.delay", 2.5)
        >>> d
        {'retry': {'delay': 2.5}}
    """
    parts = key_path.split(".")
    current = d

    for part in parts[:-1]:
        if not isinstance(current.get(part), dict):
            current[part] = {}
        current = current[part]

    current[parts[-1]] = value


def parse_env_vars(
    prefix: str = ENV_PREFIX,
    environ: dict[str, str] | None = None,
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Parse environment variables into a config dictionary.

    ``KGB_RETRY__MAX_ATTEMPTS=3`` becomes ``{"retry": {"max_attempts": 3}}``.
    Variables without a section separator (e.g. ``KGB_DEBUG``) end up as
    top-level keys, which the config models ignore.

    Args:
        prefix: Environment variable prefix.
        environ: Variables to parse. Defaults to os.environ.

    Returns:
        Dictionary of parsed config values with nested structure.
    """
    result: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]
    source = environ if environ is not None else os.environ

    for key, value in source.items():
        if not key.startswith(prefix):
            continue

        config_key = key[len(prefix) :]
        if not config_key:
            continue

        config_path = config_key.replace("__", ".").lower()
        set_nested_key(result, config_path, parse_string_value(value))

    return result
