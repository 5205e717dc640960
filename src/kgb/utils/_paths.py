"""Well-known locations used by KGB."""

from pathlib import Path

import platformdirs

APP_NAME = "kgb"

# Relative to the user's home directory
DERIVED_DATA_RELATIVE_PATH = Path("Library/Developer/Xcode/DerivedData")


def get_default_derived_data_dir() -> Path:
    """Get the default DerivedData directory (~/Library/Developer/Xcode/DerivedData)."""
    return Path.home() / DERIVED_DATA_RELATIVE_PATH


def get_kgb_data_dir() -> Path:
    """Get the platform-specific user data directory for KGB."""
    return platformdirs.user_data_path(APP_NAME)


def get_kgb_commands_file() -> Path:
    """Get the path to the persisted command list."""
    return get_kgb_data_dir() / "commands.json"


def get_kgb_log_dir() -> Path:
    """Get the platform-specific log directory for KGB."""
    return platformdirs.user_log_path(APP_NAME)


def get_kgb_log_file() -> Path:
    """Get the path to the default KGB log file."""
    return get_kgb_log_dir() / "kgb.log"


def get_user_config_path() -> Path:
    r"""Get platform-specific user config file path.

    - Linux: ``~/.config/kgb/config.toml``
    - macOS: ``~/Library/Application Support/kgb/config.toml``
    - Windows: ``%APPDATA%\kgb\config.toml``

    The path is returned regardless of whether the file exists.

    Returns:
        Path to the user config file for the current platform.
    """
    return platformdirs.user_config_path(APP_NAME) / "config.toml"


def abbreviate_home(path: Path | str) -> str:
    """Replace a leading home directory with ``~`` for display."""
    text = str(path)
    home = str(Path.home())
    if text == home or text.startswith(home + "/"):
        return "~" + text[len(home) :]
    return text
