# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Persistence for the command list.

The list is stored as a single JSON array, read whole and written whole.
Writes go to a temporary file in the same directory which then replaces the
target, so a crash never leaves a half-written file behind.
"""

import tempfile
from collections.abc import Iterable
from pathlib import Path

import orjson

from kgb.exceptions import PersistenceError

from ._models import CanonicalCommand

__all__ = ["load_commands", "save_commands"]


def _atomic_write(path: Path, content: bytes) -> None:
    """Write content to a file atomically.

    Args:
        path: Destination file path.
        content: Content to write.

    Raises:
        PersistenceError: If the write operation fails.
    """
    temp_path: Path | None = None
    try:
        _ = path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="wb",
            dir=path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            _ = f.write(content)
            temp_path = Path(f.name)

        # Path.replace() is atomic on both POSIX and Windows
        _ = temp_path.replace(path)

    except OSError as e:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        msg = f"Failed to write file: {e}"
        raise PersistenceError(msg, path=path, operation="write", cause=e) from e


def load_commands(path: Path) -> list[CanonicalCommand]:
    """Read the persisted command list.

    Args:
        path: Path to the JSON file.

    Returns:
        The commands in stored order; empty if the file does not exist.

    Raises:
        PersistenceError: If the file cannot be read or does not hold a valid
            command list.
    """
    if not path.exists():
        return []

    try:
        content = path.read_bytes()
    except OSError as e:
        msg = f"Failed to read file: {e}"
        raise PersistenceError(msg, path=path, operation="read", cause=e) from e

    try:
        data = orjson.loads(content)
    except orjson.JSONDecodeError as e:
        msg = f"Invalid JSON: {e}"
        raise PersistenceError(msg, path=path, operation="parse", cause=e) from e

    if not isinstance(data, list):
        msg = f"Expected JSON array, got {type(data).__name__}"
        raise PersistenceError(msg, path=path, operation="parse")

    commands: list[CanonicalCommand] = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            msg = f"Expected JSON object at index {index}, got {type(item).__name__}"
            raise PersistenceError(msg, path=path, operation="parse")
        try:
            commands.append(CanonicalCommand.from_dict(item))
        except (KeyError, TypeError, ValueError) as e:
            msg = f"Invalid command at index {index}: {e}"
            raise PersistenceError(msg, path=path, operation="parse", cause=e) from e

    return commands


def save_commands(path: Path, commands: Iterable[CanonicalCommand]) -> None:
    """Write the command list, replacing the file atomically.

    Args:
        path: Destination file path.
        commands: Commands to store, in order.

    Raises:
        PersistenceError: If the write operation fails.
    """
    content = orjson.dumps(
        [command.to_dict() for command in commands],
        option=orjson.OPT_INDENT_2,
    )
    _atomic_write(path, content)
