from pathlib import Path
from typing import cast

import orjson


def load_json(json_str: str | bytes) -> dict[str, object] | list[object] | None:
    """Load and parse a JSON string.

    Args:
        json_str: The JSON string to parse.

    Returns:
        The parsed JSON data as a dictionary or list, or None if parsing fails.
    """
    try:
        return cast("dict[str, object] | list[object]", orjson.loads(json_str))
    except orjson.JSONDecodeError:
        return None


def load_json_file(file_path: Path) -> dict[str, object] | list[object] | None:
    """Load and parse a JSON file.

    Args:
        file_path: Path to the JSON file.

    Returns:
        The parsed JSON data as a dictionary or list, or None if the file
        cannot be read or parsed.
    """
    try:
        content = file_path.read_bytes()
    except OSError:
        return None
    return load_json(content)
