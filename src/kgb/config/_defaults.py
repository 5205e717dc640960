"""Default configuration values.

DEFAULT_CONFIG is a plain dict so it can be fed straight into deep_merge;
the merge functions copy, so the original is never mutated.
"""

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
    "watch": {
        "root": "",
        "latency": 1.0,
        "backfill": True,
    },
    "retry": {
        "max_attempts": 12,
        "delay": 5.0,
    },
    "tools": {
        "result_tool": ["xcrun", "xcresulttool"],
        "decompress": ["gunzip", "-c"],
        "timeout": 30.0,
    },
    "storage": {
        "commands_file": "",
    },
    "logging": {
        "level": "info",
        "format": "json",
        "file": "",
        "max_bytes": 5_242_880,
        "backup_count": 3,
    },
}
