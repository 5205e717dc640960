"""Parsers for the artifacts Xcode writes into DerivedData.

Key Components:
    - parse_result_filename: Scheme and action from a result bundle name
    - parse_build_log: Run identity from decompressed build log text
    - read_build_log: Decompress and parse a build log in one step
    - parse_build_results: Destination from the result query manifest
"""

from ._build_log import (
    DEFAULT_DECOMPRESS_COMMAND,
    BuildLogInfo,
    decompress_build_log,
    parse_build_log,
    read_build_log,
)
from ._filename import ACTION_PREFIXES, FilenameResult, parse_result_filename
from ._results import Destination, parse_build_results

__all__ = [
    "ACTION_PREFIXES",
    "DEFAULT_DECOMPRESS_COMMAND",
    "BuildLogInfo",
    "Destination",
    "FilenameResult",
    "decompress_build_log",
    "parse_build_log",
    "parse_build_results",
    "parse_result_filename",
    "read_build_log",
]
