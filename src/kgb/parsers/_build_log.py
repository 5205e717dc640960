"""Build log parsing.

Xcode writes gzip-compressed ``.xcactivitylog`` files as soon as a build
starts. Once decompressed, the log carries a summary line of the form
``Workspace <name> | Scheme <scheme> | Destination <destination>`` (or
``Project <name> | ...``) that identifies the run before any result bundle
exists.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from kgb.exceptions import ExternalToolError
from kgb.utils._exec import ToolRunner

DEFAULT_DECOMPRESS_COMMAND: tuple[str, ...] = ("gunzip", "-c")

_SUMMARY_PATTERN = re.compile(
    r"(Workspace|Project) ([^|]+)\| Scheme ([^|]+)\| Destination ([^\n-]+)"
)


@dataclass(frozen=True, slots=True)
class BuildLogInfo:
    """Run identity recovered from a build log.

    Attributes:
        scheme: The scheme being built.
        destination: The human-readable destination name.
        project_name: The workspace or project name.
        is_workspace: Whether the run was started from a workspace.
    """

    scheme: str
    destination: str
    project_name: str
    is_workspace: bool


def parse_build_log(text: str) -> BuildLogInfo | None:
    """Extract scheme and destination from decompressed build log text.

    Only the first summary line is considered; later lines such as
    ``Project X | Configuration Debug | ...`` serve other purposes.

    Args:
        text: Decompressed log text.

    Returns:
        The parsed run identity, or None if no summary line is present.
    """
    match = _SUMMARY_PATTERN.search(text)
    if match is None:
        return None

    kind, project_name, scheme, destination = (group.strip() for group in match.groups())
    return BuildLogInfo(
        scheme=scheme,
        destination=destination,
        project_name=project_name,
        is_workspace=kind == "Workspace",
    )


async def decompress_build_log(
    path: Path,
    runner: ToolRunner,
    command: Sequence[str] = DEFAULT_DECOMPRESS_COMMAND,
) -> str | None:
    """Decompress a build log with an external tool.

    Args:
        path: Path to the compressed log.
        runner: Tool runner used to invoke the decompressor.
        command: Decompressor command; the log path is appended.

    Returns:
        The decoded text, or None if decompression failed or the output is
        not valid UTF-8.
    """
    try:
        result = await runner.run((*command, str(path)))
    except ExternalToolError:
        return None

    if not result.success:
        return None

    try:
        return result.stdout.decode("utf-8")
    except UnicodeDecodeError:
        return None


async def read_build_log(
    path: Path,
    runner: ToolRunner,
    command: Sequence[str] = DEFAULT_DECOMPRESS_COMMAND,
) -> BuildLogInfo | None:
    """Decompress and parse a build log.

    Args:
        path: Path to the compressed log.
        runner: Tool runner used to invoke the decompressor.
        command: Decompressor command; the log path is appended.

    Returns:
        The parsed run identity, or None.
    """
    text = await decompress_build_log(path, runner, command)
    if text is None:
        return None
    return parse_build_log(text)
