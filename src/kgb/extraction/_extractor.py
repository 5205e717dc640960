"""Extraction orchestration.

Turns one result bundle plus its project source directory into a
CanonicalCommand. Extraction is stateless and never retries; the pending
extraction manager decides what a failure means.
"""

from collections.abc import Callable, Sequence
from datetime import datetime
from pathlib import Path
from typing import final

import anyio.to_thread
import pendulum

from kgb.derived_data._resolver import detect_project
from kgb.exceptions import MalformedFilenameError, NoProjectFoundError
from kgb.parsers import parse_build_results, parse_result_filename
from kgb.store import CanonicalCommand
from kgb.utils._exec import ProcessToolRunner, ToolRunner

DEFAULT_RESULT_TOOL: tuple[str, ...] = ("xcrun", "xcresulttool")


def _utc_now() -> datetime:
    return pendulum.now("UTC")


@final
class CommandExtractor:
    """Assembles a CanonicalCommand from a result bundle.

    Steps, each with its own failure type:
    1. Parse scheme and action from the bundle name (MalformedFilenameError)
    2. Query the bundle's build results (ExternalToolError)
    3. Decode the destination (ContentNotReadyError or ContentMalformedError)
    4. Find the project or workspace (NoProjectFoundError)
    """

    __slots__ = ("_clock", "_result_tool", "_runner")

    def __init__(
        self,
        runner: ToolRunner | None = None,
        *,
        result_tool: Sequence[str] = DEFAULT_RESULT_TOOL,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize the extractor.

        Args:
            runner: Runs the result query tool. Uses ProcessToolRunner if None.
            result_tool: Command prefix for the result query tool.
            clock: Source of the command timestamp.
        """
        self._runner: ToolRunner = runner if runner is not None else ProcessToolRunner()
        self._result_tool = tuple(result_tool)
        self._clock = clock

    def result_query_command(self, bundle_path: Path) -> tuple[str, ...]:
        """Return the command line that queries a bundle's build results."""
        return (*self._result_tool, "get", "build-results", "--path", str(bundle_path))

    async def extract(
        self,
        bundle_path: Path,
        project_source_dir: Path | None,
    ) -> CanonicalCommand:
        """Extract the command a result bundle was produced by.

        Args:
            bundle_path: Path to the .xcresult bundle.
            project_source_dir: Directory holding the project or workspace,
                or None if it could not be resolved.

        Returns:
            The resolved command, timestamped now.

        Raises:
            MalformedFilenameError: If the bundle name is not recognized.
            ExternalToolError: If the result query tool cannot be run.
            ContentNotReadyError: If the results are not queryable yet.
            ContentMalformedError: If the results have an unexpected shape.
            NoProjectFoundError: If no project or workspace can be found.
        """
        filename = bundle_path.name
        parsed = parse_result_filename(filename)
        if parsed is None:
            msg = f"Unrecognized result bundle name: {filename}"
            raise MalformedFilenameError(msg, filename=filename, path=bundle_path)

        result = await self._runner.run(self.result_query_command(bundle_path))
        destination = parse_build_results(
            result.stdout,
            exit_code=result.exit_code,
            path=bundle_path,
        )

        if project_source_dir is None:
            msg = f"Project source directory unknown for {filename}"
            raise NoProjectFoundError(msg, source_dir=None, path=bundle_path)
        project_path, project_type = await anyio.to_thread.run_sync(
            detect_project, project_source_dir
        )

        return CanonicalCommand(
            project_path=str(project_path),
            project_type=project_type,
            scheme=parsed.scheme,
            action=parsed.action,
            platform=destination.platform,
            device_name=destination.device_name,
            os_version=destination.os_version,
            timestamp=self._clock(),
        )
