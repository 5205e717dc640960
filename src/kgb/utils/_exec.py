"""Execution utilities for external command-line tools.

This module runs the external tools KGB depends on (the result bundle query
tool and the build log decompressor) without blocking the event loop, with
timeout handling and output capture.
"""

import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import anyio

from kgb.exceptions import ExternalToolError

# Default timeout in seconds
DEFAULT_TIMEOUT: float = 30.0


@dataclass(frozen=True, slots=True)
class ToolResult:
    """Result from an external tool invocation.

    Attributes:
        command: The command line that was run.
        exit_code: Process exit code.
        stdout: Raw standard output.
    """

    command: tuple[str, ...]
    exit_code: int
    stdout: bytes = b""

    @property
    def success(self) -> bool:
        """Return True if the tool exited with status 0."""
        return self.exit_code == 0


@runtime_checkable
class ToolRunner(Protocol):
    """Protocol for running external tools.

    Implementations return a ToolResult for any process that ran, whatever
    its exit status, and raise ExternalToolError when the process could not
    be run at all.
    """

    async def run(self, command: Sequence[str]) -> ToolResult:
        """Run a command and capture its standard output.

        Args:
            command: Executable and arguments.

        Returns:
            The captured result.

        Raises:
            ExternalToolError: If the process cannot be started or times out.
        """
        ...


class ProcessToolRunner:
    """Runs tools as subprocesses via anyio.

    Standard error is discarded; only standard output is captured.
    """

    __slots__ = ("timeout",)

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        """Initialize the runner.

        Args:
            timeout: Seconds to wait for a tool before giving up.
        """
        self.timeout = timeout

    async def run(self, command: Sequence[str]) -> ToolResult:
        """Run a command and capture its standard output.

        Args:
            command: Executable and arguments.

        Returns:
            The captured result.

        Raises:
            ExternalToolError: If the process cannot be started or times out.
        """
        argv = tuple(command)
        if not argv:
            msg = "No command specified"
            raise ExternalToolError(msg, command=argv)

        try:
            with anyio.fail_after(self.timeout):
                completed = await anyio.run_process(
                    argv,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.DEVNULL,
                    check=False,
                )
        except TimeoutError as e:
            msg = f"Command timed out after {self.timeout}s: {argv[0]}"
            raise ExternalToolError(msg, command=argv, timed_out=True, cause=e) from e
        except FileNotFoundError as e:
            msg = f"{argv[0]}: command not found"
            raise ExternalToolError(
                msg, command=argv, command_not_found=True, cause=e
            ) from e
        except OSError as e:
            msg = f"Failed to run {argv[0]}: {e}"
            raise ExternalToolError(msg, command=argv, cause=e) from e

        return ToolResult(
            command=argv,
            exit_code=completed.returncode,
            stdout=completed.stdout or b"",
        )
