"""KGB exceptions."""

from pathlib import Path
from typing import Any, ClassVar


class KGBError(Exception):
    """Base exception for KGB errors."""


# =============================================================================
# Extraction Exceptions
# =============================================================================


class ExtractionError(KGBError):
    """Base exception for failures while turning an artifact into a command.

    Attributes:
        retryable: Whether a later attempt on the same artifact may succeed.
        path: The artifact the extraction was attempted on, if known.
    """

    retryable: ClassVar[bool] = False

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        """Initialize with error message and artifact context.

        Args:
            message: Human-readable error message.
            path: The artifact the extraction was attempted on.
        """
        super().__init__(message)
        self.path: Path | None = path


class MalformedFilenameError(ExtractionError):
    """Raised when a result bundle name does not follow the naming convention."""

    def __init__(self, message: str, *, filename: str, path: Path | None = None) -> None:
        """Initialize with error message and the offending filename."""
        super().__init__(message, path=path)
        self.filename: str = filename


class NoProjectFoundError(ExtractionError):
    """Raised when no project or workspace exists in the source directory."""

    def __init__(
        self,
        message: str,
        *,
        source_dir: Path | None,
        path: Path | None = None,
    ) -> None:
        """Initialize with error message and the scanned directory."""
        super().__init__(message, path=path)
        self.source_dir: Path | None = source_dir


class ContentNotReadyError(ExtractionError):
    """Raised when the result manifest is absent or still incomplete."""

    retryable: ClassVar[bool] = True


class ContentMalformedError(ExtractionError):
    """Raised when the result manifest is present but has an unexpected shape."""


class ExternalToolError(ExtractionError):
    """Raised when an external tool invocation could not run to completion.

    Attributes:
        command: The command line that was invoked.
        timed_out: Whether the tool exceeded its timeout.
        command_not_found: Whether the executable could not be found.
    """

    def __init__(  # noqa: PLR0913
        self,
        message: str,
        *,
        command: tuple[str, ...],
        timed_out: bool = False,
        command_not_found: bool = False,
        cause: Exception | None = None,
        path: Path | None = None,
    ) -> None:
        """Initialize with error message and invocation context."""
        super().__init__(message, path=path)
        self.command: tuple[str, ...] = command
        self.timed_out: bool = timed_out
        self.command_not_found: bool = command_not_found
        self.cause: Exception | None = cause


# =============================================================================
# Store Exceptions
# =============================================================================


class StoreError(KGBError):
    """Base exception for command store operations."""


class CommandNotFoundError(StoreError, KeyError):
    """Raised when a command id is not in the store.

    Attributes:
        command_id: The id that was looked up.
    """

    def __init__(self, message: str, *, command_id: object) -> None:
        """Initialize with error message and command context."""
        super().__init__(message)
        self.command_id: object = command_id


class PendingNotFoundError(StoreError, KeyError):
    """Raised when a pending extraction id is not in the store.

    Attributes:
        pending_id: The id that was looked up.
    """

    def __init__(self, message: str, *, pending_id: object) -> None:
        """Initialize with error message and pending context."""
        super().__init__(message)
        self.pending_id: object = pending_id


class PersistenceError(KGBError):
    """Raised when the command list cannot be read or written.

    Attributes:
        path: The file involved.
        operation: The failed operation ("read", "write" or "parse").
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Path,
        operation: str,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and file context."""
        super().__init__(message)
        self.path: Path = path
        self.operation: str = operation
        self.cause: Exception | None = cause


class WatchRootError(KGBError):
    """Raised when the watched root is missing or not a directory."""

    def __init__(self, message: str, *, root: Path) -> None:
        """Initialize with error message and the watched root."""
        super().__init__(message)
        self.root: Path = root


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(KGBError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration fails validation."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportAny,reportExplicitAny]
        expected: str,
        source: str | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.expected: str = expected
        self.source: str | None = source
