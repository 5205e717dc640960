"""Shared helpers for KGB CLI commands."""

from enum import IntEnum
from typing import TYPE_CHECKING, Never

from rich.console import Console

from kgb.exceptions import CommandNotFoundError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from kgb.store import CanonicalCommand

# Length of the id prefix shown in listings
SHORT_ID_LENGTH = 8


class ExitCode(IntEnum):
    """Exit codes for KGB CLI commands."""

    SUCCESS = 0
    FAILURE = 1
    NOT_FOUND = 2
    ROOT_INACCESSIBLE = 3


def get_console() -> Console:
    """Get a Rich console writing to stdout."""
    return Console()


def get_error_console() -> Console:
    """Get a Rich console configured for error output to stderr."""
    return Console(stderr=True)


def exit_with_error(
    message: str,
    code: ExitCode = ExitCode.FAILURE,
    *,
    console: Console | None = None,
) -> Never:
    """Print an error message and exit with the specified code.

    Raises:
        SystemExit: Always raised with the specified exit code.
    """
    if console is None:
        console = get_error_console()

    console.print(f"[red]Error:[/red] {message}", highlight=False)
    raise SystemExit(code)


def short_id(command: "CanonicalCommand") -> str:  # noqa: UP037
    """Return the abbreviated id shown in listings."""
    return str(command.id)[:SHORT_ID_LENGTH]


def find_command(
    commands: "Iterable[CanonicalCommand]",  # noqa: UP037
    id_or_prefix: str,
) -> "CanonicalCommand":  # noqa: UP037
    """Find a command by full id or unambiguous id prefix.

    Raises:
        CommandNotFoundError: If no command, or more than one, matches.
    """
    needle = id_or_prefix.strip().lower()
    matches = [c for c in commands if needle and str(c.id).startswith(needle)]
    if len(matches) == 1:
        return matches[0]
    if matches:
        msg = f"Command id '{id_or_prefix}' is ambiguous ({len(matches)} matches)"
    else:
        msg = f"Command '{id_or_prefix}' not found"
    raise CommandNotFoundError(msg, command_id=id_or_prefix)
