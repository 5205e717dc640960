"""Unit tests for the shared CLI helpers."""

from collections.abc import Callable
from io import StringIO
from uuid import UUID

import pytest
from rich.console import Console

from kgb.cli import ExitCode
from kgb.cli._shared import SHORT_ID_LENGTH, exit_with_error, find_command, short_id
from kgb.exceptions import CommandNotFoundError
from kgb.store import CanonicalCommand


class TestExitCode:
    def test_values(self) -> None:
        assert ExitCode.SUCCESS == 0
        assert ExitCode.FAILURE == 1
        assert ExitCode.NOT_FOUND == 2
        assert ExitCode.ROOT_INACCESSIBLE == 3

    def test_exit_with_error(self) -> None:
        output = StringIO()
        console = Console(file=output, width=200)

        with pytest.raises(SystemExit) as exc_info:
            exit_with_error("Nope", ExitCode.NOT_FOUND, console=console)

        assert exc_info.value.code == 2
        assert "Error: Nope" in output.getvalue()


class TestFindCommand:
    @pytest.fixture
    def commands(
        self, make_command: Callable[..., CanonicalCommand]
    ) -> list[CanonicalCommand]:
        return [
            make_command(id=UUID("aaaaaaaa-0000-0000-0000-000000000001")),
            make_command(id=UUID("aaaaaaaa-0000-0000-0000-000000000002"), scheme="B"),
            make_command(id=UUID("bbbbbbbb-0000-0000-0000-000000000003"), scheme="C"),
        ]

    def test_full_id(self, commands: list[CanonicalCommand]) -> None:
        found = find_command(commands, "aaaaaaaa-0000-0000-0000-000000000002")

        assert found.scheme == "B"

    def test_unique_prefix_is_case_insensitive(
        self, commands: list[CanonicalCommand]
    ) -> None:
        assert find_command(commands, "BBBB").scheme == "C"

    def test_ambiguous_prefix(self, commands: list[CanonicalCommand]) -> None:
        with pytest.raises(CommandNotFoundError, match="ambiguous"):
            _ = find_command(commands, "aaaaaaaa")

    @pytest.mark.parametrize("needle", ["cccc", "", "  "])
    def test_no_match(self, commands: list[CanonicalCommand], needle: str) -> None:
        with pytest.raises(CommandNotFoundError, match="not found"):
            _ = find_command(commands, needle)

    def test_short_id(self, commands: list[CanonicalCommand]) -> None:
        assert short_id(commands[2]) == "bbbbbbbb"
        assert len(short_id(commands[0])) == SHORT_ID_LENGTH
