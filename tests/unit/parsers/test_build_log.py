"""Unit tests for the build log parser."""

from pathlib import Path

import pytest

from kgb.exceptions import ExternalToolError
from kgb.parsers import (
    BuildLogInfo,
    decompress_build_log,
    parse_build_log,
    read_build_log,
)
from kgb.utils import ToolResult
from tests.fakes import FakeToolRunner, text_result

WORKSPACE_LOG = """SLF012#some-header-stuff
Workspace PizzaCoach | Scheme PizzaCoachWatch | Destination Apple Watch Series 11 (46mm)
Project PizzaCoach | Configuration Debug | Destination Apple Watch Series 11 (46mm) | SDK Simulator
some other build log content here
"""


class TestParseBuildLog:
    def test_extracts_workspace_scheme_and_destination(self) -> None:
        result = parse_build_log(WORKSPACE_LOG)

        assert result == BuildLogInfo(
            scheme="PizzaCoachWatch",
            destination="Apple Watch Series 11 (46mm)",
            project_name="PizzaCoach",
            is_workspace=True,
        )

    def test_skips_lines_without_scheme_field(self) -> None:
        text = (
            "SLF012#header\n"
            "Project SkillSnitch | Configuration Debug | Destination My Mac | SDK macOS 26.2\n"
            "Workspace SkillSnitch | Scheme SkillSnitch | Destination My Mac\n"
        )

        result = parse_build_log(text)

        assert result is not None
        assert result.scheme == "SkillSnitch"
        assert result.destination == "My Mac"
        assert result.is_workspace is True

    def test_project_summary_line(self) -> None:
        result = parse_build_log("Project MyLib | Scheme MyLib | Destination My Mac\nmore")

        assert result is not None
        assert result.project_name == "MyLib"
        assert result.is_workspace is False

    def test_first_summary_line_wins(self) -> None:
        text = (
            "Workspace First | Scheme One | Destination My Mac\n"
            "Workspace Second | Scheme Two | Destination My Mac\n"
        )

        result = parse_build_log(text)

        assert result is not None
        assert result.scheme == "One"

    def test_destination_stops_at_dash_separator(self) -> None:
        result = parse_build_log(
            "Workspace App | Scheme App | Destination iPhone 17 Pro - some trailer"
        )

        assert result is not None
        assert result.destination == "iPhone 17 Pro"

    def test_returns_none_for_unrecognized_text(self) -> None:
        assert parse_build_log("this is not a valid xcactivitylog") is None


@pytest.mark.anyio
class TestReadBuildLog:
    async def test_appends_path_to_decompress_command(self) -> None:
        runner = FakeToolRunner(text_result(WORKSPACE_LOG))
        path = Path("/dd/App/Logs/Build/abc.xcactivitylog")

        result = await read_build_log(path, runner)

        assert result is not None
        assert result.scheme == "PizzaCoachWatch"
        assert runner.calls == [("gunzip", "-c", str(path))]

    async def test_custom_decompress_command(self) -> None:
        runner = FakeToolRunner(text_result(WORKSPACE_LOG))
        path = Path("/tmp/a.xcactivitylog")

        _ = await read_build_log(path, runner, ("zcat",))

        assert runner.calls == [("zcat", str(path))]

    async def test_nonzero_exit_yields_none(self) -> None:
        runner = FakeToolRunner(ToolResult(command=(), exit_code=1, stdout=b"partial"))

        assert await decompress_build_log(Path("/tmp/a.xcactivitylog"), runner) is None

    async def test_tool_failure_yields_none(self) -> None:
        error = ExternalToolError("gunzip: command not found", command=("gunzip",))
        runner = FakeToolRunner(error)

        assert await read_build_log(Path("/tmp/a.xcactivitylog"), runner) is None

    async def test_undecodable_output_yields_none(self) -> None:
        runner = FakeToolRunner(ToolResult(command=(), exit_code=0, stdout=b"\xff\xfe\xfa"))

        assert await decompress_build_log(Path("/tmp/a.xcactivitylog"), runner) is None

    async def test_log_without_summary_yields_none(self) -> None:
        runner = FakeToolRunner(text_result("nothing useful"))

        assert await read_build_log(Path("/tmp/a.xcactivitylog"), runner) is None
