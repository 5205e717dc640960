"""Unit tests for bug report composition."""

from collections.abc import Callable
from pathlib import Path
from urllib.parse import parse_qs, urlsplit

import pendulum
import pytest

from kgb.enums import BuildAction
from kgb.report import REDACTED, compose_body, compose_subject, mailto_url, redact_home_path
from kgb.store import BugReport, CanonicalCommand

HOME = Path("/Users/alice")


@pytest.fixture
def report(make_command: Callable[..., CanonicalCommand]) -> BugReport:
    t0 = pendulum.datetime(2026, 2, 21, 10, tz="UTC")
    return BugReport(
        broken_command=make_command(
            action=BuildAction.TEST, device_name="iPhone 16", timestamp=t0, is_flagged_as_bug=True
        ),
        working_command=make_command(action=BuildAction.TEST, timestamp=t0.add(minutes=5)),
    )


class TestRedactHomePath:
    def test_redacts_home_component(self) -> None:
        result = redact_home_path("/Users/alice/src/App/App.xcodeproj", HOME)

        assert result == f"/Users/{REDACTED}/src/App/App.xcodeproj"

    def test_redacts_every_occurrence(self) -> None:
        result = redact_home_path("/Users/alice/a and /Users/alice/b", HOME)

        assert result == f"/Users/{REDACTED}/a and /Users/{REDACTED}/b"

    def test_home_alone(self) -> None:
        assert redact_home_path("cd /Users/alice", HOME) == f"cd /Users/{REDACTED}"

    def test_does_not_match_longer_user_name(self) -> None:
        text = "/Users/alicebob/src"

        assert redact_home_path(text, HOME) == text

    def test_partial_home_does_not_match(self) -> None:
        assert redact_home_path("/Users/alice/x", Path("/Users/al")) == "/Users/alice/x"

    def test_root_home_is_ignored(self) -> None:
        assert redact_home_path("/usr/bin", Path("/")) == "/usr/bin"

    def test_defaults_to_current_home(self) -> None:
        text = f"{Path.home()}/project"

        assert str(Path.home()) not in redact_home_path(text)


class TestCompose:
    def test_body_lists_both_commands(self, report: BugReport) -> None:
        body = compose_body(report, HOME)

        lines = body.splitlines()
        assert lines[:3] == ["KGB Bug Report", "==============", ""]
        assert "--- BROKEN COMMAND ---" in lines
        assert "--- WORKING COMMAND ---" in lines
        assert lines.index("--- BROKEN COMMAND ---") < lines.index("--- WORKING COMMAND ---")
        assert "Device: iPhone 16" in lines
        assert "Device: iPhone 17 Pro" in lines
        assert "Action: test" in lines
        assert "OS: 26.2" in lines

    def test_body_redacts_project_paths(self, report: BugReport) -> None:
        body = compose_body(report, HOME)

        assert "/Users/alice" not in body
        assert f"Project: /Users/{REDACTED}/src/MyApp/MyApp.xcodeproj" in body
        assert f"-project /Users/{REDACTED}/src/MyApp/MyApp.xcodeproj" in body

    def test_subject(self, report: BugReport) -> None:
        assert compose_subject(report) == "KGB Bug: MyApp test"

    def test_mailto_round_trips_subject_and_body(self, report: BugReport) -> None:
        url = mailto_url(report, HOME)

        parts = urlsplit(url)
        query = parse_qs(parts.query)
        assert parts.scheme == "mailto"
        assert query["subject"] == ["KGB Bug: MyApp test"]
        assert query["body"] == [compose_body(report, HOME)]
        assert " " not in url
        assert "\n" not in url
