"""Bug report composition for broken/working command pairs.

The report shows both xcodebuild invocations and their destinations so the
recipient can diff them. The user's home directory is redacted from the
whole body before it leaves the machine.
"""

import re
from pathlib import Path
from urllib.parse import quote, urlencode

from kgb.store import BugReport, CanonicalCommand

REDACTED = "<redacted>"
SUBJECT_PREFIX = "KGB Bug"


def redact_home_path(text: str, home: Path | None = None) -> str:
    """Replace the user's home directory with a redacted placeholder.

    ``/Users/alice/src/App.xcodeproj`` becomes
    ``/Users/<redacted>/src/App.xcodeproj``. Only whole path components are
    replaced, so ``/Users/al`` does not match inside ``/Users/alice``.

    Args:
        text: Text that may contain the home directory.
        home: The home directory. Defaults to the current user's.

    Returns:
        The text with every occurrence of the home directory redacted.
    """
    home = home if home is not None else Path.home()
    home_str = str(home).rstrip("/")
    if not home_str:
        return text
    replacement = f"{str(home.parent).rstrip('/')}/{REDACTED}"
    pattern = re.compile(re.escape(home_str) + r"(?![\w.-])")
    return pattern.sub(lambda _: replacement, text)


def _command_block(title: str, command: CanonicalCommand) -> list[str]:
    return [
        f"--- {title} ---",
        command.command_string,
        "",
        f"Scheme: {command.scheme}",
        f"Action: {command.action.value}",
        f"Platform: {command.platform}",
        f"Device: {command.device_name}",
        f"OS: {command.os_version}",
        f"Project: {command.project_path}",
    ]


def compose_body(report: BugReport, home: Path | None = None) -> str:
    """Render the report body with the home directory redacted."""
    lines = [
        "KGB Bug Report",
        "==============",
        "",
        *_command_block("BROKEN COMMAND", report.broken_command),
        "",
        *_command_block("WORKING COMMAND", report.working_command),
    ]
    return redact_home_path("\n".join(lines), home)


def compose_subject(report: BugReport) -> str:
    """Render the report subject, e.g. ``KGB Bug: MyApp build``."""
    broken = report.broken_command
    return f"{SUBJECT_PREFIX}: {broken.scheme} {broken.action.value}"


def mailto_url(report: BugReport, home: Path | None = None) -> str:
    """Build a mailto URL carrying the subject and redacted body."""
    query = urlencode(
        {"subject": compose_subject(report), "body": compose_body(report, home)},
        quote_via=quote,
    )
    return f"mailto:?{query}"
