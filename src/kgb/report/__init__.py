"""Bug report composition.

Key Components:
    - compose_subject / compose_body: Plain text report for a BugReport
    - mailto_url: The report as a mailto link
    - redact_home_path: Strips the user's home directory from text
"""

from ._composer import (
    REDACTED,
    compose_body,
    compose_subject,
    mailto_url,
    redact_home_path,
)

__all__ = [
    "REDACTED",
    "compose_body",
    "compose_subject",
    "mailto_url",
    "redact_home_path",
]
