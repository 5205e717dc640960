"""Result bundle filename parsing.

Xcode names result bundles ``<Action>-<Scheme>-<YYYY.MM.DD>_<HH-MM-SS><±ZZZZ>.xcresult``.
The scheme is everything between the action prefix and the first date stamp.
A scheme that itself contains ``-DDDD.DD.DD_`` is split at that point; the
naming convention carries no delimiter that would disambiguate it.
"""

import re
from dataclasses import dataclass
from pathlib import PurePath

from kgb.enums import BuildAction

# Checked in order; the first prefix that matches wins.
ACTION_PREFIXES: tuple[tuple[str, BuildAction], ...] = (
    ("Test-", BuildAction.TEST),
    ("Build-", BuildAction.BUILD),
    ("Run-", BuildAction.BUILD),
)

_TIMESTAMP_PATTERN = re.compile(r"-\d{4}\.\d{2}\.\d{2}_")


@dataclass(frozen=True, slots=True)
class FilenameResult:
    """Scheme and action decoded from a result bundle name.

    Attributes:
        scheme: The Xcode scheme name.
        action: The action the run maps to.
    """

    scheme: str
    action: BuildAction


def parse_result_filename(filename: str) -> FilenameResult | None:
    """Decode the scheme and action from a result bundle filename.

    Args:
        filename: The bundle's file name (a full path is accepted too).

    Returns:
        The decoded scheme and action, or None if the name does not follow
        the convention.
    """
    name = PurePath(filename.rstrip("/")).name
    stem, dot, ext = name.rpartition(".")
    # "--0800" style offsets never form an extension
    if not dot or not ext.isalpha():
        stem = name

    for prefix, action in ACTION_PREFIXES:
        if not stem.startswith(prefix):
            continue
        remainder = stem[len(prefix) :]

        match = _TIMESTAMP_PATTERN.search(remainder)
        if match is None:
            continue

        scheme = remainder[: match.start()]
        if not scheme:
            continue

        return FilenameResult(scheme=scheme, action=action)

    return None
