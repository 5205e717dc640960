"""Result manifest parsing.

The build results manifest is the JSON printed by
``xcresulttool get build-results``. While Xcode is still writing the bundle
the tool prints nothing, an error, or a manifest without a destination;
those cases, and a destination still missing fields, are reported as not
ready rather than malformed.
"""

from dataclasses import dataclass
from pathlib import Path

import orjson

from kgb.exceptions import ContentMalformedError, ContentNotReadyError

_DESTINATION_FIELDS: tuple[str, ...] = ("deviceName", "osVersion", "platform")


@dataclass(frozen=True, slots=True)
class Destination:
    """Device, OS and platform a run targeted.

    Attributes:
        device_name: Device or simulator name (e.g. "iPhone 17 Pro").
        os_version: OS version string (e.g. "26.2").
        platform: Platform name (e.g. "iOS Simulator").
    """

    device_name: str
    os_version: str
    platform: str


def parse_build_results(
    data: bytes | str,
    *,
    exit_code: int = 0,
    path: Path | None = None,
) -> Destination:
    """Decode the destination from a build results manifest.

    Args:
        data: Standard output of the result query tool.
        exit_code: The tool's exit status.
        path: The result bundle, for error context.

    Returns:
        The decoded destination.

    Raises:
        ContentNotReadyError: If the manifest is absent or incomplete.
        ContentMalformedError: If the manifest has an unexpected shape.
    """
    if not data or not data.strip():
        if exit_code != 0:
            msg = f"Result query exited with status {exit_code} and no output"
        else:
            msg = "Result query produced no output"
        raise ContentNotReadyError(msg, path=path)

    try:
        manifest = orjson.loads(data)
    except orjson.JSONDecodeError as e:
        msg = f"Result manifest is not valid JSON yet: {e}"
        raise ContentNotReadyError(msg, path=path) from e

    if not isinstance(manifest, dict):
        msg = f"Expected JSON object, got {type(manifest).__name__}"
        raise ContentMalformedError(msg, path=path)

    if "destination" not in manifest:
        msg = "Result manifest has no destination yet"
        raise ContentNotReadyError(msg, path=path)

    destination = manifest["destination"]
    if not isinstance(destination, dict):
        msg = f"Expected destination object, got {type(destination).__name__}"
        raise ContentMalformedError(msg, path=path)

    missing = [name for name in _DESTINATION_FIELDS if name not in destination]
    if missing:
        msg = f"Destination is missing fields: {', '.join(missing)}"
        raise ContentNotReadyError(msg, path=path)

    wrong_type = [
        name for name in _DESTINATION_FIELDS if not isinstance(destination[name], str)
    ]
    if wrong_type:
        msg = f"Destination fields are not strings: {', '.join(wrong_type)}"
        raise ContentMalformedError(msg, path=path)

    return Destination(
        device_name=destination["deviceName"],
        os_version=destination["osVersion"],
        platform=destination["platform"],
    )
