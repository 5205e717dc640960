"""Same-day backfill scan over DerivedData.

Finds result bundles written earlier today so that runs finished before
the watcher started still show up.
"""

from pathlib import Path
from typing import TYPE_CHECKING

import anyio
import anyio.to_thread
import pendulum

from kgb.exceptions import ExtractionError
from kgb.utils._logging import get_default_logger

from ._resolver import resolve_project_source_dir

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from kgb.extraction import Extractor
    from kgb.store import CanonicalCommand

# Relative to each project folder under the watched root
RESULT_LOG_DIRS: tuple[str, ...] = ("Logs/Build", "Logs/Test")

RESULT_BUNDLE_SUFFIX = ".xcresult"


def today_date_stamp(tz: str = "local") -> str:
    """Return today's date in the ``YYYY.MM.DD`` form used in bundle names."""
    return pendulum.now(tz).format("YYYY.MM.DD")


def find_todays_results(root: Path, date_stamp: str | None = None) -> list[Path]:
    """Find result bundles created on a given day.

    Args:
        root: The watched DerivedData root.
        date_stamp: Day to look for; defaults to today.

    Returns:
        Bundle paths, ordered by project folder then log directory then name.
    """
    stamp = date_stamp if date_stamp is not None else today_date_stamp()

    try:
        project_dirs = sorted(child for child in root.iterdir() if child.is_dir())
    except OSError:
        return []

    results: list[Path] = []
    for project_dir in project_dirs:
        for logs_dir in RESULT_LOG_DIRS:
            logs_path = project_dir / logs_dir
            try:
                entries = sorted(logs_path.iterdir())
            except OSError:
                continue
            results.extend(
                entry
                for entry in entries
                if entry.name.endswith(RESULT_BUNDLE_SUFFIX) and stamp in entry.name
            )
    return results


async def scan_and_extract(
    root: Path,
    extractor: "Extractor",  # noqa: UP037
    *,
    date_stamp: str | None = None,
    logger: "FilteringBoundLogger | None" = None,  # noqa: UP037
) -> list["CanonicalCommand"]:  # noqa: UP037
    """Extract a command from each of today's result bundles, once.

    No pending entries are created: a bundle that cannot be extracted is
    logged and skipped.

    Args:
        root: The watched DerivedData root.
        extractor: Orchestrator used for each bundle.
        date_stamp: Day to look for; defaults to today.
        logger: Logger for skipped bundles.

    Returns:
        The commands that were extracted.
    """
    log = logger if logger is not None else get_default_logger()
    paths = await anyio.to_thread.run_sync(find_todays_results, root, date_stamp)

    commands: list[CanonicalCommand] = []
    for path in paths:
        source_dir = await anyio.to_thread.run_sync(
            resolve_project_source_dir, root, path
        )
        try:
            command = await extractor.extract(path, source_dir)
        except ExtractionError as e:
            log.info(
                "scan_skipped",
                path=str(path),
                error=str(e),
                error_type=type(e).__name__,
            )
            continue
        commands.append(command)
    return commands
