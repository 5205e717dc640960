"""DerivedData layout knowledge: project resolution, access and backfill.

Key Components:
    - resolve_project_source_dir: Source dir from build request metadata
    - detect_project: Workspace or project file in a source dir
    - resolve_watch_root / has_access / ensure_access: Watched root handling
    - find_todays_results: Same-day result bundle discovery
    - scan_and_extract: One-shot extraction without pending records
"""

from ._access import ensure_access, has_access, resolve_watch_root
from ._resolver import (
    BUILD_DATA_SUBPATH,
    BUILD_REQUEST_SUFFIX,
    detect_project,
    find_build_request,
    get_build_data_dir,
    resolve_project_source_dir,
)
from ._scanner import (
    RESULT_LOG_DIRS,
    find_todays_results,
    scan_and_extract,
    today_date_stamp,
)

__all__ = [
    "BUILD_DATA_SUBPATH",
    "BUILD_REQUEST_SUFFIX",
    "RESULT_LOG_DIRS",
    "detect_project",
    "ensure_access",
    "find_build_request",
    "find_todays_results",
    "get_build_data_dir",
    "has_access",
    "resolve_project_source_dir",
    "resolve_watch_root",
    "scan_and_extract",
    "today_date_stamp",
]
