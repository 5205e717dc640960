"""Project source resolution from DerivedData build metadata.

Each project folder in DerivedData carries build descriptors under
``Build/Intermediates.noindex/XCBuildData``. A ``*build-request.json``
descriptor records the ``containerPath`` of the project or workspace the
build was started from; its parent directory is the project source dir.
"""

import os
from pathlib import Path

from kgb.enums import ProjectType
from kgb.exceptions import NoProjectFoundError
from kgb.utils._json import load_json_file

BUILD_DATA_SUBPATH = Path("Build/Intermediates.noindex/XCBuildData")
BUILD_REQUEST_SUFFIX = "build-request.json"

WORKSPACE_SUFFIX = ".xcworkspace"
PROJECT_SUFFIX = ".xcodeproj"


def get_build_data_dir(root: Path, artifact_path: Path) -> Path | None:
    """Get the build metadata directory for the project owning an artifact.

    Args:
        root: The watched DerivedData root.
        artifact_path: Any path inside a project folder under the root.

    Returns:
        ``<root>/<projectFolder>/Build/Intermediates.noindex/XCBuildData``,
        or None if the artifact is not inside the root.
    """
    try:
        relative = artifact_path.relative_to(root)
    except ValueError:
        return None

    if not relative.parts:
        return None

    return root / relative.parts[0] / BUILD_DATA_SUBPATH


def find_build_request(build_data_dir: Path) -> Path | None:
    """Find the first build request descriptor under a metadata directory.

    The walk is sorted so the result is stable across runs.

    Args:
        build_data_dir: Directory to search recursively.

    Returns:
        Path to the descriptor, or None if there is none.
    """
    if not build_data_dir.is_dir():
        return None

    for dirpath, dirnames, filenames in os.walk(build_data_dir):
        dirnames.sort()
        for filename in sorted(filenames):
            if filename.endswith(BUILD_REQUEST_SUFFIX):
                return Path(dirpath) / filename
    return None


def resolve_project_source_dir(root: Path, artifact_path: Path) -> Path | None:
    """Resolve the source directory of the project that produced an artifact.

    A missing answer is not an error: Xcode may not have written the build
    metadata yet, so callers are expected to try again later.

    Args:
        root: The watched DerivedData root.
        artifact_path: The artifact's path under the root.

    Returns:
        The directory containing the project or workspace, or None.
    """
    build_data_dir = get_build_data_dir(root, artifact_path)
    if build_data_dir is None:
        return None

    request_file = find_build_request(build_data_dir)
    if request_file is None:
        return None

    data = load_json_file(request_file)
    if not isinstance(data, dict):
        return None

    container_path = data.get("containerPath")
    if not isinstance(container_path, str) or not container_path:
        return None

    return Path(container_path).parent


def detect_project(source_dir: Path) -> tuple[Path, ProjectType]:
    """Find the workspace or project file in a source directory.

    A workspace wins over a project when both are present.

    Args:
        source_dir: Directory to scan (immediate children only).

    Returns:
        Tuple of (project path, project type).

    Raises:
        NoProjectFoundError: If neither a workspace nor a project exists.
    """
    try:
        names = sorted(child.name for child in source_dir.iterdir())
    except OSError as e:
        msg = f"Cannot read project source directory {source_dir}: {e}"
        raise NoProjectFoundError(msg, source_dir=source_dir) from e

    for suffix, project_type in (
        (WORKSPACE_SUFFIX, ProjectType.WORKSPACE),
        (PROJECT_SUFFIX, ProjectType.PROJECT),
    ):
        for name in names:
            if name.endswith(suffix):
                return source_dir / name, project_type

    msg = f"No {WORKSPACE_SUFFIX} or {PROJECT_SUFFIX} found in {source_dir}"
    raise NoProjectFoundError(msg, source_dir=source_dir)
