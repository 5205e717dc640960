"""Filesystem watching for new build artifacts.

Key Components:
    - ArtifactWatcher: Recursive watchfiles-based watcher with per-event tasks
    - ArtifactEvent: A newly observed build log or result bundle
    - ArtifactFilter: watchfiles filter that keeps only artifacts
    - classify_artifact_path: Maps a path to its ArtifactKind
"""

from ._filter import (
    BUILD_LOG_SUFFIX,
    RESULT_BUNDLE_SUFFIX,
    ArtifactFilter,
    classify_artifact_path,
    events_from_changes,
)
from ._models import ArtifactEvent
from ._watcher import ArtifactCallback, ArtifactWatcher

__all__ = [
    "BUILD_LOG_SUFFIX",
    "RESULT_BUNDLE_SUFFIX",
    "ArtifactCallback",
    "ArtifactEvent",
    "ArtifactFilter",
    "ArtifactWatcher",
    "classify_artifact_path",
    "events_from_changes",
]
