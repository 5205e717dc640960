"""Artifact classification and watchfiles filtering."""

from collections.abc import Iterable
from pathlib import Path

from watchfiles import BaseFilter, Change

from kgb.enums import ArtifactKind

from ._models import ArtifactEvent

RESULT_BUNDLE_SUFFIX = ".xcresult"
BUILD_LOG_SUFFIX = ".xcactivitylog"

_RELEVANT_CHANGES = frozenset({Change.added, Change.modified})


def classify_artifact_path(path: str | Path) -> ArtifactKind | None:
    """Classify a path by its artifact extension.

    A trailing separator is ignored, so bundle directories reported as
    ``Foo.xcresult/`` classify like ``Foo.xcresult``.

    Args:
        path: The changed path.

    Returns:
        The artifact kind, or None for any other path.
    """
    name = str(path).rstrip("/\\")
    if name.endswith(RESULT_BUNDLE_SUFFIX):
        return ArtifactKind.RESULT_BUNDLE_CREATED
    if name.endswith(BUILD_LOG_SUFFIX):
        return ArtifactKind.BUILD_LOG_CREATED
    return None


class ArtifactFilter(BaseFilter):
    """Passes only added or modified build logs and result bundles."""

    def __call__(self, change: Change, path: str) -> bool:
        if change not in _RELEVANT_CHANGES:
            return False
        return classify_artifact_path(path) is not None


def events_from_changes(changes: Iterable[tuple[Change, str]]) -> list[ArtifactEvent]:
    """Turn one batch of raw changes into de-duplicated artifact events.

    A bundle is usually reported several times per batch (created, then
    modified as Xcode writes into it); only one event per (kind, path) is
    kept. Events are ordered by path.

    Args:
        changes: Raw (change, path) pairs from watchfiles.

    Returns:
        The artifact events in the batch.
    """
    seen: set[tuple[ArtifactKind, Path]] = set()
    events: list[ArtifactEvent] = []
    for change, raw_path in sorted(changes, key=lambda item: item[1]):
        if change not in _RELEVANT_CHANGES:
            continue
        kind = classify_artifact_path(raw_path)
        if kind is None:
            continue
        path = Path(raw_path.rstrip("/\\"))
        if (kind, path) in seen:
            continue
        seen.add((kind, path))
        events.append(ArtifactEvent(kind=kind, path=path))
    return events
