"""Data models for the artifact watcher."""

from dataclasses import dataclass
from pathlib import Path

from kgb.enums import ArtifactKind


@dataclass(frozen=True, slots=True)
class ArtifactEvent:
    """A newly observed build artifact.

    Attributes:
        kind: Whether the artifact is a build log or a result bundle.
        path: Absolute path to the artifact.
    """

    kind: ArtifactKind
    path: Path
