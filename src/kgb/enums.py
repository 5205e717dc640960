"""Shared enumerations for KGB."""

from enum import StrEnum


class BuildAction(StrEnum):
    """The xcodebuild action a run reproduces."""

    BUILD = "build"
    TEST = "test"


class ProjectType(StrEnum):
    """Whether a command targets an .xcodeproj or an .xcworkspace."""

    PROJECT = "project"
    WORKSPACE = "workspace"


class PendingState(StrEnum):
    """Lifecycle states of a pending extraction.

    - WAITING: A result bundle is attached and extraction is being retried
    - BUILD_ONLY: A build log was seen but no result bundle yet
    - FAILED: Extraction hit a fatal error or ran out of attempts
    """

    WAITING = "waiting"
    BUILD_ONLY = "build_only"
    FAILED = "failed"


class ArtifactKind(StrEnum):
    """Categories of artifacts reported by the watcher."""

    BUILD_LOG_CREATED = "build_log_created"
    RESULT_BUNDLE_CREATED = "result_bundle_created"


class StoreChange(StrEnum):
    """Kinds of change notifications emitted by the command store."""

    COMMANDS = "commands"
    PENDING = "pending"
    BUG_REPORT = "bug_report"
