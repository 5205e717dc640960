"""Data models for the command store.

This module defines the records the store keeps:
- CanonicalCommand: A fully resolved, replayable xcodebuild invocation
- PendingExtraction: A run whose command is not resolved yet
- ProjectGroup: Commands clustered by project for display
- BugReport: A flagged broken command paired with a later working one
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path, PurePath
from typing import Any, Self
from uuid import UUID, uuid4

import pendulum

from kgb.enums import BuildAction, PendingState, ProjectType

type CommandKey = tuple[str, BuildAction, str]


@dataclass(frozen=True, slots=True)
class CanonicalCommand:
    """A fully resolved build or test invocation.

    Attributes:
        project_path: Absolute path to the .xcodeproj or .xcworkspace.
        project_type: Whether project_path is a project or a workspace.
        scheme: Scheme name.
        action: The xcodebuild action.
        platform: Destination platform (e.g. "iOS Simulator").
        device_name: Destination device name.
        os_version: Destination OS version.
        timestamp: When the command was resolved (timezone aware).
        is_flagged_as_bug: Whether the user marked this run as broken.
        id: Stable identifier used for flagging and removal.
    """

    project_path: str
    project_type: ProjectType
    scheme: str
    action: BuildAction
    platform: str
    device_name: str
    os_version: str
    timestamp: datetime
    is_flagged_as_bug: bool = False
    id: UUID = field(default_factory=uuid4)

    @property
    def project_name(self) -> str:
        """Return the project or workspace name without its extension."""
        return PurePath(self.project_path).stem

    @property
    def key(self) -> CommandKey:
        """Return the de-duplication key (scheme, action, project name)."""
        return (self.scheme, self.action, self.project_name)

    @property
    def command_string(self) -> str:
        """Return the xcodebuild invocation that reproduces this run."""
        project_flag = (
            "-workspace" if self.project_type == ProjectType.WORKSPACE else "-project"
        )
        destination = (
            f"platform={self.platform},name={self.device_name},OS={self.os_version}"
        )
        return (
            f"xcodebuild {self.action.value} "
            f"{project_flag} {self.project_path} "
            f"-scheme {self.scheme} "
            f"-destination '{destination}'"
        )

    def with_flag(self, flagged: bool) -> Self:  # noqa: FBT001
        """Return a copy with the bug flag set to the given value."""
        return replace(self, is_flagged_as_bug=flagged)

    def to_dict(self) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        """Convert to the persisted JSON mapping."""
        return {
            "id": str(self.id),
            "projectPath": self.project_path,
            "projectType": self.project_type.value,
            "scheme": self.scheme,
            "action": self.action.value,
            "platform": self.platform,
            "deviceName": self.device_name,
            "osVersion": self.os_version,
            "timestamp": self.timestamp.isoformat(),
            "isFlaggedAsBug": self.is_flagged_as_bug,
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    ) -> Self:
        """Create a command from its persisted JSON mapping.

        Raises:
            KeyError: If a required key is missing.
            ValueError: If a value cannot be converted.
        """
        timestamp = pendulum.parse(data["timestamp"])
        if not isinstance(timestamp, datetime):
            msg = f"Expected a date-time timestamp, got {data['timestamp']!r}"
            raise ValueError(msg)  # noqa: TRY004

        return cls(
            id=UUID(data["id"]),
            project_path=data["projectPath"],
            project_type=ProjectType(data["projectType"]),
            scheme=data["scheme"],
            action=BuildAction(data["action"]),
            platform=data["platform"],
            device_name=data["deviceName"],
            os_version=data["osVersion"],
            timestamp=timestamp,
            is_flagged_as_bug=bool(data.get("isFlaggedAsBug", False)),
        )


@dataclass(frozen=True, slots=True)
class PendingExtraction:
    """A run that has been sighted but not resolved into a command.

    Attributes:
        scheme: Scheme name from the build log or bundle name.
        state: Current lifecycle state.
        destination: Human-readable destination from the build log, if seen.
        bundle_path: The result bundle, once one has been attached.
        created_at: When the run was first sighted.
        id: Stable identifier; survives bundle attachment.
    """

    scheme: str
    state: PendingState = PendingState.BUILD_ONLY
    destination: str | None = None
    bundle_path: Path | None = None
    created_at: datetime = field(default_factory=lambda: pendulum.now("UTC"))
    id: UUID = field(default_factory=uuid4)

    @property
    def is_failed(self) -> bool:
        """Return True if the entry is in the terminal failed state."""
        return self.state == PendingState.FAILED


@dataclass(frozen=True, slots=True)
class ProjectGroup:
    """Commands that share a project name.

    Attributes:
        project_name: The shared project name.
        commands: Commands in store order.
    """

    project_name: str
    commands: tuple[CanonicalCommand, ...]

    @property
    def latest(self) -> datetime:
        """Return the most recent command timestamp in the group."""
        return max(command.timestamp for command in self.commands)


@dataclass(frozen=True, slots=True)
class BugReport:
    """A broken run paired with a later working run of the same key.

    Attributes:
        broken_command: The flagged command.
        working_command: A later, unflagged command with the same key.
    """

    broken_command: CanonicalCommand
    working_command: CanonicalCommand
