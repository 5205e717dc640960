"""Shared test fixtures for KGB tests."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pendulum
import pytest

from kgb.enums import BuildAction, ProjectType
from kgb.store import CanonicalCommand
from tests.fakes import DerivedDataProject


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def make_derived_data_project(
    tmp_path: Path,
) -> Callable[..., DerivedDataProject]:
    """Return a factory creating project folders under a DerivedData root."""

    def _make(
        name: str = "MyApp",
        *,
        workspace: bool = False,
        build_request: bool = True,
    ) -> DerivedDataProject:
        root = tmp_path / "DerivedData"
        folder = root / f"{name}-abcdefghijklmnop"
        folder.mkdir(parents=True, exist_ok=True)

        source_dir = tmp_path / "src" / name
        suffix = ".xcworkspace" if workspace else ".xcodeproj"
        project_path = source_dir / f"{name}{suffix}"
        project_path.mkdir(parents=True, exist_ok=True)

        project = DerivedDataProject(
            root=root,
            folder=folder,
            source_dir=source_dir,
            project_path=project_path,
        )
        if build_request:
            _ = project.write_build_request()
        return project

    return _make


@pytest.fixture
def make_command() -> Callable[..., CanonicalCommand]:
    """Return a factory function to create CanonicalCommand with defaults."""

    def _make(**overrides: Any) -> CanonicalCommand:  # pyright: ignore[reportAny, reportExplicitAny]
        values: dict[str, Any] = {  # pyright: ignore[reportExplicitAny]
            "project_path": "/Users/alice/src/MyApp/MyApp.xcodeproj",
            "project_type": ProjectType.PROJECT,
            "scheme": "MyApp",
            "action": BuildAction.BUILD,
            "platform": "iOS Simulator",
            "device_name": "iPhone 17 Pro",
            "os_version": "26.2",
            "timestamp": pendulum.datetime(2026, 2, 21, 14, 24, 35, tz="UTC"),
        }
        values.update(overrides)
        return CanonicalCommand(**values)  # pyright: ignore[reportAny]

    return _make
