"""Unit tests for the Monitor."""

import threading
from collections.abc import Callable
from pathlib import Path

import anyio
import pytest
from pytest_mock import MockerFixture

from kgb.config import Config
from kgb.derived_data import today_date_stamp
from kgb.exceptions import PersistenceError, WatchRootError
from kgb.monitor import Monitor
from kgb.store import CanonicalCommand, load_commands, save_commands
from tests.fakes import DerivedDataProject, FakeToolRunner, manifest_result


def make_config(root: Path, commands_file: Path, *, backfill: bool = True) -> Config:
    return Config.from_dict(
        {
            "watch": {"root": str(root), "latency": 0.1, "backfill": backfill},
            "retry": {"delay": 0},
            "storage": {"commands_file": str(commands_file)},
        }
    )


async def wait_for_commands(monitor: Monitor, count: int) -> tuple[CanonicalCommand, ...]:
    while True:
        commands, _ = await monitor.coordinator.snapshot()
        if len(commands) >= count:
            return commands
        await anyio.sleep(0.02)


@pytest.mark.anyio
class TestMonitor:
    async def test_backfills_todays_bundles_and_persists(
        self,
        tmp_path: Path,
        make_derived_data_project: Callable[..., DerivedDataProject],
    ) -> None:
        project = make_derived_data_project()
        _ = project.add_bundle(f"Test-MyApp-{today_date_stamp()}_09-30-00--0800.xcresult")
        commands_file = tmp_path / "data" / "commands.json"
        monitor = Monitor(
            make_config(project.root, commands_file),
            runner=FakeToolRunner(manifest_result()),
            handle_signals=False,
        )

        with anyio.fail_after(15):
            async with anyio.create_task_group() as tg:
                await tg.start(monitor.run)
                commands = await wait_for_commands(monitor, 1)
                await monitor.shutdown()

        assert commands[0].scheme == "MyApp"
        assert load_commands(commands_file) == list(commands)
        assert not monitor.watcher.running

    async def test_loads_persisted_commands_without_rewriting(
        self,
        tmp_path: Path,
        make_derived_data_project: Callable[..., DerivedDataProject],
        make_command: Callable[..., CanonicalCommand],
    ) -> None:
        project = make_derived_data_project()
        commands_file = tmp_path / "commands.json"
        saved = make_command()
        save_commands(commands_file, [saved])
        mtime = commands_file.stat().st_mtime_ns
        monitor = Monitor(
            make_config(project.root, commands_file, backfill=False),
            runner=FakeToolRunner(),
            handle_signals=False,
        )

        with anyio.fail_after(15):
            async with anyio.create_task_group() as tg:
                await tg.start(monitor.run)
                commands, pending = await monitor.coordinator.snapshot()
                await monitor.shutdown()

        assert commands == (saved,)
        assert pending == ()
        assert commands_file.stat().st_mtime_ns == mtime

    async def test_explicit_backfill(
        self,
        tmp_path: Path,
        make_derived_data_project: Callable[..., DerivedDataProject],
    ) -> None:
        project = make_derived_data_project()
        _ = project.add_bundle("Test-MyApp-2026.02.21_14-24-35--0800.xcresult")
        _ = project.add_bundle("Test-MyApp-2026.02.20_14-24-35--0800.xcresult")
        monitor = Monitor(
            make_config(project.root, tmp_path / "commands.json", backfill=False),
            runner=FakeToolRunner(manifest_result()),
            handle_signals=False,
        )

        with anyio.fail_after(15):
            async with anyio.create_task_group() as tg:
                await tg.start(monitor.run)
                started = await monitor.backfill("2026.02.21")
                _ = await wait_for_commands(monitor, 1)
                await monitor.shutdown()

        assert started == 1

    async def test_missing_root(self, tmp_path: Path) -> None:
        monitor = Monitor(
            make_config(tmp_path / "missing", tmp_path / "commands.json"),
            runner=FakeToolRunner(),
            handle_signals=False,
        )

        with pytest.raises(WatchRootError):
            await monitor.run()

    async def test_unreadable_command_list(self, tmp_path: Path) -> None:
        commands_file = tmp_path / "commands.json"
        _ = commands_file.write_text("{broken")
        monitor = Monitor(
            make_config(tmp_path, commands_file),
            runner=FakeToolRunner(),
            handle_signals=False,
        )

        with pytest.raises(PersistenceError):
            await monitor.run()

    async def test_save_failure_is_logged(
        self,
        tmp_path: Path,
        mocker: MockerFixture,
        make_derived_data_project: Callable[..., DerivedDataProject],
    ) -> None:
        project = make_derived_data_project()
        _ = project.add_bundle(f"Test-MyApp-{today_date_stamp()}_09-30-00--0800.xcresult")
        blocker = tmp_path / "not-a-dir"
        _ = blocker.write_text("")
        logger = mocker.Mock()
        monitor = Monitor(
            make_config(project.root, blocker / "commands.json"),
            runner=FakeToolRunner(manifest_result()),
            logger=logger,
            handle_signals=False,
        )

        with anyio.fail_after(15):
            async with anyio.create_task_group() as tg:
                await tg.start(monitor.run)
                _ = await wait_for_commands(monitor, 1)
                await monitor.shutdown()

        events = [call.args[0] for call in logger.error.call_args_list]
        assert "commands_save_failed" in events

    async def test_saves_off_the_event_loop_thread(
        self,
        tmp_path: Path,
        mocker: MockerFixture,
        make_derived_data_project: Callable[..., DerivedDataProject],
    ) -> None:
        project = make_derived_data_project()
        _ = project.add_bundle(f"Test-MyApp-{today_date_stamp()}_09-30-00--0800.xcresult")
        commands_file = tmp_path / "commands.json"
        save_threads: list[threading.Thread] = []

        def recording_save(path: Path, commands: tuple[CanonicalCommand, ...]) -> None:
            save_threads.append(threading.current_thread())
            save_commands(path, commands)

        _ = mocker.patch("kgb.monitor._monitor.save_commands", side_effect=recording_save)
        monitor = Monitor(
            make_config(project.root, commands_file),
            runner=FakeToolRunner(manifest_result()),
            handle_signals=False,
        )

        with anyio.fail_after(15):
            async with anyio.create_task_group() as tg:
                await tg.start(monitor.run)
                commands = await wait_for_commands(monitor, 1)
                await monitor.shutdown()

        assert save_threads
        assert threading.current_thread() not in save_threads
        assert load_commands(commands_file) == list(commands)
