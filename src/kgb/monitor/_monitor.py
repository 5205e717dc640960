"""Long-running monitor wiring the watcher to the extraction pipeline.

This module provides the Monitor class that owns the store coordinator,
the pending extraction manager and the artifact watcher, and runs them
together using anyio for structured concurrency.
"""

import contextlib
import signal
from pathlib import Path
from typing import TYPE_CHECKING, final

import anyio
import anyio.abc
import anyio.to_thread
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from kgb.derived_data import ensure_access, find_todays_results
from kgb.enums import StoreChange
from kgb.exceptions import PersistenceError
from kgb.extraction import CommandExtractor, PendingExtractionManager, RetryPolicy
from kgb.store import (
    CanonicalCommand,
    CommandStore,
    StoreCoordinator,
    load_commands,
    save_commands,
)
from kgb.utils._exec import ProcessToolRunner, ToolRunner
from kgb.utils._logging import get_default_logger
from kgb.watcher import ArtifactWatcher

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from kgb.config import Config


@final
class Monitor:
    """Watches DerivedData and keeps the persisted command list current.

    On run() the monitor loads the persisted commands, checks the watched
    root, starts the coordinator, pending manager and watcher in one task
    group, optionally backfills today's result bundles, and then runs until
    SIGINT, SIGTERM or shutdown(). Every change to the command list is
    written back to disk by a saver task in a worker thread; bursts of
    changes collapse into one write of the latest list.
    """

    __slots__ = (
        "_changes",
        "_commands_file",
        "_config",
        "_coordinator",
        "_handle_signals",
        "_logger",
        "_manager",
        "_root",
        "_shutdown_event",
        "_store",
        "_unsaved",
        "_watcher",
    )

    def __init__(
        self,
        config: "Config",  # noqa: UP037
        *,
        runner: ToolRunner | None = None,
        logger: "FilteringBoundLogger | None" = None,  # noqa: UP037
        handle_signals: bool = True,
        force_polling: bool | None = None,
    ) -> None:
        """Initialize the monitor.

        Args:
            config: Loaded configuration.
            runner: Runs external tools. Uses ProcessToolRunner with the
                configured timeout if None.
            logger: Logger shared by all components.
            handle_signals: Whether SIGINT and SIGTERM trigger shutdown.
            force_polling: Passed through to the watcher.
        """
        self._config = config
        self._logger: FilteringBoundLogger = logger or get_default_logger()
        self._handle_signals = handle_signals
        self._root: Path = config.watch_root
        self._commands_file: Path = config.commands_file
        self._shutdown_event: anyio.Event | None = None
        self._changes: MemoryObjectSendStream[None] | None = None
        self._unsaved: tuple[CanonicalCommand, ...] | None = None

        tool_runner = (
            runner
            if runner is not None
            else ProcessToolRunner(timeout=config.tools.timeout)
        )

        self._store = CommandStore()
        self._coordinator = StoreCoordinator(self._store)
        self._manager = PendingExtractionManager(
            self._coordinator,
            CommandExtractor(tool_runner, result_tool=config.tools.result_tool),
            self._root,
            runner=tool_runner,
            policy=RetryPolicy(
                max_attempts=config.retry.max_attempts,
                delay=config.retry.delay,
            ),
            decompress_command=config.tools.decompress,
            logger=self._logger,
        )
        self._watcher = ArtifactWatcher(
            self._root,
            self._manager.handle_event,
            latency=config.watch.latency,
            force_polling=force_polling,
            logger=self._logger,
        )

    @property
    def root(self) -> Path:
        """Return the watched DerivedData directory."""
        return self._root

    @property
    def coordinator(self) -> StoreCoordinator:
        """Return the coordinator owning the command store."""
        return self._coordinator

    @property
    def manager(self) -> PendingExtractionManager:
        """Return the pending extraction manager."""
        return self._manager

    @property
    def watcher(self) -> ArtifactWatcher:
        """Return the artifact watcher."""
        return self._watcher

    async def run(
        self,
        *,
        task_status: anyio.abc.TaskStatus[None] = anyio.TASK_STATUS_IGNORED,
    ) -> None:
        """Run until shutdown is triggered (via signal or shutdown()).

        Args:
            task_status: Signalled once the watcher is running and the
                backfill, if enabled, has been queued.

        Raises:
            WatchRootError: If the watched root is not an accessible directory.
            PersistenceError: If the persisted command list cannot be loaded.
        """
        _ = ensure_access(self._root)
        self._store.replace_all(load_commands(self._commands_file))
        self._unsaved = None
        changes, pending_changes = anyio.create_memory_object_stream[None](
            max_buffer_size=1
        )
        self._changes = changes
        unsubscribe = self._store.subscribe(self._on_store_change)
        self._shutdown_event = anyio.Event()

        async def handle_signals() -> None:
            with anyio.open_signal_receiver(signal.SIGINT, signal.SIGTERM) as signals:
                async for _signum in signals:
                    await self.shutdown()
                    break

        try:
            async with anyio.create_task_group() as tg:
                if self._handle_signals:
                    tg.start_soon(handle_signals)

                tg.start_soon(self._save_loop, pending_changes)
                await tg.start(self._coordinator.run)
                await tg.start(self._manager.run)
                await tg.start(self._watcher.run)

                if self._config.watch.backfill:
                    _ = await self.backfill()

                self._logger.info(
                    "monitor_started",
                    root=str(self._root),
                    commands=len(self._store.commands),
                )
                task_status.started()

                await self._shutdown_event.wait()

                self._watcher.stop()
                tg.cancel_scope.cancel()
        finally:
            unsubscribe()
            self._changes = None
            changes.close()
            pending_changes.close()
            # Changes made after the saver was cancelled
            with anyio.CancelScope(shield=True):
                await self._flush()
            self._shutdown_event = None
            self._logger.info("monitor_stopped", root=str(self._root))

    async def shutdown(self) -> None:
        """Trigger graceful shutdown; run() returns once tasks are cancelled."""
        if self._shutdown_event is not None:
            self._shutdown_event.set()

    async def backfill(self, date_stamp: str | None = None) -> int:
        """Feed today's result bundles through the pending pipeline.

        Args:
            date_stamp: Date to look for (``YYYY.MM.DD``). Defaults to today.

        Returns:
            The number of bundles that started a pending extraction.
        """
        hits = await anyio.to_thread.run_sync(
            find_todays_results, self._root, date_stamp
        )
        started = 0
        for path in hits:
            if await self._manager.bundle_created(path) is not None:
                started += 1
        self._logger.info("backfill_finished", found=len(hits), started=started)
        return started

    def _on_store_change(self, change: StoreChange) -> None:
        if change != StoreChange.COMMANDS or self._changes is None:
            return
        self._unsaved = self._store.commands
        # A full buffer already means a save is due
        with contextlib.suppress(anyio.WouldBlock):
            self._changes.send_nowait(None)

    async def _save_loop(self, changes: MemoryObjectReceiveStream[None]) -> None:
        async for _ in changes:
            await self._flush()

    async def _flush(self) -> None:
        commands = self._unsaved
        if commands is None:
            return
        try:
            await anyio.to_thread.run_sync(save_commands, self._commands_file, commands)
        except PersistenceError as e:
            self._logger.error(
                "commands_save_failed",
                path=str(e.path),
                error=str(e),
            )
        if self._unsaved is commands:
            self._unsaved = None
