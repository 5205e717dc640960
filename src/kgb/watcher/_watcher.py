"""Recursive DerivedData watcher built on watchfiles."""

from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TYPE_CHECKING, final

import anyio
import anyio.abc
from watchfiles import awatch

from kgb.utils._logging import get_default_logger

from ._filter import ArtifactFilter, events_from_changes
from ._models import ArtifactEvent

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

type ArtifactCallback = Callable[[ArtifactEvent], Awaitable[None]]


@final
class ArtifactWatcher:
    """Watches a directory tree and reports new build artifacts.

    Changes are collected over a latency window, filtered down to added or
    modified build logs and result bundles, and de-duplicated per batch.
    Each resulting event runs the callback in its own task, so a slow or
    failing callback never delays or stops the watcher.

    Example:
        >>> watcher = ArtifactWatcher(root, manager.handle_event)
        >>> async with anyio.create_task_group() as tg:
        ...     await tg.start(watcher.run)
        ...     ...
        ...     watcher.stop()
    """

    __slots__ = (
        "_callback",
        "_filter",
        "_force_polling",
        "_latency",
        "_logger",
        "_root",
        "_stop_event",
    )

    def __init__(
        self,
        root: Path,
        callback: ArtifactCallback,
        *,
        latency: float = 1.0,
        force_polling: bool | None = None,
        logger: "FilteringBoundLogger | None" = None,  # noqa: UP037
    ) -> None:
        """Initialize the watcher.

        Args:
            root: Directory to watch recursively.
            callback: Awaited once per artifact event.
            latency: Seconds changes are grouped for before being reported.
            force_polling: Passed to watchfiles; None lets it decide.
            logger: Logger for watcher events.
        """
        self._root = root
        self._callback = callback
        self._latency = latency
        self._force_polling = force_polling
        self._filter = ArtifactFilter()
        self._logger: FilteringBoundLogger = logger or get_default_logger()
        self._stop_event: anyio.Event | None = None

    @property
    def root(self) -> Path:
        """Return the watched directory."""
        return self._root

    @property
    def running(self) -> bool:
        """Return True while run() is active."""
        return self._stop_event is not None

    async def run(
        self,
        *,
        task_status: anyio.abc.TaskStatus[None] = anyio.TASK_STATUS_IGNORED,
    ) -> None:
        """Watch until stop() is called or the task is cancelled.

        A second call while already running returns immediately. Callback
        tasks still in flight are awaited before returning.

        Args:
            task_status: Signalled once the watcher has been set up.
        """
        if self._stop_event is not None:
            task_status.started()
            return

        stop_event = anyio.Event()
        self._stop_event = stop_event
        self._logger.info("watcher_started", root=str(self._root), latency=self._latency)
        try:
            async with anyio.create_task_group() as tg:
                task_status.started()
                async for changes in awatch(
                    self._root,
                    watch_filter=self._filter,
                    debounce=int(self._latency * 1000),
                    stop_event=stop_event,
                    force_polling=self._force_polling,
                ):
                    for event in events_from_changes(changes):
                        self._logger.debug(
                            "artifact_observed",
                            kind=event.kind.value,
                            path=str(event.path),
                        )
                        tg.start_soon(self._dispatch, event)
        finally:
            self._stop_event = None
            self._logger.info("watcher_stopped", root=str(self._root))

    def stop(self) -> None:
        """Ask a running watcher to stop. Has no effect otherwise."""
        if self._stop_event is not None:
            self._stop_event.set()

    async def _dispatch(self, event: ArtifactEvent) -> None:
        try:
            await self._callback(event)
        except Exception:
            self._logger.exception(
                "artifact_callback_failed",
                kind=event.kind.value,
                path=str(event.path),
            )
