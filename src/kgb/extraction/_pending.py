"""Pending extraction lifecycle management.

Tracks runs that have been sighted but not resolved and drives one retry
loop per result bundle. All state changes go through the StoreCoordinator;
the manager itself only keeps the handles of its running loops.
"""

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, final
from uuid import UUID

import anyio
import anyio.abc
import anyio.lowlevel
import anyio.to_thread

from kgb.derived_data._resolver import resolve_project_source_dir
from kgb.enums import ArtifactKind, PendingState
from kgb.exceptions import ContentNotReadyError, ExtractionError
from kgb.parsers import DEFAULT_DECOMPRESS_COMMAND, parse_result_filename, read_build_log
from kgb.store import CanonicalCommand, CommandStore, StoreCoordinator
from kgb.utils._exec import ProcessToolRunner, ToolRunner
from kgb.utils._logging import get_default_logger

from ._policy import RetryPolicy

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from kgb.watcher import ArtifactEvent

    from ._protocol import Extractor

type SourceResolver = Callable[[Path, Path], Path | None]


class ProjectMetadataNotReadyError(ContentNotReadyError):
    """Raised when the build request metadata for a bundle is not written yet."""


@final
class _RetryHandle:
    """Cancellation and completion signals for one retry loop."""

    __slots__ = ("_cancel", "done")

    def __init__(self) -> None:
        self._cancel = anyio.Event()
        self.done = anyio.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def cancel(self) -> None:
        self._cancel.set()

    async def sleep(self, seconds: float) -> None:
        """Sleep for the given time, returning early if cancelled."""
        if seconds <= 0:
            await anyio.lowlevel.checkpoint()
            return
        with anyio.move_on_after(seconds):
            await self._cancel.wait()


@final
class PendingExtractionManager:
    """Owns the pending extraction state machine.

    Build logs create build-only entries; result bundles either attach to a
    matching build-only entry (reusing its id) or create a waiting entry.
    Every bundle gets a retry loop that re-resolves the project source
    directory and re-runs extraction until it succeeds, fails fatally, or
    exhausts the retry policy.

    Run the manager in a task group with ``await tg.start(manager.run)``;
    retry loops are spawned inside the manager's own task group and are
    cancelled with it.
    """

    __slots__ = (
        "_coordinator",
        "_decompress_command",
        "_extractor",
        "_logger",
        "_loops",
        "_policy",
        "_root",
        "_runner",
        "_source_resolver",
        "_task_group",
    )

    def __init__(  # noqa: PLR0913
        self,
        coordinator: StoreCoordinator,
        extractor: "Extractor",  # noqa: UP037
        root: Path,
        *,
        runner: ToolRunner | None = None,
        policy: RetryPolicy | None = None,
        decompress_command: Sequence[str] = DEFAULT_DECOMPRESS_COMMAND,
        source_resolver: SourceResolver = resolve_project_source_dir,
        logger: "FilteringBoundLogger | None" = None,  # noqa: UP037
    ) -> None:
        """Initialize the manager.

        Args:
            coordinator: Coordinator owning the command store.
            extractor: Performs single extraction attempts.
            root: The DerivedData root artifacts live under.
            runner: Runs the build log decompressor. Uses ProcessToolRunner if None.
            policy: Retry schedule. Uses the default RetryPolicy if None.
            decompress_command: Command prefix for the decompressor.
            source_resolver: Maps (root, artifact path) to a project source dir.
            logger: Logger for lifecycle events.
        """
        self._coordinator = coordinator
        self._extractor = extractor
        self._root = root
        self._runner: ToolRunner = runner if runner is not None else ProcessToolRunner()
        self._policy = policy if policy is not None else RetryPolicy()
        self._decompress_command = tuple(decompress_command)
        self._source_resolver = source_resolver
        self._logger: FilteringBoundLogger = logger or get_default_logger()
        self._loops: dict[UUID, _RetryHandle] = {}
        self._task_group: anyio.abc.TaskGroup | None = None

    @property
    def policy(self) -> RetryPolicy:
        """Return the retry schedule."""
        return self._policy

    @property
    def active_loops(self) -> frozenset[UUID]:
        """Return the ids of pending entries with a running retry loop."""
        return frozenset(self._loops)

    async def run(
        self,
        *,
        task_status: anyio.abc.TaskStatus[None] = anyio.TASK_STATUS_IGNORED,
    ) -> None:
        """Host retry loops until cancelled.

        Args:
            task_status: Signalled once events can be handled.
        """
        async with anyio.create_task_group() as tg:
            self._task_group = tg
            try:
                task_status.started()
                await anyio.sleep_forever()
            finally:
                self._task_group = None

    async def handle_event(self, event: "ArtifactEvent") -> None:  # noqa: UP037
        """Dispatch a watcher event to the matching handler."""
        match event.kind:
            case ArtifactKind.BUILD_LOG_CREATED:
                _ = await self.on_build_log(event.path)
            case ArtifactKind.RESULT_BUNDLE_CREATED:
                _ = await self.bundle_created(event.path)

    # -------------------------------------------------------------------------
    # Sightings
    # -------------------------------------------------------------------------

    async def on_build_log(self, path: Path) -> UUID | None:
        """Decompress and parse a build log, then record the build start.

        Returns:
            The id of a newly created entry, or None if the log could not be
            parsed or the scheme is already pending.
        """
        info = await read_build_log(path, self._runner, self._decompress_command)
        if info is None:
            self._logger.debug("build_log_unparsed", path=str(path))
            return None
        return await self.build_started(info.scheme, info.destination)

    async def build_started(self, scheme: str, destination: str) -> UUID | None:
        """Record that a build for a scheme started.

        At most one entry per scheme is created; a build log for a scheme that
        already has a pending entry in any state is ignored.

        Returns:
            The new entry's id, or None if the scheme was already pending.
        """

        def apply(store: CommandStore) -> UUID | None:
            if store.has_pending_for_scheme(scheme):
                return None
            return store.add_pending(
                scheme,
                destination=destination,
                state=PendingState.BUILD_ONLY,
            )

        pending_id = await self._coordinator.call(apply)
        if pending_id is not None:
            self._logger.info(
                "build_started",
                scheme=scheme,
                destination=destination,
                pending_id=str(pending_id),
            )
        return pending_id

    async def bundle_created(self, bundle_path: Path) -> UUID | None:
        """Record a new result bundle and start extracting it.

        Returns:
            The id of the entry now tracking the bundle, or None if the bundle
            name is not recognized or the bundle is already tracked.

        Raises:
            RuntimeError: If the manager is not running.
        """
        parsed = parse_result_filename(bundle_path.name)
        if parsed is None:
            self._logger.warning("bundle_name_unrecognized", path=str(bundle_path))
            return None

        def apply(store: CommandStore) -> UUID | None:
            if store.pending_for_bundle(bundle_path) is not None:
                return None
            existing = store.pending_for_scheme(parsed.scheme)
            if existing is not None:
                store.attach_bundle(existing.id, bundle_path, state=PendingState.WAITING)
                return existing.id
            return store.add_pending(
                parsed.scheme,
                bundle_path=bundle_path,
                state=PendingState.WAITING,
            )

        pending_id = await self._coordinator.call(apply)
        if pending_id is None:
            self._logger.debug("bundle_already_tracked", path=str(bundle_path))
            return None

        self._logger.info(
            "bundle_created",
            scheme=parsed.scheme,
            action=parsed.action.value,
            path=str(bundle_path),
            pending_id=str(pending_id),
        )
        self._start_loop(pending_id, bundle_path, immediate=False)
        return pending_id

    # -------------------------------------------------------------------------
    # User actions
    # -------------------------------------------------------------------------

    async def retry(self, pending_id: UUID) -> bool:
        """Restart extraction for an entry, starting the first attempt at once.

        Any loop already running for the entry is cancelled and its result
        discarded.

        Returns:
            True if a loop was started; False if the entry has no bundle yet.

        Raises:
            PendingNotFoundError: If no pending extraction has that id.
            RuntimeError: If the manager is not running.
        """
        entry = await self._coordinator.call(lambda store: store.get_pending(pending_id))
        if entry.bundle_path is None:
            self._logger.info("retry_without_bundle", pending_id=str(pending_id))
            return False

        self._cancel_loop(pending_id)
        await self._coordinator.call(
            lambda store: store.update_pending_state(pending_id, PendingState.WAITING)
        )
        self._logger.info("extraction_retry_requested", pending_id=str(pending_id))
        self._start_loop(pending_id, entry.bundle_path, immediate=True)
        return True

    async def dismiss(self, pending_id: UUID) -> None:
        """Cancel an entry's loop and remove the entry. Unknown ids are ignored."""
        self._cancel_loop(pending_id)
        await self._coordinator.call(lambda store: store.remove_pending(pending_id))
        self._logger.info("pending_dismissed", pending_id=str(pending_id))

    async def wait(self, pending_id: UUID) -> None:
        """Wait until the entry's current retry loop, if any, has finished."""
        handle = self._loops.get(pending_id)
        if handle is not None:
            await handle.done.wait()

    # -------------------------------------------------------------------------
    # Retry loop
    # -------------------------------------------------------------------------

    def _start_loop(self, pending_id: UUID, bundle_path: Path, *, immediate: bool) -> None:
        if self._task_group is None:
            msg = "PendingExtractionManager is not running"
            raise RuntimeError(msg)
        self._cancel_loop(pending_id)
        handle = _RetryHandle()
        self._loops[pending_id] = handle
        self._task_group.start_soon(
            self._retry_loop, pending_id, bundle_path, handle, immediate
        )

    def _cancel_loop(self, pending_id: UUID) -> None:
        handle = self._loops.pop(pending_id, None)
        if handle is not None:
            handle.cancel()

    async def _attempt(self, bundle_path: Path) -> CanonicalCommand | ExtractionError:
        """Make one extraction attempt, returning the error instead of raising."""
        source_dir = await anyio.to_thread.run_sync(
            self._source_resolver, self._root, bundle_path
        )
        if source_dir is None:
            msg = f"Build request metadata not written yet for {bundle_path.name}"
            return ProjectMetadataNotReadyError(msg, path=bundle_path)
        try:
            return await self._extractor.extract(bundle_path, source_dir)
        except ExtractionError as e:
            return e

    async def _retry_loop(
        self,
        pending_id: UUID,
        bundle_path: Path,
        handle: _RetryHandle,
        immediate: bool,  # noqa: FBT001
    ) -> None:
        log = self._logger.bind(pending_id=str(pending_id), path=str(bundle_path))
        max_attempts = self._policy.max_attempts
        try:
            for attempt in range(1, max_attempts + 1):
                await handle.sleep(self._policy.delay_before(attempt, immediate=immediate))
                if handle.cancelled:
                    log.debug("extraction_cancelled", attempt=attempt)
                    return

                outcome = await self._attempt(bundle_path)

                if isinstance(outcome, CanonicalCommand):
                    if await self._apply_unless_cancelled(
                        handle,
                        lambda store, command=outcome: store.resolve_pending(
                            pending_id, command
                        ),
                    ):
                        log.info(
                            "extraction_resolved",
                            attempt=attempt,
                            scheme=outcome.scheme,
                            action=outcome.action.value,
                        )
                    else:
                        log.debug("extraction_result_discarded", attempt=attempt)
                    return

                if not outcome.retryable:
                    _ = await self._mark_failed(pending_id, handle)
                    log.warning(
                        "extraction_failed",
                        attempt=attempt,
                        error=str(outcome),
                        error_type=type(outcome).__name__,
                    )
                    return

                log.debug(
                    "extraction_not_ready",
                    attempt=attempt,
                    max_attempts=max_attempts,
                    error=str(outcome),
                )

            if await self._mark_failed(pending_id, handle):
                log.warning("extraction_exhausted", attempts=max_attempts)
        finally:
            handle.done.set()
            if self._loops.get(pending_id) is handle:
                del self._loops[pending_id]

    async def _apply_unless_cancelled(
        self,
        handle: _RetryHandle,
        fn: Callable[[CommandStore], None],
    ) -> bool:
        # Checked on the coordinator so a dismiss or retry submitted while
        # this request was queued still wins.
        def apply(store: CommandStore) -> bool:
            if handle.cancelled:
                return False
            fn(store)
            return True

        return await self._coordinator.call(apply)

    async def _mark_failed(self, pending_id: UUID, handle: _RetryHandle) -> bool:
        def fail(store: CommandStore) -> None:
            if any(entry.id == pending_id for entry in store.pending):
                store.update_pending_state(pending_id, PendingState.FAILED)

        return await self._apply_unless_cancelled(handle, fail)
