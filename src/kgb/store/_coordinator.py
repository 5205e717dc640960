"""Single-writer coordination for the command store.

Every mutation of the store and its pending entries is submitted to one
coordinator task as a request and applied in arrival order. Callers await
the request's result, so no component ever holds a reference it can use to
mutate the store concurrently.
"""

import math
from collections.abc import Callable
from typing import final

import anyio
import anyio.abc
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from ._models import CanonicalCommand, PendingExtraction
from ._store import CommandStore


@final
class _Request[T]:
    """A store operation waiting to be applied by the coordinator."""

    __slots__ = ("done", "error", "fn", "result")

    def __init__(self, fn: Callable[[CommandStore], T]) -> None:
        self.fn = fn
        self.done = anyio.Event()
        self.result: T | None = None
        self.error: Exception | None = None


@final
class StoreCoordinator:
    """Owns a CommandStore and applies operations on it one at a time.

    Run the coordinator inside a task group with ``await tg.start(coordinator.run)``
    and submit operations with call().

    Example:
        >>> coordinator = StoreCoordinator(CommandStore())
        >>> async with anyio.create_task_group() as tg:
        ...     await tg.start(coordinator.run)
        ...     await coordinator.call(lambda store: store.add(command))
    """

    __slots__ = ("_receive", "_running", "_send", "_store")

    def __init__(self, store: CommandStore) -> None:
        """Initialize the coordinator.

        Args:
            store: The store this coordinator owns.
        """
        self._store = store
        send, receive = anyio.create_memory_object_stream[_Request[object]](
            max_buffer_size=math.inf
        )
        self._send: MemoryObjectSendStream[_Request[object]] = send
        self._receive: MemoryObjectReceiveStream[_Request[object]] = receive
        self._running = False

    @property
    def running(self) -> bool:
        """Return True while run() is consuming requests."""
        return self._running

    async def run(
        self,
        *,
        task_status: anyio.abc.TaskStatus[None] = anyio.TASK_STATUS_IGNORED,
    ) -> None:
        """Apply submitted operations until cancelled.

        Args:
            task_status: Signalled once the coordinator accepts requests.
        """
        self._running = True
        try:
            task_status.started()
            async for request in self._receive:
                try:
                    request.result = request.fn(self._store)
                except Exception as e:  # noqa: BLE001
                    # Handed back to the caller of call()
                    request.error = e
                finally:
                    request.done.set()
        finally:
            self._running = False

    async def call[T](self, fn: Callable[[CommandStore], T]) -> T:
        """Apply an operation on the coordinator and return its result.

        Args:
            fn: Operation to run against the store.

        Returns:
            Whatever the operation returned.

        Raises:
            Exception: Whatever the operation raised.
        """
        request = _Request(fn)
        await self._send.send(request)  # pyright: ignore[reportArgumentType]
        await request.done.wait()
        if request.error is not None:
            raise request.error
        return request.result  # pyright: ignore[reportReturnType]

    async def snapshot(
        self,
    ) -> tuple[tuple[CanonicalCommand, ...], tuple[PendingExtraction, ...]]:
        """Return consistent snapshots of commands and pending entries."""
        return await self.call(lambda store: (store.commands, store.pending))

    def close(self) -> None:
        """Stop accepting requests; run() returns once the queue is drained."""
        self._send.close()
