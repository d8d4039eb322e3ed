"""Host execution context.

Tool handlers never run inside a connection's read loop. They are queued as
zero-argument callbacks and executed one at a time, in submission order, by a
single worker task on the event loop. Each submission returns a future that
resolves with the callback's result or exception.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable
from typing import Any

WorkItem = tuple[Callable[[], Any], "asyncio.Future[Any]"]


class Scheduler:
    """Work queue drained by one worker task."""

    def __init__(self) -> None:
        """Initialize the scheduler; the worker starts on first submit."""
        self._queue: asyncio.Queue[WorkItem] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        """Whether the worker task is alive."""
        return self._worker is not None and not self._worker.done()

    @property
    def pending(self) -> int:
        """Number of queued callbacks not yet started."""
        return self._queue.qsize()

    def start(self) -> None:
        """Start the worker on the running event loop."""
        if not self.is_running:
            self._worker = asyncio.get_running_loop().create_task(self._run())

    def submit(self, callback: Callable[[], Any]) -> asyncio.Future[Any]:
        """Queue a callback for a later turn of the event loop.

        Args:
            callback: Zero-argument callable.

        Returns:
            Future resolved with the callback's outcome.
        """
        self.start()
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((callback, future))
        return future

    async def stop(self) -> None:
        """Stop the worker. Callbacks still queued are cancelled."""
        if self._worker is not None:
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker
            self._worker = None
        while not self._queue.empty():
            _, future = self._queue.get_nowait()
            future.cancel()

    async def _run(self) -> None:
        while True:
            callback, future = await self._queue.get()
            try:
                if future.cancelled():
                    continue
                try:
                    result = callback()
                except Exception as e:
                    future.set_exception(e)
                else:
                    future.set_result(result)
            finally:
                self._queue.task_done()
            # Yield so I/O callbacks interleave with queued work
            await asyncio.sleep(0)
