"""Background loading of assets and bounded streaming work queues."""

from __future__ import annotations

import asyncio
import inspect
import logging
import queue
import threading
from collections import deque
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Asset:
    """Handle to a value being loaded by a :class:`Loader`."""

    table: int
    index: int


class QueueFull(Exception):
    """Raised when a :class:`WorkQueue` cannot accept an item; the item is returned."""

    def __init__(self, item: Any) -> None:
        super().__init__("work queue cannot accept more items")
        self.item = item


def _cleanup(value: Any, ctx: Any) -> None:
    cleanup = getattr(value, "cleanup", None)
    if callable(cleanup):
        cleanup(ctx)


async def _run_load(loadable: Any, ctx: Any) -> Any:
    result = loadable.load(ctx)
    if inspect.isawaitable(result):
        result = await result
    return result


async def _cancel_pending() -> None:
    current = asyncio.current_task()
    tasks = [task for task in asyncio.all_tasks() if task is not current]
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


class Loader:
    """Runs ``load(ctx)`` of loadable objects in the background.

    Finished values become visible through :meth:`get` after :meth:`drive`.
    Values with a ``cleanup(ctx)`` method have it called when the loader closes.
    """

    def __init__(self, ctx: Any = None) -> None:
        self.ctx = ctx
        self._inbox: queue.SimpleQueue[tuple[int, int, Any]] = queue.SimpleQueue()
        self._tables_index: dict[type, int] = {}
        self._tables: list[list[Any]] = []
        self._closed = False
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._loop.run_forever, name="loader", daemon=True
        )
        self._thread.start()

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        if self._closed:
            coro.close()
            raise RuntimeError("loader is closed")
        asyncio.run_coroutine_threadsafe(coro, self._loop)

    def load(self, description: str, loadable: Any) -> Asset:
        """Start loading ``loadable`` and return a handle to its eventual value."""
        table = self._tables_index.setdefault(type(loadable), len(self._tables))
        if table == len(self._tables):
            self._tables.append([])
        slots = self._tables[table]
        index = len(slots)
        self._spawn(self._load_one(description, table, index, loadable))
        slots.append(None)
        return Asset(table, index)

    async def _load_one(
        self, description: str, table: int, index: int, loadable: Any
    ) -> None:
        try:
            value = await _run_load(loadable, self.ctx)
        except Exception as exc:
            logger.error("%s load failed: %s", description, exc)
            return
        self._inbox.put((table, index, value))

    def make_queue(self, capacity: int) -> WorkQueue:
        """Create a queue that streams at most ``capacity`` items at a time."""
        return WorkQueue(self, capacity)

    def drive(self) -> None:
        """Make values of finished loads visible to :meth:`get`."""
        while True:
            try:
                table, index, value = self._inbox.get_nowait()
            except queue.Empty:
                return
            self._tables[table][index] = value

    def get(self, asset: Asset) -> Any:
        """The loaded value behind ``asset``, or None if it has not arrived yet."""
        try:
            return self._tables[asset.table][asset.index]
        except IndexError:
            raise KeyError(asset) from None

    def close(self) -> None:
        """Stop all loading and clean up every loaded value."""
        if self._closed:
            return
        self._closed = True
        asyncio.run_coroutine_threadsafe(_cancel_pending(), self._loop).result()
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join()
        self._loop.close()
        self.drive()
        for table in self._tables:
            for value in table:
                if value is not None:
                    _cleanup(value, self.ctx)
        self._tables.clear()
        self._tables_index.clear()

    def __enter__(self) -> Loader:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class WorkQueue:
    """A bounded-capacity queue for streaming loads such as terrain chunks.

    Limiting capacity keeps memory use predictable and favours recent requests
    when far more could be submitted than can be served.
    """

    def __init__(self, loader: Loader, capacity: int) -> None:
        self._loader = loader
        self.capacity = capacity
        self._fill = 0
        self._lock = threading.Lock()
        self._ready: deque[Any] = deque()
        self._closed = False

    @property
    def fill(self) -> int:
        """Items submitted whose results have not yet been polled."""
        return self._fill

    def load(self, item: Any) -> None:
        """Begin loading ``item``; raises :class:`QueueFull` if there is no capacity."""
        if self._closed or self._fill == self.capacity:
            raise QueueFull(item)
        self._fill += 1
        try:
            self._loader._spawn(self._load_one(item))
        except RuntimeError:
            self._fill -= 1
            raise QueueFull(item) from None

    async def _load_one(self, item: Any) -> None:
        ctx = self._loader.ctx
        try:
            value = await _run_load(item, ctx)
        except Exception as exc:
            logger.error("streaming %s load failed: %s", type(item).__name__, exc)
            return
        with self._lock:
            if not self._closed:
                self._ready.append(value)
                return
        _cleanup(value, ctx)

    def poll(self) -> Any:
        """Take a finished result if one is ready, freeing capacity; else None."""
        with self._lock:
            if not self._ready:
                return None
            value = self._ready.popleft()
        self._fill -= 1
        return value

    def close(self) -> None:
        """Stop accepting results; finished and future results are cleaned up."""
        with self._lock:
            self._closed = True
            finished = list(self._ready)
            self._ready.clear()
        for value in finished:
            self._fill -= 1
            _cleanup(value, self._loader.ctx)

    def __enter__(self) -> WorkQueue:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()