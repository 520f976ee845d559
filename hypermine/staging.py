"""A host-side circular buffer for short-lived allocations."""

from __future__ import annotations

import asyncio
import threading
from contextlib import suppress

from .condition import Condition, WaitState
from .ring_alloc import AllocId, RingAlloc


class StagingBuffer:
    """A circular byte buffer for transient uses such as streaming transfers.

    Holding on to an allocation of any size blocks later allocations once the
    buffer wraps back around to it.
    """

    def __init__(self, capacity: int) -> None:
        self._data = bytearray(capacity)
        self._lock = threading.Lock()
        self._ring = RingAlloc()
        self._freed = Condition()

    @property
    def data(self) -> memoryview:
        """A view over the whole buffer."""
        return memoryview(self._data)

    def capacity(self) -> int:
        """Largest possible allocation."""
        return len(self._data)

    async def alloc(self, size: int) -> StagingAlloc | None:
        """Wait until ``size`` bytes are free and claim them.

        Returns None if ``size`` exceeds the capacity. Small allocations may
        starve large ones.
        """
        if size < 0:
            raise ValueError("allocation size must not be negative")
        if size > self.capacity():
            return None
        loop = asyncio.get_running_loop()
        ready = asyncio.Event()
        state = WaitState()

        def wake() -> None:
            with suppress(RuntimeError):
                loop.call_soon_threadsafe(ready.set)

        while True:
            with self._lock:
                found = self._ring.alloc(self.capacity(), size)
                if found is not None:
                    offset, ident = found
                    view = memoryview(self._data)[offset : offset + size]
                    return StagingAlloc(self, view, offset, ident)
                ready.clear()
                self._freed.register(wake, state)
            await ready.wait()

    def _release(self, ident: AllocId) -> None:
        with self._lock:
            self._ring.free(ident)
            self._freed.notify()


class StagingAlloc:
    """A region of a :class:`StagingBuffer`, returned to it on :meth:`release`."""

    def __init__(
        self, buffer: StagingBuffer, view: memoryview, offset: int, ident: AllocId
    ) -> None:
        self._buffer = buffer
        self._offset = offset
        self._size = len(view)
        self._id = ident
        self._released = False
        self.data = view

    def offset(self) -> int:
        """Offset of this region from the start of the buffer."""
        return self._offset

    def size(self) -> int:
        """Length of this region in bytes."""
        return self._size

    def release(self) -> None:
        """Give the region back to the buffer; further calls do nothing."""
        if self._released:
            return
        self._released = True
        self.data.release()
        self._buffer._release(self._id)

    def __enter__(self) -> StagingAlloc:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()