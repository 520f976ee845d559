"""Bookkeeping for a ring buffer of contiguous, variable-sized allocations."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass


@dataclass(frozen=True)
class AllocId:
    """Identifies one allocation handed out by a :class:`RingAlloc`."""

    value: int


@dataclass
class _Allocation:
    start: int
    freed: bool = False


class RingAlloc:
    """Tracks a ring of contiguous allocations that may be freed in any order."""

    def __init__(self) -> None:
        self._allocations: deque[_Allocation] = deque()
        self._head = 0
        # Number of allocations already popped off the front; lets ids stay stable.
        self._freed = 0

    def alloc(self, capacity: int, size: int) -> tuple[int, AllocId] | None:
        """Return ``(offset, id)`` for a run of ``size`` units, or None if there is no room.

        ``capacity`` is the total capacity of the ring.
        """
        if not self._allocations:
            if size > capacity:
                return None
            self._allocations.append(_Allocation(0))
            self._head = size
            self._freed = 0
            return 0, AllocId(0)

        tail = self._allocations[0].start
        ident = AllocId(self._freed + len(self._allocations))
        if self._head > tail:
            # A run from the head to the end of the buffer...
            if capacity - self._head >= size:
                start = self._head
                self._allocations.append(_Allocation(start))
                self._head = (start + size) % capacity
                return start, ident
            # ...and one from the start of the buffer to the tail.
            if tail >= size:
                self._allocations.append(_Allocation(0))
                self._head = size
                return 0, ident
            return None

        if tail - self._head >= size:
            start = self._head
            self._allocations.append(_Allocation(start))
            self._head = start + size
            return start, ident
        return None

    def free(self, id: AllocId) -> None:
        """Release an allocation; space is reclaimed once everything before it is freed."""
        index = id.value - self._freed
        if not 0 <= index < len(self._allocations):
            raise ValueError(f"unknown allocation {id!r}")
        self._allocations[index].freed = True
        while self._allocations and self._allocations[0].freed:
            self._allocations.popleft()
            self._freed += 1