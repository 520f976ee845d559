"""A wake-up list for tasks waiting on a single condition."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

_U64_MASK = (1 << 64) - 1


@dataclass
class WaitState:
    """Per-waiter record of the generation at which it last registered, if any."""

    generation: int | None = None


class Condition:
    """Manages wakers of tasks waiting on a single condition."""

    def __init__(self) -> None:
        self._wakers: list[Callable[[], None]] = []
        self._generation = 0

    @property
    def waiting(self) -> int:
        """Number of wakers that the next :meth:`notify` will call."""
        return len(self._wakers)

    def register(self, waker: Callable[[], None], state: WaitState) -> None:
        """Make sure the next :meth:`notify` wakes the owner of ``state``.

        A waker is only recorded if ``state`` has not registered during the
        current generation.
        """
        if state.generation == self._generation:
            return
        state.generation = self._generation
        self._wakers.append(waker)

    def notify(self) -> None:
        """Wake every registered waiter."""
        self._generation = (self._generation + 1) & _U64_MASK
        wakers, self._wakers = self._wakers, []
        for waker in wakers:
            waker()