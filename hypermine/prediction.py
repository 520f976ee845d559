"""Client-side prediction of motion inputs still in flight to the server."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable
from typing import Any

_GENERATION_MASK = 0xFFFF

StepFunction = Callable[[Any, Any, bool, Any], "tuple[Any, Any, bool]"]


class PredictedMotion:
    """Predicts the result of motion inputs that the server has not yet acknowledged.

    Each input sent to the server goes through :meth:`push`, which applies it
    locally and returns a 16-bit generation tag to send with it. The server
    echoes the highest tag it has received with every state update;
    :meth:`reconcile` uses it to drop acknowledged inputs and replay the rest
    on top of the server's state.

    ``step(position, velocity, on_ground, input)`` advances the character by
    one input and returns the new ``(position, velocity, on_ground)``.
    """

    def __init__(
        self,
        initial_position: Any,
        step: StepFunction,
        *,
        initial_velocity: Any = (0.0, 0.0, 0.0),
        generation: int = 0,
    ) -> None:
        self._step = step
        self._log: deque[Any] = deque()
        self._generation = generation & _GENERATION_MASK
        self.predicted_position = initial_position
        self.predicted_velocity = initial_velocity
        self.predicted_on_ground = False

    @property
    def generation(self) -> int:
        """Tag of the most recently pushed input."""
        return self._generation

    @property
    def in_flight(self) -> int:
        """Number of inputs not yet acknowledged by the server."""
        return len(self._log)

    def _apply(self, input: Any) -> None:
        (
            self.predicted_position,
            self.predicted_velocity,
            self.predicted_on_ground,
        ) = self._step(
            self.predicted_position,
            self.predicted_velocity,
            self.predicted_on_ground,
            input,
        )

    def push(self, input: Any) -> int:
        """Apply an input about to be sent and return the generation to tag it with."""
        self._apply(input)
        self._log.append(input)
        self._generation = (self._generation + 1) & _GENERATION_MASK
        return self._generation

    def reconcile(
        self, generation: int, position: Any, velocity: Any, on_ground: bool
    ) -> None:
        """Adopt the server's latest state, which includes inputs up to ``generation``."""
        first_gen = (self._generation - len(self._log)) & _GENERATION_MASK
        obsolete = (generation - first_gen) & _GENERATION_MASK
        if obsolete > len(self._log) or obsolete == 0:
            # A state incorporating equal or more recent input was already processed.
            return
        for _ in range(obsolete):
            self._log.popleft()
        self.predicted_position = position
        self.predicted_velocity = velocity
        self.predicted_on_ground = on_ground
        for input in self._log:
            self._apply(input)