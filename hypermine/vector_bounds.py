"""Constraining displacement and velocity vectors with bounds found during collision checks."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from itertools import chain

import numpy as np

logger = logging.getLogger(__name__)


def _as_vector(value: Iterable[float]) -> np.ndarray:
    vector = np.array(value, dtype=float)
    if vector.shape != (3,):
        raise ValueError(f"expected a 3-vector, got shape {vector.shape}")
    return vector


def _as_unit(value: Iterable[float]) -> np.ndarray:
    vector = _as_vector(value)
    norm = float(np.linalg.norm(vector))
    if norm == 0.0:
        raise ValueError("cannot normalize a zero vector")
    return vector / norm


def project_to_plane(
    subject: Iterable[float],
    normal: Iterable[float],
    projection_direction: Iterable[float],
    distance: float,
) -> np.ndarray:
    """Move ``subject`` along ``projection_direction`` until its dot product with ``normal`` is ``distance``.

    Returns the projected vector; the input is left unchanged.
    """
    subject = _as_vector(subject)
    normal = _as_vector(normal)
    projection_direction = _as_vector(projection_direction)
    denominator = float(projection_direction @ normal)
    if denominator == 0.0:
        raise ValueError("projection direction is parallel to the plane")
    offset = (float(subject @ normal) - distance) / denominator
    return subject - projection_direction * offset


class VectorBound:
    """A one-sided constraint on a vector.

    Applying the bound pushes a vector along ``projection_direction`` onto the
    plane given by ``normal``. A front-facing bound wants vectors in front of
    the plane (in the direction of ``normal``); otherwise behind it.
    """

    def __init__(
        self,
        normal: Iterable[float],
        projection_direction: Iterable[float],
        front_facing: bool,
    ) -> None:
        self.normal = _as_unit(normal)
        self.projection_direction = _as_unit(projection_direction)
        self.front_facing = front_facing

    def __repr__(self) -> str:
        return (
            f"VectorBound(normal={self.normal.tolist()}, "
            f"projection_direction={self.projection_direction.tolist()}, "
            f"front_facing={self.front_facing})"
        )

    def constrain_vector(self, subject: Iterable[float], error_margin: float) -> np.ndarray:
        """Return ``subject`` projected onto this bound's plane, offset by ``error_margin``.

        Does not check whether the constraint is needed.
        """
        return project_to_plane(
            subject, self.normal, self.projection_direction, error_margin
        )

    def check_vector(self, subject: Iterable[float], error_margin: float) -> bool:
        """Whether ``subject`` satisfies this bound; the zero vector always does."""
        subject = _as_vector(subject)
        if not subject.any():
            return True
        dot = float(subject @ self.normal)
        if self.front_facing:
            return dot >= error_margin * 0.5
        return dot <= error_margin * 1.5

    def constrained_with(self, bound: VectorBound) -> VectorBound | None:
        """A copy of this bound whose projection no longer disturbs ``bound``.

        The projection direction is altered along ``bound``'s projection
        direction to become orthogonal to ``bound``'s normal. Returns None if
        that leaves no usable direction.
        """
        direction = project_to_plane(
            self.projection_direction, bound.normal, bound.projection_direction, 0.0
        )
        norm = float(np.linalg.norm(direction))
        if norm <= 1e-5:
            return None
        return VectorBound(self.normal, direction / norm, self.front_facing)


class BoundedVectors:
    """A displacement constrained by a set of bounds, with an optional velocity that follows along.

    The size of the displacement sets an error margin that keeps rounding from
    causing phantom collisions. The velocity receives the same projections as
    the displacement but plays no part in choosing them.
    """

    def __init__(
        self,
        displacement: Iterable[float],
        velocity: Iterable[float] | None = None,
    ) -> None:
        self._displacement = _as_vector(displacement)
        self._velocity = None if velocity is None else _as_vector(velocity)
        self._bounds: list[VectorBound] = []
        self._temp_bounds: list[VectorBound] = []
        self._error_margin = float(np.linalg.norm(self._displacement)) * 1e-4

    @property
    def displacement(self) -> np.ndarray:
        return self._displacement.copy()

    @property
    def velocity(self) -> np.ndarray | None:
        return None if self._velocity is None else self._velocity.copy()

    @property
    def bounds(self) -> tuple[VectorBound, ...]:
        """The permanent bounds, in the order they were added."""
        return tuple(self._bounds)

    @property
    def temp_bounds(self) -> tuple[VectorBound, ...]:
        return tuple(self._temp_bounds)

    @property
    def error_margin(self) -> float:
        return self._error_margin

    def scale_displacement(self, scale_factor: float) -> None:
        """Scale the displacement without invalidating any bound."""
        self._displacement = self._displacement * scale_factor
        self._error_margin *= scale_factor

    def add_bound(self, new_bound: VectorBound) -> None:
        """Constrain the vectors with ``new_bound`` while keeping existing bounds satisfied."""
        self._apply_bound(new_bound)
        self._bounds.append(new_bound)

    def add_temp_bound(self, new_bound: VectorBound) -> None:
        """Like :meth:`add_bound`, but the bound is dropped by :meth:`clear_temp_bounds`."""
        self._apply_bound(new_bound)
        self._temp_bounds.append(new_bound)

    def clear_temp_bounds(self) -> None:
        """Remove all temporary bounds."""
        self._temp_bounds.clear()

    def _all_bounds(self) -> Iterator[VectorBound]:
        return chain(self._bounds, self._temp_bounds)

    def _satisfies_all(self, vector: np.ndarray) -> bool:
        return all(b.check_vector(vector, self._error_margin) for b in self._all_bounds())

    def _apply_bound(self, new_bound: VectorBound) -> None:
        # Treat new_bound as one of the active bounds, pair it with the first
        # existing bound that lets every bound be satisfied, and zero the
        # vectors if no pairing works.
        margin = self._error_margin
        if not new_bound.check_vector(self._displacement, margin):
            self._displacement = new_bound.constrain_vector(self._displacement, margin)
            if self._velocity is not None:
                self._velocity = new_bound.constrain_vector(self._velocity, 0.0)

        if self._satisfies_all(self._displacement):
            return

        unsatisfied = [
            b for b in self._all_bounds() if not b.check_vector(self._displacement, margin)
        ]
        for bound in unsatisfied:
            ortho_bound = bound.constrained_with(new_bound)
            if ortho_bound is None:
                logger.warning(
                    "Unsatisfied existing bound is parallel to new bound. "
                    "Is the character squeezed between two walls?"
                )
                continue
            candidate = ortho_bound.constrain_vector(self._displacement, margin)
            if self._satisfies_all(candidate):
                self._displacement = candidate
                if self._velocity is not None:
                    self._velocity = ortho_bound.constrain_vector(self._velocity, 0.0)
                return

        self._displacement = np.zeros(3)
        if self._velocity is not None:
            self._velocity = np.zeros(3)