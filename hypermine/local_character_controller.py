"""First-person view orientation for the locally controlled character."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import numpy as np

_FRAC_PI_2 = math.pi / 2


def _vector(value: Iterable[float]) -> np.ndarray:
    vector = np.array(value, dtype=float)
    if vector.shape != (3,):
        raise ValueError(f"expected a 3-vector, got shape {vector.shape}")
    return vector


def _unit(value: Iterable[float]) -> np.ndarray:
    vector = _vector(value)
    norm = float(np.linalg.norm(vector))
    if norm == 0.0:
        raise ValueError("cannot normalize a zero vector")
    return vector / norm


@dataclass(frozen=True)
class Quaternion:
    """A unit quaternion ``w + xi + yj + zk`` representing a rotation."""

    w: float = 1.0
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def identity(cls) -> Quaternion:
        return cls()

    @classmethod
    def from_scaled_axis(cls, axis_angle: Iterable[float]) -> Quaternion:
        """Rotation about ``axis_angle`` by an angle equal to its length."""
        vector = _vector(axis_angle)
        angle = float(np.linalg.norm(vector))
        if angle == 0.0:
            return cls()
        return from_axis_angle(vector / angle, angle)

    @classmethod
    def from_rotation_matrix(cls, matrix: Any) -> Quaternion:
        """The quaternion of a 3x3 rotation matrix."""
        m = np.asarray(matrix, dtype=float)
        trace = m[0, 0] + m[1, 1] + m[2, 2]
        if trace > 0.0:
            s = math.sqrt(trace + 1.0) * 2.0
            q = (0.25 * s, (m[2, 1] - m[1, 2]) / s, (m[0, 2] - m[2, 0]) / s, (m[1, 0] - m[0, 1]) / s)
        elif m[0, 0] > m[1, 1] and m[0, 0] > m[2, 2]:
            s = math.sqrt(1.0 + m[0, 0] - m[1, 1] - m[2, 2]) * 2.0
            q = ((m[2, 1] - m[1, 2]) / s, 0.25 * s, (m[0, 1] + m[1, 0]) / s, (m[0, 2] + m[2, 0]) / s)
        elif m[1, 1] > m[2, 2]:
            s = math.sqrt(1.0 + m[1, 1] - m[0, 0] - m[2, 2]) * 2.0
            q = ((m[0, 2] - m[2, 0]) / s, (m[0, 1] + m[1, 0]) / s, 0.25 * s, (m[1, 2] + m[2, 1]) / s)
        else:
            s = math.sqrt(1.0 + m[2, 2] - m[0, 0] - m[1, 1]) * 2.0
            q = ((m[1, 0] - m[0, 1]) / s, (m[0, 2] + m[2, 0]) / s, (m[1, 2] + m[2, 1]) / s, 0.25 * s)
        return cls(*(float(c) for c in q)).renormalize()

    @property
    def vector(self) -> np.ndarray:
        """The imaginary part ``(x, y, z)``."""
        return np.array([self.x, self.y, self.z])

    def __mul__(self, other: Quaternion) -> Quaternion:
        if not isinstance(other, Quaternion):
            return NotImplemented
        w1, x1, y1, z1 = self.w, self.x, self.y, self.z
        w2, x2, y2, z2 = other.w, other.x, other.y, other.z
        return Quaternion(
            w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
            w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
            w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
            w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
        )

    def inverse(self) -> Quaternion:
        """The opposite rotation."""
        return Quaternion(self.w, -self.x, -self.y, -self.z)

    def rotate(self, vector: Iterable[float]) -> np.ndarray:
        """Apply this rotation to a 3-vector."""
        v = _vector(vector)
        q = self.vector
        t = 2.0 * np.cross(q, v)
        return v + self.w * t + np.cross(q, t)

    def rotation_matrix(self) -> np.ndarray:
        """The 3x3 rotation matrix."""
        w, x, y, z = self.w, self.x, self.y, self.z
        return np.array(
            [
                [1 - 2 * (y * y + z * z), 2 * (x * y - w * z), 2 * (x * z + w * y)],
                [2 * (x * y + w * z), 1 - 2 * (x * x + z * z), 2 * (y * z - w * x)],
                [2 * (x * z - w * y), 2 * (y * z + w * x), 1 - 2 * (x * x + y * y)],
            ]
        )

    def to_homogeneous(self) -> np.ndarray:
        """The 4x4 homogeneous matrix of this rotation."""
        matrix = np.eye(4)
        matrix[:3, :3] = self.rotation_matrix()
        return matrix

    def renormalize(self) -> Quaternion:
        """The same rotation with its length restored to one."""
        norm = math.sqrt(self.w**2 + self.x**2 + self.y**2 + self.z**2)
        if norm == 0.0:
            raise ValueError("cannot renormalize a zero quaternion")
        return Quaternion(self.w / norm, self.x / norm, self.y / norm, self.z / norm)


def from_axis_angle(axis: Iterable[float], angle: float) -> Quaternion:
    """Rotation by ``angle`` radians about ``axis``."""
    unit = _unit(axis)
    half = angle / 2.0
    s = math.sin(half)
    return Quaternion(math.cos(half), *(float(c) * s for c in unit))


def rotation_between(
    a: Iterable[float], b: Iterable[float], epsilon: float = 1e-7
) -> Quaternion | None:
    """The smallest rotation taking the direction of ``a`` to that of ``b``.

    Returns None when the directions are opposite, where no unique rotation exists.
    """
    a = _unit(a)
    b = _unit(b)
    cross = np.cross(a, b)
    sin = float(np.linalg.norm(cross))
    cos = float(a @ b)
    if sin > epsilon:
        return from_axis_angle(cross / sin, math.atan2(sin, cos))
    if cos < 0.0:
        return None
    return Quaternion.identity()


def face_towards(direction: Iterable[float], up: Iterable[float]) -> Quaternion:
    """Rotation taking the z axis to ``direction`` and the y axis towards ``up``."""
    z_axis = _unit(direction)
    x_axis = _unit(np.cross(_vector(up), z_axis))
    y_axis = np.cross(z_axis, x_axis)
    return Quaternion.from_rotation_matrix(np.column_stack([x_axis, y_axis, z_axis]))


@dataclass
class Position:
    """A node of the world graph and a transform local to it."""

    node: Any = 0
    local: np.ndarray = field(default_factory=lambda: np.eye(4))

    @classmethod
    def origin(cls) -> Position:
        return cls()


_X = np.array([1.0, 0.0, 0.0])
_Y = np.array([0.0, 1.0, 0.0])
_Z = np.array([0.0, 0.0, 1.0])


class LocalCharacterController:
    """Tracks the view position, gravity direction and view orientation of the local character.

    ``up`` is relative to ``position`` and ignores ``orientation``, which is the
    rotation applied to the position to give the apparent view.
    """

    def __init__(self) -> None:
        self.position = Position.origin()
        self.up = _Z.copy()
        self.orientation = Quaternion.identity()

    def _local_up(self) -> np.ndarray:
        return self.orientation.inverse().rotate(self.up)

    def oriented_position(self) -> Position:
        """The current position with the orientation applied."""
        return Position(
            self.position.node, self.position.local @ self.orientation.to_homogeneous()
        )

    def update_position(
        self, position: Position, up: Iterable[float], preserve_up_alignment: bool
    ) -> None:
        """Take a new position and up vector; ``up`` is relative to ``position`` only."""
        up = _unit(up)
        if preserve_up_alignment:
            # Keep the orientation consistent with changes in gravity.
            rotation = rotation_between(self.up, up, 1e-5) or Quaternion.identity()
            self.orientation = rotation * self.orientation
        self.position = position
        self.up = up

    def look_free(self, delta_yaw: float, delta_pitch: float, delta_roll: float) -> None:
        """Rotate the view locally by yaw, pitch and roll."""
        self.orientation = self.orientation * (
            from_axis_angle(_Y, delta_yaw)
            * from_axis_angle(_X, delta_pitch)
            * from_axis_angle(_Z, delta_roll)
        )

    def look_level(self, delta_yaw: float, delta_pitch: float) -> None:
        """Rotate the view with first-person controls: yaw about up, pitch capped at vertical."""
        up = self._local_up()
        self.orientation = self.orientation * from_axis_angle(up, delta_yaw)

        # Pitch is only well-defined when the pitch axis is not too close to up.
        if abs(up[0]) < 0.9:
            current_pitch = -math.atan2(up[2], up[1])
            target_pitch = current_pitch + delta_pitch
            if delta_pitch > 0.0:
                # Cap at straight up, without correcting an already upside-down view.
                target_pitch = max(min(target_pitch, _FRAC_PI_2), current_pitch)
            else:
                target_pitch = min(max(target_pitch, -_FRAC_PI_2), current_pitch)
            self.orientation = self.orientation * from_axis_angle(
                _X, target_pitch - current_pitch
            )

    def align_to_gravity(self) -> None:
        """Make the view level immediately, stably for any orientation."""
        up = self._local_up()
        if abs(up[2]) < 0.9:
            # Not facing too vertically: roll until level.
            delta_roll = -math.atan2(up[0], up[1])
            self.orientation = self.orientation * from_axis_angle(_Z, delta_roll)
        elif up[1] > 0.0:
            # Not upside-down: yaw until level.
            delta_yaw = math.atan(up[0] / up[2])
            self.orientation = self.orientation * from_axis_angle(_Y, delta_yaw)
        else:
            # Turn to look straight up or down.
            rotation = rotation_between(_Z * math.copysign(1.0, up[2]), up)
            if rotation is None:
                raise ValueError("cannot align a view facing directly against gravity")
            self.orientation = self.orientation * rotation

    def horizontal_orientation(self) -> Quaternion:
        """The level, horizontally-facing orientation closest to the current one."""
        up = self._local_up()
        if abs(up[0]) < 0.9:
            # Rotate forward about the locally horizontal axis until horizontal.
            forward = np.array([0.0, -up[2], up[1]])
        else:
            # Project forward onto the level plane.
            forward = _Z - up * up[2]
        return self.orientation * face_towards(forward, up)

    def renormalize_orientation(self) -> None:
        """Undo accumulated rounding drift in the orientation."""
        self.orientation = self.orientation.renormalize()