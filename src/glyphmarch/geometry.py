"""Signed distance primitives.

Every primitive evaluates a batch of points shaped ``(..., 3)`` and returns
distances shaped ``(...)``. A single ``Vector3`` or ``(3,)`` array yields a
0-d result. Only :class:`Gear` depends on ``time``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

import numpy as np

from glyphmarch.errors import SceneConfigError
from glyphmarch.math_utils import as_points, rotate_x, round_half_away
from glyphmarch.protocols import SDF
from glyphmarch.vector import Vector3

GEAR_TEETH: int = 12
SECTOR_ANGLE: float = 2.0 * math.pi / GEAR_TEETH


def _require_finite(kind: str, **params: Any) -> None:
    for name, value in params.items():
        values = (value.x, value.y, value.z) if isinstance(value, Vector3) else (value,)
        if not all(math.isfinite(v) for v in values):
            msg = f"{kind}.{name} must be finite, got {value}"
            raise SceneConfigError(msg)


def box_distance(p: np.ndarray, center: np.ndarray, size: np.ndarray) -> Any:
    """Exact distance to an axis-aligned box of full extents ``size``."""
    q = np.abs(center - p) - size / 2.0
    outside = np.linalg.norm(np.maximum(q, 0.0), axis=-1)
    inside = np.minimum(np.max(q, axis=-1), 0.0)
    return outside + inside


def smooth_union(a: Any, b: Any, k: float) -> Any:
    """Polynomial smooth minimum of two distances with blend radius k."""
    h = np.maximum(k - np.abs(a - b), 0.0) / k
    return np.minimum(a, b) - h * h * k / 4.0


@dataclass(frozen=True, slots=True)
class Sphere(SDF):
    center: Vector3
    radius: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", Vector3.from_any(self.center))
        _require_finite("Sphere", center=self.center, radius=self.radius)

    def distance(self, p: Any, time: float = 0.0) -> Any:
        return np.linalg.norm(as_points(p) - self.center.as_array(), axis=-1) - self.radius


@dataclass(frozen=True, slots=True)
class Box(SDF):
    """Axis-aligned box; ``size`` holds full (not half) extents."""

    center: Vector3
    size: Vector3

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", Vector3.from_any(self.center))
        object.__setattr__(self, "size", Vector3.from_any(self.size))
        _require_finite("Box", center=self.center, size=self.size)

    def distance(self, p: Any, time: float = 0.0) -> Any:
        return box_distance(as_points(p), self.center.as_array(), self.size.as_array())


@dataclass(frozen=True, slots=True)
class Gear(SDF):
    """Twelve-toothed gear turning about the x axis.

    The hollow ring lies in the YZ plane; teeth are boxes on the outer edge.
    Teeth are evaluated in a single angular sector: the query point is
    rotated by the time phase, then folded into the nearest of the 12
    sectors before the box test. ``turn_rate`` is the time needed to advance
    by one tooth; its sign gives the turning direction.
    """

    center: Vector3
    radius: float
    thickness: float
    turn_rate: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", Vector3.from_any(self.center))
        _require_finite(
            "Gear",
            center=self.center,
            radius=self.radius,
            thickness=self.thickness,
            turn_rate=self.turn_rate,
        )
        if self.turn_rate == 0.0:
            msg = "Gear.turn_rate must be nonzero"
            raise SceneConfigError(msg)

    def phase(self, time: float) -> float:
        """Rotation angle of the tooth pattern at ``time``."""
        return SECTOR_ANGLE * time / self.turn_rate

    def fold(self, p: Any, time: float = 0.0) -> tuple[np.ndarray, Any]:
        """Map points into the first sector.

        Returns the folded gear-local points and the sector index each point
        was folded from.
        """
        return self._fold_local(as_points(p) - self.center.as_array(), time)

    def _fold_local(self, q: np.ndarray, time: float) -> tuple[np.ndarray, Any]:
        rotated = rotate_x(q, self.phase(time))

        # polar angle folded into [-pi/2, pi/2], the range of atan(z / y)
        point_angle = np.arctan2(rotated[..., 2], rotated[..., 1])
        point_angle = np.where(point_angle > math.pi / 2.0, point_angle - math.pi, point_angle)
        point_angle = np.where(point_angle < -math.pi / 2.0, point_angle + math.pi, point_angle)

        sector = round_half_away(point_angle / SECTOR_ANGLE)
        mapped = rotate_x(rotated, -SECTOR_ANGLE * sector)
        mapped = np.stack([mapped[..., 0], np.abs(mapped[..., 1]), mapped[..., 2]], axis=-1)
        return mapped, sector

    def distance(self, p: Any, time: float = 0.0) -> Any:
        q = as_points(p) - self.center.as_array()
        half = self.thickness / 2.0
        quarter = self.thickness / 4.0

        radial = np.hypot(q[..., 1], q[..., 2])
        ring = np.abs(radial - (self.radius - quarter)) - half

        mapped, _ = self._fold_local(q, time)
        tooth_center = np.array([0.0, self.radius + half, 0.0])
        tooth_size = np.array([self.thickness, self.thickness * 2.0, self.thickness])
        teeth = box_distance(mapped, tooth_center, tooth_size) - quarter

        dist = np.minimum(ring, teeth)
        # slice to the gear's axial thickness
        return np.maximum(dist, np.abs(q[..., 0]) - half)
