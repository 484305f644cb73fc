from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterator

import numpy as np

from glyphmarch.errors import CameraConfigError
from glyphmarch.vector import Vector3

# Terminal cells are about twice as tall as they are wide.
GLYPH_ASPECT: float = 2.0


@dataclass(frozen=True, slots=True)
class Camera:
    """Pinhole camera snapshot for one frame.

    direction and up are expected to be unit length and roughly orthogonal;
    :meth:`from_look_at` builds such a pair. aspect_ratio is the screen's
    world height over world width; when omitted it is derived from the pixel
    grid and :data:`GLYPH_ASPECT`.
    """

    position: Vector3
    direction: Vector3
    up: Vector3
    fov_deg: float
    focal_distance: float
    pixel_width: int
    pixel_height: int
    aspect_ratio: float | None = None

    def __post_init__(self) -> None:
        for name in ("position", "direction", "up"):
            vec = Vector3.from_any(getattr(self, name))
            if not all(math.isfinite(c) for c in (vec.x, vec.y, vec.z)):
                msg = f"Camera.{name} must be finite, got {vec}"
                raise CameraConfigError(msg)
            object.__setattr__(self, name, vec)
        if self.direction.magnitude() == 0.0 or self.up.magnitude() == 0.0:
            msg = "Camera direction and up must be nonzero"
            raise CameraConfigError(msg)
        if self.pixel_width < 1 or self.pixel_height < 1:
            msg = f"Pixel grid must be at least 1x1, got {self.pixel_width}x{self.pixel_height}"
            raise CameraConfigError(msg)
        if not 0.0 < self.fov_deg < 180.0:
            msg = f"fov_deg must lie in (0, 180), got {self.fov_deg}"
            raise CameraConfigError(msg)
        if not (math.isfinite(self.focal_distance) and self.focal_distance > 0.0):
            msg = f"focal_distance must be positive, got {self.focal_distance}"
            raise CameraConfigError(msg)
        if self.aspect_ratio is None:
            object.__setattr__(
                self, "aspect_ratio", GLYPH_ASPECT * self.pixel_height / self.pixel_width,
            )
        elif not (math.isfinite(self.aspect_ratio) and self.aspect_ratio > 0.0):
            msg = f"aspect_ratio must be positive and finite, got {self.aspect_ratio}"
            raise CameraConfigError(msg)

    def screen(self) -> tuple[float, float]:
        """World-space (width, height) of the screen at focal_distance."""
        width = 2.0 * self.focal_distance * math.tan(math.radians(self.fov_deg) / 2.0)
        return width, width * self.aspect_ratio

    def screen_edges(self) -> tuple[Vector3, Vector3, Vector3]:
        """Return (corner, horizontal, vertical).

        corner is the top-left of the screen relative to the camera position;
        horizontal spans left to right and vertical top to bottom.
        """
        width, height = self.screen()
        horizontal = self.direction.cross(self.up).normalized() * width
        vertical = self.up * -height
        corner = self.direction * self.focal_distance - horizontal * 0.5 - vertical * 0.5
        return corner, horizontal, vertical

    def rays(self) -> RayGenerator:
        return RayGenerator(self)

    def ray_directions_grid(self) -> np.ndarray:
        """Return unnormalized ray directions of shape (H, W, 3), row 0 on top."""
        corner, horizontal, vertical = (v.as_array() for v in self.screen_edges())
        cols = np.arange(self.pixel_width, dtype=np.float64) / self.pixel_width
        rows = np.arange(self.pixel_height, dtype=np.float64) / self.pixel_height
        return (
                corner[None, None, :]
                + cols[None, :, None] * horizontal[None, None, :]
                + rows[:, None, None] * vertical[None, None, :]
        )

    @classmethod
    def from_look_at(
            cls,
            position: Any,
            look_at: Any,
            fov_deg: float,
            focal_distance: float,
            pixel_width: int,
            pixel_height: int,
            up: Any = (0.0, 0.0, 1.0),
            aspect_ratio: float | None = None,
    ) -> Camera:
        """Aim at a world-space target; up is re-orthogonalized against it."""
        pos = Vector3.from_any(position)
        forward = Vector3.from_any(look_at) - pos
        if forward.magnitude() == 0.0:
            msg = "look_at must differ from position"
            raise CameraConfigError(msg)
        forward = forward.normalized()

        right = forward.cross(Vector3.from_any(up))
        if right.magnitude() == 0.0:
            msg = "up must not be parallel to the viewing direction"
            raise CameraConfigError(msg)
        true_up = right.normalized().cross(forward)

        return cls(
            position=pos,
            direction=forward,
            up=true_up,
            fov_deg=fov_deg,
            focal_distance=focal_distance,
            pixel_width=pixel_width,
            pixel_height=pixel_height,
            aspect_ratio=aspect_ratio,
        )


class RayGenerator:
    """Row-major ray directions of a camera snapshot.

    Restartable: every iteration starts again from the top-left pixel.
    """

    def __init__(self, camera: Camera) -> None:
        self.camera = camera
        self.corner, self.horizontal, self.vertical = camera.screen_edges()

    def __len__(self) -> int:
        return self.camera.pixel_width * self.camera.pixel_height

    def ray(self, row: int, col: int) -> Vector3:
        cam = self.camera
        return (
                self.corner
                + self.horizontal * (col / cam.pixel_width)
                + self.vertical * (row / cam.pixel_height)
        )

    def __iter__(self) -> Iterator[Vector3]:
        for row in range(self.camera.pixel_height):
            for col in range(self.camera.pixel_width):
                yield self.ray(row, col)
