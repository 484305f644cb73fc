"""Shading of hit points.

Naming follows the engine's historical terms: ``shadow_term`` (called the
diffuse term in the brightness mix) is a soft-shadow occlusion factor and
``specular_term`` is a Lambertian N.L factor with no view dependence.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import numpy as np

from glyphmarch.errors import RenderConfigError
from glyphmarch.math_utils import as_points, normalize_batch
from glyphmarch.vector import Vector3

if TYPE_CHECKING:
    from glyphmarch.protocols import SDF


@dataclass(frozen=True, slots=True)
class LightingConfig:
    """Light and shading constants.

    light_direction points from the light into the scene and is normalized
    on construction.
    """

    light_direction: Vector3 = field(default_factory=lambda: Vector3(1.0, 1.0, -1.0))
    ambient: float = 0.1
    shadow_weight: float = 0.7
    light_weight: float = 0.3
    normal_eps: float = 1e-3
    shadow_k: float = 4.0
    shadow_eps: float = 1e-3
    shadow_t_start: float = 0.1
    shadow_t_max: float = 1.0
    shadow_max_steps: int = 50

    def __post_init__(self) -> None:
        light = Vector3.from_any(self.light_direction)
        if light.magnitude() == 0.0:
            msg = "light_direction must be nonzero"
            raise RenderConfigError(msg)
        object.__setattr__(self, "light_direction", light.normalized())

        if not 0.0 <= self.ambient <= 1.0:
            msg = f"ambient must lie in [0, 1], got {self.ambient}"
            raise RenderConfigError(msg)
        for name in ("normal_eps", "shadow_k", "shadow_eps", "shadow_t_start", "shadow_t_max"):
            if not getattr(self, name) > 0.0:
                msg = f"{name} must be positive, got {getattr(self, name)}"
                raise RenderConfigError(msg)
        if self.shadow_max_steps < 1:
            msg = f"shadow_max_steps must be >= 1, got {self.shadow_max_steps}"
            raise RenderConfigError(msg)


class Lighting:
    """Normal estimation, soft shadows and brightness for a scene.

    All methods take points shaped (..., 3) and return arrays shaped (...)
    (or (..., 3) for normals).
    """

    def __init__(self, scene: SDF, config: LightingConfig | None = None) -> None:
        self.scene = scene
        self.cfg = config if config is not None else LightingConfig()

    def _light(self, light_dir: Any) -> np.ndarray:
        if light_dir is None:
            return self.cfg.light_direction.as_array()
        return normalize_batch(as_points(light_dir))

    def normal_at(self, points: Any, time: float = 0.0) -> np.ndarray:
        """Central-difference gradient of the scene distance, normalized."""
        p = as_points(points)
        eps = self.cfg.normal_eps
        grad = []
        for axis in range(3):
            offset = np.zeros(3)
            offset[axis] = eps
            grad.append(self.scene.distance(p + offset, time) - self.scene.distance(p - offset, time))
        return normalize_batch(np.stack(grad, axis=-1) / (2.0 * eps))

    def shadow_term(self, points: Any, time: float = 0.0, light_dir: Any = None) -> Any:
        """Soft shadow factor in [0, 1] from marching towards the light.

        Zero as soon as the shadow ray meets a surface (distance below
        shadow_eps), otherwise the smallest k*h/t seen before t_max.
        """
        cfg = self.cfg
        p = as_points(points)
        shape = p.shape[:-1]
        p = p.reshape(-1, 3)
        light = self._light(light_dir)

        res = np.ones(p.shape[0], dtype=np.float64)
        t = np.full(p.shape[0], cfg.shadow_t_start, dtype=np.float64)
        alive = np.arange(p.shape[0])

        for _ in range(cfg.shadow_max_steps):
            if alive.size == 0:
                break

            h = self.scene.distance(p[alive] - light * t[alive, None], time)

            blocked = h < cfg.shadow_eps
            res[alive[blocked]] = 0.0
            alive = alive[~blocked]
            h = h[~blocked]

            res[alive] = np.minimum(res[alive], cfg.shadow_k * h / t[alive])
            t[alive] = t[alive] + h
            alive = alive[t[alive] < cfg.shadow_t_max]

        return np.clip(res, 0.0, 1.0).reshape(shape)

    def specular_term(self, points: Any, time: float = 0.0, light_dir: Any = None) -> Any:
        """Lambertian term clamp(-N.L, 0, 1)."""
        normal = self.normal_at(points, time)
        dot = -np.sum(normal * self._light(light_dir), axis=-1)
        return np.clip(dot, 0.0, 1.0)

    def brightness(self, points: Any, time: float = 0.0) -> Any:
        """Brightness in [0, 1] of hit points."""
        cfg = self.cfg
        shade = (
            self.shadow_term(points, time) * cfg.shadow_weight
            + self.specular_term(points, time) * cfg.light_weight
        )
        return cfg.ambient + (1.0 - cfg.ambient) * shade
