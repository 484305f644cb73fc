from __future__ import annotations

from typing import TYPE_CHECKING, Any

import numpy as np

from glyphmarch.math_utils import as_points, normalize_batch
from glyphmarch.raymarch.config import ImageMarchResult, RayMarchConfig, RayMarchResult
from glyphmarch.vector import Vector3

if TYPE_CHECKING:
    from glyphmarch.protocols import SDF


class RayMarcher:
    """Sphere tracer for a single ray."""

    def __init__(self, config: RayMarchConfig, scene: SDF) -> None:
        """Initialise the marcher."""
        self.cfg = config
        self.scene = scene

    def march(self, origin: Any, direction: Any, time: float = 0.0) -> RayMarchResult:
        """March from origin along direction (normalized here).

        Each step advances by the local distance value; the step is capped at
        max_distance so an empty scene (infinite distance) stays finite.
        """
        cfg = self.cfg
        p = as_points(origin).copy()
        d = normalize_batch(as_points(direction))
        traveled = 0.0

        for step in range(1, cfg.max_steps + 1):
            dist = float(self.scene.distance(p, time))
            if abs(dist) < cfg.hit_threshold:
                return RayMarchResult(
                    hit=True,
                    point=Vector3.from_any(p),
                    traveled=traveled,
                    steps=step,
                    termination="hit",
                )

            ds = min(dist, cfg.max_distance)
            p = p + d * ds
            traveled += ds

            if traveled >= cfg.max_distance:
                return RayMarchResult(
                    hit=False,
                    point=None,
                    traveled=traveled,
                    steps=step,
                    termination="far",
                )

        return RayMarchResult(
            hit=False,
            point=None,
            traveled=traveled,
            steps=cfg.max_steps,
            termination="max_steps",
        )


class ImageMarcher:
    """Sphere tracer for a block of rays sharing one origin.

    Applies the same per-ray rules as :class:`RayMarcher`; only rays still in
    flight are evaluated at each step.
    """

    def __init__(self, config: RayMarchConfig, scene: SDF) -> None:
        """Initialise the marcher."""
        self.cfg = config
        self.scene = scene

    def march(self, origin: Any, directions: Any, time: float = 0.0) -> ImageMarchResult:
        """March.

        origin: (3,)
        directions: (..., 3), any nonzero length
        """
        cfg = self.cfg

        rd = normalize_batch(as_points(directions))
        shape = rd.shape[:-1]
        rd = rd.reshape(-1, 3)
        n = rd.shape[0]

        p = np.broadcast_to(as_points(origin), (n, 3)).copy()
        hit = np.zeros(n, dtype=bool)
        traveled = np.zeros(n, dtype=np.float64)
        steps = np.zeros(n, dtype=np.int64)

        alive = np.arange(n)
        for _ in range(cfg.max_steps):
            if alive.size == 0:
                break

            dist = self.scene.distance(p[alive], time)
            steps[alive] += 1

            landed = np.abs(dist) < cfg.hit_threshold
            hit[alive[landed]] = True
            alive = alive[~landed]
            dist = dist[~landed]

            ds = np.minimum(dist, cfg.max_distance)
            p[alive] = p[alive] + rd[alive] * ds[:, None]
            traveled[alive] = traveled[alive] + ds

            alive = alive[~(traveled[alive] >= cfg.max_distance)]

        return ImageMarchResult(
            hit=hit.reshape(shape),
            points=p.reshape(*shape, 3),
            traveled=traveled.reshape(shape),
            steps=steps.reshape(shape),
        )
