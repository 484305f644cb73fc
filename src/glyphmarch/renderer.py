from __future__ import annotations

import logging
import os
import time as _time
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

import numpy as np

from glyphmarch.errors import RenderConfigError
from glyphmarch.framebuffer import FrameBuffer
from glyphmarch.lighting import Lighting, LightingConfig
from glyphmarch.raymarch.config import RayMarchConfig
from glyphmarch.raymarch.marcher import ImageMarcher

if TYPE_CHECKING:
    from glyphmarch.camera.camera3d import Camera
    from glyphmarch.protocols import SDF

logger = logging.getLogger(__name__)


class ParallelRenderer:
    """Per-pixel march -> light -> glyph pipeline over a thread pool.

    The ray grid is cut into blocks of ``chunk_rows`` rows. Blocks share only
    read-only inputs (scene, camera snapshot, time) and write disjoint rows of
    the luminance image, so the result does not depend on ``workers`` or
    ``chunk_rows``.
    """

    def __init__(
            self,
            scene: SDF,
            march_config: RayMarchConfig | None = None,
            lighting_config: LightingConfig | None = None,
            *,
            workers: int | None = None,
            chunk_rows: int = 8,
    ) -> None:
        if workers is not None and workers < 1:
            msg = f"workers must be >= 1, got {workers}"
            raise RenderConfigError(msg)
        if chunk_rows < 1:
            msg = f"chunk_rows must be >= 1, got {chunk_rows}"
            raise RenderConfigError(msg)

        self.scene = scene
        self.marcher = ImageMarcher(march_config or RayMarchConfig(), scene)
        self.lighting = Lighting(scene, lighting_config)
        self.workers = workers if workers is not None else min(8, os.cpu_count() or 1)
        self.chunk_rows = chunk_rows

    def _shade_block(self, origin: np.ndarray, directions: np.ndarray, time: float) -> np.ndarray:
        res = self.marcher.march(origin, directions, time)
        lum = np.zeros(res.hit.shape, dtype=np.float64)
        if np.any(res.hit):
            lum[res.hit] = self.lighting.brightness(res.points[res.hit], time)
        return lum

    def render_luminance(self, camera: Camera, time: float = 0.0) -> np.ndarray:
        """Brightness image of shape (pixel_height, pixel_width); misses are 0."""
        origin = camera.position.as_array()
        rays = camera.ray_directions_grid()
        height = rays.shape[0]
        starts = range(0, height, self.chunk_rows)

        if self.workers == 1:
            blocks = [self._shade_block(origin, rays[s:s + self.chunk_rows], time) for s in starts]
        else:
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                futures = [
                    executor.submit(self._shade_block, origin, rays[s:s + self.chunk_rows], time)
                    for s in starts
                ]
                blocks = [f.result() for f in futures]

        return np.concatenate(blocks, axis=0)

    def render(
            self,
            camera: Camera,
            time: float = 0.0,
            framebuffer: FrameBuffer | None = None,
    ) -> FrameBuffer:
        """Render one frame into framebuffer (a new one sized to the camera if omitted)."""
        if framebuffer is None:
            framebuffer = FrameBuffer(camera.pixel_width, camera.pixel_height)
        elif framebuffer.shape != (camera.pixel_height, camera.pixel_width):
            msg = (
                f"FrameBuffer {framebuffer.pixel_width}x{framebuffer.pixel_height} does not match "
                f"camera {camera.pixel_width}x{camera.pixel_height}"
            )
            raise RenderConfigError(msg)

        started = _time.perf_counter()
        lum = self.render_luminance(camera, time)
        framebuffer.fill(lum)
        logger.debug(
            "Rendered %dx%d frame at t=%s with %d worker(s): %d lit pixel(s) in %.3fs",
            camera.pixel_width,
            camera.pixel_height,
            time,
            self.workers,
            int(np.count_nonzero(lum)),
            _time.perf_counter() - started,
        )
        return framebuffer
