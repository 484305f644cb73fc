"""End-to-end tests for glyphmarch.renderer."""

import numpy as np
import numpy.testing as npt
import pytest

from glyphmarch.camera.camera3d import Camera
from glyphmarch.errors import RenderConfigError
from glyphmarch.framebuffer import DEFAULT_PALETTE, FrameBuffer
from glyphmarch.geometry import Sphere
from glyphmarch.raymarch.config import RayMarchConfig
from glyphmarch.renderer import ParallelRenderer
from glyphmarch.scene import Scene, default_scene
from glyphmarch.vector import Vector3

UNIT_SPHERE = Scene(objects=(Sphere(center=Vector3.zero(), radius=1.0),))


def _camera(width: int = 90, height: int = 30) -> Camera:
    return Camera.from_look_at(
        (-4.0, 0.0, 0.0), (0.0, 0.0, 0.0), fov_deg=90.0, focal_distance=1.0,
        pixel_width=width, pixel_height=height,
    )


class TestSphereSilhouette:
    """Unit sphere seen from (-4, 0, 0) on a 90x30 grid."""

    def test_center_hits_and_corners_miss(self):
        lum = ParallelRenderer(UNIT_SPHERE, workers=1).render_luminance(_camera())
        assert lum.shape == (30, 90)
        for row, col in [(15, 45), (14, 44), (16, 46), (15, 40), (15, 50)]:
            assert lum[row, col] > 0.0
        for row, col in [(0, 0), (0, 89), (29, 0), (29, 89)]:
            assert lum[row, col] == 0.0

    def test_glyphs(self):
        fb = ParallelRenderer(UNIT_SPHERE, workers=2).render(_camera())
        assert fb.grid[0, 0] == DEFAULT_PALETTE[-1]
        assert fb.grid[15, 45] != DEFAULT_PALETTE[-1]
        assert len(fb.rows()) == 30
        assert all(len(row) == 90 for row in fb.rows())

    def test_brightness_range(self):
        lum = ParallelRenderer(UNIT_SPHERE).render_luminance(_camera())
        lit = lum[lum > 0.0]
        assert lit.size > 0
        assert np.all((lit >= 0.1 - 1e-12) & (lit <= 1.0 + 1e-12))

    def test_snapshot_from_tuples(self):
        cam = Camera((-4, 0, 0), (1, 0, 0), (0, 0, 1), 90.0, 1.0, 90, 30)
        lum = ParallelRenderer(UNIT_SPHERE, workers=1).render_luminance(cam)
        assert lum.shape == (30, 90)
        assert lum[15, 45] > 0.0
        assert lum[0, 0] == 0.0


class TestParallelism:
    @pytest.mark.parametrize(("workers", "chunk_rows"), [(2, 1), (4, 3), (3, 7), (8, 64)])
    def test_output_independent_of_pool(self, workers, chunk_rows):
        scene = default_scene()
        camera = _camera(width=48, height=16)
        reference = ParallelRenderer(scene, workers=1, chunk_rows=16).render(camera, time=7.0)
        other = ParallelRenderer(scene, workers=workers, chunk_rows=chunk_rows).render(camera, time=7.0)
        npt.assert_array_equal(other.grid, reference.grid)

    def test_luminance_independent_of_pool(self):
        scene = default_scene()
        camera = _camera(width=48, height=16)
        a = ParallelRenderer(scene, workers=1, chunk_rows=16).render_luminance(camera, 3.0)
        b = ParallelRenderer(scene, workers=4, chunk_rows=2).render_luminance(camera, 3.0)
        npt.assert_allclose(a, b, rtol=0.0, atol=1e-12)

    def test_repeated_renders_are_identical(self):
        renderer = ParallelRenderer(default_scene(), workers=4)
        camera = _camera(width=40, height=12)
        first = renderer.render_luminance(camera, 2.0)
        for _ in range(3):
            npt.assert_array_equal(renderer.render_luminance(camera, 2.0), first)


class TestRender:
    def test_empty_scene_is_background(self):
        fb = ParallelRenderer(Scene(), workers=2).render(_camera(width=20, height=8))
        assert set(str(fb).replace("\n", "")) == {DEFAULT_PALETTE[-1]}

    def test_gears_move_with_time(self):
        renderer = ParallelRenderer(default_scene(), RayMarchConfig(max_steps=30, hit_threshold=0.05))
        camera = _camera(width=60, height=20)
        assert str(renderer.render(camera, 0.0)) != str(renderer.render(camera, 15.0))

    def test_reuses_framebuffer(self):
        fb = FrameBuffer(20, 8)
        out = ParallelRenderer(UNIT_SPHERE).render(_camera(width=20, height=8), framebuffer=fb)
        assert out is fb
        assert str(fb) != "\n".join([" " * 20] * 8)

    def test_framebuffer_mismatch(self):
        with pytest.raises(RenderConfigError):
            ParallelRenderer(UNIT_SPHERE).render(_camera(width=20, height=8), framebuffer=FrameBuffer(8, 20))

    @pytest.mark.parametrize("kwargs", [{"workers": 0}, {"chunk_rows": 0}])
    def test_invalid_settings(self, kwargs):
        with pytest.raises(RenderConfigError):
            ParallelRenderer(UNIT_SPHERE, **kwargs)
