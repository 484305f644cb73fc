from __future__ import annotations

import logging
import math

from tqdm import tqdm

from glyphmarch.camera.camera3d import Camera
from glyphmarch.framebuffer import FrameBuffer
from glyphmarch.lighting import LightingConfig
from glyphmarch.raymarch.config import RayMarchConfig
from glyphmarch.renderer import ParallelRenderer
from glyphmarch.scene import default_scene
from glyphmarch.viz.plot import LuminancePlotter, RenderFrame, sample_slice

# ============================================================
# TOP-LEVEL SCENE + CAMERA + RENDER SETTINGS (edit these)
# ============================================================
FRAMES_N = 30
TIME_STEP = 1.0
PLOT = True
LOG_LEVEL = logging.INFO

BUFFER_HEIGHT = 30
BUFFER_ASPECT = 3.0

CAMERA_POSITION = (-4.0, 0.0, 0.0)
LOOK_AT = (0.0, 0.0, 0.0)
FOV_DEG = 90.0
FOCAL_DISTANCE = 1.0
ORBIT = False
ORBIT_RADIUS = 5.0

SLICE_XLIM = (-5.0, 5.0)
SLICE_YLIM = (-5.0, 8.0)


def camera_path_orbit(i: int, n: int) -> tuple[float, float, float]:
    """Return a position on a circle around the z axis."""
    ang = 2.0 * math.pi * i / float(max(1, n))
    return -ORBIT_RADIUS * math.cos(ang), ORBIT_RADIUS * math.sin(ang), 1.0


def main() -> None:
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    log = logging.getLogger("demo_gears")

    scene = default_scene()
    renderer = ParallelRenderer(
        scene,
        RayMarchConfig(max_distance=10.0, max_steps=30, hit_threshold=0.1),
        LightingConfig(),
    )
    buffer = FrameBuffer.from_height(BUFFER_HEIGHT, BUFFER_ASPECT)

    frames: list[RenderFrame] = []
    time = 0.0
    camera: Camera | None = None
    for i in tqdm(range(FRAMES_N), total=FRAMES_N, desc="Rendering frames"):
        time += TIME_STEP
        position = camera_path_orbit(i, FRAMES_N) if ORBIT else CAMERA_POSITION
        camera = Camera.from_look_at(
            position=position,
            look_at=LOOK_AT,
            fov_deg=FOV_DEG,
            focal_distance=FOCAL_DISTANCE,
            pixel_width=buffer.pixel_width,
            pixel_height=buffer.pixel_height,
        )

        lum = renderer.render_luminance(camera, time)
        buffer.fill(lum)
        if PLOT:
            frames.append(
                RenderFrame(
                    lum=lum,
                    time=time,
                    slice_dist=sample_slice(scene, time, SLICE_XLIM, SLICE_YLIM),
                ),
            )

    print(buffer)
    if camera is not None:
        log.info("Camera: %s", camera.position)
        log.info("Facing: %s, Up: %s", camera.direction, camera.up)

    if PLOT and frames:
        plotter = LuminancePlotter(two_d_split=True)
        ani = plotter.animate(frames, xlim=SLICE_XLIM, ylim=SLICE_YLIM)
        _ = ani  # keep reference
        plotter.show()


if __name__ == "__main__":
    main()
