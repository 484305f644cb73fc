from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import matplotlib as mpl
import numpy as np
from matplotlib.animation import FuncAnimation

# IMPORTANT: set backend before importing pyplot
_BACKEND = os.environ.get("GLYPHMARCH_MPL_BACKEND", "").strip()
if _BACKEND:
    mpl.use(_BACKEND, force=True)

import matplotlib.pyplot as plt  # noqa: E402

if TYPE_CHECKING:
    from collections.abc import Sequence

    from glyphmarch.protocols import SDF


def sample_slice(
        scene: SDF,
        time: float,
        xlim: tuple[float, float],
        ylim: tuple[float, float],
        resolution: int = 200,
        z: float = 0.0,
) -> np.ndarray:
    """Scene distance on the plane ``z = const``, shape (resolution, resolution).

    Row 0 holds the largest y so the array displays upright.
    """
    xs = np.linspace(xlim[0], xlim[1], resolution)
    ys = np.linspace(ylim[1], ylim[0], resolution)
    gx, gy = np.meshgrid(xs, ys)
    points = np.stack([gx, gy, np.full_like(gx, z)], axis=-1)
    return np.asarray(scene.distance(points, time))


@dataclass(frozen=True, slots=True)
class RenderFrame:
    """Single render frame for animation.

    Attributes
    ----------
    lum:
        Luminance image (H, W) in [0, 1].
    time:
        Scene time the frame was rendered at.
    slice_dist:
        Optional scene distance on a horizontal plane (see :func:`sample_slice`),
        shown as an inside/outside map next to the render.

    """

    lum: np.ndarray
    time: float
    slice_dist: np.ndarray | None = None


class LuminancePlotter:
    """Plot rendered luminance + optional top-down slice of the distance field."""

    def __init__(self, *, two_d_split: bool = True) -> None:
        """Initialize the plot."""
        self.two_d_split = two_d_split

        if two_d_split:
            self.fig, (self.ax_img, self.ax_top) = plt.subplots(1, 2, figsize=(12, 5))
        else:
            self.fig, self.ax_img = plt.subplots(1, 1, figsize=(8, 5))
            self.ax_top = None

        self.ax_img.axis("off")
        self.ax_img.set_title("Rendered view")

        self.im: Any = None
        self.slice_im: Any = None

    def _init_topdown(
            self,
            frame: RenderFrame,
            xlim: tuple[float, float],
            ylim: tuple[float, float],
            title: str,
    ) -> None:
        if self.ax_top is None:
            return

        ax = self.ax_top
        ax.cla()
        ax.set_title(title)
        ax.set_xlabel("x")
        ax.set_ylabel("y")
        data = np.zeros((2, 2)) if frame.slice_dist is None else (frame.slice_dist < 0.0).astype(float)
        self.slice_im = ax.imshow(
            data,
            extent=(xlim[0], xlim[1], ylim[0], ylim[1]),
            cmap="Greys",
            vmin=0,
            vmax=1,
        )

    def animate(
            self,
            frames: Sequence[RenderFrame],
            xlim: tuple[float, float] = (-5.0, 5.0),
            ylim: tuple[float, float] = (-5.0, 8.0),
            interval_ms: int = 120,
            topdown_title: str = "Slice z = 0",
    ) -> FuncAnimation:
        if not frames:
            msg = "frames is empty"
            raise ValueError(msg)

        self.im = self.ax_img.imshow(frames[0].lum, cmap="gray", vmin=0.0, vmax=1.0, aspect="auto")
        self.ax_img.set_title(f"Rendered view, t={frames[0].time:g}")

        if self.two_d_split:
            self._init_topdown(frames[0], xlim, ylim, topdown_title)

        def _update(i: int) -> list[Any]:
            f = frames[i]
            artists: list[Any] = []

            if self.im is not None:
                self.im.set_data(f.lum)
                self.ax_img.set_title(f"Rendered view, t={f.time:g}")
                artists.append(self.im)

            if self.slice_im is not None and f.slice_dist is not None:
                self.slice_im.set_data((f.slice_dist < 0.0).astype(float))
                artists.append(self.slice_im)

            return artists

        return FuncAnimation(
            self.fig,
            _update,
            frames=len(frames),
            interval=interval_ms,
            repeat=True,
            blit=False,
        )

    @staticmethod
    def show() -> None:
        plt.tight_layout()
        plt.show()
