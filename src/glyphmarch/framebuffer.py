from __future__ import annotations

from typing import Any, Sequence

import numpy as np

from glyphmarch.math_utils import round_half_away

# Densest glyph first, blank last.
DEFAULT_PALETTE: str = (
    "$@B%8&WM#oahkbdpqwmZO0QLCJUYXzcvunxrjft/\\|()1{}[]?-_+~<>i!lI;:,\"^`'. "
)


class FrameBuffer:
    """Glyph grid of one frame plus the palette that maps luminance to glyphs.

    The grid is fully rewritten by :meth:`fill`; no state survives between
    frames other than the dimensions and the palette.
    """

    def __init__(
            self,
            pixel_width: int,
            pixel_height: int,
            palette: Sequence[str] = DEFAULT_PALETTE,
    ) -> None:
        if pixel_width < 1 or pixel_height < 1:
            msg = f"FrameBuffer must be at least 1x1, got {pixel_width}x{pixel_height}"
            raise ValueError(msg)
        if len(palette) == 0:
            msg = "palette is empty"
            raise ValueError(msg)

        self.pixel_width = int(pixel_width)
        self.pixel_height = int(pixel_height)
        self.palette: tuple[str, ...] = tuple(palette)
        self._glyphs = np.asarray(self.palette)
        self.grid = np.full((self.pixel_height, self.pixel_width), self.palette[-1])

    @classmethod
    def from_height(cls, height: int, aspect: float, palette: Sequence[str] = DEFAULT_PALETTE) -> FrameBuffer:
        """Buffer of the given height whose width is height * aspect."""
        return cls(pixel_width=int(height * aspect), pixel_height=int(height), palette=palette)

    @property
    def shape(self) -> tuple[int, int]:
        return self.pixel_height, self.pixel_width

    def glyph_indices(self, brightness: Any) -> Any:
        """Palette index per brightness value; 1 -> 0, 0 -> last."""
        last = len(self.palette) - 1
        index = round_half_away((1.0 - np.asarray(brightness, dtype=np.float64)) * last)
        return np.clip(index, 0, last).astype(np.int64)

    def glyph_for(self, brightness: float) -> str:
        return self.palette[int(self.glyph_indices(brightness))]

    def fill(self, brightness: Any) -> None:
        """Overwrite the grid from an (H, W) luminance array."""
        lum = np.asarray(brightness, dtype=np.float64)
        if lum.shape != self.shape:
            msg = f"Luminance shape {lum.shape} does not match buffer {self.shape}"
            raise ValueError(msg)
        self.grid = self._glyphs[self.glyph_indices(lum)]

    def rows(self) -> list[str]:
        return ["".join(row) for row in self.grid]

    def __str__(self) -> str:
        return "\n".join(self.rows())
