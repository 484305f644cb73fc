from __future__ import annotations

from typing import Any

import numpy as np

from glyphmarch.vector import Vector3


def as_points(p: Any) -> np.ndarray:
    """Return p as a float64 array of shape (..., 3)."""
    if isinstance(p, Vector3):
        return p.as_array()
    return np.asarray(p, dtype=np.float64)


def normalize_batch(v: np.ndarray) -> np.ndarray:
    """Normalize along the last axis with division-by-zero guard."""
    n = np.linalg.norm(v, axis=-1, keepdims=True)
    n = np.maximum(n, 1e-12)
    return v / n


def round_half_away(x: Any) -> Any:
    """Round to nearest integer, ties away from zero.

    np.round rounds ties to even, which shifts gear sector boundaries.
    """
    return np.sign(x) * np.floor(np.abs(x) + 0.5)


def rotate_x(p: np.ndarray, angle: Any) -> np.ndarray:
    """Rotate (..., 3) points about the x axis by angle (radians).

    angle may be a scalar or broadcast against p[..., 0].
    """
    c = np.cos(angle)
    s = np.sin(angle)
    x, y, z = p[..., 0], p[..., 1], p[..., 2]
    return np.stack([x, y * c - z * s, y * s + z * c], axis=-1)
