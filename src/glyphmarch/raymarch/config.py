from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from glyphmarch.errors import RenderConfigError


@dataclass(frozen=True, slots=True)
class RayMarchConfig:
    max_distance: float = 10.0
    max_steps: int = 50
    hit_threshold: float = 0.01

    def __post_init__(self) -> None:
        if self.max_steps < 1:
            msg = f"max_steps must be >= 1, got {self.max_steps}"
            raise RenderConfigError(msg)
        if not self.max_distance > 0.0:
            msg = f"max_distance must be positive, got {self.max_distance}"
            raise RenderConfigError(msg)
        if not self.hit_threshold > 0.0:
            msg = f"hit_threshold must be positive, got {self.hit_threshold}"
            raise RenderConfigError(msg)


Termination = Literal["hit", "far", "max_steps"]


@dataclass(frozen=True, slots=True)
class RayMarchResult:
    hit: bool
    point: Any
    traveled: float
    steps: int
    termination: Termination


@dataclass(frozen=True, slots=True)
class ImageMarchResult:
    """Per-ray outcome of a batched march.

    hit: (...) bool
    points: (..., 3) final sample positions, meaningful where hit
    traveled: (...) ray parameter reached
    steps: (...) distance evaluations spent
    """

    hit: Any
    points: Any
    traveled: Any
    steps: Any
