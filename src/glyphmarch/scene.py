from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

import numpy as np

from glyphmarch.errors import SceneConfigError
from glyphmarch.geometry import Box, Gear, Sphere, smooth_union
from glyphmarch.math_utils import as_points
from glyphmarch.protocols import SDF
from glyphmarch.vector import Vector3

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SmoothBlend:
    """Blend two scene members with a smooth union of radius k."""

    first: int
    second: int
    k: float


@dataclass(frozen=True, slots=True)
class Scene(SDF):
    """Union of SDF primitives.

    Without a blend the distance is the plain minimum over all members. With
    a blend, the two chosen members are merged by :func:`smooth_union` and
    the result joins the remaining members by minimum.
    """

    objects: tuple[SDF, ...] = ()
    blend: SmoothBlend | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "objects", tuple(self.objects))
        if self.blend is not None:
            self._validate_blend(self.blend)
        logger.debug(
            "Scene with %d object(s), blend=%s",
            len(self.objects),
            self.blend,
        )

    def _validate_blend(self, blend: SmoothBlend) -> None:
        n = len(self.objects)
        for index in (blend.first, blend.second):
            if not 0 <= index < n:
                msg = f"Blend index {index} out of range for {n} object(s)"
                raise SceneConfigError(msg)
        if blend.first == blend.second:
            msg = "Blend needs two distinct objects"
            raise SceneConfigError(msg)
        if not math.isfinite(blend.k) or blend.k <= 0.0:
            msg = f"Blend radius must be positive and finite, got {blend.k}"
            raise SceneConfigError(msg)

    def distance(self, p: Any, time: float = 0.0) -> Any:
        points = as_points(p)
        if not self.objects:
            return np.full(points.shape[:-1], np.inf)

        if self.blend is None:
            dist = self.objects[0].distance(points, time)
            for obj in self.objects[1:]:
                dist = np.minimum(dist, obj.distance(points, time))
            return dist

        blend = self.blend
        dist = smooth_union(
            self.objects[blend.first].distance(points, time),
            self.objects[blend.second].distance(points, time),
            blend.k,
        )
        for index, obj in enumerate(self.objects):
            if index in (blend.first, blend.second):
                continue
            dist = np.minimum(dist, obj.distance(points, time))
        return dist

    @classmethod
    def from_descriptors(
            cls,
            descriptors: Sequence[Mapping[str, Any]],
            blend: SmoothBlend | None = None,
    ) -> Scene:
        """Build a scene from ``{"kind": ..., **params}`` mappings.

        Vector parameters (``center``, ``size``) accept any 3-sequence.
        """
        return cls(objects=tuple(_build(d) for d in descriptors), blend=blend)


_PARAMS: dict[str, tuple[type, tuple[str, ...]]] = {
    "sphere": (Sphere, ("center", "radius")),
    "box": (Box, ("center", "size")),
    "gear": (Gear, ("center", "radius", "thickness", "turn_rate")),
}
_VECTOR_PARAMS = frozenset({"center", "size"})


def _build(descriptor: Mapping[str, Any]) -> SDF:
    kind = str(descriptor.get("kind", "")).lower()
    if kind not in _PARAMS:
        msg = f"Unknown primitive kind {descriptor.get('kind')!r}"
        raise SceneConfigError(msg)

    factory, names = _PARAMS[kind]
    missing = [n for n in names if n not in descriptor]
    if missing:
        msg = f"{kind} descriptor is missing {', '.join(missing)}"
        raise SceneConfigError(msg)

    kwargs: dict[str, Any] = {}
    for name in names:
        value = descriptor[name]
        try:
            kwargs[name] = Vector3.from_any(value) if name in _VECTOR_PARAMS else float(value)
        except (TypeError, ValueError) as exc:
            msg = f"{kind}.{name}: invalid value {value!r}"
            raise SceneConfigError(msg) from exc
    return factory(**kwargs)


def default_scene() -> Scene:
    """Sphere, two meshing gears and a cube."""
    return Scene.from_descriptors(
        [
            {"kind": "sphere", "center": (0.0, 0.0, 0.0), "radius": 1.1},
            {"kind": "gear", "center": (0.0, 0.0, 0.0), "radius": 2.0, "thickness": 0.4, "turn_rate": 30.0},
            {"kind": "gear", "center": (0.0, 4.9, -0.65), "radius": 2.0, "thickness": 0.4, "turn_rate": -30.0},
            {"kind": "box", "center": (2.0, 2.0, 0.0), "size": (1.0, 1.0, 1.0)},
        ],
    )
