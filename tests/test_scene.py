"""Tests for glyphmarch.scene."""

import numpy as np
import numpy.testing as npt
import pytest

from glyphmarch.errors import SceneConfigError
from glyphmarch.geometry import Box, Gear, Sphere, smooth_union
from glyphmarch.scene import Scene, SmoothBlend, default_scene
from glyphmarch.vector import Vector3


def _cloud(n: int = 300, scale: float = 5.0, seed: int = 11) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.uniform(-scale, scale, size=(n, 3))


def _members() -> tuple:
    return (
        Sphere(center=Vector3.zero(), radius=1.1),
        Gear(center=Vector3.zero(), radius=2.0, thickness=0.4, turn_rate=30.0),
        Box(center=Vector3(2.0, 2.0, 0.0), size=Vector3(1.0, 1.0, 1.0)),
    )


class TestUnion:
    @pytest.mark.parametrize("time", [0.0, 3.5, 15.0, -42.0])
    def test_distance_is_member_minimum(self, time):
        members = _members()
        scene = Scene(objects=members)
        pts = _cloud()
        expected = np.min(np.stack([m.distance(pts, time) for m in members]), axis=0)
        npt.assert_array_equal(scene.distance(pts, time), expected)

    def test_order_is_irrelevant(self):
        members = _members()
        pts = _cloud()
        npt.assert_array_equal(
            Scene(objects=members).distance(pts, 2.0),
            Scene(objects=members[::-1]).distance(pts, 2.0),
        )

    def test_single_point(self):
        scene = Scene(objects=_members())
        assert float(scene.distance(Vector3(0.0, 0.0, 0.0))) == pytest.approx(-1.1)

    def test_empty_scene_is_infinite(self):
        d = Scene().distance(_cloud().reshape(10, 30, 3))
        assert d.shape == (10, 30)
        assert np.all(np.isposinf(d))

    def test_list_objects_are_frozen_to_tuple(self):
        scene = Scene(objects=list(_members()))
        assert isinstance(scene.objects, tuple)


class TestSmoothBlend:
    def test_blended_pair_joins_rest_by_min(self):
        members = _members()
        scene = Scene(objects=members, blend=SmoothBlend(first=0, second=2, k=0.5))
        pts = _cloud()
        expected = np.minimum(
            smooth_union(members[0].distance(pts), members[2].distance(pts), 0.5),
            members[1].distance(pts),
        )
        npt.assert_allclose(scene.distance(pts), expected)

    def test_blend_never_exceeds_plain_union(self):
        members = _members()
        pts = _cloud()
        plain = Scene(objects=members).distance(pts)
        blended = Scene(objects=members, blend=SmoothBlend(0, 1, 0.3)).distance(pts)
        assert np.all(blended <= plain + 1e-12)

    @pytest.mark.parametrize(
        "blend",
        [SmoothBlend(0, 3, 0.5), SmoothBlend(-1, 0, 0.5), SmoothBlend(1, 1, 0.5), SmoothBlend(0, 1, 0.0)],
    )
    def test_invalid_blend_rejected(self, blend):
        with pytest.raises(SceneConfigError):
            Scene(objects=_members(), blend=blend)


class TestDescriptors:
    def test_builds_each_kind(self):
        scene = Scene.from_descriptors(
            [
                {"kind": "sphere", "center": (0, 0, 0), "radius": 1},
                {"kind": "Box", "center": [1, 2, 3], "size": (1, 1, 1)},
                {"kind": "gear", "center": (0, 0, 0), "radius": 2, "thickness": 0.4, "turn_rate": 30},
            ],
        )
        assert [type(o) for o in scene.objects] == [Sphere, Box, Gear]
        assert scene.objects[1].center == Vector3(1.0, 2.0, 3.0)

    def test_unknown_kind(self):
        with pytest.raises(SceneConfigError, match="Unknown primitive"):
            Scene.from_descriptors([{"kind": "torus", "center": (0, 0, 0)}])

    def test_missing_parameter(self):
        with pytest.raises(SceneConfigError, match="missing radius"):
            Scene.from_descriptors([{"kind": "sphere", "center": (0, 0, 0)}])

    def test_bad_vector(self):
        with pytest.raises(SceneConfigError):
            Scene.from_descriptors([{"kind": "sphere", "center": (0, 0), "radius": 1}])

    def test_bad_scalar(self):
        with pytest.raises(SceneConfigError):
            Scene.from_descriptors([{"kind": "sphere", "center": (0, 0, 0), "radius": "big"}])

    def test_default_scene(self):
        scene = default_scene()
        assert len(scene.objects) == 4
        assert scene.blend is None
        assert float(scene.distance(Vector3(0.0, 0.0, 0.0), 1.0)) < 0.0
