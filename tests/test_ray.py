import dataclasses
import math

import numpy as np
import pytest

from voxel_raycast import BoundingVolume2, Ray, Ray2, Ray3


def test_ray_creation_defaults():
    ray = Ray2((1, 2), (3, 4))
    assert ray.origin == (1.0, 2.0)
    assert ray.direction == (3.0, 4.0)
    assert math.isinf(ray.length)


def test_ray_invalid_constructor():
    with pytest.raises(ValueError):
        Ray2((0.0, 0.0, 0.0), (1.0, 0.0))
    with pytest.raises(ValueError):
        Ray3((0.0, 0.0, 0.0), (1.0, 0.0))
    with pytest.raises(TypeError):
        Ray((0.0, 0.0), (1.0, 0.0))


def test_ray_is_immutable_and_comparable():
    ray = Ray2((0.0, 0.0), (1.0, 1.0), 5.0)
    with pytest.raises(dataclasses.FrozenInstanceError):
        ray.length = 10.0
    assert ray == Ray2((0, 0), (1, 1), 5)
    assert hash(ray) == hash(Ray2((0, 0), (1, 1), 5))


def test_unit_direction():
    assert Ray2((0, 0), (3, 4)).unit_direction() == pytest.approx((0.6, 0.8))
    assert Ray3((0, 0, 0), (0, 0, -2)).unit_direction() == pytest.approx((0.0, 0.0, -1.0))


def test_unit_direction_rejects_degenerate():
    with pytest.raises(ValueError):
        Ray2((0, 0), (0, 0)).unit_direction()
    with pytest.raises(ValueError):
        Ray2((0, 0), (np.nan, 1.0)).unit_direction()
    with pytest.raises(ValueError):
        Ray3((0, 0, 0), (np.inf, 0, 0)).unit_direction()


def test_point_at_uses_normalized_direction():
    ray = Ray2((1.0, 1.0), (3.0, 4.0))
    assert ray.point_at(5.0) == pytest.approx((4.0, 5.0))
    assert ray.point_at(0.0) == pytest.approx((1.0, 1.0))


def test_ray_entry_point():
    g = BoundingVolume2((8, 8))
    assert Ray2((-10.0, -10.0), (1.0, 1.0), 100.0).entry_point(g) == (0.0, 0.0)
    assert Ray2((-10.0, -10.0), (1.0, 1.0), 5.0).entry_point(g) is None
    assert Ray2((-1.0, -1.0), (1.0, 0.0)).entry_point(g) is None


def test_ray_traverse_delegates_to_volume():
    g = BoundingVolume2((8, 8))
    ray = Ray2((-10.0, -10.0), (1.0, 1.0), 100.0)
    assert list(ray.traverse(g)) == list(g.traverse(ray))
    assert (list(ray.traverse(g, step_corners=False))
            == list(g.traverse(ray, step_corners=False)))


def test_ray_traverse_until_hit_and_reversed():
    arr = np.zeros((5, 5), dtype=int)
    arr[2, 0] = 1
    g = BoundingVolume2((5, 5))

    hit = Ray2((0.0, 0.0), (1.0, 0.0)).traverse_until_hit(g, arr)
    assert hit.voxel == (2, 0)
    assert hit.distance == pytest.approx(2.0)

    # reversed ray: start past the occupied cell, go backward
    hit_rev = Ray2((4.5, 0.5), (-1.0, 0.0)).traverse_until_hit(g, arr)
    assert hit_rev.voxel == (2, 0)
    assert hit_rev.distance == pytest.approx(1.5)
    assert hit_rev.normal == (1, 0)


def test_hit_point_lands_on_entered_face():
    g = BoundingVolume2((8, 8))
    ray = Ray2((-10.0, -10.0), (1.0, 1.0), 100.0)
    first = next(iter(ray.traverse(g)))
    assert ray.point_at(first.distance) == pytest.approx((0.0, 0.0), abs=1e-9)
