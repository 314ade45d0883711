"""
Fast voxel traversal of 2-D and 3-D rays through an implicit grid.
"""
import logging

from .grid import (
    BoundingVolume,
    BoundingVolume2,
    BoundingVolume3,
    traverse_ray,
    traverse_until_hit,
)
from .ray import Ray, Ray2, Ray3, RayHit
from .traversal import CursorState, VoxelRayIterator, VoxelRayIterator2, VoxelRayIterator3

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "BoundingVolume",
    "BoundingVolume2",
    "BoundingVolume3",
    "CursorState",
    "Ray",
    "Ray2",
    "Ray3",
    "RayHit",
    "VoxelRayIterator",
    "VoxelRayIterator2",
    "VoxelRayIterator3",
    "traverse_ray",
    "traverse_until_hit",
]
