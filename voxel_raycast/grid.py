"""
User-facing bounding volumes and top-level helpers.
"""
import math
from dataclasses import dataclass
from typing import ClassVar, Iterable, Optional, Sequence, Tuple, Type

import numpy as np

from ._core import EPSILON, _ray_aabb_entry
from .ray import Ray, Ray2, Ray3, RayHit
from .traversal import VoxelRayIterator, VoxelRayIterator2, VoxelRayIterator3


@dataclass(frozen=True)
class BoundingVolume:
    """
    Axis-aligned voxel volume ``[0, size)`` anchored at the origin.

    Only the extent is stored; nothing is allocated per voxel. Volumes at an
    offset are handled by subtracting the offset from the ray origin and
    adding it back to every hit.

    Use :class:`BoundingVolume2` or :class:`BoundingVolume3`.
    """

    size: Tuple[int, ...]

    ndim: ClassVar[int] = 0
    iterator_class: ClassVar[Type[VoxelRayIterator]] = VoxelRayIterator

    def __post_init__(self) -> None:
        if not self.ndim:
            raise TypeError("BoundingVolume is abstract; use BoundingVolume2 or BoundingVolume3")
        size = tuple(int(x) for x in self.size)
        if len(size) != self.ndim:
            raise ValueError(
                f"{type(self).__name__} needs {self.ndim} extents, got {len(size)}")
        object.__setattr__(self, "size", size)

    # ---------------------------------------------------------------------
    # Analytics
    # ---------------------------------------------------------------------
    def contains(self, point: Sequence[float]) -> bool:
        """True iff ``0 <= point[k] < size[k]`` on every axis."""
        if len(point) != self.ndim:
            raise ValueError(f"expected a {self.ndim}-D point, got {len(point)} components")
        return all(0 <= p < s for p, s in zip(point, self.size))

    @property
    def diagonal(self) -> float:
        """Corner-to-corner length."""
        return float(np.linalg.norm(np.asarray(self.size, dtype=np.float64)))

    def entry_point(self,
                    origin: Iterable[float],
                    direction: Iterable[float],
                    length: float = math.inf) -> Optional[Tuple[float, ...]]:
        """
        Point where a ray starting outside enters ``[0, size]``, or *None*.

        *direction* must already be unit length. A ray starting inside the
        volume has no entry point.
        """
        o = np.asarray(tuple(origin), dtype=np.float64)
        d = np.asarray(tuple(direction), dtype=np.float64)
        if o.shape != (self.ndim,) or d.shape != (self.ndim,):
            raise ValueError(f"origin and direction must have {self.ndim} components")
        hit, _, point = _ray_aabb_entry(np.asarray(self.size, dtype=np.int64),
                                        o, d, float(length), EPSILON)
        if not hit:
            return None
        return tuple(float(x) for x in point)

    # ---------------------------------------------------------------------
    # Traversal
    # ---------------------------------------------------------------------
    def traverse(self, ray: Ray, *, step_corners: bool = True) -> VoxelRayIterator:
        """Lazy ``RayHit`` iterator over every voxel of this volume the ray crosses."""
        return self.iterator_class(self, ray, step_corners=step_corners)

    def traverse_until_hit(self,
                           ray: Ray,
                           grid_array: np.ndarray,
                           *,
                           step_corners: bool = True) -> Optional[RayHit]:
        """Return the first hit whose cell is non-zero in *grid_array*, or *None*."""
        grid_array = np.asarray(grid_array)
        if grid_array.shape != self.size:
            raise ValueError(
                f"grid_array shape {grid_array.shape} does not match volume {self.size}")
        for hit in self.traverse(ray, step_corners=step_corners):
            if grid_array[hit.voxel]:
                return hit
        return None


@dataclass(frozen=True)
class BoundingVolume2(BoundingVolume):
    ndim: ClassVar[int] = 2
    iterator_class: ClassVar[Type[VoxelRayIterator]] = VoxelRayIterator2


@dataclass(frozen=True)
class BoundingVolume3(BoundingVolume):
    ndim: ClassVar[int] = 3
    iterator_class: ClassVar[Type[VoxelRayIterator]] = VoxelRayIterator3


# -------------------------------------------------------------------------
# Convenience top-level helpers
# -------------------------------------------------------------------------
_BY_NDIM = {
    2: (BoundingVolume2, Ray2),
    3: (BoundingVolume3, Ray3),
}


def _classes_for(ndim: int):
    try:
        return _BY_NDIM[ndim]
    except KeyError:
        raise ValueError(f"only 2-D and 3-D volumes are supported, got {ndim}-D") from None


def traverse_ray(
    origin,
    direction,
    *,
    size,
    length=math.inf,
    step_corners=True,
) -> VoxelRayIterator:
    volume_cls, ray_cls = _classes_for(len(size))
    volume = volume_cls(size=tuple(size))
    ray = ray_cls(origin=tuple(origin), direction=tuple(direction), length=length)
    return volume.traverse(ray, step_corners=step_corners)


def traverse_until_hit(
    origin,
    direction,
    grid_array,
    *,
    length=math.inf,
    step_corners=True,
) -> Optional[RayHit]:
    """
    Return the first ``RayHit`` on a non-zero cell of *grid_array*, or *None*.

    The volume is inferred from the array's shape.
    """
    grid_array = np.asarray(grid_array)
    volume_cls, ray_cls = _classes_for(grid_array.ndim)
    volume = volume_cls(size=grid_array.shape)
    ray = ray_cls(origin=tuple(origin), direction=tuple(direction), length=length)
    return volume.traverse_until_hit(ray, grid_array, step_corners=step_corners)
