"""
Ray descriptors and the hit record produced by a traversal.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, NamedTuple, Optional, Tuple

import numpy as np

if TYPE_CHECKING:
    from .grid import BoundingVolume
    from .traversal import VoxelRayIterator


class RayHit(NamedTuple):
    """One voxel crossed by a ray."""

    distance: float
    voxel: Tuple[int, ...]
    # None only for the very first hit of a ray that started inside the volume
    normal: Optional[Tuple[int, ...]]


@dataclass(frozen=True)
class Ray:
    """
    Immutable ray: ``origin``, ``direction`` (any non-zero length) and the
    maximum travel ``length``, which may be ``math.inf``.

    Use :class:`Ray2` or :class:`Ray3`.
    """

    origin: Tuple[float, ...]
    direction: Tuple[float, ...]
    length: float = math.inf

    ndim: ClassVar[int] = 0

    def __post_init__(self) -> None:
        if not self.ndim:
            raise TypeError("Ray is abstract; use Ray2 or Ray3")
        origin = tuple(float(x) for x in self.origin)
        direction = tuple(float(x) for x in self.direction)
        if len(origin) != self.ndim or len(direction) != self.ndim:
            raise ValueError(
                f"{type(self).__name__} needs {self.ndim} origin and direction "
                f"components, got {len(origin)} and {len(direction)}")
        object.__setattr__(self, "origin", origin)
        object.__setattr__(self, "direction", direction)
        object.__setattr__(self, "length", float(self.length))

    def unit_direction(self) -> Tuple[float, ...]:
        """Return the normalized direction; reject zero and non-finite vectors."""
        d = np.asarray(self.direction, dtype=np.float64)
        if not np.all(np.isfinite(d)):
            raise ValueError(f"ray direction must be finite, got {self.direction}")
        norm = float(np.linalg.norm(d))
        if norm == 0.0:
            raise ValueError("ray direction must not be the zero vector")
        return tuple(float(x) for x in d / norm)

    def point_at(self, distance: float) -> Tuple[float, ...]:
        """World-space point *distance* units along the ray."""
        o = np.asarray(self.origin, dtype=np.float64)
        d = np.asarray(self.unit_direction(), dtype=np.float64)
        return tuple(float(x) for x in o + d * distance)

    def entry_point(self, volume: BoundingVolume) -> Optional[Tuple[float, ...]]:
        """Delegate to BoundingVolume.entry_point with the normalized direction."""
        return volume.entry_point(self.origin, self.unit_direction(), self.length)

    def traverse(self, volume: BoundingVolume, *,
                 step_corners: bool = True) -> VoxelRayIterator:
        """Delegate to BoundingVolume.traverse."""
        return volume.traverse(self, step_corners=step_corners)

    def traverse_until_hit(self, volume: BoundingVolume, grid_array, *,
                           step_corners: bool = True) -> Optional[RayHit]:
        """Delegate to BoundingVolume.traverse_until_hit."""
        return volume.traverse_until_hit(self, grid_array, step_corners=step_corners)


@dataclass(frozen=True)
class Ray2(Ray):
    ndim: ClassVar[int] = 2


@dataclass(frozen=True)
class Ray3(Ray):
    ndim: ClassVar[int] = 3
