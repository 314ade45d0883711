"""
Numba-accelerated voxel ray traversal after

    J. Amanatides & A. Woo,
    "A Fast Voxel Traversal Algorithm for Ray Tracing" (Eurographics '87)

with an AABB pre-clip so rays starting far outside the volume jump straight
to its boundary.

Public API
----------
VoxelRayIterator2(volume, ray, *, step_corners=True)
VoxelRayIterator3(volume, ray, *, step_corners=True)
    - lazy iterator yielding a RayHit for every voxel of the volume crossed
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Optional

import numpy as np

from ._core import (BACKOFF, CORNER_TOLERANCE, EPSILON, _dda_next, _dda_setup,
                    _ray_aabb_entry)
from .ray import Ray, RayHit

if TYPE_CHECKING:
    from .grid import BoundingVolume

logger = logging.getLogger(__name__)


class CursorState(Enum):
    STEPPING = "stepping"
    EXHAUSTED = "exhausted"


class VoxelRayIterator:
    """
    Stateful DDA cursor over one ray. Not restartable; stop pulling whenever
    you like, there is nothing to release.

    With ``step_corners`` (default) axes whose next boundaries coincide, up
    to a relative ``CORNER_TOLERANCE``, are crossed in a single step, so a ray
    through a voxel corner goes straight to the diagonal neighbour. Without it
    only the winning axis moves and the walk stays face-connected. Either way
    ties are won by the highest axis index, which also picks the reported
    normal.
    """

    ndim: int = 0

    def __init__(self, volume: BoundingVolume, ray: Ray, *,
                 step_corners: bool = True) -> None:
        if not self.ndim:
            raise TypeError("use VoxelRayIterator2 or VoxelRayIterator3")
        if volume.ndim != self.ndim or ray.ndim != self.ndim:
            raise ValueError(
                f"{type(self).__name__} needs a {self.ndim}-D volume and ray, "
                f"got {volume.ndim}-D and {ray.ndim}-D")

        p = np.asarray(ray.origin, dtype=np.float64)
        if not np.all(np.isfinite(p)):
            raise ValueError(f"ray origin must be finite, got {ray.origin}")
        if not ray.length >= 0.0:
            raise ValueError(f"ray length must be non-negative, got {ray.length}")
        d = np.asarray(ray.unit_direction(), dtype=np.float64)

        self.volume = volume
        self.ray = ray
        self.step_corners = bool(step_corners)

        self._state = CursorState.EXHAUSTED
        self._size = np.asarray(volume.size, dtype=np.int64)
        self._i: Optional[np.ndarray] = None
        self._step: Optional[np.ndarray] = None
        self._delta: Optional[np.ndarray] = None
        self._t_max: Optional[np.ndarray] = None
        self._norm: Optional[np.ndarray] = None
        self._t = 0.0
        self._t_offset = 0.0
        self._max_d = 0.0
        self._stepped = False

        if np.any(self._size <= 0):
            logger.debug("degenerate volume %s, nothing to traverse", volume.size)
            return

        if not volume.contains(np.floor(p)):
            hit, t_entry, entry = _ray_aabb_entry(self._size, p, d,
                                                  ray.length, EPSILON)
            if not hit:
                logger.debug("ray %s misses volume %s", ray, volume.size)
                return
            p = entry - d * BACKOFF
            self._t_offset = float(t_entry) - BACKOFF

        # stepping runs on a local scale starting at p; hits add the offset back
        self._max_d = min(ray.length - self._t_offset, volume.diagonal + BACKOFF)
        self._i, self._step, self._delta, self._t_max = _dda_setup(p, d, 0.0, EPSILON)
        self._norm = np.zeros(self.ndim, dtype=np.int64)
        self._out_voxel = np.empty(self.ndim, dtype=np.int64)
        self._out_normal = np.empty(self.ndim, dtype=np.int64)
        self._t = 0.0
        self._state = CursorState.STEPPING
        logger.debug("stepping from voxel %s at distance %g, local max %g",
                     tuple(self._i), self._t_offset, self._max_d)

    @property
    def state(self) -> CursorState:
        return self._state

    @property
    def exhausted(self) -> bool:
        return self._state is CursorState.EXHAUSTED

    def __iter__(self) -> VoxelRayIterator:
        return self

    def __next__(self) -> RayHit:
        if self._state is CursorState.EXHAUSTED:
            raise StopIteration

        found, hit_t, stepped, t = _dda_next(
            self._size,
            self._i,
            self._step,
            self._delta,
            self._t_max,
            self._norm,
            self._t,
            self._max_d,
            self.step_corners,
            CORNER_TOLERANCE,
            self._out_voxel,
            self._out_normal,
        )
        self._t = float(t)
        if not found:
            self._exhaust()
            raise StopIteration

        has_normal = self._stepped or stepped
        self._stepped = True
        distance = self._t_offset + float(hit_t)
        return RayHit(
            distance=distance if distance > 0.0 else 0.0,
            voxel=tuple(int(v) for v in self._out_voxel),
            normal=tuple(int(v) for v in self._out_normal) if has_normal else None,
        )

    def _exhaust(self) -> None:
        logger.debug("traversal exhausted at t=%g", self._t)
        self._state = CursorState.EXHAUSTED
        self._i = self._step = self._delta = self._t_max = self._norm = None


class VoxelRayIterator2(VoxelRayIterator):
    ndim = 2


class VoxelRayIterator3(VoxelRayIterator):
    ndim = 3
