"""
Low-level NumPy+Numba kernels for the bounding-volume pre-clip and N-D DDA.

Kernels are compiled without ``fastmath``: the stepping logic relies on
IEEE infinities for axes the ray runs parallel to.
"""
import math
from typing import Tuple

import numpy as np
from numba import njit

# Components smaller than this are treated as parallel to the axis.
EPSILON = float(np.finfo(np.float64).eps)

# Voxel widths the start point is backed off from the pre-clip entry point.
BACKOFF = 2.0

# Relative gap under which two boundary crossings are merged into one corner
# step. Accumulated rounding keeps lattice corners from meeting exactly.
CORNER_TOLERANCE = 1e-9


# --------------------------------------------------------------------------- #
# Helper – containment test against a zero-anchored volume
# --------------------------------------------------------------------------- #

@njit(cache=True)
def _contains(size: np.ndarray, i: np.ndarray) -> bool:
    for k in range(i.shape[0]):
        if i[k] < 0 or i[k] >= size[k]:
            return False
    return True


# --------------------------------------------------------------------------- #
# Boundary pre-clip – jump a ray starting outside straight to the volume face
# --------------------------------------------------------------------------- #

@njit(cache=True)
def _ray_aabb_entry(size: np.ndarray, o: np.ndarray, d: np.ndarray,
                    length: float, eps: float
                    ) -> Tuple[bool, float, np.ndarray]:
    """
    Entry of a ray into the box ``[0, size]``.

    ``d`` must be unit length. Returns ``(hit, t_entry, point)``; on a miss
    *point* is meaningless.
    """
    n = o.shape[0]
    cand = np.empty(n, dtype=np.float64)
    for k in range(n):
        if abs(d[k]) < eps:
            cand[k] = -math.inf                  # never gates entry
        elif d[k] > 0.0:
            cand[k] = (0.0 - o[k]) / d[k]
        else:
            cand[k] = (size[k] - o[k]) / d[k]

    # the plane crossed last gates entry; ties go to the higher axis
    gate = 0
    for k in range(1, n):
        if cand[k] >= cand[gate]:
            gate = k
    t = cand[gate]

    point = o.copy()
    if not (t >= 0.0 and t <= length):
        return False, t, point

    for k in range(n):
        if cand[k] == t:
            # snap onto the plane so corner entries survive rounding
            point[k] = 0.0 if d[k] > 0.0 else float(size[k])
        else:
            point[k] = o[k] + d[k] * t
            if point[k] < 0.0 or point[k] > size[k]:
                return False, t, point
    return True, t, point


# --------------------------------------------------------------------------- #
# DDA setup – per-axis step sign, stride and first boundary distance
# --------------------------------------------------------------------------- #

@njit(cache=True)
def _dda_setup(p: np.ndarray, d: np.ndarray, t: float, eps: float
               ) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Return ``(i, step, delta, t_max)`` for a walk starting at *p*, where
    *t* is the distance already traveled to reach *p*.
    """
    n = p.shape[0]
    i = np.empty(n, dtype=np.int64)
    step = np.empty(n, dtype=np.int64)
    delta = np.empty(n, dtype=np.float64)
    t_max = np.empty(n, dtype=np.float64)

    for k in range(n):
        i[k] = int(math.floor(p[k]))
        step[k] = 1 if d[k] >= 0.0 else -1
        if abs(d[k]) < eps:
            delta[k] = math.inf
        else:
            delta[k] = abs(1.0 / d[k])

        if step[k] > 0:
            dist = i[k] + 1.0 - p[k]
        else:
            dist = p[k] - i[k]

        if delta[k] < math.inf:
            t_max[k] = t + delta[k] * dist
        else:
            t_max[k] = math.inf
    return i, step, delta, t_max


# --------------------------------------------------------------------------- #
# DDA stepping – advance to the next voxel inside the volume
# --------------------------------------------------------------------------- #

@njit(cache=True)
def _dda_next(size: np.ndarray,
              i: np.ndarray,
              step: np.ndarray,
              delta: np.ndarray,
              t_max: np.ndarray,
              norm: np.ndarray,
              t: float,
              max_d: float,
              step_corners: bool,
              corner_tol: float,
              out_voxel: np.ndarray,
              out_normal: np.ndarray
              ) -> Tuple[bool, float, bool, float]:
    """
    Walk until a contained voxel is recorded or *max_d* is passed.

    ``i``, ``t_max`` and ``norm`` are advanced in place. On a hit the voxel
    and the normal it was entered through are copied to ``out_voxel`` and
    ``out_normal``.

    Returns ``(found, hit_t, stepped, t)``: *stepped* tells whether at least
    one boundary was crossed before the hit was recorded, *t* is the new
    traveled distance.
    """
    n = i.shape[0]
    stepped = False
    while t <= max_d:
        hit_t = t
        found = _contains(size, i)
        if found:
            for k in range(n):
                out_voxel[k] = i[k]
                out_normal[k] = norm[k]

        # smallest t_max wins, exact ties go to the higher axis
        ksel = 0
        for k in range(1, n):
            if t_max[k] <= t_max[ksel]:
                ksel = k
        t = t_max[ksel]

        if step_corners:
            # cross an edge / corner in one go; boundaries within the
            # tolerance count as the same crossing, the highest axis names it
            tol = corner_tol * max(1.0, abs(t))
            kface = ksel
            for k in range(n):
                if t_max[k] - t <= tol:
                    i[k] += step[k]
                    t_max[k] += delta[k]
                    kface = k
        else:
            kface = ksel
            i[ksel] += step[ksel]
            t_max[ksel] += delta[ksel]

        for k in range(n):
            norm[k] = 0
        norm[kface] = -step[kface]

        if found:
            return True, hit_t, stepped, t
        stepped = True

    return False, t, stepped, t
