"""JIT-compiled kernels for performance-critical operations.

These kernels run in exact integer arithmetic. Squared distances are never
square-rooted so that equal distances compare equal bit for bit.
"""

from __future__ import annotations

import numba
import numpy as np


@numba.njit(cache=False)
def pairwise_squared_distances_jit(points: np.ndarray):
    """Compute all pairwise squared distances of a point set (JIT-compiled).

    Args:
        points: (N, 3) int64 array of XYZ coordinates.

    Returns:
        Tuple (distances, first, second) of 1D int64 arrays of length
        N * (N - 1) / 2, with first[k] < second[k] for every pair k.
    """
    n = points.shape[0]
    m = n * (n - 1) // 2
    distances = np.empty(m, dtype=np.int64)
    first = np.empty(m, dtype=np.int64)
    second = np.empty(m, dtype=np.int64)

    k = 0
    for i in range(n - 1):
        for j in range(i + 1, n):
            dx = points[i, 0] - points[j, 0]
            dy = points[i, 1] - points[j, 1]
            dz = points[i, 2] - points[j, 2]
            distances[k] = dx * dx + dy * dy + dz * dz
            first[k] = i
            second[k] = j
            k += 1

    return distances, first, second


@numba.njit(cache=False)
def max_manhattan_distance_jit(points: np.ndarray) -> int:
    """Largest Manhattan distance between any two rows of an (N, 3) int64 array."""
    n = points.shape[0]
    best = 0
    for i in range(n - 1):
        for j in range(i + 1, n):
            d = (
                abs(points[i, 0] - points[j, 0])
                + abs(points[i, 1] - points[j, 1])
                + abs(points[i, 2] - points[j, 2])
            )
            if d > best:
                best = d
    return best
