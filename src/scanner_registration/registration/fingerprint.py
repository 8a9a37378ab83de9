"""
Fingerprint Builder

A scanner's fingerprint is the list of squared distances between every pair
of its beacons, sorted ascending. Squared Euclidean distance is unchanged by
axis permutations, sign flips and translations, so two scanners that observe
the same beacons share those entries regardless of their frames.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence

import numpy as np

from ..acceleration.jit_kernels import pairwise_squared_distances_jit
from .types import Scanner

if TYPE_CHECKING:
    from ..acceleration.parallel_executor import ParallelExecutor


def squared_distance(a: Sequence[int], b: Sequence[int]) -> int:
    return sum((int(a[k]) - int(b[k])) ** 2 for k in range(3))


@dataclass(frozen=True, eq=False)
class Fingerprint:
    """Sorted pairwise squared distances of one scanner.

    Attributes:
        distances: 1D int64 array, ascending.
        first: Index of the lower-numbered beacon of each pair.
        second: Index of the higher-numbered beacon of each pair.
        matrix: (N, N) symmetric matrix of all squared distances.
    """

    distances: np.ndarray
    first: np.ndarray
    second: np.ndarray
    matrix: np.ndarray

    def __len__(self) -> int:
        return len(self.distances)

    @property
    def n_points(self) -> int:
        return len(self.matrix)

    @property
    def is_unique(self) -> bool:
        return bool(np.all(np.diff(self.distances) > 0))

    def select(self, mask: np.ndarray) -> "Fingerprint":
        """Subset of entries by boolean mask (or index array); stays sorted."""
        return Fingerprint(
            distances=self.distances[mask],
            first=self.first[mask],
            second=self.second[mask],
            matrix=self.matrix,
        )

    def restrict(self, indices: Sequence[int]) -> "Fingerprint":
        """Keep only pairs whose two endpoints are both in `indices`."""
        keep = np.zeros(self.n_points, dtype=bool)
        keep[list(indices)] = True
        return self.select(keep[self.first] & keep[self.second])


def build_fingerprint(scanner: Scanner) -> Fingerprint:
    """
    Compute the fingerprint of a single scanner.

    Args:
        scanner: Scanner with N beacons

    Returns:
        Fingerprint with N * (N - 1) / 2 entries sorted by distance
    """
    points = np.ascontiguousarray(scanner.beacons, dtype=np.int64).copy()
    distances, first, second = pairwise_squared_distances_jit(points)

    order = np.argsort(distances, kind="stable")
    n = len(points)
    matrix = np.zeros((n, n), dtype=np.int64)
    matrix[first, second] = distances
    matrix[second, first] = distances

    return Fingerprint(
        distances=distances[order],
        first=first[order],
        second=second[order],
        matrix=matrix,
    )


def build_fingerprints(
    scanners: List[Scanner],
    executor: Optional["ParallelExecutor"] = None,
) -> List[Fingerprint]:
    """Fingerprints for every scanner, in input order."""
    if executor is None:
        return [build_fingerprint(s) for s in scanners]
    return executor.map_items(scanners, build_fingerprint)
