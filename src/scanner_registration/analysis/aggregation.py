"""
Aggregation of registered scanners.

Consumes the per-scanner global mappings to merge every beacon into the root
frame and to compute whole-system statistics.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

from ..acceleration.jit_kernels import max_manhattan_distance_jit
from ..registration.mapping import Mapping
from ..registration.types import Scanner


def _check_lengths(scanners: Sequence[Scanner], mappings: Sequence[Mapping]) -> None:
    if len(scanners) != len(mappings):
        raise ValueError(
            f"Expected one mapping per scanner, got {len(mappings)} mappings for {len(scanners)} scanners"
        )


def merge_beacons(scanners: Sequence[Scanner], mappings: Sequence[Mapping]) -> np.ndarray:
    """
    All beacons in the root frame, deduplicated.

    Returns:
        (M, 3) int64 array of unique beacons, sorted lexicographically
    """
    _check_lengths(scanners, mappings)
    if not scanners:
        return np.empty((0, 3), dtype=np.int64)
    stacked = np.vstack([m.apply_many(s.beacons) for s, m in zip(scanners, mappings)])
    return np.unique(stacked, axis=0)


def count_unique_beacons(scanners: Sequence[Scanner], mappings: Sequence[Mapping]) -> int:
    return int(len(merge_beacons(scanners, mappings)))


def scanner_positions(mappings: Sequence[Mapping]) -> np.ndarray:
    """Scanner origins in the root frame, (S, 3) int64."""
    if not mappings:
        return np.empty((0, 3), dtype=np.int64)
    return np.array([m.offset for m in mappings], dtype=np.int64)


def max_manhattan_distance(mappings: Sequence[Mapping]) -> int:
    """Largest Manhattan distance between any two scanner origins."""
    positions = scanner_positions(mappings)
    if len(positions) < 2:
        return 0
    return int(max_manhattan_distance_jit(positions))


@dataclass
class RegistrationSummary:
    """Whole-system statistics of a registration run."""

    n_scanners: int
    n_observations: int
    n_unique_beacons: int
    max_manhattan_distance: int
    mappings: List[Mapping] = field(default_factory=list, repr=False)

    def to_dict(self) -> dict:
        return {
            "n_scanners": self.n_scanners,
            "n_observations": self.n_observations,
            "n_unique_beacons": self.n_unique_beacons,
            "max_manhattan_distance": self.max_manhattan_distance,
            "mappings": [m.to_dict() for m in self.mappings],
        }


def summarize(scanners: Sequence[Scanner], mappings: Sequence[Mapping]) -> RegistrationSummary:
    _check_lengths(scanners, mappings)
    return RegistrationSummary(
        n_scanners=len(scanners),
        n_observations=int(sum(len(s) for s in scanners)),
        n_unique_beacons=count_unique_beacons(scanners, mappings),
        max_manhattan_distance=max_manhattan_distance(mappings),
        mappings=list(mappings),
    )
