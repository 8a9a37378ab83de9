"""
Overlap Detector

Finds the beacons two scanners observe in common without knowing yet which
beacon in one scanner is which beacon in the other.

The two fingerprints are intersected by distance value. Every surviving entry
is an edge between two of a scanner's own beacons. If k beacons are shared,
their C(k, 2) edges form a fully connected subgraph on each side, so points
with fewer than k - 1 surviving edges are pruned until the graph stabilises.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from ..utils.logging import setup_logger
from .fingerprint import Fingerprint

logger = setup_logger(__name__)

DEFAULT_MIN_OVERLAP = 12


def required_edges(min_overlap: int) -> int:
    """Edges in a fully connected set of `min_overlap` points."""
    return min_overlap * (min_overlap - 1) // 2


def _popcount(mask: int) -> int:
    return bin(mask).count("1")


@dataclass(frozen=True, eq=False)
class OverlapCandidate:
    """Beacon subsets of two scanners that share all their pairwise distances.

    The indices are sorted; position i in `first_indices` does not yet
    correspond to position i in `second_indices`.
    """

    first_indices: Tuple[int, ...]
    second_indices: Tuple[int, ...]
    first_edges: Fingerprint
    second_edges: Fingerprint
    n_unique: int

    @property
    def size(self) -> int:
        return len(self.first_indices)

    @property
    def is_unique(self) -> bool:
        """True when every shared distance occurs exactly once on each side."""
        return self.n_unique == len(self.first_edges) == len(self.second_edges)


def intersect_fingerprints(a: Fingerprint, b: Fingerprint) -> Tuple[Fingerprint, Fingerprint, int]:
    """
    Keep the entries of each fingerprint whose distance also occurs in the other.

    Repeated distance values are kept on both sides.

    Returns:
        Tuple of (entries of a, entries of b, number of distinct shared values)
    """
    shared = np.intersect1d(a.distances, b.distances)
    return (
        a.select(np.isin(a.distances, shared)),
        b.select(np.isin(b.distances, shared)),
        len(shared),
    )


def find_clique(edges: Fingerprint, min_overlap: int = DEFAULT_MIN_OVERLAP) -> Optional[List[int]]:
    """
    Largest fully connected point set reachable by pruning, or None.

    Each point's adjacency row is a bitmask that includes the point itself.
    Points whose row covers fewer than `min_overlap` live points are removed
    until nothing changes. If the survivors are not fully connected the
    weakest one is dropped and pruning resumes.
    """
    n = edges.n_points
    rows = [1 << i for i in range(n)]
    for i, j in zip(edges.first.tolist(), edges.second.tolist()):
        rows[i] |= 1 << j
        rows[j] |= 1 << i

    alive = (1 << n) - 1
    while True:
        changed = True
        while changed:
            changed = False
            for i in range(n):
                if (alive >> i) & 1 and _popcount(rows[i] & alive) < min_overlap:
                    alive &= ~(1 << i)
                    changed = True

        size = _popcount(alive)
        if size < min_overlap:
            return None

        members = [i for i in range(n) if (alive >> i) & 1]
        weakest = min(members, key=lambda i: (_popcount(rows[i] & alive), i))
        if _popcount(rows[weakest] & alive) == size:
            return members
        alive &= ~(1 << weakest)


def detect_overlap(
    a: Fingerprint,
    b: Fingerprint,
    min_overlap: int = DEFAULT_MIN_OVERLAP,
) -> Optional[OverlapCandidate]:
    """
    Candidate overlap between two scanners.

    Args:
        a: Fingerprint of the first scanner
        b: Fingerprint of the second scanner
        min_overlap: Minimum number of shared beacons

    Returns:
        OverlapCandidate, or None when the scanners do not share at least
        `min_overlap` beacons.
    """
    required = required_edges(min_overlap)
    if min(len(a), len(b)) < required:
        return None

    current_a, current_b = a, b
    previous = None
    while True:
        edges_a, edges_b, n_unique = intersect_fingerprints(current_a, current_b)
        if min(len(edges_a), len(edges_b)) < required:
            return None

        va = find_clique(edges_a, min_overlap)
        vb = find_clique(edges_b, min_overlap)
        if va is None or vb is None or len(va) != len(vb):
            return None

        full = required_edges(len(va))
        if len(edges_a) == full and len(edges_b) == full:
            return OverlapCandidate(
                first_indices=tuple(va),
                second_indices=tuple(vb),
                first_edges=edges_a,
                second_edges=edges_b,
                n_unique=n_unique,
            )

        # Stray matches outside the candidate sets: intersect again within them
        if (va, vb) == previous:
            return None
        logger.debug(
            f"Refining overlap: {len(edges_a)}/{len(edges_b)} shared entries "
            f"for {len(va)} candidate beacons"
        )
        previous = (va, vb)
        current_a, current_b = a.restrict(va), b.restrict(vb)
