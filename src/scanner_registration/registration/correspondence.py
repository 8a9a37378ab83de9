"""
Correspondence Solver

Given an overlap candidate, pairs each shared beacon of the reference scanner
with its counterpart in the moving scanner and infers the Mapping that takes
moving-frame coordinates into the reference frame.

Two ways to pair beacons:
- chain walk: when every shared distance is unique, walking the reference
  beacons in a cycle and looking up each link's distance on the other side
  reads off the pairing one beacon at a time.
- enumeration: when distances repeat, assignments consistent with both
  distance matrices are enumerated by backtracking and kept only if an
  orientation explains them exactly.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import product
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from ..utils.logging import setup_logger
from .errors import AmbiguousCorrespondenceError, InconsistentGeometryError
from .fingerprint import Fingerprint
from .mapping import Mapping, Orientation
from .overlap import OverlapCandidate
from .types import Scanner

logger = setup_logger(__name__)


@dataclass(frozen=True)
class OverlapEdge:
    """Solved overlap: source_indices[i] and target_indices[i] are the same beacon.

    `mapping` takes target-frame coordinates into the source frame.
    """

    source_id: int
    target_id: int
    source_indices: Tuple[int, ...]
    target_indices: Tuple[int, ...]
    mapping: Mapping


def chain_correspondence(
    candidate: OverlapCandidate,
    source: Fingerprint,
) -> Optional[Tuple[int, ...]]:
    """
    Pair beacons by walking the source candidates in a cycle 0 -> 1 -> ... -> 0.

    Only valid when all shared distances are unique.

    Returns:
        Target index matched to each entry of candidate.first_indices, or
        None if a link has no counterpart.
    """
    va = candidate.first_indices
    k = len(va)
    target_edges = candidate.second_edges

    links = []
    for pos in range(k):
        d = source.matrix[va[pos], va[(pos + 1) % k]]
        at = int(np.searchsorted(target_edges.distances, d))
        if at == len(target_edges) or target_edges.distances[at] != d:
            return None
        links.append({int(target_edges.first[at]), int(target_edges.second[at])})

    # Beacon `pos` is the endpoint shared by the link into it and the link out of it
    matched = []
    for pos in range(k):
        shared = links[pos - 1] & links[pos]
        if len(shared) != 1:
            return None
        matched.append(shared.pop())

    if len(set(matched)) != k:
        return None
    return tuple(matched)


def _sample_sizes(n_deltas: int) -> List[int]:
    sizes = []
    for m in (1, 2, n_deltas):
        if 0 < m <= n_deltas and m not in sizes:
            sizes.append(m)
    return sizes


def _axis_hits(r: np.ndarray, v: np.ndarray) -> List[List[Tuple[int, int]]]:
    """For each reference axis, the (source axis, sign) pairs whose columns agree."""
    return [
        [
            (src_axis, sign)
            for src_axis in range(3)
            for sign in (1, -1)
            if np.array_equal(r[:, axis], sign * v[:, src_axis])
        ]
        for axis in range(3)
    ]


def infer_orientation(reference: np.ndarray, moving: np.ndarray) -> Optional[Orientation]:
    """
    Orientation taking moving-frame deltas onto reference-frame deltas.

    When the beacons are degenerate (e.g. all in one plane) the deltas leave
    some axis undecided; the choice is then settled by requiring a proper
    rotation, provided exactly one candidate is proper.

    Args:
        reference: (K, 3) matched beacons in the reference frame
        moving: (K, 3) the same beacons, same order, in the moving frame

    Returns:
        Orientation, or None when no unique signed axis assignment fits.
    """
    ref_delta = np.asarray(reference, dtype=np.int64)[1:] - reference[0]
    mov_delta = np.asarray(moving, dtype=np.int64)[1:] - moving[0]

    # One or two samples settle it unless a delta is zero along some axis
    hits: List[List[Tuple[int, int]]] = []
    for m in _sample_sizes(len(ref_delta)):
        hits = _axis_hits(ref_delta[:m], mov_delta[:m])
        if all(len(h) == 1 for h in hits):
            axes = tuple(h[0][0] for h in hits)
            if len(set(axes)) == 3:
                return Orientation(axes, tuple(h[0][1] for h in hits))

    if not hits or not all(hits):
        return None
    proper = []
    for choice in product(*hits):
        axes = tuple(c[0] for c in choice)
        if len(set(axes)) != 3:
            continue
        orientation = Orientation(axes, tuple(c[1] for c in choice))
        if orientation.is_rotation:
            proper.append(orientation)
    if len(proper) != 1:
        return None
    return proper[0]


def fit_mapping(reference: np.ndarray, moving: np.ndarray) -> Optional[Mapping]:
    """Mapping with mapping.apply_many(moving) == reference exactly, or None."""
    orientation = infer_orientation(reference, moving)
    if orientation is None:
        return None
    anchor = orientation.apply(moving[0])
    offset = tuple(int(reference[0][k]) - anchor[k] for k in range(3))
    mapping = Mapping(offset=offset, orientation=orientation)
    if not np.array_equal(mapping.apply_many(moving), reference):
        return None
    return mapping


def enumerate_assignments(source_matrix: np.ndarray, target_matrix: np.ndarray) -> Iterator[Tuple[int, ...]]:
    """
    Assignments p with source_matrix[i, j] == target_matrix[p[i], p[j]] for all i, j.

    Both matrices are K x K distance matrices of the candidate sets, indexed
    by candidate position.
    """
    k = len(source_matrix)
    assignment: List[int] = []
    used = [False] * k

    def extend(pos: int) -> Iterator[Tuple[int, ...]]:
        if pos == k:
            yield tuple(assignment)
            return
        expected = source_matrix[pos, :pos]
        for cand in range(k):
            if used[cand]:
                continue
            if not np.array_equal(target_matrix[cand, assignment], expected):
                continue
            used[cand] = True
            assignment.append(cand)
            yield from extend(pos + 1)
            assignment.pop()
            used[cand] = False

    yield from extend(0)


def _solve_by_enumeration(
    source: Scanner,
    target: Scanner,
    va: Sequence[int],
    vb: Sequence[int],
    source_fp: Fingerprint,
    target_fp: Fingerprint,
) -> Tuple[Tuple[int, ...], Mapping]:
    va_idx = np.array(va)
    vb_idx = np.array(vb)
    source_matrix = source_fp.matrix[np.ix_(va_idx, va_idx)]
    target_matrix = target_fp.matrix[np.ix_(vb_idx, vb_idx)]
    reference = source.beacons[va_idx]

    solutions: List[Tuple[Tuple[int, ...], Mapping]] = []
    for assignment in enumerate_assignments(source_matrix, target_matrix):
        matched = tuple(int(vb_idx[p]) for p in assignment)
        mapping = fit_mapping(reference, target.beacons[list(matched)])
        if mapping is not None:
            solutions.append((matched, mapping))

    if not solutions:
        raise InconsistentGeometryError(source.id, target.id, va, vb)

    # Mirror images of a symmetric overlap also fit; real scanners only rotate
    proper = [s for s in solutions if s[1].orientation.is_rotation]
    if proper:
        solutions = proper
    if len(solutions) > 1:
        raise AmbiguousCorrespondenceError(
            source.id,
            target.id,
            f"{len(solutions)} distinct mappings explain the shared beacons",
        )
    return solutions[0]


def solve_correspondence(
    source: Scanner,
    source_fp: Fingerprint,
    target: Scanner,
    target_fp: Fingerprint,
    candidate: OverlapCandidate,
    resolve_ambiguous: bool = True,
) -> Optional[OverlapEdge]:
    """
    Pair the candidate beacons and infer the target -> source Mapping.

    Args:
        source: Reference scanner (first side of the candidate)
        source_fp: Its fingerprint
        target: Moving scanner (second side of the candidate)
        target_fp: Its fingerprint
        candidate: Result of detect_overlap(source_fp, target_fp)
        resolve_ambiguous: Enumerate assignments when distances repeat

    Returns:
        OverlapEdge, or None if the candidate sets are internally inconsistent.

    Raises:
        InconsistentGeometryError: No orientation explains the pairing.
        AmbiguousCorrespondenceError: Distances repeat and enumeration is
            disabled, or several mappings explain the overlap.
    """
    va = candidate.first_indices
    if len(va) != len(candidate.second_indices):
        return None

    if candidate.is_unique:
        vb = chain_correspondence(candidate, source_fp)
        if vb is None:
            return None
        mapping = fit_mapping(source.beacons[list(va)], target.beacons[list(vb)])
        if mapping is None:
            raise InconsistentGeometryError(source.id, target.id, va, vb)
    else:
        if not resolve_ambiguous:
            raise AmbiguousCorrespondenceError(source.id, target.id)
        logger.debug(
            f"Repeated distances between scanner {source.id} and {target.id}; enumerating assignments"
        )
        vb, mapping = _solve_by_enumeration(
            source, target, va, candidate.second_indices, source_fp, target_fp
        )

    return OverlapEdge(
        source_id=source.id,
        target_id=target.id,
        source_indices=tuple(va),
        target_indices=tuple(vb),
        mapping=mapping,
    )
