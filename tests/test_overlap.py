"""
Tests for overlap detection between two scanners.
"""

import numpy as np

from scanner_registration.registration.fingerprint import Fingerprint, build_fingerprint
from scanner_registration.registration.mapping import Mapping, Orientation
from scanner_registration.registration.overlap import (
    detect_overlap,
    find_clique,
    intersect_fingerprints,
    required_edges,
)
from scanner_registration.registration.types import Scanner


def _unique_points(rng, n: int, low: int = -1000, high: int = 1000) -> np.ndarray:
    seen = {}
    while len(seen) < n:
        p = tuple(int(v) for v in rng.integers(low, high + 1, size=3))
        seen[p] = None
    return np.array(list(seen), dtype=np.int64)


def _make_pair(seed: int, n_shared: int, n_extra_a: int = 8, n_extra_b: int = 8):
    """Scanner A in the world frame and scanner B observing a rotated, shifted view."""
    rng = np.random.default_rng(seed)
    pts = _unique_points(rng, n_shared + n_extra_a + n_extra_b)
    shared = pts[:n_shared]
    extra_a = pts[n_shared:n_shared + n_extra_a]
    extra_b = pts[n_shared + n_extra_a:]

    b_to_a = Mapping(offset=(-68, 1246, 43), orientation=Orientation((2, 0, 1), (1, -1, -1)))
    a_points = np.vstack([shared, extra_a])
    b_points = b_to_a.inverse().apply_many(np.vstack([shared, extra_b]))
    b_points = b_points[rng.permutation(len(b_points))]
    return Scanner(id=0, beacons=a_points), Scanner(id=1, beacons=b_points), b_to_a


def test_required_edges():
    assert required_edges(12) == 66
    assert required_edges(3) == 3


def test_self_overlap_covers_every_beacon():
    rng = np.random.default_rng(0)
    s = Scanner(id=0, beacons=_unique_points(rng, 20))
    fp = build_fingerprint(s)
    candidate = detect_overlap(fp, fp)
    assert candidate is not None
    assert candidate.size == 20
    assert candidate.first_indices == tuple(range(20))
    assert candidate.second_indices == tuple(range(20))


def test_twelve_shared_beacons_overlap():
    a, b, _ = _make_pair(seed=1, n_shared=12)
    candidate = detect_overlap(build_fingerprint(a), build_fingerprint(b))
    assert candidate is not None
    assert candidate.size == 12
    # Shared beacons are the first twelve rows of A
    assert candidate.first_indices == tuple(range(12))
    assert len(candidate.first_edges) == 66
    assert len(candidate.second_edges) == 66


def test_eleven_shared_beacons_do_not_overlap():
    a, b, _ = _make_pair(seed=2, n_shared=11)
    assert detect_overlap(build_fingerprint(a), build_fingerprint(b)) is None


def test_unrelated_scanners_do_not_overlap():
    rng = np.random.default_rng(3)
    a = Scanner(id=0, beacons=_unique_points(rng, 25))
    b = Scanner(id=1, beacons=_unique_points(rng, 25))
    assert detect_overlap(build_fingerprint(a), build_fingerprint(b)) is None


def test_small_scanners_fail_fast():
    a, b, _ = _make_pair(seed=4, n_shared=8, n_extra_a=0, n_extra_b=0)
    assert detect_overlap(build_fingerprint(a), build_fingerprint(b)) is None


def test_lower_threshold():
    a, b, _ = _make_pair(seed=5, n_shared=6)
    fa, fb = build_fingerprint(a), build_fingerprint(b)
    assert detect_overlap(fa, fb) is None
    candidate = detect_overlap(fa, fb, min_overlap=6)
    assert candidate is not None
    assert candidate.size == 6


def test_stray_shared_distance_is_refined_away():
    rng = np.random.default_rng(6)
    shared = _unique_points(rng, 12)
    # One extra beacon per scanner, each 500 units from a different shared beacon
    extra_a = shared[0] + np.array([500, 0, 0])
    extra_b = shared[5] + np.array([0, 500, 0])
    b_to_a = Mapping(offset=(10, 20, 30), orientation=Orientation((1, 2, 0), (1, 1, 1)))
    a = Scanner(id=0, beacons=np.vstack([shared, extra_a]))
    b = Scanner(id=1, beacons=b_to_a.inverse().apply_many(np.vstack([shared, extra_b])))
    fa, fb = build_fingerprint(a), build_fingerprint(b)

    edges_a, edges_b, _ = intersect_fingerprints(fa, fb)
    assert len(edges_a) > 66

    candidate = detect_overlap(fa, fb)
    assert candidate is not None
    assert candidate.first_indices == tuple(range(12))
    assert candidate.second_indices == tuple(range(12))
    assert len(candidate.first_edges) == 66


def test_intersect_keeps_repeated_values():
    a = build_fingerprint(Scanner.from_points(0, [(0, 0, 0), (1, 0, 0), (0, 1, 0), (5, 5, 5)]))
    b = build_fingerprint(Scanner.from_points(1, [(0, 0, 0), (0, 0, 1), (9, 9, 9)]))
    edges_a, edges_b, n_unique = intersect_fingerprints(a, b)
    assert n_unique == 1
    np.testing.assert_array_equal(edges_a.distances, [1, 1])
    np.testing.assert_array_equal(edges_b.distances, [1])


def _edges(n_points, pairs) -> Fingerprint:
    pairs = sorted(pairs)
    first = np.array([i for i, _ in pairs], dtype=np.int64)
    second = np.array([j for _, j in pairs], dtype=np.int64)
    return Fingerprint(
        distances=np.arange(len(pairs), dtype=np.int64),
        first=first,
        second=second,
        matrix=np.zeros((n_points, n_points), dtype=np.int64),
    )


class TestFindClique:
    def test_complete_graph_with_stray_vertex(self):
        clique = list(range(1, 13))
        pairs = [(i, j) for i in clique for j in clique if i < j]
        pairs += [(0, 1), (0, 2), (0, 3), (4, 13)]
        assert find_clique(_edges(14, pairs)) == clique

    def test_missing_edge_breaks_clique(self):
        pairs = [(i, j) for i in range(12) for j in range(12) if i < j and (i, j) != (0, 1)]
        assert find_clique(_edges(12, pairs)) is None

    def test_high_degree_outsider_is_peeled(self):
        clique = list(range(13))
        pairs = [(i, j) for i in clique for j in clique if i < j]
        # Vertex 13 touches 11 clique members but not all of them
        pairs += [(i, 13) for i in range(11)]
        assert find_clique(_edges(14, pairs)) == clique


def _complete(n_points: int, distance: int = 7) -> Fingerprint:
    """Every pair of n_points beacons at the same squared distance."""
    pairs = [(i, j) for i in range(n_points) for j in range(n_points) if i < j]
    return Fingerprint(
        distances=np.full(len(pairs), distance, dtype=np.int64),
        first=np.array([i for i, _ in pairs], dtype=np.int64),
        second=np.array([j for _, j in pairs], dtype=np.int64),
        matrix=np.full((n_points, n_points), distance, dtype=np.int64),
    )


def test_candidate_sets_of_different_size_are_rejected():
    a, b = _complete(13), _complete(12)
    assert len(find_clique(a)) == 13
    assert len(find_clique(b)) == 12
    assert detect_overlap(a, b) is None
