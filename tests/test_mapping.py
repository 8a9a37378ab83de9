"""
Tests for the Orientation / Mapping algebra.
"""

import numpy as np
import pytest

from scanner_registration.registration.mapping import Mapping, Orientation


def _random_mapping(rng) -> Mapping:
    rotations = Orientation.all_rotations()
    return Mapping(
        offset=tuple(int(v) for v in rng.integers(-2000, 2001, size=3)),
        orientation=rotations[int(rng.integers(len(rotations)))],
    )


class TestOrientation:
    """Test suite for Orientation."""

    def test_identity_leaves_points_unchanged(self):
        assert Orientation.identity().apply((3, -4, 5)) == (3, -4, 5)

    def test_all_rotations_are_24_distinct_proper_rotations(self):
        rotations = Orientation.all_rotations()
        assert len(rotations) == 24
        assert len(set(rotations)) == 24
        for r in rotations:
            assert r.is_rotation
            assert round(np.linalg.det(r.as_matrix())) == 1

    def test_reflection_is_not_rotation(self):
        mirror = Orientation(axes=(0, 1, 2), signs=(-1, 1, 1))
        assert not mirror.is_rotation
        assert mirror.determinant == -1

    def test_quarter_turn_about_z(self):
        # (x, y, z) -> (-y, x, z)
        rz = Orientation(axes=(1, 0, 2), signs=(-1, 1, 1))
        assert rz.apply((1, 0, 0)) == (0, 1, 0)
        assert rz.apply((0, 1, 0)) == (-1, 0, 0)
        assert rz.is_rotation

    def test_matrix_matches_apply(self):
        points = np.array([[1, 2, 3], [-4, 5, -6]], dtype=np.int64)
        for r in Orientation.all_rotations():
            np.testing.assert_array_equal(r.apply_many(points), points @ r.as_matrix().T)

    def test_inverse(self):
        for r in Orientation.all_rotations():
            assert r.compose(r.inverse()) == Orientation.identity()
            assert r.inverse().compose(r) == Orientation.identity()

    def test_invalid_values_rejected(self):
        with pytest.raises(ValueError):
            Orientation(axes=(0, 0, 1))
        with pytest.raises(ValueError):
            Orientation(signs=(1, 2, 1))


class TestMapping:
    """Test suite for Mapping."""

    def test_identity(self):
        m = Mapping.identity()
        assert m.offset == (0, 0, 0)
        assert m.apply((7, 8, 9)) == (7, 8, 9)

    def test_apply_many_matches_apply(self):
        rng = np.random.default_rng(0)
        m = _random_mapping(rng)
        points = rng.integers(-1000, 1001, size=(20, 3))
        expected = np.array([m.apply(p) for p in points])
        np.testing.assert_array_equal(m.apply_many(points), expected)

    def test_compose_applies_right_operand_first(self):
        rng = np.random.default_rng(1)
        m1, m2 = _random_mapping(rng), _random_mapping(rng)
        points = rng.integers(-1000, 1001, size=(10, 3))
        np.testing.assert_array_equal(
            m1.compose(m2).apply_many(points),
            m1.apply_many(m2.apply_many(points)),
        )

    def test_compose_is_associative(self):
        rng = np.random.default_rng(2)
        for _ in range(20):
            a, b, c = _random_mapping(rng), _random_mapping(rng), _random_mapping(rng)
            assert a.compose(b).compose(c) == a.compose(b.compose(c))

    def test_compose_matches_homogeneous_matrices(self):
        rng = np.random.default_rng(3)
        a, b = _random_mapping(rng), _random_mapping(rng)
        np.testing.assert_array_equal(a.compose(b).as_matrix(), a.as_matrix() @ b.as_matrix())

    def test_inverse_round_trip(self):
        rng = np.random.default_rng(4)
        m = _random_mapping(rng)
        assert m.compose(m.inverse()) == Mapping.identity()
        points = rng.integers(-500, 501, size=(5, 3))
        np.testing.assert_array_equal(m.inverse().apply_many(m.apply_many(points)), points)

    def test_dict_serialisation(self):
        m = Mapping(offset=(68, -1246, -43), orientation=Orientation((0, 1, 2), (-1, 1, -1)))
        assert Mapping.from_dict(m.to_dict()) == m

    def test_empty_points(self):
        out = Mapping(offset=(1, 2, 3)).apply_many(np.empty((0, 3), dtype=np.int64))
        assert out.shape == (0, 3)
