"""
Axis-aligned rigid transforms between scanner frames.

Scanner frames differ by a signed permutation of the axes (a 90 degree
multiple rotation, possibly with a reflection) plus an integer translation.
Orientation and Mapping form a small algebra: identity, apply, compose and
inverse, all in exact integer arithmetic.

Conventions:
    A Mapping from frame B into frame A sends a point p expressed in B to
        A[k] = offset[k] + signs[k] * p[axes[k]]
    i.e. for every destination axis k, `axes[k]` names the source axis that
    feeds it and `signs[k]` whether it is reversed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import permutations, product
from typing import List, Sequence, Tuple

import numpy as np

from .types import Point


def _permutation_parity(axes: Sequence[int]) -> int:
    inversions = sum(1 for i in range(3) for j in range(i + 1, 3) if axes[i] > axes[j])
    return -1 if inversions % 2 else 1


@dataclass(frozen=True)
class Orientation:
    """Signed axis permutation."""

    axes: Tuple[int, int, int] = (0, 1, 2)
    signs: Tuple[int, int, int] = (1, 1, 1)

    def __post_init__(self):
        axes = tuple(int(a) for a in self.axes)
        signs = tuple(int(s) for s in self.signs)
        if sorted(axes) != [0, 1, 2]:
            raise ValueError(f"axes must be a permutation of (0, 1, 2), got {axes}")
        if len(signs) != 3 or any(s not in (1, -1) for s in signs):
            raise ValueError(f"signs must be three values of +1/-1, got {signs}")
        object.__setattr__(self, "axes", axes)
        object.__setattr__(self, "signs", signs)

    @classmethod
    def identity(cls) -> "Orientation":
        return cls()

    @classmethod
    def all_rotations(cls) -> List["Orientation"]:
        """The 24 proper rotations of the cube."""
        out = []
        for axes in permutations(range(3)):
            for signs in product((1, -1), repeat=3):
                candidate = cls(axes, signs)
                if candidate.is_rotation:
                    out.append(candidate)
        return out

    @property
    def determinant(self) -> int:
        return _permutation_parity(self.axes) * self.signs[0] * self.signs[1] * self.signs[2]

    @property
    def is_rotation(self) -> bool:
        return self.determinant == 1

    def apply(self, point: Sequence[int]) -> Point:
        return tuple(self.signs[k] * int(point[self.axes[k]]) for k in range(3))

    def apply_many(self, points: np.ndarray) -> np.ndarray:
        points = np.asarray(points, dtype=np.int64)
        if points.size == 0:
            return points.reshape(-1, 3).copy()
        return points[:, list(self.axes)] * np.array(self.signs, dtype=np.int64)

    def compose(self, other: "Orientation") -> "Orientation":
        """Orientation equivalent to applying `other` first, then `self`."""
        return Orientation(
            axes=tuple(other.axes[self.axes[k]] for k in range(3)),
            signs=tuple(self.signs[k] * other.signs[self.axes[k]] for k in range(3)),
        )

    def inverse(self) -> "Orientation":
        axes = [0, 0, 0]
        signs = [1, 1, 1]
        for k in range(3):
            axes[self.axes[k]] = k
            signs[self.axes[k]] = self.signs[k]
        return Orientation(tuple(axes), tuple(signs))

    def as_matrix(self) -> np.ndarray:
        """3x3 signed permutation matrix R with R @ p == apply(p)."""
        R = np.zeros((3, 3), dtype=np.int64)
        for k in range(3):
            R[k, self.axes[k]] = self.signs[k]
        return R


@dataclass(frozen=True)
class Mapping:
    """Orientation followed by a translation: frame B -> frame A."""

    offset: Point = (0, 0, 0)
    orientation: Orientation = field(default_factory=Orientation)

    def __post_init__(self):
        offset = tuple(int(c) for c in self.offset)
        if len(offset) != 3:
            raise ValueError(f"offset must have three components, got {offset}")
        object.__setattr__(self, "offset", offset)

    @classmethod
    def identity(cls) -> "Mapping":
        return cls()

    def apply(self, point: Sequence[int]) -> Point:
        rotated = self.orientation.apply(point)
        return tuple(rotated[k] + self.offset[k] for k in range(3))

    def apply_many(self, points: np.ndarray) -> np.ndarray:
        return self.orientation.apply_many(points) + np.array(self.offset, dtype=np.int64)

    def compose(self, other: "Mapping") -> "Mapping":
        """Mapping equivalent to applying `other` first, then `self`.

        If self maps B -> A and other maps C -> B, the result maps C -> A.
        """
        return Mapping(
            offset=self.apply(other.offset),
            orientation=self.orientation.compose(other.orientation),
        )

    def inverse(self) -> "Mapping":
        inv = self.orientation.inverse()
        back = inv.apply(self.offset)
        return Mapping(offset=tuple(-c for c in back), orientation=inv)

    def as_matrix(self) -> np.ndarray:
        """4x4 homogeneous transform."""
        T = np.eye(4, dtype=np.int64)
        T[:3, :3] = self.orientation.as_matrix()
        T[:3, 3] = self.offset
        return T

    def to_dict(self) -> dict:
        return {
            "offset": list(self.offset),
            "axes": list(self.orientation.axes),
            "signs": list(self.orientation.signs),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Mapping":
        return cls(
            offset=tuple(data["offset"]),
            orientation=Orientation(tuple(data["axes"]), tuple(data["signs"])),
        )
