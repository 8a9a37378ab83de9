"""
Core data types shared by the registration stages.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Tuple

import numpy as np

Point = Tuple[int, int, int]

# Capacity bound for a single scanner report.
MAX_BEACONS = 64


@dataclass(frozen=True, eq=False)
class Scanner:
    """A scanner and the beacons it observed, in its own local frame.

    Attributes:
        id: Scanner identifier as reported in the input.
        beacons: (N, 3) int64 array of beacon coordinates. Read-only.
    """

    id: int
    beacons: np.ndarray

    def __post_init__(self):
        arr = np.array(self.beacons, dtype=np.int64)
        if arr.ndim != 2 or arr.shape[1] != 3:
            raise ValueError(f"Scanner {self.id}: expected Nx3 beacon array, got shape {arr.shape}")
        if len(arr) < 2:
            raise ValueError(f"Scanner {self.id}: needs at least 2 beacons, got {len(arr)}")
        if len(arr) > MAX_BEACONS:
            raise ValueError(
                f"Scanner {self.id}: {len(arr)} beacons exceeds capacity of {MAX_BEACONS}"
            )
        arr.setflags(write=False)
        object.__setattr__(self, "id", int(self.id))
        object.__setattr__(self, "beacons", arr)

    @classmethod
    def from_points(cls, scanner_id: int, points: Iterable[Iterable[int]]) -> "Scanner":
        return cls(id=scanner_id, beacons=np.array([tuple(p) for p in points], dtype=np.int64))

    def __len__(self) -> int:
        return len(self.beacons)

    def points(self) -> List[Point]:
        return [tuple(int(c) for c in row) for row in self.beacons]
