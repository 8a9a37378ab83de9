"""
Generate a synthetic scanner report with a known solution.

- Creates groups of random beacons spread along a path.
- Scanner s observes groups s and s + 1, so consecutive scanners share one
  full group (at least 12 beacons) and the frame graph is a connected chain.
- Each scanner sits at a random integer position with a random proper
  rotation; beacons are written in the scanner's local frame.
- Writes the report and prints the expected unique beacon count.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np

sys.path.append(str(Path(__file__).parent.parent / "src"))

from scanner_registration.preprocessing.loader import format_report
from scanner_registration.registration import Mapping, Orientation, Scanner


def make_groups(n_groups, group_size=14, spacing=1500, spread=700, seed=42):
    rng = np.random.default_rng(seed)
    groups = []
    for g in range(n_groups):
        center = np.array([g * spacing, (g % 3) * spacing // 2, -(g % 2) * spacing // 3])
        pts = center + rng.integers(-spread, spread + 1, size=(group_size, 3))
        groups.append(pts.astype(np.int64))
    return groups


def make_scanners(n_scanners, group_size=14, seed=42):
    rng = np.random.default_rng(seed + 1)
    rotations = Orientation.all_rotations()
    groups = make_groups(n_scanners + 1, group_size=group_size, seed=seed)

    scanners = []
    truth = []
    for s in range(n_scanners):
        world = np.vstack([groups[s], groups[s + 1]])
        rng.shuffle(world)
        position = tuple(int(c) for c in world.mean(axis=0).round() + rng.integers(-200, 201, size=3))
        to_world = Mapping(offset=position, orientation=rotations[int(rng.integers(len(rotations)))])
        local = to_world.inverse().apply_many(world)
        scanners.append(Scanner(id=s, beacons=local))
        truth.append(to_world)
    n_unique = len(np.unique(np.vstack(groups[: n_scanners + 1]), axis=0))
    return scanners, truth, n_unique


def main():
    parser = argparse.ArgumentParser(description="Generate a synthetic scanner report")
    parser.add_argument("--scanners", type=int, default=10)
    parser.add_argument("--group-size", type=int, default=14)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument(
        "--output",
        type=str,
        default=str(Path(__file__).parent.parent / "data" / "synthetic" / "scanners.txt"),
    )
    args = parser.parse_args()

    scanners, _, n_unique = make_scanners(args.scanners, group_size=args.group_size, seed=args.seed)
    out = Path(args.output)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(format_report(scanners), encoding="utf-8")

    print(f"Wrote: {out}")
    print(f"Scanners: {len(scanners)}, expected unique beacons: {n_unique}")


if __name__ == "__main__":
    main()
