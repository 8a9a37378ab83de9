"""
Scanner Report Loader

This module parses scanner reports: a sequence of blocks, each introduced by
a header line naming the scanner, followed by one comma-separated signed
integer triple per beacon, terminated by a blank line or end of input.

    --- scanner 0 ---
    404,-588,-901
    528,-643,409

    --- scanner 1 ---
    686,422,578
"""

import re
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..registration.types import Scanner
from ..utils.logging import setup_logger

logger = setup_logger(__name__)

HEADER_RE = re.compile(r"^---\s*scanner\s+(-?\d+)\s*---$")
BEACON_RE = re.compile(r"^\s*(-?\d+)\s*,\s*(-?\d+)\s*,\s*(-?\d+)\s*$")


class ScannerReportLoader:
    """
    A class for loading scanner reports from text or files.

    Features:
    - Header/beacon block parsing with line-numbered error messages
    - Duplicate scanner id detection
    - Beacon count validation through Scanner
    """

    def __init__(self, *, allow_duplicate_ids: bool = False):
        """
        Initialize the loader.

        Args:
            allow_duplicate_ids: If False, two blocks with the same scanner id raise ValueError
        """
        self.allow_duplicate_ids = allow_duplicate_ids

    def load(self, file_path: Union[str, Path]) -> List[Scanner]:
        """
        Load a scanner report file.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the report is malformed
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        logger.info(f"Loading scanner report from {file_path}")
        scanners = self.parse(file_path.read_text(encoding="utf-8"))
        logger.info(
            f"Loaded {len(scanners)} scanners with {sum(len(s) for s in scanners)} beacon observations"
        )
        return scanners

    def parse(self, text: str) -> List[Scanner]:
        """
        Parse a scanner report.

        Args:
            text: Report contents

        Returns:
            Scanners in input order

        Raises:
            ValueError: On malformed headers or beacon lines, blocks with fewer
                than two beacons, or duplicate scanner ids
        """
        scanners: List[Scanner] = []
        seen = set()
        current_id: Optional[int] = None
        header_line = 0
        beacons: List[Tuple[int, int, int]] = []

        def close_block():
            if current_id is None:
                return
            if not beacons:
                raise ValueError(f"Line {header_line}: scanner {current_id} has no beacons")
            if len(beacons) < 2:
                raise ValueError(f"Line {header_line}: scanner {current_id} has a single beacon")
            if current_id in seen and not self.allow_duplicate_ids:
                raise ValueError(f"Line {header_line}: duplicate scanner id {current_id}")
            seen.add(current_id)
            scanners.append(Scanner.from_points(current_id, beacons))

        for line_no, raw in enumerate(text.splitlines(), start=1):
            line = raw.strip()
            if not line:
                close_block()
                current_id = None
                beacons = []
                continue

            header = HEADER_RE.match(line)
            if header:
                close_block()
                current_id = int(header.group(1))
                header_line = line_no
                beacons = []
                continue

            beacon = BEACON_RE.match(line)
            if beacon is None:
                raise ValueError(f"Line {line_no}: cannot parse '{line}'")
            if current_id is None:
                raise ValueError(f"Line {line_no}: beacon outside of a scanner block")
            beacons.append(tuple(int(g) for g in beacon.groups()))

        close_block()
        return scanners


def load_scanners(file_path: Union[str, Path]) -> List[Scanner]:
    """Convenience wrapper around ScannerReportLoader().load()."""
    return ScannerReportLoader().load(file_path)


def format_report(scanners: List[Scanner]) -> str:
    """Render scanners back into report text."""
    blocks = []
    for scanner in scanners:
        lines = [f"--- scanner {scanner.id} ---"]
        lines.extend(f"{x},{y},{z}" for x, y, z in scanner.points())
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks) + "\n"
