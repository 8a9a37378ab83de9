"""
Test suite for the scanner report loader
"""

from pathlib import Path
import sys

import numpy as np
import pytest

sys.path.append(str(Path(__file__).parent.parent.parent / "src"))
from scanner_registration.preprocessing.loader import (
    ScannerReportLoader,
    format_report,
    load_scanners,
)

SAMPLE = """--- scanner 0 ---
404,-588,-901
528,-643,409
-838,591,734

--- scanner 1 ---
686,422,578
605,423,415
"""


class TestScannerReportLoader:
    """Test cases for the ScannerReportLoader class."""

    def setup_method(self):
        self.loader = ScannerReportLoader()

    def test_parse_sample(self):
        scanners = self.loader.parse(SAMPLE)
        assert [s.id for s in scanners] == [0, 1]
        assert len(scanners[0]) == 3
        np.testing.assert_array_equal(scanners[0].beacons[0], [404, -588, -901])
        np.testing.assert_array_equal(scanners[1].beacons[-1], [605, 423, 415])

    def test_tolerates_whitespace_and_missing_trailing_newline(self):
        text = "--- scanner 7 ---\n 1, -2 ,3  \n0,0,0\n\n\n--- scanner 8 ---\n4,5,6\n7,8,9"
        scanners = self.loader.parse(text)
        assert [s.id for s in scanners] == [7, 8]
        assert scanners[0].points() == [(1, -2, 3), (0, 0, 0)]

    def test_malformed_beacon_reports_line(self):
        with pytest.raises(ValueError, match="Line 3"):
            self.loader.parse("--- scanner 0 ---\n1,2,3\n1,2\n")

    def test_beacon_outside_block(self):
        with pytest.raises(ValueError, match="outside"):
            self.loader.parse("1,2,3\n")

    def test_empty_block(self):
        with pytest.raises(ValueError, match="no beacons"):
            self.loader.parse("--- scanner 0 ---\n\n--- scanner 1 ---\n1,2,3\n4,5,6\n")

    def test_single_beacon_block(self):
        with pytest.raises(ValueError, match="Line 1: scanner 0 has a single beacon"):
            self.loader.parse("--- scanner 0 ---\n1,2,3\n\n--- scanner 1 ---\n1,2,3\n4,5,6\n")

    def test_duplicate_ids(self):
        text = "--- scanner 0 ---\n1,2,3\n0,0,0\n\n--- scanner 0 ---\n4,5,6\n0,0,0\n"
        with pytest.raises(ValueError, match="duplicate"):
            self.loader.parse(text)
        assert len(ScannerReportLoader(allow_duplicate_ids=True).parse(text)) == 2

    def test_empty_input(self):
        assert self.loader.parse("") == []

    def test_load_file(self, tmp_path):
        path = tmp_path / "report.txt"
        path.write_text(SAMPLE, encoding="utf-8")
        scanners = load_scanners(path)
        assert len(scanners) == 2

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            self.loader.load(tmp_path / "missing.txt")

    def test_format_report_parses_back(self):
        scanners = self.loader.parse(SAMPLE)
        again = self.loader.parse(format_report(scanners))
        assert [s.points() for s in again] == [s.points() for s in scanners]
