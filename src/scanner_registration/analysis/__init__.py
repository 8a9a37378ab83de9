"""
Analysis Module

This module merges registered scanners into one beacon map and computes
summary statistics.
"""

from .aggregation import (
    RegistrationSummary,
    count_unique_beacons,
    max_manhattan_distance,
    merge_beacons,
    scanner_positions,
    summarize,
)

__all__ = [
    "RegistrationSummary",
    "count_unique_beacons",
    "max_manhattan_distance",
    "merge_beacons",
    "scanner_positions",
    "summarize",
]
