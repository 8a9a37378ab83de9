"""
Preprocessing Module

This module parses scanner reports into Scanner objects.
"""

from .loader import ScannerReportLoader, load_scanners, format_report

__all__ = [
    "ScannerReportLoader",
    "load_scanners",
    "format_report",
]
