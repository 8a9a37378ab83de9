"""
Utility Functions Module

This module provides common utility functions used across the scanner registration project.
- Logging setup
- Typed YAML configuration
"""

from .logging import setup_logger, set_log_level
from .config import AppConfig, load_config

__all__ = [
    "setup_logger",
    "set_log_level",
    "AppConfig",
    "load_config",
]
