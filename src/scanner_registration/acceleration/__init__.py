"""
Acceleration Module

This module provides performance infrastructure including:
- Parallel processing across worker processes (fingerprints, pair checks)
- JIT-compiled integer kernels
"""

from .parallel_executor import ParallelExecutor
from .jit_kernels import pairwise_squared_distances_jit, max_manhattan_distance_jit

__all__ = [
    "ParallelExecutor",
    "pairwise_squared_distances_jit",
    "max_manhattan_distance_jit",
]
