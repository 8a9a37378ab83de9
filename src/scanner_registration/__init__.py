"""
Scanner Registration Package

A Python package for reconciling the coordinate frames of scanners that each
report an unordered set of integer beacon positions in their own axis-aligned
frame. Overlaps are found from pairwise squared distances alone; solved pairs
are composed through a frame graph into one mapping per scanner relative to a
root scanner.
"""

__version__ = "0.1.0"

from .utils import *
from .registration import *
from .preprocessing import *
from .analysis import *
from .acceleration import *

__all__ = [
    "utils",
    "registration",
    "preprocessing",
    "analysis",
    "acceleration",
]
