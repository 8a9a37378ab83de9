"""
Registration Module

This module reconciles the coordinate frames of scanners that observe
overlapping beacon sets:
- fingerprints of pairwise squared distances
- overlap detection by distance intersection and pruning
- point correspondence and orientation inference
- frame graph traversal composing pairwise mappings into global ones
"""

from .types import Point, Scanner, MAX_BEACONS
from .mapping import Mapping, Orientation
from .fingerprint import Fingerprint, build_fingerprint, build_fingerprints, squared_distance
from .overlap import OverlapCandidate, detect_overlap, find_clique, intersect_fingerprints
from .correspondence import OverlapEdge, solve_correspondence, infer_orientation, fit_mapping
from .frame_graph import FrameGraphResolver, match_scanners, resolve
from .errors import (
    RegistrationError,
    AmbiguousCorrespondenceError,
    InconsistentGeometryError,
    DisconnectedFrameGraphError,
)

__all__ = [
    "Point",
    "Scanner",
    "MAX_BEACONS",
    "Mapping",
    "Orientation",
    "Fingerprint",
    "build_fingerprint",
    "build_fingerprints",
    "squared_distance",
    "OverlapCandidate",
    "detect_overlap",
    "find_clique",
    "intersect_fingerprints",
    "OverlapEdge",
    "solve_correspondence",
    "infer_orientation",
    "fit_mapping",
    "FrameGraphResolver",
    "match_scanners",
    "resolve",
    "RegistrationError",
    "AmbiguousCorrespondenceError",
    "InconsistentGeometryError",
    "DisconnectedFrameGraphError",
]
