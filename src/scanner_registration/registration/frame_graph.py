"""
Frame Graph Resolver

Scanners are nodes of an implicit graph; two scanners are linked when their
overlap can be solved. Starting from the root scanner (identity mapping), the
traversal pops a resolved scanner, tries it against every scanner not yet
reached, and composes each solved pairwise mapping onto the popped scanner's
global mapping. Every pair is attempted at most once.
"""

from __future__ import annotations

import time
from collections import deque
from contextlib import nullcontext
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

from ..utils.logging import setup_logger
from .correspondence import OverlapEdge, solve_correspondence
from .errors import DisconnectedFrameGraphError
from .fingerprint import Fingerprint, build_fingerprints
from .mapping import Mapping
from .overlap import DEFAULT_MIN_OVERLAP, detect_overlap
from .types import Scanner

if TYPE_CHECKING:
    from ..acceleration.parallel_executor import ParallelExecutor
    from ..utils.config import AppConfig

logger = setup_logger(__name__)


def match_scanners(
    source: Scanner,
    source_fp: Fingerprint,
    target: Scanner,
    target_fp: Fingerprint,
    min_overlap: int = DEFAULT_MIN_OVERLAP,
    resolve_ambiguous: bool = True,
) -> Optional[OverlapEdge]:
    """Detect and solve the overlap of one scanner pair; None when they do not overlap."""
    candidate = detect_overlap(source_fp, target_fp, min_overlap)
    if candidate is None:
        return None
    return solve_correspondence(
        source, source_fp, target, target_fp, candidate, resolve_ambiguous=resolve_ambiguous
    )


def _match_worker(
    item: Tuple[Scanner, Fingerprint],
    source: Scanner,
    source_fp: Fingerprint,
    min_overlap: int,
    resolve_ambiguous: bool,
) -> Optional[OverlapEdge]:
    """Module-level worker so it can be pickled for multiprocessing."""
    target, target_fp = item
    return match_scanners(source, source_fp, target, target_fp, min_overlap, resolve_ambiguous)


class FrameGraphResolver:
    """
    Resolve one global Mapping per scanner relative to a root scanner.

    Example:
        resolver = FrameGraphResolver(min_overlap=12)
        mappings = resolver.resolve(scanners)
        root_frame_points = mappings[3].apply_many(scanners[3].beacons)
    """

    def __init__(
        self,
        min_overlap: int = DEFAULT_MIN_OVERLAP,
        root: int = 0,
        traversal: str = "dfs",
        resolve_ambiguous: bool = True,
        executor: Optional["ParallelExecutor"] = None,
    ):
        """
        Args:
            min_overlap: Minimum number of shared beacons for a link
            root: Index (into the scanner list) of the reference scanner
            traversal: 'dfs' (stack) or 'bfs' (queue); affects work order only
            resolve_ambiguous: Enumerate assignments when overlap distances repeat
            executor: Optional ParallelExecutor for fingerprints and pair checks
        """
        if min_overlap < 3:
            raise ValueError(f"min_overlap must be at least 3, got {min_overlap}")
        if traversal not in ("dfs", "bfs"):
            raise ValueError(f"Unknown traversal '{traversal}', expected 'dfs' or 'bfs'")
        self.min_overlap = min_overlap
        self.root = root
        self.traversal = traversal
        self.resolve_ambiguous = resolve_ambiguous
        self.executor = executor

    @classmethod
    def from_config(cls, cfg: "AppConfig", executor: Optional["ParallelExecutor"] = None) -> "FrameGraphResolver":
        if executor is None and cfg.parallel.enabled:
            from ..acceleration.parallel_executor import ParallelExecutor

            executor = ParallelExecutor(n_workers=cfg.parallel.n_workers)
        reg = cfg.registration
        return cls(
            min_overlap=reg.min_overlap,
            root=reg.root,
            traversal=reg.traversal,
            resolve_ambiguous=reg.resolve_ambiguous,
            executor=executor,
        )

    def resolve(self, scanners: Sequence[Scanner]) -> List[Mapping]:
        """
        Global mapping for every scanner, indexed like the input.

        Raises:
            ValueError: If the root index is out of range
            DisconnectedFrameGraphError: If some scanner never joins the root frame
            InconsistentGeometryError, AmbiguousCorrespondenceError: From pair solving
        """
        scanners = list(scanners)
        n = len(scanners)
        if n == 0:
            return []
        if not 0 <= self.root < n:
            raise ValueError(f"Root index {self.root} out of range for {n} scanners")

        start_time = time.time()
        # One worker pool for fingerprints and every pair check of this call
        with self.executor if self.executor is not None else nullcontext():
            mappings, n_attempts = self._traverse(scanners)

        unresolved = [scanners[j].id for j in range(n) if mappings[j] is None]
        if unresolved:
            logger.error(f"{len(unresolved)} of {n} scanners could not be linked to the root frame")
            raise DisconnectedFrameGraphError(unresolved)

        logger.info(
            f"Resolved {n} scanners with {n_attempts} pair checks "
            f"in {time.time() - start_time:.2f}s"
        )
        return mappings

    def _traverse(self, scanners: List[Scanner]) -> Tuple[List[Optional[Mapping]], int]:
        n = len(scanners)
        fingerprints = build_fingerprints(scanners, self.executor)

        mappings: List[Optional[Mapping]] = [None] * n
        done = {self.root}
        frontier = deque([(self.root, Mapping.identity())])
        n_attempts = 0

        while frontier:
            i, to_root = frontier.pop() if self.traversal == "dfs" else frontier.popleft()
            mappings[i] = to_root

            pending = [j for j in range(n) if j not in done]
            if not pending:
                continue
            n_attempts += len(pending)
            edges = self._match_many(scanners, fingerprints, i, pending)

            for j, edge in zip(pending, edges):
                if edge is None:
                    continue
                done.add(j)
                frontier.append((j, to_root.compose(edge.mapping)))
                logger.debug(
                    f"Scanner {scanners[j].id} linked to scanner {scanners[i].id} "
                    f"via {len(edge.source_indices)} shared beacons"
                )
        return mappings, n_attempts

    def _match_many(
        self,
        scanners: List[Scanner],
        fingerprints: List[Fingerprint],
        i: int,
        pending: List[int],
    ) -> List[Optional[OverlapEdge]]:
        kwargs = dict(
            source=scanners[i],
            source_fp=fingerprints[i],
            min_overlap=self.min_overlap,
            resolve_ambiguous=self.resolve_ambiguous,
        )
        items = [(scanners[j], fingerprints[j]) for j in pending]
        if self.executor is None:
            return [_match_worker(item, **kwargs) for item in items]
        return self.executor.map_items(items, _match_worker, kwargs)


def resolve(scanners: Sequence[Scanner], **kwargs) -> List[Mapping]:
    """
    Resolve one global Mapping per scanner, relative to scanner 0 by default.

    Keyword arguments are passed to FrameGraphResolver.
    """
    return FrameGraphResolver(**kwargs).resolve(scanners)
