"""
Registration error taxonomy.

A missing overlap between two scanners is not an error: the overlap detector
returns None and the frame graph simply tries the next pair. The exceptions
below are the fatal conditions. They are raised inside worker processes as
well, so each one pickles with the context it was created with.
"""

from __future__ import annotations

from typing import Sequence, Tuple


class RegistrationError(Exception):
    """Base class for fatal registration failures."""


class AmbiguousCorrespondenceError(RegistrationError):
    """Overlap distances repeat and no unique point assignment could be chosen."""

    def __init__(self, source_id: int, target_id: int, reason: str = "repeated pairwise distances"):
        self.source_id = source_id
        self.target_id = target_id
        self.reason = reason
        super().__init__(
            f"Ambiguous correspondence between scanner {source_id} and scanner {target_id}: {reason}"
        )

    def __reduce__(self):
        return (self.__class__, (self.source_id, self.target_id, self.reason))


class InconsistentGeometryError(RegistrationError):
    """A candidate overlap exists but no orientation and offset explain it."""

    def __init__(
        self,
        source_id: int,
        target_id: int,
        source_indices: Sequence[int] = (),
        target_indices: Sequence[int] = (),
    ):
        self.source_id = source_id
        self.target_id = target_id
        self.source_indices: Tuple[int, ...] = tuple(int(i) for i in source_indices)
        self.target_indices: Tuple[int, ...] = tuple(int(i) for i in target_indices)
        super().__init__(
            f"No consistent orientation maps scanner {target_id} onto scanner {source_id} "
            f"(source indices {list(self.source_indices)}, target indices {list(self.target_indices)})"
        )

    def __reduce__(self):
        return (
            self.__class__,
            (self.source_id, self.target_id, self.source_indices, self.target_indices),
        )


class DisconnectedFrameGraphError(RegistrationError):
    """Traversal finished with scanners that never joined the root frame."""

    def __init__(self, unresolved_ids: Sequence[int]):
        self.unresolved_ids: Tuple[int, ...] = tuple(int(i) for i in unresolved_ids)
        super().__init__(
            f"Frame graph is disconnected; unresolved scanners: {list(self.unresolved_ids)}"
        )

    def __reduce__(self):
        return (self.__class__, (self.unresolved_ids,))
