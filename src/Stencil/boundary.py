"""Identification of the faces of an N-dimensional block."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator


@dataclass(frozen=True)
class BoundaryId:
    """One face of a block: coordinate ``dimension`` fixed at its min or max.

    Faces are ordered (0, lower), (0, upper), (1, lower), (1, upper), ...
    """

    dimension: int = 0
    is_lower: bool = True

    def opposite(self) -> "BoundaryId":
        """The other face along the same dimension."""
        return BoundaryId(self.dimension, not self.is_lower)

    def step(self) -> "BoundaryId":
        """The next face in enumeration order."""
        if self.is_lower:
            return BoundaryId(self.dimension, False)
        return BoundaryId(self.dimension + 1, True)

    @property
    def side(self) -> int:
        """Index of this face in a ``(below, above)`` pair."""
        return 0 if self.is_lower else 1

    @property
    def ordinal(self) -> int:
        """Position in the enumeration order, ``2*dimension + side``."""
        return 2 * self.dimension + self.side

    @classmethod
    def from_ordinal(cls, ordinal: int) -> "BoundaryId":
        return cls(ordinal // 2, ordinal % 2 == 0)

    @classmethod
    def all(cls, dimensionality: int) -> Iterator["BoundaryId"]:
        """Yield the 2*D faces of a D-dimensional block in order."""
        boundary = cls()
        for _ in range(2 * dimensionality):
            yield boundary
            boundary = boundary.step()

    def __str__(self) -> str:
        return f"x{self.dimension}_{'lower' if self.is_lower else 'upper'}"
