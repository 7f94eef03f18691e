"""Views over a block extended by its ghost regions.

A composed view behaves as if the block's interior and the ghost regions on
both sides of every dimension formed one contiguous field. Neighbor queries
that leave the interior along ``dim`` are redirected to the ghost region on
that side, addressed relative to the ghost element adjacent to the current
interior element.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence, Tuple

from ..boundary import BoundaryId
from .fields import FaceFieldView, FieldView

SidePair = Tuple[FieldView, FieldView]


class ComposedFieldView(ABC):
    """Interior view ``main`` plus ``sides[dim] = (below, above)`` ghost views."""

    def __init__(self, main: FieldView, sides: Sequence[SidePair]):
        assert len(sides) == main.dimensionality, (
            f"expected {main.dimensionality} side pairs, got {len(sides)}"
        )
        self.main = main
        self.sides = tuple(tuple(pair) for pair in sides)

    @property
    def dimensionality(self) -> int:
        return self.main.dimensionality

    def first(self) -> None:
        self.main.first()
        for below, above in self.sides:
            below.first()
            above.first()

    @abstractmethod
    def next(self) -> None:
        """Advance the main view and whichever side views track it."""

    def is_in_field(self) -> bool:
        return self.main.is_in_field()

    def size(self, dim: int) -> int:
        below, above = self.sides[dim]
        return self.main.size(dim) + below.size(dim) + above.size(dim)

    def current_index(self, dim: int) -> int:
        return self.main.current_index(dim)

    def current_value(self) -> float:
        return self.main.current_value()

    def set_current_value(self, value: float) -> None:
        self.main.set_current_value(value)

    def _resolve(self, dim: int, offset: int) -> Tuple[FieldView, int]:
        """View holding the neighbor and the offset to use in that view."""
        n = offset + self.main.current_index(dim)
        if n < 0:
            return self.sides[dim][0], n + 1
        inner = self.main.size(dim)
        if n >= inner:
            return self.sides[dim][1], n - inner
        return self.main, offset

    def current_neighbor(self, dim: int, offset: int) -> float:
        view, local_offset = self._resolve(dim, offset)
        return view.current_neighbor(dim, local_offset)

    def set_current_neighbor(self, dim: int, offset: int, value: float) -> None:
        view, local_offset = self._resolve(dim, offset)
        view.set_current_neighbor(dim, local_offset, value)


class ComposedFaceFieldView(ComposedFieldView):
    """Walk one face of the interior together with the matching ghost face.

    The ghost region below a lower face is walked on its own upper face (and
    vice versa), so the two cursors stay adjacent across the block boundary.
    """

    main: FaceFieldView

    def __init__(self, main: FaceFieldView, sides: Sequence[Tuple[FaceFieldView, FaceFieldView]]):
        super().__init__(main, sides)
        self._side: Optional[FaceFieldView] = None

    def set_face_to_iterate(
        self, boundary: BoundaryId, task_id: int = 0, num_tasks: int = 1
    ) -> None:
        self.main.set_face_to_iterate(boundary, task_id, num_tasks)
        self._side = self.sides[boundary.dimension][boundary.side]
        self._side.set_face_to_iterate(boundary.opposite(), task_id, num_tasks)

    def first(self) -> None:
        self.main.first()
        if self._side is not None:
            self._side.first()

    def next(self) -> None:
        self.main.next()
        self._side.next()
