"""Stepping strategies: how a field view walks the flat index space.

A field of sizes ``(s_0, ..., s_{D-1})`` is stored flat with dimension 0
varying fastest, i.e. element ``(i_0, ..., i_{D-1})`` lives at
``sum(i_k * stride[k])`` with ``stride[0] = 1`` and
``stride[k+1] = stride[k] * s_k``. A stepper owns the current flat index and
the inclusive range ``[min_index, max_index]`` it is allowed to visit; the
range is the share of one task in a parallel loop.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from .. import fastdiv
from ..boundary import BoundaryId
from ..executor import partition


class AxisStepper(ABC):
    """Common state of the steppers.

    Parameters
    ----------
    sizes : sequence of int
        Size of the field in each dimension.
    """

    def __init__(self, sizes: Sequence[int]):
        self.size = tuple(int(s) for s in sizes)
        self.dimensionality = len(self.size)
        stride = [1]
        for s in self.size:
            stride.append(stride[-1] * s)
        self.stride = tuple(stride)
        self.total_size = self.stride[-1]

        # Precomputed divisions used by current_index
        self._size_div = tuple(fastdiv.compute(s) for s in self.size)
        self._stride_div = tuple(fastdiv.compute(s) for s in self.stride)

        self.min_index = 1
        self.max_index = 0
        self.index = 1

    def first(self) -> None:
        """Point at the first element of this stepper's range."""
        self.index = self.min_index

    def is_in_field(self) -> bool:
        return self.min_index <= self.index <= self.max_index

    def current_index(self, dim: int) -> int:
        """Coordinate along ``dim`` of the element currently pointed at."""
        assert self.is_in_field(), "stepper is outside its field"
        assert 0 <= dim < self.dimensionality, f"no dimension {dim}"
        along = self._stride_div[dim].divide(self.index)
        return self._size_div[dim].modulo(along, self.size[dim])

    def neighbor_in_field(self, dim: int, offset: int) -> bool:
        """True if the element ``offset`` steps away along ``dim`` exists."""
        n = offset + self.current_index(dim)
        return 0 <= n < self.size[dim]

    def linear_neighbor_index(self, dim: int, offset: int) -> int:
        """Flat index of the element ``offset`` steps away along ``dim``."""
        assert self.neighbor_in_field(dim, offset), (
            f"neighbor {offset:+d} along dimension {dim} is outside the field"
        )
        return self.index + offset * self.stride[dim]

    @abstractmethod
    def next(self) -> None:
        """Advance one element."""

    def _set_range(self, first: int, count: int) -> None:
        self.min_index = first
        self.max_index = first + count - 1
        self.first()


class WholeFieldStepper(AxisStepper):
    """Visit every element, or one task's contiguous share of them.

    The visiting order is lexicographic with dimension 0 fastest:
    (0,0,...), (1,0,...), ..., (s_0-1,0,...), (0,1,...), ...
    """

    def __init__(self, sizes: Sequence[int], task_id: int = 0, num_tasks: int = 1):
        super().__init__(sizes)
        self._set_range(*partition(self.total_size, task_id, num_tasks))

    def next(self) -> None:
        assert self.is_in_field()
        self.index += 1


class FaceStepper(AxisStepper):
    """Visit the elements of one face, the hyperplane ``i_d = 0`` or ``i_d = s_d - 1``.

    The stepper is empty until a face is chosen with ``set_face``.
    """

    def __init__(self, sizes: Sequence[int]):
        super().__init__(sizes)
        self.boundary: Optional[BoundaryId] = None

    def set_face(self, boundary: BoundaryId, task_id: int = 0, num_tasks: int = 1) -> None:
        """Choose the face to walk and point at this task's first element on it."""
        assert 0 <= boundary.dimension < self.dimensionality, (
            f"no dimension {boundary.dimension}"
        )
        self.boundary = boundary
        d = boundary.dimension
        face_size = 0 if self.total_size == 0 else self.total_size // self.size[d]
        steps_to_min, count = partition(face_size, task_id, num_tasks)
        if face_size == 0 or count == 0:
            self.min_index = 1
            self.max_index = 0
            self.first()
            return

        stride = self.stride[d]
        next_stride = self.stride[d + 1]
        min_on_face = 0 if boundary.is_lower else stride * (self.size[d] - 1)
        steps_to_max = steps_to_min + count - 1
        self.min_index = min_on_face + steps_to_min % stride + (steps_to_min // stride) * next_stride
        self.max_index = min_on_face + steps_to_max % stride + (steps_to_max // stride) * next_stride
        self.first()

    def next(self) -> None:
        assert self.is_in_field()
        d = self.boundary.dimension
        stride = self.stride[d]
        if (self.index + 1) % stride != 0:
            self.index += 1
        else:
            # Jump over the rest of the block to the next row of the face
            self.index += self.stride[d + 1] - (stride - 1)
