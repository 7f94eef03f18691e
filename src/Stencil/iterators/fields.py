"""Field views: a stepper plus the buffer it reads and writes."""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..boundary import BoundaryId
from .steppers import AxisStepper, FaceStepper, WholeFieldStepper


class FlatValueAccessor:
    """Read/write access to a flat float64 buffer, starting at ``first_index``."""

    def __init__(self, values: Optional[np.ndarray] = None, first_index: int = 0):
        self.values = values
        self.first_index = first_index

    def get(self, index: int) -> float:
        assert self.values is not None, "no values attached"
        return self.values[self.first_index + index]

    def set(self, index: int, value: float) -> None:
        assert self.values is not None, "no values attached"
        self.values[self.first_index + index] = value


class FieldView:
    """Cursor over a field.

    Parameters
    ----------
    stepper : AxisStepper
        Defines the elements visited and their order.
    accessor : FlatValueAccessor
        Backing storage addressed by the stepper's flat index.

    Example
    -------
    >>> view = FieldView(WholeFieldStepper((4, 4)), FlatValueAccessor(np.zeros(16)))
    >>> view.first()
    >>> while view.is_in_field():
    ...     view.set_current_value(view.current_index(0))
    ...     view.next()
    """

    def __init__(self, stepper: AxisStepper, accessor: FlatValueAccessor):
        self.stepper = stepper
        self.accessor = accessor

    @property
    def dimensionality(self) -> int:
        return self.stepper.dimensionality

    def first(self) -> None:
        self.stepper.first()

    def next(self) -> None:
        self.stepper.next()

    def is_in_field(self) -> bool:
        return self.stepper.is_in_field()

    def size(self, dim: int) -> int:
        return self.stepper.size[dim]

    def current_index(self, dim: int) -> int:
        return self.stepper.current_index(dim)

    def current_value(self) -> float:
        assert self.stepper.is_in_field(), "view is outside its field"
        return self.accessor.get(self.stepper.index)

    def set_current_value(self, value: float) -> None:
        assert self.stepper.is_in_field(), "view is outside its field"
        self.accessor.set(self.stepper.index, value)

    def neighbor_in_field(self, dim: int, offset: int) -> bool:
        return self.stepper.neighbor_in_field(dim, offset)

    def current_neighbor(self, dim: int, offset: int) -> float:
        return self.accessor.get(self.stepper.linear_neighbor_index(dim, offset))

    def set_current_neighbor(self, dim: int, offset: int, value: float) -> None:
        self.accessor.set(self.stepper.linear_neighbor_index(dim, offset), value)


class FaceFieldView(FieldView):
    """Field view restricted to one face, chosen with ``set_face_to_iterate``."""

    stepper: FaceStepper

    def __init__(self, stepper: FaceStepper, accessor: FlatValueAccessor):
        super().__init__(stepper, accessor)

    def set_face_to_iterate(
        self, boundary: BoundaryId, task_id: int = 0, num_tasks: int = 1
    ) -> None:
        self.stepper.set_face(boundary, task_id, num_tasks)


def whole_field_view(sizes, values=None, first_index=0, task_id=0, num_tasks=1) -> FieldView:
    """View over all of ``values`` (or one task's share) with the given sizes."""
    return FieldView(
        WholeFieldStepper(sizes, task_id, num_tasks),
        FlatValueAccessor(values, first_index),
    )


def face_field_view(sizes, values=None, first_index=0) -> FaceFieldView:
    """Face view over ``values``; empty until a face is chosen."""
    return FaceFieldView(FaceStepper(sizes), FlatValueAccessor(values, first_index))
