"""Two-phase stencil operators.

Applying an operator overlaps computation with the ghost exchange:

1. Inner phase: every point gets the taps that stay inside the block,
   while the ghost regions are still in flight.
2. Boundary phase: each time a ghost region arrives, the points within
   ``extent`` of that face get the taps that reach into it.

The caller starts the exchange on the input block before ``apply`` and
finishes its sends afterwards.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from functools import partial
from typing import Sequence

import numpy as np

from .boundary import BoundaryId
from .executor import TaskExecutor
from .grid.block import Block

log = logging.getLogger(__name__)

# 8th order central second derivative, before division by h^2
FD8_COEFFICIENTS = (
    -1.0 / 560.0,
    8.0 / 315.0,
    -1.0 / 5.0,
    8.0 / 5.0,
    -205.0 / 72.0,
    8.0 / 5.0,
    -1.0 / 5.0,
    8.0 / 315.0,
    -1.0 / 560.0,
)


class StencilOperator(ABC):
    """Sum over dimensions of a ``2*extent + 1`` point stencil along each axis.

    Parameters
    ----------
    executor : TaskExecutor
        Worker pool used for both phases.
    extent : int
        Reach of the stencil on each side of the centre point.
    """

    def __init__(self, executor: TaskExecutor, extent: int):
        if extent < 1:
            raise ValueError(f"stencil extent must be positive, got {extent}")
        self.executor = executor
        self.extent = extent
        self._computation_time = 0.0

    @abstractmethod
    def weight(self, view, dim: int, i: int) -> float:
        """Weight of tap ``i`` (0 is the leftmost, ``extent`` the centre) along ``dim``."""

    def check_compatible(self, input_block: Block):
        """Raise ValueError if the stencil reaches beyond the input's ghost regions."""
        if input_block.ghost_width < self.extent:
            raise ValueError(
                f"stencil extent {self.extent} exceeds ghost width {input_block.ghost_width}"
            )

    def apply(self, input_block: Block, result_block: Block):
        """Write the stencil applied to ``input_block`` into ``result_block``.

        ``input_block.start_exchange()`` must have been called; this method
        consumes all 2·D received faces.
        """
        self.check_compatible(input_block)
        assert input_block.values is not None, "input block has no values"
        assert result_block.values is not None, "result block has no values"
        assert result_block.sizes() == input_block.sizes(), "blocks differ in shape"

        t0 = time.perf_counter()
        comm0 = input_block.communication_time()

        self.executor.execute(
            lambda task_id, num_tasks: partial(
                self._apply_inner, input_block, result_block, task_id, num_tasks
            )
        )

        for _ in range(2 * input_block.dimensionality):
            face = input_block.wait_next_received()
            self.executor.execute(
                lambda task_id, num_tasks: partial(
                    self._apply_boundary, input_block, result_block, face, task_id, num_tasks
                )
            )

        waited = input_block.communication_time() - comm0
        self._computation_time += time.perf_counter() - t0 - waited

    def _apply_inner(self, input_block: Block, result_block: Block, task_id: int, num_tasks: int):
        src = input_block.inner_view(task_id, num_tasks)
        dst = result_block.inner_view(task_id, num_tasks)
        E = self.extent
        D = input_block.dimensionality

        while src.is_in_field():
            value = src.current_value()
            total = 0.0
            for d in range(D):
                index = src.current_index(d)
                if index >= E:
                    for i in range(E):
                        total += self.weight(src, d, i) * src.current_neighbor(d, i - E)
                total += self.weight(src, d, E) * value
                if index + E < src.size(d):
                    for i in range(1, E + 1):
                        total += self.weight(src, d, E + i) * src.current_neighbor(d, i)
            dst.set_current_value(total)
            src.next()
            dst.next()

    def _apply_boundary(
        self,
        input_block: Block,
        result_block: Block,
        face: BoundaryId,
        task_id: int,
        num_tasks: int,
    ):
        src = input_block.face_view()
        dst = result_block.face_view()
        src.set_face_to_iterate(face, task_id, num_tasks)
        dst.set_face_to_iterate(face, task_id, num_tasks)

        E = self.extent
        d = face.dimension
        # Lower faces miss the left taps, upper faces the right ones
        direction = 1 if face.is_lower else -1
        lowest = 0 if face.is_lower else E + 1

        while src.is_in_field():
            distance = 0
            while distance != direction * E:
                total = dst.current_neighbor(d, distance)
                for i in range(E):
                    total += self.weight(src, d, lowest + i) * src.current_neighbor(
                        d, lowest - E + distance + i
                    )
                dst.set_current_neighbor(d, distance, total)
                distance += direction
            src.next()
            dst.next()

    def computation_time(self) -> float:
        """Seconds spent computing in ``apply``, excluding waits for ghost regions."""
        return self._computation_time


class MultuncialStencil(StencilOperator):
    """Stencil with a constant weight table per dimension.

    Parameters
    ----------
    executor : TaskExecutor
        Worker pool.
    weights : array_like, shape (D, 2*extent + 1)
        ``weights[d][i]`` is tap ``i`` along dimension ``d``.
    """

    def __init__(self, executor: TaskExecutor, weights: Sequence[Sequence[float]]):
        table = np.asarray(weights, dtype=np.float64)
        if table.ndim != 2 or table.shape[1] < 3 or table.shape[1] % 2 == 0:
            raise ValueError(
                f"weights must have shape (D, 2*extent + 1) with extent >= 1, got {table.shape}"
            )
        super().__init__(executor, (table.shape[1] - 1) // 2)
        self.weights = tuple(tuple(float(w) for w in row) for row in table)

    @property
    def dimensionality(self) -> int:
        return len(self.weights)

    def check_compatible(self, input_block: Block):
        super().check_compatible(input_block)
        if input_block.dimensionality != self.dimensionality:
            raise ValueError(
                f"stencil has {self.dimensionality} dimensions, "
                f"block has {input_block.dimensionality}"
            )

    def weight(self, view, dim: int, i: int) -> float:
        return self.weights[dim][i]


class ConstFD8Stencil(MultuncialStencil):
    """8th order finite difference Laplacian with grid spacing ``step_lengths[d]``."""

    def __init__(self, executor: TaskExecutor, step_lengths: Sequence[float]):
        weights = [[c / (h * h) for c in FD8_COEFFICIENTS] for h in step_lengths]
        super().__init__(executor, weights)
        log.debug(f"FD8 stencil with step lengths {tuple(step_lengths)}")
