"""Blocks: the unit of data an operator reads and writes.

A block is an ``n^D`` field stored flat, dimension 0 fastest. It optionally
carries ghost regions of depth ``ghost_width`` on all 2·D faces together with
a strategy that fills them:

- ``pure_block``: no ghost regions, a plain output buffer
- ``composed_block``: ghost regions filled by direct copy from blocks in the
  same process, one per face (periodic on itself by default)
- ``communicative_block``: ghost regions filled by MPI from the neighbor ranks
  of a periodic Cartesian topology

Solvers interact with this single interface rather than managing exchange
details directly.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple, Union

import numpy as np
from mpi4py import MPI

from ..boundary import BoundaryId
from ..iterators import (
    ComposedFaceFieldView,
    FaceFieldView,
    FieldView,
    face_field_view,
    whole_field_view,
)
from ..mpi.decomposition import CartesianTopology
from ..mpi.halo import GhostExchangeStrategy, create_ghost_exchange
from .ghost import GhostRegion


class Block:
    """N-dimensional block with optional ghost regions.

    Parameters
    ----------
    elements_per_dim : int
        Interior points per dimension n.
    dimensionality : int
        Number of dimensions D.
    ghost_width : int
        Depth of the ghost regions; 0 for a block without ghosts.
    exchange : GhostExchangeStrategy, optional
        Fills the ghost regions. Required when ``ghost_width > 0``.
    values : np.ndarray, optional
        Interior values, flat of length ``n^D``. May be set later with
        ``set_values``.

    Example
    -------
    >>> block = composed_block(10, 3, ghost_width=4)
    >>> block.set_values(f)
    >>> block.start_exchange()
    >>> for _ in range(6):
    ...     face = block.wait_next_received()
    >>> block.finish_sends()
    """

    def __init__(
        self,
        elements_per_dim: int,
        dimensionality: int,
        ghost_width: int = 0,
        exchange: Optional[GhostExchangeStrategy] = None,
        values: Optional[np.ndarray] = None,
    ):
        assert elements_per_dim >= 0 and dimensionality >= 1
        assert 0 <= ghost_width <= max(elements_per_dim, 1), (
            f"ghost width {ghost_width} exceeds block size {elements_per_dim}"
        )
        self.elements_per_dim = elements_per_dim
        self.dimensionality = dimensionality
        self.ghost_width = ghost_width
        self.num_elements = elements_per_dim**dimensionality
        self.values: Optional[np.ndarray] = None

        self._ghosts: Tuple[Tuple[GhostRegion, GhostRegion], ...] = ()
        if ghost_width > 0:
            assert exchange is not None, "a block with ghost regions needs an exchange strategy"
            self._ghosts = tuple(
                (
                    GhostRegion(BoundaryId(d, True), elements_per_dim, ghost_width, dimensionality),
                    GhostRegion(BoundaryId(d, False), elements_per_dim, ghost_width, dimensionality),
                )
                for d in range(dimensionality)
            )

        self._communication_time = 0.0

        if values is not None:
            self.set_values(values)

        self.exchange = exchange
        if exchange is not None:
            exchange.setup(self)

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def sizes(self) -> tuple[int, ...]:
        return (self.elements_per_dim,) * self.dimensionality

    def strides(self) -> tuple[int, ...]:
        return tuple(self.elements_per_dim**d for d in range(self.dimensionality))

    def has_ghosts(self) -> bool:
        return bool(self._ghosts)

    def ghost(self, boundary: BoundaryId) -> GhostRegion:
        return self._ghosts[boundary.dimension][boundary.side]

    def ghost_pair(self, dim: int) -> Tuple[GhostRegion, GhostRegion]:
        """``(below, above)`` ghost regions along ``dim``."""
        return self._ghosts[dim]

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def set_values(self, values: np.ndarray):
        """Use ``values`` as interior buffer. Ghost regions are stale until the next exchange."""
        assert values.shape == (self.num_elements,), (
            f"block needs {self.num_elements} values, got {values.shape}"
        )
        self.values = values

    def allocate(self, dtype=np.float64) -> np.ndarray:
        """Allocate a flat zeroed buffer matching the interior."""
        return np.zeros(self.num_elements, dtype=dtype)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def inner_view(self, task_id: int = 0, num_tasks: int = 1) -> FieldView:
        """Cursor over this task's share of the interior."""
        assert self.values is not None, "block has no values"
        return whole_field_view(self.sizes(), self.values, 0, task_id, num_tasks)

    def plain_face_view(self) -> FaceFieldView:
        """Face cursor over the interior only."""
        assert self.values is not None, "block has no values"
        return face_field_view(self.sizes(), self.values)

    def face_view(self) -> Union[FaceFieldView, ComposedFaceFieldView]:
        """Face cursor; neighbor queries reach into the ghost regions if there are any."""
        main = self.plain_face_view()
        if not self._ghosts:
            return main
        sides = [(lower.face_view(), upper.face_view()) for lower, upper in self._ghosts]
        return ComposedFaceFieldView(main, sides)

    # ------------------------------------------------------------------
    # Ghost exchange
    # ------------------------------------------------------------------

    def start_exchange(self):
        assert self.exchange is not None, "block has no ghost regions to exchange"
        assert self.values is not None, "block has no values"
        t0 = MPI.Wtime()
        self.exchange.start_exchange(self)
        self._communication_time += MPI.Wtime() - t0

    def wait_next_received(self) -> BoundaryId:
        """Wait until one more ghost region is filled and return its face."""
        assert self.exchange is not None, "block has no ghost regions to exchange"
        t0 = MPI.Wtime()
        boundary = self.exchange.wait_next_received(self)
        self._communication_time += MPI.Wtime() - t0
        return boundary

    def finish_sends(self):
        assert self.exchange is not None, "block has no ghost regions to exchange"
        t0 = MPI.Wtime()
        self.exchange.finish_sends(self)
        self._communication_time += MPI.Wtime() - t0

    def communication_time(self) -> float:
        """Seconds spent in exchange calls since construction."""
        return self._communication_time

    def free(self):
        """Release persistent requests and datatypes."""
        for lower, upper in self._ghosts:
            lower.free()
            upper.free()
        if self.exchange is not None:
            self.exchange.free()


# ============================================================================
# Constructors
# ============================================================================


def pure_block(
    elements_per_dim: int, dimensionality: int, values: Optional[np.ndarray] = None
) -> Block:
    """Block without ghost regions."""
    return Block(elements_per_dim, dimensionality, values=values)


def composed_block(
    elements_per_dim: int,
    dimensionality: int,
    ghost_width: int,
    neighbors: Optional[Sequence[Optional[Block]]] = None,
    values: Optional[np.ndarray] = None,
) -> Block:
    """Block whose ghosts are copied from in-process neighbors.

    ``neighbors[b.ordinal]`` is adjacent across face ``b``; missing entries
    wrap the block onto itself.
    """
    return Block(
        elements_per_dim,
        dimensionality,
        ghost_width,
        exchange=create_ghost_exchange("direct", neighbors=neighbors),
        values=values,
    )


def communicative_block(
    elements_per_dim: int,
    ghost_width: int,
    topology: CartesianTopology,
    send_mode: str = "custom",
    values: Optional[np.ndarray] = None,
) -> Block:
    """Block whose ghosts come from the neighbor ranks of ``topology``."""
    return Block(
        elements_per_dim,
        topology.dimensionality,
        ghost_width,
        exchange=create_ghost_exchange(send_mode, topology=topology),
        values=values,
    )
