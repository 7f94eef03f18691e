"""Ghost regions: copies of a neighbor's boundary slab next to a block face."""

from __future__ import annotations

from typing import Optional

import numpy as np
from mpi4py import MPI

from ..boundary import BoundaryId
from ..iterators import FaceFieldView, FieldView, face_field_view, whole_field_view


class GhostRegion:
    """Halo of depth ``width`` on the far side of one face of a block.

    The region is a block of its own with ``width`` elements along the face's
    dimension and ``elements_per_dim`` along every other dimension, stored in
    the same dimension-0-fastest order as the block interior. Its element at
    ``width - 1`` along the dimension touches a lower face; its element at 0
    touches an upper face.

    Parameters
    ----------
    boundary : BoundaryId
        Face of the owning block this region sits next to.
    elements_per_dim : int
        Interior size of the owning block in every dimension.
    width : int
        Halo depth, at least the stencil extent.
    dimensionality : int
        Number of dimensions D.
    values : np.ndarray, optional
        Backing storage, allocated (zeroed) if not given.
    """

    def __init__(
        self,
        boundary: BoundaryId,
        elements_per_dim: int,
        width: int,
        dimensionality: int,
        values: Optional[np.ndarray] = None,
    ):
        assert 0 <= boundary.dimension < dimensionality
        assert width >= 1, f"ghost width must be positive, got {width}"
        self.boundary = boundary
        self.width = width
        self.elements_per_dim = elements_per_dim
        self.dimensionality = dimensionality

        sizes = [elements_per_dim] * dimensionality
        sizes[boundary.dimension] = width
        self._sizes = tuple(sizes)
        self.num_elements = int(np.prod(self._sizes))

        if values is None:
            values = np.zeros(self.num_elements, dtype=np.float64)
        assert values.shape == (self.num_elements,), (
            f"ghost region {boundary} needs {self.num_elements} values, got {values.shape}"
        )
        self.values = values

        # Receives land here; fetch_buffer_values copies into values
        self.landing_buffer = np.zeros(self.num_elements, dtype=np.float64)
        self.request: Optional[MPI.Prequest] = None

    def sizes(self) -> tuple[int, ...]:
        return self._sizes

    def size(self, dim: int) -> int:
        return self._sizes[dim]

    @property
    def tag(self) -> int:
        """Message tag of the slab destined for this region."""
        return 2 * self.boundary.dimension + (1 if self.boundary.is_lower else 0)

    def inner_view(self, task_id: int = 0, num_tasks: int = 1) -> FieldView:
        return whole_field_view(self._sizes, self.values, 0, task_id, num_tasks)

    def face_view(self) -> FaceFieldView:
        return face_field_view(self._sizes, self.values)

    def init_receive(self, comm: MPI.Comm, source_rank: int) -> MPI.Prequest:
        """Create the persistent receive of this region's slab from ``source_rank``."""
        assert self.request is None, f"receive for {self.boundary} already initialised"
        self.request = comm.Recv_init(
            [self.landing_buffer, MPI.DOUBLE], source=source_rank, tag=self.tag
        )
        return self.request

    def fetch_buffer_values(self) -> None:
        """Copy the last received slab into the region's values."""
        self.values[:] = self.landing_buffer

    def free(self) -> None:
        if self.request is not None:
            self.request.Free()
            self.request = None

    def __repr__(self) -> str:
        return f"GhostRegion({self.boundary}, sizes={self._sizes})"
