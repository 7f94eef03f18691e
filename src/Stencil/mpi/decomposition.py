"""Periodic process grid with MPI Cartesian topology."""

from __future__ import annotations

from mpi4py import MPI

from ..boundary import BoundaryId
from ..datastructures import RankGeometry


class CartesianTopology:
    """Arranges the ranks of ``comm`` in a periodic D-dimensional grid.

    Every rank owns one block of equal size. Because the grid is periodic,
    every rank has a neighbor on both sides of every dimension (possibly
    itself, e.g. on a single rank).

    Parameters
    ----------
    comm : MPI.Comm
        MPI communicator.
    dimensionality : int
        Number of grid dimensions D.
    """

    def __init__(self, comm: MPI.Comm = MPI.COMM_WORLD, dimensionality: int = 3):
        self.comm = comm
        self.rank = comm.Get_rank()
        self.size = comm.Get_size()
        self.dimensionality = dimensionality

        self.dims = list(MPI.Compute_dims(self.size, dimensionality))
        self.cart_comm = comm.Create_cart(
            dims=self.dims, periods=[True] * dimensionality, reorder=False
        )
        self.coords = tuple(self.cart_comm.Get_coords(self.cart_comm.Get_rank()))

        # (below, above) per dimension
        self._neighbors = [self.cart_comm.Shift(d, 1) for d in range(dimensionality)]

    def proc_grid_coord(self, dim: int) -> int:
        return self.coords[dim]

    def proc_grid_size(self, dim: int) -> int:
        return self.dims[dim]

    def neighbor_rank(self, dim: int, is_lower: bool) -> int:
        """Rank owning the block adjacent to this rank's face (dim, is_lower)."""
        below, above = self._neighbors[dim]
        return below if is_lower else above

    def neighbors(self) -> dict[str, int]:
        """Neighbor ranks keyed by face name, e.g. ``x0_lower``."""
        return {
            str(b): self.neighbor_rank(b.dimension, b.is_lower)
            for b in BoundaryId.all(self.dimensionality)
        }

    def rank_geometry(self, elements_per_dim: int) -> RankGeometry:
        return RankGeometry(
            rank=self.rank,
            proc_coords=self.coords,
            proc_dims=tuple(self.dims),
            neighbors=self.neighbors(),
            elements_per_dim=elements_per_dim,
        )

    def free(self) -> None:
        if self.cart_comm != MPI.COMM_NULL:
            self.cart_comm.Free()
