"""Ghost exchange strategies for blocks with ghost regions.

An exchange cycle is ``start_exchange`` → ``wait_next_received`` (2·D times,
once per face) → ``finish_sends``. The block's interior must not be written
between ``start_exchange`` and ``finish_sends``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional, Sequence

import numpy as np
from mpi4py import MPI

from ..boundary import BoundaryId
from .decomposition import CartesianTopology

if TYPE_CHECKING:
    from ..grid.block import Block

log = logging.getLogger(__name__)


class GhostExchangeStrategy(ABC):
    """Abstract base for ghost exchange strategies."""

    @abstractmethod
    def setup(self, block: "Block"):
        """Bind to ``block`` and prepare requests, buffers or datatypes."""
        pass

    @abstractmethod
    def start_exchange(self, block: "Block"):
        """Begin filling every ghost region of ``block``."""
        pass

    @abstractmethod
    def wait_next_received(self, block: "Block") -> BoundaryId:
        """Block until one more ghost region is filled and return its face."""
        pass

    def finish_sends(self, block: "Block"):
        """Wait until the interior may be overwritten again."""
        pass

    def free(self):
        """Release transport resources."""
        pass


class DirectCopyExchange(GhostExchangeStrategy):
    """Copy boundary slabs straight out of neighbor blocks in the same process.

    ``neighbors[b.ordinal]`` is the block adjacent across face ``b``. Missing
    entries (or no sequence at all) mean the block itself, which makes the
    block periodic along that face. Faces are reported in enumeration order.

    Parameters
    ----------
    neighbors : sequence of Block, optional
        One entry per face, ``2*D`` in total, each ``None`` or a block of the
        same shape.
    """

    def __init__(self, neighbors: Optional[Sequence[Optional["Block"]]] = None):
        self._neighbors = list(neighbors) if neighbors is not None else None
        self._num_received = 0

    def setup(self, block: "Block"):
        assert block.has_ghosts(), "direct copy needs a block with ghost regions"
        num_faces = 2 * block.dimensionality
        if self._neighbors is None:
            self._neighbors = [None] * num_faces
        assert len(self._neighbors) == num_faces, (
            f"need {num_faces} neighbors, got {len(self._neighbors)}"
        )
        for boundary in BoundaryId.all(block.dimensionality):
            self.connect(block, boundary, self._neighbors[boundary.ordinal])
        self._num_received = 0

    def connect(self, block: "Block", boundary: BoundaryId, neighbor: Optional["Block"]):
        """Make ``neighbor`` (``block`` itself if None) adjacent across ``boundary``."""
        neighbor = neighbor if neighbor is not None else block
        assert neighbor.sizes() == block.sizes(), "neighbor block has a different shape"
        assert neighbor.elements_per_dim >= block.ghost_width, (
            "neighbor block is thinner than the ghost regions"
        )
        self._neighbors[boundary.ordinal] = neighbor

    def start_exchange(self, block: "Block"):
        for boundary in BoundaryId.all(block.dimensionality):
            self._copy_face(block, boundary)
        self._num_received = 0

    def _copy_face(self, block: "Block", boundary: BoundaryId):
        d = boundary.dimension
        ghost = block.ghost(boundary)
        source = self._neighbors[boundary.ordinal].plain_face_view()
        target = ghost.face_view()
        # Both cursors sit on the faces adjacent to ours, at the same position
        source.set_face_to_iterate(boundary.opposite())
        target.set_face_to_iterate(boundary.opposite())
        direction = -1 if boundary.is_lower else 1

        while source.is_in_field():
            for i in range(block.ghost_width):
                target.set_current_neighbor(d, i * direction, source.current_neighbor(d, i * direction))
            source.next()
            target.next()

    def wait_next_received(self, block: "Block") -> BoundaryId:
        assert self._num_received < 2 * block.dimensionality, (
            "all ghost regions of this exchange were already received"
        )
        boundary = BoundaryId.from_ordinal(self._num_received)
        self._num_received += 1
        return boundary


class TransportExchange(GhostExchangeStrategy):
    """Exchange slabs with the neighbor ranks of a periodic Cartesian topology.

    Receives are persistent and land in each ghost region's landing buffer.
    Slabs are sent either with MPI derived datatypes describing the strided
    slab in place ("custom") or as contiguous NumPy copies ("numpy").

    Parameters
    ----------
    topology : CartesianTopology
        Process grid providing the communicator and neighbor ranks.
    send_mode : str
        'custom' for MPI derived datatypes (zero-copy),
        'numpy' for buffer copies.
    """

    SEND_MODES = ("custom", "numpy")

    def __init__(self, topology: CartesianTopology, send_mode: str = "custom"):
        if send_mode not in self.SEND_MODES:
            raise ValueError(f"Unknown send mode: {send_mode}. Use 'custom' or 'numpy'.")
        self.topology = topology
        self.send_mode = send_mode
        self.comm = topology.cart_comm

        self._recv_requests: List[MPI.Prequest] = []
        self._send_requests: List[MPI.Request] = []
        self._send_buffers: List[np.ndarray] = []
        self._datatypes: List[MPI.Datatype] = []
        self._num_received = 0

    def setup(self, block: "Block"):
        assert block.has_ghosts(), "transport exchange needs a block with ghost regions"
        assert block.dimensionality == self.topology.dimensionality
        D = block.dimensionality

        # Request 2d+1 fills the lower ghost, request 2d the upper one
        self._recv_requests = [None] * (2 * D)
        for d in range(D):
            lower, upper = block.ghost_pair(d)
            self._recv_requests[2 * d + 1] = lower.init_receive(
                self.comm, self.topology.neighbor_rank(d, True)
            )
            self._recv_requests[2 * d] = upper.init_receive(
                self.comm, self.topology.neighbor_rank(d, False)
            )

        if self.send_mode == "custom":
            self._datatypes = [self._slab_datatype(block, d) for d in range(D)]

        log.debug(
            f"Rank {self.topology.rank}: transport exchange ready "
            f"({self.send_mode}, neighbors {self.topology.neighbors()})"
        )

    @staticmethod
    def _slab_datatype(block: "Block", dim: int) -> MPI.Datatype:
        """Datatype selecting a ``ghost_width``-deep slab orthogonal to ``dim``."""
        itemsize = MPI.DOUBLE.Get_size()
        strides = block.strides()
        dt = MPI.DOUBLE
        intermediates = []
        for j in range(block.dimensionality):
            count = block.ghost_width if j == dim else block.elements_per_dim
            dt = dt.Create_hvector(count, 1, strides[j] * itemsize)
            intermediates.append(dt)
        dt.Commit()
        for tmp in intermediates[:-1]:
            tmp.Free()
        return dt

    def _slab_start(self, block: "Block", dim: int, is_lower: bool) -> int:
        if is_lower:
            return 0
        return (block.elements_per_dim - block.ghost_width) * block.strides()[dim]

    def _numpy_slab(self, block: "Block", dim: int, is_lower: bool) -> np.ndarray:
        field = block.values.reshape(block.sizes(), order="F")
        index = [slice(None)] * block.dimensionality
        w = block.ghost_width
        index[dim] = slice(0, w) if is_lower else slice(block.elements_per_dim - w, None)
        # Flatten dimension-0-fastest, the receiver's storage order
        return np.asarray(field[tuple(index)]).flatten(order="F")

    def start_exchange(self, block: "Block"):
        assert not self._send_requests, "finish_sends was not called after the last exchange"
        MPI.Prequest.Startall(self._recv_requests)
        self._num_received = 0

        for d in range(block.dimensionality):
            # Lower slab fills the lower neighbor's upper ghost, and vice versa
            for is_lower, tag in ((True, 2 * d), (False, 2 * d + 1)):
                dest = self.topology.neighbor_rank(d, is_lower)
                if self.send_mode == "custom":
                    start = self._slab_start(block, d, is_lower)
                    message = [block.values[start:], 1, self._datatypes[d]]
                else:
                    buf = self._numpy_slab(block, d, is_lower)
                    self._send_buffers.append(buf)
                    message = [buf, MPI.DOUBLE]
                self._send_requests.append(self.comm.Isend(message, dest=dest, tag=tag))

    def wait_next_received(self, block: "Block") -> BoundaryId:
        assert self._num_received < len(self._recv_requests), (
            "all ghost regions of this exchange were already received"
        )
        index = MPI.Request.Waitany(self._recv_requests)
        assert index != MPI.UNDEFINED, "no receive is pending"
        self._num_received += 1

        boundary = BoundaryId(index // 2, index % 2 == 1)
        block.ghost(boundary).fetch_buffer_values()
        return boundary

    def finish_sends(self, block: "Block"):
        MPI.Request.Waitall(self._send_requests)
        self._send_requests.clear()
        self._send_buffers.clear()

    def free(self):
        for dt in self._datatypes:
            if dt != MPI.DATATYPE_NULL:
                dt.Free()
        self._datatypes = []
        self._recv_requests = []


def create_ghost_exchange(
    exchange_type: str,
    topology: Optional[CartesianTopology] = None,
    neighbors: Optional[Sequence[Optional["Block"]]] = None,
) -> GhostExchangeStrategy:
    """Factory: 'direct' for in-process copies, 'custom'/'numpy' for MPI transport."""
    if exchange_type == "direct":
        return DirectCopyExchange(neighbors)
    elif exchange_type in TransportExchange.SEND_MODES:
        if topology is None:
            raise ValueError(f"halo exchange '{exchange_type}' needs a CartesianTopology")
        return TransportExchange(topology, exchange_type)
    else:
        raise ValueError(f"Unknown halo_exchange type: {exchange_type}")
