"""Distributed halo-exchanging stencil framework.

Applies finite-difference stencils to N-dimensional blocks distributed over
MPI ranks in a periodic Cartesian process grid. Computation on the interior
of each block overlaps with the exchange of ghost regions; the points next
to a face are finished as soon as that face's ghost region arrives.

Building blocks
---------------
- fastdiv: multiply-shift integer division for index decoding
- iterators: steppers and field views over flat dimension-0-fastest storage
- grid: blocks with optional ghost regions
- mpi: Cartesian topology and ghost exchange strategies (direct/custom/numpy)
- operators: two-phase stencil operators (ConstFD8Stencil)

Harness
-------
- StencilBenchmark: timed repeated application with validation
- run_benchmark: launch the benchmark under mpiexec
"""

from .boundary import BoundaryId
from .datastructures import (
    RuntimeConfig,
    BenchmarkParams,
    BenchmarkMetrics,
    RankGeometry,
    RankTimings,
)
from .executor import TaskExecutor, partition
from .grid import Block, GhostRegion, pure_block, composed_block, communicative_block
from .mpi import CartesianTopology, create_ghost_exchange
from .operators import StencilOperator, MultuncialStencil, ConstFD8Stencil
from .kernels import NumPyKernel, NumbaKernel
from .problems import sample_sine_sum, expected_laplacian, expected_bilaplacian
from .benchmark import StencilBenchmark
from .runner import run_benchmark

__all__ = [
    # Faces
    "BoundaryId",
    # Data structures
    "RuntimeConfig",
    "BenchmarkParams",
    "BenchmarkMetrics",
    "RankGeometry",
    "RankTimings",
    # Execution
    "TaskExecutor",
    "partition",
    # Blocks and exchange
    "Block",
    "GhostRegion",
    "pure_block",
    "composed_block",
    "communicative_block",
    "CartesianTopology",
    "create_ghost_exchange",
    # Operators
    "StencilOperator",
    "MultuncialStencil",
    "ConstFD8Stencil",
    # Reference kernels
    "NumPyKernel",
    "NumbaKernel",
    # Problems
    "sample_sine_sum",
    "expected_laplacian",
    "expected_bilaplacian",
    # Harness
    "StencilBenchmark",
    "run_benchmark",
]
