"""Data structures for runtime configuration and benchmark results.

Architecture: Params vs Metrics × Global vs Local, as for the solvers

                 Params (input/config)         Metrics (output/results)
                 ─────────────────────         ────────────────────────
Global           RuntimeConfig,                BenchmarkMetrics
(same across     BenchmarkParams               wall_time, mlups,
ranks / agg)     N, iterations, workers...     max_error, reference_time...

Local            RankGeometry                  RankTimings
(per-rank)       rank, coords, neighbors       compute_times[],
                                               communication_times[],
                                               reference_times[]
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


# ============================================================================
# Runtime
# ============================================================================


@dataclass(frozen=True)
class RuntimeConfig:
    """Process-wide settings, built once at start-up and passed explicitly."""

    dimensionality: int = 3
    num_workers: int = 1

    def __post_init__(self):
        if self.dimensionality < 1:
            raise ValueError(f"dimensionality must be positive, got {self.dimensionality}")
        if self.num_workers < 1:
            raise ValueError(f"num_workers must be positive, got {self.num_workers}")


# ============================================================================
# Global (identical across ranks, or aggregated on rank 0)
# ============================================================================


@dataclass
class BenchmarkParams:
    """Benchmark configuration. Identical across all MPI ranks."""

    # Points per dimension of each rank's block
    N: int

    dimensionality: int = 3
    order_of_accuracy: int = 8
    iterations: int = 10
    warmup_iterations: int = 1
    num_workers: int = 1

    # Reference kernel timed alongside the stencil
    use_numba: bool = False
    numba_threads: int = 1

    # Parallelization
    n_ranks: int = 1
    communicator: str = "custom"  # "custom" | "numpy"

    experiment_name: str = "default"

    # Auto-detected at runtime (not from config)
    environment: str = field(init=False)

    def __post_init__(self):
        self.environment = (
            "hpc"
            if os.environ.get("LSB_JOBID") or os.environ.get("SLURM_JOB_ID")
            else "local"
        )

    @property
    def extent(self) -> int:
        """Half-width of the stencil, and therefore of each ghost region."""
        return self.order_of_accuracy // 2


@dataclass
class BenchmarkMetrics:
    """Aggregated results, computed on rank 0."""

    iterations: int = 0
    wall_time: Optional[float] = None

    # Timing breakdown (max over ranks of the per-rank sums)
    total_compute_time: Optional[float] = None
    total_communication_time: Optional[float] = None

    # Validation of the first application against the analytic Laplacian
    max_error: Optional[float] = None

    # Million Lattice Updates per Second (all ranks)
    mlups: Optional[float] = None

    # Same iterations with the whole-array reference kernel on each rank's block
    reference_time: Optional[float] = None
    observed_numba_threads: Optional[int] = None


# ============================================================================
# Local (per-rank)
# ============================================================================


@dataclass
class RankGeometry:
    """Placement of one rank's block in the periodic process grid."""

    rank: int
    proc_coords: Tuple[int, ...]
    proc_dims: Tuple[int, ...]
    neighbors: Dict[str, int]
    elements_per_dim: int


@dataclass
class RankTimings:
    """Per-rank timeseries, accumulated during the benchmark."""

    compute_times: List[float] = field(default_factory=list)
    communication_times: List[float] = field(default_factory=list)
    reference_times: List[float] = field(default_factory=list)

    def clear(self):
        """Clear all timeseries data."""
        self.compute_times.clear()
        self.communication_times.clear()
        self.reference_times.clear()
