"""Distributed stencil benchmark on a periodic unit cube."""

from __future__ import annotations

import logging
import warnings
from dataclasses import asdict

import numpy as np
import pandas as pd
from mpi4py import MPI

from .datastructures import BenchmarkMetrics, BenchmarkParams, RankTimings, RuntimeConfig
from .executor import TaskExecutor
from .grid import communicative_block, pure_block
from .kernels import NumbaKernel, NumPyKernel
from .mpi import CartesianTopology
from .operators import ConstFD8Stencil
from .problems import expected_laplacian, sample_sine_sum

log = logging.getLogger(__name__)


class StencilBenchmark:
    """Apply the FD8 Laplacian repeatedly to a distributed sine sum.

    Every rank owns one ``N^D`` block of a periodic process grid covering
    the unit cube. Each iteration exchanges ghost regions, applies the
    stencil and swaps input and result buffers. The same number of
    iterations of a whole-array reference kernel (NumPy, or Numba with
    ``use_numba``) on each rank's block gives a baseline timing.

    Parameters
    ----------
    params : BenchmarkParams
        Benchmark configuration, identical on every rank.
    comm : MPI.Comm
        MPI communicator.

    Example
    -------
    >>> bench = StencilBenchmark(BenchmarkParams(N=32, iterations=10))
    >>> bench.warmup()
    >>> metrics = bench.run()
    >>> bench.validate()
    >>> bench.save_hdf5("results.h5")
    >>> bench.free()
    """

    def __init__(self, params: BenchmarkParams, comm: MPI.Comm = MPI.COMM_WORLD):
        if params.order_of_accuracy != 8:
            raise ValueError(
                f"Unsupported order of accuracy: {params.order_of_accuracy}. Only 8 is implemented."
            )
        if params.use_numba and params.dimensionality != 3:
            raise ValueError(
                f"The Numba kernel handles 3D only, got dimensionality {params.dimensionality}"
            )
        self.params = params
        self.comm = comm
        self.rank = comm.Get_rank()
        self.config = RuntimeConfig(
            dimensionality=params.dimensionality, num_workers=params.num_workers
        )

        self.topology = CartesianTopology(comm, self.config.dimensionality)
        self.executor = TaskExecutor(self.config.num_workers)

        # Unit cube split into dims[d] blocks of N points along each axis
        n = params.N
        D = self.config.dimensionality
        self.steps = [1.0 / (n * self.topology.proc_grid_size(d)) for d in range(D)]
        self.origin = [
            self.topology.proc_grid_coord(d) * n * self.steps[d] for d in range(D)
        ]
        self.f = sample_sine_sum(n, self.steps, self.origin)

        self.input = communicative_block(
            n, params.extent, self.topology, params.communicator, values=self.f.copy()
        )
        self.result = pure_block(n, D, values=np.zeros_like(self.f))
        self.stencil = ConstFD8Stencil(self.executor, self.steps)
        self.stencil.check_compatible(self.input)

        if params.use_numba:
            self.kernel = NumbaKernel(params.numba_threads)
        else:
            self.kernel = NumPyKernel()

        self.metrics = BenchmarkMetrics()
        self.timeseries = RankTimings()
        self.geometry = self.topology.rank_geometry(n)

    def _step(self) -> tuple[float, float]:
        """One exchange + apply + swap. Returns (compute, communication) seconds."""
        compute0 = self.stencil.computation_time()
        comm0 = self.input.communication_time()

        self.input.start_exchange()
        self.stencil.apply(self.input, self.result)
        self.input.finish_sends()

        values = self.input.values
        self.input.set_values(self.result.values)
        self.result.set_values(values)

        return (
            self.stencil.computation_time() - compute0,
            self.input.communication_time() - comm0,
        )

    def _restore_field(self):
        """Put the initial field back into the input and zero the result."""
        self.input.set_values(self.f.copy())
        self.result.values[:] = 0.0

    def warmup(self, iterations: int = None):
        """Run untimed iterations and compile the reference kernel.

        Restores the initial field and clears the timeseries afterwards.
        """
        if iterations is None:
            iterations = self.params.warmup_iterations
        self.kernel.warmup()
        for _ in range(iterations):
            self._step()
        self._restore_field()
        self.timeseries.clear()

    def _time_reference(self, iterations: int):
        """Apply the reference kernel to this rank's block, treated as periodic."""
        # C order, the layout the kernel was compiled for in warmup
        u = np.ascontiguousarray(self.f.reshape(self.input.sizes(), order="F"))
        for _ in range(iterations):
            t0 = MPI.Wtime()
            self.kernel.apply(u, self.steps[0])
            self.timeseries.reference_times.append(MPI.Wtime() - t0)

    def run(self, iterations: int = None) -> BenchmarkMetrics:
        """Run timed iterations and aggregate metrics on rank 0."""
        if iterations is None:
            iterations = self.params.iterations

        self.comm.Barrier()
        t0 = MPI.Wtime()
        for _ in range(iterations):
            compute, communication = self._step()
            self.timeseries.compute_times.append(compute)
            self.timeseries.communication_times.append(communication)
        wall_time = self.comm.allreduce(MPI.Wtime() - t0, op=MPI.MAX)

        self._time_reference(iterations)
        total_reference = self.comm.reduce(
            sum(self.timeseries.reference_times), op=MPI.MAX, root=0
        )

        total_compute = self.comm.reduce(sum(self.timeseries.compute_times), op=MPI.MAX, root=0)
        total_comm = self.comm.reduce(
            sum(self.timeseries.communication_times), op=MPI.MAX, root=0
        )

        self.metrics.iterations = iterations
        self.metrics.wall_time = wall_time
        if self.rank == 0:
            self.metrics.total_compute_time = total_compute
            self.metrics.total_communication_time = total_comm
            self.metrics.reference_time = total_reference
            self.metrics.observed_numba_threads = self.kernel.observed_numba_threads
            points = self.params.N**self.config.dimensionality * self.comm.Get_size()
            if iterations > 0 and wall_time > 0:
                self.metrics.mlups = points * iterations / (wall_time * 1e6)
            log.info(
                f"{iterations} iterations in {wall_time:.3f}s "
                f"(compute {total_compute:.3f}s, communication {total_comm:.3f}s)"
                + (f", {self.metrics.mlups:.2f} Mlup/s" if self.metrics.mlups else "")
            )
            log.info(
                f"Reference {type(self.kernel).__name__}: {total_reference:.3f}s "
                f"for the same iterations"
            )
        return self.metrics

    def validate(self) -> float:
        """Max abs error of one application against -4 pi^2 f over all ranks.

        Leaves the benchmark in its initial state. Timeseries are kept.
        """
        self._restore_field()
        self.input.start_exchange()
        self.stencil.apply(self.input, self.result)
        self.input.finish_sends()

        expected = expected_laplacian(self.params.N, self.steps, self.origin)
        local_error = float(np.max(np.abs(self.result.values - expected)))
        max_error = self.comm.allreduce(local_error, op=MPI.MAX)

        self.metrics.max_error = max_error
        self._restore_field()
        if self.rank == 0:
            log.info(f"Max error vs analytic Laplacian: {max_error:.3e}")
        return max_error

    def save_hdf5(self, path: str) -> None:
        """Save config, results, timeseries and rank geometry to HDF5 (rank 0 only)."""
        geometries = self.comm.gather(asdict(self.geometry), root=0)
        if self.rank != 0:
            return

        # Combine config and results
        row = {**asdict(self.params), **asdict(self.metrics)}
        df_results = pd.DataFrame([row])
        df_ranks = pd.DataFrame(geometries)

        # Convert object and str columns to avoid PyTables pickle warning
        for df in (df_results, df_ranks):
            for col in df.columns:
                if pd.api.types.is_string_dtype(df[col].dtype):
                    df[col] = df[col].astype(str)

        with warnings.catch_warnings():
            warnings.simplefilter("ignore", pd.errors.PerformanceWarning)
            df_results.to_hdf(path, key="results", mode="w", format="table")
            df_ranks.to_hdf(path, key="ranks", mode="a", format="table")

            ts_data = {k: v for k, v in asdict(self.timeseries).items() if v}
            if ts_data:
                pd.DataFrame(ts_data).to_hdf(path, key="timeseries", mode="a", format="table")

    def free(self):
        """Release MPI resources and worker threads."""
        self.input.free()
        self.result.free()
        self.topology.free()
        self.executor.shutdown()
