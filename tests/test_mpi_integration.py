"""MPI integration tests - spawn actual MPI processes via run_benchmark."""

import shutil

import pytest

from Stencil import run_benchmark

pytestmark = pytest.mark.skipif(shutil.which("mpiexec") is None, reason="mpiexec not available")


# Run the benchmark once per config, reuse results
@pytest.fixture(scope="module")
def mpi_results():
    """Run all MPI configurations once."""
    return {
        comm: run_benchmark(
            N=12, n_ranks=2, iterations=2, communicator=comm, validate=True
        )
        for comm in ["numpy", "custom"]
    }


@pytest.mark.parametrize("comm", ["numpy", "custom"])
def test_communicators_work(mpi_results, comm):
    """Both send modes should run and match the analytic Laplacian."""
    r = mpi_results[comm]
    assert "error" not in r, f"Failed: {r.get('error')}"
    assert r["n_ranks"] == 2
    assert r["max_error"] < 0.002


def test_communicators_same_result(mpi_results):
    """Send modes move the same bytes, so the error is identical."""
    assert mpi_results["numpy"]["max_error"] == mpi_results["custom"]["max_error"]


@pytest.mark.parametrize("comm", ["numpy", "custom"])
def test_timeseries_and_grid_loaded(mpi_results, comm):
    """Per-iteration means come from rank 0's timeseries; two ranks split dimension 0."""
    r = mpi_results[comm]
    assert "error" not in r, f"Failed: {r.get('error')}"
    assert r["mean_compute_time"] > 0
    assert r["mean_communication_time"] > 0
    assert r["mean_reference_time"] > 0
    assert r["mean_compute_time"] * r["iterations"] <= r["total_compute_time"] + 1e-12
    assert r["proc_dims"] == str((2, 1, 1))
