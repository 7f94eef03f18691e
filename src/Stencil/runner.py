"""Run the stencil benchmark via mpiexec subprocess."""

import json
import subprocess
import sys
import tempfile
from pathlib import Path


def run_benchmark(N: int, n_ranks: int = 1, output: str = None, **kwargs) -> dict:
    """Run the benchmark with N points per block on n_ranks MPI processes.

    Parameters
    ----------
    N : int
        Points per dimension of each rank's block
    n_ranks : int
        Number of MPI ranks
    output : str, optional
        Path to save HDF5 results (uses temp file if not provided)
    **kwargs
        Extra options: dimensionality, iterations, warmup_iterations,
        num_workers, communicator, use_numba, numba_threads, validate

    Returns
    -------
    dict
        Config and metrics, plus ``mean_<series>_time`` per-iteration means
        of rank 0's timeseries and the process grid ``proc_dims``
        (or 'error' key on failure)
    """
    import pandas as pd

    # Use temp file if no output path specified
    use_temp = output is None
    if use_temp:
        tmp = tempfile.NamedTemporaryFile(suffix=".h5", delete=False)
        output = tmp.name
        tmp.close()

    config = {"N": N, "output": output, **kwargs}
    cmd = [
        "mpiexec", "-n", str(n_ranks),
        sys.executable, "-m", "Stencil.helpers.runner_helper", json.dumps(config),
    ]

    proc = subprocess.run(cmd, capture_output=True, text=True)

    if proc.returncode != 0:
        return {"error": proc.stderr}

    # Load results from HDF5
    if not Path(output).exists():
        return {"error": "No output file created", "stderr": proc.stderr}

    result = pd.read_hdf(output, key="results").iloc[0].to_dict()

    with pd.HDFStore(output, mode="r") as store:
        if "/timeseries" in store.keys():
            timeseries = store["timeseries"]
            for column in timeseries.columns:
                result[f"mean_{column.removesuffix('s')}"] = float(timeseries[column].mean())
        result["proc_dims"] = store["ranks"]["proc_dims"].iloc[0]

    # Clean up temp file if we created one
    if use_temp:
        Path(output).unlink(missing_ok=True)

    return result
