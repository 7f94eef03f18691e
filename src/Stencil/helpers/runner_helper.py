"""MPI worker - invoked via: mpiexec -n X python -m Stencil.helpers.runner_helper '{config}'"""

import json
import logging
import sys

from mpi4py import MPI

from Stencil import BenchmarkParams, StencilBenchmark

logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")

config = json.loads(sys.argv[1])
comm = MPI.COMM_WORLD

params = BenchmarkParams(
    N=config["N"],
    dimensionality=config.get("dimensionality", 3),
    order_of_accuracy=config.get("order_of_accuracy", 8),
    iterations=config.get("iterations", 10),
    warmup_iterations=config.get("warmup_iterations", 1),
    num_workers=config.get("num_workers", 1),
    use_numba=config.get("use_numba", False),
    numba_threads=config.get("numba_threads", 1),
    n_ranks=comm.Get_size(),
    communicator=config.get("communicator", "custom"),
    experiment_name=config.get("experiment_name", "default"),
)

bench = StencilBenchmark(params, comm)
bench.warmup()
bench.run()

# Validation is not timed
if config.get("validate"):
    bench.validate()

# Save results to HDF5
output_path = config.get("output")
if output_path:
    bench.save_hdf5(output_path)

bench.free()

if comm.Get_rank() == 0:
    # Just print the path - runner.py will load the HDF5
    print(f"RESULT:{output_path}")
