"""
Stencil Benchmark Runner - spawns the MPI benchmark and logs its results.

Usage:
    python run_stencil.py N=32 n_ranks=8
    python run_stencil.py --multirun n_ranks=1,2,4,8 communicator=custom,numpy
"""

import logging

import hydra
from omegaconf import DictConfig

from Stencil import run_benchmark

log = logging.getLogger(__name__)

# Forwarded to the MPI worker as benchmark options
BENCHMARK_KEYS = [
    "dimensionality", "order_of_accuracy", "iterations", "warmup_iterations",
    "num_workers", "communicator", "use_numba", "numba_threads", "validate",
    "experiment_name",
]


@hydra.main(config_path="Experiments/hydra-conf", config_name="config", version_base=None)
def main(cfg: DictConfig) -> None:
    """Entry point - runs the benchmark on cfg.n_ranks MPI processes."""
    n_ranks = cfg.get("n_ranks", 1)
    log.info(f"stencil, N={cfg.N}, n_ranks={n_ranks}, communicator={cfg.get('communicator')}")

    options = {key: cfg.get(key) for key in BENCHMARK_KEYS if cfg.get(key) is not None}
    result = run_benchmark(N=cfg.N, n_ranks=n_ranks, output=cfg.get("output"), **options)

    if "error" in result:
        for line in (result["error"] or "").strip().split("\n"):
            if line:
                log.error(line)
        raise SystemExit(1)

    log.info(
        f"Done: {result['iterations']} iter, time={result['wall_time']:.3f}s"
        + (f", error={result['max_error']:.2e}" if cfg.get("validate") else "")
        + (f", {result['mlups']:.1f} Mlup/s" if result.get("mlups") else "")
        + f", reference={result['reference_time']:.3f}s"
    )


if __name__ == "__main__":
    main()
