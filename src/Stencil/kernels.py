"""Reference Laplacian kernels on whole periodic arrays.

These evaluate the same 8th order Laplacian as ``ConstFD8Stencil`` without
blocks or ghost regions, and serve as a baseline for validation and timing.
"""

import numpy as np
import numba
from numba import njit, prange

from .operators import FD8_COEFFICIENTS

_FD8 = np.array(FD8_COEFFICIENTS, dtype=np.float64)
_EXTENT = (len(FD8_COEFFICIENTS) - 1) // 2


@njit(parallel=True)
def _fd8_laplacian_numba(u: np.ndarray, out: np.ndarray, coeffs: np.ndarray, inv_h2: float):
    """Numba JIT implementation of the periodic 3D FD8 Laplacian."""
    n0, n1, n2 = u.shape
    E = (coeffs.shape[0] - 1) // 2

    for i in prange(n0):
        for j in range(n1):
            for k in range(n2):
                acc = 0.0
                for t in range(coeffs.shape[0]):
                    s = t - E
                    acc += coeffs[t] * (
                        u[(i + s) % n0, j, k] + u[i, (j + s) % n1, k] + u[i, j, (k + s) % n2]
                    )
                out[i, j, k] = acc * inv_h2


class NumPyKernel:
    """NumPy-based FD8 Laplacian for periodic arrays of any dimension."""

    def __init__(self):
        self.observed_numba_threads = None  # Not applicable for NumPy

    def apply(self, u: np.ndarray, h: float) -> np.ndarray:
        """Return the periodic Laplacian of ``u`` with grid spacing ``h``."""
        out = np.zeros_like(u)
        for axis in range(u.ndim):
            for t, c in enumerate(_FD8):
                out += c * np.roll(u, _EXTENT - t, axis=axis)
        return out / (h * h)

    def warmup(self, warmup_size: int = 10):
        """No-op for NumPy kernel."""
        pass


class NumbaKernel:
    """Numba JIT-compiled FD8 Laplacian for periodic 3D arrays."""

    def __init__(self, specified_numba_threads: int = 1):
        # Set requested threads (may be clamped by NUMBA_NUM_THREADS env var)
        if specified_numba_threads is not None:
            numba.set_num_threads(specified_numba_threads)

        # Record what Numba actually reports
        self.observed_numba_threads = numba.get_num_threads()

    def apply(self, u: np.ndarray, h: float) -> np.ndarray:
        """Return the periodic Laplacian of ``u`` with grid spacing ``h``."""
        assert u.ndim == 3, "the Numba kernel handles 3D arrays only"
        out = np.empty_like(u)
        _fd8_laplacian_numba(u, out, _FD8, 1.0 / (h * h))
        return out

    def warmup(self, warmup_size: int = 10):
        """Trigger JIT compilation with a small problem."""
        u = np.random.randn(warmup_size, warmup_size, warmup_size)
        self.apply(u, 1.0 / warmup_size)
