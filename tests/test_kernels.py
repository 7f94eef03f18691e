"""Tests for the reference Laplacian kernels."""

import numpy as np
import pytest

from Stencil import NumbaKernel, NumPyKernel
from Stencil.problems import sine_sum


def test_kernels_produce_identical_results():
    """NumPy and Numba kernels should produce identical results."""
    rng = np.random.default_rng(0)
    u = rng.standard_normal((12, 10, 8))

    numba_kernel = NumbaKernel(specified_numba_threads=1)
    numba_kernel.warmup()

    np.testing.assert_allclose(
        NumPyKernel().apply(u, 0.1), numba_kernel.apply(u, 0.1), atol=1e-9
    )


@pytest.mark.parametrize("dimensionality", [1, 2, 3])
def test_numpy_kernel_approximates_laplacian(dimensionality):
    n = 16
    h = 1.0 / n
    u = sine_sum(n, h, (0.0,) * dimensionality)
    lap = NumPyKernel().apply(u, h)
    assert np.max(np.abs(lap + 4 * np.pi**2 * u)) < 1e-3


def test_eighth_order_convergence():
    """Error should drop by about 2^8 when h halves."""
    errors = []
    for n in [16, 32]:
        h = 1.0 / n
        u = sine_sum(n, h, (0.0, 0.0))
        errors.append(np.max(np.abs(NumPyKernel().apply(u, h) + 4 * np.pi**2 * u)))
    order = np.log2(errors[0] / errors[1])
    assert 7.5 < order < 8.5, f"Expected ~8, got {order:.2f}"


def test_numba_kernel_rejects_other_dimensions():
    with pytest.raises(AssertionError):
        NumbaKernel().apply(np.zeros((4, 4)), 0.25)


def test_numpy_kernel_takes_no_thread_count():
    kernel = NumPyKernel()
    assert kernel.observed_numba_threads is None
    with pytest.raises(TypeError):
        NumPyKernel(4)
