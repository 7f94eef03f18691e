"""End-to-end tests of the two-phase stencil operators on periodic blocks."""

import numpy as np
import pytest

from Stencil import (
    ConstFD8Stencil,
    MultuncialStencil,
    NumPyKernel,
    TaskExecutor,
    composed_block,
    expected_bilaplacian,
    expected_laplacian,
    pure_block,
    sample_sine_sum,
)

N, D = 10, 3
H = 1.0 / N
ORIGIN = (0.0,) * D


@pytest.fixture(params=[1, 3], ids=["1worker", "3workers"])
def executor(request):
    with TaskExecutor(request.param) as ex:
        yield ex


def apply_once(stencil, input_block, result_block):
    input_block.start_exchange()
    stencil.apply(input_block, result_block)
    input_block.finish_sends()


class TestConstFD8Stencil:
    """FD8 Laplacian of sum_d sin(2 pi x_d) on a single periodic block."""

    def test_laplacian_and_bilaplacian(self, executor):
        f = sample_sine_sum(N, H, ORIGIN)
        stencil = ConstFD8Stencil(executor, [H] * D)
        assert stencil.extent == 4

        first = composed_block(N, D, 4, values=f.copy())
        second = composed_block(N, D, 4, values=np.zeros_like(f))
        third = pure_block(N, D, values=np.zeros_like(f))

        apply_once(stencil, first, second)
        assert np.max(np.abs(second.values - expected_laplacian(N, H, ORIGIN))) < 0.002

        apply_once(stencil, second, third)
        assert np.max(np.abs(third.values - expected_bilaplacian(N, H, ORIGIN))) < 0.15

        assert stencil.computation_time() > 0.0

    def test_matches_numpy_reference_kernel(self, executor):
        rng = np.random.default_rng(42)
        f = rng.standard_normal(N**D)
        stencil = ConstFD8Stencil(executor, [H] * D)
        block = composed_block(N, D, 4, values=f)
        result = pure_block(N, D, values=np.zeros_like(f))
        apply_once(stencil, block, result)

        reference = NumPyKernel().apply(f.reshape((N,) * D, order="F"), H)
        np.testing.assert_allclose(result.values, reference.ravel(order="F"), atol=1e-8)

    def test_wider_ghosts_are_accepted(self, executor):
        f = sample_sine_sum(N, H, ORIGIN)
        block = composed_block(N, D, 5, values=f)
        result = pure_block(N, D, values=np.zeros_like(f))
        apply_once(ConstFD8Stencil(executor, [H] * D), block, result)
        assert np.max(np.abs(result.values - expected_laplacian(N, H, ORIGIN))) < 0.002


class TestMultuncialStencil:
    """Stencils with arbitrary constant weight tables."""

    def test_three_point_stencils_per_dimension(self, executor):
        n = 6
        rng = np.random.default_rng(7)
        f = rng.standard_normal(n * n)
        weights = [[1.0, -2.0, 1.0], [0.5, 3.0, -0.25]]
        block = composed_block(n, 2, 1, values=f)
        result = pure_block(n, 2, values=np.zeros_like(f))
        apply_once(MultuncialStencil(executor, weights), block, result)

        u = f.reshape((n, n), order="F")
        expected = np.zeros_like(u)
        for axis, (left, centre, right) in enumerate(weights):
            expected += left * np.roll(u, 1, axis) + centre * u + right * np.roll(u, -1, axis)
        np.testing.assert_allclose(result.values, expected.ravel(order="F"), atol=1e-12)

    def test_one_dimensional_wide_stencil(self, executor):
        n = 8
        f = np.arange(n, dtype=np.float64) ** 2
        weights = [[1.0, 2.0, 3.0, 4.0, 5.0]]
        block = composed_block(n, 1, 2, values=f)
        result = pure_block(n, 1, values=np.zeros_like(f))
        apply_once(MultuncialStencil(executor, weights), block, result)

        expected = sum(w * np.roll(f, 2 - i) for i, w in enumerate(weights[0]))
        np.testing.assert_allclose(result.values, expected)

    @pytest.mark.parametrize("weights", [[[1.0, 2.0]], [[1.0]], [1.0, 2.0, 3.0]])
    def test_rejects_malformed_weight_table(self, executor, weights):
        with pytest.raises(ValueError):
            MultuncialStencil(executor, weights)


class TestPreconditions:
    """Configuration errors are reported before any computation."""

    def test_ghost_width_smaller_than_extent(self, executor):
        f = sample_sine_sum(N, H, ORIGIN)
        block = composed_block(N, D, 2, values=f)
        result = pure_block(N, D, values=np.zeros_like(f))
        with pytest.raises(ValueError, match="exceeds ghost width"):
            ConstFD8Stencil(executor, [H] * D).apply(block, result)
        assert np.all(result.values == 0.0)

    def test_block_without_ghosts(self, executor):
        f = sample_sine_sum(N, H, ORIGIN)
        with pytest.raises(ValueError):
            ConstFD8Stencil(executor, [H] * D).apply(pure_block(N, D, values=f), pure_block(N, D, values=f))

    def test_dimension_mismatch(self, executor):
        f = np.zeros(N * N)
        block = composed_block(N, 2, 4, values=f)
        with pytest.raises(ValueError, match="dimensions"):
            ConstFD8Stencil(executor, [H] * D).apply(block, pure_block(N, 2, values=f.copy()))

    def test_missing_values_is_a_contract_violation(self, executor):
        block = composed_block(N, D, 4, values=sample_sine_sum(N, H, ORIGIN))
        with pytest.raises(AssertionError):
            ConstFD8Stencil(executor, [H] * D).apply(block, pure_block(N, D))
