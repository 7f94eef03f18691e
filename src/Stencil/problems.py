"""Test problem: a sum of sines, periodic on the unit cube."""

from __future__ import annotations

from typing import Sequence, Union

import numpy as np

Step = Union[float, Sequence[float]]


def create_block_grid(n: int, step: Step, origin: Sequence[float]) -> list[np.ndarray]:
    """Coordinate arrays of an ``n^D`` block whose first point is ``origin``.

    Arrays are indexed ``[i_0, i_1, ...]`` with ``x_d = origin[d] + i_d * step[d]``;
    a scalar ``step`` applies to every dimension.
    """
    steps = np.broadcast_to(np.asarray(step, dtype=np.float64), (len(origin),))
    axes = [o + h * np.arange(n) for o, h in zip(origin, steps)]
    return np.meshgrid(*axes, indexing="ij")


def sine_sum(n: int, step: Step, origin: Sequence[float]) -> np.ndarray:
    """f = sum_d sin(2 pi x_d) on the block, as a D-dimensional array."""
    return sum(np.sin(2 * np.pi * X) for X in create_block_grid(n, step, origin))


def sample_sine_sum(n: int, step: Step, origin: Sequence[float]) -> np.ndarray:
    """f = sum_d sin(2 pi x_d), flat in block storage order (dimension 0 fastest)."""
    return sine_sum(n, step, origin).ravel(order="F")


def expected_laplacian(n: int, step: Step, origin: Sequence[float]) -> np.ndarray:
    """Laplacian of the sine sum: -4 pi^2 f, flat in block storage order."""
    return -4 * np.pi**2 * sample_sine_sum(n, step, origin)


def expected_bilaplacian(n: int, step: Step, origin: Sequence[float]) -> np.ndarray:
    """Laplacian applied twice: 16 pi^4 f, flat in block storage order."""
    return 16 * np.pi**4 * sample_sine_sum(n, step, origin)
