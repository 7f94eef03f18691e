"""Multiply-shift constants replacing integer division by a fixed divisor.

Decoding a multi-index coordinate from a flat index needs one division by a
stride and one modulo by a size for every query. Both divisors are fixed for
the lifetime of a stepper, so they are replaced by the unsigned magic-number
scheme from Hacker's Delight (H. S. Warren, 2nd ed., fig. 10-2):

    x // d == (((x * M) >> 32) + x * a) >> s

for every unsigned 32 bit ``x``. All intermediate arithmetic wraps modulo
2**32, emulated here by masking Python integers with ``U32_MASK``.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

U32_MASK = 0xFFFFFFFF
_TWO_POW_31 = 0x80000000
_TWO_POW_31_MINUS_1 = 0x7FFFFFFF


def _u32(x: int) -> int:
    """Wrap to an unsigned 32 bit value."""
    return x & U32_MASK


@dataclass(frozen=True)
class FastDivisionConstant:
    """Magic number ``M``, add indicator ``a`` and shift amount ``s``."""

    M: int
    a: int
    s: int

    def divide(self, x: int) -> int:
        """Return ``x // divisor`` for an unsigned 32 bit ``x``."""
        # x * M is a 64 bit product; only its high word is kept
        return (((x * self.M) >> 32) + x * self.a) >> self.s

    def modulo(self, x: int, divisor: int) -> int:
        """Return ``x % divisor`` using one fast division."""
        return x - divisor * self.divide(x)

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.M, self.a, self.s)


@lru_cache(maxsize=None)
def compute(divisor: int) -> FastDivisionConstant:
    """Compute the fast division constant for an unsigned 32 bit divisor.

    Parameters
    ----------
    divisor : int
        Divisor in ``[0, 2**32)``. The divisor 0 is accepted (zero-sized
        fields produce it) and returns the sentinel ``(0x7FFFFFFF, 0, 0)``,
        which must never be used for an actual division.

    Returns
    -------
    FastDivisionConstant
        Constants such that ``x // divisor`` equals
        ``(((x*M) >> 32) + a*x) >> s`` for every unsigned 32 bit ``x``.
    """
    d = _u32(divisor)
    if d == 0:
        return FastDivisionConstant(_TWO_POW_31_MINUS_1, 0, 0)

    a = 0
    nc = _u32(-1 - _u32(-d) % d)
    p = 31
    q1 = _TWO_POW_31 // nc  # 2**p / nc
    r1 = _u32(_TWO_POW_31 - q1 * nc)  # rem(2**p, nc)
    q2 = _TWO_POW_31_MINUS_1 // d  # (2**p - 1) / d
    r2 = _u32(_TWO_POW_31_MINUS_1 - q2 * d)  # rem(2**p - 1, d)
    while True:
        p += 1
        if r1 >= _u32(nc - r1):
            q1 = _u32(2 * q1 + 1)
            r1 = _u32(2 * r1 - nc)
        else:
            q1 = _u32(2 * q1)
            r1 = _u32(2 * r1)
        if _u32(r2 + 1) >= _u32(d - r2):
            if q2 >= _TWO_POW_31_MINUS_1:
                a = 1
            q2 = _u32(2 * q2 + 1)
            r2 = _u32(2 * r2 + 1 - d)
        else:
            if q2 >= _TWO_POW_31:
                a = 1
            q2 = _u32(2 * q2)
            r2 = _u32(2 * r2 + 1)
        delta = _u32(d - 1 - r2)
        if not (p < 64 and (q1 < delta or (q1 == delta and r1 == 0))):
            break

    return FastDivisionConstant(_u32(q2 + 1), a, p - 32)
