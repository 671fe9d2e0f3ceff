"""Shared integer helpers.

- gcd / lcm over lists (exact, arbitrary size ints)
- primitive scaling of a coefficient vector
- alphabetic labels for coefficient variables (A, B, ..., Z, AA, AB, ...)
"""

from __future__ import annotations

from fractions import Fraction
from functools import reduce
from math import gcd
from typing import Iterable, Sequence


# =============================================================================
# Helper functions for integer operations
# =============================================================================
def _lcm(a: int, b: int) -> int:
    return abs(a * b) // gcd(a, b) if a and b else abs(a or b)


def gcd_list(xs: Iterable[int]) -> int:
    """Compute GCD of a list of integers (1 if every entry is zero)."""
    xs = [abs(x) for x in xs if x != 0]
    return reduce(gcd, xs, 0) if xs else 1


def lcm_list(xs: Iterable[int]) -> int:
    """Compute LCM of a list of integers (1 for an empty list)."""
    return reduce(_lcm, xs, 1)


def primitive(coeffs: Sequence[int]) -> tuple[int, ...]:
    """Divide an integer vector by the GCD of its entries."""
    g = gcd_list(coeffs)
    return tuple(c // g for c in coeffs)


def integer_scale(values: Sequence[Fraction]) -> tuple[int, ...]:
    """Scale fractions to the smallest integer vector with the same ratios.

    Multiply by the LCM of the denominators, then divide by the GCD of the
    resulting integers.
    """
    L = lcm_list(v.denominator for v in values)
    ints = [int(v * L) for v in values]
    return primitive(ints)


# =============================================================================
# Variable labels
# =============================================================================
def alphabetic_label(index: int) -> str:
    """Bijective base-26 label: 0 -> A, 25 -> Z, 26 -> AA, 27 -> AB, ..."""
    if index < 0:
        raise ValueError(f"index must be non-negative, got {index}")
    out = []
    n = index + 1
    while n:
        n, r = divmod(n - 1, 26)
        out.append(chr(ord("A") + r))
    return "".join(reversed(out))
