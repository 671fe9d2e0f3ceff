"""Bounded exhaustive search for balancing coefficients.

Molecules are ordered reactants then products; each position is given a
coefficient 1..limit in turn (backtracking), and only at the final position
are the element totals compared. Cost is limit**n, so this is a correctness
fallback for small equations, not a performance path.

The bound is an accepted incompleteness: an equation whose minimal
coefficients exceed it is reported as not found. Equations whose
composition matrix has a trivial nullspace are rejected before searching.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from .conservation import composition_matrix, nullspace_dimension
from .formula import Molecule
from .utils import primitive

DEFAULT_LIMIT = 15

Column = tuple[int, ...]


def _search(columns: Sequence[Column], limit: int) -> list[int] | None:
    n = len(columns)
    coeffs = [0] * n

    def place(position: int, partial: Column) -> bool:
        col = columns[position]
        last = position == n - 1
        for c in range(1, limit + 1):
            coeffs[position] = c
            total = tuple(p + c * x for p, x in zip(partial, col))
            if last:
                if not any(total):
                    return True
            elif place(position + 1, total):
                return True
        return False

    if place(0, (0,) * len(columns[0])):
        return coeffs
    return None


def brute_force(
    reactants: Mapping[Molecule, int],
    products: Mapping[Molecule, int],
    limit: int = DEFAULT_LIMIT,
) -> tuple[int, ...] | None:
    """Search coefficients in [1, limit] for every molecule.

    Args:
      reactants, products: molecule maps (multipliers are ignored)
      limit: largest coefficient tried for any molecule

    Returns:
      primitive coefficients (reactants then products), or None
    """
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")

    A = composition_matrix(reactants, products)
    if A.shape[1] == 0 or nullspace_dimension(A) == 0:
        return None
    columns = [tuple(int(x) for x in A[:, j]) for j in range(A.shape[1])]

    found = _search(columns, limit)
    if found is None:
        return None
    return primitive(found)
