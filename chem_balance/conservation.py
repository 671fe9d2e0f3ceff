"""Composition matrix and conservation checks.

Given molecules M_0..M_{n-1} (reactants, then products) and elements E_0..,
the composition matrix A (nE x n) has

    A[e, j] = +count of e in M_j   for reactants
    A[e, j] = -count of e in M_j   for products

so a coefficient vector c conserves every element iff A c = 0.

We provide:
- composition_matrix(): the integer matrix above
- conserves(): A c == 0
- rational_nullspace(): exact rational basis via sympy
- nullspace_dimension(): how many independent reactions A admits

The nullspace only explains failures (how many independent reactions the
molecule list admits) and lets the brute-force search skip equations with
none; balancing itself never goes through it.

Counts in a formula are unbounded, so every matrix here has dtype=object and
all arithmetic stays in Python ints.
"""

from __future__ import annotations

from fractions import Fraction
from typing import Mapping, Sequence

import numpy as np
from numpy.typing import NDArray

from .equation import elements_in
from .formula import Molecule


def composition_matrix(
    reactants: Mapping[Molecule, int],
    products: Mapping[Molecule, int],
) -> NDArray[np.object_]:
    """Signed element x molecule count matrix.

    Rows follow the reactant elements in order of appearance, then any
    product-only elements.
    """
    elements = elements_in(reactants)
    elements += [e for e in elements_in(products) if e not in elements]
    row = {e: i for i, e in enumerate(elements)}

    molecules = list(reactants) + list(products)
    A = np.zeros((len(elements), len(molecules)), dtype=object)
    for j, molecule in enumerate(molecules):
        sign = 1 if j < len(reactants) else -1
        for element, count in molecule.counts.items():
            A[row[element], j] = sign * count
    return A


def conserves(A: NDArray[np.object_], coeffs: Sequence[int]) -> bool:
    """True when every element total matches between the two sides."""
    c = np.array([int(x) for x in coeffs], dtype=object)
    if c.shape != (A.shape[1],):
        raise ValueError(f"expected {A.shape[1]} coefficients, got shape {c.shape}")
    return all(total == 0 for total in (A @ c).tolist())


def rational_nullspace(A: NDArray[np.object_]) -> list[list[Fraction]]:
    """Compute a rational basis for the right nullspace of A.

    Uses sympy for an exact nullspace on integers.
    """
    import sympy as sp

    M = sp.Matrix(A.tolist())
    out: list[list[Fraction]] = []
    for v in M.nullspace():
        fr = []
        for x in list(v):
            if isinstance(x, sp.Rational):
                fr.append(Fraction(int(x.p), int(x.q)))
            else:
                fr.append(Fraction(str(x)))
        out.append(fr)
    return out


def nullspace_dimension(A: NDArray[np.object_]) -> int:
    """Number of independent coefficient vectors conserving every element.

    0: only the trivial solution; 1: a unique reaction up to scale; more:
    several independent reactions mixed in one equation.
    """
    return len(rational_nullspace(A))
