"""Composition matrix and nullspace tests."""

from __future__ import annotations

from fractions import Fraction

import pytest

from chem_balance.conservation import (
    composition_matrix,
    conserves,
    nullspace_dimension,
    rational_nullspace,
)
from chem_balance.equation import parse_equation
from chem_balance.utils import integer_scale


def _matrix(text):
    eq = parse_equation(text)
    return composition_matrix(eq.reactants, eq.products)


def test_composition_matrix_signs():
    A = _matrix("H2 + O2 -> H2O")
    # rows H, O; columns H2, O2, H2O
    assert A.tolist() == [
        [2, 0, -2],
        [0, 2, -1],
    ]
    assert all(type(x) is int for x in A.flat)


def test_conserves():
    A = _matrix("H2 + O2 -> H2O")
    assert conserves(A, [2, 1, 2])
    assert not conserves(A, [1, 1, 1])
    with pytest.raises(ValueError):
        conserves(A, [2, 1])


def test_conserves_beyond_64_bits():
    A = _matrix("H10000000000 + O10000000001 -> H2O")
    coeffs = [10000000001, 5000000000, 50000000005000000000]
    assert coeffs[2] > 2**63
    assert conserves(A, coeffs)
    assert not conserves(A, [10000000001, 5000000000, 50000000005000000001])


def test_unique_reaction_basis():
    A = _matrix("Cu + HNO3 -> Cu(NO3)2 + NO + H2O")
    basis = rational_nullspace(A)
    assert len(basis) == 1
    assert all(isinstance(x, Fraction) for x in basis[0])
    v = integer_scale(basis[0])
    if v[0] < 0:
        v = tuple(-x for x in v)
    assert v == (3, 8, 3, 2, 4)


@pytest.mark.parametrize(
    "text, dim",
    [
        ("H2 + O2 -> H2O", 1),
        ("H2O -> H2O2", 0),
        ("H2 + O2 -> H2O + H2O2", 2),
        ("H20000000000000000000 + O2 -> H2O", 1),
    ],
)
def test_nullspace_dimension(text, dim):
    assert nullspace_dimension(_matrix(text)) == dim
