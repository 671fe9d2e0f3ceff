"""Rational solver tests.

Key tests:
- substitution and elimination primitives on hand-built equations
- seed retry (first seed stalls, second succeeds via elimination)
- degenerate elimination and inconsistent systems are reported, not raised
"""

from __future__ import annotations

from fractions import Fraction

import pytest

from chem_balance.elements import lookup_element
from chem_balance.equation import parse_equation
from chem_balance.formula import Molecule
from chem_balance.linear import CoefficientVariable, LinearEquation, StoichiometricSystem, build_system
from chem_balance.solver import (
    Degenerate,
    Solved,
    Unsolved,
    eliminate,
    normalize_coefficients,
    solve_from_seed,
    solve_linear_system,
    substitute,
)


X = lookup_element("C")
Y = lookup_element("H")
Z = lookup_element("O")


def _system_for(text):
    eq = parse_equation(text)
    return build_system(eq.reactants, eq.products)


def _abstract_system(equations, n):
    # molecules are irrelevant to the solver; reuse one placeholder
    m = Molecule.from_formula("C")
    variables = tuple(CoefficientVariable(i, m, False) for i in range(n))
    return StoichiometricSystem(variables=variables, equations=tuple(equations))


def test_substitute_unknown_on_either_side():
    # 2A = 2C  with A known
    eq = LinearEquation.from_terms(Y, [(0, 2)], [(2, 2)])
    assert substitute(eq, {0: Fraction(1)}) == (2, Fraction(1))

    # 2B = C with C known
    eq = LinearEquation.from_terms(Z, [(1, 2)], [(2, 1)])
    assert substitute(eq, {2: Fraction(1)}) == (1, Fraction(1, 2))


def test_substitute_requires_one_unknown():
    eq = LinearEquation.from_terms(Z, [(1, 2)], [(2, 2), (3, 1)])
    with pytest.raises(ValueError):
        substitute(eq, {})


def test_eliminate():
    # x0 + x2 = x3 and 3x0 + x2 = 2x3 with x0 = 1  ->  x2 = 1, x3 = 2
    first = LinearEquation.from_terms(X, [(0, 1), (2, 1)], [(3, 1)])
    second = LinearEquation.from_terms(Y, [(0, 3), (2, 1)], [(3, 2)])
    result = eliminate(first, second, {0: Fraction(1)})
    assert isinstance(result, Solved)
    assert dict(result.values) == {2: Fraction(1), 3: Fraction(2)}


def test_eliminate_degenerate():
    first = LinearEquation.from_terms(X, [(0, 1), (2, 1)], [(3, 1)])
    second = LinearEquation.from_terms(Y, [(0, 2), (2, 2)], [(3, 2)])
    result = eliminate(first, second, {0: Fraction(1)})
    assert isinstance(result, Degenerate)
    assert result.pair == (2, 3)
    assert result.elements == ("C", "H")


def test_eliminate_requires_shared_pair():
    first = LinearEquation.from_terms(X, [(0, 1), (2, 1)], [(3, 1)])
    second = LinearEquation.from_terms(Y, [(0, 1), (1, 1)], [(3, 1)])
    with pytest.raises(ValueError):
        eliminate(first, second, {0: Fraction(1)})


def test_propagation_from_single_seed():
    system = _system_for("C2H6 + O2 -> CO2 + H2O")
    outcome = solve_linear_system(system)
    assert isinstance(outcome, Solved)
    assert dict(outcome.values) == {0: 1, 1: Fraction(7, 2), 2: 2, 3: 3}
    assert normalize_coefficients(outcome.values) == {0: 2, 1: 7, 2: 4, 3: 6}


def test_first_seed_stalls_second_uses_elimination():
    system = _system_for("Cu + HNO3 -> Cu(NO3)2 + NO + H2O")
    cu, h, n, o = system.equations

    # seeding from Cu leaves H (B, E) and N (B, D): no shared pair
    stalled = solve_from_seed(system, cu)
    assert isinstance(stalled, Unsolved)
    assert dict(stalled.values) == {0: 1, 2: 1}

    # seeding from H leaves N and O sharing (C, D)
    solved = solve_from_seed(system, h)
    assert isinstance(solved, Solved)
    assert solved.values[3] == Fraction(1, 4)
    assert solved.values[2] == Fraction(3, 8)

    outcome = solve_linear_system(system)
    assert isinstance(outcome, Solved)
    assert normalize_coefficients(outcome.values) == {0: 3, 1: 8, 2: 3, 3: 2, 4: 4}


def test_degenerate_pair_ends_the_attempt():
    seed = LinearEquation.from_terms(X, [(0, 1)], [(1, 1)])
    first = LinearEquation.from_terms(Y, [(0, 1), (2, 1)], [(3, 1)])
    second = LinearEquation.from_terms(Z, [(0, 2), (2, 2)], [(3, 2)])
    system = _abstract_system([seed, first, second], 4)

    outcome = solve_linear_system(system)
    assert isinstance(outcome, Degenerate)
    assert outcome.pair == (2, 3)


def test_degenerate_seed_moves_on_to_next_seed():
    w = lookup_element("N")
    first_seed = LinearEquation.from_terms(X, [(0, 1)], [(1, 1)])
    first = LinearEquation.from_terms(Y, [(0, 1), (2, 1)], [(3, 1)])
    second = LinearEquation.from_terms(Z, [(0, 2), (2, 2)], [(3, 2)])
    second_seed = LinearEquation.from_terms(w, [(2, 2)], [(3, 1)])
    system = _abstract_system([first_seed, first, second, second_seed], 4)

    # from A = B, the Y and Z equations are multiples in (C, D)
    stalled = solve_from_seed(system, first_seed)
    assert isinstance(stalled, Degenerate)
    assert stalled.pair == (2, 3)

    # from 2C = D everything follows by substitution
    outcome = solve_linear_system(system)
    assert isinstance(outcome, Solved)
    assert normalize_coefficients(outcome.values) == {0: 1, 1: 1, 2: 1, 3: 2}


def test_inconsistent_system_is_unsolved():
    # H2O -> H2O2 only has the trivial solution
    system = _system_for("H2O -> H2O2")
    outcome = solve_linear_system(system)
    assert isinstance(outcome, Unsolved)
    assert "inconsistent" in outcome.reason


def test_no_two_term_equation():
    system = _system_for("CO + O2 -> CO2 + C")
    outcome = solve_linear_system(system)
    assert isinstance(outcome, Unsolved)
    assert "seed" in outcome.reason


def test_max_seeds():
    system = _system_for("Cu + HNO3 -> Cu(NO3)2 + NO + H2O")
    assert isinstance(solve_linear_system(system, max_seeds=1), Unsolved)
    assert isinstance(solve_linear_system(system, max_seeds=2), Solved)


def test_solved_values_are_read_only():
    system = _system_for("H2 + O2 -> H2O")
    outcome = solve_linear_system(system)
    with pytest.raises(TypeError):
        outcome.values[0] = Fraction(5)


@pytest.mark.parametrize(
    "values, expected",
    [
        ({0: Fraction(1), 1: Fraction(1, 2), 2: Fraction(1)}, {0: 2, 1: 1, 2: 2}),
        ({0: Fraction(3, 8), 1: Fraction(1), 2: Fraction(1, 4)}, {0: 3, 1: 8, 2: 2}),
        ({0: Fraction(4), 1: Fraction(6)}, {0: 2, 1: 3}),
        ({0: Fraction(2, 3), 1: Fraction(4, 9)}, {0: 3, 1: 2}),
    ],
)
def test_normalize_coefficients(values, expected):
    assert normalize_coefficients(values) == expected
