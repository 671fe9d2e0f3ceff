from __future__ import annotations

from fractions import Fraction

import pytest

from chem_balance.elements import lookup_element
from chem_balance.equation import parse_equation
from chem_balance.errors import EquationBuildError
from chem_balance.linear import LinearEquation, build_system
from chem_balance.utils import alphabetic_label


def test_variables_reactants_first_with_side_tag():
    eq = parse_equation("C2H6 + O2 -> CO2 + H2O")
    system = build_system(eq.reactants, eq.products)

    assert [v.index for v in system.variables] == [0, 1, 2, 3]
    assert [v.is_product for v in system.variables] == [False, False, True, True]
    assert [v.molecule.formula for v in system.reactant_variables] == ["C2H6", "O2"]
    assert [v.molecule.formula for v in system.product_variables] == ["CO2", "H2O"]
    assert [v.label for v in system.variables] == ["A", "B", "C", "D"]


def test_one_equation_per_reactant_element():
    eq = parse_equation("C2H6 + O2 -> CO2 + H2O")
    system = build_system(eq.reactants, eq.products)

    by_element = {e.element.symbol: e for e in system.equations}
    assert list(by_element) == ["C", "H", "O"]

    c, h, o = by_element["C"], by_element["H"], by_element["O"]
    assert dict(c.reactant_terms) == {0: 2}
    assert dict(c.product_terms) == {2: 1}
    assert dict(h.reactant_terms) == {0: 6}
    assert dict(h.product_terms) == {3: 2}
    assert dict(o.reactant_terms) == {1: 2}
    assert dict(o.product_terms) == {2: 2, 3: 1}
    assert str(o) == "O: 2B = 2C + D"


def test_one_sided_and_residual():
    eq = parse_equation("H2 + O2 -> H2O")
    system = build_system(eq.reactants, eq.products)
    o = system.equations[1]
    assert o.one_sided() == {1: 2, 2: -1}

    values = {0: Fraction(2), 1: Fraction(1), 2: Fraction(2)}
    assert all(e.residual(values) == 0 for e in system.equations)
    assert o.residual({0: Fraction(1), 1: Fraction(1), 2: Fraction(1)}) == 1


def test_unknowns_sorted():
    eq = parse_equation("C2H6 + O2 -> CO2 + H2O")
    o = build_system(eq.reactants, eq.products).equations[2]
    assert o.unknowns(set()) == [1, 2, 3]
    assert o.unknowns({2}) == [1, 3]
    assert o.unknowns({1, 2, 3}) == []
    assert o.n_terms == 3


def test_duplicate_variable_is_a_build_error():
    oxygen = lookup_element("O")
    with pytest.raises(EquationBuildError):
        LinearEquation.from_terms(oxygen, [(0, 2), (0, 1)], [(1, 2)])


def test_variable_count_is_unbounded():
    formulas = " + ".join(f"C{n}H{2 * n + 2}" for n in range(1, 31))
    eq = parse_equation(f"{formulas} -> C + H2")
    system = build_system(eq.reactants, eq.products)
    assert system.n_variables == 32
    assert system.variables[-1].label == "AF"


@pytest.mark.parametrize(
    "index, label",
    [(0, "A"), (25, "Z"), (26, "AA"), (27, "AB"), (51, "AZ"), (52, "BA"), (701, "ZZ"), (702, "AAA")],
)
def test_alphabetic_label(index, label):
    assert alphabetic_label(index) == label
