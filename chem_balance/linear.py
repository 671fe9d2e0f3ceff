"""Element-conservation equations over coefficient variables.

For an equation with molecules M_0..M_{n-1} (reactants first, then products)
each molecule gets one variable x_i. For every element E in the reactants:

    sum_{i in reactants} n_E(M_i) x_i  =  sum_{j in products} n_E(M_j) x_j

Variables are dense indices with an explicit side tag; the alphabetic label
is only used when printing.
"""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from types import MappingProxyType
from typing import Collection, Iterable, Mapping

from .elements import Element
from .equation import elements_in
from .errors import EquationBuildError
from .formula import Molecule
from .utils import alphabetic_label


@dataclass(frozen=True)
class CoefficientVariable:
    index: int
    molecule: Molecule
    is_product: bool

    @property
    def label(self) -> str:
        return alphabetic_label(self.index)


def _side_map(element: Element, terms: Iterable[tuple[int, int]]) -> Mapping[int, int]:
    side: dict[int, int] = {}
    for index, count in terms:
        if index in side:
            raise EquationBuildError(
                f"Variable {alphabetic_label(index)} appears twice on one side of the {element} equation"
            )
        side[index] = count
    return MappingProxyType(side)


@dataclass(frozen=True)
class LinearEquation:
    """One element's conservation equation.

    ``reactant_terms`` / ``product_terms`` map variable index -> count of the
    element in that variable's molecule.
    """

    element: Element
    reactant_terms: Mapping[int, int]
    product_terms: Mapping[int, int]

    @classmethod
    def from_terms(
        cls,
        element: Element,
        reactant_terms: Iterable[tuple[int, int]],
        product_terms: Iterable[tuple[int, int]],
    ) -> "LinearEquation":
        return cls(
            element=element,
            reactant_terms=_side_map(element, reactant_terms),
            product_terms=_side_map(element, product_terms),
        )

    @property
    def variables(self) -> tuple[int, ...]:
        return tuple(self.reactant_terms) + tuple(self.product_terms)

    @property
    def n_terms(self) -> int:
        return len(self.reactant_terms) + len(self.product_terms)

    def unknowns(self, known: Collection[int]) -> list[int]:
        """Unknown variable indices, sorted."""
        return sorted({v for v in self.variables if v not in known})

    def one_sided(self) -> dict[int, Fraction]:
        """Coefficients of ``lhs - rhs = 0``.

        A variable on both sides gets the difference of its counts.
        """
        out: dict[int, Fraction] = {}
        for v, n in self.reactant_terms.items():
            out[v] = out.get(v, Fraction(0)) + n
        for v, n in self.product_terms.items():
            out[v] = out.get(v, Fraction(0)) - n
        return out

    def residual(self, values: Mapping[int, Fraction]) -> Fraction:
        """lhs - rhs evaluated at ``values`` (every variable must be known)."""
        return sum((c * values[v] for v, c in self.one_sided().items()), Fraction(0))

    def __str__(self) -> str:
        def side(terms: Mapping[int, int]) -> str:
            return " + ".join(
                (f"{n}{alphabetic_label(v)}" if n != 1 else alphabetic_label(v)) for v, n in terms.items()
            )

        return f"{self.element}: {side(self.reactant_terms)} = {side(self.product_terms)}"


@dataclass(frozen=True)
class StoichiometricSystem:
    variables: tuple[CoefficientVariable, ...]
    equations: tuple[LinearEquation, ...]

    @property
    def n_variables(self) -> int:
        return len(self.variables)

    @property
    def reactant_variables(self) -> tuple[CoefficientVariable, ...]:
        return tuple(v for v in self.variables if not v.is_product)

    @property
    def product_variables(self) -> tuple[CoefficientVariable, ...]:
        return tuple(v for v in self.variables if v.is_product)


def build_variables(
    reactants: Mapping[Molecule, int],
    products: Mapping[Molecule, int],
) -> tuple[CoefficientVariable, ...]:
    """One variable per distinct molecule per side, reactants first."""
    out = [CoefficientVariable(i, m, False) for i, m in enumerate(reactants)]
    offset = len(out)
    out += [CoefficientVariable(offset + j, m, True) for j, m in enumerate(products)]
    return tuple(out)


def build_system(
    reactants: Mapping[Molecule, int],
    products: Mapping[Molecule, int],
) -> StoichiometricSystem:
    """Build one LinearEquation per element found in the reactants.

    Equations follow the order in which elements first appear.

    Raises:
        EquationBuildError: a variable would appear twice on one side.
    """
    variables = build_variables(reactants, products)

    equations = []
    for element in elements_in(reactants):
        lhs = [(v.index, v.molecule.count(element)) for v in variables if not v.is_product and element in v.molecule.counts]
        rhs = [(v.index, v.molecule.count(element)) for v in variables if v.is_product and element in v.molecule.counts]
        equations.append(LinearEquation.from_terms(element, lhs, rhs))

    return StoichiometricSystem(variables=variables, equations=tuple(equations))
