"""Equation text -> reactant/product maps.

    equation := side '->' side
    side     := term ('+' term)*
    term     := count? formula

Whitespace is ignored. A molecule repeated on one side accumulates its
multiplier; the first spelling is kept.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from .elements import Element, ElementLookup, lookup_element
from .errors import ElementSetMismatchError, NotationError
from .formula import Molecule


ARROW = "->"

_TERM = re.compile(r"(\d*)(.+)", re.DOTALL)


@dataclass(frozen=True)
class ParsedEquation:
    reactants: Mapping[Molecule, int]
    products: Mapping[Molecule, int]

    def __post_init__(self):
        object.__setattr__(self, "reactants", MappingProxyType(dict(self.reactants)))
        object.__setattr__(self, "products", MappingProxyType(dict(self.products)))

    @property
    def molecules(self) -> tuple[Molecule, ...]:
        """Reactants then products, in input order."""
        return tuple(self.reactants) + tuple(self.products)

    @property
    def multipliers(self) -> tuple[int, ...]:
        return tuple(self.reactants.values()) + tuple(self.products.values())

    def is_balanced(self) -> bool:
        return is_balanced(self.reactants, self.products)


def parse_side(side: str, lookup: ElementLookup = lookup_element) -> dict[Molecule, int]:
    """Parse one side (``"2H2 + O2"``) into {Molecule: multiplier}."""
    if not side:
        raise NotationError("Equation side is empty")

    molecules: dict[Molecule, int] = {}
    for term in side.split("+"):
        if not term:
            raise NotationError(f"Empty term in {side!r}")
        m = _TERM.fullmatch(term)
        digits, formula = m.group(1), m.group(2)
        multiplier = int(digits) if digits else 1
        molecule = Molecule.from_formula(formula, lookup)

        # dict keeps the first key object, so the first spelling survives
        molecules[molecule] = molecules.get(molecule, 0) + multiplier
    return molecules


def element_totals(side: Mapping[Molecule, int]) -> dict[Element, int]:
    """Sum of multiplier x count per element over one side."""
    totals: dict[Element, int] = {}
    for molecule, multiplier in side.items():
        for element, count in molecule.counts.items():
            totals[element] = totals.get(element, 0) + count * multiplier
    return totals


def elements_in(side: Mapping[Molecule, int]) -> list[Element]:
    """Elements of one side in order of first appearance."""
    seen: dict[Element, None] = {}
    for molecule in side:
        for element in molecule.counts:
            seen.setdefault(element, None)
    return list(seen)


def validate_element_sets(reactants: Mapping[Molecule, int], products: Mapping[Molecule, int]) -> None:
    """Raise ElementSetMismatchError if the two sides use different elements."""
    lhs = set(elements_in(reactants))
    rhs = set(elements_in(products))
    if lhs != rhs:
        raise ElementSetMismatchError(
            reactant_only=frozenset(e.symbol for e in lhs - rhs),
            product_only=frozenset(e.symbol for e in rhs - lhs),
        )


def is_balanced(reactants: Mapping[Molecule, int], products: Mapping[Molecule, int]) -> bool:
    """True when every element has the same total on both sides."""
    lhs = {e: n for e, n in element_totals(reactants).items() if n}
    rhs = {e: n for e, n in element_totals(products).items() if n}
    return lhs == rhs


def parse_equation(text: str, lookup: ElementLookup = lookup_element) -> ParsedEquation:
    """Parse ``"N2 + 3H2 -> 2NH3"``.

    Raises:
        NotationError: malformed text (missing or repeated arrow, empty terms,
            bad formulas).
        UnknownElementError: unknown element symbol.
        ElementSetMismatchError: the sides use different element sets.
    """
    cleaned = "".join(text.split())
    sides = cleaned.split(ARROW)
    if len(sides) != 2:
        raise NotationError(f"Equation must contain exactly one {ARROW!r}: {text!r}")

    reactants = parse_side(sides[0], lookup)
    products = parse_side(sides[1], lookup)
    validate_element_sets(reactants, products)
    return ParsedEquation(reactants=reactants, products=products)
