"""Molecule formulas.

Grammar:
    formula := unit+
    unit    := element count? | '(' formula ')' count?
    element := UPPER LOWER?
    count   := DIGIT+

``parse_formula`` expands nested groups into an element -> count mapping by
recursive descent. Bracket counts are compared before descent starts.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping

from .elements import Element, ElementLookup, lookup_element
from .errors import NotationError


_ALLOWED = re.compile(r"[A-Za-z0-9()]+")


def _merge(into: dict[Element, int], other: Mapping[Element, int], multiplier: int = 1) -> None:
    for element, count in other.items():
        into[element] = into.get(element, 0) + count * multiplier


def _read_count(formula: str, pos: int) -> tuple[int, int]:
    """Read an optional count at ``pos``; returns (count, next position)."""
    end = pos
    while end < len(formula) and formula[end].isdigit():
        end += 1
    if end == pos:
        return 1, pos
    count = int(formula[pos:end])
    if count == 0:
        raise NotationError(f"Zero count at position {pos} in {formula!r}")
    return count, end


def _matching_bracket(formula: str, start: int, stop: int) -> int:
    depth = 0
    for i in range(start, stop):
        if formula[i] == "(":
            depth += 1
        elif formula[i] == ")":
            depth -= 1
            if depth == 0:
                return i
    raise NotationError(f"Unclosed bracket at position {start} in {formula!r}")


def _parse_units(
    formula: str,
    start: int,
    stop: int,
    lookup: ElementLookup,
) -> dict[Element, int]:
    counts: dict[Element, int] = {}
    pos = start
    if pos == stop:
        raise NotationError(f"Empty group at position {start} in {formula!r}")

    while pos < stop:
        c = formula[pos]
        if c == "(":
            close = _matching_bracket(formula, pos, stop)
            inner = _parse_units(formula, pos + 1, close, lookup)
            multiplier, pos = _read_count(formula, close + 1)
            _merge(counts, inner, multiplier)
        elif c.isupper():
            end = pos + 1
            if end < stop and formula[end].islower():
                end += 1
            element = lookup(formula[pos:end])
            count, pos = _read_count(formula, end)
            _merge(counts, {element: count})
        elif c.isdigit():
            raise NotationError(f"Count with no preceding element or group at position {pos} in {formula!r}")
        elif c == ")":
            raise NotationError(f"Unopened bracket at position {pos} in {formula!r}")
        else:
            raise NotationError(f"Expected an element symbol at position {pos} in {formula!r}")

    return counts


def parse_formula(formula: str, lookup: ElementLookup = lookup_element) -> dict[Element, int]:
    """Parse a formula like ``"Al2(CO3)3"`` into ``{Al: 2, C: 3, O: 9}``.

    Raises:
        NotationError: malformed formula.
        UnknownElementError: a symbol missing from the periodic table.
    """
    if not formula:
        raise NotationError("Empty formula")
    if not _ALLOWED.fullmatch(formula):
        raise NotationError(f"Formula {formula!r} contains characters other than letters, digits and brackets")
    if formula.count("(") != formula.count(")"):
        raise NotationError(f"Number of open brackets doesn't match the number of close brackets in {formula!r}")
    return _parse_units(formula, 0, len(formula), lookup)


@dataclass(frozen=True, eq=False)
class Molecule:
    """A parsed molecule.

    Equality is structural: two molecules are equal when their element counts
    are, however the formula was written (``"H2O"`` == ``"OH2"``).
    """

    formula: str
    counts: Mapping[Element, int]

    def __post_init__(self):
        counts = dict(self.counts)
        bad = {e.symbol: n for e, n in counts.items() if n <= 0}
        if bad:
            raise ValueError(f"Element counts must be positive, got {bad}")
        object.__setattr__(self, "counts", MappingProxyType(counts))

    @classmethod
    def from_formula(cls, formula: str, lookup: ElementLookup = lookup_element) -> "Molecule":
        return cls(formula=formula, counts=parse_formula(formula, lookup))

    @property
    def elements(self) -> frozenset[Element]:
        return frozenset(self.counts)

    def count(self, element: Element) -> int:
        return self.counts.get(element, 0)

    @property
    def relative_formula_mass(self) -> Decimal:
        """Sum of count x atomic mass over the molecule's elements."""
        return sum((e.atomic_mass * n for e, n in self.counts.items()), Decimal(0))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Molecule):
            return NotImplemented
        return dict(self.counts) == dict(other.counts)

    def __hash__(self) -> int:
        return hash(frozenset(self.counts.items()))

    def __str__(self) -> str:
        return self.formula

    def __repr__(self) -> str:
        return f"Molecule({self.formula!r})"
