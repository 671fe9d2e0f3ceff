"""Periodic table reference data.

The table ships as ``data/periodic_table.csv`` (atomic number, symbol, name,
standard atomic weight). It is read once and shared read-only; parsers only
depend on the ``lookup_element`` callable, so a different table can be
injected wherever a ``lookup`` argument is accepted.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass, field
from decimal import Decimal
from functools import lru_cache
from importlib import resources
from types import MappingProxyType
from typing import Callable, Mapping

from .errors import UnknownElementError


@dataclass(frozen=True)
class Element:
    """A chemical element.

    Identity is symbol + name + atomic mass; the atomic number is carried
    along but does not take part in equality or hashing.
    """

    symbol: str
    name: str
    atomic_number: int = field(compare=False)
    atomic_mass: Decimal

    def __str__(self) -> str:
        return self.symbol


ElementLookup = Callable[[str], Element]


@dataclass(frozen=True)
class PeriodicTable:
    by_symbol: Mapping[str, Element]
    by_name: Mapping[str, Element]  # lower-cased names

    def lookup(self, key: str) -> Element:
        """Find an element by exact symbol, else by case-insensitive name."""
        element = self.by_symbol.get(key)
        if element is None:
            element = self.by_name.get(key.lower())
        if element is None:
            raise UnknownElementError(key)
        return element


@lru_cache(maxsize=None)
def periodic_table() -> PeriodicTable:
    """Load the bundled periodic table (cached)."""
    by_symbol: dict[str, Element] = {}
    by_name: dict[str, Element] = {}
    source = resources.files("chem_balance").joinpath("data").joinpath("periodic_table.csv")
    with source.open("r", encoding="utf-8", newline="") as fh:
        for row in csv.DictReader(fh):
            element = Element(
                symbol=row["Symbol"],
                name=row["Name"],
                atomic_number=int(row["AtomicNumber"]),
                atomic_mass=Decimal(row["AtomicMass"]),
            )
            by_symbol[element.symbol] = element
            by_name[element.name.lower()] = element
    return PeriodicTable(
        by_symbol=MappingProxyType(by_symbol),
        by_name=MappingProxyType(by_name),
    )


def lookup_element(symbol_or_name: str) -> Element:
    """Return the Element for a symbol (``"Na"``) or a name (``"sodium"``).

    Raises UnknownElementError when neither matches.
    """
    return periodic_table().lookup(symbol_or_name)
