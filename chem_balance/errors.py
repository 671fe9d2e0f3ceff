"""Exceptions raised by the balancer.

Every error derives from BalancerError and from the builtin it resembles, so
callers may catch either ``BalancerError`` or e.g. ``ValueError``.
"""

from __future__ import annotations


class BalancerError(Exception):
    """Base class for every error raised by chem_balance."""


class NotationError(BalancerError, ValueError):
    """A formula or equation string cannot be interpreted.

    Examples: bad characters, mismatched brackets, a count with no preceding
    element or group, an equation without a single ``->``.
    """


class UnknownElementError(BalancerError, LookupError):
    """A symbol or name is not in the periodic table."""

    def __init__(self, key: str):
        super().__init__(f"Unknown element: {key!r}")
        self.key = key


class ElementSetMismatchError(BalancerError, ValueError):
    """Reactants and products reference different sets of elements.

    Raised before any solving is attempted.
    """

    def __init__(self, reactant_only: frozenset[str], product_only: frozenset[str]):
        parts = []
        if reactant_only:
            parts.append("only in reactants: " + ", ".join(sorted(reactant_only)))
        if product_only:
            parts.append("only in products: " + ", ".join(sorted(product_only)))
        super().__init__("Element sets differ between sides (" + "; ".join(parts) + ")")
        self.reactant_only = reactant_only
        self.product_only = product_only


class EquationBuildError(BalancerError, RuntimeError):
    """The linear system was assembled incorrectly (internal defect)."""


class UnbalanceableError(BalancerError, RuntimeError):
    """Neither the linear solver nor the brute-force search found coefficients."""
