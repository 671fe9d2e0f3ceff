"""Balancing pipeline.

    text -> ParsedEquation -> element sets validated
         -> already balanced?            (supplied multipliers)
         -> rational linear solver        (every two-term seed)
         -> brute-force search            (bounded)
         -> minimal integer coefficients -> canonical string

Parsing and validation errors short-circuit. Solver failures only reach the
caller as UnbalanceableError once every strategy is exhausted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Sequence

from .brute_force import DEFAULT_LIMIT, brute_force
from .conservation import composition_matrix, conserves, nullspace_dimension
from .elements import ElementLookup, lookup_element
from .equation import ParsedEquation, parse_equation, validate_element_sets
from .errors import UnbalanceableError
from .formula import Molecule
from .linear import build_system
from .solver import Degenerate, SolveOutcome, Solved, Unsolved, normalize_coefficients, solve_linear_system
from .utils import primitive

logger = logging.getLogger(__name__)


class BalanceMethod(str, Enum):
    ALREADY_BALANCED = "already_balanced"
    LINEAR = "linear"
    BRUTE_FORCE = "brute_force"


@dataclass(frozen=True)
class BalancerConfig:
    """Balancer options.

    Attributes:
        brute_force_limit: largest coefficient the fallback search tries.
            Not a guaranteed upper bound on real coefficients.
        use_brute_force: run the fallback when the linear solver fails.
        max_seeds: cap on seed equations tried by the linear solver (None: all).
    """

    brute_force_limit: int = DEFAULT_LIMIT
    use_brute_force: bool = True
    max_seeds: int | None = None

    def __post_init__(self):
        if self.brute_force_limit < 1:
            raise ValueError(f"brute_force_limit must be >= 1, got {self.brute_force_limit}")
        if self.max_seeds is not None and self.max_seeds < 0:
            raise ValueError(f"max_seeds must be >= 0, got {self.max_seeds}")


def format_side(side: Mapping[Molecule, int]) -> str:
    terms = []
    for molecule, coeff in side.items():
        if coeff == 0:
            continue
        terms.append(molecule.formula if coeff == 1 else f"{coeff}{molecule.formula}")
    return " + ".join(terms)


def format_equation(reactants: Mapping[Molecule, int], products: Mapping[Molecule, int]) -> str:
    """Render ``"2H2 + O2 -> 2H2O"`` (coefficient 1 omitted, 0 dropped)."""
    return f"{format_side(reactants)} -> {format_side(products)}"


@dataclass(frozen=True)
class BalancedEquation:
    reactants: Mapping[Molecule, int]
    products: Mapping[Molecule, int]
    method: BalanceMethod

    def __post_init__(self):
        object.__setattr__(self, "reactants", MappingProxyType(dict(self.reactants)))
        object.__setattr__(self, "products", MappingProxyType(dict(self.products)))

    @property
    def coefficients(self) -> tuple[int, ...]:
        """Reactant then product coefficients, in input order."""
        return tuple(self.reactants.values()) + tuple(self.products.values())

    def __str__(self) -> str:
        return format_equation(self.reactants, self.products)


def _assemble(parsed: ParsedEquation, coeffs: Sequence[int], method: BalanceMethod) -> BalancedEquation:
    n_r = len(parsed.reactants)
    return BalancedEquation(
        reactants=dict(zip(parsed.reactants, coeffs[:n_r])),
        products=dict(zip(parsed.products, coeffs[n_r:])),
        method=method,
    )


def _describe(outcome: SolveOutcome) -> str:
    if isinstance(outcome, Degenerate):
        return "dependent {} and {} equations".format(*outcome.elements)
    if isinstance(outcome, Unsolved):
        return outcome.reason
    return "solved"


def _unbalanceable(parsed: ParsedEquation, detail: str) -> UnbalanceableError:
    dim = nullspace_dimension(composition_matrix(parsed.reactants, parsed.products))
    if dim == 0:
        why = "no non-trivial combination conserves every element"
    elif dim == 1:
        why = "a unique reaction exists but was not found"
    else:
        why = f"{dim} independent reactions are mixed in this equation"
    return UnbalanceableError(f"Cannot balance {format_equation(parsed.reactants, parsed.products)}: {why} ({detail})")


def balance_parsed(parsed: ParsedEquation, config: BalancerConfig | None = None) -> BalancedEquation:
    """Balance an already parsed equation.

    Raises:
        ElementSetMismatchError: the sides use different element sets.
        UnbalanceableError: every strategy failed.
    """
    config = config or BalancerConfig()
    validate_element_sets(parsed.reactants, parsed.products)

    supplied = parsed.multipliers
    if all(m > 0 for m in supplied) and parsed.is_balanced():
        logger.debug("%s is already balanced", format_equation(parsed.reactants, parsed.products))
        return _assemble(parsed, primitive(supplied), BalanceMethod.ALREADY_BALANCED)

    system = build_system(parsed.reactants, parsed.products)
    outcome = solve_linear_system(system, max_seeds=config.max_seeds)
    if isinstance(outcome, Solved):
        by_index = normalize_coefficients(outcome.values)
        coeffs = [by_index[v.index] for v in system.variables]
        # the solver verifies every equation; this is the matrix-level check
        if not conserves(composition_matrix(parsed.reactants, parsed.products), coeffs):
            raise RuntimeError(f"linear solution {coeffs} does not conserve every element")
        return _assemble(parsed, coeffs, BalanceMethod.LINEAR)

    detail = f"linear solver: {_describe(outcome)}"
    if not config.use_brute_force:
        raise _unbalanceable(parsed, detail)

    logger.info(
        "linear solver failed (%s); falling back to brute force with limit %d",
        _describe(outcome),
        config.brute_force_limit,
    )
    found = brute_force(parsed.reactants, parsed.products, config.brute_force_limit)
    if found is None:
        raise _unbalanceable(parsed, f"{detail}; brute force: nothing up to {config.brute_force_limit}")
    return _assemble(parsed, found, BalanceMethod.BRUTE_FORCE)


def balance(
    text: str,
    config: BalancerConfig | None = None,
    *,
    lookup: ElementLookup = lookup_element,
) -> BalancedEquation:
    """Balance an equation given as text.

    >>> str(balance("H2 + O2 -> H2O"))
    '2H2 + O2 -> 2H2O'
    """
    return balance_parsed(parse_equation(text, lookup), config)
