"""Rational solver for element-conservation systems.

Stoichiometric systems are sparse: most element equations involve two or
three molecules. Instead of general elimination we propagate values:

1) seed: take an equation with exactly two terms, fix its first variable to 1
   and solve the other one from it
2) pass over all equations; any equation with a single unknown is solved by
   substitution
3) when a pass solves nothing, look for two equations sharing the same two
   unknowns and solve them simultaneously
4) stop when every variable is known, or when no progress is possible

Everything is exact (``fractions.Fraction``). The outcome of an attempt is a
value, ``Solved | Degenerate | Unsolved``; the caller decides whether to
retry with another seed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from fractions import Fraction
from types import MappingProxyType
from typing import Mapping, Sequence, Union

from .linear import LinearEquation, StoichiometricSystem
from .utils import alphabetic_label, integer_scale

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Solved:
    values: Mapping[int, Fraction]

    def __post_init__(self):
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))


@dataclass(frozen=True)
class Degenerate:
    """Two equations offered for elimination are not independent."""

    pair: tuple[int, int]
    elements: tuple[str, str] = ("", "")


@dataclass(frozen=True)
class Unsolved:
    reason: str
    values: Mapping[int, Fraction] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))


SolveOutcome = Union[Solved, Degenerate, Unsolved]


def _record(values: dict[int, Fraction], index: int, value: Fraction) -> None:
    # assignments only ever grow within one attempt
    if index in values:
        raise RuntimeError(f"Variable {alphabetic_label(index)} already has value {values[index]}")
    values[index] = value


def substitute(equation: LinearEquation, values: Mapping[int, Fraction]) -> tuple[int, Fraction]:
    """Solve an equation with exactly one unknown variable.

    Known terms are moved to a constant which is divided by the unknown's
    coefficient.

    Returns:
        (index, value) of the unknown.
    """
    unknowns = equation.unknowns(values)
    if len(unknowns) != 1:
        raise ValueError(f"substitute needs exactly one unknown, got {len(unknowns)} in [{equation}]")
    (u,) = unknowns

    coeffs = equation.one_sided()
    if coeffs[u] == 0:
        raise ValueError(f"Variable {alphabetic_label(u)} cancels out of [{equation}]")
    constant = sum((c * values[v] for v, c in coeffs.items() if v != u), Fraction(0))
    return u, -constant / coeffs[u]


def _two_unknown_form(
    equation: LinearEquation,
    values: Mapping[int, Fraction],
    x: int,
    y: int,
) -> tuple[Fraction, Fraction, Fraction]:
    """Rewrite as ``a*x + b*y = k``; returns (a, b, k)."""
    coeffs = equation.one_sided()
    k = -sum((c * values[v] for v, c in coeffs.items() if v not in (x, y)), Fraction(0))
    return coeffs.get(x, Fraction(0)), coeffs.get(y, Fraction(0)), k


def eliminate(
    first: LinearEquation,
    second: LinearEquation,
    values: Mapping[int, Fraction],
) -> Solved | Degenerate:
    """Solve two equations that share the same two unknowns x < y.

    Both are normalized so x has coefficient 1 and subtracted, which leaves y
    alone; x follows by back-substitution into the first equation.

    Returns:
        Solved with values for x and y, or Degenerate when the equations are
        not independent.
    """
    pair = first.unknowns(values)
    if len(pair) != 2 or second.unknowns(values) != pair:
        raise ValueError(f"eliminate needs two equations with the same two unknowns: [{first}] [{second}]")
    x, y = pair
    degenerate = Degenerate(pair=(x, y), elements=(first.element.symbol, second.element.symbol))

    a1, b1, k1 = _two_unknown_form(first, values, x, y)
    a2, b2, k2 = _two_unknown_form(second, values, x, y)
    if a1 == 0 or a2 == 0:
        return degenerate

    b1, k1 = b1 / a1, k1 / a1
    b2, k2 = b2 / a2, k2 / a2

    b = b1 - b2
    if b == 0:
        return degenerate

    y_value = (k1 - k2) / b
    x_value = k1 - b1 * y_value
    return Solved(values={x: x_value, y: y_value})


def _find_elimination_pair(
    candidates: Sequence[tuple[tuple[int, int], LinearEquation]],
) -> tuple[LinearEquation, LinearEquation] | None:
    seen: dict[tuple[int, int], LinearEquation] = {}
    for pair, eq in candidates:
        if pair in seen:
            return seen[pair], eq
        seen[pair] = eq
    return None


def _verify(system: StoichiometricSystem, values: Mapping[int, Fraction]) -> str | None:
    """Reason the assignment is unusable, or None."""
    for eq in system.equations:
        if eq.residual(values) != 0:
            return f"inconsistent at [{eq}]"
    bad = [alphabetic_label(v) for v, x in sorted(values.items()) if x <= 0]
    if bad:
        return "non-positive coefficient for " + ", ".join(bad)
    return None


def solve_from_seed(system: StoichiometricSystem, seed: LinearEquation) -> SolveOutcome:
    """Run one propagation attempt starting from ``seed``."""
    seed_vars = seed.variables
    if len(seed_vars) != 2 or seed_vars[0] == seed_vars[1]:
        raise ValueError(f"Seed equation must have exactly two distinct terms: [{seed}]")

    values: dict[int, Fraction] = {}
    _record(values, seed_vars[0], Fraction(1))
    _record(values, *substitute(seed, values))

    n = system.n_variables
    while len(values) < n:
        progress = False
        candidates: list[tuple[tuple[int, int], LinearEquation]] = []

        for eq in system.equations:
            unknowns = eq.unknowns(values)
            if len(unknowns) == 1:
                _record(values, *substitute(eq, values))
                progress = True
            elif not unknowns:
                if eq.residual(values) != 0:
                    return Unsolved(reason=f"inconsistent at [{eq}]", values=values)
            elif len(unknowns) == 2:
                candidates.append(((unknowns[0], unknowns[1]), eq))

        if progress:
            continue

        # nothing changed during the pass, so the candidate pairs are current
        pair = _find_elimination_pair(candidates)
        if pair is None:
            return Unsolved(reason="no equation with a single unknown and no elimination pair", values=values)

        logger.debug("eliminating with [%s] and [%s]", pair[0], pair[1])
        result = eliminate(pair[0], pair[1], values)
        if isinstance(result, Degenerate):
            return result
        for index, value in result.values.items():
            _record(values, index, value)

    reason = _verify(system, values)
    if reason is not None:
        return Unsolved(reason=reason, values=values)
    return Solved(values=values)


def solve_linear_system(
    system: StoichiometricSystem,
    *,
    max_seeds: int | None = None,
) -> SolveOutcome:
    """Try every two-term equation as seed until one attempt is Solved.

    Args:
        system: equations built by ``build_system``
        max_seeds: cap on the number of seeds tried (None: all)

    Returns:
        the first Solved outcome, otherwise the outcome of the last seed tried
    """
    seeds = [eq for eq in system.equations if eq.n_terms == 2]
    if max_seeds is not None:
        seeds = seeds[:max_seeds]
    if not seeds:
        return Unsolved(reason="no equation with exactly two terms to seed from")

    outcome: SolveOutcome = Unsolved(reason="no seed tried")
    for seed in seeds:
        logger.debug("seeding from [%s]", seed)
        outcome = solve_from_seed(system, seed)
        if isinstance(outcome, Solved):
            return outcome
        logger.debug("seed [%s] failed: %s", seed, outcome)
    return outcome


def normalize_coefficients(values: Mapping[int, Fraction]) -> dict[int, int]:
    """Smallest integers with the same ratios, keyed by variable index."""
    keys = sorted(values)
    ints = integer_scale([values[k] for k in keys])
    return dict(zip(keys, ints))
