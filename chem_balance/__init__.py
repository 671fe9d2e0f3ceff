"""Chemical equation balancing over exact rationals.

Core contract:
- inputs: equation text such as "N2 + H2 -> NH3"
- workflow: parse formulas -> one conservation equation per element ->
  rational substitution/elimination -> bounded brute-force fallback ->
  minimal integer coefficients

Public entry point: balance().
"""

from .balancer import BalanceMethod, BalancedEquation, BalancerConfig, balance, balance_parsed
from .elements import Element, lookup_element
from .equation import ParsedEquation, parse_equation
from .errors import (
    BalancerError,
    ElementSetMismatchError,
    EquationBuildError,
    NotationError,
    UnbalanceableError,
    UnknownElementError,
)
from .formula import Molecule, parse_formula
