"""Consolidation, matching engine and strategies."""

from .consolidation import Consolidator
from .engine import ReconciliationEngine, aggregate
from .strategies import (
    MatchingStrategy,
    ExactInvoiceStrategy,
    FuzzyAmountStrategy,
    SameDateFuzzyStrategy,
)

__all__ = [
    "Consolidator",
    "ReconciliationEngine",
    "aggregate",
    "MatchingStrategy",
    "ExactInvoiceStrategy",
    "FuzzyAmountStrategy",
    "SameDateFuzzyStrategy",
]
