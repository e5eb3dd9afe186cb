"""Data models for reconciliation."""

from .records import (
    RawRow,
    LedgerSource,
    RowType,
    MatchStatus,
    NormalizedRow,
    MatchResult,
    StatusTotals,
    ReconciliationStats,
    ReconciliationResult,
)

__all__ = [
    "RawRow",
    "LedgerSource",
    "RowType",
    "MatchStatus",
    "NormalizedRow",
    "MatchResult",
    "StatusTotals",
    "ReconciliationStats",
    "ReconciliationResult",
]
