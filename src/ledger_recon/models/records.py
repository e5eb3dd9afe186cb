"""Data models for ledger line items and reconciliation results."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

RawRow = dict[str, Any]

ZERO = Decimal("0")


class LedgerSource(str, Enum):
    """Which of the two reconciled ledgers a row came from."""

    ERP = "ERP"
    VENDOR = "VENDOR"


class RowType(str, Enum):
    """Document classification derived from the row's free-text reason."""

    INVOICE = "Invoice"
    CREDIT_NOTE = "CreditNote"
    IGNORE = "Ignore"  # payments and transfers, never reconciled


class MatchStatus(str, Enum):
    """Confidence tier of a matched pair."""

    PERFECT = "Perfect Match"
    DIFFERENCE = "Difference Match"
    TIER_2 = "Tier-2"
    TIER_3 = "Tier-3"


@dataclass(frozen=True)
class NormalizedRow:
    """
    Canonical line item shared by both ledgers.

    Consolidation emits rows of the same shape: either the untouched input
    row or a synthesized net-balance row whose ``merged_ids`` lists the
    members it replaces.
    """

    # Unique within one reconciliation run
    id: str

    source: LedgerSource

    # Reference exactly as extracted, used for exact matching and display
    invoice: str

    # Unsigned magnitude, 2 decimal places; direction lives in ``type``
    amount: Decimal

    type: RowType

    # Join key for grouping and fuzzy comparison, never empty
    normalized_code: str

    # ISO YYYY-MM-DD, or "" when unknown
    date: str = ""

    entity: str = ""
    vendor_name: str = ""

    # Source row for audit only, never consulted by matching
    original_row: RawRow = field(default_factory=dict, compare=False, repr=False)

    merged_ids: tuple[str, ...] = ()

    @property
    def signed_amount(self) -> Decimal:
        """Amount with credit notes counted negative."""
        return -self.amount if self.type == RowType.CREDIT_NOTE else self.amount


@dataclass(frozen=True)
class MatchResult:
    """One correlated ERP / vendor pair."""

    erp_id: str
    vendor_id: str
    erp_invoice: str
    vendor_invoice: str
    erp_amount: Decimal
    vendor_amount: Decimal

    # Absolute amount difference, 2 decimal places
    difference: Decimal

    status: MatchStatus

    # Normalized-code similarity, only recorded by the fuzzy tiers
    similarity: Optional[float] = None

    # Configured tier name that produced the match
    tier: str = ""

    @property
    def is_exact_match(self) -> bool:
        return self.status == MatchStatus.PERFECT


@dataclass(frozen=True)
class StatusTotals:
    """Count and monetary sum for one bucket of the result."""

    count: int = 0
    total: Decimal = ZERO


@dataclass(frozen=True)
class ReconciliationStats:
    """Aggregate figures for one reconciliation run."""

    # Sum of ``difference`` per match status
    by_status: dict[MatchStatus, StatusTotals]

    # Sum of ``amount`` per unmatched list
    unmatched_erp: StatusTotals
    unmatched_vendor: StatusTotals

    # Consolidated row counts fed into the matcher
    erp_total: int = 0
    vendor_total: int = 0

    @property
    def matched_count(self) -> int:
        return sum(t.count for t in self.by_status.values())

    @property
    def match_rate_erp(self) -> float:
        """Percentage of consolidated ERP rows matched."""
        if self.erp_total == 0:
            return 0.0
        return (self.matched_count / self.erp_total) * 100

    @property
    def match_rate_vendor(self) -> float:
        """Percentage of consolidated vendor rows matched."""
        if self.vendor_total == 0:
            return 0.0
        return (self.matched_count / self.vendor_total) * 100

    def for_status(self, status: MatchStatus) -> StatusTotals:
        return self.by_status.get(status, StatusTotals())


@dataclass
class ReconciliationResult:
    """Output of a full reconciliation run."""

    matches: list[MatchResult]
    unmatched_erp: list[NormalizedRow]
    unmatched_vendor: list[NormalizedRow]
    stats: ReconciliationStats
    processing_time_seconds: float = 0.0

    def matches_with_status(self, *statuses: MatchStatus) -> list[MatchResult]:
        return [m for m in self.matches if m.status in statuses]
