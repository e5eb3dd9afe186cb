"""
Matching strategies for ledger reconciliation.
Each strategy implements one tier of the matcher.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Iterable, Optional

from ..models.records import MatchStatus, NormalizedRow
from ..normalization.codes import similarity


class MatchingStrategy(ABC):
    """
    Abstract base class for matching strategies.

    A strategy is greedy: it returns the first acceptable vendor row in the
    order the candidates are offered, never the best one.
    """

    @abstractmethod
    def find_match(
        self,
        erp_row: NormalizedRow,
        vendor_candidates: Iterable[NormalizedRow],
    ) -> Optional[tuple[NormalizedRow, Optional[float]]]:
        """
        Find the vendor row to pair with an ERP row.

        Args:
            erp_row: ERP row to match
            vendor_candidates: Unclaimed vendor rows, in vendor-file order

        Returns:
            ``(vendor_row, similarity)`` for the first acceptable candidate,
            or None. Similarity is None for strategies that don't score codes.
        """
        pass

    @abstractmethod
    def status_for(self, erp_row: NormalizedRow, vendor_row: NormalizedRow) -> MatchStatus:
        """Status to record for an accepted pair."""
        pass


class ExactInvoiceStrategy(MatchingStrategy):
    """
    Exact match on the raw invoice reference.
    Highest confidence tier; amounts only decide Perfect vs Difference.
    """

    def __init__(self, amount_tolerance: Decimal = Decimal("0.05")):
        """
        Initialize with the perfect-match tolerance.

        Args:
            amount_tolerance: Largest difference still reported as a perfect match
        """
        self.amount_tolerance = amount_tolerance

    def find_match(
        self,
        erp_row: NormalizedRow,
        vendor_candidates: Iterable[NormalizedRow],
    ) -> Optional[tuple[NormalizedRow, Optional[float]]]:
        invoice = erp_row.invoice.strip()
        for vendor_row in vendor_candidates:
            if vendor_row.invoice.strip() == invoice:
                return vendor_row, None
        return None

    def status_for(self, erp_row: NormalizedRow, vendor_row: NormalizedRow) -> MatchStatus:
        if abs(erp_row.amount - vendor_row.amount) <= self.amount_tolerance:
            return MatchStatus.PERFECT
        return MatchStatus.DIFFERENCE


class FuzzyAmountStrategy(MatchingStrategy):
    """
    Similar normalized code with an almost identical amount.
    """

    def __init__(
        self,
        amount_tolerance: Decimal = Decimal("1.00"),
        similarity_threshold: float = 0.90,
    ):
        """
        Initialize with tolerances.

        Args:
            amount_tolerance: Maximum absolute amount difference
            similarity_threshold: Minimum code similarity (0.0-1.0)
        """
        self.amount_tolerance = amount_tolerance
        self.similarity_threshold = similarity_threshold

    def find_match(
        self,
        erp_row: NormalizedRow,
        vendor_candidates: Iterable[NormalizedRow],
    ) -> Optional[tuple[NormalizedRow, Optional[float]]]:
        for vendor_row in vendor_candidates:
            if abs(erp_row.amount - vendor_row.amount) > self.amount_tolerance:
                continue
            score = similarity(erp_row.normalized_code, vendor_row.normalized_code)
            if score >= self.similarity_threshold:
                return vendor_row, score
        return None

    def status_for(self, erp_row: NormalizedRow, vendor_row: NormalizedRow) -> MatchStatus:
        return MatchStatus.TIER_2


class SameDateFuzzyStrategy(MatchingStrategy):
    """
    Same document date and a strongly similar code, regardless of amount.
    Lowest confidence tier, used as fallback.
    """

    def __init__(self, similarity_threshold: float = 0.75):
        """
        Initialize with similarity threshold.

        Args:
            similarity_threshold: Minimum code similarity (0.0-1.0)
        """
        self.similarity_threshold = similarity_threshold

    def find_match(
        self,
        erp_row: NormalizedRow,
        vendor_candidates: Iterable[NormalizedRow],
    ) -> Optional[tuple[NormalizedRow, Optional[float]]]:
        if not erp_row.date:
            return None

        for vendor_row in vendor_candidates:
            if vendor_row.date != erp_row.date:
                continue
            score = similarity(erp_row.normalized_code, vendor_row.normalized_code)
            if score >= self.similarity_threshold:
                return vendor_row, score
        return None

    def status_for(self, erp_row: NormalizedRow, vendor_row: NormalizedRow) -> MatchStatus:
        return MatchStatus.TIER_3
