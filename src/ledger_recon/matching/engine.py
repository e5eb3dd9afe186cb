"""
Multi-tier matching engine for ledger reconciliation.
Runs normalize -> consolidate -> match -> aggregate for one ERP / vendor pair.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional, Sequence
import logging

from ..config import (
    EXACT_INVOICE,
    FUZZY_AMOUNT,
    SAME_DATE_FUZZY,
    MatchingTier,
    ReconConfig,
)
from ..models.records import (
    LedgerSource,
    MatchResult,
    MatchStatus,
    NormalizedRow,
    RawRow,
    ReconciliationResult,
    ReconciliationStats,
    StatusTotals,
    ZERO,
)
from ..normalization.normalizer import Normalizer, round2
from ..utils.exceptions import ConfigurationError
from ..utils.ids import IdFactory, UuidIdFactory
from .consolidation import Consolidator
from .strategies import (
    ExactInvoiceStrategy,
    FuzzyAmountStrategy,
    MatchingStrategy,
    SameDateFuzzyStrategy,
)

logger = logging.getLogger(__name__)


def _decimal(value: Optional[float], default: str) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal(default)


def _threshold(value: Optional[float], default: float) -> float:
    return value if value is not None else default


def aggregate(
    matches: Sequence[MatchResult],
    unmatched_erp: Sequence[NormalizedRow],
    unmatched_vendor: Sequence[NormalizedRow],
    erp_total: int = 0,
    vendor_total: int = 0,
) -> ReconciliationStats:
    """
    Reduce matcher output to per-status and per-side totals.

    Every status is present in ``by_status`` even when it has no matches.
    Match buckets sum ``difference``; unmatched buckets sum ``amount``.
    """
    by_status: dict[MatchStatus, StatusTotals] = {}
    for status in MatchStatus:
        bucket = [m for m in matches if m.status == status]
        by_status[status] = StatusTotals(
            count=len(bucket),
            total=sum((m.difference for m in bucket), ZERO),
        )

    return ReconciliationStats(
        by_status=by_status,
        unmatched_erp=StatusTotals(
            count=len(unmatched_erp),
            total=sum((r.amount for r in unmatched_erp), ZERO),
        ),
        unmatched_vendor=StatusTotals(
            count=len(unmatched_vendor),
            total=sum((r.amount for r in unmatched_vendor), ZERO),
        ),
        erp_total=erp_total,
        vendor_total=vendor_total,
    )


class ReconciliationEngine:
    """
    Main reconciliation engine that orchestrates the matching process.

    Tiers run in priority order over whatever the earlier tiers left
    unclaimed; a row claimed once is never offered again.
    """

    def __init__(self, config: ReconConfig, id_factory: Optional[IdFactory] = None):
        """
        Initialize the reconciliation engine.

        Args:
            config: Application configuration
            id_factory: Source of row identifiers, shared by all stages
        """
        self.config = config
        self.id_factory = id_factory or UuidIdFactory()
        self.normalizer = Normalizer(config, self.id_factory)
        self.consolidator = Consolidator(config.consolidation, self.id_factory)
        self.strategies = self._build_strategies()

    def _build_strategies(self) -> list[tuple[str, MatchingStrategy]]:
        """
        Build matching strategies from configuration.

        Returns:
            List of (tier_name, strategy) tuples ordered by priority
        """
        enabled_tiers = [t for t in self.config.matching.tiers if t.enabled]
        sorted_tiers = sorted(enabled_tiers, key=lambda t: t.priority)

        strategies: list[tuple[str, MatchingStrategy]] = []
        for tier in sorted_tiers:
            strategies.append((tier.name, self._create_strategy(tier)))
            logger.debug(f"Loaded matching tier: {tier.name} ({tier.strategy})")

        return strategies

    def _create_strategy(self, tier: MatchingTier) -> MatchingStrategy:
        """
        Create a matching strategy from tier configuration.

        Raises:
            ConfigurationError: If the tier names an unknown strategy
        """
        if tier.strategy == EXACT_INVOICE:
            return ExactInvoiceStrategy(
                amount_tolerance=_decimal(tier.amount_tolerance, "0.05"),
            )
        if tier.strategy == FUZZY_AMOUNT:
            return FuzzyAmountStrategy(
                amount_tolerance=_decimal(tier.amount_tolerance, "1.00"),
                similarity_threshold=_threshold(tier.similarity_threshold, 0.90),
            )
        if tier.strategy == SAME_DATE_FUZZY:
            return SameDateFuzzyStrategy(
                similarity_threshold=_threshold(tier.similarity_threshold, 0.75),
            )
        raise ConfigurationError(f"Unknown matching strategy: {tier.strategy}")

    def normalize(self, rows: Sequence[RawRow], source: LedgerSource) -> list[NormalizedRow]:
        return self.normalizer.normalize(rows, source)

    def consolidate(self, rows: list[NormalizedRow]) -> list[NormalizedRow]:
        return self.consolidator.consolidate(rows)

    def reconcile(
        self,
        erp_rows: Sequence[RawRow],
        vendor_rows: Sequence[RawRow],
    ) -> ReconciliationResult:
        """
        Reconcile two raw ledgers end to end.

        Args:
            erp_rows: Rows of the internal ledger export
            vendor_rows: Rows of the counterparty statement

        Returns:
            Reconciliation result with matches, leftovers and statistics
        """
        return self.reconcile_normalized(
            self.normalize(erp_rows, LedgerSource.ERP),
            self.normalize(vendor_rows, LedgerSource.VENDOR),
        )

    def reconcile_normalized(
        self,
        erp_rows: list[NormalizedRow],
        vendor_rows: list[NormalizedRow],
    ) -> ReconciliationResult:
        """
        Consolidate, match and aggregate already-normalized rows.

        Args:
            erp_rows: Normalized ERP rows
            vendor_rows: Normalized vendor rows

        Returns:
            Reconciliation result
        """
        start_time = datetime.now()

        erp_consolidated = self.consolidate(erp_rows)
        vendor_consolidated = self.consolidate(vendor_rows)

        matches, unmatched_erp, unmatched_vendor = self.match(
            erp_consolidated, vendor_consolidated
        )
        stats = aggregate(
            matches,
            unmatched_erp,
            unmatched_vendor,
            erp_total=len(erp_consolidated),
            vendor_total=len(vendor_consolidated),
        )

        elapsed = (datetime.now() - start_time).total_seconds()
        return ReconciliationResult(
            matches=matches,
            unmatched_erp=unmatched_erp,
            unmatched_vendor=unmatched_vendor,
            stats=stats,
            processing_time_seconds=elapsed,
        )

    def match(
        self,
        erp_rows: list[NormalizedRow],
        vendor_rows: list[NormalizedRow],
    ) -> tuple[list[MatchResult], list[NormalizedRow], list[NormalizedRow]]:
        """
        Pair consolidated rows across the two ledgers.

        Args:
            erp_rows: Consolidated ERP rows
            vendor_rows: Consolidated vendor rows

        Returns:
            Tuple of (matches, unmatched_erp, unmatched_vendor); leftovers
            keep their input order
        """
        logger.info(
            f"Starting matching: {len(erp_rows)} ERP rows, {len(vendor_rows)} vendor rows"
        )

        claimed_erp: set[str] = set()
        claimed_vendor: set[str] = set()
        matches: list[MatchResult] = []

        for tier_name, strategy in self.strategies:
            tier_count = 0

            for erp_row in erp_rows:
                if erp_row.id in claimed_erp:
                    continue

                candidates = (v for v in vendor_rows if v.id not in claimed_vendor)
                found = strategy.find_match(erp_row, candidates)
                if found is None:
                    continue

                vendor_row, score = found
                matches.append(
                    MatchResult(
                        erp_id=erp_row.id,
                        vendor_id=vendor_row.id,
                        erp_invoice=erp_row.invoice,
                        vendor_invoice=vendor_row.invoice,
                        erp_amount=erp_row.amount,
                        vendor_amount=vendor_row.amount,
                        difference=round2(abs(erp_row.amount - vendor_row.amount)),
                        status=strategy.status_for(erp_row, vendor_row),
                        similarity=score,
                        tier=tier_name,
                    )
                )
                claimed_erp.add(erp_row.id)
                claimed_vendor.add(vendor_row.id)
                tier_count += 1

            logger.debug(
                f"Tier {tier_name}: {tier_count} matches found, "
                f"{len(erp_rows) - len(claimed_erp)} ERP and "
                f"{len(vendor_rows) - len(claimed_vendor)} vendor remaining"
            )

        unmatched_erp = [r for r in erp_rows if r.id not in claimed_erp]
        unmatched_vendor = [r for r in vendor_rows if r.id not in claimed_vendor]

        logger.info(
            f"Matching complete: {len(matches)} matches, "
            f"{len(unmatched_erp)} ERP-only, {len(unmatched_vendor)} vendor-only"
        )
        return matches, unmatched_erp, unmatched_vendor
