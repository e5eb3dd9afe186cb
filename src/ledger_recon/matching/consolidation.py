"""
Netting of offsetting entries within one ledger.

Invoices and credit notes that share a normalized code describe the same
logical document; summing their signed amounts leaves the balance that is
actually still open.
"""

from dataclasses import replace
from decimal import Decimal
from typing import Optional
import logging

from ..config import ConsolidationConfig
from ..models.records import NormalizedRow, RowType, ZERO
from ..normalization.normalizer import round2
from ..utils.ids import IdFactory, UuidIdFactory

logger = logging.getLogger(__name__)


class Consolidator:
    """Groups rows by normalized code and nets each group to one balance."""

    def __init__(
        self,
        config: Optional[ConsolidationConfig] = None,
        id_factory: Optional[IdFactory] = None,
    ):
        """
        Initialize the consolidator.

        Args:
            config: Netting settings
            id_factory: Source of ids for synthesized rows
        """
        self.config = config or ConsolidationConfig()
        self.id_factory = id_factory or UuidIdFactory()
        self.zero_tolerance = Decimal(str(self.config.zero_balance_tolerance))

    def consolidate(self, rows: list[NormalizedRow]) -> list[NormalizedRow]:
        """
        Net every code group down to a single row.

        Groups of one pass through untouched, groups that net to zero are
        dropped, and every other group becomes a fresh row carrying the
        absolute balance. Output follows the order in which each group's
        first member appeared.

        Args:
            rows: Normalized rows from one ledger

        Returns:
            Consolidated rows
        """
        if not self.config.enabled:
            return list(rows)

        groups = self._group(rows)
        consolidated: list[NormalizedRow] = []
        cancelled = 0

        for key, group in groups.items():
            if len(group) == 1:
                consolidated.append(group[0])
                continue

            net = sum((r.signed_amount for r in group), ZERO)
            if abs(net) < self.zero_tolerance:
                cancelled += 1
                logger.debug(f"Group '{key}' nets to zero across {len(group)} rows, dropped")
                continue

            consolidated.append(self._net_row(key, group, net))

        logger.info(
            f"Consolidated {len(rows)} rows into {len(consolidated)} "
            f"({cancelled} fully offsetting groups dropped)"
        )
        return consolidated

    def _group(self, rows: list[NormalizedRow]) -> dict[str, list[NormalizedRow]]:
        groups: dict[str, list[NormalizedRow]] = {}
        for row in rows:
            # One-character codes ("0", "7") are too weak to merge on
            if len(row.normalized_code) < self.config.min_code_length:
                key = f"_unique_{row.id}"
            else:
                key = row.normalized_code
            groups.setdefault(key, []).append(row)
        return groups

    def _net_row(self, key: str, group: list[NormalizedRow], net: Decimal) -> NormalizedRow:
        net_type = RowType.CREDIT_NOTE if net < 0 else RowType.INVOICE
        representative = next((r for r in group if r.type == net_type), group[0])

        self._warn_divergent_metadata(key, group, representative)

        return replace(
            representative,
            id=self.id_factory.new_id(f"agg-{key}"),
            amount=round2(abs(net)),
            type=net_type,
            merged_ids=tuple(r.id for r in group),
        )

    def _warn_divergent_metadata(
        self, key: str, group: list[NormalizedRow], representative: NormalizedRow
    ) -> None:
        for attr in ("entity", "vendor_name"):
            others = sorted(
                {getattr(r, attr) for r in group} - {getattr(representative, attr)}
            )
            if others:
                logger.warning(
                    f"Group '{key}' mixes {attr} values; keeping "
                    f"'{getattr(representative, attr)}', discarding {others}"
                )
