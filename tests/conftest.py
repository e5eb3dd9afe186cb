"""Shared fixtures for the reconciliation test suite."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

import pytest

from ledger_recon.config import ReconConfig
from ledger_recon.matching.engine import ReconciliationEngine
from ledger_recon.models.records import LedgerSource, NormalizedRow, RowType
from ledger_recon.normalization.codes import clean_code
from ledger_recon.utils.ids import SequentialIdFactory

RowFactory = Callable[..., NormalizedRow]


@pytest.fixture
def config() -> ReconConfig:
    """Default configuration."""
    return ReconConfig()


@pytest.fixture
def id_factory() -> SequentialIdFactory:
    """Deterministic ids and a fixed clock."""
    return SequentialIdFactory(fixed_time=datetime(2024, 3, 1, 12, 0, 0))


@pytest.fixture
def engine(config: ReconConfig, id_factory: SequentialIdFactory) -> ReconciliationEngine:
    """Engine with default tiers and deterministic ids."""
    return ReconciliationEngine(config, id_factory)


@pytest.fixture
def make_row() -> RowFactory:
    """Build NormalizedRow objects with sensible defaults and unique ids."""
    counter = {"n": 0}

    def _make(
        invoice: str,
        amount: str | float = "100.00",
        type: RowType = RowType.INVOICE,
        date: str = "",
        source: LedgerSource = LedgerSource.ERP,
        code: Optional[str] = None,
        entity: str = "",
        vendor_name: str = "",
        id: Optional[str] = None,
    ) -> NormalizedRow:
        counter["n"] += 1
        return NormalizedRow(
            id=id or f"{source.value}-row-{counter['n']}",
            source=source,
            invoice=invoice,
            amount=Decimal(str(amount)).quantize(Decimal("0.01")),
            type=type,
            normalized_code=code if code is not None else clean_code(invoice),
            date=date,
            entity=entity,
            vendor_name=vendor_name,
        )

    return _make
