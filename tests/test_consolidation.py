"""Tests for netting invoices and credit notes within one ledger."""

from __future__ import annotations

import logging
from decimal import Decimal

from ledger_recon.config import ConsolidationConfig
from ledger_recon.matching.consolidation import Consolidator
from ledger_recon.models.records import RowType
from ledger_recon.utils.ids import SequentialIdFactory


class TestConsolidator:
    """Tests for Consolidator.consolidate."""

    def test_fully_offsetting_group_is_dropped(self, make_row) -> None:
        rows = [
            make_row("INV-100", "100.00"),
            make_row("CN-100", "100.00", type=RowType.CREDIT_NOTE),
        ]
        assert Consolidator().consolidate(rows) == []

    def test_partial_credit_leaves_invoice_balance(self, make_row) -> None:
        invoice = make_row("INV-100", "100.00", date="2024-01-05")
        credit = make_row("CN-100", "40.00", type=RowType.CREDIT_NOTE, date="2024-01-09")

        (net,) = Consolidator(id_factory=SequentialIdFactory()).consolidate([invoice, credit])

        assert net.type == RowType.INVOICE
        assert net.amount == Decimal("60.00")
        assert net.invoice == "INV-100"
        assert net.date == "2024-01-05"
        assert net.normalized_code == "100"
        assert net.merged_ids == (invoice.id, credit.id)
        assert net.id == "agg-100-1"

    def test_credit_balance_takes_credit_note_fields(self, make_row) -> None:
        invoice = make_row("INV-200", "30.00")
        credit = make_row("CN-200", "100.00", type=RowType.CREDIT_NOTE)

        (net,) = Consolidator().consolidate([invoice, credit])

        assert net.type == RowType.CREDIT_NOTE
        assert net.amount == Decimal("70.00")
        assert net.invoice == "CN-200"

    def test_representative_falls_back_to_first_member(self, make_row) -> None:
        """Two credit notes netting negative keep the first one's fields."""
        first = make_row("CN-300", "10.00", type=RowType.CREDIT_NOTE)
        second = make_row("CN 300", "15.00", type=RowType.CREDIT_NOTE)

        (net,) = Consolidator().consolidate([first, second])

        assert net.invoice == "CN-300"
        assert net.amount == Decimal("25.00")

    def test_singletons_pass_through_unchanged(self, make_row) -> None:
        row = make_row("INV-400", "12.34")
        (result,) = Consolidator().consolidate([row])
        assert result is row

    def test_short_codes_never_merge(self, make_row) -> None:
        rows = [
            make_row("INV-7", "10.00"),
            make_row("CN-7", "10.00", type=RowType.CREDIT_NOTE),
        ]
        result = Consolidator().consolidate(rows)
        assert result == rows

    def test_balance_at_tolerance_is_kept(self, make_row) -> None:
        rows = [
            make_row("INV-500", "100.01"),
            make_row("CN-500", "100.00", type=RowType.CREDIT_NOTE),
        ]
        (net,) = Consolidator().consolidate(rows)
        assert net.amount == Decimal("0.01")

    def test_output_follows_first_appearance(self, make_row) -> None:
        rows = [
            make_row("INV-11", "5.00"),
            make_row("INV-22", "7.00"),
            make_row("CN-11", "1.00", type=RowType.CREDIT_NOTE),
            make_row("INV-33", "9.00"),
        ]
        result = Consolidator().consolidate(rows)
        assert [r.normalized_code for r in result] == ["11", "22", "33"]
        assert result[0].amount == Decimal("4.00")

    def test_disabled_returns_rows_as_given(self, make_row) -> None:
        rows = [
            make_row("INV-100", "100.00"),
            make_row("CN-100", "100.00", type=RowType.CREDIT_NOTE),
        ]
        result = Consolidator(ConsolidationConfig(enabled=False)).consolidate(rows)
        assert result == rows
        assert result is not rows

    def test_divergent_vendor_names_are_logged(self, make_row, caplog) -> None:
        rows = [
            make_row("INV-600", "50.00", vendor_name="Acme"),
            make_row("INV-600", "20.00", vendor_name="Acme Ltd"),
        ]
        with caplog.at_level(logging.WARNING):
            (net,) = Consolidator().consolidate(rows)

        assert net.vendor_name == "Acme"
        assert net.amount == Decimal("70.00")
        assert "mixes vendor_name" in caplog.text

    def test_conserves_net_balance(self, make_row) -> None:
        rows = [
            make_row("INV-10", "100.00"),
            make_row("CN-10", "30.00", type=RowType.CREDIT_NOTE),
            make_row("INV-20", "50.00"),
            make_row("CN-20", "80.00", type=RowType.CREDIT_NOTE),
            make_row("INV-30", "15.00"),
        ]
        before = sum(r.signed_amount for r in rows)
        after = sum(r.signed_amount for r in Consolidator().consolidate(rows))
        assert before == after
