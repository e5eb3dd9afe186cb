"""Tests for column detection, lenient cell parsing and row normalization."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pandas as pd
import pytest

from ledger_recon.config import ClassificationConfig, ColumnRolesConfig, ReconConfig
from ledger_recon.models.records import LedgerSource, RowType
from ledger_recon.normalization.normalizer import (
    Normalizer,
    classify,
    detect_columns,
    normalize_date,
    parse_amount,
)
from ledger_recon.utils.ids import SequentialIdFactory


class TestDetectColumns:
    """Tests for keyword-based column role detection."""

    def test_detects_every_role(self) -> None:
        row = {
            "Invoice No": "INV-1",
            "Debit": "10",
            "Credit": "",
            "Posting Date": "2024-01-01",
            "Description": "Invoice",
            "Entity": "ES01",
            "Supplier Name": "Acme",
        }
        mapping = detect_columns(row, ColumnRolesConfig())

        assert mapping.invoice == "Invoice No"
        assert mapping.debit == "Debit"
        assert mapping.credit == "Credit"
        assert mapping.date == "Posting Date"
        assert mapping.reason == "Description"
        assert mapping.entity == "Entity"
        assert mapping.vendor == "Supplier Name"

    def test_spanish_headers(self) -> None:
        row = {"Factura": "F-1", "Importe Debe": "5", "Haber": "", "Fecha": "", "Proveedor": "X"}
        mapping = detect_columns(row, ColumnRolesConfig())

        assert mapping.invoice == "Factura"
        assert mapping.debit == "Importe Debe"
        assert mapping.credit == "Haber"
        assert mapping.date == "Fecha"
        assert mapping.vendor == "Proveedor"

    def test_missing_roles_are_none(self) -> None:
        mapping = detect_columns({"Foo": 1}, ColumnRolesConfig())
        assert all(column is None for column in mapping.as_dict().values())

    def test_first_matching_column_wins(self) -> None:
        """Column order decides when several headers contain a keyword."""
        mapping = detect_columns({"Total": "1", "Amount": "2"}, ColumnRolesConfig())
        assert mapping.debit == "Total"

    def test_case_insensitive(self) -> None:
        mapping = detect_columns({"INVOICE": "1"}, ColumnRolesConfig())
        assert mapping.invoice == "INVOICE"


class TestParseAmount:
    """Tests for lenient amount parsing."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("€1.234,56", Decimal("1234.56")),
            ("$1,234.56", Decimal("1234.56")),
            ("12,50", Decimal("12.50")),
            ("1,234,567", Decimal("1234567")),
            ("1.234.567", Decimal("1234567")),
            ("-45.10", Decimal("-45.10")),
            ("  300 EUR ", Decimal("300")),
        ],
    )
    def test_string_formats(self, raw: str, expected: Decimal) -> None:
        assert parse_amount(raw) == expected

    def test_numbers_pass_through(self) -> None:
        assert parse_amount(100) == Decimal("100")
        assert parse_amount(99.95) == Decimal("99.95")

    @pytest.mark.parametrize("raw", [None, "", "abc", float("nan"), float("inf"), True])
    def test_unparseable_is_zero(self, raw: object) -> None:
        assert parse_amount(raw) == Decimal("0")

    @pytest.mark.parametrize(
        "raw", [1e30, 10**40, "1234567890123456789012345678901", "1000000000000000"]
    )
    def test_out_of_range_magnitude_is_zero(self, raw: object) -> None:
        """Values too large to round to cents never leave the parser."""
        assert parse_amount(raw) == Decimal("0")

    def test_large_but_valid_amount(self) -> None:
        assert parse_amount("123456789012345.67") == Decimal("123456789012345.67")


class TestNormalizeDate:
    """Tests for date normalization."""

    def test_spreadsheet_serial(self) -> None:
        assert normalize_date(45292) == "2024-01-01"
        assert normalize_date(45292.75) == "2024-01-01"

    def test_early_serials_around_phantom_leap_day(self) -> None:
        assert normalize_date(1) == "1900-01-01"
        assert normalize_date(59) == "1900-02-28"
        assert normalize_date(60) == "1900-02-29"
        assert normalize_date(61) == "1900-03-01"

    def test_non_positive_serial_is_unknown(self) -> None:
        assert normalize_date(0) == ""
        assert normalize_date(-5) == ""

    def test_date_objects(self) -> None:
        assert normalize_date(date(2024, 3, 15)) == "2024-03-15"
        assert normalize_date(datetime(2024, 3, 15, 10, 30)) == "2024-03-15"
        assert normalize_date(pd.Timestamp("2024-03-15")) == "2024-03-15"

    def test_serials_as_text(self) -> None:
        """CSV readers hand serials over as strings."""
        assert normalize_date("45292") == "2024-01-01"
        assert normalize_date(" 45292.5 ") == "2024-01-01"
        assert normalize_date("60") == "1900-02-29"

    def test_compact_dates_beyond_serial_range(self) -> None:
        assert normalize_date("20240115") == "2024-01-15"

    def test_strings(self) -> None:
        assert normalize_date("2024-03-15") == "2024-03-15"
        assert normalize_date("03/15/2024") == "2024-03-15"

    @pytest.mark.parametrize("raw", [None, "", "   ", "not a date"])
    def test_unparseable_is_empty(self, raw: object) -> None:
        assert normalize_date(raw) == ""


class TestClassify:
    """Tests for row classification."""

    keywords = ClassificationConfig()

    def test_payment_is_ignored(self) -> None:
        assert classify("bank transfer", Decimal("0"), Decimal("10"), self.keywords) == RowType.IGNORE
        assert classify("πληρωμη", Decimal("10"), Decimal("0"), self.keywords) == RowType.IGNORE

    def test_payment_wins_over_credit_note(self) -> None:
        assert (
            classify("payment of credit note", Decimal("0"), Decimal("5"), self.keywords)
            == RowType.IGNORE
        )

    def test_credit_note_keyword(self) -> None:
        assert classify("credit note", Decimal("10"), Decimal("0"), self.keywords) == RowType.CREDIT_NOTE

    def test_credit_larger_than_debit(self) -> None:
        assert classify("", Decimal("0"), Decimal("10"), self.keywords) == RowType.CREDIT_NOTE

    def test_invoice_by_default(self) -> None:
        assert classify("", Decimal("10"), Decimal("0"), self.keywords) == RowType.INVOICE


class TestNormalizer:
    """Tests for Normalizer.normalize."""

    ERP_ROWS = [
        {
            "Invoice": "INV-001",
            "Debit": "100,00",
            "Credit": None,
            "Date": "2024-01-05",
            "Reason": "Invoice",
            "Vendor": " Acme ",
        },
        {
            "Invoice": "PAY-1",
            "Debit": None,
            "Credit": "100",
            "Date": "2024-01-20",
            "Reason": "Payment received",
            "Vendor": "Acme",
        },
        {
            "Invoice": "CN-001",
            "Debit": None,
            "Credit": "40",
            "Date": "2024-01-10",
            "Reason": "Credit note",
            "Vendor": "Acme",
        },
        {
            "Invoice": "INV-002",
            "Debit": "0",
            "Credit": "0",
            "Date": "2024-01-11",
            "Reason": "",
            "Vendor": "Acme",
        },
    ]

    def test_drops_payments_and_zero_rows(self, config: ReconConfig) -> None:
        rows = Normalizer(config, SequentialIdFactory()).normalize(self.ERP_ROWS, LedgerSource.ERP)

        assert [r.invoice for r in rows] == ["INV-001", "CN-001"]

    def test_row_fields(self, config: ReconConfig) -> None:
        invoice, credit_note = Normalizer(config, SequentialIdFactory()).normalize(
            self.ERP_ROWS, LedgerSource.ERP
        )

        assert invoice.type == RowType.INVOICE
        assert invoice.amount == Decimal("100.00")
        assert invoice.normalized_code == "1"
        assert invoice.date == "2024-01-05"
        assert invoice.vendor_name == "Acme"
        assert invoice.entity == ""
        assert invoice.source == LedgerSource.ERP
        assert invoice.original_row is self.ERP_ROWS[0]

        assert credit_note.type == RowType.CREDIT_NOTE
        assert credit_note.amount == Decimal("40.00")
        assert credit_note.signed_amount == Decimal("-40.00")

    def test_ids_are_unique(self, config: ReconConfig) -> None:
        rows = Normalizer(config, SequentialIdFactory()).normalize(self.ERP_ROWS, LedgerSource.ERP)
        assert len({r.id for r in rows}) == len(rows)

    def test_placeholder_invoice_without_invoice_column(self, config: ReconConfig) -> None:
        rows = Normalizer(config).normalize([{"Amount": 10}, {"Amount": 20}], LedgerSource.VENDOR)

        assert [r.invoice for r in rows] == ["UNKNOWN-0", "UNKNOWN-1"]
        assert all(r.date == "" for r in rows)

    def test_float_invoice_numbers_lose_trailing_zero(self, config: ReconConfig) -> None:
        rows = Normalizer(config).normalize(
            [{"Invoice": 12345.0, "Debit": 10}], LedgerSource.VENDOR
        )
        assert rows[0].invoice == "12345"
        assert rows[0].normalized_code == "12345"

    def test_oversized_amount_does_not_stop_the_run(self, config: ReconConfig) -> None:
        rows = [
            {"Invoice": "INV-1", "Amount": 1e30},
            {"Invoice": "INV-2", "Amount": "1234567890123456789012345678901"},
            {"Invoice": "INV-3", "Amount": "12.00"},
        ]

        normalized = Normalizer(config).normalize(rows, LedgerSource.ERP)

        assert [(r.invoice, r.amount) for r in normalized] == [("INV-3", Decimal("12.00"))]

    def test_empty_input(self, config: ReconConfig) -> None:
        assert Normalizer(config).normalize([], LedgerSource.ERP) == []

    def test_idempotent_apart_from_ids(self, config: ReconConfig) -> None:
        first = Normalizer(config).normalize(self.ERP_ROWS, LedgerSource.ERP)
        second = Normalizer(config).normalize(self.ERP_ROWS, LedgerSource.ERP)

        def key(r):
            return (r.invoice, r.amount, r.type, r.normalized_code, r.date, r.vendor_name)

        assert [key(r) for r in first] == [key(r) for r in second]
