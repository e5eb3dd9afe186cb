"""
Ledger row normalizer.

Turns tabular rows from either ledger into ``NormalizedRow`` records:
detects which column plays which role, parses amounts and dates leniently,
classifies the document and drops payments and zero-value lines.
"""

from dataclasses import dataclass, fields
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional, Sequence
import logging
import math
import numbers
import re

import pandas as pd

from ..config import ClassificationConfig, ColumnRolesConfig, ReconConfig
from ..models.records import LedgerSource, NormalizedRow, RawRow, RowType, ZERO
from ..utils.ids import IdFactory, UuidIdFactory
from .codes import clean_code

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

# Spreadsheet serial day 0; correct for serials from 1900-03-01 on
SPREADSHEET_EPOCH = date(1899, 12, 30)
# Serial 60 is the non-existent 1900-02-29 kept by spreadsheet software
PHANTOM_LEAP_DAY = 60
# 9999-12-31; larger numeric strings are left to the general date parser
MAX_SERIAL = 2958465

# Amounts at or above 10**15 are treated as unparseable
MAX_AMOUNT_EXPONENT = 15

_AMOUNT_NOISE_RE = re.compile(r"[^0-9,.\-]")
_NUMERIC_TEXT_RE = re.compile(r"^[0-9]+(?:\.[0-9]+)?$")


@dataclass(frozen=True)
class ColumnMapping:
    """Source column chosen for each semantic role (None when absent)."""

    invoice: Optional[str] = None
    debit: Optional[str] = None
    credit: Optional[str] = None
    date: Optional[str] = None
    reason: Optional[str] = None
    entity: Optional[str] = None
    vendor: Optional[str] = None

    def as_dict(self) -> dict[str, Optional[str]]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def round2(value: Decimal) -> Decimal:
    """Round a monetary value to cents, half up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _is_missing(value: Any) -> bool:
    if value is None or value is pd.NaT:
        return True
    return isinstance(value, float) and math.isnan(value)


def detect_columns(row: RawRow, roles: ColumnRolesConfig) -> ColumnMapping:
    """
    Pick a column for each role by case-insensitive keyword containment.

    For every role the first column (in the row's key order) whose name
    contains any of the role's keywords wins. Roles are resolved
    independently, so one column may serve several roles.

    Args:
        row: A representative row, usually the first one
        roles: Keyword lists per role

    Returns:
        Mapping of role name to column name
    """
    lowered = [(key, str(key).lower()) for key in row.keys()]

    def find(candidates: Sequence[str]) -> Optional[str]:
        needles = [c.lower() for c in candidates]
        for key, low in lowered:
            if any(needle in low for needle in needles):
                return key
        return None

    return ColumnMapping(
        invoice=find(roles.invoice),
        debit=find(roles.debit),
        credit=find(roles.credit),
        date=find(roles.date),
        reason=find(roles.reason),
        entity=find(roles.entity),
        vendor=find(roles.vendor),
    )


def parse_amount(value: Any) -> Decimal:
    """
    Parse a monetary cell into a Decimal, returning 0 when unparseable.

    Currency symbols and other noise are ignored. When both ``,`` and ``.``
    occur, whichever comes last is the decimal separator ("1.234,56" and
    "1,234.56" are both 1234.56). A single comma on its own is a decimal
    comma; a separator repeated on its own is a thousands separator.
    Magnitudes of 10**15 and above count as unparseable.
    """
    if _is_missing(value) or isinstance(value, bool):
        return ZERO

    if isinstance(value, numbers.Number):
        try:
            parsed = Decimal(str(value))
        except InvalidOperation:
            return ZERO
        return _bounded(parsed)

    s = _AMOUNT_NOISE_RE.sub("", str(value).strip())
    if not s:
        return ZERO

    if "," in s and "." in s:
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    elif "," in s:
        s = s.replace(",", "") if s.count(",") > 1 else s.replace(",", ".")
    elif s.count(".") > 1:
        s = s.replace(".", "")

    try:
        parsed = Decimal(s)
    except InvalidOperation:
        return ZERO
    return _bounded(parsed)


def _bounded(parsed: Decimal) -> Decimal:
    if not parsed.is_finite() or parsed.adjusted() >= MAX_AMOUNT_EXPONENT:
        return ZERO
    return parsed


def normalize_date(value: Any) -> str:
    """
    Normalize a date cell to ``YYYY-MM-DD``.

    Numbers, and strings that are plain numbers within the serial range,
    are read as spreadsheet day serials. Date objects are formatted
    directly, strings go through pandas' general parser. Anything else, or
    anything that fails to parse, yields "".
    """
    if _is_missing(value) or isinstance(value, bool):
        return ""

    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")

    if isinstance(value, numbers.Number):
        return _serial_to_iso(float(value))

    text = str(value).strip()
    if not text:
        return ""

    # Serials arrive as text from CSV exports
    if _NUMERIC_TEXT_RE.match(text) and float(text) <= MAX_SERIAL:
        return _serial_to_iso(float(text))

    try:
        parsed = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return ""
    if pd.isna(parsed):
        return ""
    return parsed.strftime("%Y-%m-%d")


def _serial_to_iso(serial: float) -> str:
    if not math.isfinite(serial) or serial < 1:
        return ""

    days = int(serial)
    if days == PHANTOM_LEAP_DAY:
        return "1900-02-29"
    if days < PHANTOM_LEAP_DAY:
        days += 1

    try:
        return (SPREADSHEET_EPOCH + timedelta(days=days)).strftime("%Y-%m-%d")
    except OverflowError:
        return ""


def classify(
    reason: str, debit: Decimal, credit: Decimal, keywords: ClassificationConfig
) -> RowType:
    """
    Classify a row from its lowercased reason text and amounts.

    Payment keywords win over everything; then a credit-note keyword or a
    credit larger than the debit makes a credit note; otherwise an invoice.
    """
    if any(k.lower() in reason for k in keywords.payment_keywords):
        return RowType.IGNORE
    if any(k.lower() in reason for k in keywords.credit_note_keywords) or credit > debit:
        return RowType.CREDIT_NOTE
    return RowType.INVOICE


def _text(value: Any) -> str:
    if _is_missing(value):
        return ""
    # Spreadsheet readers hand back whole numbers as floats
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class Normalizer:
    """
    Converts raw ledger rows into normalized line items.

    Column roles are detected once per call from the first row; all other
    rows are assumed to share its layout.
    """

    def __init__(self, config: ReconConfig, id_factory: Optional[IdFactory] = None):
        """
        Initialize the normalizer.

        Args:
            config: Application configuration
            id_factory: Source of row identifiers
        """
        self.config = config
        self.id_factory = id_factory or UuidIdFactory()
        self.prefixes = tuple(config.input.code_cleaning.prefixes)

    def detect_columns(self, row: RawRow) -> ColumnMapping:
        return detect_columns(row, self.config.input.column_roles)

    def normalize(self, rows: Sequence[RawRow], source: LedgerSource) -> list[NormalizedRow]:
        """
        Normalize all rows of one ledger.

        Args:
            rows: Tabular rows from the ingestion layer
            source: Which ledger the rows belong to

        Returns:
            Normalized rows, without payments and zero amounts
        """
        if not rows:
            return []

        columns = self.detect_columns(rows[0])
        logger.debug(f"{source.value} column roles: {columns.as_dict()}")

        normalized: list[NormalizedRow] = []
        dropped = 0

        for idx, row in enumerate(rows):
            record = self._normalize_row(row, idx, source, columns)
            if record.type == RowType.IGNORE or record.amount <= 0:
                dropped += 1
                continue
            normalized.append(record)

        logger.info(
            f"Normalized {len(normalized)} {source.value} rows "
            f"({dropped} payments or zero-value rows dropped)"
        )
        return normalized

    def _normalize_row(
        self, row: RawRow, idx: int, source: LedgerSource, columns: ColumnMapping
    ) -> NormalizedRow:
        """Build one NormalizedRow; never raises on bad cell values."""
        if columns.invoice is not None:
            invoice = _text(row.get(columns.invoice))
        else:
            invoice = self.config.input.placeholder_invoice.format(index=idx)

        debit = parse_amount(row.get(columns.debit)) if columns.debit else ZERO
        credit = parse_amount(row.get(columns.credit)) if columns.credit else ZERO
        reason = _text(row.get(columns.reason)).lower() if columns.reason else ""

        return NormalizedRow(
            id=self.id_factory.new_id(f"{source.value}-{idx}"),
            source=source,
            invoice=invoice,
            amount=round2(abs(debit - credit)),
            type=classify(reason, debit, credit, self.config.input.classification),
            normalized_code=clean_code(invoice, self.prefixes),
            date=normalize_date(row.get(columns.date)) if columns.date else "",
            entity=_text(row.get(columns.entity)).strip() if columns.entity else "",
            vendor_name=_text(row.get(columns.vendor)).strip() if columns.vendor else "",
            original_row=row,
        )
