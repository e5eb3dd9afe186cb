"""
Exception records: unmatched ledger rows queued for manual follow-up.
"""

from dataclasses import asdict, dataclass
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable, Optional
import logging
import re

from ..models.records import NormalizedRow
from ..utils.ids import IdFactory, UuidIdFactory

if TYPE_CHECKING:
    from .store import ExceptionStore

logger = logging.getLogger(__name__)

UNKNOWN_VENDOR = "Unknown Vendor"
UNKNOWN_ENTITY = "Unknown Entity"


class RecordStatus(str, Enum):
    """Follow-up state of an exception record."""

    INCOMPLETE = "Incomplete"
    COMPLETE = "Complete"


@dataclass
class ExceptionRecord:
    """An unmatched row as kept by the exception store."""

    id: str
    invoice: str
    amount: Decimal
    date: str
    vendor_name: str
    entity: str
    status: RecordStatus = RecordStatus.INCOMPLETE
    comments: str = ""
    added_at: str = ""

    @property
    def signature(self) -> str:
        return record_signature(self.invoice, self.amount, self.vendor_name)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["amount"] = str(self.amount)
        data["status"] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExceptionRecord":
        return cls(
            id=data["id"],
            invoice=data.get("invoice", ""),
            amount=Decimal(str(data.get("amount", "0"))),
            date=data.get("date", ""),
            vendor_name=data.get("vendor_name", ""),
            entity=data.get("entity", ""),
            status=RecordStatus(data.get("status", RecordStatus.INCOMPLETE.value)),
            comments=data.get("comments", ""),
            added_at=data.get("added_at", ""),
        )


@dataclass(frozen=True)
class PushOutcome:
    """Result of pushing unmatched rows to a store."""

    added: list[ExceptionRecord]
    skipped: list[NormalizedRow]


def record_signature(invoice: str, amount: Decimal, vendor_name: str) -> str:
    """
    Duplicate-detection key: ``invoice|amount|vendor``.

    Invoice and vendor are trimmed and lowercased; the amount is fixed to
    two decimals.
    """
    return f"{invoice.strip().lower()}|{Decimal(amount):.2f}|{vendor_name.strip().lower()}"


def to_exception_records(
    rows: Iterable[NormalizedRow], id_factory: Optional[IdFactory] = None
) -> list[ExceptionRecord]:
    """
    Convert unmatched rows into new exception records.

    Each record gets a fresh ``DB-`` id, status Incomplete, no comments and
    the factory's current time as ``added_at``.
    """
    id_factory = id_factory or UuidIdFactory()
    return [
        ExceptionRecord(
            id=id_factory.new_id("DB"),
            invoice=row.invoice,
            amount=row.amount,
            date=row.date,
            vendor_name=row.vendor_name or UNKNOWN_VENDOR,
            entity=row.entity or UNKNOWN_ENTITY,
            status=RecordStatus.INCOMPLETE,
            comments="",
            added_at=id_factory.now().isoformat(),
        )
        for row in rows
    ]


def push_unmatched(
    store: "ExceptionStore",
    rows: Iterable[NormalizedRow],
    id_factory: Optional[IdFactory] = None,
) -> PushOutcome:
    """
    Store unmatched rows that are not already present.

    A row is a duplicate when its signature equals that of a stored record.
    Signatures are compared on the raw vendor name, so a row with a blank
    vendor never collides with a stored "Unknown Vendor" record.
    """
    existing = {record.signature for record in store.get_all()}

    fresh: list[NormalizedRow] = []
    skipped: list[NormalizedRow] = []
    for row in rows:
        sig = record_signature(row.invoice, row.amount, row.vendor_name)
        if sig in existing:
            skipped.append(row)
        else:
            fresh.append(row)

    added = to_exception_records(fresh, id_factory)
    if added:
        store.put_many(added)

    logger.info(f"Pushed {len(added)} exception records ({len(skipped)} duplicates skipped)")
    return PushOutcome(added=added, skipped=skipped)


def matches_wildcard(text: Optional[str], pattern: str) -> bool:
    """
    Case-insensitive filter match.

    Without ``*`` the pattern is a substring test; with ``*`` the whole
    text must match, each ``*`` standing for any run of characters.
    An empty pattern matches everything.
    """
    if not pattern:
        return True

    t = (text or "").lower()
    p = pattern.lower()

    if "*" not in p:
        return p in t

    regex = ".*".join(re.escape(part) for part in p.split("*"))
    return re.fullmatch(regex, t, flags=re.DOTALL) is not None
