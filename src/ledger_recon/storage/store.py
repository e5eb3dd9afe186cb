"""
Keyed stores for exception records.
"""

from abc import ABC, abstractmethod
from dataclasses import fields, replace
from pathlib import Path
from typing import Any, Iterable, Optional
import json
import logging
import os

from ..utils.exceptions import StorageError
from .records import ExceptionRecord, RecordStatus, matches_wildcard

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = {f.name for f in fields(ExceptionRecord)} - {"id"}


class ExceptionStore(ABC):
    """Abstract base class for exception record stores, keyed by record id."""

    @abstractmethod
    def get_all(self) -> list[ExceptionRecord]:
        """Return every record in insertion order."""
        pass

    @abstractmethod
    def put_many(self, records: Iterable[ExceptionRecord]) -> None:
        """Insert records, replacing any with the same id."""
        pass

    @abstractmethod
    def update_partial(self, record_id: str, **changes: Any) -> ExceptionRecord:
        """
        Change selected fields of one record.

        Raises:
            StorageError: If the id is unknown or a field cannot be updated
        """
        pass

    @abstractmethod
    def delete(self, record_id: str) -> None:
        """Remove a record; unknown ids are ignored."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove every record."""
        pass

    def filter(
        self,
        status: Optional[RecordStatus] = None,
        search: str = "",
        entity: str = "",
        vendor: str = "",
    ) -> list[ExceptionRecord]:
        """
        Select records for review.

        Args:
            status: Only records in this state (None for all)
            search: Substring of the invoice or the amount
            entity: Wildcard filter on the entity
            vendor: Wildcard filter on the vendor name

        Returns:
            Matching records in store order
        """
        needle = search.lower()
        return [
            r
            for r in self.get_all()
            if (status is None or r.status == status)
            and (not needle or needle in r.invoice.lower() or needle in str(r.amount))
            and matches_wildcard(r.entity, entity)
            and matches_wildcard(r.vendor_name, vendor)
        ]


def _apply_changes(record: ExceptionRecord, changes: dict[str, Any]) -> ExceptionRecord:
    unknown = set(changes) - _UPDATABLE_FIELDS
    if unknown:
        raise StorageError(f"Cannot update fields {sorted(unknown)} of record {record.id}")
    if "status" in changes:
        try:
            status = RecordStatus(changes["status"])
        except ValueError as e:
            raise StorageError(
                f"Invalid status {changes['status']!r} for record {record.id}"
            ) from e
        changes = {**changes, "status": status}
    return replace(record, **changes)


class InMemoryExceptionStore(ExceptionStore):
    """Process-local store; contents are lost when the process exits."""

    def __init__(self, records: Optional[Iterable[ExceptionRecord]] = None):
        self._records: dict[str, ExceptionRecord] = {}
        if records:
            self.put_many(records)

    def get_all(self) -> list[ExceptionRecord]:
        return list(self._records.values())

    def put_many(self, records: Iterable[ExceptionRecord]) -> None:
        for record in records:
            self._records[record.id] = record

    def update_partial(self, record_id: str, **changes: Any) -> ExceptionRecord:
        if record_id not in self._records:
            raise StorageError(f"No exception record with id {record_id}")
        updated = _apply_changes(self._records[record_id], changes)
        self._records[record_id] = updated
        return updated

    def delete(self, record_id: str) -> None:
        self._records.pop(record_id, None)

    def clear(self) -> None:
        self._records.clear()


class JsonExceptionStore(ExceptionStore):
    """
    Store backed by a single JSON file.

    The file is re-read on every call and rewritten atomically on every
    mutation, so separate CLI invocations see each other's changes.
    """

    def __init__(self, path: Path):
        """
        Initialize the store.

        Args:
            path: JSON file; created on first write
        """
        self.path = path

    def _load(self) -> dict[str, ExceptionRecord]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                payload = json.load(f)
            records = [ExceptionRecord.from_dict(item) for item in payload.get("records", [])]
        except (OSError, ValueError, KeyError, AttributeError) as e:
            raise StorageError(f"Failed to read exception store {self.path}: {e}") from e
        return {r.id: r for r in records}

    def _save(self, records: dict[str, ExceptionRecord]) -> None:
        payload = {"records": [r.to_dict() for r in records.values()]}
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StorageError(f"Failed to write exception store {self.path}: {e}") from e
        logger.debug(f"Saved {len(records)} exception records to {self.path}")

    def get_all(self) -> list[ExceptionRecord]:
        return list(self._load().values())

    def put_many(self, records: Iterable[ExceptionRecord]) -> None:
        current = self._load()
        for record in records:
            current[record.id] = record
        self._save(current)

    def update_partial(self, record_id: str, **changes: Any) -> ExceptionRecord:
        current = self._load()
        if record_id not in current:
            raise StorageError(f"No exception record with id {record_id}")
        updated = _apply_changes(current[record_id], changes)
        current[record_id] = updated
        self._save(current)
        return updated

    def delete(self, record_id: str) -> None:
        current = self._load()
        if current.pop(record_id, None) is not None:
            self._save(current)

    def clear(self) -> None:
        self._save({})
