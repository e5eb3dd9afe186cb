"""Exception records and their stores."""

from .records import (
    ExceptionRecord,
    PushOutcome,
    RecordStatus,
    matches_wildcard,
    push_unmatched,
    record_signature,
    to_exception_records,
)
from .store import ExceptionStore, InMemoryExceptionStore, JsonExceptionStore

__all__ = [
    "ExceptionRecord",
    "PushOutcome",
    "RecordStatus",
    "matches_wildcard",
    "push_unmatched",
    "record_signature",
    "to_exception_records",
    "ExceptionStore",
    "InMemoryExceptionStore",
    "JsonExceptionStore",
]
