"""Utility modules."""

from .exceptions import (
    ReconciliationError,
    SpreadsheetParseError,
    ConfigurationError,
    StorageError,
    ReportGenerationError,
)
from .ids import IdFactory, SequentialIdFactory, UuidIdFactory
from .logging_config import setup_logging

__all__ = [
    "ReconciliationError",
    "SpreadsheetParseError",
    "ConfigurationError",
    "StorageError",
    "ReportGenerationError",
    "IdFactory",
    "SequentialIdFactory",
    "UuidIdFactory",
    "setup_logging",
]
