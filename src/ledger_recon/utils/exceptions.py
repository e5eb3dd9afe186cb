"""Custom exceptions for the reconciliation application."""


class ReconciliationError(Exception):
    """Base exception for reconciliation errors."""

    pass


class SpreadsheetParseError(ReconciliationError):
    """Error reading a CSV or Excel ledger export."""

    pass


class ConfigurationError(ReconciliationError):
    """Error in configuration."""

    pass


class StorageError(ReconciliationError):
    """Error reading or writing the exception record store."""

    pass


class ReportGenerationError(ReconciliationError):
    """Error generating Excel report."""

    pass
