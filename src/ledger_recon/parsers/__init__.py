"""Readers for ledger exports."""

from .spreadsheet_parser import SpreadsheetParser

__all__ = ["SpreadsheetParser"]
