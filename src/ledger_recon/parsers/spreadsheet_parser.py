"""
CSV / Excel ledger export reader.
Loads the first sheet (or the whole CSV) into plain row dictionaries.
"""

from pathlib import Path
from typing import Any
import logging

import pandas as pd

from ..config import ReconConfig
from ..models.records import RawRow
from ..normalization.normalizer import detect_columns
from ..utils.exceptions import SpreadsheetParseError

logger = logging.getLogger(__name__)

CSV_SUFFIXES = {".csv", ".txt"}
EXCEL_SUFFIXES = {".xlsx", ".xlsm", ".xls"}


class SpreadsheetParser:
    """
    Reader for ERP exports and vendor statements.

    Produces ``RawRow`` dictionaries only; column interpretation is left
    to the normalizer.
    """

    def __init__(self, config: ReconConfig):
        """
        Initialize the parser with configuration.

        Args:
            config: Application configuration object
        """
        self.config = config

    def parse_file(self, file_path: Path) -> list[RawRow]:
        """
        Parse a CSV or Excel file into raw rows.

        Args:
            file_path: Path to the export

        Returns:
            One dictionary per data row, empty cells as None

        Raises:
            SpreadsheetParseError: If the file type is unsupported or reading fails
        """
        logger.info(f"Parsing ledger file: {file_path}")

        df = self._read_dataframe(file_path)
        rows = self._to_rows(df)

        logger.info(f"Extracted {len(rows)} rows from {file_path.name}")
        return rows

    def _read_dataframe(self, file_path: Path) -> pd.DataFrame:
        suffix = file_path.suffix.lower()
        input_config = self.config.input

        try:
            if suffix in CSV_SUFFIXES:
                # Keep cells as text so "1.234,56" and "0057" reach the normalizer intact
                return pd.read_csv(
                    file_path,
                    encoding=input_config.encoding,
                    delimiter=input_config.delimiter,
                    dtype=str,
                    keep_default_na=False,
                    na_values=[""],
                )
            if suffix in EXCEL_SUFFIXES:
                return pd.read_excel(file_path, sheet_name=input_config.sheet, dtype=object)
        except Exception as e:
            logger.error(f"Failed to read {file_path}: {e}")
            raise SpreadsheetParseError(f"Failed to read {file_path}: {e}") from e

        raise SpreadsheetParseError(
            f"Unsupported file type '{suffix}' for {file_path.name}; "
            f"expected one of {sorted(CSV_SUFFIXES | EXCEL_SUFFIXES)}"
        )

    def _to_rows(self, df: pd.DataFrame) -> list[RawRow]:
        df = df.dropna(how="all")
        df.columns = [str(c).strip() for c in df.columns]
        df = df.astype(object).where(pd.notna(df), None)
        return df.to_dict(orient="records")

    def get_file_summary(self, file_path: Path) -> dict[str, Any]:
        """
        Get summary information about a ledger export.

        Args:
            file_path: Path to the export

        Returns:
            Dictionary with row count, columns and detected column roles
        """
        rows = self.parse_file(file_path)
        columns = list(rows[0].keys()) if rows else []
        roles = (
            detect_columns(rows[0], self.config.input.column_roles).as_dict()
            if rows
            else {}
        )

        return {
            "row_count": len(rows),
            "columns": columns,
            "column_roles": roles,
        }
