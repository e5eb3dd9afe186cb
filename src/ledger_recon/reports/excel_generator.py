"""
Excel report generator for reconciliation results.
Creates multi-sheet workbooks with formatted output.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Optional
import logging

from openpyxl import Workbook
from openpyxl.styles import Border, Font, PatternFill, Side
from openpyxl.worksheet.worksheet import Worksheet

from ..config import ReconConfig, SheetConfig
from ..models.records import (
    MatchResult,
    MatchStatus,
    NormalizedRow,
    ReconciliationResult,
)
from ..utils.exceptions import ReportGenerationError

logger = logging.getLogger(__name__)

# Style definitions
HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True)
MATCH_FILL = PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid")
VARIANCE_FILL = PatternFill(start_color="FFEB9C", end_color="FFEB9C", fill_type="solid")
FUZZY_FILL = PatternFill(start_color="E4DFEC", end_color="E4DFEC", fill_type="solid")
UNMATCHED_FILL = PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid")
THIN_BORDER = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)

MATCH_HEADERS = [
    "ERP Invoice",
    "Vendor Invoice",
    "ERP Amount",
    "Vendor Amount",
    "Difference",
]
FUZZY_HEADERS = MATCH_HEADERS + ["Similarity", "Status", "Tier"]
ROW_HEADERS = ["Invoice", "Normalized Code", "Date", "Type", "Amount", "Entity", "Vendor"]


class ExcelReportGenerator:
    """Generates Excel reconciliation reports with multiple sheets."""

    def __init__(self, config: ReconConfig):
        """
        Initialize the report generator.

        Args:
            config: Application configuration
        """
        self.config = config
        self.sheet_config = config.output.sheets

    def generate_report(
        self,
        result: ReconciliationResult,
        output_path: Path,
        erp_filename: str = "",
        vendor_filename: str = "",
    ) -> Path:
        """
        Generate the complete reconciliation report.

        Args:
            result: Reconciliation result
            output_path: Path for output file
            erp_filename: Name of the ERP export, shown on the summary sheet
            vendor_filename: Name of the vendor statement, shown on the summary sheet

        Returns:
            Path to generated report

        Raises:
            ReportGenerationError: If the workbook cannot be written
        """
        logger.info(f"Generating Excel report: {output_path}")

        wb = Workbook()

        # Remove default sheet
        if wb.active:
            wb.remove(wb.active)

        sheets = self.sheet_config
        if sheets.summary.enabled:
            self._create_summary_sheet(wb, sheets.summary, result, erp_filename, vendor_filename)
        if sheets.perfect.enabled:
            self._create_match_sheet(
                wb,
                sheets.perfect,
                result.matches_with_status(MatchStatus.PERFECT),
                MATCH_FILL,
            )
        if sheets.difference.enabled:
            self._create_match_sheet(
                wb,
                sheets.difference,
                result.matches_with_status(MatchStatus.DIFFERENCE),
                VARIANCE_FILL,
            )
        if sheets.fuzzy.enabled:
            self._create_match_sheet(
                wb,
                sheets.fuzzy,
                result.matches_with_status(MatchStatus.TIER_2, MatchStatus.TIER_3),
                FUZZY_FILL,
                fuzzy=True,
            )
        if sheets.erp_only.enabled:
            self._create_rows_sheet(wb, sheets.erp_only, result.unmatched_erp)
        if sheets.vendor_only.enabled:
            self._create_rows_sheet(wb, sheets.vendor_only, result.unmatched_vendor)

        if not wb.sheetnames:
            raise ReportGenerationError("All report sheets are disabled in the configuration")

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            wb.save(output_path)
        except OSError as e:
            raise ReportGenerationError(f"Failed to save report {output_path}: {e}") from e

        logger.info(f"Report saved: {output_path}")
        return output_path

    def _create_summary_sheet(
        self,
        wb: Workbook,
        sheet: SheetConfig,
        result: ReconciliationResult,
        erp_filename: str,
        vendor_filename: str,
    ) -> None:
        """Create the summary sheet with key metrics."""
        ws = wb.create_sheet(sheet.name)
        stats = result.stats

        ws["A1"] = "Vendor Reconciliation Summary"
        ws["A1"].font = Font(size=16, bold=True)
        ws.merge_cells("A1:C1")

        file_info = [
            ("ERP File:", erp_filename or "-"),
            ("Vendor File:", vendor_filename or "-"),
            ("Generated At:", datetime.now().strftime("%Y-%m-%d %H:%M:%S")),
            ("Processing Time:", f"{result.processing_time_seconds:.2f} seconds"),
        ]
        for i, (label, value) in enumerate(file_info, start=3):
            ws[f"A{i}"] = label
            ws[f"B{i}"] = value

        ws["A8"] = "Category"
        ws["B8"] = "Count"
        ws["C8"] = "Amount"
        for cell in (ws["A8"], ws["B8"], ws["C8"]):
            cell.fill = HEADER_FILL
            cell.font = HEADER_FONT

        rows: list[tuple[str, int, Any]] = [
            (status.value, stats.for_status(status).count, float(stats.for_status(status).total))
            for status in MatchStatus
        ]
        rows.append(("ERP Only", stats.unmatched_erp.count, float(stats.unmatched_erp.total)))
        rows.append(
            ("Vendor Only", stats.unmatched_vendor.count, float(stats.unmatched_vendor.total))
        )

        for i, (label, count, amount) in enumerate(rows, start=9):
            ws[f"A{i}"] = label
            ws[f"B{i}"] = count
            ws[f"C{i}"] = amount
            ws[f"C{i}"].number_format = "#,##0.00"

        rate_row = 9 + len(rows) + 1
        ws[f"A{rate_row}"] = "ERP Match Rate:"
        ws[f"B{rate_row}"] = f"{stats.match_rate_erp:.1f}%"
        ws[f"A{rate_row + 1}"] = "Vendor Match Rate:"
        ws[f"B{rate_row + 1}"] = f"{stats.match_rate_vendor:.1f}%"

        ws.column_dimensions["A"].width = 24
        ws.column_dimensions["B"].width = 40
        ws.column_dimensions["C"].width = 16

    def _create_match_sheet(
        self,
        wb: Workbook,
        sheet: SheetConfig,
        matches: list[MatchResult],
        fill: PatternFill,
        fuzzy: bool = False,
    ) -> None:
        """Create a sheet listing matched pairs."""
        ws = wb.create_sheet(sheet.name)
        self._write_headers(ws, FUZZY_HEADERS if fuzzy else MATCH_HEADERS)

        for row_num, match in enumerate(matches, start=2):
            row_data: list[Any] = [
                match.erp_invoice,
                match.vendor_invoice,
                float(match.erp_amount),
                float(match.vendor_amount),
                float(match.difference),
            ]
            if fuzzy:
                row_data += [
                    _percent(match.similarity),
                    match.status.value,
                    match.tier,
                ]

            for col, value in enumerate(row_data, start=1):
                cell = ws.cell(row=row_num, column=col, value=value)
                cell.border = THIN_BORDER
                cell.fill = fill

        self._auto_fit_columns(ws)

    def _create_rows_sheet(
        self, wb: Workbook, sheet: SheetConfig, rows: list[NormalizedRow]
    ) -> None:
        """Create a sheet of unmatched rows for one ledger."""
        ws = wb.create_sheet(sheet.name)
        self._write_headers(ws, ROW_HEADERS)

        for row_num, row in enumerate(rows, start=2):
            row_data = [
                row.invoice,
                row.normalized_code,
                row.date,
                row.type.value,
                float(row.amount),
                row.entity,
                row.vendor_name,
            ]
            for col, value in enumerate(row_data, start=1):
                cell = ws.cell(row=row_num, column=col, value=value)
                cell.border = THIN_BORDER
                cell.fill = UNMATCHED_FILL

        self._auto_fit_columns(ws)

    def _write_headers(self, ws: Worksheet, headers: list[str]) -> None:
        for col, header in enumerate(headers, start=1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.fill = HEADER_FILL
            cell.font = HEADER_FONT
            cell.border = THIN_BORDER

    def _auto_fit_columns(self, ws: Worksheet) -> None:
        """Auto-fit column widths based on content."""
        for column_cells in ws.columns:
            max_length = max(
                (len(str(cell.value)) for cell in column_cells if cell.value is not None),
                default=0,
            )
            ws.column_dimensions[column_cells[0].column_letter].width = min(max_length + 2, 50)


def _percent(value: Optional[float]) -> str:
    return f"{round((value or 0) * 100)}%"
