"""
Command-line interface for the vendor statement reconciliation tool.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional
import logging
import sys

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .config import generate_default_config, load_config
from .matching.engine import ReconciliationEngine
from .models.records import LedgerSource, MatchStatus, ReconciliationResult
from .normalization.normalizer import Normalizer
from .parsers.spreadsheet_parser import SpreadsheetParser
from .reports.excel_generator import ExcelReportGenerator
from .storage.records import RecordStatus, push_unmatched
from .storage.store import JsonExceptionStore
from .utils.exceptions import ReconciliationError
from .utils.logging_config import setup_logging

console = Console()


@click.group()
@click.version_option(version="0.1.0")
def main():
    """ERP vs vendor statement reconciliation tool."""
    pass


@main.command()
@click.argument("erp_file", type=click.Path(exists=True, path_type=Path))
@click.argument("vendor_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file (YAML)",
)
@click.option("-o", "--output", type=click.Path(path_type=Path), help="Output Excel file path")
@click.option(
    "--push-missing",
    type=click.Path(path_type=Path),
    default=None,
    help="Append unmatched ERP rows to this JSON exception store",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option(
    "--dry-run", is_flag=True, help="Run the reconciliation without writing a report"
)
def reconcile(
    erp_file: Path,
    vendor_file: Path,
    config: Optional[Path],
    output: Optional[Path],
    push_missing: Optional[Path],
    verbose: bool,
    dry_run: bool,
):
    """
    Reconcile an ERP ledger export against a vendor statement.

    ERP_FILE: Path to the internal ledger export (CSV or Excel)
    VENDOR_FILE: Path to the vendor statement (CSV or Excel)
    """
    try:
        recon_config = load_config(config)
        log_level = (
            logging.DEBUG
            if verbose
            else getattr(logging, recon_config.logging.level.upper(), logging.INFO)
        )
        setup_logging(
            log_level,
            log_file=Path(recon_config.logging.file) if recon_config.logging.file else None,
            log_format=recon_config.logging.format,
        )

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            parser = SpreadsheetParser(recon_config)

            task = progress.add_task("Reading ERP export...", total=None)
            erp_rows = parser.parse_file(erp_file)
            progress.update(task, completed=True)

            task = progress.add_task("Reading vendor statement...", total=None)
            vendor_rows = parser.parse_file(vendor_file)
            progress.update(task, completed=True)

            task = progress.add_task("Running reconciliation...", total=None)
            engine = ReconciliationEngine(recon_config)
            result = engine.reconcile(erp_rows, vendor_rows)
            progress.update(task, completed=True)

        _display_summary(result)

        if push_missing is not None:
            outcome = push_unmatched(JsonExceptionStore(push_missing), result.unmatched_erp)
            console.print(
                f"\n[cyan]Exception store {push_missing}: {len(outcome.added)} added, "
                f"{len(outcome.skipped)} duplicates skipped[/cyan]"
            )

        if dry_run:
            console.print("\n[yellow]Dry run - no report generated[/yellow]")
            return

        if output is None:
            now = datetime.now()
            output = Path(
                recon_config.output.excel.filename_template.format(
                    date=now.strftime("%Y%m%d"), time=now.strftime("%H%M%S")
                )
            )

        report_path = ExcelReportGenerator(recon_config).generate_report(
            result,
            output,
            erp_filename=erp_file.name,
            vendor_filename=vendor_file.name,
        )
        console.print(f"\n[green]Report generated: {report_path}[/green]")

    except ReconciliationError as e:
        console.print(f"[red]Error: {e}[/red]")
        if verbose:
            console.print_exception()
        sys.exit(1)


@main.command()
@click.argument("ledger_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--source",
    type=click.Choice(["erp", "vendor"], case_sensitive=False),
    default="erp",
    show_default=True,
    help="Which ledger the file belongs to",
)
@click.option("-c", "--config", type=click.Path(exists=True, path_type=Path))
@click.option("-n", "--limit", type=int, default=20, show_default=True)
def inspect(ledger_file: Path, source: str, config: Optional[Path], limit: int):
    """
    Show detected column roles and the first normalized rows of a file.

    LEDGER_FILE: Path to a CSV or Excel export
    """
    try:
        recon_config = load_config(config)
        parser = SpreadsheetParser(recon_config)
        rows = parser.parse_file(ledger_file)
    except ReconciliationError as e:
        console.print(f"[red]Error parsing file: {e}[/red]")
        sys.exit(1)

    normalizer = Normalizer(recon_config)

    if rows:
        roles = Table(title="Detected Columns")
        roles.add_column("Role", style="cyan")
        roles.add_column("Column")
        for role, column in normalizer.detect_columns(rows[0]).as_dict().items():
            roles.add_row(role, column or "[dim]-[/dim]")
        console.print(roles)

    normalized = normalizer.normalize(rows, LedgerSource(source.upper()))

    table = Table(title=f"Normalized Rows: {ledger_file.name}")
    table.add_column("Invoice")
    table.add_column("Code")
    table.add_column("Date")
    table.add_column("Type")
    table.add_column("Amount", justify="right")
    table.add_column("Vendor")

    for row in normalized[:limit]:
        table.add_row(
            row.invoice,
            row.normalized_code,
            row.date or "-",
            row.type.value,
            f"{row.amount:,.2f}",
            row.vendor_name or "-",
        )

    console.print(table)

    if len(normalized) > limit:
        console.print(f"\n... and {len(normalized) - limit} more rows")

    console.print(
        f"\nRaw rows: {len(rows)}  Normalized rows: {len(normalized)} "
        f"({len(rows) - len(normalized)} payments or zero-value rows dropped)"
    )


@main.command()
@click.argument("store_file", type=click.Path(path_type=Path))
@click.option(
    "--status",
    type=click.Choice([s.value for s in RecordStatus] + ["All"]),
    default="All",
    show_default=True,
)
@click.option("--search", default="", help="Substring of invoice or amount")
@click.option("--entity", default="", help="Entity filter, * as wildcard")
@click.option("--vendor", default="", help="Vendor filter, * as wildcard")
def records(store_file: Path, status: str, search: str, entity: str, vendor: str):
    """
    List exception records kept in a JSON store.

    STORE_FILE: Path to the JSON exception store
    """
    store = JsonExceptionStore(store_file)
    try:
        selected = store.filter(
            status=None if status == "All" else RecordStatus(status),
            search=search,
            entity=entity,
            vendor=vendor,
        )
    except ReconciliationError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    table = Table(title=f"Exception Records: {store_file.name}")
    table.add_column("Invoice")
    table.add_column("Amount", justify="right")
    table.add_column("Date")
    table.add_column("Vendor")
    table.add_column("Entity")
    table.add_column("Status")
    table.add_column("Comments")

    for record in selected:
        table.add_row(
            record.invoice,
            f"{record.amount:,.2f}",
            record.date or "-",
            record.vendor_name,
            record.entity,
            record.status.value,
            record.comments,
        )

    console.print(table)
    console.print(f"\n{len(selected)} records")


@main.command("init-config")
@click.option(
    "-o", "--output", type=click.Path(path_type=Path), default=Path("config.yaml")
)
def init_config(output: Path):
    """Generate a sample configuration file."""
    generate_default_config(output)
    console.print(f"[green]Configuration file generated: {output}[/green]")


def _display_summary(result: ReconciliationResult) -> None:
    """Display reconciliation summary in console."""
    stats = result.stats

    table = Table(title="Reconciliation Summary")
    table.add_column("Category", style="cyan")
    table.add_column("Count", justify="right")
    table.add_column("Amount", justify="right")

    for status in MatchStatus:
        totals = stats.for_status(status)
        table.add_row(status.value, str(totals.count), f"{totals.total:,.2f}")
    table.add_row("ERP Only", str(stats.unmatched_erp.count), f"{stats.unmatched_erp.total:,.2f}")
    table.add_row(
        "Vendor Only", str(stats.unmatched_vendor.count), f"{stats.unmatched_vendor.total:,.2f}"
    )
    table.add_row("ERP Match Rate", f"{stats.match_rate_erp:.1f}%", "")
    table.add_row("Vendor Match Rate", f"{stats.match_rate_vendor:.1f}%", "")
    table.add_row("Processing Time", f"{result.processing_time_seconds:.2f}s", "")

    console.print(table)


if __name__ == "__main__":
    main()
