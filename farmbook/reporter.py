from __future__ import annotations

from typing import Any, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from farmbook.domain.models import Category, DashboardSummary, Record, Report, SyncReport


def format_currency(amount: float) -> str:
    """Rupee amount with two decimals and thousands separators."""
    return f"₹{amount:,.2f}"


def _columns(records: Sequence[Record]) -> List[str]:
    """Field names in first-seen order across all records."""
    seen: dict[str, None] = {}
    for record in records:
        for key in record.data:
            seen.setdefault(key, None)
    return list(seen)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return escape(str(value))


def records_table(category: Category, records: Sequence[Record], title: Optional[str] = None) -> Table:
    columns = _columns(records)
    table = Table(
        title=title or f"{Category(category).value} ({len(records)})",
        box=box.ROUNDED,
    )
    table.add_column("ID", style="cyan", no_wrap=True)
    for column in columns:
        justify = "right" if column in ("amount", "quantity", "price") else "left"
        table.add_column(column, justify=justify)
    table.add_column("Created", style="dim")

    for record in records:
        table.add_row(
            record.id,
            *(_cell(record.get(column)) for column in columns),
            record.created_at.strftime("%Y-%m-%d %H:%M"),
        )
    return table


def print_records(
    category: Category, records: Sequence[Record], console: Optional[Console] = None
) -> None:
    """
    Render the records of a category as a rich table.

    Columns are the union of field names; fields a record lacks render blank.
    """
    console = console or Console()
    if not records:
        console.print(f"[yellow]No {Category(category).value} records.[/yellow]")
        return
    console.print(records_table(category, records))


def print_dashboard(summary: DashboardSummary, console: Optional[Console] = None) -> None:
    console = console or Console()
    table = Table(title=f"Dashboard {summary.day}", box=box.ROUNDED, show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="bold green")
    table.add_row("Today's expenses", format_currency(summary.todays_expenses))
    table.add_row("Eggs collected", f"{summary.todays_eggs:,}")
    table.add_row("Mortality", str(summary.todays_mortality))
    table.add_row("Attendance", summary.attendance_rate)
    console.print(table)


def print_report(report: Report, console: Optional[Console] = None) -> None:
    console = console or Console()
    title = f"{report.category.value} {report.start} → {report.end}"
    if report.records:
        console.print(records_table(report.category, report.records, title=title))
    else:
        console.print(f"[yellow]No {report.category.value} records between {report.start} and {report.end}.[/yellow]")
    console.print(
        f"Total records: [magenta]{report.summary.total}[/magenta] | "
        f"Amount: [green]{format_currency(report.summary.amount)}[/green]"
    )


def print_sync_report(report: SyncReport, console: Optional[Console] = None) -> None:
    console = console or Console()
    if report.skipped:
        console.print("[yellow]Spreadsheet sync is not configured; local data left as is.[/yellow]")
        return

    table = Table(title="Spreadsheet Sync", box=box.ROUNDED)
    table.add_column("Category", style="cyan", no_wrap=True)
    table.add_column("Result")
    for category, rows in sorted(report.replaced.items(), key=lambda item: item[0].value):
        table.add_row(category.value, f"[green]{rows} rows[/green]")
    for category, error in sorted(report.failed.items(), key=lambda item: item[0].value):
        table.add_row(category.value, f"[red]failed: {escape(error)}[/red]")
    console.print(table)
    if report.discarded_local:
        console.print(f"[yellow]{report.discarded_local} local-only records were replaced.[/yellow]")
