from __future__ import annotations

import asyncio
import json
import sys
from datetime import date
from pathlib import Path
from typing import Any, Awaitable, Dict, List, Optional, TypeVar

import typer
from rich.console import Console

from farmbook.config import get_settings
from farmbook.dashboard import dashboard_stats, generate_report
from farmbook.domain.models import Category
from farmbook.errors import FarmbookError
from farmbook.exporter import export_csv
from farmbook.forms import FORM_CATEGORIES, coerce_form_fields, submit_form, validate_form_map
from farmbook.infrastructure.sheets_client import SheetsClient
from farmbook.infrastructure.snapshot import read_legacy_file
from farmbook.reporter import (
    print_dashboard,
    print_records,
    print_report,
    print_sync_report,
    records_table,
)
from farmbook.store import RecordStore
from farmbook.sync import SheetsSync
from farmbook.utils.logging import configure_logging

T = TypeVar("T")

app = typer.Typer(help="Farm record keeping CLI.", no_args_is_help=True)


def _parse_fields(pairs: List[str]) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected field=value, got '{pair}'")
        fields[key.strip()] = value
    return fields


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise typer.BadParameter(f"Expected a YYYY-MM-DD date, got '{value}'") from None


def _run(coro: Awaitable[T]) -> T:
    """Run a coroutine; farmbook errors become a red message and exit code 1."""
    try:
        return asyncio.run(coro)  # type: ignore[arg-type]
    except FarmbookError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


async def _open_store() -> RecordStore:
    return await RecordStore.open(get_settings().data_file)


def _sheets_sync() -> SheetsSync:
    return SheetsSync(SheetsClient.from_settings(get_settings()))


@app.callback()
def startup() -> None:
    """
    Configure logging and check the form table before any command runs.
    """
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    validate_form_map()


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"data_file={settings.data_file} | env={settings.app_env} | "
        f"sheets={'configured' if settings.sheets_configured else 'local-only'} | "
        f"isolate_failures={settings.sync_isolate_failures}"
    )
    typer.echo("Forms: " + ", ".join(f"{k}->{v.value}" for k, v in FORM_CATEGORIES.items()))


@app.command()
def add(
    category: Category = typer.Argument(..., help="Category to add the record to."),
    fields: List[str] = typer.Argument(..., help="Record fields as field=value."),
) -> None:
    """
    Add a record to a category and print its identifier.
    """
    data = coerce_form_fields(_parse_fields(fields))

    async def _add() -> str:
        store = await _open_store()
        return await store.add(category, data)

    typer.echo(_run(_add()))


@app.command()
def submit(
    form_id: str = typer.Argument(..., help="Form identifier, e.g. expense-form."),
    fields: List[str] = typer.Argument(..., help="Submitted fields as field=value."),
) -> None:
    """
    Store a form submission in the category its form maps to.
    """
    data = _parse_fields(fields)

    async def _submit() -> str:
        store = await _open_store()
        return await submit_form(store, form_id, data)

    typer.echo(_run(_submit()))


@app.command(name="list")
def list_records(category: Category = typer.Argument(...)) -> None:
    """
    List every record of a category.
    """

    async def _list():
        store = await _open_store()
        return await store.get_all(category)

    print_records(category, _run(_list()))


@app.command()
def get(category: Category = typer.Argument(...), record_id: str = typer.Argument(...)) -> None:
    """
    Show one record as JSON.
    """

    async def _get():
        store = await _open_store()
        return await store.get(category, record_id)

    typer.echo(_run(_get()).model_dump_json(indent=2))


@app.command()
def update(
    category: Category = typer.Argument(...),
    record_id: str = typer.Argument(...),
    fields: List[str] = typer.Argument(..., help="Replacement fields as field=value."),
) -> None:
    """
    Replace all fields of a record. Fields not given are dropped.
    """
    data = coerce_form_fields(_parse_fields(fields))

    async def _update():
        store = await _open_store()
        return await store.update(category, record_id, data)

    record = _run(_update())
    typer.secho(f"Updated {record.id}", fg=typer.colors.GREEN)


@app.command()
def delete(
    category: Category = typer.Argument(...),
    record_id: str = typer.Argument(...),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """
    Delete a record. Asks for confirmation first.
    """
    if not yes:
        typer.confirm(
            f"Delete {category.value} record {record_id}? This action cannot be undone.",
            abort=True,
        )

    async def _delete() -> None:
        store = await _open_store()
        await store.delete(category, record_id)

    _run(_delete())
    typer.secho(f"Deleted {record_id}", fg=typer.colors.GREEN)


@app.command()
def query(
    category: Category = typer.Argument(...),
    field: str = typer.Argument(..., help="Indexed field name."),
    value: str = typer.Argument(...),
) -> None:
    """
    List records whose indexed field equals a value.
    """

    async def _query():
        store = await _open_store()
        return await store.query(category, field, value)

    print_records(category, _run(_query()))


@app.command()
def dashboard(
    day: Optional[str] = typer.Option(None, "--date", "-d", help="Day to summarize (default: today)."),
) -> None:
    """
    Show the same-day dashboard counters.
    """
    on = _parse_date(day) if day else None

    async def _stats():
        store = await _open_store()
        return await dashboard_stats(store, on)

    print_dashboard(_run(_stats()))


@app.command()
def report(
    category: Category = typer.Argument(...),
    start: str = typer.Option(..., "--start", help="First day, YYYY-MM-DD."),
    end: str = typer.Option(..., "--end", help="Last day, YYYY-MM-DD."),
) -> None:
    """
    Records of a category between two dates, with totals.
    """
    start_day, end_day = _parse_date(start), _parse_date(end)

    async def _records():
        store = await _open_store()
        return await store.get_all(category)

    print_report(generate_report(category, _run(_records()), start_day, end_day))


@app.command()
def pull(category: Category = typer.Argument(...)) -> None:
    """
    Print the remote rows of a category without touching the local store.
    """
    rows = _run(_sheets_sync().pull(category))
    typer.echo(json.dumps(rows, indent=2, ensure_ascii=False))


@app.command()
def push(
    category: Category = typer.Argument(...),
    record_ids: Optional[List[str]] = typer.Option(
        None, "--id", help="Only push these records (repeatable). Default: all."
    ),
) -> None:
    """
    Append local records of a category to its remote sheet.
    """

    async def _push() -> int:
        store = await _open_store()
        if record_ids:
            records = [await store.get(category, record_id) for record_id in record_ids]
        else:
            records = await store.get_all(category)
        return await _sheets_sync().push(category, records)

    appended = _run(_push())
    typer.secho(f"Appended {appended} rows", fg=typer.colors.GREEN)


@app.command()
def sync() -> None:
    """
    Replace local categories with the remote sheets.
    """
    settings = get_settings()

    async def _sync():
        store = await _open_store()
        return await _sheets_sync().sync_all(store, isolate_failures=settings.sync_isolate_failures)

    print_sync_report(_run(_sync()))


@app.command()
def export(
    category: Category = typer.Argument(...),
    out_dir: Path = typer.Option(Path("."), "--out-dir", "-o", help="Directory for the CSV file."),
) -> None:
    """
    Export a category to CSV.
    """

    async def _records():
        store = await _open_store()
        return await store.get_all(category)

    path = export_csv(category, _run(_records()), out_dir)
    if path is None:
        typer.secho("No data to export", fg=typer.colors.YELLOW)
        return
    typer.secho(f"Exported to {path}", fg=typer.colors.GREEN)


@app.command(name="import-legacy")
def import_legacy(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="farmData JSON export."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """
    Import a browser-era farmData export, replacing the categories it contains.
    """
    collections = _run(asyncio.to_thread(read_legacy_file, path))
    console = Console()
    for category, records in collections.items():
        console.print(records_table(category, records))
    if not yes:
        typer.confirm("Replace these categories in the local store?", abort=True)

    async def _import() -> None:
        store = await _open_store()
        await store.replace_all(collections)

    _run(_import())
    typer.secho(
        f"Imported {sum(len(r) for r in collections.values())} records", fg=typer.colors.GREEN
    )


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
