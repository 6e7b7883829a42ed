"""Command-line interface for querying JSON record files."""

import asyncio
import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from memdb import __version__
from memdb.core.config import Settings
from memdb.core.exceptions import MemDBError
from memdb.core.logging import configure_logging
from memdb.models import ID_FIELD, Record
from memdb.projection import normalize_fields
from memdb.store import Collection, Store

app = typer.Typer(
    name="memdb",
    help="In-memory document store CLI",
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"memdb version: {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
) -> None:
    """In-memory document store CLI."""
    settings = Settings(debug=debug, log_level="DEBUG" if debug else "WARNING")
    configure_logging(settings)


def _read_records(file_path: Path) -> list[Record]:
    """Read a JSON array of records, exiting on bad input."""
    if not file_path.exists():
        console.print(f"[red]Error: File not found: {file_path}[/red]")
        raise typer.Exit(1)

    try:
        data = json.loads(file_path.read_text())
    except json.JSONDecodeError as e:
        console.print(f"[red]Error: Invalid JSON in {file_path}: {e}[/red]")
        raise typer.Exit(1)

    if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
        console.print("[red]Error: Expected a JSON array of objects[/red]")
        raise typer.Exit(1)
    return data


async def _load(records: list[Record], name: str) -> Collection:
    store = Store()
    collection = await store.get_collection(name)
    for record in records:
        await collection.save(record)
    return collection


async def _run_query(
    records: list[Record],
    name: str,
    query: dict[str, Any],
    fields: list[str],
) -> list[Record]:
    collection = await _load(records, name)
    return await collection.find(query, fields)


def _render_table(title: str, results: list[Record], fields: list[str]) -> Table:
    columns = list(fields) or [ID_FIELD]
    for record in results:
        for key in record:
            if key not in columns:
                columns.append(key)

    table = Table(title=title)
    for column in columns:
        table.add_column(column, style="cyan" if column == ID_FIELD else None)
    for record in results:
        table.add_row(
            *(
                json.dumps(record[c], default=str) if c in record else ""
                for c in columns
            )
        )
    return table


@app.command()
def query(
    file_path: Path = typer.Argument(..., help="Path to a JSON array of records"),
    collection: str = typer.Option("records", "--collection", "-c", help="Collection name"),
    where: str = typer.Option("{}", "--where", "-w", help="Query as a JSON object"),
    fields: str | None = typer.Option(
        None, "--fields", "-f", help="Comma-separated fields to return"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON"),
) -> None:
    """Load records into a fresh store and run a find query."""
    records = _read_records(file_path)

    try:
        query_spec = json.loads(where)
    except json.JSONDecodeError as e:
        console.print(f"[red]Error: Invalid query JSON: {e}[/red]")
        raise typer.Exit(1)

    field_list = normalize_fields(
        [f.strip() for f in fields.split(",") if f.strip()] if fields else None
    )

    try:
        results = asyncio.run(_run_query(records, collection, query_spec, field_list))
    except MemDBError as e:
        console.print(Panel(f"[red]Query failed: {e.message}[/red]"))
        raise typer.Exit(1)

    if as_json:
        console.print_json(json.dumps(results, default=str))
        return

    console.print(_render_table(f"{collection}: {len(results)} match(es)", results, field_list))


@app.command()
def stats(
    file_path: Path = typer.Argument(..., help="Path to a JSON array of records"),
) -> None:
    """Show record count and field usage of a record file."""
    records = _read_records(file_path)

    try:
        collection = asyncio.run(_load(records, "records"))
    except MemDBError as e:
        console.print(Panel(f"[red]Load failed: {e.message}[/red]"))
        raise typer.Exit(1)

    usage: dict[str, int] = {}
    for record in records:
        for key in record:
            usage[key] = usage.get(key, 0) + 1

    table = Table(title=f"{file_path.name}: {len(collection)} record(s)")
    table.add_column("Field", style="cyan")
    table.add_column("Records")
    for key, count in sorted(usage.items()):
        table.add_row(key, str(count))

    console.print(table)


if __name__ == "__main__":
    app()
