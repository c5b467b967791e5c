"""Schema management CLI commands for ldb.

Works on YAML schema files (see ldb.schema.parser).
Registered as a subcommand group: `ldb schema plan`, `ldb schema check`,
`ldb schema validate`, `ldb schema apply`.
"""

import json
from pathlib import Path
from typing import Annotated, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from ldb.cli.app import app
from ldb.cli.commands.command_utils import load_collections, run_async
from ldb.config import get_config
from ldb.errors import ConfigurationError
from ldb.migrations import MigrationRegistry, register_collections
from ldb.schema.columns import column_definition
from ldb.schema.diff import diff_schema
from ldb.schema.validator import validate_record
from ldb.storage.sql import operation_sql
from ldb.storage.sqlite import SQLiteAdapter

console = Console()

schema_app = typer.Typer(help="Schema management commands")
app.add_typer(schema_app, name="schema")

SchemaFile = Annotated[
    Path,
    typer.Argument(exists=True, dir_okay=False, readable=True, help="YAML schema file"),
]


# --- Plan ---


@schema_app.command()
def plan(schema_file: SchemaFile):
    """Print the ordered operations (and SQL) that create the declared schema."""
    collections = load_collections(schema_file)
    try:
        operations = diff_schema(collections)
    except ConfigurationError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not operations:
        console.print("[green]No changes[/green]")
        return

    table = Table(title=f"Plan: {schema_file.name}")
    table.add_column("#", justify="right")
    table.add_column("Operation", style="cyan")
    table.add_column("SQL")

    for index, operation in enumerate(operations, start=1):
        table.add_row(str(index), operation.describe(), operation_sql(operation))

    console.print(table)


# --- Check ---


@schema_app.command()
def check(schema_file: SchemaFile):
    """Check every field declaration for configuration errors."""
    collections = load_collections(schema_file)

    table = Table(title=f"Schema Check: {schema_file.name}")
    table.add_column("Field", style="cyan")
    table.add_column("Type")
    table.add_column("Status")

    failures = 0
    for collection in collections:
        for schema_field in collection.fields:
            try:
                schema_field.type.check()
                column_definition(schema_field)
                status = "[green]ok[/green]"
            except ConfigurationError as e:
                failures += 1
                status = f"[red]{e}[/red]"
            table.add_row(
                f"{collection.name}.{schema_field.name}", schema_field.type.type_name, status
            )

    console.print(table)
    if failures:
        console.print(f"\n[red]{failures} misconfigured field(s)[/red]")
        raise typer.Exit(1)


# --- Validate ---


@schema_app.command()
def validate(
    schema_file: SchemaFile,
    collection_name: Annotated[str, typer.Argument(help="Collection to validate against")],
    record: Annotated[str, typer.Argument(help="Record as a JSON object")],
):
    """Validate a JSON record against a declared collection.

    Prints the normalized values and exits with code 1 if any field is rejected.
    """
    collections = load_collections(schema_file)
    collection = next((c for c in collections if c.name == collection_name), None)
    if collection is None:
        console.print(f"[red]Error: no collection named {collection_name}[/red]")
        raise typer.Exit(1)

    try:
        data = json.loads(record)
    except json.JSONDecodeError as e:
        console.print(f"[red]Error: invalid JSON record: {e}[/red]")
        raise typer.Exit(1)
    if not isinstance(data, dict):
        console.print("[red]Error: record must be a JSON object[/red]")
        raise typer.Exit(1)

    try:
        result = validate_record(collection, data)
    except ConfigurationError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"Record Validation: {collection.name}")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_column("Status")

    for schema_field in collection.fields:
        error = result.errors.get(schema_field.name)
        if error is None:
            table.add_row(schema_field.name, repr(result.values[schema_field.name]), "[green]ok[/green]")
        else:
            table.add_row(schema_field.name, repr(data.get(schema_field.name)), f"[red]{error}[/red]")

    console.print(table)
    if result.unmatched_keys:
        console.print(f"[yellow]Undeclared keys ignored: {', '.join(result.unmatched_keys)}[/yellow]")

    if not result.passed:
        raise typer.Exit(1)


# --- Apply ---


async def _run_apply(schema_file: Path, database: Path) -> list[str]:
    collections = load_collections(schema_file)
    registry = MigrationRegistry()
    register_collections(registry, collections)

    adapter = SQLiteAdapter.open(database, echo=get_config().echo_sql)
    try:
        return await registry.run_pending(adapter)
    finally:
        await adapter.close()


@schema_app.command()
def apply(
    schema_file: SchemaFile,
    database: Annotated[
        Optional[Path],
        typer.Option("--database", "-d", help="SQLite database file (default: LDB_DATABASE_PATH)"),
    ] = None,
):
    """Create the declared collections that the database does not have yet.

    Each collection is recorded as a `create:<name>` migration, so running
    apply again is a no-op.
    """
    database = database or get_config().database_path
    logger.info(f"Applying {schema_file} to {database}")

    applied = run_async(_run_apply(schema_file, database))

    if not applied:
        console.print("[green]Database is up to date[/green]")
        return

    for name in applied:
        console.print(f"[green]✓ {name}[/green]")
