"""Identifier commands: `ldb id new`, `ldb id check`."""

import typer
from rich.console import Console

from ldb.cli.app import app
from ldb.errors import InvalidIdentifierFormatError
from ldb.ids import generate_id, validate_id

console = Console()

id_app = typer.Typer(help="Record identifier commands")
app.add_typer(id_app, name="id")


@id_app.command()
def new(
    count: int = typer.Option(1, "--count", "-n", min=1, help="How many identifiers to print"),
):
    """Generate new record identifiers."""
    for _ in range(count):
        typer.echo(generate_id())


@id_app.command()
def check(value: str = typer.Argument(..., help="Identifier to check")):
    """Check that VALUE is a well-formed record identifier."""
    try:
        validate_id(value)
    except InvalidIdentifierFormatError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓ {value} is a valid id[/green]")
