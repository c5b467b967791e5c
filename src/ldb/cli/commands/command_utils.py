"""utility functions for commands"""

import asyncio
from collections.abc import Coroutine
from pathlib import Path
from typing import Any

import typer
from rich.console import Console

from ldb.errors import LdbError
from ldb.schema.model import Collection
from ldb.schema.parser import load_schema_file

console = Console()


def load_collections(path: Path) -> list[Collection]:
    """Load a schema file, turning declaration errors into a CLI exit."""
    try:
        return load_schema_file(path)
    except (LdbError, OSError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def run_async(coro: Coroutine[Any, Any, Any]) -> Any:
    """Run a coroutine, reporting ldb errors as a failed command."""
    try:
        return asyncio.run(coro)
    except LdbError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
