"""Main CLI entry point for ldb."""  # pragma: no cover

from ldb.cli.app import app  # pragma: no cover

# Register commands
from ldb.cli.commands import ids, schema  # noqa: F401  # pragma: no cover

if __name__ == "__main__":  # pragma: no cover
    app()
