"""CLI commands for ldb."""

from . import ids, schema

__all__ = [
    "ids",
    "schema",
]
