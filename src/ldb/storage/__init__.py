"""Storage backends for applying structural operations."""

from ldb.storage.base import StorageAdapter, StorageTransaction
from ldb.storage.sqlite import SQLiteAdapter, SQLiteTransaction

__all__ = [
    "StorageAdapter",
    "StorageTransaction",
    "SQLiteAdapter",
    "SQLiteTransaction",
]
