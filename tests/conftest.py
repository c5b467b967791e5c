"""Common test fixtures."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from ldb.db import DatabaseType
from ldb.schema.columns import ColumnDefinition
from ldb.storage.base import StorageAdapter, StorageTransaction
from ldb.storage.sqlite import SQLiteAdapter


class RecordingTransaction(StorageTransaction):
    """Records every storage call; optionally fails on one capability."""

    def __init__(self, adapter: "RecordingAdapter"):
        self.adapter = adapter
        self.calls: list[tuple] = []

    def _record(self, name: str, *args) -> None:
        if name == self.adapter.fail_on:
            raise RuntimeError(f"{name} failed")
        self.calls.append((name, *args))

    async def create_table(self, table: str, columns: list[ColumnDefinition]) -> None:
        self._record("create_table", table, [c.to_sql() for c in columns])

    async def rename_table(self, old_name: str, new_name: str) -> None:
        self._record("rename_table", old_name, new_name)

    async def add_column(self, table: str, column: ColumnDefinition) -> None:
        self._record("add_column", table, column.to_sql())

    async def rename_column(self, table: str, old_name: str, new_name: str) -> None:
        self._record("rename_column", table, old_name, new_name)

    async def drop_column(self, table: str, column: str) -> None:
        self._record("drop_column", table, column)

    async def drop_table(self, table: str) -> None:
        self._record("drop_table", table)

    async def migration_exists(self, name: str) -> bool:
        return name in self.adapter.history

    async def finish_migration(self, name: str) -> None:
        self._record("finish_migration", name)
        self.adapter.pending_history.add(name)


class RecordingAdapter(StorageAdapter):
    """In-memory adapter tracking committed and rolled back transactions."""

    def __init__(self, fail_on: str | None = None):
        self.fail_on = fail_on
        self.committed: list[RecordingTransaction] = []
        self.rolled_back: list[RecordingTransaction] = []
        self.history: set[str] = set()
        self.pending_history: set[str] = set()

    @property
    def calls(self) -> list[tuple]:
        """Calls of committed transactions, in commit order."""
        return [call for transaction in self.committed for call in transaction.calls]

    @asynccontextmanager
    async def begin(self) -> AsyncGenerator[RecordingTransaction, None]:
        transaction = RecordingTransaction(self)
        self.pending_history = set()
        try:
            yield transaction
        except BaseException:
            self.rolled_back.append(transaction)
            raise
        self.committed.append(transaction)
        self.history |= self.pending_history


@pytest.fixture
def recording_adapter() -> RecordingAdapter:
    return RecordingAdapter()


@pytest_asyncio.fixture
async def sqlite_adapter(tmp_path) -> AsyncGenerator[SQLiteAdapter, None]:
    """A SQLite adapter over a fresh database file."""
    adapter = SQLiteAdapter.open(tmp_path / "test.db", DatabaseType.FILESYSTEM)
    try:
        yield adapter
    finally:
        await adapter.close()


@pytest.fixture
def recording_adapter_factory() -> type[RecordingAdapter]:
    """Build adapters that fail on a given capability: factory(fail_on="add_column")."""
    return RecordingAdapter
