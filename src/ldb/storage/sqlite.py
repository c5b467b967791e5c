"""SQLite storage backend built on SQLAlchemy's async engine (aiosqlite driver)."""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncGenerator, Any

from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from ldb import db
from ldb.schema.columns import ColumnDefinition, check_identifier
from ldb.storage import sql
from ldb.storage.base import StorageAdapter, StorageTransaction


class SQLiteTransaction(StorageTransaction):
    """Executes structural operations on one connection inside one transaction.

    Views are not supported yet and keep the base class behavior.
    """

    def __init__(self, connection: AsyncConnection):
        self.connection = connection
        self._migrations_table_ready = False

    async def _execute(self, statement: str, params: dict[str, Any] | None = None):
        logger.debug(f"Executing: {statement}")
        return await self.connection.execute(text(statement), params or {})

    async def create_table(self, table: str, columns: list[ColumnDefinition]) -> None:
        await self._execute(sql.create_table_sql(table, columns))

    async def rename_table(self, old_name: str, new_name: str) -> None:
        await self._execute(sql.rename_table_sql(old_name, new_name))

    async def drop_table(self, table: str) -> None:
        await self._execute(sql.drop_table_sql(table))

    async def add_column(self, table: str, column: ColumnDefinition) -> None:
        await self._execute(sql.add_column_sql(table, column))

    async def rename_column(self, table: str, old_name: str, new_name: str) -> None:
        await self._execute(sql.rename_column_sql(table, old_name, new_name))

    async def drop_column(self, table: str, column: str) -> None:
        await self._execute(sql.drop_column_sql(table, column))

    # --- Migration history ---

    async def _ensure_migrations_table(self) -> None:
        if not self._migrations_table_ready:
            await self._execute(sql.CREATE_MIGRATIONS_TABLE)
            self._migrations_table_ready = True

    async def migration_exists(self, name: str) -> bool:
        await self._ensure_migrations_table()
        result = await self._execute(
            f"SELECT 1 FROM {sql.MIGRATIONS_TABLE} WHERE name = :name", {"name": name}
        )
        return result.first() is not None

    async def finish_migration(self, name: str) -> None:
        await self._ensure_migrations_table()
        await self._execute(
            f"INSERT INTO {sql.MIGRATIONS_TABLE} (name, applied_at) VALUES (:name, :applied_at)",
            {"name": name, "applied_at": datetime.now(timezone.utc).isoformat()},
        )


class SQLiteAdapter(StorageAdapter):
    """Storage adapter over an async SQLite engine."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    @classmethod
    def open(
        cls,
        db_path: Path | None,
        db_type: db.DatabaseType = db.DatabaseType.FILESYSTEM,
        echo: bool = False,
    ) -> "SQLiteAdapter":
        return cls(db.create_engine(db_path, db_type, echo=echo))

    @asynccontextmanager
    async def begin(self) -> AsyncGenerator[SQLiteTransaction, None]:
        async with self.engine.begin() as connection:
            yield SQLiteTransaction(connection)

    async def table_columns(self, table: str) -> list[str]:
        """Column names of an existing table, in order (empty if the table is missing)."""
        check_identifier(table, "table name")
        async with self.engine.connect() as connection:
            result = await connection.execute(text(f"PRAGMA table_info({table})"))
            return [row[1] for row in result.fetchall()]

    async def close(self) -> None:
        await self.engine.dispose()
