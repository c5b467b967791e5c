from contextlib import asynccontextmanager
from enum import Enum, auto
from pathlib import Path
from typing import AsyncGenerator

from loguru import logger
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool


class DatabaseType(Enum):
    """Types of supported databases."""

    MEMORY = auto()
    FILESYSTEM = auto()

    @classmethod
    def get_db_url(cls, db_path: Path | None, db_type: "DatabaseType") -> str:
        """Get SQLAlchemy URL for database path."""
        if db_type == cls.MEMORY:
            logger.info("Using in-memory SQLite database")
            return "sqlite+aiosqlite://"

        return f"sqlite+aiosqlite:///{db_path}"


def _enable_transactional_ddl(engine: AsyncEngine) -> None:
    """Make BEGIN explicit so DDL runs inside the transaction, and turn on foreign keys.

    The sqlite driver only opens transactions implicitly before DML, which
    would leave CREATE/ALTER statements autocommitted.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_engine(
    db_path: Path | None,
    db_type: DatabaseType = DatabaseType.FILESYSTEM,
    echo: bool = False,
) -> AsyncEngine:
    """Create an async SQLite engine with transactional DDL enabled."""
    db_url = DatabaseType.get_db_url(db_path, db_type)
    logger.debug(f"Creating engine for db_url: {db_url}")

    if db_type == DatabaseType.MEMORY:
        # one shared connection, otherwise every connection sees its own empty database
        engine = create_async_engine(
            db_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        if db_path is not None:
            db_path.parent.mkdir(parents=True, exist_ok=True)
        engine = create_async_engine(db_url, echo=echo, connect_args={"check_same_thread": False})

    _enable_transactional_ddl(engine)
    return engine


@asynccontextmanager
async def engine_factory(
    db_path: Path | None = None,
    db_type: DatabaseType = DatabaseType.MEMORY,
) -> AsyncGenerator[AsyncEngine, None]:
    """Create an engine for the duration of the block and dispose it afterwards.

    Note: This is primarily used for testing where we want a fresh database
    for each test.
    """
    engine = create_engine(db_path, db_type)
    try:
        yield engine
    finally:
        await engine.dispose()
