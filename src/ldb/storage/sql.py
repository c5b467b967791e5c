"""SQL rendering for structural operations (SQLite dialect)."""

from ldb.schema.columns import ColumnDefinition
from ldb.schema.diff import (
    AddColumn,
    CreateTable,
    DropColumn,
    DropTable,
    Operation,
    RenameColumn,
    RenameTable,
)

MIGRATIONS_TABLE = "_ldb_migrations"

CREATE_MIGRATIONS_TABLE = (
    f"CREATE TABLE IF NOT EXISTS {MIGRATIONS_TABLE} ("
    "name TEXT NOT NULL PRIMARY KEY, "
    "applied_at TIMESTAMP NOT NULL)"
)


def create_table_sql(table: str, columns: list[ColumnDefinition]) -> str:
    return f"CREATE TABLE {table} ({', '.join(c.to_sql() for c in columns)})"


def rename_table_sql(old_name: str, new_name: str) -> str:
    return f"ALTER TABLE {old_name} RENAME TO {new_name}"


def drop_table_sql(table: str) -> str:
    return f"DROP TABLE {table}"


def add_column_sql(table: str, column: ColumnDefinition) -> str:
    return f"ALTER TABLE {table} ADD COLUMN {column.to_sql()}"


def rename_column_sql(table: str, old_name: str, new_name: str) -> str:
    return f"ALTER TABLE {table} RENAME COLUMN {old_name} TO {new_name}"


def drop_column_sql(table: str, column: str) -> str:
    return f"ALTER TABLE {table} DROP COLUMN {column}"


def operation_sql(operation: Operation) -> str:
    """Render the statement a SQLite backend executes for an operation."""
    match operation:
        case CreateTable(table=table, columns=columns):
            return create_table_sql(table, list(columns))
        case RenameTable(old_name=old_name, new_name=new_name):
            return rename_table_sql(old_name, new_name)
        case DropTable(table=table):
            return drop_table_sql(table)
        case AddColumn(table=table, column=column):
            return add_column_sql(table, column)
        case RenameColumn(table=table, old_name=old_name, new_name=new_name):
            return rename_column_sql(table, old_name, new_name)
        case DropColumn(table=table, column=column):
            return drop_column_sql(table, column)
        case _:
            raise TypeError(f"unsupported operation: {operation!r}")
