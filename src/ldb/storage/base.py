"""Storage capability contract.

The schema core never talks to a database directly. It hands structural
operations to a StorageTransaction obtained from a StorageAdapter; one
transaction covers one collection's batch, so either every operation of the
batch commits or none does.

Structural operations are abstract. Table drops, views and migration
bookkeeping default to raising UnimplementedCapabilityError so a backend that
lacks them fails loudly instead of pretending to succeed.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager

from ldb.errors import UnimplementedCapabilityError
from ldb.schema.columns import ColumnDefinition
from ldb.schema.model import View


class StorageTransaction(ABC):
    """Structural operations executed inside one storage transaction."""

    @abstractmethod
    async def create_table(self, table: str, columns: list[ColumnDefinition]) -> None: ...

    @abstractmethod
    async def rename_table(self, old_name: str, new_name: str) -> None: ...

    @abstractmethod
    async def add_column(self, table: str, column: ColumnDefinition) -> None: ...

    @abstractmethod
    async def rename_column(self, table: str, old_name: str, new_name: str) -> None: ...

    @abstractmethod
    async def drop_column(self, table: str, column: str) -> None: ...

    async def drop_table(self, table: str) -> None:
        raise UnimplementedCapabilityError("drop table")

    async def save_view(self, view: View) -> None:
        raise UnimplementedCapabilityError("save view")

    async def drop_view(self, view: View) -> None:
        raise UnimplementedCapabilityError("drop view")

    async def migration_exists(self, name: str) -> bool:
        """Check whether the named migration has already been applied."""
        raise UnimplementedCapabilityError("migration history")

    async def finish_migration(self, name: str) -> None:
        """Record the named migration as applied."""
        raise UnimplementedCapabilityError("migration history")


class StorageAdapter(ABC):
    """Opens transactions against a database."""

    @abstractmethod
    def begin(self) -> AbstractAsyncContextManager[StorageTransaction]:
        """Start a transaction: commit when the block exits cleanly, roll back on error."""

    async def close(self) -> None:
        return None
