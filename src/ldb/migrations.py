"""Named, run-once migrations recorded in the storage migration history."""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import TypeAlias

from loguru import logger

from ldb.errors import ConfigurationError
from ldb.reconcile import apply_operations
from ldb.schema.diff import diff_collection
from ldb.schema.model import Collection
from ldb.storage.base import StorageAdapter, StorageTransaction

MigrationFn: TypeAlias = Callable[[StorageTransaction], Awaitable[None]]


@dataclass(frozen=True)
class Migration:
    name: str
    up: MigrationFn
    # runs after commit, and also when the history shows an earlier run
    on_applied: Callable[[], None] | None = None


class MigrationRegistry:
    """Migrations in registration order. Instances are independent; nothing is global."""

    def __init__(self):
        self._migrations: dict[str, Migration] = {}

    @property
    def migrations(self) -> list[Migration]:
        return list(self._migrations.values())

    def register(
        self,
        name: str,
        up: MigrationFn,
        on_applied: Callable[[], None] | None = None,
    ) -> Migration:
        if name in self._migrations:
            raise ConfigurationError(f"migration {name!r} is already registered")
        migration = Migration(name=name, up=up, on_applied=on_applied)
        self._migrations[name] = migration
        return migration

    def migration(self, name: str) -> Callable[[MigrationFn], MigrationFn]:
        """Decorator form of register()."""

        def decorator(up: MigrationFn) -> MigrationFn:
            self.register(name, up)
            return up

        return decorator

    async def run_pending(self, adapter: StorageAdapter) -> list[str]:
        """Run every migration not yet recorded, each in its own transaction.

        A migration's on_applied hook runs once its transaction has committed,
        or right away when the history already records it. A failing migration
        rolls back and stops the run without calling its hook.

        Returns:
            Names of the migrations applied by this call, in order.
        """
        applied: list[str] = []
        for migration in self._migrations.values():
            async with adapter.begin() as transaction:
                ran = not await transaction.migration_exists(migration.name)
                if ran:
                    logger.info(f"Running migration: {migration.name}")
                    await migration.up(transaction)
                    await transaction.finish_migration(migration.name)
                else:
                    logger.debug(f"Migration already applied: {migration.name}")

            if ran:
                applied.append(migration.name)
            if migration.on_applied is not None:
                migration.on_applied()

        return applied


def _baseline(collection: Collection) -> Callable[[], None]:
    def forward() -> None:
        if collection.original is None:
            collection.forward()

    return forward


def register_collections(registry: MigrationRegistry, collections: Sequence[Collection]) -> None:
    """Register one `create:<name>` migration per never-persisted collection.

    Collections that already have a baseline are skipped; reconcile them
    instead. Each registered collection is forwarded once its table exists,
    so later reconciliation diffs against the created state.
    """
    for collection in collections:
        if collection.original is not None:
            logger.debug(f"Skipping persisted collection: {collection.name}")
            continue

        async def up(transaction: StorageTransaction, collection: Collection = collection) -> None:
            await apply_operations(diff_collection(collection), transaction)

        registry.register(f"create:{collection.name}", up, on_applied=_baseline(collection))
