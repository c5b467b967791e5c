"""Reconciliation: apply a collection's diff through storage, then re-baseline.

One collection is one batch in one transaction. The first failing operation
aborts the batch and raises ReconciliationError; the transaction rolls back
and the collection's baseline is left untouched. forward() only runs after
the transaction has committed.

Nothing here keeps state between calls. Reconciling the same Collection
instance concurrently is not supported; callers must serialize that.
"""

from collections.abc import Sequence

from loguru import logger

from ldb.errors import LdbError, ReconciliationError
from ldb.schema.diff import DropTable, Operation, diff_collection
from ldb.schema.model import Collection
from ldb.storage.base import StorageAdapter, StorageTransaction


async def apply_operations(operations: Sequence[Operation], transaction: StorageTransaction) -> None:
    """Apply operations in order, stopping at the first storage failure.

    Raises:
        ReconciliationError: Wrapping the storage error, with the failed
            operation and its position in the batch.
        LdbError: Errors raised by ldb itself (e.g. UnimplementedCapabilityError)
            propagate unchanged.
    """
    total = len(operations)
    for index, operation in enumerate(operations):
        logger.debug(f"Applying {operation.describe()} ({index + 1}/{total})")
        try:
            await operation.apply(transaction)
        except LdbError:
            raise
        except Exception as e:
            logger.error(f"Failed to apply {operation.describe()}: {e}")
            raise ReconciliationError(operation, index, total, e) from e


async def reconcile_collection(collection: Collection, adapter: StorageAdapter) -> list[Operation]:
    """Converge the database to the declared collection and advance its baseline.

    Returns:
        The applied operations; empty when the collection already matches its baseline.
    """
    operations = diff_collection(collection)
    if not operations:
        logger.debug(f"Collection {collection.name} is up to date")
        return []

    async with adapter.begin() as transaction:
        await apply_operations(operations, transaction)

    collection.forward()
    logger.info(f"Reconciled collection {collection.name}: {len(operations)} operation(s)")
    return operations


async def drop_collection(collection: Collection, adapter: StorageAdapter) -> list[Operation]:
    """Drop a persisted collection's table and clear its baselines.

    A collection that was never persisted has no table and yields no operation.
    """
    if collection.original is None:
        return []

    operations: list[Operation] = [DropTable(collection.original.name)]
    async with adapter.begin() as transaction:
        await apply_operations(operations, transaction)

    collection.original = None
    for f in collection.fields:
        f.original = None

    logger.info(f"Dropped collection {collection.name}")
    return operations


async def reconcile_schema(
    collections: Sequence[Collection],
    adapter: StorageAdapter,
    previous: Sequence[Collection] = (),
) -> list[Operation]:
    """Reconcile a whole schema.

    Collections in `previous` that are no longer declared (matched by key)
    are dropped first, then each declared collection is reconciled in order.
    Each collection is its own batch: a failure stops the run, but
    collections reconciled before it stay committed and forwarded.
    """
    declared_keys = {c.key for c in collections}
    applied: list[Operation] = []

    for removed in previous:
        if removed.key not in declared_keys:
            applied.extend(await drop_collection(removed, adapter))

    for collection in collections:
        applied.extend(await reconcile_collection(collection, adapter))

    return applied
