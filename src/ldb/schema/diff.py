"""Schema diff for ldb.

Compares a declared collection against its baseline (`original`) and derives
the ordered structural operations that converge the database:

  - no baseline:      CreateTable with every column, in declared order
  - renamed table:    RenameTable, emitted first
  - removed fields:   DropColumn
  - renamed fields:   RenameColumn
  - added fields:     AddColumn

Drops come before renames and renames before adds, so a rename may reuse a
just-dropped name and an added column may reuse a pre-rename name. Renames
onto a name another renamed column still holds (swaps, chains) go through a
temporary `_ldb_tmp_<key>` column name. Every operation after a table rename
references the new table name. Duplicate field names are a ConfigurationError.

Constraint-only changes to existing columns are not migrated.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from loguru import logger

from ldb.errors import ConfigurationError
from ldb.schema.columns import ColumnDefinition, check_identifier, column_definition
from ldb.schema.model import Collection, Field

if TYPE_CHECKING:  # pragma: no cover
    from ldb.storage.base import StorageTransaction


# --- Operations ---


class Operation:
    """A single structural change applied through a storage transaction."""

    async def apply(self, transaction: "StorageTransaction") -> None:
        raise NotImplementedError

    def describe(self) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class CreateTable(Operation):
    table: str
    columns: tuple[ColumnDefinition, ...]

    async def apply(self, transaction: "StorageTransaction") -> None:
        await transaction.create_table(self.table, list(self.columns))

    def describe(self) -> str:
        return f"create table {self.table} ({len(self.columns)} columns)"


@dataclass(frozen=True)
class RenameTable(Operation):
    old_name: str
    new_name: str

    async def apply(self, transaction: "StorageTransaction") -> None:
        await transaction.rename_table(self.old_name, self.new_name)

    def describe(self) -> str:
        return f"rename table {self.old_name} to {self.new_name}"


@dataclass(frozen=True)
class DropTable(Operation):
    table: str

    async def apply(self, transaction: "StorageTransaction") -> None:
        await transaction.drop_table(self.table)

    def describe(self) -> str:
        return f"drop table {self.table}"


@dataclass(frozen=True)
class DropColumn(Operation):
    table: str
    column: str

    async def apply(self, transaction: "StorageTransaction") -> None:
        await transaction.drop_column(self.table, self.column)

    def describe(self) -> str:
        return f"drop column {self.table}.{self.column}"


@dataclass(frozen=True)
class RenameColumn(Operation):
    table: str
    old_name: str
    new_name: str

    async def apply(self, transaction: "StorageTransaction") -> None:
        await transaction.rename_column(self.table, self.old_name, self.new_name)

    def describe(self) -> str:
        return f"rename column {self.table}.{self.old_name} to {self.new_name}"


@dataclass(frozen=True)
class AddColumn(Operation):
    table: str
    column: ColumnDefinition

    async def apply(self, transaction: "StorageTransaction") -> None:
        await transaction.add_column(self.table, self.column)

    def describe(self) -> str:
        return f"add column {self.table}.{self.column.name}"


# --- Field classification ---


@dataclass
class FieldChanges:
    """Disjoint classification of fields against the collection baseline."""

    removed: list[Field] = field(default_factory=list)  # baseline fields
    added: list[Field] = field(default_factory=list)
    renamed: list[Field] = field(default_factory=list)
    unchanged: list[Field] = field(default_factory=list)

    @property
    def has_structural_changes(self) -> bool:
        return bool(self.removed or self.added or self.renamed)


def classify_fields(collection: Collection) -> FieldChanges:
    """Classify the collection's fields against its baseline.

    Matching goes through each current field's own `original` key, not names.
    A field whose original is not part of this collection's baseline has no
    column here yet and counts as added.
    """
    changes = FieldChanges()
    if collection.original is None:
        changes.added = list(collection.fields)
        return changes

    baseline_keys = {f.key for f in collection.original.fields}
    matched_keys: set[str] = set()

    for current in collection.fields:
        if current.original is None or current.original.key not in baseline_keys:
            changes.added.append(current)
            continue

        matched_keys.add(current.original.key)
        if current.original.name != current.name:
            changes.renamed.append(current)
        else:
            changes.unchanged.append(current)

    changes.removed = [f for f in collection.original.fields if f.key not in matched_keys]
    return changes


# --- Diff ---


TEMPORARY_COLUMN_PREFIX = "_ldb_tmp_"


def _check_unique_names(collection: Collection) -> None:
    seen: set[str] = set()
    for f in collection.fields:
        if f.name in seen:
            raise ConfigurationError(
                f"configuration error, duplicate field name {f.name!r} in collection "
                f"{collection.name!r}"
            )
        seen.add(f.name)


def _rename_operations(table: str, renamed: list[Field]) -> list[Operation]:
    """Rename columns, going through a temporary name when a target is still taken.

    A target is taken when another renamed column currently holds it (swaps and
    chains such as a->b, b->a or a->b, b->c).
    """
    old_names = {f.original.name for f in renamed}
    parked = [f for f in renamed if f.name in old_names]
    direct = [f for f in renamed if f.name not in old_names]

    operations: list[Operation] = []
    for f in parked:
        operations.append(RenameColumn(table, f.original.name, TEMPORARY_COLUMN_PREFIX + f.key))
    for f in direct:
        check_identifier(f.name, "column name")
        operations.append(RenameColumn(table, f.original.name, f.name))
    for f in parked:
        check_identifier(f.name, "column name")
        operations.append(RenameColumn(table, TEMPORARY_COLUMN_PREFIX + f.key, f.name))
    return operations


def diff_collection(collection: Collection) -> list[Operation]:
    """Derive the ordered operations converging the table to the declared collection.

    Returns an empty list when the collection matches its baseline.
    """
    table = check_identifier(collection.name, "table name")
    _check_unique_names(collection)

    if collection.original is None:
        if not collection.fields:
            raise ConfigurationError(f"collection {table!r} must declare at least one field")
        return [CreateTable(table, tuple(column_definition(f) for f in collection.fields))]

    operations: list[Operation] = []

    if collection.original.name != table:
        operations.append(RenameTable(collection.original.name, table))

    changes = classify_fields(collection)

    for removed in changes.removed:
        operations.append(DropColumn(table, removed.name))

    operations.extend(_rename_operations(table, changes.renamed))

    for added in changes.added:
        operations.append(AddColumn(table, column_definition(added)))

    for current in changes.renamed + changes.unchanged:
        if current.schema != current.original.schema:
            logger.warning(
                f"Constraint change on {table}.{current.name} is not migrated; "
                "existing column definition is kept"
            )

    return operations


def diff_schema(
    collections: Sequence[Collection],
    previous: Sequence[Collection] = (),
) -> list[Operation]:
    """Plan a whole schema.

    Persisted collections in `previous` whose key no longer appears in
    `collections` are dropped first (by their baseline name); then each
    declared collection is diffed in declared order.
    """
    declared_keys = {c.key for c in collections}

    operations: list[Operation] = [
        DropTable(c.original.name)
        for c in previous
        if c.original is not None and c.key not in declared_keys
    ]
    for collection in collections:
        operations.extend(diff_collection(collection))

    return operations
