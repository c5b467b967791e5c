"""Tests for ldb.schema.diff -- baseline comparison and operation ordering."""

import pytest

from ldb.errors import ConfigurationError
from ldb.schema.diff import (
    TEMPORARY_COLUMN_PREFIX,
    AddColumn,
    CreateTable,
    DropColumn,
    DropTable,
    RenameColumn,
    RenameTable,
    classify_fields,
    diff_collection,
    diff_schema,
)
from ldb.schema.field_types import BoolFieldType, IdFieldType, IntFieldType, TextFieldType
from ldb.schema.model import Collection, Field


# --- Helpers ---


def _make_users(*extra: Field) -> Collection:
    return Collection(
        name="users",
        schema=[
            Field("id", IdFieldType(primary_key=True)),
            Field("email", TextFieldType(max_length=100)),
            *extra,
        ],
    )


def _names(operations) -> list[str]:
    return [type(op).__name__ for op in operations]


# --- Create ---


class TestCreateTable:
    def test_new_collection(self):
        operations = diff_collection(_make_users())

        assert len(operations) == 1
        create = operations[0]
        assert isinstance(create, CreateTable)
        assert create.table == "users"
        assert [c.to_sql() for c in create.columns] == [
            "id TEXT NOT NULL PRIMARY KEY",
            "email TEXT NOT NULL",
        ]

    def test_columns_follow_declared_order(self):
        collection = Collection(
            name="t",
            schema=[Field("b", IntFieldType()), Field("a", IntFieldType()), Field("c", IntFieldType())],
        )
        (create,) = diff_collection(collection)
        assert [c.name for c in create.columns] == ["b", "a", "c"]

    def test_empty_collection_is_rejected(self):
        with pytest.raises(ConfigurationError, match="at least one field"):
            diff_collection(Collection(name="empty"))

    def test_invalid_table_name_is_rejected(self):
        with pytest.raises(ConfigurationError, match="invalid table name"):
            diff_collection(Collection(name="bad name", schema=[Field("a", IntFieldType())]))


# --- Idempotence ---


class TestNoChanges:
    def test_forwarded_collection_has_no_operations(self):
        collection = _make_users()
        collection.forward()
        assert diff_collection(collection) == []

    def test_repeated_diffs_are_stable(self):
        collection = _make_users()
        collection.forward()
        assert diff_collection(collection) == diff_collection(collection) == []

    def test_constraint_only_change_is_not_structural(self):
        collection = _make_users()
        collection.forward()
        collection.schema.get_field("email").type.max_length = 200

        assert diff_collection(collection) == []


# --- Alter ---


class TestAlter:
    def test_rename_and_add(self):
        collection = _make_users()
        collection.forward()

        collection.schema.get_field("email").name = "contact"
        collection.fields.append(Field("active", BoolFieldType()))

        operations = diff_collection(collection)

        assert operations[0] == RenameColumn("users", "email", "contact")
        assert isinstance(operations[1], AddColumn)
        assert operations[1].table == "users"
        assert operations[1].column.to_sql() == "active BOOL NOT NULL"
        assert len(operations) == 2

    def test_removed_field_is_dropped_by_baseline_name(self):
        collection = _make_users()
        collection.forward()
        collection.schema.get_field("email").name = "renamed_then_removed"
        collection.fields.pop()

        assert diff_collection(collection) == [DropColumn("users", "email")]

    def test_drops_precede_renames_precede_adds(self):
        collection = _make_users(Field("age", IntFieldType()))
        collection.forward()

        # drop email, rename age -> email, add age
        collection.schema.fields = [
            collection.fields[0],
            collection.fields[2],
            Field("age", IntFieldType(nullable=True)),
        ]
        collection.fields[1].name = "email"

        operations = diff_collection(collection)

        assert _names(operations) == ["DropColumn", "RenameColumn", "AddColumn"]
        assert operations[0] == DropColumn("users", "email")
        assert operations[1] == RenameColumn("users", "age", "email")
        assert operations[2].column.to_sql() == "age BIGINT NULL"

    def test_table_rename_comes_first_and_is_propagated(self):
        collection = _make_users()
        collection.forward()

        collection.name = "accounts"
        collection.schema.get_field("email").name = "contact"
        collection.fields.append(Field("active", BoolFieldType(nullable=True)))

        operations = diff_collection(collection)

        assert operations[0] == RenameTable("users", "accounts")
        assert operations[1] == RenameColumn("accounts", "email", "contact")
        assert operations[2].table == "accounts"
        assert _names(operations) == ["RenameTable", "RenameColumn", "AddColumn"]

    def test_field_reordering_alone_is_not_a_change(self):
        collection = _make_users()
        collection.forward()
        collection.fields.reverse()
        assert diff_collection(collection) == []

    def test_field_moved_from_another_collection_is_added(self):
        other = Collection(name="other", schema=[Field("note", TextFieldType(nullable=True))])
        other.forward()

        collection = _make_users()
        collection.forward()
        collection.fields.append(other.fields[0])

        operations = diff_collection(collection)
        assert _names(operations) == ["AddColumn"]
        assert operations[0].column.to_sql() == "note TEXT NULL"

    def test_invalid_renamed_column_is_rejected(self):
        collection = _make_users()
        collection.forward()
        collection.schema.get_field("email").name = "e mail"

        with pytest.raises(ConfigurationError, match="invalid column name"):
            diff_collection(collection)

    def test_swapped_names_go_through_temporary_columns(self):
        collection = _make_users(Field("backup", TextFieldType(max_length=100)))
        collection.forward()
        email, backup = collection.fields[1], collection.fields[2]
        email.name, backup.name = "backup", "email"

        tmp_email = TEMPORARY_COLUMN_PREFIX + email.key
        tmp_backup = TEMPORARY_COLUMN_PREFIX + backup.key
        assert diff_collection(collection) == [
            RenameColumn("users", "email", tmp_email),
            RenameColumn("users", "backup", tmp_backup),
            RenameColumn("users", tmp_email, "backup"),
            RenameColumn("users", tmp_backup, "email"),
        ]

    def test_chained_renames_never_target_a_taken_name(self):
        collection = _make_users(Field("age", IntFieldType()))
        collection.forward()
        email, age = collection.fields[1], collection.fields[2]
        email.name, age.name = "age", "years"

        tmp_email = TEMPORARY_COLUMN_PREFIX + email.key
        assert diff_collection(collection) == [
            RenameColumn("users", "email", tmp_email),
            RenameColumn("users", "age", "years"),
            RenameColumn("users", tmp_email, "age"),
        ]


# --- Classification ---


class TestClassifyFields:
    def test_new_collection_adds_everything(self):
        collection = _make_users()
        changes = classify_fields(collection)
        assert changes.added == collection.fields
        assert not changes.removed and not changes.renamed and not changes.unchanged

    def test_classification_is_disjoint_and_complete(self):
        collection = _make_users(Field("age", IntFieldType()))
        collection.forward()

        baseline_email = collection.original.fields[1]
        collection.fields[2].name = "years"  # renamed
        del collection.fields[1]  # removed
        collection.fields.append(Field("active", BoolFieldType()))  # added

        changes = classify_fields(collection)

        assert [f.name for f in changes.unchanged] == ["id"]
        assert [f.name for f in changes.renamed] == ["years"]
        assert [f.name for f in changes.added] == ["active"]
        assert [f.key for f in changes.removed] == [baseline_email.key]
        assert changes.has_structural_changes

        current = changes.unchanged + changes.renamed + changes.added
        assert sorted(f.key for f in current) == sorted(f.key for f in collection.fields)

    def test_unchanged_collection_has_no_structural_changes(self):
        collection = _make_users()
        collection.forward()
        assert not classify_fields(collection).has_structural_changes


# --- Whole schema ---


class TestDiffSchema:
    def test_creates_in_declared_order(self):
        teams = Collection(name="teams", schema=[Field("id", IdFieldType(primary_key=True))])
        users = _make_users()

        operations = diff_schema([teams, users])

        assert [op.table for op in operations] == ["teams", "users"]

    def test_missing_persisted_collection_is_dropped_first(self):
        legacy = Collection(name="legacy", schema=[Field("id", IdFieldType(primary_key=True))])
        legacy.forward()
        legacy.name = "legacy_renamed"
        users = _make_users()

        operations = diff_schema([users], previous=[legacy])

        assert operations[0] == DropTable("legacy")
        assert isinstance(operations[1], CreateTable)

    def test_unpersisted_previous_collection_is_ignored(self):
        draft = Collection(name="draft", schema=[Field("id", IdFieldType(primary_key=True))])
        assert diff_schema([], previous=[draft]) == []

    def test_still_declared_collection_is_not_dropped(self):
        users = _make_users()
        users.forward()
        assert diff_schema([users], previous=[users]) == []


# --- Duplicate names ---


class TestDuplicateFieldNames:
    def test_new_collection_is_rejected(self):
        collection = _make_users(Field("email", TextFieldType(nullable=True)))

        with pytest.raises(ConfigurationError, match="duplicate field name 'email'"):
            diff_collection(collection)

    def test_rename_onto_existing_name_is_rejected(self):
        collection = _make_users(Field("age", IntFieldType()))
        collection.forward()
        collection.schema.get_field("age").name = "email"

        with pytest.raises(ConfigurationError, match="duplicate field name 'email'"):
            diff_collection(collection)

    def test_added_field_reusing_a_name_is_rejected(self):
        collection = _make_users()
        collection.forward()
        collection.fields.append(Field("id", IdFieldType(nullable=True)))

        with pytest.raises(ConfigurationError, match="duplicate field name 'id'"):
            diff_schema([collection])
