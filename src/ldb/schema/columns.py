"""Column definitions derived from field types.

The mapping is total over the field type catalog. An unknown variant means
the catalog and this module are out of sync and raises ConfigurationError.
Enum membership is enforced by the application, not by the column type.
"""

import re
from dataclasses import dataclass

from ldb.errors import ConfigurationError
from ldb.schema.field_types import (
    BoolFieldType,
    DateTimeFieldType,
    EnumFieldType,
    FieldType,
    FloatFieldType,
    IdFieldType,
    IntFieldType,
    SingleRelationFieldType,
    TextFieldType,
)
from ldb.schema.model import Field

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def check_identifier(name: str, kind: str = "name") -> str:
    """Reject table/column names that are not plain SQL identifiers."""
    if not isinstance(name, str) or not IDENTIFIER_PATTERN.match(name):
        raise ConfigurationError(f"configuration error, invalid {kind} {name!r}")
    return name


@dataclass(frozen=True)
class ColumnDefinition:
    """What the storage layer needs to create one column."""

    name: str
    native_type: str
    nullable: bool
    extra_clauses: tuple[str, ...] = ()

    def to_sql(self) -> str:
        parts = [self.name, self.native_type, "NULL" if self.nullable else "NOT NULL"]
        parts.extend(self.extra_clauses)
        return " ".join(parts)


def column_definition(field: Field) -> ColumnDefinition:
    """Derive the column definition for a field."""
    return column_for_type(field.name, field.schema.type)


def column_for_type(name: str, field_type: FieldType) -> ColumnDefinition:
    check_identifier(name, "column name")

    match field_type:
        case IdFieldType(primary_key=True):
            return ColumnDefinition(name, "TEXT", False, ("PRIMARY KEY",))
        case IdFieldType():
            return ColumnDefinition(name, "TEXT", field_type.nullable)
        case TextFieldType() | EnumFieldType():
            return ColumnDefinition(name, "TEXT", field_type.nullable)
        case IntFieldType():
            return ColumnDefinition(name, "BIGINT", field_type.nullable)
        case FloatFieldType():
            return ColumnDefinition(name, "REAL", field_type.nullable)
        case BoolFieldType():
            return ColumnDefinition(name, "BOOL", field_type.nullable)
        case DateTimeFieldType():
            return ColumnDefinition(name, "TIMESTAMP", field_type.nullable)
        case SingleRelationFieldType():
            target = check_identifier(field_type.collection, "relation target")
            clauses = [f"REFERENCES {target}(id)"]
            if field_type.cascade_delete:
                clauses.append("ON DELETE CASCADE")
            return ColumnDefinition(name, "TEXT", field_type.nullable, tuple(clauses))
        case _:
            raise ConfigurationError(
                f"configuration error, unsupported field type {type(field_type).__name__} "
                f"for column {name!r}"
            )
