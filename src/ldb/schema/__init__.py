"""Schema system for ldb.

Collections and fields are declared in code (or parsed from YAML), diffed
against their last reconciled baseline, and validated value by value before
records are written.
"""

from ldb.schema.field_types import (
    FIELD_TYPES,
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
from ldb.schema.model import (
    Collection,
    CollectionSchema,
    Field,
    FieldSchema,
    View,
    ViewSchema,
)
from ldb.schema.columns import (
    ColumnDefinition,
    column_definition,
)
from ldb.schema.diff import (
    AddColumn,
    CreateTable,
    DropColumn,
    DropTable,
    FieldChanges,
    Operation,
    RenameColumn,
    RenameTable,
    classify_fields,
    diff_collection,
    diff_schema,
)
from ldb.schema.validator import (
    RecordValidationResult,
    validate_record,
    validate_value,
)
from ldb.schema.parser import (
    load_schema_file,
    parse_collection,
    parse_field,
    parse_schema_document,
)

__all__ = [
    # Field types
    "FIELD_TYPES",
    "FieldType",
    "IdFieldType",
    "TextFieldType",
    "IntFieldType",
    "FloatFieldType",
    "BoolFieldType",
    "DateTimeFieldType",
    "EnumFieldType",
    "SingleRelationFieldType",
    # Model
    "Collection",
    "CollectionSchema",
    "Field",
    "FieldSchema",
    "View",
    "ViewSchema",
    # Columns
    "ColumnDefinition",
    "column_definition",
    # Diff
    "Operation",
    "CreateTable",
    "RenameTable",
    "DropTable",
    "DropColumn",
    "RenameColumn",
    "AddColumn",
    "FieldChanges",
    "classify_fields",
    "diff_collection",
    "diff_schema",
    # Validator
    "RecordValidationResult",
    "validate_record",
    "validate_value",
    # Parser
    "load_schema_file",
    "parse_collection",
    "parse_field",
    "parse_schema_document",
]
