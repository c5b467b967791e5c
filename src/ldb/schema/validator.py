"""Record validation for ldb.

Validates record values field by field before they are written. Each field
type normalizes its own value (defaults, coercion) and rejects values that
break its constraints.

Validation errors are collected per field so the caller can report all of
them at once. Configuration errors are not collected: they indicate a broken
declaration and propagate immediately, annotated with the field name.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field as dataclass_field
from typing import Any

from ldb.errors import ConfigurationError, ValidationError
from ldb.schema.field_types import FieldType
from ldb.schema.model import Collection


# --- Result Data Model ---


@dataclass
class RecordValidationResult:
    """Complete validation result for a record against a collection."""

    collection: str
    values: dict[str, Any] = dataclass_field(default_factory=dict)  # normalized, declared order
    errors: dict[str, ValidationError] = dataclass_field(default_factory=dict)
    unmatched_keys: list[str] = dataclass_field(default_factory=list)  # keys not declared

    @property
    def passed(self) -> bool:
        return not self.errors

    def messages(self) -> dict[str, str]:
        return {name: str(error) for name, error in self.errors.items()}


# --- Validation Logic ---


def validate_value(field_type: FieldType, value: Any) -> Any:
    """Validate a single raw value against a field type and return the normalized value."""
    return field_type.validate(value)


def validate_record(collection: Collection, data: Mapping[str, Any]) -> RecordValidationResult:
    """Validate a record's values against a collection's declared fields.

    Missing keys are validated as None, so defaults and non-null rules apply.

    Raises:
        ConfigurationError: If a field type is misconfigured (e.g. enum default
            outside its values, malformed text pattern).
    """
    result = RecordValidationResult(collection=collection.name)

    for schema_field in collection.fields:
        try:
            result.values[schema_field.name] = validate_value(
                schema_field.type, data.get(schema_field.name)
            )
        except ValidationError as e:
            result.errors[schema_field.name] = e
        except ConfigurationError as e:
            raise ConfigurationError(f"{collection.name}.{schema_field.name}: {e}") from e

    declared = {f.name for f in collection.fields}
    result.unmatched_keys = [key for key in data if key not in declared]

    return result
