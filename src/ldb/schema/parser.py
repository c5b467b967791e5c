"""Declarative schema parser for ldb.

Parses YAML dicts into Collection declarations. The notation is compact
enough to keep a whole schema in one file:

  collections:
    users:
      id: {type: id, primary_key: true}     # mapping: type plus options
      email: {type: text, max_length: 100}
      nickname?: text                       # trailing ? = nullable
      role: [admin, member]                 # list = enum values
      created?: {type: datetime, default: now}
      team?: {type: relation, collection: teams, cascade_delete: true}

Field order in the document is the declared column order.
"""

import dataclasses
from pathlib import Path
from typing import Any

import yaml

from ldb.clock import Now
from ldb.errors import ConfigurationError, TypeMismatchError
from ldb.schema.field_types import (
    FIELD_TYPES,
    DateTimeFieldType,
    EnumFieldType,
    FieldType,
    parse_datetime,
)
from ldb.schema.model import Collection, CollectionSchema, Field

# Datetime options that accept the `now` keyword
DATETIME_PROVIDER_OPTIONS = frozenset({"default", "min_value", "max_value"})
NOW_KEYWORD = "now"


# --- Field Key Parsing ---


def _parse_field_key(key: str) -> tuple[str, bool]:
    """Split a field key into (name, nullable).

    Examples:
        "email"      -> ("email", False)
        "nickname?"  -> ("nickname", True)
    """
    if key.endswith("?"):
        return key[:-1], True
    return key, False


def _field_options(field_type: type[FieldType]) -> set[str]:
    return {f.name for f in dataclasses.fields(field_type)}


def _datetime_option(value: Any) -> Any:
    if value == NOW_KEYWORD:
        return Now()
    try:
        return parse_datetime(value)
    except TypeMismatchError as e:
        raise ConfigurationError(f"invalid datetime option value {value!r}") from e


# --- Field Parsing ---


def parse_field_type(value: Any, nullable: bool = False) -> FieldType:
    """Build a field type from its declaration value.

    Args:
        value: A type name ("text"), a list of enum values, or a mapping with a
            `type` key plus options named after the field type's attributes.
        nullable: Whether the field key was marked optional.
    """
    # --- Enum shorthand ---
    # Trigger: value is a list (e.g., [active, inactive])
    # Outcome: EnumFieldType with the listed values, in order
    if isinstance(value, list):
        return EnumFieldType(nullable=nullable, values=[str(v) for v in value])

    if isinstance(value, str):
        value = {"type": value}

    if not isinstance(value, dict):
        raise ConfigurationError(f"invalid field declaration: {value!r}")

    options = dict(value)
    type_name = str(options.pop("type", "")).strip().lower()
    field_type = FIELD_TYPES.get(type_name)
    if field_type is None:
        raise ConfigurationError(
            f"unknown field type {type_name!r}, expected one of: {', '.join(FIELD_TYPES)}"
        )

    unknown = set(options) - _field_options(field_type)
    if unknown:
        raise ConfigurationError(
            f"unknown option(s) for {type_name} field: {', '.join(sorted(unknown))}"
        )

    # --- Datetime providers ---
    # Trigger: datetime default/bounds given as `now` or an RFC-3339 string
    # Outcome: lazily evaluated Now() providers or parsed datetimes
    if field_type is DateTimeFieldType:
        for option in DATETIME_PROVIDER_OPTIONS & set(options):
            options[option] = _datetime_option(options[option])

    options.setdefault("nullable", nullable)
    return field_type(**options)


def parse_field(key: str, value: Any) -> Field:
    """Parse a single `key: value` field declaration."""
    name, nullable = _parse_field_key(str(key))
    return Field(name=name, schema=parse_field_type(value, nullable))


# --- Main Parser ---


def parse_collection(name: str, declaration: dict) -> Collection:
    """Parse a collection's field mapping into a Collection."""
    if not isinstance(declaration, dict) or not declaration:
        raise ConfigurationError(f"collection {name!r} must declare at least one field")

    fields = [parse_field(key, value) for key, value in declaration.items()]

    # "email" and "email?" are distinct keys naming the same field
    seen: set[str] = set()
    for f in fields:
        if f.name in seen:
            raise ConfigurationError(
                f"configuration error, duplicate field name {f.name!r} in collection {name!r}"
            )
        seen.add(f.name)

    return Collection(name=name, schema=CollectionSchema(fields=fields))


def parse_schema_document(document: dict) -> list[Collection]:
    """Parse a whole schema document (`collections: {name: {fields}}`).

    Raises:
        ConfigurationError: If the document has no `collections` mapping.
    """
    collections = document.get("collections") if isinstance(document, dict) else None
    if not collections or not isinstance(collections, dict):
        raise ConfigurationError("schema document missing required 'collections' mapping")

    return [parse_collection(name, declaration) for name, declaration in collections.items()]


def load_schema_file(path: Path) -> list[Collection]:
    """Read a YAML schema file and parse its collections."""
    with open(path, encoding="utf-8") as f:
        document = yaml.safe_load(f)
    return parse_schema_document(document)
