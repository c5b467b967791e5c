"""Collection and field declarations with depth-1 baseline snapshots.

Every Collection and Field may hold an `original`: a frozen clone of its own
state as of the last successful reconciliation. No original means the entity
has never been persisted. forward() re-baselines after a successful apply.

Entities carry a stable surrogate `key`, assigned at creation and preserved by
clone(). The diff engine matches current fields to baseline fields by key, so
renames are tracked without relying on object identity.
"""

import copy
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from ldb.ids import generate_id
from ldb.schema.field_types import FieldType


@dataclass
class FieldSchema:
    """Wraps exactly one field type variant."""

    type: FieldType

    def clone(self) -> "FieldSchema":
        return FieldSchema(type=copy.deepcopy(self.type))


@dataclass
class Field:
    """A named, typed column declaration within a collection."""

    name: str
    schema: FieldSchema
    key: str = field(default_factory=generate_id)
    original: "Field | None" = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if isinstance(self.schema, FieldType):
            self.schema = FieldSchema(type=self.schema)

    @property
    def type(self) -> FieldType:
        return self.schema.type

    @property
    def is_new(self) -> bool:
        return self.original is None

    def clone(self) -> "Field":
        """Copy name, schema and key. The clone has no original of its own."""
        return Field(name=self.name, schema=self.schema.clone(), key=self.key)

    def forward(self) -> None:
        self.original = self.clone()


@dataclass
class CollectionSchema:
    """Ordered field list (declared column order) plus opaque access rules."""

    fields: list[Field] = field(default_factory=list)
    # named access predicates, carried through clones but never evaluated here
    access_rules: dict[str, Callable[..., bool]] = field(default_factory=dict)

    def get_field(self, name: str) -> Field | None:
        return next((f for f in self.fields if f.name == name), None)

    def clone(self) -> "CollectionSchema":
        return CollectionSchema(
            fields=[f.clone() for f in self.fields],
            access_rules=dict(self.access_rules),
        )


@dataclass
class Collection:
    """A declared table-like entity with a name and an ordered field list."""

    name: str
    schema: CollectionSchema = field(default_factory=CollectionSchema)
    key: str = field(default_factory=generate_id)
    original: "Collection | None" = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if isinstance(self.schema, list):
            self.schema = CollectionSchema(fields=self.schema)

    @property
    def fields(self) -> list[Field]:
        return self.schema.fields

    @property
    def is_new(self) -> bool:
        return self.original is None

    def clone(self) -> "Collection":
        """Copy name, schema and key. Cloned fields carry no originals."""
        return Collection(name=self.name, schema=self.schema.clone(), key=self.key)

    def forward(self) -> None:
        """Advance the baseline to the current state.

        Call exactly once per successful reconciliation. Forwarding without a
        successful apply makes the next diff report no changes.
        """
        self.original = self.clone()
        for f in self.schema.fields:
            f.forward()


# --- Views ---


@dataclass
class ViewSchema:
    query: str = ""
    options: dict[str, Any] = field(default_factory=dict)


@dataclass
class View:
    name: str
    original_name: str
    schema: ViewSchema = field(default_factory=ViewSchema)
