"""Tests for ldb.schema.parser -- YAML schema declarations."""

from datetime import datetime, timedelta, timezone

import pytest

from ldb.clock import Now
from ldb.errors import ConfigurationError
from ldb.schema.field_types import (
    BoolFieldType,
    DateTimeFieldType,
    EnumFieldType,
    IdFieldType,
    SingleRelationFieldType,
    TextFieldType,
)
from ldb.schema.parser import (
    _parse_field_key,
    load_schema_file,
    parse_collection,
    parse_field,
    parse_field_type,
    parse_schema_document,
)

SCHEMA_YAML = """\
collections:
  teams:
    id: {type: id, primary_key: true}
    name: {type: text, max_length: 80}
  users:
    id: {type: id, primary_key: true}
    email: {type: text, max_length: 100, pattern: "@"}
    nickname?: text
    role: [admin, member]
    created?: {type: datetime, default: now}
    team?: {type: relation, collection: teams, cascade_delete: true}
"""


# --- Field key parsing ---


class TestParseFieldKey:
    def test_plain_key(self):
        assert _parse_field_key("email") == ("email", False)

    def test_optional_key(self):
        assert _parse_field_key("nickname?") == ("nickname", True)


# --- Field parsing ---


class TestParseFieldType:
    def test_type_name_shorthand(self):
        assert parse_field_type("bool") == BoolFieldType()

    def test_type_name_is_case_insensitive(self):
        assert parse_field_type("Text", nullable=True) == TextFieldType(nullable=True)

    def test_mapping_with_options(self):
        field_type = parse_field_type({"type": "text", "min_length": 2, "max_length": 5})
        assert field_type == TextFieldType(min_length=2, max_length=5)

    def test_list_is_enum(self):
        assert parse_field_type(["a", "b"]) == EnumFieldType(values=["a", "b"])

    def test_explicit_nullable_option_wins(self):
        assert parse_field_type({"type": "text", "nullable": False}, nullable=True).nullable is False

    def test_unknown_type(self):
        with pytest.raises(ConfigurationError, match="unknown field type 'geo'"):
            parse_field_type("geo")

    def test_missing_type(self):
        with pytest.raises(ConfigurationError, match="unknown field type"):
            parse_field_type({"max_length": 3})

    def test_unknown_option(self):
        with pytest.raises(ConfigurationError, match="unknown option\\(s\\) for int field: maxlength"):
            parse_field_type({"type": "int", "maxlength": 3})

    def test_invalid_declaration(self):
        with pytest.raises(ConfigurationError, match="invalid field declaration"):
            parse_field_type(42)


class TestDatetimeOptions:
    def test_now_keyword_becomes_provider(self):
        field_type = parse_field_type({"type": "datetime", "default": "now", "min_value": "now"})
        assert isinstance(field_type.default, Now)
        assert isinstance(field_type.min_value, Now)

    def test_rfc3339_bound_is_parsed(self):
        field_type = parse_field_type({"type": "datetime", "max_value": "2030-01-01T00:00:00Z"})
        assert field_type.max_value == datetime(2030, 1, 1, tzinfo=timezone.utc)

    def test_yaml_datetime_is_accepted(self):
        bound = datetime(2030, 1, 1)
        field_type = parse_field_type({"type": "datetime", "min_value": bound})
        assert field_type.min_value == bound.replace(tzinfo=timezone.utc)

    def test_invalid_datetime_option(self):
        with pytest.raises(ConfigurationError, match="invalid datetime option value"):
            parse_field_type({"type": "datetime", "default": "tomorrow"})

    def test_now_default_is_evaluated_at_validation(self):
        field_type = parse_field_type({"type": "datetime", "default": "now"}, nullable=True)
        before = datetime.now(timezone.utc)
        value = field_type.validate(None)
        assert before <= value <= datetime.now(timezone.utc) + timedelta(seconds=1)


class TestParseField:
    def test_optional_field(self):
        f = parse_field("nickname?", "text")
        assert f.name == "nickname"
        assert f.type == TextFieldType(nullable=True)
        assert f.original is None


# --- Documents ---


class TestParseSchemaDocument:
    def test_parses_collections_in_order(self, tmp_path):
        path = tmp_path / "schema.yaml"
        path.write_text(SCHEMA_YAML, encoding="utf-8")

        teams, users = load_schema_file(path)

        assert teams.name == "teams"
        assert [f.name for f in users.fields] == [
            "id",
            "email",
            "nickname",
            "role",
            "created",
            "team",
        ]
        assert users.fields[0].type == IdFieldType(primary_key=True)
        assert users.fields[3].type == EnumFieldType(values=["admin", "member"])
        assert isinstance(users.fields[4].type, DateTimeFieldType)
        assert users.fields[5].type == SingleRelationFieldType(
            nullable=True, collection="teams", cascade_delete=True
        )
        assert all(c.original is None for c in (teams, users))

    def test_missing_collections(self):
        with pytest.raises(ConfigurationError, match="'collections'"):
            parse_schema_document({"tables": {}})

    def test_non_mapping_document(self):
        with pytest.raises(ConfigurationError):
            parse_schema_document(None)

    def test_empty_collection(self):
        with pytest.raises(ConfigurationError, match="at least one field"):
            parse_collection("empty", {})

    def test_optional_and_required_key_for_same_field(self):
        with pytest.raises(ConfigurationError, match="duplicate field name 'email'"):
            parse_collection("users", {"email": "text", "email?": "text"})
