"""Field type catalog.

A closed set of field type variants. Each variant carries its own
constraint configuration and validates raw values the same way:

  1. a missing value (None) on a non-nullable field is rejected
  2. a missing value on a nullable field resolves to the default (or None);
     a static default that breaks the variant's own rules is a ConfigurationError
  3. the value is type-checked against the variant's native representation
  4. variant constraints are applied (length, range, pattern, membership, id format)
  5. the accepted (possibly coerced) value is returned

Defaults and datetime bounds may be static values or zero-argument providers
(see ldb.clock.Now); providers are evaluated lazily, only when needed.

Adding a variant means updating every consumer of the catalog:
column derivation (ldb.schema.columns) and the declaration parser.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, ClassVar

from ldb.errors import (
    ConfigurationError,
    NonNullRequiredError,
    NotEnumMemberError,
    OutOfRangeError,
    PatternMismatchError,
    TooLongError,
    TooShortError,
    TypeMismatchError,
    ValidationError,
)
from ldb.ids import validate_id


def resolve(value: Any) -> Any:
    """Evaluate a provider, or return a static value unchanged."""
    return value() if callable(value) else value


@lru_cache(maxsize=256)
def _compile_pattern(pattern: str) -> re.Pattern:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ConfigurationError(f"configuration error, invalid pattern {pattern!r}: {e}") from e


def _check_bounds(low: Any, high: Any, what: str) -> None:
    if low is not None and high is not None and low > high:
        raise ConfigurationError(
            f"configuration error, min {what} {low} is greater than max {what} {high}"
        )


# --- Base ---


@dataclass(kw_only=True)
class FieldType:
    """Base class for field type variants.

    Subclasses implement _validate_value() for present values; null handling
    and defaults are shared.
    """

    type_name: ClassVar[str] = ""

    nullable: bool = False
    default: Any = None

    @property
    def accepts_null(self) -> bool:
        """Whether a missing value is acceptable at validation time."""
        return self.nullable

    def default_value(self) -> Any:
        return resolve(self.default)

    def validate(self, value: Any) -> Any:
        """Validate a raw value and return the normalized value.

        Raises:
            ValidationError: If the value is rejected (see subclasses in ldb.errors).
            ConfigurationError: If the field type itself is misconfigured.
        """
        if value is None:
            if not self.accepts_null:
                raise NonNullRequiredError()
            return self._checked_default()

        return self._validate_value(value)

    def check(self) -> None:
        """Raise ConfigurationError for misconfiguration detectable without input."""
        self._checked_default()

    def _checked_default(self) -> Any:
        """Return the default, rejecting a static default that breaks the variant's own rules.

        Providers are not checked: their value is only known at validation time.
        """
        if self.default is None or callable(self.default):
            return self.default_value()

        try:
            self._validate_value(self.default)
        except ValidationError as e:
            raise ConfigurationError(
                f"configuration error, invalid default value {self.default!r}: {e}"
            ) from e
        return self.default

    def _validate_value(self, value: Any) -> Any:
        raise NotImplementedError(f"{type(self).__name__} does not validate values")


# --- Variants ---


@dataclass(kw_only=True)
class IdFieldType(FieldType):
    """A record identifier. Primary keys may be omitted by callers (generated later)."""

    type_name: ClassVar[str] = "id"

    primary_key: bool = False

    @property
    def accepts_null(self) -> bool:
        return self.nullable or self.primary_key

    def _validate_value(self, value: Any) -> Any:
        return validate_id(value)


@dataclass(kw_only=True)
class TextFieldType(FieldType):
    type_name: ClassVar[str] = "text"

    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None

    def check(self) -> None:
        _check_bounds(self.min_length, self.max_length, "length")
        if self.pattern is not None:
            _compile_pattern(self.pattern)
        super().check()

    def _validate_value(self, value: Any) -> Any:
        if not isinstance(value, str):
            raise TypeMismatchError("invalid value, expected string")

        if self.max_length is not None and len(value) > self.max_length:
            raise TooLongError(f"value too long, max length is {self.max_length}")

        if self.min_length is not None and len(value) < self.min_length:
            raise TooShortError(f"value too short, min length is {self.min_length}")

        if self.pattern is not None and not _compile_pattern(self.pattern).search(value):
            raise PatternMismatchError(f"value does not match pattern, pattern is {self.pattern}")

        return value


@dataclass(kw_only=True)
class IntFieldType(FieldType):
    type_name: ClassVar[str] = "int"

    min_value: int | None = None
    max_value: int | None = None

    def check(self) -> None:
        _check_bounds(self.min_value, self.max_value, "value")
        super().check()

    def _validate_value(self, value: Any) -> Any:
        # bool is an int subclass
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeMismatchError("invalid value, expected integer")

        if self.min_value is not None and value < self.min_value:
            raise OutOfRangeError(f"value too small, min value is {self.min_value}")

        if self.max_value is not None and value > self.max_value:
            raise OutOfRangeError(f"value too big, max value is {self.max_value}")

        return value


@dataclass(kw_only=True)
class FloatFieldType(FieldType):
    type_name: ClassVar[str] = "float"

    min_value: float | None = None
    max_value: float | None = None

    def check(self) -> None:
        _check_bounds(self.min_value, self.max_value, "value")
        super().check()

    def _validate_value(self, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeMismatchError("invalid value, expected float")

        value = float(value)

        if self.min_value is not None and value < self.min_value:
            raise OutOfRangeError(f"value too small, min value is {self.min_value}")

        if self.max_value is not None and value > self.max_value:
            raise OutOfRangeError(f"value too big, max value is {self.max_value}")

        return value


@dataclass(kw_only=True)
class BoolFieldType(FieldType):
    type_name: ClassVar[str] = "bool"

    def _validate_value(self, value: Any) -> Any:
        if not isinstance(value, bool):
            raise TypeMismatchError("invalid value, expected bool")
        return value


# RFC-3339 date-time; fromisoformat alone accepts a wider ISO-8601 set
RFC3339_PATTERN = re.compile(
    r"\d{4}-\d{2}-\d{2}[Tt ]\d{2}:\d{2}:\d{2}(\.\d+)?([Zz]|[+-]\d{2}:\d{2})"
)


def _as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def parse_datetime(value: Any) -> datetime:
    """Accept a datetime or an RFC-3339 string (a timezone offset or Z is required)."""
    if isinstance(value, datetime):
        return _as_utc(value)

    if isinstance(value, str) and RFC3339_PATTERN.fullmatch(value):
        try:
            return datetime.fromisoformat(value.upper())
        except ValueError:
            pass

    raise TypeMismatchError("invalid value, expected datetime or RFC-3339 datetime string")


@dataclass(kw_only=True)
class DateTimeFieldType(FieldType):
    """A timestamp. Bounds may be providers such as Now() and are evaluated per call."""

    type_name: ClassVar[str] = "datetime"

    min_value: Any = None
    max_value: Any = None

    def check(self) -> None:
        static_bounds = not (callable(self.min_value) or callable(self.max_value))
        if static_bounds and self.min_value is not None and self.max_value is not None:
            _check_bounds(_as_utc(self.min_value), _as_utc(self.max_value), "value")
        super().check()

    def _validate_value(self, value: Any) -> Any:
        value = parse_datetime(value)

        if self.min_value is not None:
            min_value = _as_utc(resolve(self.min_value))
            if value < min_value:
                raise OutOfRangeError(f"value too early, min value is {min_value.isoformat()}")

        if self.max_value is not None:
            max_value = _as_utc(resolve(self.max_value))
            if value > max_value:
                raise OutOfRangeError(f"value too late, max value is {max_value.isoformat()}")

        return value


@dataclass(kw_only=True)
class EnumFieldType(FieldType):
    """One of a fixed, ordered set of strings.

    The default, when configured, must itself be a member. That is checked on
    every validation, whether or not a value is supplied.
    """

    type_name: ClassVar[str] = "enum"

    values: list[str] = field(default_factory=list)

    def check(self) -> None:
        if not self.values:
            raise ConfigurationError("configuration error, enum field requires at least one value")
        super().check()

    def validate(self, value: Any) -> Any:
        default = self._checked_default()

        if value is None:
            if not self.accepts_null:
                raise NonNullRequiredError()
            return default

        return self._validate_value(value)

    def _checked_default(self) -> Any:
        default = self.default_value()
        if default is not None and default not in self.values:
            raise ConfigurationError(
                f"configuration error, invalid default value {default!r}, "
                f"expected one of [{', '.join(self.values)}]"
            )
        return default

    def _validate_value(self, value: Any) -> Any:
        if not isinstance(value, str) or value not in self.values:
            raise NotEnumMemberError(f"invalid value, expected one of [{', '.join(self.values)}]")
        return value


@dataclass(kw_only=True)
class SingleRelationFieldType(FieldType):
    """A reference to one record of another collection, by identifier."""

    type_name: ClassVar[str] = "relation"

    collection: str = ""
    cascade_delete: bool = False

    def check(self) -> None:
        if not self.collection:
            raise ConfigurationError(
                "configuration error, relation field requires a target collection"
            )
        super().check()

    def _validate_value(self, value: Any) -> Any:
        return validate_id(value)


FIELD_TYPES: dict[str, type[FieldType]] = {
    variant.type_name: variant
    for variant in (
        IdFieldType,
        TextFieldType,
        IntFieldType,
        FloatFieldType,
        BoolFieldType,
        DateTimeFieldType,
        EnumFieldType,
        SingleRelationFieldType,
    )
}
