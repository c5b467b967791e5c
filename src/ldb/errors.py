"""Typed errors for schema configuration, value validation and reconciliation."""

from typing import Any


class LdbError(Exception):
    """Base exception for all ldb errors."""

    pass


class ConfigurationError(LdbError):
    """Raised when a schema declaration is misconfigured, independent of any input value."""

    pass


# --- Validation errors ---


class ValidationError(LdbError):
    """Raised when a value is rejected by a field type."""

    pass


class NonNullRequiredError(ValidationError):
    """Raised when a non-nullable field receives no value."""

    def __init__(self, message: str = "invalid value, expected non-null"):
        super().__init__(message)


class TypeMismatchError(ValidationError):
    """Raised when a value does not have the field's native representation."""

    pass


class OutOfRangeError(ValidationError):
    """Raised when a numeric or temporal value falls outside its bounds."""

    pass


class TooLongError(ValidationError):
    pass


class TooShortError(ValidationError):
    pass


class PatternMismatchError(ValidationError):
    pass


class NotEnumMemberError(ValidationError):
    pass


class InvalidIdentifierFormatError(ValidationError):
    """Raised when a value is not a well-formed record identifier."""

    pass


# --- Reconciliation errors ---


class ReconciliationError(LdbError):
    """Raised when the storage layer fails to apply a structural operation.

    The remaining operations of the batch are not applied and the collection
    baseline is not advanced.
    """

    def __init__(self, operation: Any, index: int, total: int, cause: BaseException):
        self.operation = operation
        self.index = index
        self.total = total
        self.cause = cause
        super().__init__(
            f"operation {index + 1} of {total} ({operation.describe()}) failed: {cause}"
        )


class UnimplementedCapabilityError(LdbError, NotImplementedError):
    """Raised by storage capabilities that are not supported yet."""

    def __init__(self, capability: str):
        self.capability = capability
        super().__init__(f"{capability} is not supported yet")
