"""Record identifiers.

An identifier is a 31 character hex string: 15 characters of zero-padded
microsecond Unix timestamp followed by 8 random bytes (16 characters).
Uniqueness relies on the timestamp + entropy combination; nothing checks for
collisions.
"""

import secrets
import time
from typing import Any

from ldb.errors import InvalidIdentifierFormatError

ID_LENGTH = 31
TIMESTAMP_DIGITS = 15
ENTROPY_BYTES = 8

_HEX_DIGITS = frozenset("0123456789abcdef")


def generate_id() -> str:
    """Generate a new record identifier."""
    timestamp = time.time_ns() // 1000
    return f"{timestamp:0{TIMESTAMP_DIGITS}x}{secrets.token_hex(ENTROPY_BYTES)}"


def validate_id(value: Any) -> str:
    """Check that value is a well-formed identifier and return it unchanged.

    Raises:
        InvalidIdentifierFormatError: If value is not a 31 character hex string.
    """
    if not isinstance(value, str):
        raise InvalidIdentifierFormatError("invalid id, expected string value")

    if len(value) != ID_LENGTH:
        raise InvalidIdentifierFormatError(f"invalid id, expected string of length {ID_LENGTH}")

    if not set(value.lower()) <= _HEX_DIGITS:
        raise InvalidIdentifierFormatError("invalid id, expected hex string")

    return value


def is_valid_id(value: Any) -> bool:
    try:
        validate_id(value)
    except InvalidIdentifierFormatError:
        return False
    return True
