"""
UUID helpers shared by Record and Db.

Identifiers are carried as canonical hyphenated text in Python and stored as
16-byte binary in the database. Both conversions are pass-through on input that
is already in the target form.
"""

from __future__ import annotations

import os
import re
import time
import uuid
from typing import Any

_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def uuid7() -> str:
    """
    Generate a time-ordered (version 7) UUID as canonical text.

    Layout: 48-bit unix milliseconds, version nibble, 12 random bits,
    variant bits, 62 random bits.
    """
    unix_ms = time.time_ns() // 1_000_000
    rand = int.from_bytes(os.urandom(10), "big")
    rand_a = rand >> 68
    rand_b = rand & ((1 << 62) - 1)
    value = (unix_ms & ((1 << 48) - 1)) << 80
    value |= 0x7 << 76
    value |= rand_a << 64
    value |= 0b10 << 62
    value |= rand_b
    return str(uuid.UUID(int=value))


def is_uuid(value: Any) -> bool:
    """Return True when value is a canonical hyphenated UUID string."""
    return isinstance(value, str) and _UUID_PATTERN.fullmatch(value) is not None


def uuid_to_binary(value: Any) -> Any:
    """
    Convert UUID text to its 16-byte encoding.

    Text is matched case-insensitively, but the encoding does not keep case:
    `binary_to_uuid` always gives back lowercase text, so an uppercase UUID
    round-trips to its lowercase canonical form. Anything that is not UUID
    text is assumed to be binary already and is returned unchanged.
    """
    if not is_uuid(value):
        return value
    return uuid.UUID(value).bytes


def binary_to_uuid(value: Any) -> Any:
    """
    Convert a 16-byte UUID encoding to canonical lowercase text.

    UUID text (in whatever case it arrives), None and non-binary values are
    returned unchanged. Binary values of the wrong length raise ValueError
    from uuid.UUID.
    """
    if value is None or is_uuid(value):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return str(uuid.UUID(bytes=bytes(value)))
    return value


__all__ = ["uuid7", "is_uuid", "uuid_to_binary", "binary_to_uuid"]
