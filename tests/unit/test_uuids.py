from __future__ import annotations

import time
import uuid

from rowgate.utils.uuids import binary_to_uuid, is_uuid, uuid7, uuid_to_binary

UUID_BYTES = 16
UUID_VERSION = 7


def test_uuid7_is_canonical_version_7() -> None:
    value = uuid7()

    assert is_uuid(value)
    assert value == value.lower()
    parsed = uuid.UUID(value)
    assert parsed.version == UUID_VERSION
    assert parsed.variant == uuid.RFC_4122


def test_uuid7_is_time_ordered() -> None:
    first = uuid7()
    time.sleep(0.002)
    second = uuid7()

    assert first < second


def test_text_binary_round_trip() -> None:
    text = uuid7()
    binary = uuid_to_binary(text)

    assert isinstance(binary, bytes)
    assert len(binary) == UUID_BYTES
    assert binary_to_uuid(binary) == text


def test_binary_text_round_trip() -> None:
    binary = uuid.uuid4().bytes

    assert uuid_to_binary(binary_to_uuid(binary)) == binary


def test_conversions_pass_through_values_already_in_target_form() -> None:
    text = uuid7()
    binary = uuid_to_binary(text)

    assert uuid_to_binary(binary) is binary
    assert binary_to_uuid(text) is text
    assert uuid_to_binary("not-a-uuid") == "not-a-uuid"
    assert uuid_to_binary(42) == 42
    assert binary_to_uuid(None) is None


def test_uppercase_text_is_accepted() -> None:
    text = uuid7()

    assert uuid_to_binary(text.upper()) == uuid_to_binary(text)


def test_round_trip_returns_lowercase_canonical_text() -> None:
    text = uuid7()

    assert binary_to_uuid(uuid_to_binary(text.upper())) == text
    assert binary_to_uuid(text.upper()) == text.upper()


def test_memoryview_is_decoded() -> None:
    text = uuid7()

    assert binary_to_uuid(memoryview(uuid_to_binary(text))) == text
