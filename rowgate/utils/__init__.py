"""
Utilities package for rowgate.

Exports shared helpers for logging and UUID handling.
Keep this package lightweight and free of domain-specific logic.
"""

from rowgate.utils.logging import configure_logging, get_logger
from rowgate.utils.uuids import binary_to_uuid, is_uuid, uuid7, uuid_to_binary

__all__ = [
    "binary_to_uuid",
    "configure_logging",
    "get_logger",
    "is_uuid",
    "uuid7",
    "uuid_to_binary",
]
