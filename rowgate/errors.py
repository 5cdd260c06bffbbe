"""
Exception taxonomy for the rowgate data-access layer.

Every error raised by the gateway derives from DatabaseError so callers can
catch the whole family at one seam. Driver exceptions raised while executing
statements (constraint violations, lost connections) are not wrapped and
propagate as the driver raised them.
"""

from __future__ import annotations


class DatabaseError(Exception):
    """Base class for all rowgate errors."""


class DatabaseConnectionError(DatabaseError):
    """The DSN is malformed or the driver could not open a connection."""


class QueryError(DatabaseError):
    """Invalid identifier, operator, condition shape or limit."""


class PersistenceError(DatabaseError):
    """A write could not be attempted (missing id, mixed record types)."""


class NoStatementError(DatabaseError):
    """Affected rows were requested before any statement was executed."""


__all__ = [
    "DatabaseError",
    "DatabaseConnectionError",
    "QueryError",
    "PersistenceError",
    "NoStatementError",
]
