"""
Infrastructure package for rowgate.

Centralizes database connectivity concerns: DSN parsing, driver connects,
per-backend dialects and the Db connection wrapper. Keep this layer focused
on I/O and resource management, decoupled from the Table/Record domain.
"""

from rowgate.infrastructure.db import Db, Statement
from rowgate.infrastructure.db_factory import DsnInfo, open_connection, parse_dsn
from rowgate.infrastructure.dialects import Dialect, get_dialect

__all__ = [
    "Db",
    "Dialect",
    "DsnInfo",
    "Statement",
    "get_dialect",
    "open_connection",
    "parse_dsn",
]
