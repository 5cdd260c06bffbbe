"""
rowgate - a small relational data-access layer.

This package provides:

- Record: typed row container with UUID or auto-increment identity
- Table: per-table gateway with a safe condition compiler and pagination
- Query: base for hand-written SQL with dict-shaped results
- Db: single connection wrapper over PyMySQL, psycopg or sqlite3
- Seeder: loader for nested declarative seed data
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from rowgate.config import Settings, get_settings
from rowgate.domain.query import Query
from rowgate.domain.record import Field, Record
from rowgate.domain.table import Table
from rowgate.errors import (
    DatabaseConnectionError,
    DatabaseError,
    NoStatementError,
    PersistenceError,
    QueryError,
)
from rowgate.infrastructure.db import Db, Statement
from rowgate.seeder import Seeder
from rowgate.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Connection
    "Db",
    "Statement",
    # Domain
    "Field",
    "Query",
    "Record",
    "Table",
    "Seeder",
    # Errors
    "DatabaseError",
    "DatabaseConnectionError",
    "QueryError",
    "PersistenceError",
    "NoStatementError",
    # Logging
    "configure_logging",
    "get_logger",
]
