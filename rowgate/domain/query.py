"""
Base class for hand-written SQL.

Subclass Query when a call site needs SQL that Table cannot express (joins,
aggregates) but still wants dict-shaped results and the connection's UUID
conversions:

    class TeamStats(Query):
        def member_counts(self) -> list[dict]:
            return self.rows(
                "SELECT team_id, COUNT(*) AS members FROM users GROUP BY team_id"
            )
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from rowgate.infrastructure.db import Db


class Query:
    def __init__(self, db: Db) -> None:
        self.db = db

    def rows(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        """All rows as dicts."""
        with self.db.execute(sql, params) as statement:
            return statement.fetch_all()

    def row(self, sql: str, params: Optional[Sequence[Any]] = None) -> Optional[Dict[str, Any]]:
        """First row, or None."""
        with self.db.execute(sql, params) as statement:
            return statement.fetch_one()

    def scalar(self, sql: str, params: Optional[Sequence[Any]] = None) -> Any:
        """First column of the first row, or None."""
        with self.db.execute(sql, params) as statement:
            return statement.fetch_column()

    def count(self, sql: str, params: Optional[Sequence[Any]] = None) -> int:
        return int(self.scalar(sql, params) or 0)

    def column(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Any]:
        """First column of every row, flattened."""
        with self.db.execute(sql, params) as statement:
            return statement.fetch_column_all()

    def uuid_to_binary(self, value: Any) -> Any:
        return self.db.uuid_to_binary(value)

    def binary_to_uuid(self, value: Any) -> Any:
        return self.db.binary_to_uuid(value)


__all__ = ["Query"]
