"""
Thin connection wrapper used by Table, Query and Seeder.

Db owns one DB-API handle and remembers the most recently executed statement
so `affected_rows()` can be asked without passing the statement back in. That
shared "last statement" makes a Db instance unsafe to share between threads;
give each concurrent execution path its own Db.
"""

from __future__ import annotations

from types import TracebackType
from typing import Any, Dict, List, Optional, Sequence

from rowgate.config import Settings, get_settings
from rowgate.errors import NoStatementError
from rowgate.infrastructure.db_factory import DsnInfo, open_connection, parse_dsn
from rowgate.infrastructure.dialects import Dialect
from rowgate.utils.logging import get_logger
from rowgate.utils.uuids import binary_to_uuid, uuid_to_binary

log = get_logger(__name__)


class Statement:
    """
    Result of `Db.execute`: a DB-API cursor with dict-shaped fetch helpers.
    """

    def __init__(self, cursor: Any, sql: str) -> None:
        self._cursor = cursor
        self.sql = sql
        # Driver counters, still readable after close().
        self._row_count: int = cursor.rowcount
        self._last_row_id: Any = getattr(cursor, "lastrowid", None)
        self.closed = False

    @property
    def columns(self) -> List[str]:
        description = self._cursor.description
        if not description:
            return []
        return [col[0] for col in description]

    @property
    def row_count(self) -> int:
        return self._row_count

    @property
    def last_row_id(self) -> Any:
        return self._last_row_id

    def fetch_all(self) -> List[Dict[str, Any]]:
        """All remaining rows as column-name keyed dicts."""
        if self._cursor.description is None:
            return []
        columns = self.columns
        return [dict(zip(columns, row)) for row in self._cursor.fetchall()]

    def fetch_one(self) -> Optional[Dict[str, Any]]:
        """Next row as a dict, or None when the result is exhausted."""
        if self._cursor.description is None:
            return None
        row = self._cursor.fetchone()
        return dict(zip(self.columns, row)) if row is not None else None

    def fetch_column(self, index: int = 0) -> Any:
        """One column of the next row, or None when the result is exhausted."""
        if self._cursor.description is None:
            return None
        row = self._cursor.fetchone()
        return row[index] if row is not None else None

    def fetch_column_all(self, index: int = 0) -> List[Any]:
        """One column of every remaining row, flattened."""
        if self._cursor.description is None:
            return []
        return [row[index] for row in self._cursor.fetchall()]

    def close(self) -> None:
        if not self.closed:
            self._cursor.close()
            self.closed = True

    def __enter__(self) -> "Statement":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class Db:
    """
    Single database connection.

    Parameters
    ----------
    dsn : str
        PDO-style DSN, e.g. ``mysql:host=127.0.0.1;dbname=app``.
    user, password : str | None
        Credentials passed to the driver.
    options : dict | None
        Extra driver keyword arguments.

    Raises
    ------
    DatabaseConnectionError
        If the DSN is malformed or the driver cannot connect.
    """

    def __init__(
        self,
        dsn: str,
        user: Optional[str] = None,
        password: Optional[str] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._dsn: DsnInfo = parse_dsn(dsn)
        self.dialect: Dialect = self._dsn.dialect
        self._connection = open_connection(self._dsn, user, password, options)
        self._last_statement: Optional[Statement] = None
        self._in_transaction = False

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "Db":
        """Build a connection from Settings (environment / .env by default)."""
        settings = settings or get_settings()
        return cls(
            settings.db_dsn,
            user=settings.db_user,
            password=settings.db_password,
            options=dict(settings.db_options),
        )

    @property
    def dsn(self) -> str:
        return self._dsn.raw

    def database_name(self) -> str:
        return self._dsn.database_name

    def quote_identifier(self, identifier: str) -> str:
        return self.dialect.quote(identifier)

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> Statement:
        """
        Prepare and run a statement with positional `?` placeholders.

        Driver errors are logged and re-raised unchanged.
        """
        params = list(params or [])
        driver_sql = self.dialect.translate(sql) if params else sql
        cursor = self._connection.cursor()
        log.debug(f"Executing: {sql}", extra={"params": len(params)})
        try:
            if params:
                cursor.execute(driver_sql, tuple(params))
            else:
                cursor.execute(driver_sql)
        except Exception:
            log.exception(f"Statement failed: {sql}", extra={"params": len(params)})
            cursor.close()
            raise

        statement = Statement(cursor, sql)
        self._last_statement = statement
        return statement

    def last_insert_id(self) -> int:
        """
        Id generated by the most recent insert on an auto-increment table.
        """
        if self.dialect.name == "pgsql":
            cursor = self._connection.cursor()
            try:
                cursor.execute("SELECT lastval()")
                row = cursor.fetchone()
            finally:
                cursor.close()
            return int(row[0]) if row else 0
        if self._last_statement is None:
            return 0
        return int(self._last_statement.last_row_id or 0)

    def affected_rows(self, statement: Optional[Statement] = None) -> int:
        """
        Row count of `statement`, or of the most recent statement.

        Raises
        ------
        NoStatementError
            If no statement was given and none has been executed yet.
        """
        statement = statement or self._last_statement
        if statement is None:
            raise NoStatementError("No statement available to get affected rows.")
        return statement.row_count

    def uuid_to_binary(self, value: Any) -> Any:
        return uuid_to_binary(value)

    def binary_to_uuid(self, value: Any) -> Any:
        return binary_to_uuid(value)

    # Transactions. Nesting is not supported.

    def _control(self, sql: str) -> None:
        cursor = self._connection.cursor()
        try:
            cursor.execute(sql)
        finally:
            cursor.close()

    def begin_transaction(self) -> bool:
        log.debug("Beginning transaction")
        self._control(self.dialect.begin_sql)
        self._in_transaction = True
        return True

    def commit(self) -> bool:
        self._control("COMMIT")
        self._in_transaction = False
        return True

    def rollback(self) -> bool:
        self._control("ROLLBACK")
        self._in_transaction = False
        return True

    def in_transaction(self) -> bool:
        return self._in_transaction

    def close(self) -> None:
        """Close the underlying handle."""
        if self._connection is not None:
            log.info(f"Closing {self.dialect.name} connection", extra={"dsn": self.dsn})
            self._connection.close()
            self._connection = None

    def __enter__(self) -> "Db":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


__all__ = ["Db", "Statement"]
