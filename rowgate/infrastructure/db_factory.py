"""
Database connection factory utilities for rowgate.

Parses PDO-style DSNs (`mysql:host=...;dbname=...`, `pgsql:...`,
`sqlite:/path.db`) and opens a DB-API handle with the matching driver:

- mysql  -> PyMySQL
- pgsql  -> psycopg
- sqlite -> sqlite3 (stdlib)

Handles are opened in autocommit mode; Db issues explicit transaction
statements. There is no retry logic: a failed connect surfaces immediately as
DatabaseConnectionError carrying the offending DSN.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import psycopg
import pymysql

from rowgate.errors import DatabaseConnectionError
from rowgate.infrastructure.dialects import Dialect, available_dialects, get_dialect
from rowgate.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class DsnInfo:
    """A parsed DSN: scheme, key/value parameters and the raw string."""

    scheme: str
    raw: str
    params: Dict[str, str] = field(default_factory=dict)
    path: Optional[str] = None

    @property
    def dialect(self) -> Dialect:
        return get_dialect(self.scheme)

    @property
    def database_name(self) -> str:
        if self.scheme == "sqlite":
            return self.path or ""
        return self.params.get("dbname", "")


def parse_dsn(dsn: Optional[str]) -> DsnInfo:
    """
    Validate and split a DSN string.

    Parameters
    ----------
    dsn : str | None
        PDO-style DSN.

    Returns
    -------
    DsnInfo
        The parsed DSN.

    Raises
    ------
    DatabaseConnectionError
        If the DSN is blank or malformed, names an unknown driver, lacks a
        host, or is a MySQL DSN without `dbname=`.
    """
    if not isinstance(dsn, str) or dsn.strip() == "":
        raise DatabaseConnectionError("Missing database DSN (expected setting: DB_DSN).")

    dsn = dsn.strip()
    scheme, sep, rest = dsn.partition(":")
    scheme = scheme.lower()
    if not sep or not scheme:
        raise DatabaseConnectionError(
            f"Malformed DSN, expected '<driver>:<parameters>'. Received: {dsn}"
        )
    if scheme not in available_dialects():
        raise DatabaseConnectionError(
            f"Unsupported DSN driver '{scheme}'. "
            f"Available: {', '.join(available_dialects())}. Received: {dsn}"
        )

    if scheme == "sqlite":
        if rest == "":
            raise DatabaseConnectionError(
                f"SQLite DSN must name a file or ':memory:'. Received: {dsn}"
            )
        return DsnInfo(scheme=scheme, raw=dsn, path=rest)

    params: Dict[str, str] = {}
    for part in rest.split(";"):
        if part.strip() == "":
            continue
        key, eq, value = part.partition("=")
        if not eq or key.strip() == "":
            raise DatabaseConnectionError(
                f"Malformed DSN parameter '{part}'. Received: {dsn}"
            )
        params[key.strip().lower()] = value.strip()

    if scheme == "mysql" and not params.get("dbname"):
        # MySQL needs a default database or unqualified queries fail with
        # "No database selected".
        raise DatabaseConnectionError(
            "MySQL DSN must include a database name using `dbname=`. "
            "Example: mysql:host=127.0.0.1;port=3306;dbname=your_db;charset=utf8mb4. "
            f"Received: {dsn}"
        )
    if scheme != "sqlite" and not (params.get("host") or params.get("unix_socket")):
        raise DatabaseConnectionError(
            f"DSN must include `host=` (or `unix_socket=`). Received: {dsn}"
        )

    return DsnInfo(scheme=scheme, raw=dsn, params=params)


def _connect_mysql(
    info: DsnInfo, user: Optional[str], password: Optional[str], options: Mapping[str, Any]
) -> Any:
    kwargs: Dict[str, Any] = {
        "database": info.params["dbname"],
        "charset": info.params.get("charset", "utf8mb4"),
        "autocommit": True,
    }
    if "unix_socket" in info.params:
        kwargs["unix_socket"] = info.params["unix_socket"]
    else:
        kwargs["host"] = info.params["host"]
        kwargs["port"] = int(info.params.get("port", 3306))
    if user is not None:
        kwargs["user"] = user
    if password is not None:
        kwargs["password"] = password
    kwargs.update(options)
    return pymysql.connect(**kwargs)


def _connect_pgsql(
    info: DsnInfo, user: Optional[str], password: Optional[str], options: Mapping[str, Any]
) -> Any:
    kwargs: Dict[str, Any] = {
        "host": info.params.get("host") or info.params.get("unix_socket"),
        "autocommit": True,
    }
    if "port" in info.params:
        kwargs["port"] = int(info.params["port"])
    if "dbname" in info.params:
        kwargs["dbname"] = info.params["dbname"]
    if user is not None:
        kwargs["user"] = user
    if password is not None:
        kwargs["password"] = password
    kwargs.update(options)
    return psycopg.connect(**kwargs)


def _connect_sqlite(
    info: DsnInfo, user: Optional[str], password: Optional[str], options: Mapping[str, Any]
) -> Any:
    del user, password  # sqlite has no authentication
    kwargs: Dict[str, Any] = {"isolation_level": None}
    kwargs.update(options)
    return sqlite3.connect(info.path, **kwargs)


_CONNECTORS = {
    "mysql": (_connect_mysql, pymysql.MySQLError),
    "pgsql": (_connect_pgsql, psycopg.Error),
    "sqlite": (_connect_sqlite, sqlite3.Error),
}


def open_connection(
    info: DsnInfo,
    user: Optional[str] = None,
    password: Optional[str] = None,
    options: Optional[Mapping[str, Any]] = None,
) -> Any:
    """
    Open a DB-API handle for a parsed DSN.

    Raises
    ------
    DatabaseConnectionError
        Wrapping the driver error, with the DSN included for diagnostics.
    """
    connector, driver_error = _CONNECTORS[info.scheme]
    try:
        handle = connector(info, user, password, options or {})
    except (driver_error, OSError, ValueError) as exc:
        log.error(f"Failed to connect to database: {info.raw}", extra={"dsn": info.raw})
        raise DatabaseConnectionError(
            f"Failed to connect to database. DSN: {info.raw}. Driver error: {exc}"
        ) from exc

    log.info(f"Connected to {info.scheme} database", extra={"dsn": info.raw})
    return handle


__all__ = ["DsnInfo", "open_connection", "parse_dsn"]
