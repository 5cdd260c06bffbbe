"""
Per-backend SQL differences.

The condition compiler and the Table gateway only ever emit `?` placeholders
and ask the dialect to quote validated identifiers. Everything that differs
between MySQL, PostgreSQL and SQLite is captured here so the rest of the
package stays backend-neutral.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence


@dataclass(frozen=True)
class Dialect:
    """
    SQL dialect description.

    Attributes
    ----------
    name : str
        DSN scheme the dialect is registered under (``mysql``, ``pgsql``, ``sqlite``).
    quote_char : str
        Character wrapped around identifiers.
    paramstyle : str
        DB-API paramstyle of the driver: ``qmark`` or ``format``.
    begin_sql : str
        Statement that opens an explicit transaction.
    truncate_template : str
        Statement used to empty a table; ``{table}`` is the quoted name.
    disable_fk_sql / enable_fk_sql : Optional[str]
        Statements toggling foreign-key enforcement, if the backend needs them.
    backslash_escapes : bool
        Whether a backslash escapes the next character inside quoted strings.
    hash_comments : bool
        Whether `#` starts a comment running to the end of the line.
    """

    name: str
    quote_char: str
    paramstyle: str
    begin_sql: str
    truncate_template: str
    disable_fk_sql: Optional[str] = None
    enable_fk_sql: Optional[str] = None
    backslash_escapes: bool = False
    hash_comments: bool = False

    def quote(self, identifier: str) -> str:
        """Quote an identifier that has already passed validation."""
        return f"{self.quote_char}{identifier}{self.quote_char}"

    def truncate_sql(self, table: str) -> str:
        return self.truncate_template.format(table=self.quote(table))

    def translate(self, sql: str) -> str:
        """
        Rewrite `?` placeholders for `format` paramstyle drivers.

        Literal `%` is doubled everywhere so the driver does not read it as a
        placeholder. Quoted strings, quoted identifiers and comments are
        otherwise copied untouched, so a `?` inside them is kept.
        """
        if self.paramstyle == "qmark":
            return sql

        out: List[str] = []
        pos = 0
        length = len(sql)
        while pos < length:
            char = sql[pos]
            if char in ("'", '"', "`"):
                end = self._quoted_end(sql, pos)
            elif sql.startswith("--", pos) or (char == "#" and self.hash_comments):
                end = sql.find("\n", pos)
                end = length if end == -1 else end
            elif sql.startswith("/*", pos):
                end = sql.find("*/", pos + 2)
                end = length if end == -1 else end + 2
            else:
                out.append("%s" if char == "?" else "%%" if char == "%" else char)
                pos += 1
                continue
            out.append(sql[pos:end].replace("%", "%%"))
            pos = end
        return "".join(out)

    def _quoted_end(self, sql: str, start: int) -> int:
        """Index just past the quoted run opened at `start`."""
        quote = sql[start]
        pos = start + 1
        while pos < len(sql):
            char = sql[pos]
            if char == "\\" and self.backslash_escapes and quote != "`":
                pos += 2
                continue
            if char == quote:
                return pos + 1
            pos += 1
        return len(sql)


MYSQL = Dialect(
    name="mysql",
    quote_char="`",
    paramstyle="format",
    begin_sql="START TRANSACTION",
    truncate_template="TRUNCATE TABLE {table}",
    disable_fk_sql="SET FOREIGN_KEY_CHECKS = 0",
    enable_fk_sql="SET FOREIGN_KEY_CHECKS = 1",
    backslash_escapes=True,
    hash_comments=True,
)

PGSQL = Dialect(
    name="pgsql",
    quote_char='"',
    paramstyle="format",
    begin_sql="BEGIN",
    truncate_template="TRUNCATE TABLE {table} RESTART IDENTITY CASCADE",
)

SQLITE = Dialect(
    name="sqlite",
    quote_char="`",
    paramstyle="qmark",
    begin_sql="BEGIN",
    truncate_template="DELETE FROM {table}",
    disable_fk_sql="PRAGMA foreign_keys = OFF",
    enable_fk_sql="PRAGMA foreign_keys = ON",
)

_DIALECTS: Dict[str, Dialect] = {d.name: d for d in (MYSQL, PGSQL, SQLITE)}


def get_dialect(name: str) -> Dialect:
    """Look up a dialect by DSN scheme."""
    try:
        return _DIALECTS[name]
    except KeyError:
        raise ValueError(
            f"Unknown dialect '{name}'. Available: {', '.join(sorted(_DIALECTS))}"
        ) from None


def available_dialects() -> Sequence[str]:
    return sorted(_DIALECTS)


__all__ = [
    "Dialect",
    "MYSQL",
    "PGSQL",
    "SQLITE",
    "available_dialects",
    "get_dialect",
]
