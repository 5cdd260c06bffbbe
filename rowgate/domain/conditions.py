"""
Condition compiler and identifier helpers.

Conditions are a flat mapping ``{column: condition}`` joined with AND. Each
entry compiles to a small `Clause` value (column, operator, bound params)
before any SQL text is produced, so the compiler can be tested without a
database. Identifiers are validated against `IDENTIFIER_PATTERN` before they
are ever quoted into a statement; values are always bound as `?` parameters.

Accepted condition shapes::

    {"age": 30}                                   age = ?
    {"deleted_at": None}                          deleted_at IS NULL
    {"age": {"operator": ">=", "value": 18}}      age >= ?
    {"age": [">=", 18]}  /  {"age": [18, ">="]}   age >= ?
    {"age": ["BETWEEN", 18, 65]}                  age BETWEEN ? AND ?
    {"id": ["IN", [1, 2, 3]]}                     id IN (?, ?, ?)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Collection, List, Mapping, Optional, Sequence, Tuple, Union

from rowgate.errors import QueryError
from rowgate.utils.uuids import uuid_to_binary

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

ALLOWED_OPERATORS = frozenset(
    {"=", "!=", "<>", ">", "<", ">=", "<=", "LIKE", "NOT LIKE", "BETWEEN", "IN", "NOT IN"}
)

_LIST_OPERATORS = frozenset({"IN", "NOT IN"})

OrderBy = Union[None, str, Mapping[str, str], Sequence[str]]
Quote = Callable[[str], str]


@dataclass(frozen=True)
class Clause:
    """
    One compiled WHERE predicate.

    `operator` is one of `ALLOWED_OPERATORS`, ``IS NULL``, or ``ALWAYS_FALSE`` /
    ``ALWAYS_TRUE`` for empty IN / NOT IN lists.
    """

    column: str
    operator: str
    params: Tuple[Any, ...] = ()

    def render(self, quote: Quote) -> str:
        if self.operator == "ALWAYS_FALSE":
            return "0 = 1"
        if self.operator == "ALWAYS_TRUE":
            return "1 = 1"

        column = quote(self.column)
        if self.operator == "IS NULL":
            return f"{column} IS NULL"
        if self.operator == "BETWEEN":
            return f"{column} BETWEEN ? AND ?"
        if self.operator in _LIST_OPERATORS:
            placeholders = ", ".join("?" for _ in self.params)
            return f"{column} {self.operator} ({placeholders})"
        return f"{column} {self.operator} ?"


def validate_identifier(name: Any, kind: str = "column") -> str:
    """
    Return `name` unchanged if it is a safe SQL identifier.

    Raises
    ------
    QueryError
        If `name` is not a string matching `IDENTIFIER_PATTERN`.
    """
    if not isinstance(name, str) or not IDENTIFIER_PATTERN.fullmatch(name):
        raise QueryError(f"Invalid {kind} name: {name!r}")
    return name


def normalize_operator(operator: Any) -> str:
    """Uppercase and collapse whitespace; reject anything off the allow-list."""
    if not isinstance(operator, str):
        raise QueryError(f"Invalid operator: {operator!r}")
    normalized = " ".join(operator.upper().split())
    if normalized not in ALLOWED_OPERATORS:
        raise QueryError(f"Operator not allowed: {operator!r}")
    return normalized


def _is_operator(value: Any) -> bool:
    return isinstance(value, str) and " ".join(value.upper().split()) in ALLOWED_OPERATORS


def _is_structured(value: Any) -> bool:
    return isinstance(value, (Mapping, list, tuple))


def _split_structured(column: str, condition: Any) -> Tuple[str, Any]:
    """Return ``(operator, value)`` for one of the structured shapes."""
    if isinstance(condition, Mapping):
        if "operator" not in condition or "value" not in condition:
            raise QueryError(
                f"Condition for '{column}' must provide both 'operator' and 'value'."
            )
        return normalize_operator(condition["operator"]), condition["value"]

    items = list(condition)
    if len(items) == 3:
        operator = normalize_operator(items[0])
        if operator != "BETWEEN":
            raise QueryError(
                f"Three-element condition for '{column}' must use BETWEEN, got {items[0]!r}."
            )
        return operator, [items[1], items[2]]

    if len(items) != 2:
        raise QueryError(
            f"Condition for '{column}' must be [operator, value] or [value, operator]."
        )
    first, second = items
    if _is_operator(first):
        return normalize_operator(first), second
    if _is_operator(second):
        return normalize_operator(second), first
    raise QueryError(f"Condition for '{column}' has no allowed operator: {items!r}")


def _normalize_value(value: Any, is_uuid: bool) -> Any:
    if is_uuid and value is not None and value != "":
        return uuid_to_binary(value)
    return value


def compile_condition(column: Any, condition: Any, uuid_columns: Collection[str] = ()) -> Clause:
    """
    Compile one ``column -> condition`` entry into a `Clause`.

    Parameters
    ----------
    column : str
        Column name; validated before anything else.
    condition : Any
        Scalar, ``None`` or one of the structured shapes.
    uuid_columns : Collection[str]
        Columns whose non-empty values are bound as binary UUIDs.

    Raises
    ------
    QueryError
        On an invalid identifier, an operator off the allow-list, a malformed
        shape, or a BETWEEN / IN value of the wrong form.
    """
    column = validate_identifier(column)
    is_uuid = column in uuid_columns

    if not _is_structured(condition):
        if condition is None:
            return Clause(column, "IS NULL")
        return Clause(column, "=", (_normalize_value(condition, is_uuid),))

    operator, value = _split_structured(column, condition)

    if operator == "BETWEEN":
        if not isinstance(value, (list, tuple)) or len(value) != 2:
            raise QueryError(f"BETWEEN for '{column}' requires exactly two values.")
        low, high = value
        return Clause(
            column,
            operator,
            (_normalize_value(low, is_uuid), _normalize_value(high, is_uuid)),
        )

    if operator in _LIST_OPERATORS:
        if not isinstance(value, (list, tuple, set, frozenset)):
            raise QueryError(f"{operator} for '{column}' requires a list of values.")
        if len(value) == 0:
            return Clause(column, "ALWAYS_FALSE" if operator == "IN" else "ALWAYS_TRUE")
        return Clause(column, operator, tuple(_normalize_value(v, is_uuid) for v in value))

    if isinstance(value, (list, tuple, set, frozenset, Mapping)):
        raise QueryError(f"Operator {operator} for '{column}' requires a single value.")
    return Clause(column, operator, (_normalize_value(value, is_uuid),))


def compile_conditions(
    conditions: Optional[Mapping[str, Any]], uuid_columns: Collection[str] = ()
) -> List[Clause]:
    """Compile every entry of `conditions`, preserving order."""
    if not conditions:
        return []
    return [compile_condition(column, cond, uuid_columns) for column, cond in conditions.items()]


def render_where(clauses: Sequence[Clause], quote: Quote) -> Tuple[str, List[Any]]:
    """
    Join clauses into a ``WHERE ...`` fragment.

    Returns
    -------
    tuple[str, list]
        The fragment (empty string when there are no clauses) and the bound
        parameters in placeholder order.
    """
    if not clauses:
        return "", []
    sql = " WHERE " + " AND ".join(clause.render(quote) for clause in clauses)
    params: List[Any] = []
    for clause in clauses:
        params.extend(clause.params)
    return sql, params


def normalize_column(column: Any, quote: Quote) -> str:
    """
    Quote a select/order-by column given as ``name`` or ``table.name``.

    Parts may already be wrapped in back-quotes or double quotes; each part is
    stripped, validated and re-quoted for the active dialect.
    """
    if not isinstance(column, str) or column.strip() == "":
        raise QueryError(f"Invalid column name: {column!r}")

    parts = column.strip().split(".")
    if len(parts) > 2:
        raise QueryError(f"Invalid column name: {column!r}")

    quoted = []
    for part in parts:
        part = part.strip()
        if len(part) >= 2 and part[0] == part[-1] and part[0] in ("`", '"'):
            part = part[1:-1]
        quoted.append(quote(validate_identifier(part)))
    return ".".join(quoted)


def normalize_columns(columns: Optional[Sequence[str]], quote: Quote) -> str:
    """Select list for `columns`; ``*`` when empty."""
    if not columns:
        return "*"
    if isinstance(columns, str):
        columns = [columns]
    return ", ".join(normalize_column(column, quote) for column in columns)


def normalize_order_by(order_by: OrderBy, quote: Quote) -> str:
    """
    Build an ``ORDER BY ...`` fragment, or an empty string.

    `order_by` may be a mapping ``{column: "ASC" | "DESC"}``, a sequence of
    ``"column [ASC|DESC]"`` strings, or one such string.
    """
    if not order_by:
        return ""

    if isinstance(order_by, Mapping):
        pairs = [(column, direction) for column, direction in order_by.items()]
    else:
        entries = [order_by] if isinstance(order_by, str) else list(order_by)
        pairs = []
        for entry in entries:
            if not isinstance(entry, str):
                raise QueryError(f"Invalid order by entry: {entry!r}")
            tokens = entry.split()
            if len(tokens) == 1:
                pairs.append((tokens[0], "ASC"))
            elif len(tokens) == 2:
                pairs.append((tokens[0], tokens[1]))
            else:
                raise QueryError(f"Invalid order by entry: {entry!r}")

    fragments = []
    for column, direction in pairs:
        direction = str(direction).strip().upper()
        if direction not in ("ASC", "DESC"):
            raise QueryError(f"Invalid order direction for '{column}': {direction!r}")
        fragments.append(f"{normalize_column(column, quote)} {direction}")
    return " ORDER BY " + ", ".join(fragments)


def validate_limit(limit: Any, name: str = "limit") -> int:
    """Accept non-negative ints only; bools are rejected."""
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
        raise QueryError(f"Invalid {name}: {limit!r}")
    return limit


__all__ = [
    "ALLOWED_OPERATORS",
    "Clause",
    "IDENTIFIER_PATTERN",
    "OrderBy",
    "compile_condition",
    "compile_conditions",
    "normalize_column",
    "normalize_columns",
    "normalize_operator",
    "normalize_order_by",
    "render_where",
    "validate_identifier",
    "validate_limit",
]
