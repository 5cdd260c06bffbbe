from __future__ import annotations

import pytest

from rowgate.domain.conditions import (
    Clause,
    compile_condition,
    compile_conditions,
    normalize_column,
    normalize_columns,
    normalize_order_by,
    render_where,
    validate_limit,
)
from rowgate.errors import QueryError
from rowgate.infrastructure.dialects import MYSQL, PGSQL
from rowgate.utils.uuids import uuid7, uuid_to_binary

quote = MYSQL.quote

SCALAR_OPERATORS = ["=", "!=", "<>", ">", "<", ">=", "<=", "LIKE", "NOT LIKE"]
IN_VALUES = [1, 2, 3]


@pytest.mark.parametrize("column", ["id", "user_id", "_private", "Email2", "a"])
def test_valid_identifier_compiles_single_placeholder(column: str) -> None:
    clause = compile_condition(column, "value")

    assert clause == Clause(column, "=", ("value",))
    assert clause.render(quote) == f"`{column}` = ?"


@pytest.mark.parametrize(
    "column",
    ["1abc", "name;drop", "a-b", "", "a b", "`x`", "users.email", "naïve", None, 5],
)
def test_invalid_identifier_is_rejected(column) -> None:
    with pytest.raises(QueryError):
        compile_condition(column, 1)


@pytest.mark.parametrize("operator", SCALAR_OPERATORS)
def test_scalar_operators_bind_one_parameter(operator: str) -> None:
    clause = compile_condition("age", {"operator": operator, "value": 30})

    assert clause.operator == operator
    assert clause.params == (30,)
    assert clause.render(quote) == f"`age` {operator} ?"


def test_between_binds_two_parameters() -> None:
    clause = compile_condition("age", {"operator": "BETWEEN", "value": [18, 65]})

    assert clause.params == (18, 65)
    assert clause.render(quote) == "`age` BETWEEN ? AND ?"


@pytest.mark.parametrize("operator", ["IN", "NOT IN"])
def test_in_binds_one_parameter_per_value(operator: str) -> None:
    clause = compile_condition("id", [operator, IN_VALUES])

    assert clause.params == tuple(IN_VALUES)
    assert clause.render(quote) == f"`id` {operator} (?, ?, ?)"


@pytest.mark.parametrize(
    "condition",
    [
        {"operator": ">=", "value": 18},
        [">=", 18],
        [18, ">="],
        (">=", 18),
    ],
)
def test_structured_shapes_are_equivalent(condition) -> None:
    assert compile_condition("age", condition) == Clause("age", ">=", (18,))


def test_three_element_between_shape() -> None:
    assert compile_condition("age", ["between", 1, 9]) == Clause("age", "BETWEEN", (1, 9))


def test_operator_is_uppercased_and_whitespace_collapsed() -> None:
    assert compile_condition("name", ["like", "a%"]).operator == "LIKE"
    assert compile_condition("id", ["not   in", [1]]).operator == "NOT IN"


@pytest.mark.parametrize(
    "condition",
    [
        {"operator": "REGEXP", "value": "x"},
        ["REGEXP", "x"],
        ["a", "b"],
        {"value": 1},
        ["=", 1, 2],
        ["=", 1, 2, 3],
        [],
    ],
)
def test_disallowed_or_malformed_conditions_are_rejected(condition) -> None:
    with pytest.raises(QueryError):
        compile_condition("name", condition)


def test_null_compiles_to_is_null() -> None:
    clause = compile_condition("deleted_at", None)

    assert clause.params == ()
    assert clause.render(quote) == "`deleted_at` IS NULL"


def test_empty_in_never_matches_and_empty_not_in_always_matches() -> None:
    empty_in = compile_condition("id", ["IN", []])
    empty_not_in = compile_condition("id", ["NOT IN", []])

    assert empty_in.render(quote) == "0 = 1"
    assert empty_in.params == ()
    assert empty_not_in.render(quote) == "1 = 1"
    assert empty_not_in.params == ()


@pytest.mark.parametrize(
    "condition",
    [
        {"operator": "BETWEEN", "value": [1]},
        {"operator": "BETWEEN", "value": 5},
        ["IN", 5],
        ["=", [1, 2]],
    ],
)
def test_value_shape_must_match_operator(condition) -> None:
    with pytest.raises(QueryError):
        compile_condition("age", condition)


def test_uuid_columns_bind_binary() -> None:
    text = uuid7()

    clause = compile_condition("team_id", text, uuid_columns={"id", "team_id"})
    in_clause = compile_condition("id", ["IN", [text, None]], uuid_columns={"id"})

    assert clause.params == (uuid_to_binary(text),)
    assert in_clause.params == (uuid_to_binary(text), None)


def test_empty_uuid_values_are_bound_unchanged() -> None:
    assert compile_condition("id", "", uuid_columns={"id"}).params == ("",)


def test_non_uuid_columns_keep_text() -> None:
    text = uuid7()

    assert compile_condition("slug", text, uuid_columns={"id"}).params == (text,)


def test_render_where_joins_with_and_in_order() -> None:
    clauses = compile_conditions({"age": [">", 18], "name": ["LIKE", "a%"], "deleted_at": None})

    sql, params = render_where(clauses, quote)

    assert sql == " WHERE `age` > ? AND `name` LIKE ? AND `deleted_at` IS NULL"
    assert params == [18, "a%"]


def test_render_where_without_conditions_is_empty() -> None:
    assert render_where(compile_conditions({}), quote) == ("", [])
    assert compile_conditions(None) == []


@pytest.mark.parametrize(
    ("column", "expected"),
    [
        ("email", "`email`"),
        ("users.email", "`users`.`email`"),
        ("`users`.`email`", "`users`.`email`"),
        ('"email"', "`email`"),
    ],
)
def test_normalize_column(column: str, expected: str) -> None:
    assert normalize_column(column, quote) == expected


def test_normalize_column_uses_dialect_quote() -> None:
    assert normalize_column("users.email", PGSQL.quote) == '"users"."email"'


@pytest.mark.parametrize("column", ["a.b.c", "email; DROP", "", "1col", "users.", 3])
def test_normalize_column_rejects_invalid(column) -> None:
    with pytest.raises(QueryError):
        normalize_column(column, quote)


def test_normalize_columns_defaults_to_star() -> None:
    assert normalize_columns(None, quote) == "*"
    assert normalize_columns([], quote) == "*"
    assert normalize_columns(["id", "email"], quote) == "`id`, `email`"


@pytest.mark.parametrize(
    ("order_by", "expected"),
    [
        ({"name": "desc"}, " ORDER BY `name` DESC"),
        (["name", "age DESC"], " ORDER BY `name` ASC, `age` DESC"),
        ("created_at", " ORDER BY `created_at` ASC"),
        (None, ""),
        ({}, ""),
    ],
)
def test_normalize_order_by(order_by, expected: str) -> None:
    assert normalize_order_by(order_by, quote) == expected


@pytest.mark.parametrize("order_by", [{"name": "sideways"}, "name DESC NULLS", ["name; --"], [1]])
def test_normalize_order_by_rejects_invalid(order_by) -> None:
    with pytest.raises(QueryError):
        normalize_order_by(order_by, quote)


def test_validate_limit() -> None:
    assert validate_limit(0) == 0
    assert validate_limit(5) == 5
    for bad in (True, -1, "5", 1.5):
        with pytest.raises(QueryError):
            validate_limit(bad)
